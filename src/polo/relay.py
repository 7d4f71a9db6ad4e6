"""
Chat Relay Service
Polls Marco on a fixed interval and broadcasts room messages to the host
"""

import logging
import threading
from datetime import datetime
from typing import Callable, Optional

from .client import ChatBridgeClient

logger = logging.getLogger(__name__)


class ChatRelay:
    """
    Background poller for inbound room messages.

    Game servers normally drive ChatBridgeClient.poll_once() from their own
    scheduler. ChatRelay does the same job on a daemon thread for
    standalone use.

    Usage:
        relay = ChatRelay(client, interval=1.0)
        relay.start()
        ...
        relay.stop()
    """

    def __init__(self, client: ChatBridgeClient, interval: Optional[float] = None):
        self.client = client
        self.interval = interval if interval is not None else client.config.poll_interval

        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._stats_lock = threading.Lock()
        self._status_callbacks = []

        self.stats = {
            'polls': 0,
            'messages_relayed': 0,
            'empty_polls': 0,
            'errors': 0,
            'start_time': None,
            'last_poll': None,
        }

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """Start the polling thread"""
        if self.is_running:
            logger.warning("Relay already running")
            return True

        if self.interval <= 0:
            logger.error(f"Refusing to start relay with interval {self.interval}")
            return False

        logger.info(f"Starting chat relay ({self.client.config.base_url}, every {self.interval}s)")
        self._stop_event.clear()
        with self._stats_lock:
            self.stats['start_time'] = datetime.now()

        self._thread = threading.Thread(
            target=self._poll_loop,
            daemon=True,
            name="PoloRelay"
        )
        self._thread.start()
        self._notify_status("started")
        return True

    def stop(self, timeout: float = 5.0) -> bool:
        """Stop the polling thread. Returns False if it didn't exit in time."""
        if self._thread is None:
            return True

        logger.info("Stopping chat relay...")
        self._stop_event.set()
        self._thread.join(timeout=timeout)

        if self._thread.is_alive():
            logger.warning(f"Relay thread did not stop within {timeout}s")
            return False

        self._thread = None
        logger.info("Chat relay stopped")
        self._notify_status("stopped")
        return True

    def poll_now(self) -> int:
        """Run one poll cycle on the calling thread and record it."""
        try:
            relayed = self.client.poll_once()
        except Exception as e:
            logger.error(f"Relay cycle failed: {e}", exc_info=True)
            with self._stats_lock:
                self.stats['errors'] += 1
                self.stats['last_poll'] = datetime.now()
            return 0

        with self._stats_lock:
            self.stats['polls'] += 1
            self.stats['messages_relayed'] += relayed
            if relayed == 0:
                self.stats['empty_polls'] += 1
            self.stats['last_poll'] = datetime.now()
        return relayed

    def register_status_callback(self, callback: Callable[[str], None]):
        """Register callback for start/stop events"""
        self._status_callbacks.append(callback)

    def get_status(self) -> dict:
        with self._stats_lock:
            stats = self.stats.copy()

        uptime = None
        if stats['start_time'] and self.is_running:
            uptime = (datetime.now() - stats['start_time']).total_seconds()

        return {
            'running': self.is_running,
            'bridge': self.client.config.base_url,
            'interval': self.interval,
            'uptime_seconds': uptime,
            'statistics': stats,
        }

    def _poll_loop(self):
        while not self._stop_event.is_set():
            self.poll_now()
            # Wait also serves as the stop signal
            self._stop_event.wait(self.interval)

    def _notify_status(self, status: str):
        for callback in self._status_callbacks:
            try:
                callback(status)
            except Exception as e:
                logger.error(f"Status callback error: {e}")
