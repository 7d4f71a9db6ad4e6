"""
Host capabilities required by the bridge client.

The game server supplies an implementation of HostCapabilities; the client
never talks to the game directly. ThreadedHost is a standalone
implementation used by the CLI and tests.
"""

import logging
import threading
from abc import ABC, abstractmethod
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class HostCapabilities(ABC):
    """What the surrounding application must provide."""

    @abstractmethod
    def broadcast(self, text: str) -> None:
        """Deliver a room message to local players."""

    @abstractmethod
    def run_async(self, task: Callable[[], None]) -> Optional[threading.Thread]:
        """
        Execute task off the calling thread.

        Implementations may return the thread running the task so callers
        can join it; hosts with their own schedulers return None.
        """


class ThreadedHost(HostCapabilities):
    """
    Host that broadcasts to a callable and runs tasks on daemon threads.

    Usage:
        host = ThreadedHost(sink=print)
        client = ChatBridgeClient(config, host)
    """

    def __init__(self, sink: Optional[Callable[[str], None]] = None):
        self._sink = sink

    def broadcast(self, text: str) -> None:
        if self._sink is None:
            logger.info(f"[room] {text}")
            return
        self._sink(text)

    def run_async(self, task: Callable[[], None]) -> threading.Thread:
        def runner():
            try:
                task()
            except Exception:
                logger.exception("Async bridge task failed")

        thread = threading.Thread(target=runner, daemon=True, name="PoloTask")
        thread.start()
        return thread
