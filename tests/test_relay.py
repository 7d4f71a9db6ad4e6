"""
Tests for the chat relay service and threaded host.

Run: python3 -m pytest tests/test_relay.py -v
"""

import logging
import os
import sys
import threading
import time
from unittest.mock import MagicMock, patch

import pytest
import requests

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from polo.client import ChatBridgeClient
from polo.config import BridgeConfig
from polo.host import HostCapabilities, ThreadedHost
from polo.relay import ChatRelay
from polo.types import Player


def wait_for(predicate, timeout=2.0):
    """Poll predicate until true or timeout."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


@pytest.fixture
def mock_client():
    client = MagicMock(spec=ChatBridgeClient)
    client.config = BridgeConfig(token="abc", poll_interval=0.5)
    client.poll_once.return_value = 0
    return client


class TestChatRelay:
    """Tests for ChatRelay."""

    def test_init(self, mock_client):
        relay = ChatRelay(mock_client)

        assert relay.interval == 0.5
        assert relay.is_running is False
        assert relay.stats['polls'] == 0
        assert relay.stats['errors'] == 0

    def test_interval_override(self, mock_client):
        assert ChatRelay(mock_client, interval=5).interval == 5

    def test_poll_now_counts_messages(self, mock_client):
        mock_client.poll_once.side_effect = [3, 0, 2]
        relay = ChatRelay(mock_client)

        assert relay.poll_now() == 3
        relay.poll_now()
        relay.poll_now()

        assert relay.stats['polls'] == 3
        assert relay.stats['messages_relayed'] == 5
        assert relay.stats['empty_polls'] == 1
        assert relay.stats['last_poll'] is not None

    def test_poll_now_survives_errors(self, mock_client):
        """Test a failing cycle is logged and counted, not raised."""
        mock_client.poll_once.side_effect = RuntimeError("broadcast sink broke")
        relay = ChatRelay(mock_client)

        assert relay.poll_now() == 0
        assert relay.stats['errors'] == 1
        assert relay.stats['polls'] == 0

    def test_start_and_stop(self, mock_client):
        """Test the background thread polls until stopped."""
        relay = ChatRelay(mock_client, interval=0.01)

        assert relay.start() is True
        try:
            assert relay.is_running
            assert wait_for(lambda: relay.stats['polls'] >= 2)
        finally:
            assert relay.stop(timeout=2) is True

        assert relay.is_running is False
        polls = relay.stats['polls']
        time.sleep(0.05)
        assert relay.stats['polls'] == polls

    def test_start_twice(self, mock_client):
        relay = ChatRelay(mock_client, interval=0.01)
        relay.start()
        try:
            assert relay.start() is True
        finally:
            relay.stop()

    def test_start_rejects_bad_interval(self, mock_client):
        relay = ChatRelay(mock_client, interval=0)

        assert relay.start() is False
        assert relay.is_running is False

    def test_stop_when_not_started(self, mock_client):
        assert ChatRelay(mock_client).stop() is True

    def test_stop_interrupts_wait(self, mock_client):
        """Test stop doesn't wait out a long interval."""
        relay = ChatRelay(mock_client, interval=60)
        relay.start()
        assert wait_for(lambda: relay.stats['polls'] >= 1)

        started = time.monotonic()
        assert relay.stop(timeout=2) is True
        assert time.monotonic() - started < 2

    def test_status_callbacks(self, mock_client):
        callback = MagicMock()
        relay = ChatRelay(mock_client, interval=0.01)
        relay.register_status_callback(callback)

        relay.start()
        relay.stop()

        assert [c.args[0] for c in callback.call_args_list] == ["started", "stopped"]

    def test_get_status(self, mock_client):
        relay = ChatRelay(mock_client)
        status = relay.get_status()

        assert status['running'] is False
        assert status['bridge'] == "http://localhost:8080"
        assert status['interval'] == 0.5
        assert status['uptime_seconds'] is None
        assert 'polls' in status['statistics']


class TestThreadedHost:
    """Tests for ThreadedHost."""

    def test_is_host_capabilities(self):
        assert isinstance(ThreadedHost(), HostCapabilities)

    def test_broadcast_to_sink(self):
        received = []
        host = ThreadedHost(sink=received.append)

        host.broadcast("one")
        host.broadcast("two")

        assert received == ["one", "two"]

    def test_broadcast_without_sink_logs(self, caplog):
        caplog.set_level(logging.INFO, logger='polo.host')

        ThreadedHost().broadcast("hello")

        assert any("hello" in r.getMessage() for r in caplog.records)

    def test_run_async_off_thread(self):
        """Test the task runs on a different thread."""
        ran_on = []
        thread = ThreadedHost().run_async(lambda: ran_on.append(threading.current_thread()))
        thread.join(timeout=2)

        assert ran_on and ran_on[0] is not threading.current_thread()

    def test_run_async_returns_thread(self):
        thread = ThreadedHost().run_async(lambda: None)
        thread.join(timeout=2)

        assert isinstance(thread, threading.Thread)
        assert thread.daemon

    def test_scheduler_host_may_return_none(self):
        """Test a host that hands tasks to its own scheduler fits the interface."""
        queued = []

        class SchedulerHost(HostCapabilities):
            def broadcast(self, text):
                pass

            def run_async(self, task):
                queued.append(task)

        client = ChatBridgeClient(BridgeConfig(token="abc"), SchedulerHost())
        client.send_outbound_async(Player(uuid="u", name="Alex"), "later")

        assert len(queued) == 1

    def test_run_async_logs_task_errors(self, caplog):
        caplog.set_level(logging.ERROR, logger='polo.host')

        def boom():
            raise RuntimeError("task failed")

        thread = ThreadedHost().run_async(boom)
        thread.join(timeout=2)

        assert any(r.exc_info for r in caplog.records)


class TestRelayWithRealClient:
    """ChatRelay driving a real ChatBridgeClient."""

    def test_relays_to_host(self):
        received = []
        client = ChatBridgeClient(BridgeConfig(token="abc"), ThreadedHost(sink=received.append))
        response = requests.Response()
        response.status_code = 200
        response._content_consumed = True
        response._content = b'{"chat": ["m1", "m2", "m3"]}'

        with patch('polo.dispatcher.requests.request', return_value=response):
            relay = ChatRelay(client)
            assert relay.poll_now() == 3

        assert received == ["m1", "m2", "m3"]
        assert relay.stats['messages_relayed'] == 3
