"""
Polo Chat Bridge Client

Relays chat between a game server and a Marco chat-room bridge over HTTP.
Polo polls Marco for new room messages and pushes game chat events to it.
"""

from .version import __version__
from .config import BridgeConfig, StatusPolicy
from .result import Failure, FailureKind, Result
from .types import Player, ChatMessage, InboundChatBatch, HealthStatus
from .dispatcher import HttpMethod, RequestDispatcher
from .host import HostCapabilities, ThreadedHost
from .client import ChatBridgeClient
from .relay import ChatRelay

__all__ = [
    '__version__',
    'BridgeConfig',
    'StatusPolicy',
    'Failure',
    'FailureKind',
    'Result',
    'Player',
    'ChatMessage',
    'InboundChatBatch',
    'HealthStatus',
    'HttpMethod',
    'RequestDispatcher',
    'HostCapabilities',
    'ThreadedHost',
    'ChatBridgeClient',
    'ChatRelay',
]
