"""
Marco Chat Bridge Client

Polo talks to Marco, which relays a chat room over HTTP. Polo periodically
GETs the new room messages and POSTs chat events from the game server.
All operations degrade to safe defaults; a bridge outage never raises into
the game server.
"""

import logging

from .config import BridgeConfig
from .dispatcher import HttpMethod, RequestDispatcher
from .host import HostCapabilities
from .result import Result
from .types import ChatMessage, HealthStatus, InboundChatBatch, Player

logger = logging.getLogger(__name__)

CHAT_ROUTE = '/chat'
HEALTH_ROUTE = '/vibeCheck'


class ChatBridgeClient:
    """
    Domain operations over the Marco bridge.

    Usage:
        client = ChatBridgeClient(BridgeConfig.load(), host)
        if client.check_health():
            client.poll_once()
        client.send_outbound(Player(uuid, "Steve"), "hello room")
    """

    def __init__(
        self,
        config: BridgeConfig,
        host: HostCapabilities,
        dispatcher: RequestDispatcher = None
    ):
        self.host = host
        self.dispatcher = dispatcher or RequestDispatcher(config)

    @property
    def config(self) -> BridgeConfig:
        return self.dispatcher.config

    def send_outbound(self, player: Player, text: str) -> Result:
        """
        Send a game chat message to the room.

        Delivery is best-effort: failures are logged by the dispatcher and
        returned, never raised.
        """
        message = ChatMessage(player=player, text=text)
        return self.dispatcher.execute(HttpMethod.POST, CHAT_ROUTE, body=message)

    def send_outbound_async(self, player: Player, text: str) -> None:
        """Queue send_outbound on the host so chat handlers don't block on I/O."""
        self.host.run_async(lambda: self.send_outbound(player, text))

    def fetch_inbound(self) -> InboundChatBatch:
        """Get new room messages; an empty batch on any failure."""
        result = self.dispatcher.execute(
            HttpMethod.GET,
            CHAT_ROUTE,
            response_type=InboundChatBatch,
        )
        return result.unwrap_or(InboundChatBatch.empty())

    def check_health(self) -> bool:
        """See if Marco is reachable and accepts our token."""
        result = self.dispatcher.execute(
            HttpMethod.GET,
            HEALTH_ROUTE,
            response_type=HealthStatus,
        )
        status = result.unwrap_or(HealthStatus(ok=False))
        return status.ok is True

    def on_inbound_message(self, text: str) -> None:
        self.host.broadcast(text)

    def relay(self, batch: InboundChatBatch) -> int:
        """Broadcast every message in batch, in order. Returns the count."""
        count = 0
        for message in batch:
            self.on_inbound_message(message)
            count += 1
        return count

    def poll_once(self) -> int:
        """Fetch and relay one batch. Returns the number of messages relayed."""
        batch = self.fetch_inbound()
        if batch:
            logger.debug(f"Relaying {len(batch)} room message(s)")
        return self.relay(batch)

    def __repr__(self):
        return f"ChatBridgeClient({self.config.base_url})"
