"""Echo service: unary, server-streaming, client-streaming and bidirectional echo."""

from __future__ import annotations

import logging
import socket
import time
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Optional

log = logging.getLogger(__name__)

STREAM_REPLIES = 5


@dataclass(frozen=True)
class EchoRequest:
    """A message sent to the echo service."""

    message: str = ""
    timestamp: int = 0
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class EchoResponse:
    """The service's answer to an echo request."""

    message: str = ""
    server_timestamp: int = 0
    reflection_enabled: bool = False
    server_id: str = ""
    metadata: dict[str, str] = field(default_factory=dict)


def resolve_server_id(server_id: Optional[str] = None) -> str:
    """The given identifier, or the host name, or "unknown" if that fails."""
    if server_id:
        return server_id
    try:
        return socket.gethostname()
    except OSError:
        return "unknown"


@dataclass
class EchoServer:
    """Echoes messages back, tagged with the server identifier."""

    server_id: str = ""
    stream_interval: float = 0.1

    def _reply(self, message: str, metadata: Optional[dict[str, str]]) -> EchoResponse:
        return EchoResponse(
            message=message,
            server_timestamp=time.time_ns(),
            reflection_enabled=True,
            server_id=self.server_id,
            metadata=dict(metadata or {}),
        )

    def echo(self, request: EchoRequest) -> EchoResponse:
        """Return the message with the request's metadata."""
        log.info("[Echo] Received message: %s", request.message)
        return self._reply(request.message, request.metadata)

    def stream_echo(self, request: EchoRequest) -> Iterator[EchoResponse]:
        """Yield five numbered copies of the message."""
        log.info("[StreamEcho] Received message: %s", request.message)
        for number in range(1, STREAM_REPLIES + 1):
            yield self._reply(f"[{number}] {request.message}", request.metadata)
            if self.stream_interval > 0:
                time.sleep(self.stream_interval)

    def client_stream_echo(self, requests: Iterable[EchoRequest]) -> EchoResponse:
        """Collect every message and answer once with a summary."""
        log.info("[ClientStreamEcho] Stream started")
        messages: list[str] = []
        last_metadata: Optional[dict[str, str]] = None
        for request in requests:
            log.info("[ClientStreamEcho] Received: %s", request.message)
            messages.append(request.message)
            last_metadata = request.metadata
        listing = "[" + " ".join(messages) + "]"
        return self._reply(f"Received {len(messages)} messages: {listing}", last_metadata)

    def bidirectional_echo(self, requests: Iterable[EchoRequest]) -> Iterator[EchoResponse]:
        """Answer each incoming message as it arrives."""
        log.info("[BidirectionalEcho] Stream started")
        for request in requests:
            log.info("[BidirectionalEcho] Received: %s", request.message)
            yield self._reply(request.message, request.metadata)