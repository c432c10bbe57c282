"""OSC chatbox output: typing indicator and paced, chunked messages."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Protocol, Sequence

from pythonosc.osc_message_builder import BuildError
from pythonosc.udp_client import SimpleUDPClient

from config import OscConfig
from errors import DispatchError

CHATBOX_LOG = logging.getLogger("relay.chatbox")

INPUT_ADDRESS = "/chatbox/input"
TYPING_ADDRESS = "/chatbox/typing"


class Transport(Protocol):
    def send(self, address: str, args: Sequence[object]) -> None: ...


class OscTransport:
    """Fire-and-forget OSC over UDP."""

    def __init__(self, host: str, port: int):
        self.host = host
        self.port = int(port)
        self._client = SimpleUDPClient(host, self.port)

    @classmethod
    def from_config(cls, cfg: OscConfig) -> "OscTransport":
        return cls(cfg.address, cfg.output_port)

    def send(self, address: str, args: Sequence[object]) -> None:
        try:
            self._client.send_message(address, list(args))
        except (OSError, BuildError) as exc:
            raise DispatchError(f"OSC send to {self.host}:{self.port}{address} failed: {exc}") from exc


class TypingIndicator:
    def __init__(self, transport: Transport):
        self.transport = transport

    def set_typing(self, is_typing: bool) -> None:
        try:
            self.transport.send(TYPING_ADDRESS, [bool(is_typing)])
        except (DispatchError, OSError) as exc:
            CHATBOX_LOG.error("Error sending typing indicator: %s", exc)

    def start_typing(self) -> None:
        self.set_typing(True)

    def stop_typing(self) -> None:
        self.set_typing(False)


def split_chunks(text: str, budget: int) -> List[str]:
    """Split on code points into pieces of at most ``budget`` characters."""
    if budget < 1:
        raise ValueError("chunk budget must be at least 1")
    return [text[i : i + budget] for i in range(0, len(text), budget)]


@dataclass(frozen=True)
class DispatchResult:
    sent: int
    total: int

    @property
    def truncated(self) -> bool:
        return self.total > self.sent


class ChunkedDispatcher:
    def __init__(
        self,
        transport: Transport,
        *,
        budget: int = 144,
        max_chunks: int = 3,
        inter_chunk_delay: float = 3.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.transport = transport
        self.budget = budget
        self.max_chunks = max_chunks
        self.inter_chunk_delay = inter_chunk_delay
        self._sleep = sleep

    @classmethod
    def from_config(cls, transport: Transport, cfg: OscConfig) -> "ChunkedDispatcher":
        return cls(
            transport,
            budget=cfg.chunk_budget,
            max_chunks=cfg.max_message_chunks,
            inter_chunk_delay=cfg.display_time,
        )

    async def dispatch(self, text: str) -> DispatchResult:
        """Send ``text`` as up to ``max_chunks`` chunks, in order.

        Only the first chunk asks the receiver to notify. A send failure
        raises ``DispatchError`` and the rest of the message is abandoned.
        """
        chunks = split_chunks(text, self.budget)
        to_send = chunks[: max(0, self.max_chunks)]
        sent = 0
        for i, chunk in enumerate(to_send):
            if i > 0 and self.inter_chunk_delay > 0:
                await self._sleep(self.inter_chunk_delay)
            try:
                self.transport.send(INPUT_ADDRESS, [chunk, True, i == 0])
            except (DispatchError, OSError) as exc:
                raise DispatchError(str(exc), sent=sent) from exc
            sent += 1

        result = DispatchResult(sent=sent, total=len(chunks))
        if result.truncated:
            CHATBOX_LOG.warning(
                "Message truncated: sent %d of %d chunks (%d chars dropped)",
                result.sent,
                result.total,
                len(text) - sum(len(c) for c in to_send),
            )
        return result


__all__ = [
    "INPUT_ADDRESS",
    "TYPING_ADDRESS",
    "Transport",
    "OscTransport",
    "TypingIndicator",
    "split_chunks",
    "DispatchResult",
    "ChunkedDispatcher",
]
