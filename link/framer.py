from __future__ import annotations
from dataclasses import dataclass

FRAME_SIZE = 512
ACK = 0x00


@dataclass(frozen=True)
class Ack:
    pass


@dataclass(frozen=True)
class PatchFrame:
    data: bytes


class PatchFramer:
    """Splits the inbound serial stream into ACKs and 512-byte patch dumps.

    Reads arrive in arbitrary chunk sizes.  Partial dumps are kept until
    the next chunk completes them, and anything past a frame boundary is
    the start of the next frame.
    """

    def __init__(self) -> None:
        self._buffer = bytearray()

    @property
    def buffered(self) -> int:
        return len(self._buffer)

    def reset(self) -> None:
        self._buffer.clear()

    def feed(self, chunk: bytes | bytearray) -> list[Ack | PatchFrame]:
        # A lone zero byte is always an acknowledgement, never dump data
        if len(chunk) == 1 and chunk[0] == ACK:
            return [Ack()]
        self._buffer.extend(chunk)
        events: list[Ack | PatchFrame] = []
        while len(self._buffer) >= FRAME_SIZE:
            events.append(PatchFrame(bytes(self._buffer[:FRAME_SIZE])))
            del self._buffer[:FRAME_SIZE]
        return events
