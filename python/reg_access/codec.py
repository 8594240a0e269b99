"""
Text and multi-string marshalling.

Registry text is exchanged as NUL-terminated code units whose width is
either 2 bytes (UTF-16LE) or 1 byte (the host's narrow code page). A
multi-string block is a run of terminated strings followed by one extra
terminator; it carries no count and no length prefix.
"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from .constants import CharWidth

WIDE_ENCODING = "utf-16-le"


@dataclass(frozen=True)
class TextCodec:
    """Encodes and decodes registry text for one character width.

    Attributes:
        width: Code unit width shared with the engine.
        narrow_encoding: Code page used when ``width`` is NARROW.
    """

    width: CharWidth = CharWidth.WIDE
    narrow_encoding: str = "utf-8"

    @property
    def unit(self) -> int:
        return self.width.unit

    @property
    def terminator(self) -> bytes:
        return self.width.terminator

    @property
    def encoding(self) -> str:
        if self.width is CharWidth.WIDE:
            return WIDE_ENCODING
        return self.narrow_encoding

    def encode(self, value: str) -> bytes:
        """Encode ``value`` without a terminator."""
        if self.width is CharWidth.WIDE:
            return value.encode(WIDE_ENCODING, "surrogatepass")
        return value.encode(self.narrow_encoding)

    def decode(self, data: bytes) -> str:
        """Decode whole code units of ``data``; no terminator handling."""
        data = bytes(data[: len(data) - len(data) % self.unit])
        if self.width is CharWidth.WIDE:
            return data.decode(WIDE_ENCODING, "surrogatepass")
        return data.decode(self.narrow_encoding, "replace")

    def encode_terminated(self, value: str) -> bytes:
        """Encode ``value`` followed by one terminator unit."""
        return self.encode(value) + self.terminator

    def find_terminator(self, data: bytes, start: int = 0) -> int:
        """Offset of the first terminator unit at or after ``start``, or -1."""
        unit = self.unit
        terminator = self.terminator
        for offset in range(start, len(data) - unit + 1, unit):
            if data[offset:offset + unit] == terminator:
                return offset
        return -1

    def decode_terminated(self, data: bytes) -> str:
        """Decode text up to its first terminator, or all of ``data``."""
        end = self.find_terminator(data)
        if end < 0:
            end = len(data)
        return self.decode(data[:end])

    def encode_multi(self, values: Iterable[Optional[str]]) -> bytes:
        """Encode a sequence of strings as a multi-string block.

        Empty and None entries cannot be represented and are skipped.

        Raises:
            ValueError: If a string contains an embedded NUL.
        """
        block = bytearray()
        for value in values:
            if not value:
                continue
            if "\x00" in value:
                raise ValueError(f"multi-string entry contains NUL: {value!r}")
            block += self.encode_terminated(value)
        block += self.terminator
        return bytes(block)

    def decode_multi(self, data: bytes) -> List[str]:
        """Decode a multi-string block.

        Two consecutive terminators end the block, so an empty string
        embedded in externally written data ends decoding early. A lone
        terminator, or one followed by a second, is an empty sequence; a
        leading terminator followed by text is an empty first string.
        Text left unterminated at the end of ``data`` is kept.
        """
        unit = self.unit
        terminator = self.terminator
        strings = []
        start = 0
        run = 0
        end = len(data) - len(data) % unit
        for offset in range(0, end, unit):
            if data[offset:offset + unit] != terminator:
                run = 0
                continue
            run += 1
            if run == 2:
                return strings
            if offset == 0 and (end <= unit or data[unit:2 * unit] == terminator):
                return strings
            strings.append(self.decode(data[start:offset]))
            start = offset + unit
        if start < end and run == 0:
            strings.append(self.decode(data[start:end]))
        return strings
