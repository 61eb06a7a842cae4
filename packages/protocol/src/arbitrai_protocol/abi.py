"""Minimal Solidity ABI word codec.

Covers exactly the shapes the registry, escrow and verifier contracts use:
static words (uint, bool, address, bytes32), dynamic bytes/string, and
head/tail assembly for a parameter list that mixes the two.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from eth_utils import to_checksum_address

WORD = 32
ZERO_WORD = b"\x00" * WORD


class CodecError(ValueError):
    """Raised when a value cannot be encoded or a buffer cannot be decoded."""


def hex_to_bytes(value: str | bytes) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    text = value[2:] if value.startswith(("0x", "0X")) else value
    if len(text) % 2:
        raise CodecError(f"odd-length hex string: {value!r}")
    try:
        return bytes.fromhex(text)
    except ValueError as exc:
        raise CodecError(f"invalid hex string: {value!r}") from exc


def encode_uint(value: int, bits: int = 256) -> bytes:
    if bits % 8 or not 8 <= bits <= 256:
        raise CodecError(f"invalid uint width: {bits}")
    if isinstance(value, bool) or not isinstance(value, int):
        raise CodecError(f"uint{bits} expects an int, got {type(value).__name__}")
    if value < 0 or value >= 1 << bits:
        raise CodecError(f"value {value} out of range for uint{bits}")
    return value.to_bytes(WORD, "big")


def encode_bool(value: bool) -> bytes:
    return encode_uint(1 if value else 0, 8)


def encode_address(address: str | bytes) -> bytes:
    raw = hex_to_bytes(address)
    if len(raw) != 20:
        raise CodecError(f"address must be 20 bytes, got {len(raw)}")
    return raw.rjust(WORD, b"\x00")


def encode_bytes32(value: str | bytes) -> bytes:
    raw = hex_to_bytes(value)
    if len(raw) != WORD:
        raise CodecError(f"bytes32 must be exactly 32 bytes, got {len(raw)}")
    return raw


def _pad_right(data: bytes) -> bytes:
    remainder = len(data) % WORD
    if remainder == 0:
        return data
    return data + b"\x00" * (WORD - remainder)


def encode_dynamic_bytes(data: bytes) -> bytes:
    """Length word followed by the right-padded payload."""
    return encode_uint(len(data)) + _pad_right(bytes(data))


def encode_string(text: str) -> bytes:
    return encode_dynamic_bytes(text.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class Dynamic:
    """An already-encoded tail section; its head slot becomes an offset word."""

    payload: bytes


def encode_params(parts: Sequence[bytes | Dynamic]) -> bytes:
    """Assemble a head/tail encoding.

    Static parts are inlined in the head verbatim (a static tuple is simply its
    words concatenated). Each ``Dynamic`` part takes one head word holding the
    byte offset of its payload, measured from the start of this encoding.
    """
    head_size = 0
    for part in parts:
        if isinstance(part, Dynamic):
            head_size += WORD
        else:
            if len(part) % WORD:
                raise CodecError("static parts must be whole words")
            head_size += len(part)

    head: list[bytes] = []
    tail: list[bytes] = []
    offset = head_size
    for part in parts:
        if isinstance(part, Dynamic):
            head.append(encode_uint(offset))
            tail.append(part.payload)
            offset += len(part.payload)
        else:
            head.append(part)
    return b"".join(head + tail)


class AbiReader:
    """Reads 32-byte slots relative to a base offset inside ABI return data."""

    def __init__(self, data: bytes, base: int = 0) -> None:
        self.data = bytes(data)
        self.base = base

    def _slot(self, index: int) -> bytes:
        start = self.base + index * WORD
        end = start + WORD
        if index < 0 or end > len(self.data):
            raise CodecError(f"slot {index} out of range (buffer is {len(self.data)} bytes)")
        return self.data[start:end]

    def word(self, index: int) -> bytes:
        return self._slot(index)

    def uint(self, index: int, bits: int = 256) -> int:
        value = int.from_bytes(self._slot(index), "big")
        if value >= 1 << bits:
            raise CodecError(f"slot {index} overflows uint{bits}")
        return value

    def boolean(self, index: int) -> bool:
        value = self.uint(index)
        if value not in (0, 1):
            raise CodecError(f"slot {index} is not a bool: {value}")
        return value == 1

    def address(self, index: int) -> str:
        raw = self._slot(index)
        if raw[:12] != b"\x00" * 12:
            raise CodecError(f"slot {index} has dirty address padding")
        return to_checksum_address("0x" + raw[12:].hex())

    def bytes32(self, index: int) -> bytes:
        return self._slot(index)

    def _offset(self, index: int) -> int:
        offset = self.uint(index)
        if self.base + offset > len(self.data):
            raise CodecError(f"offset {offset} in slot {index} points past the buffer")
        return offset

    def dynamic_bytes(self, index: int) -> bytes:
        start = self.base + self._offset(index)
        if start + WORD > len(self.data):
            raise CodecError("dynamic bytes length word is truncated")
        length = int.from_bytes(self.data[start : start + WORD], "big")
        body_start = start + WORD
        if body_start + length > len(self.data):
            raise CodecError(f"dynamic bytes of length {length} exceed the buffer")
        return self.data[body_start : body_start + length]

    def string(self, index: int) -> str:
        try:
            return self.dynamic_bytes(index).decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CodecError(f"slot {index} string is not valid utf-8") from exc

    def tuple_at(self, index: int) -> AbiReader:
        """Reader positioned at a dynamic tuple referenced from ``index``."""
        return AbiReader(self.data, self.base + self._offset(index))
