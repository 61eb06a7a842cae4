"""Recursive Length Prefix codec for raw Ethereum transactions.

Items are ``bytes``, non-negative ``int`` (big-endian, no leading zeros) or
lists of items. Decoding always yields ``bytes`` leaves.
"""

from __future__ import annotations

from typing import Union

from .abi import CodecError

RlpItem = Union[bytes, int, list["RlpItem"]]
Decoded = Union[bytes, list["Decoded"]]


def int_to_bytes(value: int) -> bytes:
    if isinstance(value, bool) or value < 0:
        raise CodecError(f"RLP integers must be non-negative, got {value!r}")
    if value == 0:
        return b""
    return value.to_bytes((value.bit_length() + 7) // 8, "big")


def bytes_to_int(data: bytes) -> int:
    if data[:1] == b"\x00":
        raise CodecError("RLP integer has leading zero bytes")
    return int.from_bytes(data, "big")


def _length_prefix(length: int, offset: int) -> bytes:
    if length < 56:
        return bytes([offset + length])
    encoded_length = int_to_bytes(length)
    return bytes([offset + 55 + len(encoded_length)]) + encoded_length


def encode(item: RlpItem) -> bytes:
    if isinstance(item, int):
        item = int_to_bytes(item)
    if isinstance(item, (bytes, bytearray)):
        data = bytes(item)
        if len(data) == 1 and data[0] < 0x80:
            return data
        return _length_prefix(len(data), 0x80) + data
    if isinstance(item, list):
        body = b"".join(encode(child) for child in item)
        return _length_prefix(len(body), 0xC0) + body
    raise CodecError(f"unsupported RLP item type: {type(item).__name__}")


def _read_length(data: bytes, pos: int, size: int) -> int:
    raw = data[pos : pos + size]
    if len(raw) != size:
        raise CodecError("truncated RLP length")
    if raw[0] == 0:
        raise CodecError("RLP length has leading zero bytes")
    length = int.from_bytes(raw, "big")
    if length < 56:
        raise CodecError("RLP long form used for a short payload")
    return length


def _decode_at(data: bytes, pos: int) -> tuple[Decoded, int]:
    if pos >= len(data):
        raise CodecError("unexpected end of RLP input")
    prefix = data[pos]

    if prefix < 0x80:
        return data[pos : pos + 1], pos + 1

    if prefix <= 0xB7:
        length = prefix - 0x80
        start = pos + 1
        end = start + length
        if end > len(data):
            raise CodecError("truncated RLP string")
        if length == 1 and data[start] < 0x80:
            raise CodecError("single byte below 0x80 must not be prefixed")
        return data[start:end], end

    if prefix <= 0xBF:
        size = prefix - 0xB7
        length = _read_length(data, pos + 1, size)
        start = pos + 1 + size
        end = start + length
        if end > len(data):
            raise CodecError("truncated RLP string")
        return data[start:end], end

    if prefix <= 0xF7:
        length = prefix - 0xC0
        start = pos + 1
    else:
        size = prefix - 0xF7
        length = _read_length(data, pos + 1, size)
        start = pos + 1 + size

    end = start + length
    if end > len(data):
        raise CodecError("truncated RLP list")
    items: list[Decoded] = []
    cursor = start
    while cursor < end:
        child, cursor = _decode_at(data, cursor)
        items.append(child)
    if cursor != end:
        raise CodecError("RLP list payload overran its declared length")
    return items, end


def decode(data: bytes) -> Decoded:
    item, end = _decode_at(bytes(data), 0)
    if end != len(data):
        raise CodecError(f"{len(data) - end} trailing bytes after RLP item")
    return item
