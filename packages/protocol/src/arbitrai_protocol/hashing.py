from __future__ import annotations

from eth_utils import keccak, to_hex

ZERO_HASH = "0x" + "0" * 64
ETH_SIGNED_MESSAGE_PREFIX = b"\x19Ethereum Signed Message:\n32"


def keccak_hex(data: bytes) -> str:
    return to_hex(keccak(data))


def keccak_text(text: str) -> bytes:
    return keccak(text.encode("utf-8"))


def content_hash(content: str) -> str:
    """Commitment a party stores on-chain for its evidence."""
    return to_hex(keccak_text(content))


def reasoning_hash(reasoning: str) -> str:
    return to_hex(keccak_text(reasoning))


def function_selector(signature: str) -> bytes:
    return keccak_text(signature)[:4]


def eth_signed_message_hash(digest: bytes) -> bytes:
    if len(digest) != 32:
        raise ValueError(f"expected a 32-byte digest, got {len(digest)}")
    return keccak(ETH_SIGNED_MESSAGE_PREFIX + digest)


def normalize_hash(value: str | bytes) -> str:
    """Lower-case 0x-prefixed 32-byte hex."""
    if isinstance(value, (bytes, bytearray)):
        if len(value) != 32:
            raise ValueError(f"expected 32 bytes, got {len(value)}")
        return to_hex(bytes(value))
    text = value.lower()
    if not text.startswith("0x"):
        text = "0x" + text
    if len(text) != 66:
        raise ValueError(f"expected 32-byte hex, got {value!r}")
    bytes.fromhex(text[2:])
    return text
