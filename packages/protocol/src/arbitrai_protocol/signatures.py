from __future__ import annotations

from dataclasses import dataclass

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_keys import keys
from eth_utils import decode_hex, to_checksum_address


@dataclass(frozen=True, slots=True)
class RawSignature:
    recovery_id: int
    r: int
    s: int


def _private_key(private_key: str | bytes) -> keys.PrivateKey:
    raw = private_key if isinstance(private_key, (bytes, bytearray)) else decode_hex(private_key)
    return keys.PrivateKey(bytes(raw))


def private_key_to_address(private_key: str | bytes) -> str:
    return _private_key(private_key).public_key.to_checksum_address()


def sign_digest(private_key: str | bytes, digest: bytes) -> RawSignature:
    """Plain secp256k1 signature over a 32-byte hash, no message prefix."""
    signature = _private_key(private_key).sign_msg_hash(digest)
    return RawSignature(recovery_id=signature.v, r=signature.r, s=signature.s)


def recover_address_from_digest(digest: bytes, signature: RawSignature) -> str:
    sig = keys.Signature(vrs=(signature.recovery_id, signature.r, signature.s))
    return sig.recover_public_key_from_msg_hash(digest).to_checksum_address()


def sign_hash_eip191(private_key: str | bytes, digest_hex: str) -> str:
    """r || s || v (v in 27/28) over the "Ethereum Signed Message:\\n32" wrapped digest."""
    message = encode_defunct(hexstr=digest_hex)
    signed = Account.sign_message(message, private_key=private_key)
    return "0x" + bytes(signed.signature).hex()


def recover_signer_eip191(digest_hex: str, signature: str) -> str:
    message = encode_defunct(hexstr=digest_hex)
    signer = Account.recover_message(message, signature=signature)
    return to_checksum_address(signer)


def verify_signature_eip191(digest_hex: str, signature: str, expected_address: str) -> bool:
    recovered = recover_signer_eip191(digest_hex, signature)
    return recovered == to_checksum_address(expected_address)
