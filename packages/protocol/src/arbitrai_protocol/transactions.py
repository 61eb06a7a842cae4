"""EIP-155 legacy transactions: build, sign, encode, decode."""

from __future__ import annotations

from dataclasses import dataclass

from eth_utils import keccak, to_checksum_address, to_hex

from . import rlp
from .abi import CodecError, hex_to_bytes
from .signatures import RawSignature, recover_address_from_digest, sign_digest

EIP155_V_OFFSET = 35


@dataclass(frozen=True, slots=True)
class LegacyTransaction:
    nonce: int
    gas_price: int
    gas: int
    to: str | None
    chain_id: int
    value: int = 0
    data: bytes = b""

    def _to_bytes(self) -> bytes:
        if self.to is None:
            return b""
        raw = hex_to_bytes(self.to)
        if len(raw) != 20:
            raise CodecError(f"transaction recipient must be 20 bytes, got {len(raw)}")
        return raw

    def _fields(self) -> list[rlp.RlpItem]:
        return [self.nonce, self.gas_price, self.gas, self._to_bytes(), self.value, self.data]

    def signing_hash(self) -> bytes:
        """keccak(rlp([nonce, gasPrice, gas, to, value, data, chainId, 0, 0]))."""
        return keccak(rlp.encode([*self._fields(), self.chain_id, 0, 0]))

    def encode_signed(self, v: int, r: int, s: int) -> bytes:
        return rlp.encode([*self._fields(), v, r, s])


@dataclass(frozen=True, slots=True)
class SignedTransaction:
    raw_transaction: bytes
    tx_hash: str
    v: int
    r: int
    s: int

    @property
    def raw_hex(self) -> str:
        return to_hex(self.raw_transaction)


@dataclass(frozen=True, slots=True)
class DecodedTransaction:
    transaction: LegacyTransaction
    v: int
    r: int
    s: int

    @property
    def recovery_id(self) -> int:
        return (self.v - EIP155_V_OFFSET) % 2


def eip155_v(recovery_id: int, chain_id: int) -> int:
    return recovery_id + 27 + chain_id * 2 + 8


def sign_transaction(tx: LegacyTransaction, private_key: str | bytes) -> SignedTransaction:
    signature = sign_digest(private_key, tx.signing_hash())
    v = eip155_v(signature.recovery_id, tx.chain_id)
    raw = tx.encode_signed(v, signature.r, signature.s)
    return SignedTransaction(
        raw_transaction=raw,
        tx_hash=to_hex(keccak(raw)),
        v=v,
        r=signature.r,
        s=signature.s,
    )


def _as_int(item: rlp.Decoded, name: str) -> int:
    if not isinstance(item, bytes):
        raise CodecError(f"transaction field {name} must be a byte string")
    return rlp.bytes_to_int(item)


def decode_raw_transaction(raw: str | bytes) -> DecodedTransaction:
    fields = rlp.decode(hex_to_bytes(raw))
    if not isinstance(fields, list) or len(fields) != 9:
        raise CodecError("legacy transaction must be an RLP list of 9 fields")

    to_raw = fields[3]
    if not isinstance(to_raw, bytes) or len(to_raw) not in (0, 20):
        raise CodecError("transaction recipient must be empty or 20 bytes")
    data = fields[5]
    if not isinstance(data, bytes):
        raise CodecError("transaction data must be a byte string")

    v = _as_int(fields[6], "v")
    if v < EIP155_V_OFFSET:
        raise CodecError(f"transaction is not EIP-155 replay protected (v={v})")

    tx = LegacyTransaction(
        nonce=_as_int(fields[0], "nonce"),
        gas_price=_as_int(fields[1], "gasPrice"),
        gas=_as_int(fields[2], "gas"),
        to=to_checksum_address(to_raw) if to_raw else None,
        value=_as_int(fields[4], "value"),
        data=data,
        chain_id=(v - EIP155_V_OFFSET) // 2,
    )
    return DecodedTransaction(
        transaction=tx,
        v=v,
        r=_as_int(fields[7], "r"),
        s=_as_int(fields[8], "s"),
    )


def recover_sender(raw: str | bytes) -> str:
    decoded = decode_raw_transaction(raw)
    signature = RawSignature(recovery_id=decoded.recovery_id, r=decoded.r, s=decoded.s)
    return recover_address_from_digest(decoded.transaction.signing_hash(), signature)
