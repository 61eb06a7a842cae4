import pytest
from arbitrai_protocol import LegacyTransaction, decode_raw_transaction, recover_sender, sign_transaction
from arbitrai_protocol import rlp
from arbitrai_protocol.abi import CodecError
from arbitrai_protocol.transactions import eip155_v
from eth_account import Account
from eth_utils import to_checksum_address

VERIFIER = to_checksum_address("0x" + "5e" * 20)
SEPOLIA = 11155111


def _tx(**overrides) -> LegacyTransaction:
    fields = {
        "nonce": 7,
        "gas_price": 1_200_000_000,
        "gas": 500_000,
        "to": VERIFIER,
        "chain_id": SEPOLIA,
        "data": bytes.fromhex("deadbeef") + b"\x00" * 64,
    }
    fields.update(overrides)
    return LegacyTransaction(**fields)


def test_raw_transaction_matches_reference_signer() -> None:
    operator = Account.create()
    tx = _tx()

    ours = sign_transaction(tx, operator.key)
    reference = Account.sign_transaction(
        {
            "nonce": tx.nonce,
            "gasPrice": tx.gas_price,
            "gas": tx.gas,
            "to": tx.to,
            "value": 0,
            "data": "0x" + tx.data.hex(),
            "chainId": SEPOLIA,
        },
        operator.key,
    )

    assert ours.raw_transaction == bytes(reference.raw_transaction)
    assert ours.tx_hash == "0x" + bytes(reference.hash).hex()


def test_v_carries_chain_id() -> None:
    assert eip155_v(0, 1) == 37
    assert eip155_v(1, SEPOLIA) == SEPOLIA * 2 + 36
    signed = sign_transaction(_tx(), Account.create().key)
    assert signed.v in (SEPOLIA * 2 + 35, SEPOLIA * 2 + 36)


def test_decode_and_recover_sender() -> None:
    operator = Account.create()
    tx = _tx(nonce=0, data=b"")
    signed = sign_transaction(tx, operator.key)

    decoded = decode_raw_transaction(signed.raw_hex)

    assert decoded.transaction == tx
    assert decoded.v == signed.v
    assert recover_sender(signed.raw_transaction) == operator.address


def test_signing_hash_depends_on_chain_id() -> None:
    assert _tx().signing_hash() != _tx(chain_id=1).signing_hash()


def test_decode_rejects_unprotected_and_malformed() -> None:
    unprotected = rlp.encode([0, 1, 21000, bytes.fromhex("5e" * 20), 0, b"", 27, 1, 1])
    with pytest.raises(CodecError):
        decode_raw_transaction(unprotected)
    with pytest.raises(CodecError):
        decode_raw_transaction(rlp.encode([0, 1, 2]))
    with pytest.raises(CodecError):
        sign_transaction(_tx(to="0x1234"), Account.create().key)
