"""Calldata and return-data layouts for the registry, escrow and verifier contracts."""

from __future__ import annotations

from .abi import AbiReader, Dynamic, encode_bytes32, encode_dynamic_bytes, encode_params, hex_to_bytes
from .hashing import ZERO_HASH, function_selector
from .types import DisputeRecord, DisputeStatus, EscrowRecord, WorkflowOutput, WorkflowVerdict
from .verdict import SUBMIT_VERDICT_SIGNATURE, encode_verdict, summarize_verdict

GET_DISPUTE_SIGNATURE = "getDispute(bytes32)"
GET_ESCROW_SIGNATURE = "getEscrow(bytes32)"

DISPUTE_TUPLE_TYPE = (
    "(bytes32,address,address,uint256,uint8,bytes32,bytes32,bytes32,uint256,uint256,address,string)"
)
ESCROW_TUPLE_TYPE = "(address,address,uint256,uint256,bool,bool,bool)"

ZERO_ADDRESS = "0x" + "0" * 40


def _call(signature: str, *words: bytes) -> str:
    return "0x" + (function_selector(signature) + b"".join(words)).hex()


def encode_get_dispute_call(dispute_id: str) -> str:
    return _call(GET_DISPUTE_SIGNATURE, encode_bytes32(dispute_id))


def encode_get_escrow_call(dispute_id: str) -> str:
    return _call(GET_ESCROW_SIGNATURE, encode_bytes32(dispute_id))


def _optional_hash(raw: bytes) -> str | None:
    value = "0x" + raw.hex()
    return None if value == ZERO_HASH else value


def decode_dispute_record(data: str | bytes) -> DisputeRecord:
    """Decode ``getDispute`` return data.

    The struct carries a trailing ``string``, which makes the whole tuple
    dynamic: word 0 is the offset of the tuple body. Zero hashes and the zero
    winner address decode to ``None``.
    """
    body = AbiReader(hex_to_bytes(data)).tuple_at(0)
    winner = body.address(10)
    return DisputeRecord(
        id="0x" + body.bytes32(0).hex(),
        party_a=body.address(1),
        party_b=body.address(2),
        amount=body.uint(3),
        status=DisputeStatus(body.uint(4, 8)),
        evidence_hash_a=_optional_hash(body.bytes32(5)),
        evidence_hash_b=_optional_hash(body.bytes32(6)),
        workflow_output_hash=_optional_hash(body.bytes32(7)),
        created_at=body.uint(8),
        settled_at=body.uint(9),
        winner=None if winner.lower() == ZERO_ADDRESS else winner,
        description=body.string(11),
    )


def decode_escrow_record(data: str | bytes) -> EscrowRecord:
    reader = AbiReader(hex_to_bytes(data))
    return EscrowRecord(
        party_a=reader.address(0),
        party_b=reader.address(1),
        deposit_a=reader.uint(2),
        deposit_b=reader.uint(3),
        party_a_deposited=reader.boolean(4),
        party_b_deposited=reader.boolean(5),
        settled=reader.boolean(6),
    )


def encode_submit_verdict_calldata(verdict: WorkflowVerdict, signature: str | bytes) -> str:
    """``submitVerdict(verdict, signature)``: the static tuple inline, then the bytes tail."""
    args = encode_params(
        [
            encode_verdict(verdict),
            Dynamic(encode_dynamic_bytes(hex_to_bytes(signature))),
        ]
    )
    return "0x" + (function_selector(SUBMIT_VERDICT_SIGNATURE) + args).hex()


def build_workflow_output(verdict: WorkflowVerdict, signature: str) -> WorkflowOutput:
    return WorkflowOutput(
        dispute_id=verdict.dispute_id,
        calldata=encode_submit_verdict_calldata(verdict, signature),
        verdict_summary=summarize_verdict(verdict),
        signature=signature,
    )
