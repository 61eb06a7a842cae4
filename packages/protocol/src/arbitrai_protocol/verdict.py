from __future__ import annotations

import time
import uuid
from collections.abc import Sequence

from eth_utils import keccak, to_hex

from .abi import encode_bytes32, encode_uint
from .hashing import keccak_hex, keccak_text, reasoning_hash
from .signatures import recover_signer_eip191, sign_hash_eip191
from .types import ConsensusResult, ModelVote, ParsedModelVerdict, WorkflowVerdict

# Model ids are committed as keccak256(modelId) so every vote is four static words.
MODEL_VOTE_TUPLE_TYPE = "(bytes32,uint8,uint16,bytes32)"
VERDICT_TUPLE_TYPE = (
    f"(bytes32,uint8,{MODEL_VOTE_TUPLE_TYPE}[3],uint8,bytes32,bytes32,uint256,bytes32)"
)
SUBMIT_VERDICT_SIGNATURE = f"submitVerdict({VERDICT_TUPLE_TYPE},bytes)"


def build_model_vote(parsed: ParsedModelVerdict) -> ModelVote:
    return ModelVote(
        model_id=parsed.model_id,
        vote=parsed.vote,
        confidence_bps=parsed.confidence_pct * 100,
        reasoning_hash=reasoning_hash(parsed.reasoning),
    )


def new_workflow_run_id(dispute_id: str, *, now_ns: int | None = None) -> str:
    """Unique per run; not derivable from the dispute alone."""
    stamp = time.time_ns() if now_ns is None else now_ns
    return keccak_hex(f"{dispute_id}:{stamp}:{uuid.uuid4().hex}".encode("utf-8"))


def build_workflow_verdict(
    *,
    dispute_id: str,
    consensus: ConsensusResult,
    votes: Sequence[ParsedModelVerdict],
    evidence_hash_a: str,
    evidence_hash_b: str,
    executed_at: int,
    workflow_run_id: str,
) -> WorkflowVerdict:
    return WorkflowVerdict(
        dispute_id=dispute_id,
        final_outcome=consensus.final_outcome,
        model_votes=tuple(build_model_vote(v) for v in votes),
        consensus_count=consensus.consensus_count,
        evidence_hash_a=evidence_hash_a,
        evidence_hash_b=evidence_hash_b,
        executed_at=executed_at,
        workflow_run_id=workflow_run_id,
    )


def _vote_words(vote: ModelVote) -> list[bytes]:
    return [
        keccak_text(vote.model_id),
        encode_uint(vote.vote.index, 8),
        encode_uint(vote.confidence_bps, 16),
        encode_bytes32(vote.reasoning_hash),
    ]


def encode_verdict(verdict: WorkflowVerdict) -> bytes:
    """abi.encode of the verdict struct; every member is static, so 19 words flat."""
    words = [
        encode_bytes32(verdict.dispute_id),
        encode_uint(verdict.final_outcome.index, 8),
    ]
    for vote in verdict.model_votes:
        words.extend(_vote_words(vote))
    words.extend(
        [
            encode_uint(verdict.consensus_count, 8),
            encode_bytes32(verdict.evidence_hash_a),
            encode_bytes32(verdict.evidence_hash_b),
            encode_uint(verdict.executed_at),
            encode_bytes32(verdict.workflow_run_id),
        ]
    )
    return b"".join(words)


def compute_verdict_hash(verdict: WorkflowVerdict) -> bytes:
    return keccak(encode_verdict(verdict))


def compute_verdict_hash_hex(verdict: WorkflowVerdict) -> str:
    return to_hex(compute_verdict_hash(verdict))


def sign_verdict(verdict: WorkflowVerdict, private_key: str | bytes) -> str:
    return sign_hash_eip191(private_key, compute_verdict_hash_hex(verdict))


def recover_verdict_signer(verdict: WorkflowVerdict, signature: str) -> str:
    return recover_signer_eip191(compute_verdict_hash_hex(verdict), signature)


def summarize_verdict(verdict: WorkflowVerdict) -> str:
    models = ", ".join(
        f"{v.model_id}→{v.vote.value}({(v.confidence_bps + 50) // 100}%)" for v in verdict.model_votes
    )
    return " | ".join(
        [
            f"Dispute: {verdict.dispute_id[:10]}...",
            f"Outcome: {verdict.final_outcome.value}",
            f"Consensus: {verdict.consensus_count}/3",
            f"Models: {models}",
            f"RunId: {verdict.workflow_run_id[:10]}...",
        ]
    )
