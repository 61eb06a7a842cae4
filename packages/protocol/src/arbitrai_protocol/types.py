from __future__ import annotations

from enum import Enum, IntEnum
from typing import Annotated, Literal

from eth_utils import to_checksum_address
from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .hashing import normalize_hash

Bytes32Hex = Annotated[str, BeforeValidator(normalize_hash)]
Address = Annotated[str, BeforeValidator(to_checksum_address)]

WIRE_CONFIG = ConfigDict(
    extra="forbid",
    frozen=True,
    populate_by_name=True,
    alias_generator=to_camel,
)


class VerdictOutcome(str, Enum):
    """Member order is the Solidity enum order; ``index`` is the uint8 on-chain."""

    FAVOR_PARTY_A = "FAVOR_PARTY_A"
    FAVOR_PARTY_B = "FAVOR_PARTY_B"
    INSUFFICIENT_EVIDENCE = "INSUFFICIENT_EVIDENCE"
    NO_CONSENSUS = "NO_CONSENSUS"
    CIRCUIT_BREAKER = "CIRCUIT_BREAKER"

    @property
    def index(self) -> int:
        return list(type(self)).index(self)

    @classmethod
    def from_index(cls, index: int) -> VerdictOutcome:
        members = list(cls)
        if not 0 <= index < len(members):
            raise ValueError(f"unknown verdict outcome index: {index}")
        return members[index]


# Outcomes an arbitrator may vote for directly.
ARBITRATOR_OUTCOMES: tuple[VerdictOutcome, ...] = (
    VerdictOutcome.FAVOR_PARTY_A,
    VerdictOutcome.FAVOR_PARTY_B,
    VerdictOutcome.INSUFFICIENT_EVIDENCE,
)


class DisputeStatus(IntEnum):
    NONE = 0
    PENDING = 1
    ACTIVE = 2
    IN_ARBITRATION = 3
    SETTLED = 4
    REFUNDED = 5
    ESCALATED = 6


class DisputeRecord(BaseModel):
    model_config = WIRE_CONFIG

    id: Bytes32Hex
    party_a: Address
    party_b: Address
    amount: int = Field(ge=0)
    status: DisputeStatus
    # None means the party has not committed evidence yet.
    evidence_hash_a: Bytes32Hex | None = None
    evidence_hash_b: Bytes32Hex | None = None
    workflow_output_hash: Bytes32Hex | None = None
    created_at: int = Field(ge=0)
    settled_at: int = Field(default=0, ge=0)
    winner: Address | None = None
    description: str = ""


class EscrowRecord(BaseModel):
    model_config = WIRE_CONFIG

    party_a: Address
    party_b: Address
    deposit_a: int = Field(ge=0)
    deposit_b: int = Field(ge=0)
    party_a_deposited: bool
    party_b_deposited: bool
    settled: bool


class Evidence(BaseModel):
    model_config = WIRE_CONFIG

    party_address: Address
    label: Literal["A", "B"]
    content: str = Field(repr=False)
    submitted_at: int
    content_hash: Bytes32Hex


class ArbitrationPrompt(BaseModel):
    model_config = WIRE_CONFIG

    dispute_id: Bytes32Hex
    description: str
    party_a_address: Address
    party_b_address: Address
    evidence_a: str = Field(repr=False)
    evidence_b: str = Field(repr=False)


class RawModelResponse(BaseModel):
    model_config = WIRE_CONFIG

    model_id: str
    raw_text: str = ""
    duration_ms: int = Field(default=0, ge=0)
    error: str | None = None


class ParsedModelVerdict(BaseModel):
    model_config = WIRE_CONFIG

    model_id: str
    vote: VerdictOutcome
    confidence_pct: int = Field(ge=0, le=100)
    reasoning: str
    parse_success: bool


class ConsensusResult(BaseModel):
    model_config = WIRE_CONFIG

    final_outcome: VerdictOutcome
    consensus_count: int = Field(ge=0, le=3)
    aggregate_confidence_bps: int = Field(ge=0, le=10_000)
    vote_counts: dict[VerdictOutcome, int]
    reasoning: str


class ModelVote(BaseModel):
    model_config = WIRE_CONFIG

    model_id: str
    vote: VerdictOutcome
    confidence_bps: int = Field(ge=0, le=10_000)
    reasoning_hash: Bytes32Hex


class WorkflowVerdict(BaseModel):
    model_config = WIRE_CONFIG

    dispute_id: Bytes32Hex
    final_outcome: VerdictOutcome
    model_votes: tuple[ModelVote, ModelVote, ModelVote]
    consensus_count: int = Field(ge=0, le=3)
    evidence_hash_a: Bytes32Hex
    evidence_hash_b: Bytes32Hex
    executed_at: int = Field(ge=0)
    workflow_run_id: Bytes32Hex


class WorkflowOutput(BaseModel):
    model_config = WIRE_CONFIG

    dispute_id: str
    calldata: str
    verdict_summary: str
    signature: str
