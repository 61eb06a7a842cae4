from __future__ import annotations

import json
from typing import Any

from arbitrai_protocol import DisputeRecord, DisputeStatus, EscrowRecord, Evidence, content_hash
from eth_utils import to_checksum_address

DISPUTE_ID = "0x" + "d1" * 32
PARTY_A = to_checksum_address("0x" + "a1" * 20)
PARTY_B = to_checksum_address("0x" + "b2" * 20)

EVIDENCE_A = "Invoice #42 was paid on 2024-03-01. The delivered logo files were corrupted and unusable."
EVIDENCE_B = "The logo files were delivered on 2024-02-28 and the client confirmed receipt by email."

MODEL_IDS = ("claude-opus-4-6", "gpt-4o", "mistral-large-2411")

def verdict_json(verdict: str, confidence: float = 90, reasoning: str = "The evidence supports this.") -> str:
    return json.dumps({"verdict": verdict, "confidence": confidence, "reasoning": reasoning})

def make_dispute(**overrides: Any) -> DisputeRecord:
    fields: dict[str, Any] = {
        "id": DISPUTE_ID,
        "party_a": PARTY_A,
        "party_b": PARTY_B,
        "amount": 10**18,
        "status": DisputeStatus.IN_ARBITRATION,
        "evidence_hash_a": content_hash(EVIDENCE_A),
        "evidence_hash_b": content_hash(EVIDENCE_B),
        "created_at": 1_700_000_000,
        "description": "Logo design delivered late and corrupted",
    }
    fields.update(overrides)
    return DisputeRecord(**fields)

def make_escrow(*, settled: bool = False) -> EscrowRecord:
    return EscrowRecord(
        party_a=PARTY_A,
        party_b=PARTY_B,
        deposit_a=10**18,
        deposit_b=10**18,
        party_a_deposited=True,
        party_b_deposited=True,
        settled=settled,
    )

class FakeReader:
    def __init__(self, dispute: DisputeRecord, escrow: EscrowRecord | None = None) -> None:
        self.dispute = dispute
        self.escrow = escrow
        self.calls: list[str] = []

    async def get_dispute(self, dispute_id: str) -> DisputeRecord:
        self.calls.append(f"getDispute:{dispute_id}")
        return self.dispute

    async def get_escrow(self, dispute_id: str) -> EscrowRecord | None:
        self.calls.append(f"getEscrow:{dispute_id}")
        return self.escrow

class StaticEvidence:
    def __init__(self, content_a: str = EVIDENCE_A, content_b: str = EVIDENCE_B) -> None:
        self.contents = {"A": content_a, "B": content_b}
        self.calls = 0

    async def fetch_both(self, dispute: DisputeRecord) -> tuple[Evidence, Evidence]:
        self.calls += 1
        return tuple(  # type: ignore[return-value]
            Evidence(
                party_address=address,
                label=label,
                content=self.contents[label],
                submitted_at=1_700_000_100,
                content_hash=content_hash(self.contents[label]),
            )
            for label, address in (("A", dispute.party_a), ("B", dispute.party_b))
        )

class FakeArbitrator:
    """Replays queued answers; an ``Exception`` instance is raised instead of returned."""

    def __init__(self, model_id: str, *answers: str | Exception) -> None:
        self.model_id = model_id
        self.answers = list(answers)
        self.prompts: list[tuple[str, str]] = []

    @property
    def calls(self) -> int:
        return len(self.prompts)

    async def complete(self, system: str, user: str) -> str:
        self.prompts.append((system, user))
        answer = self.answers.pop(0) if len(self.answers) > 1 else self.answers[0]
        if isinstance(answer, Exception):
            raise answer
        return answer

def make_panel(*answers: str | Exception) -> list[FakeArbitrator]:
    return [FakeArbitrator(model_id, answer) for model_id, answer in zip(MODEL_IDS, answers)]
