"""Orchestrator for one arbitration run.

FETCH_DISPUTE -> VALIDATE_STATUS -> FETCH_EVIDENCE -> QUERY_MODELS -> CONSENSUS
-> SIGN -> EMIT_OUTPUT [-> BROADCAST]

The run either reaches EMIT_OUTPUT with a terminal verdict or raises an
``ArbitrationError``; nothing is persisted for a failed run.
"""

from __future__ import annotations

import inspect
import time
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from arbitrai_protocol import (
    ArbitrationPrompt,
    ConsensusResult,
    DisputeStatus,
    ParsedModelVerdict,
    VerdictOutcome,
    WorkflowOutput,
    WorkflowVerdict,
    apply_consensus,
    build_workflow_output,
    build_workflow_verdict,
    new_workflow_run_id,
    private_key_to_address,
    sign_verdict,
)
from arbitrai_protocol.hashing import normalize_hash

from .arbitrators import Arbitrator
from .chain import DisputeReader, VerdictSubmitter
from .errors import ArbitrationError, DisputeStateError, MissingEvidenceCommitmentError
from .evidence import EvidenceFetcher
from .observability import get_logger
from .panel import query_panel
from .storage import VerdictStorage

logger = get_logger(__name__)

OutputSink = Callable[[WorkflowOutput], Awaitable[None] | None]


class WorkflowStage(str, Enum):
    FETCH_DISPUTE = "FETCH_DISPUTE"
    VALIDATE_STATUS = "VALIDATE_STATUS"
    FETCH_EVIDENCE = "FETCH_EVIDENCE"
    QUERY_MODELS = "QUERY_MODELS"
    CONSENSUS = "CONSENSUS"
    SIGN = "SIGN"
    EMIT_OUTPUT = "EMIT_OUTPUT"
    BROADCAST = "BROADCAST"


@dataclass(slots=True)
class WorkflowResult:
    output: WorkflowOutput
    verdict: WorkflowVerdict
    consensus: ConsensusResult
    votes: list[ParsedModelVerdict]
    tx_hash: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.output.model_dump(by_alias=True, mode="json"),
            "finalOutcome": self.consensus.final_outcome.value,
            "consensusCount": self.consensus.consensus_count,
            "aggregateConfidenceBps": self.consensus.aggregate_confidence_bps,
            "consensusReasoning": self.consensus.reasoning,
            "votes": [v.model_dump(by_alias=True, mode="json") for v in self.votes],
            "workflowRunId": self.verdict.workflow_run_id,
            "executedAt": self.verdict.executed_at,
            "txHash": self.tx_hash,
        }


@dataclass(slots=True)
class PendingRunReport:
    processed: list[WorkflowResult] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    deferred: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "processed": [r.to_dict() for r in self.processed],
            "failed": dict(self.failed),
            "deferred": list(self.deferred),
            "skipped": list(self.skipped),
        }


class ArbitrationWorkflow:
    def __init__(
        self,
        *,
        reader: DisputeReader,
        evidence: EvidenceFetcher,
        arbitrators: Sequence[Arbitrator],
        operator_private_key: str,
        submitter: VerdictSubmitter | None = None,
        storage: VerdictStorage | None = None,
        sink: OutputSink | None = None,
        model_retry_attempts: int = 0,
        max_disputes_per_run: int = 1,
        clock: Callable[[], float] = time.time,
        run_id_factory: Callable[[str], str] = new_workflow_run_id,
    ) -> None:
        if len(arbitrators) != 3:
            raise ValueError(f"the arbitrator panel needs exactly 3 members, got {len(arbitrators)}")
        self.reader = reader
        self.evidence = evidence
        self.arbitrators = list(arbitrators)
        self._operator_key = operator_private_key
        self.operator_address = private_key_to_address(operator_private_key)
        self.submitter = submitter
        self.storage = storage
        self.sink = sink
        self.model_retry_attempts = max(0, model_retry_attempts)
        self.max_disputes_per_run = max(1, max_disputes_per_run)
        self.clock = clock
        self.run_id_factory = run_id_factory

    @staticmethod
    def _stage(log: Any, stage: WorkflowStage) -> None:
        log.info("workflow_stage", stage=stage.value)

    async def resolve(self, dispute_id: str) -> WorkflowResult:
        dispute_id = normalize_hash(dispute_id)
        log = logger.bind(dispute_id=dispute_id)

        self._stage(log, WorkflowStage.FETCH_DISPUTE)
        dispute = await self.reader.get_dispute(dispute_id)

        self._stage(log, WorkflowStage.VALIDATE_STATUS)
        if dispute.status is not DisputeStatus.IN_ARBITRATION:
            raise DisputeStateError(dispute_id, f"status is {dispute.status.name}")
        missing = [
            label
            for label, commitment in (("A", dispute.evidence_hash_a), ("B", dispute.evidence_hash_b))
            if commitment is None
        ]
        if missing:
            raise MissingEvidenceCommitmentError(dispute_id, missing)
        escrow = await self.reader.get_escrow(dispute_id)
        if escrow is not None and escrow.settled:
            raise DisputeStateError(dispute_id, "escrow is already settled")

        self._stage(log, WorkflowStage.FETCH_EVIDENCE)
        evidence_a, evidence_b = await self.evidence.fetch_both(dispute)
        prompt = ArbitrationPrompt(
            dispute_id=dispute_id,
            description=dispute.description,
            party_a_address=dispute.party_a,
            party_b_address=dispute.party_b,
            evidence_a=evidence_a.content,
            evidence_b=evidence_b.content,
        )

        self._stage(log, WorkflowStage.QUERY_MODELS)
        votes = await query_panel(self.arbitrators, prompt)
        votes = await self._requery_failed(prompt, votes, log)

        self._stage(log, WorkflowStage.CONSENSUS)
        consensus = apply_consensus(votes)
        log.info(
            "consensus_reached",
            outcome=consensus.final_outcome.value,
            consensus_count=consensus.consensus_count,
            aggregate_confidence_bps=consensus.aggregate_confidence_bps,
            reasoning=consensus.reasoning,
        )

        self._stage(log, WorkflowStage.SIGN)
        verdict = build_workflow_verdict(
            dispute_id=dispute_id,
            consensus=consensus,
            votes=votes,
            evidence_hash_a=evidence_a.content_hash,
            evidence_hash_b=evidence_b.content_hash,
            executed_at=int(self.clock()),
            workflow_run_id=self.run_id_factory(dispute_id),
        )
        signature = sign_verdict(verdict, self._operator_key)

        self._stage(log, WorkflowStage.EMIT_OUTPUT)
        output = build_workflow_output(verdict, signature)
        if self.sink is not None:
            emitted = self.sink(output)
            if inspect.isawaitable(emitted):
                await emitted

        tx_hash = None
        if self.submitter is not None:
            self._stage(log, WorkflowStage.BROADCAST)
            tx_hash = (await self.submitter.submit(output)).tx_hash

        if self.storage is not None:
            self.storage.store_result(
                verdict=verdict,
                consensus=consensus,
                output=output,
                reasonings={
                    mv.reasoning_hash: (v.model_id, v.reasoning) for mv, v in zip(verdict.model_votes, votes)
                },
                tx_hash=tx_hash,
            )

        log.info(
            "workflow_complete",
            outcome=verdict.final_outcome.value,
            workflow_run_id=verdict.workflow_run_id,
            tx_hash=tx_hash,
        )
        return WorkflowResult(output=output, verdict=verdict, consensus=consensus, votes=votes, tx_hash=tx_hash)

    async def _requery_failed(
        self,
        prompt: ArbitrationPrompt,
        votes: list[ParsedModelVerdict],
        log: Any,
    ) -> list[ParsedModelVerdict]:
        """Re-ask only the arbitrators that produced CIRCUIT_BREAKER, keeping their slot."""
        for attempt in range(1, self.model_retry_attempts + 1):
            failed = [i for i, v in enumerate(votes) if v.vote is VerdictOutcome.CIRCUIT_BREAKER]
            if not failed:
                break
            log.info("model_retry", attempt=attempt, models=[self.arbitrators[i].model_id for i in failed])
            retried = await query_panel([self.arbitrators[i] for i in failed], prompt)
            votes = list(votes)
            for index, vote in zip(failed, retried):
                votes[index] = vote
        return votes

    async def resolve_pending(self, dispute_ids: Sequence[str]) -> PendingRunReport:
        """Independent sequential runs for up to ``max_disputes_per_run`` ids; the rest are deferred.

        Ids that already have a stored verdict are skipped and do not count
        against the per-run limit.
        """
        report = PendingRunReport()
        pending: list[str] = []
        for dispute_id in dict.fromkeys(dispute_ids):
            if self.storage is not None and self.storage.is_processed(dispute_id):
                report.skipped.append(dispute_id)
            else:
                pending.append(dispute_id)
        if report.skipped:
            logger.info("disputes_skipped", count=len(report.skipped), dispute_ids=report.skipped)

        batch = pending[: self.max_disputes_per_run]
        report.deferred = pending[self.max_disputes_per_run :]

        for dispute_id in batch:
            try:
                report.processed.append(await self.resolve(dispute_id))
            except (ArbitrationError, ValueError) as exc:
                logger.error(
                    "workflow_failed",
                    dispute_id=dispute_id,
                    error=exc.__class__.__name__,
                    message=str(exc),
                )
                report.failed[dispute_id] = str(exc)

        if report.deferred:
            logger.info("disputes_deferred", count=len(report.deferred), dispute_ids=report.deferred)
        return report
