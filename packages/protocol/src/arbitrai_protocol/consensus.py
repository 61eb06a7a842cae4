"""2-of-3 consensus over the arbitrator panel.

Rules, in order:

1. Any CIRCUIT_BREAKER vote wins outright; its count is the number of failed
   arbitrators and the aggregate confidence is zero.
2. FAVOR_PARTY_A, FAVOR_PARTY_B, INSUFFICIENT_EVIDENCE are checked in that
   order; the first with at least ``CONSENSUS_THRESHOLD`` votes wins and the
   agreeing confidences are averaged into basis points.
3. Otherwise NO_CONSENSUS with a count of one and zero confidence.

Everything here is integer arithmetic; the result is committed on-chain.
"""

from __future__ import annotations

from collections.abc import Sequence

from .types import ARBITRATOR_OUTCOMES, ConsensusResult, ParsedModelVerdict, VerdictOutcome

CONSENSUS_THRESHOLD = 2
PANEL_SIZE = 3


def mean_pct_to_bps(confidences: Sequence[int]) -> int:
    """Mean of whole-percent confidences in basis points, rounded half up."""
    if not confidences:
        return 0
    total = sum(confidences) * 100
    count = len(confidences)
    return (2 * total + count) // (2 * count)


def format_bps(bps: int) -> str:
    tenths = (bps + 5) // 10
    return f"{tenths // 10}.{tenths % 10}%"


def _tally(votes: Sequence[ParsedModelVerdict]) -> dict[VerdictOutcome, int]:
    counts = {outcome: 0 for outcome in VerdictOutcome}
    for vote in votes:
        counts[vote.vote] += 1
    return counts


def apply_consensus(votes: Sequence[ParsedModelVerdict]) -> ConsensusResult:
    if len(votes) != PANEL_SIZE:
        raise ValueError(f"expected exactly {PANEL_SIZE} votes, got {len(votes)}")

    counts = _tally(votes)

    failed = counts[VerdictOutcome.CIRCUIT_BREAKER]
    if failed:
        failed_models = ", ".join(v.model_id for v in votes if v.vote is VerdictOutcome.CIRCUIT_BREAKER)
        return ConsensusResult(
            final_outcome=VerdictOutcome.CIRCUIT_BREAKER,
            consensus_count=failed,
            aggregate_confidence_bps=0,
            vote_counts=counts,
            reasoning=(
                f"Circuit breaker: {failed_models} failed to return a valid verdict. "
                "Funds refunded for safety."
            ),
        )

    for outcome in ARBITRATOR_OUTCOMES:
        count = counts[outcome]
        if count < CONSENSUS_THRESHOLD:
            continue
        agreeing = [v for v in votes if v.vote is outcome]
        dissenting = [v for v in votes if v.vote is not outcome]
        bps = mean_pct_to_bps([v.confidence_pct for v in agreeing])

        parts = [
            f"Consensus: {count}/{PANEL_SIZE} models voted {outcome.value}",
            "Agreeing: " + ", ".join(f"{v.model_id} ({v.confidence_pct}%)" for v in agreeing),
        ]
        if dissenting:
            parts.append(
                "Dissenting: "
                + ", ".join(f"{v.model_id}→{v.vote.value} ({v.confidence_pct}%)" for v in dissenting)
            )
        else:
            parts.append("Unanimous")
        parts.append(f"Aggregate confidence: {format_bps(bps)}")

        return ConsensusResult(
            final_outcome=outcome,
            consensus_count=count,
            aggregate_confidence_bps=bps,
            vote_counts=counts,
            reasoning=" | ".join(parts),
        )

    breakdown = ", ".join(f"{v.model_id}→{v.vote.value}" for v in votes)
    return ConsensusResult(
        final_outcome=VerdictOutcome.NO_CONSENSUS,
        consensus_count=1,
        aggregate_confidence_bps=0,
        vote_counts=counts,
        reasoning=(
            f"No consensus: {breakdown}. Threshold: {CONSENSUS_THRESHOLD}/{PANEL_SIZE}. "
            "Funds returned to both parties."
        ),
    )


def simulate_what_if(
    votes: Sequence[ParsedModelVerdict],
    model_index: int,
    hypothetical_vote: VerdictOutcome,
) -> ConsensusResult:
    """Re-run consensus with one arbitrator's vote swapped. ``votes`` is left untouched."""
    if not 0 <= model_index < len(votes):
        raise IndexError(f"model_index {model_index} out of range for {len(votes)} votes")
    modified = list(votes)
    modified[model_index] = votes[model_index].model_copy(update={"vote": VerdictOutcome(hypothetical_vote)})
    return apply_consensus(modified)
