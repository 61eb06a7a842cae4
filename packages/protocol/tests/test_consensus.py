import itertools

import pytest
from arbitrai_protocol import ParsedModelVerdict, VerdictOutcome, apply_consensus, simulate_what_if
from arbitrai_protocol.consensus import mean_pct_to_bps

A = VerdictOutcome.FAVOR_PARTY_A
B = VerdictOutcome.FAVOR_PARTY_B
IE = VerdictOutcome.INSUFFICIENT_EVIDENCE
CB = VerdictOutcome.CIRCUIT_BREAKER
MODELS = ("claude-opus-4-6", "gpt-4o", "mistral-large-2411")


def _votes(*pairs: tuple[VerdictOutcome, int]) -> list[ParsedModelVerdict]:
    return [
        ParsedModelVerdict(
            model_id=model_id,
            vote=vote,
            confidence_pct=pct,
            reasoning=f"{model_id} reasoning",
            parse_success=vote is not CB,
        )
        for model_id, (vote, pct) in zip(MODELS, pairs)
    ]


def test_unanimous_party_a() -> None:
    result = apply_consensus(_votes((A, 87), (A, 82), (A, 76)))
    assert result.final_outcome is A
    assert result.consensus_count == 3
    assert result.aggregate_confidence_bps == 8167
    assert "Unanimous" in result.reasoning
    assert result.reasoning.endswith("Aggregate confidence: 81.7%")


def test_two_of_three_party_b() -> None:
    result = apply_consensus(_votes((B, 80), (B, 70), (A, 65)))
    assert result.final_outcome is B
    assert result.consensus_count == 2
    assert result.aggregate_confidence_bps == 7500
    assert result.reasoning == (
        "Consensus: 2/3 models voted FAVOR_PARTY_B"
        " | Agreeing: claude-opus-4-6 (80%), gpt-4o (70%)"
        " | Dissenting: mistral-large-2411→FAVOR_PARTY_A (65%)"
        " | Aggregate confidence: 75.0%"
    )


def test_total_disagreement() -> None:
    result = apply_consensus(_votes((A, 60), (B, 60), (IE, 60)))
    assert result.final_outcome is VerdictOutcome.NO_CONSENSUS
    assert result.consensus_count == 1
    assert result.aggregate_confidence_bps == 0
    assert result.reasoning.startswith("No consensus: claude-opus-4-6→FAVOR_PARTY_A")
    assert "Threshold: 2/3" in result.reasoning


def test_single_failure_overrides_majority() -> None:
    result = apply_consensus(_votes((A, 90), (A, 85), (CB, 0)))
    assert result.final_outcome is CB
    assert result.consensus_count == 1
    assert result.aggregate_confidence_bps == 0
    assert result.reasoning == (
        "Circuit breaker: mistral-large-2411 failed to return a valid verdict. Funds refunded for safety."
    )


def test_vote_counts_cover_every_outcome() -> None:
    result = apply_consensus(_votes((B, 80), (B, 70), (A, 65)))
    assert result.vote_counts == {
        A: 1,
        B: 2,
        IE: 0,
        VerdictOutcome.NO_CONSENSUS: 0,
        CB: 0,
    }


def test_consensus_properties_over_all_triples() -> None:
    confidences = (91, 64, 37)
    for combo in itertools.product((A, B, IE, CB), repeat=3):
        votes = _votes(*zip(combo, confidences))
        result = apply_consensus(votes)
        failed = combo.count(CB)
        if failed:
            assert result.final_outcome is CB
            assert result.consensus_count == failed
            assert result.aggregate_confidence_bps == 0
            continue
        majority = [o for o in (A, B, IE) if combo.count(o) >= 2]
        if majority:
            outcome = majority[0]
            agreeing = [pct for vote, pct in zip(combo, confidences) if vote is outcome]
            assert result.final_outcome is outcome
            assert result.consensus_count == len(agreeing)
            assert result.aggregate_confidence_bps == mean_pct_to_bps(agreeing)
        else:
            assert result.final_outcome is VerdictOutcome.NO_CONSENSUS
            assert result.aggregate_confidence_bps == 0


def test_mean_rounds_half_up_in_integers() -> None:
    assert mean_pct_to_bps([87, 82, 76]) == 8167
    assert mean_pct_to_bps([1, 0, 0]) == 33
    assert mean_pct_to_bps([1, 1, 0]) == 67
    assert mean_pct_to_bps([100, 100]) == 10_000
    assert mean_pct_to_bps([]) == 0


def test_requires_exactly_three_votes() -> None:
    with pytest.raises(ValueError):
        apply_consensus(_votes((A, 90), (A, 90)))


def test_input_is_not_mutated() -> None:
    votes = _votes((A, 90), (B, 85), (A, 70))
    snapshot = [v.model_dump() for v in votes]

    apply_consensus(votes)
    flipped = simulate_what_if(votes, 1, A)

    assert [v.model_dump() for v in votes] == snapshot
    assert flipped.final_outcome is A
    assert flipped.consensus_count == 3


def test_what_if_can_break_consensus() -> None:
    votes = _votes((A, 90), (A, 85), (B, 70))
    assert simulate_what_if(votes, 0, IE).final_outcome is VerdictOutcome.NO_CONSENSUS
    assert simulate_what_if(votes, 2, CB).final_outcome is CB
    with pytest.raises(IndexError):
        simulate_what_if(votes, 3, A)
