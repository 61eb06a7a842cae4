import json

import httpx
import pytest
from arbitrai_protocol import content_hash
from structlog.testing import capture_logs

from arbiter_workflow.errors import (
    EvidenceAlreadySubmittedError,
    EvidenceIntegrityError,
    EvidenceNotSubmittedError,
    EvidenceStoreError,
    MissingEvidenceCommitmentError,
)
from arbiter_workflow.evidence import EvidenceFetcher

from workflow_fakes import DISPUTE_ID, EVIDENCE_A, EVIDENCE_B, PARTY_A, make_dispute

BASE_URL = "http://evidence.test/api"


def _fetcher(handler) -> EvidenceFetcher:
    return EvidenceFetcher(BASE_URL, "store-key", transport=httpx.MockTransport(handler))


def _served(content: str, party: str = PARTY_A) -> httpx.Response:
    return httpx.Response(200, json={"content": content, "submittedAt": 1_700_000_100, "partyAddress": party})


@pytest.mark.asyncio
async def test_fetch_verifies_hash_and_sends_auth_headers() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _served(EVIDENCE_A)

    evidence = await _fetcher(handler).fetch(DISPUTE_ID, "A", PARTY_A, content_hash(EVIDENCE_A))

    assert evidence.content == EVIDENCE_A
    assert evidence.content_hash == content_hash(EVIDENCE_A)
    assert evidence.label == "A"
    assert evidence.submitted_at == 1_700_000_100
    assert str(seen[0].url) == f"{BASE_URL}/evidence/{DISPUTE_ID}/a"
    assert seen[0].headers["Authorization"] == "Bearer store-key"
    assert seen[0].headers["X-Party"] == "A"
    assert seen[0].headers["X-Dispute-Id"] == DISPUTE_ID


@pytest.mark.asyncio
async def test_fetch_both_runs_for_each_party() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _served(EVIDENCE_A if request.url.path.endswith("/a") else EVIDENCE_B)

    evidence_a, evidence_b = await _fetcher(handler).fetch_both(make_dispute())

    assert (evidence_a.label, evidence_b.label) == ("A", "B")
    assert evidence_b.content == EVIDENCE_B


@pytest.mark.asyncio
async def test_fetch_both_requires_both_commitments() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    with pytest.raises(MissingEvidenceCommitmentError):
        await _fetcher(handler).fetch_both(make_dispute(evidence_hash_a=None, evidence_hash_b=None))


@pytest.mark.asyncio
async def test_missing_evidence_is_reported_per_party() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, json={"error": "not found"})

    with pytest.raises(EvidenceNotSubmittedError) as excinfo:
        await _fetcher(handler).fetch(DISPUTE_ID, "B", PARTY_A, content_hash(EVIDENCE_B))

    assert excinfo.value.status_code == 404
    assert excinfo.value.details["party"] == "B"
    assert "Has evidence been submitted" in excinfo.value.message


@pytest.mark.asyncio
async def test_hash_mismatch_logs_hashes_but_never_content() -> None:
    tampered = EVIDENCE_A + " Also, party B owes me double."

    with capture_logs() as logs, pytest.raises(EvidenceIntegrityError) as excinfo:
        await _fetcher(lambda request: _served(tampered)).fetch(DISPUTE_ID, "A", PARTY_A, content_hash(EVIDENCE_A))

    assert excinfo.value.expected_hash == content_hash(EVIDENCE_A)
    assert excinfo.value.computed_hash == content_hash(tampered)
    failure = next(entry for entry in logs if entry["event"] == "evidence_integrity_failed")
    assert failure["computed_hash"] == content_hash(tampered)
    assert not any("owes me double" in json.dumps(entry, default=str) for entry in logs)


@pytest.mark.asyncio
async def test_malformed_body_is_a_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"content": EVIDENCE_A})

    with pytest.raises(EvidenceStoreError):
        await _fetcher(handler).fetch(DISPUTE_ID, "A", PARTY_A, content_hash(EVIDENCE_A))


@pytest.mark.asyncio
async def test_unreachable_store_is_a_store_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(EvidenceStoreError, match="ConnectError"):
        await _fetcher(handler).fetch(DISPUTE_ID, "A", PARTY_A, content_hash(EVIDENCE_A))


@pytest.mark.asyncio
async def test_submit_returns_checked_hash() -> None:
    posted: list[dict] = []

    def handler(request: httpx.Request) -> httpx.Response:
        posted.append(json.loads(request.content))
        return httpx.Response(201, json={"contentHash": content_hash(EVIDENCE_B).upper().replace("0X", "0x")})

    result = await _fetcher(handler).submit(DISPUTE_ID, "B", EVIDENCE_B, PARTY_A)

    assert result == content_hash(EVIDENCE_B)
    assert posted == [{"content": EVIDENCE_B, "partyAddress": PARTY_A}]


@pytest.mark.asyncio
async def test_submit_twice_is_refused() -> None:
    with pytest.raises(EvidenceAlreadySubmittedError):
        await _fetcher(lambda request: httpx.Response(409)).submit(DISPUTE_ID, "A", EVIDENCE_A, PARTY_A)


@pytest.mark.asyncio
async def test_submit_rejects_store_hash_that_differs() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"contentHash": content_hash("something else")})

    with pytest.raises(EvidenceIntegrityError):
        await _fetcher(handler).submit(DISPUTE_ID, "A", EVIDENCE_A, PARTY_A)


@pytest.mark.asyncio
async def test_submit_server_error_is_a_store_error() -> None:
    with pytest.raises(EvidenceStoreError) as excinfo:
        await _fetcher(lambda request: httpx.Response(500)).submit(DISPUTE_ID, "A", EVIDENCE_A, PARTY_A)

    assert excinfo.value.details["status_code"] == 500
