"""Evidence store client.

Party evidence is fetched over an authenticated channel and checked against
the keccak-256 commitment stored on-chain before anything else may see it.
Only content hashes are ever logged.
"""

from __future__ import annotations

import asyncio
from typing import Any, Literal

import httpx
from arbitrai_protocol import DisputeRecord, Evidence, content_hash, validate_schema
from arbitrai_protocol.hashing import normalize_hash
from arbitrai_protocol.schema_validation import EVIDENCE_RECEIPT_SCHEMA, EVIDENCE_RESPONSE_SCHEMA

from .errors import (
    EvidenceAlreadySubmittedError,
    EvidenceIntegrityError,
    EvidenceNotSubmittedError,
    EvidenceStoreError,
    MissingEvidenceCommitmentError,
)
from .observability import get_logger

logger = get_logger(__name__)

PartyLabel = Literal["A", "B"]


class EvidenceFetcher:
    def __init__(
        self,
        base_url: str,
        api_key: str,
        *,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _url(self, dispute_id: str, label: PartyLabel) -> str:
        return f"{self.base_url}/evidence/{dispute_id}/{label.lower()}"

    def _headers(self, dispute_id: str, label: PartyLabel) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "X-Dispute-Id": dispute_id,
            "X-Party": label,
        }

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise EvidenceStoreError(f"evidence store request failed: {exc.__class__.__name__}: {exc}") from exc

    @staticmethod
    def _json(resp: httpx.Response, schema: str, label: PartyLabel) -> dict[str, Any]:
        try:
            body = resp.json()
        except ValueError as exc:
            raise EvidenceStoreError(f"evidence store returned non-JSON body for party {label}") from exc
        errors = validate_schema(schema, body)
        if errors:
            raise EvidenceStoreError(
                f"evidence store response for party {label} is malformed",
                details={"party": label, "errors": errors},
            )
        return body

    async def fetch(
        self,
        dispute_id: str,
        label: PartyLabel,
        party_address: str,
        expected_hash: str,
    ) -> Evidence:
        logger.info("evidence_fetch", dispute_id=dispute_id, party=label)
        resp = await self._request("GET", self._url(dispute_id, label), headers=self._headers(dispute_id, label))
        if resp.status_code != 200:
            raise EvidenceNotSubmittedError(dispute_id, label, resp.status_code)

        body = self._json(resp, EVIDENCE_RESPONSE_SCHEMA, label)
        computed = content_hash(body["content"])
        expected = normalize_hash(expected_hash)
        if computed != expected:
            logger.error(
                "evidence_integrity_failed",
                dispute_id=dispute_id,
                party=label,
                expected_hash=expected,
                computed_hash=computed,
            )
            raise EvidenceIntegrityError(label, expected, computed)

        logger.info("evidence_verified", dispute_id=dispute_id, party=label, content_hash=computed)
        return Evidence(
            party_address=party_address,
            label=label,
            content=body["content"],
            submitted_at=body["submittedAt"],
            content_hash=computed,
        )

    async def fetch_both(self, dispute: DisputeRecord) -> tuple[Evidence, Evidence]:
        missing = [
            label
            for label, commitment in (("A", dispute.evidence_hash_a), ("B", dispute.evidence_hash_b))
            if commitment is None
        ]
        if missing:
            raise MissingEvidenceCommitmentError(dispute.id, missing)

        evidence_a, evidence_b = await asyncio.gather(
            self.fetch(dispute.id, "A", dispute.party_a, dispute.evidence_hash_a),
            self.fetch(dispute.id, "B", dispute.party_b, dispute.evidence_hash_b),
        )
        return evidence_a, evidence_b

    async def submit(self, dispute_id: str, label: PartyLabel, content: str, party_address: str) -> str:
        """Store evidence once per party; returns the hash to commit on-chain."""
        local_hash = content_hash(content)
        resp = await self._request(
            "POST",
            self._url(dispute_id, label),
            headers=self._headers(dispute_id, label),
            json={"content": content, "partyAddress": party_address},
        )
        if resp.status_code == 409:
            raise EvidenceAlreadySubmittedError(dispute_id, label)
        if resp.status_code not in (200, 201):
            raise EvidenceStoreError(
                f"evidence store rejected submission for party {label} with status {resp.status_code}",
                details={"party": label, "status_code": resp.status_code},
            )

        returned = normalize_hash(self._json(resp, EVIDENCE_RECEIPT_SCHEMA, label)["contentHash"])
        if returned != local_hash:
            raise EvidenceIntegrityError(label, local_hash, returned)

        logger.info("evidence_submitted", dispute_id=dispute_id, party=label, content_hash=local_hash)
        return local_hash
