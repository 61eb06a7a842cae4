"""Exceptions raised by the arbitration workflow.

Model transport and parse failures never surface here: they are folded into
CIRCUIT_BREAKER votes by the panel. Everything below aborts a run with no
partial verdict.
"""

from __future__ import annotations

from typing import Any


class ArbitrationError(Exception):
    """Base class for fatal workflow errors."""

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = self.__class__.__name__
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.code, "message": self.message, "details": self.details}


class PreconditionError(ArbitrationError):
    """The run cannot start; raised before the offending network call."""


class MissingSecretsError(PreconditionError):
    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            f"Missing required secrets: {', '.join(missing)}",
            details={"missing": list(missing)},
        )
        self.missing = list(missing)


class DisputeStateError(PreconditionError):
    def __init__(self, dispute_id: str, reason: str) -> None:
        super().__init__(
            f"Dispute {dispute_id} is not ready for arbitration: {reason}",
            details={"dispute_id": dispute_id, "reason": reason},
        )


class MissingEvidenceCommitmentError(PreconditionError):
    def __init__(self, dispute_id: str, labels: list[str]) -> None:
        super().__init__(
            f"Dispute {dispute_id} has no on-chain evidence commitment for party "
            f"{', '.join(labels)}; both parties must submit evidence first",
            details={"dispute_id": dispute_id, "parties": list(labels)},
        )


class EvidenceNotSubmittedError(ArbitrationError):
    def __init__(self, dispute_id: str, label: str, status_code: int) -> None:
        super().__init__(
            f"Evidence server returned {status_code} for party {label}. "
            "Has evidence been submitted for this dispute?",
            details={"dispute_id": dispute_id, "party": label, "status_code": status_code},
        )
        self.status_code = status_code


class EvidenceAlreadySubmittedError(ArbitrationError):
    def __init__(self, dispute_id: str, label: str) -> None:
        super().__init__(
            f"Evidence for party {label} was already submitted for dispute {dispute_id}",
            details={"dispute_id": dispute_id, "party": label},
        )


class EvidenceIntegrityError(ArbitrationError):
    """Content served by the evidence store does not hash to the on-chain commitment."""

    def __init__(self, label: str, expected_hash: str, computed_hash: str) -> None:
        super().__init__(
            f"Evidence integrity check failed for party {label}: "
            f"on-chain hash {expected_hash}, computed hash {computed_hash}. Aborting arbitration.",
            details={"party": label, "expected": expected_hash, "computed": computed_hash},
        )
        self.label = label
        self.expected_hash = expected_hash
        self.computed_hash = computed_hash


class EvidenceStoreError(ArbitrationError):
    """The evidence store was unreachable or answered with an unusable body."""


class RpcError(ArbitrationError):
    def __init__(self, method: str, message: str, *, code: int | None = None) -> None:
        super().__init__(
            f"RPC {method} failed: {message}",
            details={"method": method, "code": code, "rpc_message": message},
        )
        self.method = method
        self.rpc_code = code
        self.rpc_message = message
