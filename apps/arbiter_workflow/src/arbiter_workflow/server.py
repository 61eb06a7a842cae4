from __future__ import annotations

import os
from typing import Any

from arbitrai_protocol import ParsedModelVerdict, VerdictOutcome, simulate_what_if
from arbitrai_protocol.hashing import normalize_hash
from arbitrai_protocol.types import WIRE_CONFIG
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from .config import WorkflowConfig
from .errors import (
    ArbitrationError,
    EvidenceAlreadySubmittedError,
    EvidenceIntegrityError,
    EvidenceNotSubmittedError,
    EvidenceStoreError,
    PreconditionError,
    RpcError,
)
from .observability import configure_logging
from .server_state import ArbiterState
from .storage import VerdictStorage
from .workflow import ArbitrationWorkflow

ERROR_STATUS: tuple[tuple[type[ArbitrationError], int], ...] = (
    (PreconditionError, 409),
    (EvidenceAlreadySubmittedError, 409),
    (EvidenceNotSubmittedError, 404),
    (EvidenceIntegrityError, 422),
    (RpcError, 502),
    (EvidenceStoreError, 502),
)


class WhatIfRequest(BaseModel):
    model_config = WIRE_CONFIG

    votes: list[ParsedModelVerdict]
    model_index: int
    vote: VerdictOutcome


def error_status(exc: ArbitrationError) -> int:
    for exc_type, status in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 500


def _dispute_id_or_422(dispute_id: str) -> str:
    try:
        return normalize_hash(dispute_id)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc


def create_app(
    config: WorkflowConfig | None = None,
    *,
    workflow: ArbitrationWorkflow | None = None,
    storage: VerdictStorage | None = None,
) -> FastAPI:
    app = FastAPI(title="ArbitrAI Arbiter", version="0.1.0")
    app.state.arbiter_state = ArbiterState(
        config=config or WorkflowConfig.from_env(),
        workflow=workflow,
        storage=storage,
    )

    @app.exception_handler(ArbitrationError)
    async def arbitration_error(_: Request, exc: ArbitrationError) -> JSONResponse:
        return JSONResponse(status_code=error_status(exc), content=exc.to_dict())

    @app.get("/health")
    def health() -> dict[str, Any]:
        state: ArbiterState = app.state.arbiter_state
        return {
            "status": "ok",
            "chainId": state.config.chain_id,
            "submitOnchain": state.config.submit_onchain,
            "missingSecrets": state.config.missing_secrets(),
        }

    @app.get("/verdicts")
    def verdicts(limit: int = 100) -> dict[str, Any]:
        storage = app.state.arbiter_state.get_storage()
        items = storage.list_verdicts(limit) if storage else []
        return {"count": len(items), "items": items}

    @app.get("/verdicts/{dispute_id}")
    def verdict(dispute_id: str) -> dict[str, Any]:
        dispute_id = _dispute_id_or_422(dispute_id)
        storage = app.state.arbiter_state.get_storage()
        item = storage.get_verdict_by_dispute(dispute_id) if storage else None
        if item is None:
            raise HTTPException(status_code=404, detail="verdict not found")
        return item

    @app.post("/disputes/{dispute_id}/resolve")
    async def resolve(dispute_id: str) -> dict[str, Any]:
        dispute_id = _dispute_id_or_422(dispute_id)
        result = await app.state.arbiter_state.get_workflow().resolve(dispute_id)
        return result.to_dict()

    @app.post("/consensus/what-if")
    def what_if(payload: WhatIfRequest) -> dict[str, Any]:
        try:
            result = simulate_what_if(payload.votes, payload.model_index, payload.vote)
        except (IndexError, ValueError) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return result.model_dump(by_alias=True, mode="json")

    return app


app = create_app()


def main() -> None:
    import uvicorn

    configure_logging(WorkflowConfig.from_env().log_level)
    port = int(os.environ.get("ARBITER_PORT", "4010"))
    uvicorn.run("arbiter_workflow.server:app", host="0.0.0.0", port=port, reload=False)


if __name__ == "__main__":
    main()
