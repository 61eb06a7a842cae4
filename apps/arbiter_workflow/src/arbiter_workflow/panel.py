"""Model client: query the arbitrator panel and normalise every answer into a vote."""

from __future__ import annotations

import asyncio
import json
import math
import re
import time
from collections.abc import Sequence
from typing import Any

from arbitrai_protocol import ArbitrationPrompt, ParsedModelVerdict, RawModelResponse, VerdictOutcome, validate_schema
from arbitrai_protocol.schema_validation import MODEL_VERDICT_SCHEMA

from .arbitrators import Arbitrator
from .observability import get_logger
from .prompts import build_prompt_pair

logger = get_logger(__name__)

RAW_PREVIEW_CHARS = 500
DEFAULT_REASONING = "No reasoning provided"

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


class ModelResponseParseError(ValueError):
    pass


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-finite number {name} is not allowed")


_DECODER = json.JSONDecoder(parse_constant=_reject_constant)


def extract_verdict_payload(text: str) -> dict[str, Any]:
    """First JSON object in ``text`` that satisfies the verdict schema.

    A fenced block is preferred when present. Otherwise every ``{`` is tried
    as the start of an object, so braces inside string values and stray prose
    around the object do not matter.
    """
    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        text = fenced.group(1)

    starts = [i for i, ch in enumerate(text) if ch == "{"]
    if not starts:
        raise ModelResponseParseError(f"No JSON found in response: {text[:200]}")

    last_error = ""
    for start in starts:
        try:
            payload, _ = _DECODER.raw_decode(text, start)
        except ValueError as exc:
            last_error = f"invalid JSON: {exc}"
            continue
        errors = validate_schema(MODEL_VERDICT_SCHEMA, payload)
        if errors:
            last_error = "; ".join(errors)
            continue
        return payload
    raise ModelResponseParseError(last_error)


def clamp_confidence(value: float) -> int:
    bounded = min(max(value, 0), 100)
    return int(math.floor(bounded + 0.5))


def _circuit_breaker(model_id: str, reasoning: str) -> ParsedModelVerdict:
    return ParsedModelVerdict(
        model_id=model_id,
        vote=VerdictOutcome.CIRCUIT_BREAKER,
        confidence_pct=0,
        reasoning=reasoning,
        parse_success=False,
    )


def parse_model_response(raw: RawModelResponse) -> ParsedModelVerdict:
    if raw.error is not None:
        logger.warning("model_call_failed", model_id=raw.model_id, error=raw.error, duration_ms=raw.duration_ms)
        return _circuit_breaker(raw.model_id, f"Model failed: {raw.error}")

    try:
        payload = extract_verdict_payload(raw.raw_text)
    except ModelResponseParseError as exc:
        logger.warning(
            "model_parse_failed",
            model_id=raw.model_id,
            error=str(exc),
            raw_preview=raw.raw_text[:RAW_PREVIEW_CHARS],
        )
        return _circuit_breaker(raw.model_id, f"Parse error: {exc}")

    verdict = ParsedModelVerdict(
        model_id=raw.model_id,
        vote=VerdictOutcome(payload["verdict"]),
        confidence_pct=clamp_confidence(payload["confidence"]),
        reasoning=payload.get("reasoning") or DEFAULT_REASONING,
        parse_success=True,
    )
    logger.info(
        "model_vote",
        model_id=verdict.model_id,
        vote=verdict.vote.value,
        confidence_pct=verdict.confidence_pct,
        duration_ms=raw.duration_ms,
    )
    return verdict


async def query_arbitrator(arbitrator: Arbitrator, system: str, user: str) -> RawModelResponse:
    start = time.perf_counter()
    try:
        text = await arbitrator.complete(system, user)
    except Exception as exc:  # every failure mode becomes a circuit-breaker vote
        return RawModelResponse(
            model_id=arbitrator.model_id,
            raw_text="",
            duration_ms=int((time.perf_counter() - start) * 1000),
            error=str(exc) or exc.__class__.__name__,
        )
    return RawModelResponse(
        model_id=arbitrator.model_id,
        raw_text=text,
        duration_ms=int((time.perf_counter() - start) * 1000),
    )


async def query_panel(arbitrators: Sequence[Arbitrator], prompt: ArbitrationPrompt) -> list[ParsedModelVerdict]:
    """All arbitrators are queried concurrently; results keep registration order."""
    system, user = build_prompt_pair(prompt)
    logger.info("panel_query", dispute_id=prompt.dispute_id, models=[a.model_id for a in arbitrators])
    raws = await asyncio.gather(*(query_arbitrator(a, system, user) for a in arbitrators))
    return [parse_model_response(raw) for raw in raws]
