"""FastAPI application exposing the conflict engine to the calendar app."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import Body, FastAPI, HTTPException

from conflict_engine.config import get_settings
from conflict_engine.domain.errors import (
    InvalidEventError,
    InvalidRuleUpdateError,
    RuleNotFoundError,
)
from conflict_engine.domain.models import (
    ConflictRule,
    DetectConflictsRequest,
    DetectedConflict,
    RescheduleOptionsRequest,
    RescheduleOptionsResponse,
)
from conflict_engine.engine import ConflictEngine

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logging.basicConfig(level=get_settings().log_level)
    logger.info("Conflict engine API started")
    yield


app = FastAPI(title="Scheduling Conflict Engine", lifespan=lifespan)

# ── Singletons (created at import time for simplicity) ────────────────
engine = ConflictEngine()


# ── Routes ────────────────────────────────────────────────────────────


@app.post("/conflicts/detect", response_model=list[DetectedConflict])
def detect_conflicts(payload: DetectConflictsRequest) -> list[DetectedConflict]:
    """Check a candidate event before the caller saves it."""
    try:
        return engine.detect_conflicts(
            payload.candidate, payload.existing_events, payload.people
        )
    except InvalidEventError as exc:
        raise HTTPException(
            status_code=422, detail=f"Could not check for conflicts: {exc}"
        ) from exc


@app.post("/conflicts/reschedule-options", response_model=RescheduleOptionsResponse)
def reschedule_options(payload: RescheduleOptionsRequest) -> RescheduleOptionsResponse:
    """Suggest free slots to move an event into."""
    try:
        suggestions = engine.suggest_reschedule_options(
            payload.event,
            payload.existing_events,
            avoid_weekends=payload.avoid_weekends,
        )
    except InvalidEventError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return RescheduleOptionsResponse(suggestions=suggestions)


@app.get("/rules", response_model=list[ConflictRule])
def list_rules() -> list[ConflictRule]:
    """Return every rule in classifier order."""
    return engine.get_rules()


@app.patch("/rules/{rule_id}", response_model=ConflictRule)
def update_rule(rule_id: str, body: dict[str, Any] = Body(...)) -> ConflictRule:
    """Toggle a rule or change its severity.

    The body is validated by the registry, so an immutable field echoed back
    with its current value is accepted here as it is in the library.
    """
    try:
        return engine.update_rule(rule_id, body)
    except RuleNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Conflict rule not found") from exc
    except InvalidRuleUpdateError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
