"""Routes exposing delivery statistics and the failure retry sweep."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from controls_dispatch.application.use_cases.dispatch import (
    RetrySweep,
    StatisticsAggregator,
    record_delivery_receipt,
)
from controls_dispatch.infrastructure.database import get_db
from controls_dispatch.infrastructure.repositories import FailureRepository
from controls_dispatch.interfaces.api.dependencies import get_current_user_id, get_retry_sweep
from controls_dispatch.interfaces.api.routes_helpers import http_error_for
from controls_dispatch.interfaces.api.schemas import (
    AggregateStatsRead,
    FailureRead,
    ReceiptRead,
    RetryRequest,
    RetrySummaryRead,
)

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.get("/stats", response_model=AggregateStatsRead)
def read_delivery_stats(
    start: date | None = Query(default=None),
    end: date | None = Query(default=None),
    channel: str | None = Query(default=None),
    db: Session = Depends(get_db),
    _user_id: int = Depends(get_current_user_id),
) -> AggregateStatsRead:
    """Aggregate daily delivery counters; defaults to the last thirty days."""

    try:
        stats = StatisticsAggregator(db).get_stats(start, end, channel=channel)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return AggregateStatsRead.model_validate(stats)


@router.get("/failures", response_model=list[FailureRead])
def list_failures(
    resolved: bool | None = Query(default=False),
    limit: int = Query(default=100, ge=1, le=1000),
    db: Session = Depends(get_db),
    _user_id: int = Depends(get_current_user_id),
) -> list[FailureRead]:
    failures = FailureRepository(db).list_recent(resolved=resolved, limit=limit)
    return [FailureRead.model_validate(failure) for failure in failures]


@router.post("/failures/retry", response_model=RetrySummaryRead)
async def retry_failures(
    payload: RetryRequest,
    sweep: RetrySweep = Depends(get_retry_sweep),
    _user_id: int = Depends(get_current_user_id),
) -> RetrySummaryRead:
    summary = await sweep.retry_failed(payload.failure_ids)
    return RetrySummaryRead.model_validate(summary)


@router.post("/messages/{message_id}/receipt", response_model=ReceiptRead)
def acknowledge_delivery(
    message_id: int,
    db: Session = Depends(get_db),
    user_id: int = Depends(get_current_user_id),
) -> ReceiptRead:
    """Count the client's receipt of a sent message; repeats are accepted but not counted."""

    try:
        counted = record_delivery_receipt(db, message_id=message_id, user_id=user_id)
    except ValueError as exc:
        raise http_error_for(exc) from exc
    return ReceiptRead(message_id=message_id, counted=counted)
