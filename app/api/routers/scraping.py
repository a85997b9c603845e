"""
app/api/routers/scraping.py

Enforcement scraping session endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status

from app.api.dependencies import get_coordinator, to_http_exception
from app.schemas.scraping import (
    ProcessingLogResponse,
    SessionResponse,
    SessionSummaryResponse,
    StartScrapeRequest,
    StrategyResponse,
)
from app.scraping.coordinator import ScrapingCoordinator
from app.scraping.errors import ScrapingError
from app.scraping.types import ScrapeTrigger

router = APIRouter(prefix="/scraping", tags=["enforcement-scraping"])


@router.get("/strategies", response_model=list[StrategyResponse])
def list_strategies(
    coordinator: ScrapingCoordinator = Depends(get_coordinator),
) -> list[StrategyResponse]:
    return [
        StrategyResponse(
            agency=agency,
            enforcement_type=enforcement_type,
            name=strategy.strategy_name(),
            granularity=strategy.granularity,
        )
        for agency, enforcement_type, strategy in coordinator.registry.list()
    ]


@router.post("/sessions", response_model=SessionResponse, status_code=status.HTTP_202_ACCEPTED)
def start_session(
    payload: StartScrapeRequest,
    coordinator: ScrapingCoordinator = Depends(get_coordinator),
) -> SessionResponse:
    """
    Validate parameters and start a scraping run in the background.
    """

    try:
        handle = coordinator.start(
            agency=payload.agency,
            enforcement_type=payload.enforcement_type,
            raw_params=payload.params,
            actor=payload.actor,
            trigger=ScrapeTrigger.MANUAL,
        )
        return SessionResponse.from_session(
            coordinator.status(handle.session_id),
            progress=coordinator.progress(handle.session_id),
        )
    except ScrapingError as exc:
        raise to_http_exception(exc) from exc


@router.post("/sessions/{session_id}/stop", response_model=SessionResponse)
def stop_session(
    session_id: str,
    coordinator: ScrapingCoordinator = Depends(get_coordinator),
) -> SessionResponse:
    try:
        session = coordinator.stop(session_id)
    except ScrapingError as exc:
        raise to_http_exception(exc) from exc
    return SessionResponse.from_session(session)


@router.get("/sessions", response_model=list[SessionResponse])
def list_sessions(
    active_only: bool = Query(default=False),
    limit: int = Query(default=50, ge=1, le=500),
    coordinator: ScrapingCoordinator = Depends(get_coordinator),
) -> list[SessionResponse]:
    return [
        SessionResponse.from_session(session)
        for session in coordinator.list_sessions(active_only=active_only, limit=limit)
    ]


@router.get("/sessions/{session_id}", response_model=SessionResponse)
def get_session(
    session_id: str,
    coordinator: ScrapingCoordinator = Depends(get_coordinator),
) -> SessionResponse:
    try:
        return SessionResponse.from_session(
            coordinator.status(session_id),
            progress=coordinator.progress(session_id),
        )
    except ScrapingError as exc:
        raise to_http_exception(exc) from exc


@router.get("/sessions/{session_id}/logs", response_model=list[ProcessingLogResponse])
def get_processing_logs(
    session_id: str,
    coordinator: ScrapingCoordinator = Depends(get_coordinator),
) -> list[ProcessingLogResponse]:
    try:
        entries = coordinator.processing_logs(session_id)
    except ScrapingError as exc:
        raise to_http_exception(exc) from exc
    return [ProcessingLogResponse.from_entry(entry) for entry in entries]


@router.get("/sessions/{session_id}/summary", response_model=SessionSummaryResponse)
def get_session_summary(
    session_id: str,
    coordinator: ScrapingCoordinator = Depends(get_coordinator),
) -> SessionSummaryResponse:
    try:
        summary = coordinator.summary(session_id)
    except ScrapingError as exc:
        raise to_http_exception(exc) from exc
    return SessionSummaryResponse.from_summary(summary)
