"""
Session API - open a challenge, edit, run, reset, close, hints.

Redundant commands (running twice, resetting while running) are not errors:
the response reports accepted=false and the session is left unchanged.
"""

from typing import Optional

from fastapi import APIRouter, HTTPException, Depends

from ..engine import SessionOrchestrator
from .deps import EventFeed, get_event_feed, get_orchestrator
from .schemas import (
    SessionOpen,
    SubmissionEdit,
    SessionInfo,
    CommandResult,
    RunResult,
    HintsResult,
    EventInfo,
)

router = APIRouter(prefix="/session", tags=["session"])


# ============ Helper Functions ============

def current_session(engine: SessionOrchestrator) -> Optional[SessionInfo]:
    view = engine.session_view()
    return SessionInfo.model_validate(view) if view else None


def require_session(engine: SessionOrchestrator) -> SessionInfo:
    """Get the open session or raise 404."""
    session = current_session(engine)
    if session is None:
        raise HTTPException(
            status_code=404,
            detail={"error_code": "NO_SESSION", "message": "No challenge is open"},
        )
    return session


def hints_result(engine: SessionOrchestrator) -> HintsResult:
    session = require_session(engine)
    return HintsResult(
        revealed=session.hints_revealed,
        hint_index=session.hint_index,
        current_hint=session.current_hint,
        has_next_hint=session.has_next_hint,
        hint_label=session.hint_label,
    )


# ============ Endpoints ============

@router.post("", response_model=SessionInfo)
async def open_challenge(
    request: SessionOpen,
    engine: SessionOrchestrator = Depends(get_orchestrator),
):
    """
    Open a challenge. Any session already open is closed first.

    404 for unknown challenges, 403 for locked ones.
    """
    return SessionInfo.model_validate(engine.open_challenge(request.challenge_id))


@router.get("", response_model=SessionInfo)
async def get_session(engine: SessionOrchestrator = Depends(get_orchestrator)):
    """Get the open session. Poll this to see state, output and hints."""
    return require_session(engine)


@router.put("/submission", response_model=CommandResult)
async def edit_submission(
    edit: SubmissionEdit,
    engine: SessionOrchestrator = Depends(get_orchestrator),
):
    accepted = engine.edit_submission(edit.code)
    return CommandResult(accepted=accepted, session=current_session(engine))


@router.post("/run", response_model=RunResult)
async def run_submission(engine: SessionOrchestrator = Depends(get_orchestrator)):
    """
    Run the current submission and return the verdict.

    Status flow: editing -> running -> succeeded/failed
    """
    verdict = await engine.run_submission()
    if verdict is None:
        return RunResult(accepted=False, session=current_session(engine))

    return RunResult(
        accepted=True,
        output=verdict.output,
        success=verdict.success,
        expected_output=verdict.expected_output,
        session=current_session(engine),
    )


@router.post("/reset", response_model=CommandResult)
async def reset_submission(engine: SessionOrchestrator = Depends(get_orchestrator)):
    accepted = engine.reset_submission()
    return CommandResult(accepted=accepted, session=current_session(engine))


@router.delete("", response_model=CommandResult)
async def close_challenge(engine: SessionOrchestrator = Depends(get_orchestrator)):
    accepted = engine.close_challenge()
    return CommandResult(accepted=accepted, session=None)


@router.post("/hints/toggle", response_model=HintsResult)
async def toggle_hints(engine: SessionOrchestrator = Depends(get_orchestrator)):
    engine.toggle_hints()
    return hints_result(engine)


@router.post("/hints/next", response_model=HintsResult)
async def next_hint(engine: SessionOrchestrator = Depends(get_orchestrator)):
    engine.next_hint()
    return hints_result(engine)


@router.get("/events", response_model=list[EventInfo])
async def get_events(limit: int = 50, feed: EventFeed = Depends(get_event_feed)):
    """Recent verdict_ready and challenge_completed events, oldest first."""
    return [EventInfo(**event) for event in feed.recent(limit)]
