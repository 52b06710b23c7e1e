"""Progress API endpoints."""

from fastapi import APIRouter, Depends

from ..engine import SessionOrchestrator
from .deps import get_orchestrator
from .schemas import ProgressInfo, AchievementInfo

router = APIRouter(prefix="/progress", tags=["progress"])


@router.get("", response_model=ProgressInfo)
async def get_progress(engine: SessionOrchestrator = Depends(get_orchestrator)):
    """Level, experience and completion for the progress display."""
    return ProgressInfo.model_validate(engine.progress_snapshot())


@router.get("/achievements", response_model=list[AchievementInfo])
async def get_achievements(engine: SessionOrchestrator = Depends(get_orchestrator)):
    return [AchievementInfo.model_validate(a) for a in engine.achievements()]
