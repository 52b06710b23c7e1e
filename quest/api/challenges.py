"""Challenge API endpoints."""

from fastapi import APIRouter, Depends

from ..engine import SessionOrchestrator
from .deps import get_orchestrator
from .schemas import ChallengeInfo, ChallengeListItem

router = APIRouter(prefix="/challenges", tags=["challenges"])


@router.get("", response_model=list[ChallengeListItem])
async def list_challenges(engine: SessionOrchestrator = Depends(get_orchestrator)):
    """List all challenges in unlock order, with the learner's unlock state."""
    return [ChallengeListItem.model_validate(item) for item in engine.list_challenges()]


@router.get("/{challenge_id}", response_model=ChallengeInfo)
async def get_challenge_info(
    challenge_id: str,
    engine: SessionOrchestrator = Depends(get_orchestrator),
):
    """Get detailed information about a challenge."""
    # Unknown ids raise UnknownChallengeError, mapped to 404 in main
    challenge = engine.catalog.get(challenge_id)
    ordinal = engine.catalog.index_of(challenge_id)
    unlocked = engine.progress.is_unlocked(ordinal)

    return ChallengeInfo(
        id=challenge.id,
        title=challenge.title,
        description=challenge.description,
        difficulty=challenge.difficulty,
        template_code=challenge.template_code if unlocked else None,
        expected_output=challenge.expected_output,
        hint_count=len(challenge.hints),
        stars=challenge.stars,
        estimated_time=challenge.estimated_time,
        unlocked=unlocked,
        completed=engine.progress.is_completed(ordinal),
    )
