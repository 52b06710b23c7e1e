"""Pydantic schemas for API."""

from datetime import datetime
from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

from ..challenges import Difficulty
from ..engine import SessionState


# Challenge schemas
class ChallengeListItem(BaseModel):
    id: str
    title: str
    description: str
    difficulty: Difficulty
    unlocked: bool
    completed: bool
    stars: int
    estimated_time: str
    hint_count: int
    preview: Optional[str] = None
    action: str  # "locked", "start", "review"

    class Config:
        from_attributes = True


class ChallengeInfo(BaseModel):
    id: str
    title: str
    description: str
    difficulty: Difficulty
    template_code: Optional[str] = None  # Hidden while locked
    expected_output: str
    hint_count: int
    stars: int
    estimated_time: str
    unlocked: bool
    completed: bool


# Session schemas
class SessionOpen(BaseModel):
    challenge_id: str = Field(..., min_length=1, max_length=64)


class SubmissionEdit(BaseModel):
    code: str = Field(..., max_length=20_000, description="Full submission text")


class SessionInfo(BaseModel):
    session_id: str
    challenge_id: str
    state: SessionState
    submission: str
    output: Optional[str] = None
    success: Optional[bool] = None
    expected_output: str
    hints_revealed: bool
    hint_index: int
    hint_count: int
    current_hint: Optional[str] = None
    has_next_hint: bool
    hint_label: str

    class Config:
        from_attributes = True


class CommandResult(BaseModel):
    accepted: bool
    session: Optional[SessionInfo] = None


class RunResult(BaseModel):
    accepted: bool
    output: Optional[str] = None
    success: Optional[bool] = None
    expected_output: Optional[str] = None
    session: Optional[SessionInfo] = None


class HintsResult(BaseModel):
    revealed: bool
    hint_index: int
    current_hint: Optional[str] = None
    has_next_hint: bool
    hint_label: str


# Event schemas
class EventInfo(BaseModel):
    type: str  # "verdict_ready", "challenge_completed"
    challenge_id: str
    payload: Dict[str, Any] = {}
    created_at: datetime


# Progress schemas
class ProgressInfo(BaseModel):
    level: int
    experience: int
    completed_count: int
    experience_within_level: int
    experience_to_next_level: int
    total_challenges: int
    completion_percentage: float
    all_completed: bool

    class Config:
        from_attributes = True


class AchievementInfo(BaseModel):
    id: str
    title: str
    description: str
    unlocked: bool
    progress: float

    class Config:
        from_attributes = True


# Error schemas
class ErrorResponse(BaseModel):
    status: str = "error"
    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None
