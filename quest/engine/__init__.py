"""Validation and progression engine."""

from .evaluator import SimulatedEvaluator, SandboxEvaluator, make_evaluator
from .hints import HintController
from .judge import Verdict, judge, render_verdict
from .progress import ProgressTracker, ProgressSnapshot, Achievement, is_unlocked, is_completed
from .session import (
    SessionOrchestrator,
    SessionState,
    SessionView,
    ChallengeListing,
    ChallengeLockedError,
    SessionStateError,
)

__all__ = [
    "SimulatedEvaluator", "SandboxEvaluator", "make_evaluator",
    "HintController",
    "Verdict", "judge", "render_verdict",
    "ProgressTracker", "ProgressSnapshot", "Achievement", "is_unlocked", "is_completed",
    "SessionOrchestrator", "SessionState", "SessionView", "ChallengeListing",
    "ChallengeLockedError", "SessionStateError",
]
