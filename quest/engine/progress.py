"""
Learner progression: experience, level, completion count.

Core rules:
  - Each completed challenge awards a fixed amount of XP
  - Level L -> L+1 when experience reaches L * XP_PER_LEVEL, checked once per award
  - Challenges unlock strictly in catalog order
"""

import logging
from dataclasses import dataclass

from ..config import XP_PER_CHALLENGE, STARTING_EXPERIENCE, XP_PER_LEVEL

logger = logging.getLogger(__name__)


def is_unlocked(ordinal: int, completed_count: int) -> bool:
    """A challenge is selectable once every challenge before it is done."""
    return ordinal <= completed_count


def is_completed(ordinal: int, completed_count: int) -> bool:
    return ordinal < completed_count


@dataclass(frozen=True)
class ProgressSnapshot:
    level: int
    experience: int
    completed_count: int
    experience_within_level: int
    experience_to_next_level: int
    total_challenges: int

    @property
    def completion_percentage(self) -> float:
        if not self.total_challenges:
            return 0.0
        return self.completed_count / self.total_challenges * 100

    @property
    def all_completed(self) -> bool:
        return self.completed_count >= self.total_challenges


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    description: str
    unlocked: bool
    progress: float  # 0.0 - 1.0


class ProgressTracker:
    """Owns one learner's progression state for the session."""

    def __init__(
        self,
        total_challenges: int,
        starting_experience: int = STARTING_EXPERIENCE,
        xp_per_challenge: int = XP_PER_CHALLENGE,
        xp_per_level: int = XP_PER_LEVEL,
    ):
        # One level-up check per award is only enough if an award cannot
        # jump over a whole level.
        if xp_per_challenge > xp_per_level:
            raise ValueError(
                f"xp_per_challenge ({xp_per_challenge}) must not exceed xp_per_level ({xp_per_level})"
            )
        if starting_experience < 0:
            raise ValueError("starting_experience must be non-negative")

        self.total_challenges = total_challenges
        self.xp_per_challenge = xp_per_challenge
        self.xp_per_level = xp_per_level
        self._level = 1
        self._experience = starting_experience
        self._completed_count = 0

    @property
    def level(self) -> int:
        return self._level

    @property
    def experience(self) -> int:
        return self._experience

    @property
    def completed_count(self) -> int:
        return self._completed_count

    @property
    def experience_within_level(self) -> int:
        return self._experience % self.xp_per_level

    @property
    def experience_to_next_level(self) -> int:
        return self.xp_per_level - self.experience_within_level

    def record_success(self) -> ProgressSnapshot:
        """Award one completed challenge and apply the level-up rule."""
        threshold = self._level * self.xp_per_level
        self._experience += self.xp_per_challenge
        self._completed_count = min(self._completed_count + 1, self.total_challenges)

        if self._experience >= threshold:
            old = self._level
            self._level = old + 1
            logger.info("Level up: %d -> %d (xp=%d)", old, self._level, self._experience)

        logger.debug(
            "Recorded success: xp=%d completed=%d/%d",
            self._experience, self._completed_count, self.total_challenges,
        )
        return self.snapshot()

    def is_unlocked(self, ordinal: int) -> bool:
        return is_unlocked(ordinal, self._completed_count)

    def is_completed(self, ordinal: int) -> bool:
        return is_completed(ordinal, self._completed_count)

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            level=self._level,
            experience=self._experience,
            completed_count=self._completed_count,
            experience_within_level=self.experience_within_level,
            experience_to_next_level=self.experience_to_next_level,
            total_challenges=self.total_challenges,
        )

    def achievements(self) -> list[Achievement]:
        """Achievement list with progress, earned or not."""
        completed = self._completed_count
        level = self._level
        return [
            Achievement(
                id="first-steps",
                title="First Steps",
                description="Complete your first Python challenge",
                unlocked=completed >= 1,
                progress=float(min(completed, 1)),
            ),
            Achievement(
                id="getting-started",
                title="Getting Started",
                description="Complete 3 challenges",
                unlocked=completed >= 3,
                progress=min(completed / 3, 1),
            ),
            Achievement(
                id="code-warrior",
                title="Code Warrior",
                description="Reach level 3",
                unlocked=level >= 3,
                progress=min(level / 3, 1),
            ),
            Achievement(
                id="python-master",
                title="Python Master",
                description="Complete all beginner challenges",
                unlocked=completed >= 5,
                progress=min(completed / 5, 1),
            ),
        ]
