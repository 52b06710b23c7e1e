"""Challenge definition."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class Difficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"


# Star rating and time estimate shown next to each challenge
DIFFICULTY_STARS = {
    Difficulty.BEGINNER: 1,
    Difficulty.INTERMEDIATE: 2,
    Difficulty.ADVANCED: 3,
}

ESTIMATED_TIME = {
    Difficulty.BEGINNER: "5-10 min",
    Difficulty.INTERMEDIATE: "10-15 min",
    Difficulty.ADVANCED: "15-20 min",
}

PREVIEW_LINES = 3


@dataclass(frozen=True)
class Challenge:
    """One exercise: prompt, starter code, expected output and hints."""
    id: str
    title: str
    description: str
    difficulty: Difficulty
    template_code: str
    expected_output: str  # Compared after stripping surrounding whitespace
    hints: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def stars(self) -> int:
        return DIFFICULTY_STARS[self.difficulty]

    @property
    def estimated_time(self) -> str:
        return ESTIMATED_TIME[self.difficulty]

    @property
    def preview(self) -> str:
        """First few lines of the template, with a trailing '...' if cut."""
        lines = self.template_code.split("\n")
        preview = "\n".join(lines[:PREVIEW_LINES])
        if len(lines) > PREVIEW_LINES:
            preview += "\n..."
        return preview
