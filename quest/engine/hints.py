"""Hint disclosure for the open challenge."""

from typing import Optional, Sequence

from ..challenges import Challenge


class HintController:
    """
    Tracks whether hints are shown and how far the learner has read.

    Hints only move forward; there is no previous hint.
    """

    def __init__(self, hints: Sequence[str] = ()):
        self.hints = tuple(hints)
        self.revealed = False
        self.current_index = 0

    @classmethod
    def for_challenge(cls, challenge: Challenge) -> "HintController":
        return cls(challenge.hints)

    def toggle(self) -> bool:
        self.revealed = not self.revealed
        return self.revealed

    def advance(self) -> int:
        """Move to the next hint, staying on the last one."""
        last = max(len(self.hints) - 1, 0)
        self.current_index = min(self.current_index + 1, last)
        return self.current_index

    def reset_for_challenge(self, challenge: Challenge) -> None:
        self.hints = tuple(challenge.hints)
        self.revealed = False
        self.current_index = 0

    @property
    def current_hint(self) -> Optional[str]:
        if not self.hints:
            return None
        return self.hints[self.current_index]

    @property
    def has_next(self) -> bool:
        return self.current_index < len(self.hints) - 1

    @property
    def label(self) -> str:
        if not self.hints:
            return "No hints available"
        return f"Hint {self.current_index + 1} of {len(self.hints)}"
