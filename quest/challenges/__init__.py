"""Challenge definitions and catalog."""

from .base import Challenge, Difficulty
from .catalog import ChallengeCatalog, UnknownChallengeError, DEFAULT_CHALLENGES

__all__ = ["Challenge", "Difficulty", "ChallengeCatalog", "UnknownChallengeError", "DEFAULT_CHALLENGES"]
