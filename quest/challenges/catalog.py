"""
Challenge catalog.

The catalog is ordered: position in the catalog is the unlock sequence.
It is built once at startup and never mutated.
"""

from typing import Dict, Iterable, Iterator, Tuple

from .base import Challenge, Difficulty


class UnknownChallengeError(LookupError):
    """Raised when a challenge id is not in the catalog."""

    def __init__(self, challenge_id: str):
        self.challenge_id = challenge_id
        super().__init__(f"Challenge '{challenge_id}' not found")


DEFAULT_CHALLENGES = (
    Challenge(
        id="hello-world",
        title="Hello Python World!",
        description='Write your first Python program to print "Hello, World!"',
        difficulty=Difficulty.BEGINNER,
        template_code="# Write your code here\n",
        expected_output="Hello, World!",
        hints=(
            "Use the print() function to display text",
            'Put your text inside quotes: "Hello, World!"',
            'The complete line should be: print("Hello, World!")',
        ),
    ),
    Challenge(
        id="variables",
        title="Variables and Data Types",
        description="Create variables and perform basic operations",
        difficulty=Difficulty.BEGINNER,
        template_code=(
            "# Create a variable called name with your name\n"
            "# Create a variable called age with your age\n"
            "# Print both variables\n"
        ),
        expected_output="Name: Alice\nAge: 25",
        hints=(
            "Create variables using the = operator",
            "Use print() to display variable values",
            "You can combine text and variables in print statements",
        ),
    ),
    Challenge(
        id="loops",
        title="For Loops Adventure",
        description="Use a for loop to count from 1 to 5",
        difficulty=Difficulty.INTERMEDIATE,
        template_code="# Write a for loop that prints numbers 1 to 5\n",
        expected_output="1\n2\n3\n4\n5",
        hints=(
            "Use the range() function to create a sequence of numbers",
            "range(1, 6) creates numbers from 1 to 5",
            "Use a for loop: for i in range(1, 6):",
        ),
    ),
)


class ChallengeCatalog:
    """Ordered, read-only collection of challenges."""

    def __init__(self, challenges: Iterable[Challenge] = DEFAULT_CHALLENGES):
        self._challenges: Tuple[Challenge, ...] = tuple(challenges)
        self._index: Dict[str, int] = {}
        for position, challenge in enumerate(self._challenges):
            if challenge.id in self._index:
                raise ValueError(f"Duplicate challenge id: {challenge.id}")
            self._index[challenge.id] = position

    def get(self, challenge_id: str) -> Challenge:
        return self._challenges[self.index_of(challenge_id)]

    def all(self) -> Tuple[Challenge, ...]:
        return self._challenges

    def index_of(self, challenge_id: str) -> int:
        try:
            return self._index[challenge_id]
        except KeyError:
            raise UnknownChallengeError(challenge_id) from None

    def __contains__(self, challenge_id: object) -> bool:
        return challenge_id in self._index

    def __iter__(self) -> Iterator[Challenge]:
        return iter(self._challenges)

    def __len__(self) -> int:
        return len(self._challenges)
