"""Comparison of a submission's output with the expected output."""

from dataclasses import dataclass

from ..challenges import Challenge


@dataclass(frozen=True)
class Verdict:
    """Outcome of one run."""
    challenge_id: str
    output: str
    success: bool
    expected_output: str


def judge(output: str, expected_output: str) -> bool:
    """
    True when `output` matches `expected_output`.

    Only leading and trailing whitespace is ignored. Line breaks and spacing
    inside the text must match exactly, and case matters.
    """
    return output.strip() == expected_output.strip()


def render_verdict(challenge: Challenge, output: str) -> Verdict:
    return Verdict(
        challenge_id=challenge.id,
        output=output,
        success=judge(output, challenge.expected_output),
        expected_output=challenge.expected_output,
    )
