"""
Submission evaluators.

An evaluator turns (challenge id, submission text) into the text the program
"printed". Two are provided:

- SimulatedEvaluator: a fixed set of textual pattern rules. It does not run
  anything and is deterministic, which keeps sessions and tests stable.
- SandboxEvaluator: actually executes the submission in the sandbox and
  returns its stdout.

Both are total: they always return a string and never raise.
"""

import io
import logging
import re
import tokenize
from typing import Callable, Dict, Optional

from ..config import EVALUATOR_MODE
from ..sandbox import SandboxExecutor

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT = "Code executed successfully!"
HELLO_WORLD = "Hello, World!"
VARIABLES_OUTPUT = "Name: Alice\nAge: 25"
LOOPS_OUTPUT = "1\n2\n3\n4\n5"

_HELLO_WORLD_CALL = re.compile(r"""print\(\s*(["'])Hello, World!\1\s*\)""")
_PRINT_LITERAL = re.compile(r"""print\(["'](.+?)["']\)""")
_NAME_TOKEN = re.compile(r"\bname\b")
_AGE_TOKEN = re.compile(r"\bage\b")
_LOOP_KEYWORD = re.compile(r"\b(?:for|while)\b")
_RANGE_CALL = re.compile(r"\brange\s*\(")


def strip_comments(source: str) -> str:
    """
    Remove Python comments, leaving strings untouched.

    Falls back to cutting at '#' per line when the source does not tokenize
    (learner code is often half-written).
    """
    # Python ends a line at a lone '\r' too; tokenize does not
    source = source.replace("\r\n", "\n").replace("\r", "\n")
    try:
        comments = [
            tok for tok in tokenize.generate_tokens(io.StringIO(source).readline)
            if tok.type == tokenize.COMMENT
        ]
    except (tokenize.TokenError, IndentationError, SyntaxError):
        return "\n".join(line.split("#", 1)[0] for line in source.split("\n"))

    lines = io.StringIO(source).readlines()
    for comment in comments:
        row, col = comment.start
        line = lines[row - 1]
        # A comment always runs to the end of its line
        lines[row - 1] = line[:col] + line[comment.end[1]:]
    return "".join(lines)


def _echo_print_literal(code: str) -> Optional[str]:
    match = _PRINT_LITERAL.search(code)
    return match.group(1) if match else None


def _variables(code: str) -> Optional[str]:
    if _NAME_TOKEN.search(code) and _AGE_TOKEN.search(code):
        return VARIABLES_OUTPUT
    return None


def _loops(code: str) -> Optional[str]:
    if _LOOP_KEYWORD.search(code) and _RANGE_CALL.search(code):
        return LOOPS_OUTPUT
    return None


# Rules that only apply to one exercise
CHALLENGE_RULES: Dict[str, Callable[[str], Optional[str]]] = {
    "hello-world": _echo_print_literal,
    "variables": _variables,
    "loops": _loops,
}


class SimulatedEvaluator:
    """Pattern-rule stand-in for running a submission."""

    name = "simulated"

    def __init__(self, rules: Optional[Dict[str, Callable[[str], Optional[str]]]] = None):
        self.rules = CHALLENGE_RULES if rules is None else rules

    def evaluate(self, challenge_id: str, submission: str) -> str:
        code = strip_comments(submission)

        if _HELLO_WORLD_CALL.search(code):
            return HELLO_WORLD

        rule = self.rules.get(challenge_id)
        if rule is not None:
            output = rule(code)
            if output is not None:
                return output

        return DEFAULT_OUTPUT


class SandboxEvaluator:
    """Runs the submission for real and reports what it printed."""

    name = "sandbox"

    def __init__(self, executor: Optional[SandboxExecutor] = None):
        self.executor = executor or SandboxExecutor()

    def evaluate(self, challenge_id: str, submission: str) -> str:
        try:
            result = self.executor.run(submission)
        except Exception as e:
            # Spawning or talking to the child failed; still a failed run
            logger.exception("Sandbox unavailable for %s", challenge_id)
            return f"Error: {type(e).__name__}: {e}"
        if not result.success:
            logger.info("Sandbox run for %s failed: %s", challenge_id, result.error_type)
            return f"Error: {result.error_type}: {result.error}"
        return result.stdout


EVALUATORS = {
    SimulatedEvaluator.name: SimulatedEvaluator,
    SandboxEvaluator.name: SandboxEvaluator,
}


def make_evaluator(mode: str = EVALUATOR_MODE):
    """Build the evaluator named by `mode` ("simulated" or "sandbox")."""
    try:
        return EVALUATORS[mode]()
    except KeyError:
        raise ValueError(
            f"Unknown evaluator '{mode}'. Choose from: {', '.join(sorted(EVALUATORS))}"
        ) from None
