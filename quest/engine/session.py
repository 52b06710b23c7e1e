"""
Challenge session lifecycle.

States: editing -> running -> succeeded | failed
        failed -> editing (retry), succeeded -> closed (after a display delay)
        any state -> closed (learner closes the challenge)

The orchestrator is the only writer of session and progression state. The
single suspension point is run_submission(); every run is tagged with the
session that issued it, and a result arriving for a session that is no
longer active is dropped without touching progression.
"""

import asyncio
import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..challenges import Challenge, ChallengeCatalog, Difficulty
from ..config import RUN_LATENCY_SECONDS, COMPLETION_DELAY_SECONDS
from .evaluator import make_evaluator
from .hints import HintController
from .judge import Verdict, render_verdict
from .progress import ProgressTracker, ProgressSnapshot, Achievement

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    EDITING = "editing"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CLOSED = "closed"


VALID_TRANSITIONS: dict[SessionState, list[SessionState]] = {
    SessionState.EDITING: [SessionState.EDITING, SessionState.RUNNING, SessionState.CLOSED],
    # running -> editing only when the run itself is cancelled from outside
    SessionState.RUNNING: [SessionState.SUCCEEDED, SessionState.FAILED, SessionState.EDITING, SessionState.CLOSED],
    SessionState.SUCCEEDED: [SessionState.CLOSED],
    SessionState.FAILED: [SessionState.EDITING, SessionState.CLOSED],
    SessionState.CLOSED: [],  # terminal
}


def can_transition(current: SessionState, target: SessionState) -> bool:
    return target in VALID_TRANSITIONS.get(current, [])


class SessionStateError(Exception):
    """Raised when the orchestrator itself attempts an invalid transition."""


class ChallengeLockedError(Exception):
    """Raised when opening a challenge whose predecessors are not completed."""

    def __init__(self, challenge_id: str):
        self.challenge_id = challenge_id
        super().__init__(f"Challenge '{challenge_id}' is locked")


@dataclass
class ChallengeSession:
    """One open attempt at a challenge."""
    challenge: Challenge
    submission: str
    hints: HintController
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
    state: SessionState = SessionState.EDITING
    output: Optional[str] = None
    verdict: Optional[Verdict] = None

    @property
    def success(self) -> Optional[bool]:
        """True/False after a run, None before the first run."""
        return self.verdict.success if self.verdict else None


@dataclass(frozen=True)
class SessionView:
    """Read-only copy of the open session for the presentation layer."""
    session_id: str
    challenge_id: str
    state: SessionState
    submission: str
    output: Optional[str]
    success: Optional[bool]
    expected_output: str
    hints_revealed: bool
    hint_index: int
    hint_count: int
    current_hint: Optional[str]
    has_next_hint: bool
    hint_label: str


@dataclass(frozen=True)
class ChallengeListing:
    """A catalog entry combined with the learner's unlock state."""
    id: str
    title: str
    description: str
    difficulty: Difficulty
    unlocked: bool
    completed: bool
    stars: int
    estimated_time: str
    hint_count: int
    preview: Optional[str]  # Hidden while locked

    @property
    def action(self) -> str:
        if not self.unlocked:
            return "locked"
        return "review" if self.completed else "start"


class SessionOrchestrator:
    """
    Coordinates evaluation, judging, progression and hints for one learner.

    Usage:
        orchestrator = SessionOrchestrator(on_challenge_completed=print)
        orchestrator.open_challenge("hello-world")
        orchestrator.edit_submission('print("Hello, World!")')
        verdict = await orchestrator.run_submission()
    """

    def __init__(
        self,
        catalog: Optional[ChallengeCatalog] = None,
        progress: Optional[ProgressTracker] = None,
        evaluator=None,
        run_latency: float = RUN_LATENCY_SECONDS,
        completion_delay: float = COMPLETION_DELAY_SECONDS,
        on_verdict_ready: Optional[Callable[[Verdict], None]] = None,
        on_challenge_completed: Optional[Callable[[str], None]] = None,
    ):
        self.catalog = catalog or ChallengeCatalog()
        self.progress = progress or ProgressTracker(total_challenges=len(self.catalog))
        self.evaluator = evaluator or make_evaluator()
        self.run_latency = run_latency
        self.completion_delay = completion_delay
        self.on_verdict_ready = on_verdict_ready
        self.on_challenge_completed = on_challenge_completed

        self._session: Optional[ChallengeSession] = None
        self._pending_run: Optional[asyncio.Future] = None
        self._pending_completion: Optional[asyncio.TimerHandle] = None

    # ============ Queries ============

    @property
    def session(self) -> Optional[ChallengeSession]:
        return self._session

    def list_challenges(self) -> list[ChallengeListing]:
        listings = []
        for ordinal, challenge in enumerate(self.catalog):
            unlocked = self.progress.is_unlocked(ordinal)
            listings.append(ChallengeListing(
                id=challenge.id,
                title=challenge.title,
                description=challenge.description,
                difficulty=challenge.difficulty,
                unlocked=unlocked,
                completed=self.progress.is_completed(ordinal),
                stars=challenge.stars,
                estimated_time=challenge.estimated_time,
                hint_count=len(challenge.hints),
                preview=challenge.preview if unlocked else None,
            ))
        return listings

    def progress_snapshot(self) -> ProgressSnapshot:
        return self.progress.snapshot()

    def achievements(self) -> list[Achievement]:
        return self.progress.achievements()

    def session_view(self) -> Optional[SessionView]:
        session = self._session
        if session is None:
            return None
        hints = session.hints
        return SessionView(
            session_id=session.id,
            challenge_id=session.challenge.id,
            state=session.state,
            submission=session.submission,
            output=session.output,
            success=session.success,
            expected_output=session.challenge.expected_output,
            hints_revealed=hints.revealed,
            hint_index=hints.current_index,
            hint_count=len(hints.hints),
            current_hint=hints.current_hint,
            has_next_hint=hints.has_next,
            hint_label=hints.label,
        )

    # ============ Commands ============

    def open_challenge(self, challenge_id: str) -> SessionView:
        """
        Start a session on `challenge_id`, closing any session already open.

        Raises UnknownChallengeError for ids outside the catalog and
        ChallengeLockedError for challenges not yet unlocked.
        """
        challenge = self.catalog.get(challenge_id)
        if not self.progress.is_unlocked(self.catalog.index_of(challenge_id)):
            raise ChallengeLockedError(challenge_id)

        if self._session is not None:
            self.close_challenge()

        self._session = ChallengeSession(
            challenge=challenge,
            submission=challenge.template_code,
            hints=HintController.for_challenge(challenge),
        )
        logger.info("Opened challenge %s (session %s)", challenge_id, self._session.id)
        return self.session_view()

    def edit_submission(self, text: str) -> bool:
        session = self._session
        if session is None:
            return False
        if session.state is SessionState.FAILED:
            # Editing after a failed run starts the retry
            self._clear_result(session)
            self._transition(session, SessionState.EDITING)
        if session.state is not SessionState.EDITING:
            logger.debug("Ignoring edit in state %s", session.state.value)
            return False
        session.submission = text
        return True

    async def run_submission(self) -> Optional[Verdict]:
        """
        Evaluate the current submission after the simulated latency.

        Returns the verdict, or None when the request was ignored (no session,
        not editing) or the session was closed before the result arrived.
        """
        session = self._session
        if session is None or not can_transition(session.state, SessionState.RUNNING):
            logger.debug("Ignoring run request in state %s", session.state.value if session else None)
            return None

        self._transition(session, SessionState.RUNNING)
        self._clear_result(session)
        pending = asyncio.ensure_future(
            self._execute(session.challenge.id, session.submission)
        )
        self._pending_run = pending

        try:
            output = await pending
        except asyncio.CancelledError:
            if self._is_running(session):
                # Cancelled from outside, not by close_challenge()
                self._transition(session, SessionState.EDITING)
                raise
            logger.info("Discarded run for closed session %s", session.id)
            return None
        except Exception:
            if self._is_running(session):
                # Leave the learner able to edit and run again
                logger.exception("Evaluation failed for session %s", session.id)
                self._transition(session, SessionState.EDITING)
                raise
            logger.info("Discarded failed run for closed session %s", session.id)
            return None
        finally:
            if self._pending_run is pending:
                self._pending_run = None

        if not self._is_running(session):
            logger.info("Discarded stale result for session %s", session.id)
            return None

        verdict = render_verdict(session.challenge, output)
        session.output = output
        session.verdict = verdict

        if verdict.success:
            self._transition(session, SessionState.SUCCEEDED)
            self._award(session.challenge)
            self._schedule_completion(session)
        else:
            self._transition(session, SessionState.FAILED)

        logger.info(
            "Run for %s: %s", session.challenge.id, "passed" if verdict.success else "failed"
        )
        if self.on_verdict_ready:
            self.on_verdict_ready(verdict)
        return verdict

    def reset_submission(self) -> bool:
        session = self._session
        if session is None or session.state not in (SessionState.EDITING, SessionState.FAILED):
            return False
        session.submission = session.challenge.template_code
        self._clear_result(session)
        session.hints.reset_for_challenge(session.challenge)
        self._transition(session, SessionState.EDITING)
        return True

    def close_challenge(self) -> bool:
        """Discard the open session, cancelling any run still in flight."""
        session = self._session
        if session is None:
            return False

        if self._pending_run is not None:
            self._pending_run.cancel()
            self._pending_run = None

        # The award for a success was already recorded; only the display
        # delay is cut short.
        completion_pending = self._pending_completion is not None
        if completion_pending:
            self._pending_completion.cancel()
            self._pending_completion = None

        self._transition(session, SessionState.CLOSED)
        self._session = None
        logger.info("Closed session %s", session.id)

        if completion_pending:
            self._emit_completed(session.challenge.id)
        return True

    def toggle_hints(self) -> Optional[bool]:
        if self._session is None:
            return None
        return self._session.hints.toggle()

    def next_hint(self) -> Optional[int]:
        if self._session is None:
            return None
        return self._session.hints.advance()

    # ============ Internals ============

    async def _execute(self, challenge_id: str, submission: str) -> str:
        await asyncio.sleep(self.run_latency)
        # Evaluators may block (the sandbox spawns a process)
        return await asyncio.to_thread(self.evaluator.evaluate, challenge_id, submission)

    def _is_running(self, session: ChallengeSession) -> bool:
        return self._session is session and session.state is SessionState.RUNNING

    def _award(self, challenge: Challenge) -> None:
        if self.progress.is_completed(self.catalog.index_of(challenge.id)):
            logger.info("Challenge %s replayed in review, no award", challenge.id)
            return
        self.progress.record_success()

    def _schedule_completion(self, session: ChallengeSession) -> None:
        loop = asyncio.get_running_loop()
        self._pending_completion = loop.call_later(
            self.completion_delay, self._complete, session
        )

    def _complete(self, session: ChallengeSession) -> None:
        self._pending_completion = None
        if self._session is not session:
            return
        self._transition(session, SessionState.CLOSED)
        self._session = None
        self._emit_completed(session.challenge.id)

    def _emit_completed(self, challenge_id: str) -> None:
        logger.info("Challenge completed: %s", challenge_id)
        if self.on_challenge_completed:
            self.on_challenge_completed(challenge_id)

    @staticmethod
    def _clear_result(session: ChallengeSession) -> None:
        session.output = None
        session.verdict = None

    @staticmethod
    def _transition(session: ChallengeSession, target: SessionState) -> None:
        if not can_transition(session.state, target):
            raise SessionStateError(
                f"Cannot move session from '{session.state.value}' to '{target.value}'. "
                f"Allowed: {[s.value for s in VALID_TRANSITIONS[session.state]]}"
            )
        session.state = target
