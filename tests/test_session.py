"""Tests for the session orchestrator."""

import asyncio

import pytest
from quest.challenges import UnknownChallengeError
from quest.engine import (
    SessionOrchestrator,
    SessionState,
    ChallengeLockedError,
    SimulatedEvaluator,
    SandboxEvaluator,
)

HELLO = 'print("Hello, World!")'
COMPLETION_DELAY = 0.01


class Recorder:
    """Collects emitted events."""

    def __init__(self):
        self.verdicts = []
        self.completed = []


@pytest.fixture
def events():
    return Recorder()


@pytest.fixture
def orchestrator(events):
    return SessionOrchestrator(
        evaluator=SimulatedEvaluator(),
        run_latency=0,
        completion_delay=COMPLETION_DELAY,
        on_verdict_ready=events.verdicts.append,
        on_challenge_completed=events.completed.append,
    )


async def solve(orchestrator, challenge_id, code):
    """Open, edit, run and wait out the completion delay."""
    orchestrator.open_challenge(challenge_id)
    orchestrator.edit_submission(code)
    verdict = await orchestrator.run_submission()
    await asyncio.sleep(COMPLETION_DELAY * 5)
    return verdict


class TestOpen:
    """Test opening challenges."""

    def test_open_starts_editing_with_template(self, orchestrator):
        view = orchestrator.open_challenge("hello-world")
        assert view.state is SessionState.EDITING
        assert view.submission == "# Write your code here\n"
        assert view.output is None
        assert view.success is None
        assert view.hint_index == 0
        assert not view.hints_revealed

    def test_unknown_challenge_raises(self, orchestrator):
        with pytest.raises(UnknownChallengeError):
            orchestrator.open_challenge("nope")
        assert orchestrator.session is None

    def test_locked_challenge_raises(self, orchestrator):
        with pytest.raises(ChallengeLockedError):
            orchestrator.open_challenge("variables")

    def test_reopen_replaces_session(self, orchestrator):
        first = orchestrator.open_challenge("hello-world")
        second = orchestrator.open_challenge("hello-world")
        assert first.session_id != second.session_id

    def test_no_session_commands_are_noops(self, orchestrator):
        assert orchestrator.edit_submission("x") is False
        assert orchestrator.reset_submission() is False
        assert orchestrator.close_challenge() is False
        assert orchestrator.toggle_hints() is None
        assert orchestrator.next_hint() is None
        assert orchestrator.session_view() is None
        assert asyncio.run(orchestrator.run_submission()) is None


class TestRun:
    """Test the run lifecycle."""

    def test_success_records_progress_and_completes(self, orchestrator, events):
        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            verdict = await orchestrator.run_submission()

            assert verdict.success
            assert verdict.output == "Hello, World!"
            assert orchestrator.session.state is SessionState.SUCCEEDED
            assert events.verdicts == [verdict]
            assert events.completed == []  # Not until the display delay passes

            await asyncio.sleep(COMPLETION_DELAY * 5)

        asyncio.run(scenario())

        assert events.completed == ["hello-world"]
        assert orchestrator.session is None
        snapshot = orchestrator.progress_snapshot()
        assert snapshot.experience == 100
        assert snapshot.level == 2
        assert snapshot.completed_count == 1

    def test_failed_run(self, orchestrator, events):
        """The unmodified template fails without touching progression."""
        async def scenario():
            orchestrator.open_challenge("hello-world")
            return await orchestrator.run_submission()

        verdict = asyncio.run(scenario())

        assert not verdict.success
        assert verdict.output == "Code executed successfully!"
        view = orchestrator.session_view()
        assert view.state is SessionState.FAILED
        assert view.output == "Code executed successfully!"
        assert view.success is False
        assert orchestrator.progress_snapshot().experience == 50
        assert events.completed == []

    def test_run_while_running_ignored(self, orchestrator):
        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            first = asyncio.create_task(orchestrator.run_submission())
            await asyncio.sleep(0)
            assert orchestrator.session.state is SessionState.RUNNING

            second = await orchestrator.run_submission()
            return await first, second

        first, second = asyncio.run(scenario())
        assert first.success
        assert second is None
        assert orchestrator.progress_snapshot().completed_count == 1

    def test_run_after_success_ignored(self, orchestrator):
        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            await orchestrator.run_submission()
            return await orchestrator.run_submission()

        assert asyncio.run(scenario()) is None
        assert orchestrator.progress_snapshot().completed_count == 1

    def test_retry_after_failure(self, orchestrator):
        """Editing a failed submission returns to editing and allows a new run."""
        async def scenario():
            orchestrator.open_challenge("hello-world")
            failed = await orchestrator.run_submission()
            assert orchestrator.edit_submission(HELLO)
            assert orchestrator.session.state is SessionState.EDITING
            assert orchestrator.session.verdict is None
            passed = await orchestrator.run_submission()
            return failed, passed

        failed, passed = asyncio.run(scenario())
        assert not failed.success
        assert passed.success

    def test_run_from_failed_requires_edit_or_reset(self, orchestrator):
        async def scenario():
            orchestrator.open_challenge("hello-world")
            await orchestrator.run_submission()
            return await orchestrator.run_submission()

        assert asyncio.run(scenario()) is None
        assert orchestrator.session.state is SessionState.FAILED

    def test_edit_ignored_while_succeeded(self, orchestrator):
        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            await orchestrator.run_submission()
            return orchestrator.edit_submission("something else")

        assert asyncio.run(scenario()) is False
        assert orchestrator.session.submission == HELLO

    def test_externally_cancelled_run_returns_to_editing(self, orchestrator):
        async def scenario():
            orchestrator.open_challenge("hello-world")
            task = asyncio.create_task(orchestrator.run_submission())
            await asyncio.sleep(0)
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                return True
            return False

        assert asyncio.run(scenario())
        assert orchestrator.session.state is SessionState.EDITING


class TestReset:
    """Test resetting a submission."""

    def test_reset_twice_from_failed(self, orchestrator):
        """Resetting is idempotent."""
        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission("print('nope')")
            await orchestrator.run_submission()
            orchestrator.toggle_hints()
            orchestrator.next_hint()

        asyncio.run(scenario())
        assert orchestrator.session.state is SessionState.FAILED

        assert orchestrator.reset_submission()
        once = orchestrator.session_view()
        assert orchestrator.reset_submission()
        twice = orchestrator.session_view()

        assert once == twice
        assert twice.state is SessionState.EDITING
        assert twice.submission == "# Write your code here\n"
        assert twice.hint_index == 0
        assert not twice.hints_revealed
        assert twice.output is None
        assert twice.success is None

    def test_reset_while_running_ignored(self, orchestrator):
        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            task = asyncio.create_task(orchestrator.run_submission())
            await asyncio.sleep(0)
            accepted = orchestrator.reset_submission()
            await task
            return accepted

        assert asyncio.run(scenario()) is False
        assert orchestrator.session.submission == HELLO


class TestClose:
    """Test closing sessions and discarding in-flight runs."""

    def test_close_right_after_run(self, orchestrator, events):
        """A pending success is discarded: no event, no progression change."""
        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            task = asyncio.create_task(orchestrator.run_submission())
            await asyncio.sleep(0)
            assert orchestrator.close_challenge()
            result = await task
            await asyncio.sleep(COMPLETION_DELAY * 5)
            return result

        assert asyncio.run(scenario()) is None
        assert events.completed == []
        assert events.verdicts == []
        snapshot = orchestrator.progress_snapshot()
        assert snapshot.experience == 50
        assert snapshot.completed_count == 0

    def test_close_with_slow_evaluation(self, events):
        """Closing during the latency window also discards the result."""
        orchestrator = SessionOrchestrator(
            evaluator=SimulatedEvaluator(),
            run_latency=0.05,
            completion_delay=COMPLETION_DELAY,
            on_verdict_ready=events.verdicts.append,
            on_challenge_completed=events.completed.append,
        )

        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            task = asyncio.create_task(orchestrator.run_submission())
            await asyncio.sleep(0.01)
            orchestrator.close_challenge()
            await asyncio.sleep(0.1)
            return await task

        assert asyncio.run(scenario()) is None
        assert events.completed == []
        assert orchestrator.progress_snapshot().completed_count == 0

    def test_reopen_drops_stale_result(self, orchestrator):
        """A result for a replaced session never lands on the new one."""
        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            task = asyncio.create_task(orchestrator.run_submission())
            await asyncio.sleep(0)
            orchestrator.open_challenge("hello-world")
            return await task

        assert asyncio.run(scenario()) is None
        assert orchestrator.session.state is SessionState.EDITING
        assert orchestrator.session.output is None
        assert orchestrator.progress_snapshot().completed_count == 0

    def test_close_during_completion_delay(self, events):
        """The award stands and completion is signalled once, immediately."""
        orchestrator = SessionOrchestrator(
            evaluator=SimulatedEvaluator(),
            run_latency=0,
            completion_delay=0.05,
            on_challenge_completed=events.completed.append,
        )

        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            await orchestrator.run_submission()
            orchestrator.close_challenge()
            assert events.completed == ["hello-world"]
            await asyncio.sleep(0.1)

        asyncio.run(scenario())
        assert events.completed == ["hello-world"]
        assert orchestrator.progress_snapshot().completed_count == 1


class TestProgression:
    """Test unlock state and awards across several sessions."""

    def test_listing_before_and_after(self, orchestrator):
        listing = orchestrator.list_challenges()
        assert [c.action for c in listing] == ["start", "locked", "locked"]
        assert listing[0].preview == "# Write your code here\n"
        assert listing[1].preview is None

        asyncio.run(solve(orchestrator, "hello-world", HELLO))

        listing = orchestrator.list_challenges()
        assert [c.action for c in listing] == ["review", "start", "locked"]
        assert listing[0].completed
        assert listing[1].unlocked and not listing[1].completed

    def test_review_does_not_award_twice(self, orchestrator, events):
        asyncio.run(solve(orchestrator, "hello-world", HELLO))
        verdict = asyncio.run(solve(orchestrator, "hello-world", HELLO))

        assert verdict.success
        assert events.completed == ["hello-world", "hello-world"]
        snapshot = orchestrator.progress_snapshot()
        assert snapshot.completed_count == 1
        assert snapshot.experience == 100

    def test_full_run_through(self, orchestrator):
        asyncio.run(solve(orchestrator, "hello-world", HELLO))
        asyncio.run(solve(orchestrator, "variables", "name = 'Alice'\nage = 25\nprint(name, age)"))
        asyncio.run(solve(orchestrator, "loops", "for i in range(1, 6):\n    print(i)"))

        snapshot = orchestrator.progress_snapshot()
        assert snapshot.completed_count == 3
        assert snapshot.experience == 200
        assert snapshot.level == 3
        assert snapshot.all_completed
        assert all(c.completed for c in orchestrator.list_challenges())

        earned = {a.id for a in orchestrator.achievements() if a.unlocked}
        assert earned == {"first-steps", "getting-started", "code-warrior"}


class TestHints:
    """Test hint commands through the orchestrator."""

    def test_toggle_and_advance(self, orchestrator):
        orchestrator.open_challenge("hello-world")
        view = orchestrator.session_view()
        assert view.hint_label == "Hint 1 of 3"

        assert orchestrator.toggle_hints() is True
        assert orchestrator.next_hint() == 1
        assert orchestrator.next_hint() == 2
        assert orchestrator.next_hint() == 2

        view = orchestrator.session_view()
        assert view.hints_revealed
        assert view.current_hint == 'The complete line should be: print("Hello, World!")'
        assert not view.has_next_hint


class BrokenExecutor:
    """Executor whose child process cannot be started."""

    def run(self, code):
        raise OSError(11, "Resource temporarily unavailable")


class BrokenEvaluator:
    name = "broken"

    def evaluate(self, challenge_id, submission):
        raise RuntimeError("evaluator crashed")


class TestEvaluationErrors:
    """Test that a failing evaluator never strands a session in running."""

    def test_sandbox_failure_is_a_failed_run(self, events):
        orchestrator = SessionOrchestrator(
            evaluator=SandboxEvaluator(BrokenExecutor()),
            run_latency=0,
            on_verdict_ready=events.verdicts.append,
        )

        async def scenario():
            orchestrator.open_challenge("hello-world")
            orchestrator.edit_submission(HELLO)
            return await orchestrator.run_submission()

        verdict = asyncio.run(scenario())

        assert not verdict.success
        assert verdict.output.startswith("Error: BlockingIOError:")
        assert orchestrator.session.state is SessionState.FAILED
        assert events.verdicts == [verdict]
        assert orchestrator.progress_snapshot().completed_count == 0

        # The learner can retry
        assert orchestrator.edit_submission(HELLO)
        assert orchestrator.reset_submission()

    def test_evaluator_exception_returns_to_editing(self):
        orchestrator = SessionOrchestrator(evaluator=BrokenEvaluator(), run_latency=0)

        async def scenario():
            orchestrator.open_challenge("hello-world")
            with pytest.raises(RuntimeError, match="evaluator crashed"):
                await orchestrator.run_submission()

        asyncio.run(scenario())

        session = orchestrator.session
        assert session.state is SessionState.EDITING
        assert session.output is None
        assert orchestrator.edit_submission(HELLO)
        assert orchestrator.reset_submission()
        assert orchestrator.progress_snapshot().completed_count == 0
