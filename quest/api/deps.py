"""Engine instance and event feed shared by the API routes."""

from collections import deque
from datetime import datetime, timezone
from typing import Optional

from ..config import EVENT_BUFFER_SIZE
from ..engine import SessionOrchestrator, Verdict


class EventFeed:
    """Keeps the most recent engine events so HTTP clients can poll them."""

    def __init__(self, maxlen: int = EVENT_BUFFER_SIZE):
        self._events = deque(maxlen=maxlen)

    def verdict_ready(self, verdict: Verdict) -> None:
        self._append("verdict_ready", verdict.challenge_id, {
            "output": verdict.output,
            "success": verdict.success,
        })

    def challenge_completed(self, challenge_id: str) -> None:
        self._append("challenge_completed", challenge_id, {})

    def _append(self, event_type: str, challenge_id: str, payload: dict) -> None:
        self._events.append({
            "type": event_type,
            "challenge_id": challenge_id,
            "payload": payload,
            "created_at": datetime.now(timezone.utc),
        })

    def recent(self, limit: Optional[int] = None) -> list[dict]:
        events = list(self._events)
        if limit is not None:
            events = events[-limit:] if limit > 0 else []
        return events


_feed: Optional[EventFeed] = None
_orchestrator: Optional[SessionOrchestrator] = None


def get_event_feed() -> EventFeed:
    global _feed
    if _feed is None:
        _feed = EventFeed()
    return _feed


def get_orchestrator() -> SessionOrchestrator:
    """Dependency for FastAPI to get the learner's engine (one per process)."""
    global _orchestrator
    if _orchestrator is None:
        feed = get_event_feed()
        _orchestrator = SessionOrchestrator(
            on_verdict_ready=feed.verdict_ready,
            on_challenge_completed=feed.challenge_completed,
        )
    return _orchestrator
