"""Tests for research-step tracking and progress events."""

from wavepulse.agents.progress import ResearchStepTracker
from wavepulse.models.domain import ResearchStep


def test_update_rewrites_in_place_and_appends_new_ids():
    events = []
    tracker = ResearchStepTracker(events.append)
    tracker.update("a", "starting", "in-progress")
    tracker.update("b", "queued", "pending")
    tracker.update("a", "done", "completed")

    assert [(s.id, s.description, s.status) for s in tracker.steps] == [
        ("a", "done", "completed"),
        ("b", "queued", "pending"),
    ]
    assert len(events) == 3
    assert all(e["type"] == "step" for e in events)
    assert events[-1]["data"]["researchSteps"][0] == {"id": "a", "description": "done", "status": "completed"}


def test_merge_overwrites_by_id_and_keeps_order():
    tracker = ResearchStepTracker()
    tracker.update("a", "a1", "in-progress")
    tracker.update("b", "b1", "in-progress")
    tracker.merge([ResearchStep("b", "b2", "completed"), ResearchStep("c", "c1", "failed")])
    assert [(s.id, s.description) for s in tracker.steps] == [("a", "a1"), ("b", "b2"), ("c", "c1")]


def test_fork_copies_steps_and_shares_sink():
    events = []
    tracker = ResearchStepTracker(events.append)
    tracker.update("a", "a1", "in-progress")
    inner = tracker.fork()
    inner.update("a", "a2", "completed")

    assert tracker.get("a").description == "a1"
    assert inner.get("a").description == "a2"
    assert len(events) == 2


def test_fail_in_progress():
    tracker = ResearchStepTracker()
    tracker.update("a", "a", "in-progress")
    tracker.update("b", "b", "completed")
    tracker.update("c", "c", "in-progress")
    assert tracker.fail_in_progress() == 2
    assert [s.status for s in tracker.steps] == ["failed", "completed", "failed"]
    assert tracker.fail_in_progress() == 0


def test_complete_event_carries_steps():
    events = []
    tracker = ResearchStepTracker(events.append)
    tracker.update("a", "a", "completed")
    tracker.complete("answer")
    assert events[-1] == {
        "type": "complete",
        "data": {
            "message": "answer",
            "researchSteps": [{"id": "a", "description": "a", "status": "completed"}],
        },
    }


def test_sink_errors_do_not_break_tracking():
    def broken(event):
        raise ConnectionError("client went away")

    tracker = ResearchStepTracker(broken)
    tracker.update("a", "a", "completed")
    tracker.complete("done")
    assert tracker.get("a").status == "completed"
