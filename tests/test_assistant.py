"""Tests for the assistant summary helper."""

from veridis.assistant import assistant_query
from veridis.models.event import SystemStatus


def test_idle_summary_without_events(event_store):
    reply = assistant_query(event_store.current_state())

    assert reply.status == SystemStatus.IDLE
    assert reply.summary == "System is idle. No recent activity."
    assert reply.suggested_actions == ["Check system status", "Emit a test event", "Review recent changes"]
    assert reply.last_event is None
    assert reply.recent_events is None


def test_critical_summary(event_store):
    event_store.append({"level": "critical", "message": "Disk full"})

    reply = assistant_query(event_store.current_state())

    assert reply.status == SystemStatus.ALERT
    assert reply.summary == "Critical alert: Disk full"
    assert reply.suggested_actions[0] == "Review alert details"


def test_warning_and_info_summaries(event_store):
    event_store.append({"level": "warning", "message": "Queue backing up"})
    assert assistant_query(event_store.current_state()).summary == "Attention required: Queue backing up"

    event_store.append({"message": "All clear"})
    reply = assistant_query(event_store.current_state())
    assert reply.summary == "Info: All clear"
    assert reply.status == SystemStatus.IDLE


def test_verbose_includes_ten_newest_first(event_store):
    for i in range(15):
        event_store.append({"message": f"m{i}"})

    reply = assistant_query(event_store.current_state(), verbose=True)

    assert [e.message for e in reply.recent_events] == [f"m{i}" for i in range(14, 4, -1)]
    assert reply.model_dump(mode="json", by_alias=True)["suggestedActions"]
