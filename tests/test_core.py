"""Tests for the VeridisCore operation surface."""

import pytest

from veridis.errors import CodeAlreadyUsed, Forbidden
from veridis.models.authz import Role
from veridis.models.event import SystemStatus

GOD_ID = "g1"


def test_boot_creates_store_file(core, store_path):
    assert store_path.exists()


def test_health(core):
    assert core.health() == {"ok": True, "service": "veridis-core"}


def test_ingest_returns_fresh_snapshot(core):
    state = core.ingest_event({"type": "job", "level": "warning", "message": "Slow"})

    assert state.status == SystemStatus.PROCESSING
    assert state.last_event.message == "Slow"
    assert core.get_state() == state


def test_event_cap_comes_from_config(core):
    for i in range(25):
        core.ingest_event({"message": f"m{i}"})

    assert len(core.get_state().recent_events) == 20
    assert len(core.get_events(100)) == 20
    assert core.get_events(1)[0].message == "m24"


def test_alerts(core):
    core.ingest_event({"level": "critical", "message": "a"})
    core.ingest_event({"level": "info", "message": "b"})

    assert [e.message for e in core.get_alerts(5)] == ["a"]
    assert core.get_alerts(1) == []


def test_authz_flow(core):
    assert core.onboard_user("u1", name="Ana").role == Role.LITE

    with pytest.raises(Forbidden):
        core.create_invite("u1")

    invite = core.create_invite(GOD_ID, ttl_hours=1)
    assert core.redeem_invite("u1", invite.code).role == Role.DEV
    with pytest.raises(CodeAlreadyUsed):
        core.redeem_invite("u1", invite.code)

    check = core.check_permission("u1", "video.pipeline.run")
    assert check.allowed
    assert check.role == Role.DEV


def test_assistant(core):
    core.ingest_event({"level": "critical", "message": "Disk full"})
    assert core.assistant().summary == "Critical alert: Disk full"
