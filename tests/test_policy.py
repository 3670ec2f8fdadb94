"""Tests for the static capability table."""

from veridis.authz.policy import DEV_ACTIONS, LITE_ACTIONS, is_allowed
from veridis.models.authz import Role


def test_dev_is_superset_of_lite():
    assert LITE_ACTIONS < DEV_ACTIONS


def test_god_allows_everything_dev_allows():
    for action in DEV_ACTIONS:
        assert is_allowed(Role.GOD, action)


def test_elevated_actions_denied_for_lite():
    for action in DEV_ACTIONS - LITE_ACTIONS:
        assert not is_allowed(Role.LITE, action)
        assert is_allowed(Role.DEV, action)


def test_action_names_are_trimmed():
    assert is_allowed(Role.LITE, "  chat.qa.public ")


def test_empty_action_denied():
    assert not is_allowed(Role.LITE, "")
    assert not is_allowed(Role.DEV, "")
