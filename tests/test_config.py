import logging

from portal.config import read_delete_policy


def test_delete_policy_accepts_known_values():
    assert read_delete_policy(" CASCADE ") == "cascade"
    assert read_delete_policy("orphan") == "orphan"
    assert read_delete_policy(None) == "orphan"


def test_unknown_delete_policy_falls_back_to_orphan(caplog):
    with caplog.at_level(logging.WARNING, logger="portal.config"):
        assert read_delete_policy("purge") == "orphan"

    assert "purge" in caplog.text
