"""Tests for role-first, name-fallback container lookup."""

import pytest

from core.containers import find_by_name_or_role, find_container
from core.errors import ConfigurationError


def test_role_tag_wins_over_name_match():
    containers = [
        {"id": "named", "name": "Drafts Folder", "role": None},
        {"id": "tagged", "name": "Entwürfe", "role": "drafts"},
    ]
    assert find_container(containers, "drafts")["id"] == "tagged"


def test_role_tag_listed_first():
    containers = [
        {"id": "tagged", "name": "X", "role": "drafts"},
        {"id": "named", "name": "Drafts Folder", "role": None},
    ]
    assert find_container(containers, "drafts")["id"] == "tagged"


def test_name_substring_fallback_is_case_insensitive():
    containers = [
        {"id": "inbox", "name": "Inbox", "role": "inbox"},
        {"id": "mine", "name": "My Drafts", "role": None},
    ]
    assert find_container(containers, "drafts")["id"] == "mine"


def test_explicit_name_hint():
    containers = [{"id": "bin", "name": "Deleted Items", "role": None}]
    assert find_container(containers, "trash", name_hint="deleted")["id"] == "bin"


def test_neither_match_raises_configuration_error():
    containers = [{"id": "inbox", "name": "Inbox", "role": "inbox"}]
    with pytest.raises(ConfigurationError) as exc_info:
        find_container(containers, "drafts")
    assert exc_info.value.role == "drafts"
    assert exc_info.value.name_hint == "draft"
    assert "not found" in str(exc_info.value)


def test_missing_name_and_role_keys_are_tolerated():
    containers = [{"id": "x"}, {"id": "t", "name": "Trash"}]
    assert find_container(containers, "trash")["id"] == "t"


def test_find_by_name_prefers_exact_name(mailboxes):
    assert find_by_name_or_role(mailboxes, "receipts")["id"] == "mb-receipts"
    assert find_by_name_or_role(mailboxes, "INBOX")["id"] == "mb-inbox"
    assert find_by_name_or_role(mailboxes, "sent")["id"] == "mb-sent"
