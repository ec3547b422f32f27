"""Tests for the batch builder and its wire rendering (no network)."""

import pytest

from core.batch import BatchBuilder, creation_ref, to_wire
from core.errors import BatchBuildError
from core.models import CORE_CAPABILITY, MAIL_CAPABILITY, BackReference


def build_list_batch(filter_args):
    builder = BatchBuilder(account_id="u1", using=[MAIL_CAPABILITY])
    query = builder.add("Email/query", {"filter": filter_args, "limit": 5}, "query")
    builder.add("Email/get", {"ids": builder.ref(query, "/ids"), "properties": ["id"]}, "emails")
    return builder.build()


class TestBatchBuilder:

    def test_core_capability_comes_first_without_duplicates(self):
        builder = BatchBuilder(using=[MAIL_CAPABILITY, CORE_CAPABILITY, MAIL_CAPABILITY])
        builder.add("Mailbox/get")
        assert builder.build().using == (CORE_CAPABILITY, MAIL_CAPABILITY)

    def test_account_id_is_injected_but_not_overridden(self):
        builder = BatchBuilder(account_id="u1")
        first = builder.add("Mailbox/get", {})
        second = builder.add("Mailbox/get", {"accountId": "other"})
        assert first.arguments["accountId"] == "u1"
        assert second.arguments["accountId"] == "other"

    def test_auto_labels_are_positional(self):
        builder = BatchBuilder()
        builder.add("Mailbox/get")
        builder.add("Identity/get")
        assert builder.build().labels == ["s0", "s1"]

    def test_duplicate_label_fails_fast(self):
        builder = BatchBuilder()
        builder.add("Mailbox/get", {}, "a")
        with pytest.raises(BatchBuildError, match="Duplicate"):
            builder.add("Identity/get", {}, "a")

    def test_reference_to_unknown_step_is_rejected(self):
        builder = BatchBuilder()
        dangling = BackReference(result_of="later", name="Email/query", path="/ids")
        with pytest.raises(BatchBuildError, match="not an earlier step"):
            builder.add("Email/get", {"ids": dangling}, "emails")

    def test_ref_by_unknown_label_is_rejected(self):
        with pytest.raises(BatchBuildError):
            BatchBuilder().ref("nope", "/ids")

    def test_ref_to_step_of_another_batch_is_rejected(self):
        other = BatchBuilder().add("Mailbox/get", {}, "query")
        builder = BatchBuilder()
        builder.add("Email/query", {}, "query")
        with pytest.raises(BatchBuildError, match="not added to this batch"):
            builder.ref(other, "/ids")

    def test_reference_inside_a_list_is_rejected(self):
        builder = BatchBuilder()
        query = builder.add("Email/query", {}, "query")
        with pytest.raises(BatchBuildError):
            builder.add("Email/get", {"ids": [builder.ref(query, "/ids")]}, "emails")

    def test_empty_batch_cannot_be_built(self):
        with pytest.raises(BatchBuildError):
            BatchBuilder().build()

    def test_ref_normalizes_path_and_records_method(self):
        builder = BatchBuilder()
        query = builder.add("Email/query", {}, "query")
        ref = builder.ref(query, "ids")
        assert ref == BackReference(result_of="query", name="Email/query", path="/ids")

    def test_arguments_are_deep_copied(self):
        shared = {"filter": {"inMailbox": "mb1"}}
        builder = BatchBuilder(account_id="u1")
        step = builder.add("Email/query", shared, "q1")
        shared["filter"]["inMailbox"] = "changed"

        assert step.arguments["filter"]["inMailbox"] == "mb1"
        assert "accountId" not in shared

    def test_building_twice_is_identical(self):
        args = {"inMailbox": "mb1"}
        first = build_list_batch(args)
        second = build_list_batch(args)

        assert first == second
        assert to_wire(first) == to_wire(second)
        assert args == {"inMailbox": "mb1"}


class TestWireFormat:

    def test_back_reference_renders_with_hash_key(self):
        wire = to_wire(build_list_batch({"text": "invoice"}))

        assert wire["using"] == [CORE_CAPABILITY, MAIL_CAPABILITY]
        query_call, get_call = wire["methodCalls"]
        assert query_call == [
            "Email/query",
            {"filter": {"text": "invoice"}, "limit": 5, "accountId": "u1"},
            "query",
        ]
        assert get_call[0] == "Email/get"
        assert get_call[2] == "emails"
        assert "ids" not in get_call[1]
        assert get_call[1]["#ids"] == {"resultOf": "query", "name": "Email/query", "path": "/ids"}

    def test_creation_ref(self):
        assert creation_ref("draft") == "#draft"
