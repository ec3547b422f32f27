"""Shared fixtures: an in-memory JMAP server stand-in.

FakeTransport answers the session GET with SESSION_DOC and every POST with
the next queued reply.  Each reply is either a list of method responses
([name, args, label] triples), a raw HttpResponse, or a callable that gets
the decoded request envelope and returns one of those.
"""

import json
from collections import deque

import pytest

from core.client import FastmailClient
from core.http import HttpResponse
from core.models import (
    CALENDARS_CAPABILITY,
    CORE_CAPABILITY,
    FASTMAIL_CONTACTS_CAPABILITY,
    MAIL_CAPABILITY,
    SUBMISSION_CAPABILITY,
)
from core.session import FastmailAuth

API_URL = "https://api.test/jmap/api/"
ACCOUNT_ID = "u1"

SESSION_DOC = {
    "apiUrl": API_URL,
    "username": "me@example.com",
    "accounts": {ACCOUNT_ID: {"name": "me@example.com", "accountCapabilities": {}}},
    "capabilities": {
        CORE_CAPABILITY: {},
        MAIL_CAPABILITY: {},
        SUBMISSION_CAPABILITY: {},
        FASTMAIL_CONTACTS_CAPABILITY: {},
        CALENDARS_CAPABILITY: {},
    },
}


def json_response(payload, status=200, reason="OK") -> HttpResponse:
    return HttpResponse(status=status, reason=reason, body=json.dumps(payload).encode())


class FakeTransport:
    """Records every request and replays canned replies in order."""

    def __init__(self, session_doc=None):
        self.session_doc = SESSION_DOC if session_doc is None else session_doc
        self.replies = deque()
        self.requests = []          # (method, url, headers, decoded body or None)

    def queue(self, *replies):
        self.replies.extend(replies)
        return self

    @property
    def batches(self) -> list[dict]:
        """Decoded bodies of every POST, in order."""
        return [body for method, _, _, body in self.requests if method == "POST"]

    def send(self, method, url, headers, body=None):
        decoded = json.loads(body) if body else None
        self.requests.append((method, url, headers, decoded))

        if method == "GET":
            if isinstance(self.session_doc, HttpResponse):
                return self.session_doc
            return json_response(self.session_doc)

        if not self.replies:
            raise AssertionError(f"Unexpected request: {decoded}")
        reply = self.replies.popleft()
        if callable(reply):
            reply = reply(decoded)
        if isinstance(reply, HttpResponse):
            return reply
        return json_response({"methodResponses": reply, "sessionState": "state-1"})


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def client(transport):
    return FastmailClient(FastmailAuth("test-token", "https://api.test"), transport)


@pytest.fixture
def mailboxes():
    return [
        {"id": "mb-inbox", "name": "Inbox", "role": "inbox"},
        {"id": "mb-drafts", "name": "Drafts", "role": "drafts"},
        {"id": "mb-sent", "name": "Sent Items", "role": "sent"},
        {"id": "mb-trash", "name": "Trash", "role": "trash"},
        {"id": "mb-receipts", "name": "Receipts", "role": None},
    ]
