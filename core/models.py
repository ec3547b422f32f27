# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the batch engine)
# =============================================================================
#
# These dataclasses describe everything that flows between the builder, the
# executor and the resolver.  Records coming back from the server (emails,
# mailboxes, contacts, events) stay plain dicts: the tool layer hands them to
# the agent as JSON and the core never needs more structure than that.
#
# Wire format reminder (JMAP, RFC 8620):
#
#   request   {"using": [...], "methodCalls": [[name, args, label], ...]}
#   response  {"methodResponses": [[name, args, label], ...], "sessionState": ...}
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Iterator, Optional


CORE_CAPABILITY = "urn:ietf:params:jmap:core"
MAIL_CAPABILITY = "urn:ietf:params:jmap:mail"
SUBMISSION_CAPABILITY = "urn:ietf:params:jmap:submission"
CONTACTS_CAPABILITY = "urn:ietf:params:jmap:contacts"
FASTMAIL_CONTACTS_CAPABILITY = "com:fastmail:contacts"
CALENDARS_CAPABILITY = "urn:ietf:params:jmap:calendars"


# -----------------------------------------------------------------------------
# Session — who we are and where to send batches
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Session:
    """Account identity and API endpoint, fetched once per process."""

    api_url: str                       # Endpoint that accepts batch POSTs
    account_id: str                    # First account listed by the server
    capabilities: dict[str, Any] = field(default_factory=dict)
    username: str = ""

    def supports(self, capability: str) -> bool:
        return capability in self.capabilities


# -----------------------------------------------------------------------------
# BackReference — "use the value at <path> in the result of step <label>"
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class BackReference:
    """Placeholder for a value produced by an earlier step of the same batch."""

    result_of: str                     # Label of the earlier step
    name: str                          # Method name of the earlier step
    path: str                          # JSON pointer into its result, e.g. "/ids"

    def to_wire(self) -> dict:
        return {"resultOf": self.result_of, "name": self.name, "path": self.path}


@dataclass(frozen=True)
class BatchStep:
    """One named method invocation inside a batch."""

    method: str                        # e.g. "Email/query"
    arguments: dict[str, Any]          # May contain BackReference values
    label: str                         # Unique within the batch


@dataclass(frozen=True)
class Batch:
    """An ordered list of steps plus the capability namespaces they use."""

    using: tuple[str, ...]
    steps: tuple[BatchStep, ...]

    @property
    def labels(self) -> list[str]:
        return [s.label for s in self.steps]

    def __len__(self) -> int:
        return len(self.steps)


# -----------------------------------------------------------------------------
# Response side
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class MethodResponse:
    """The result of one step.  name == "error" for a method-level failure."""

    name: str
    arguments: dict[str, Any]
    label: str

    @property
    def is_error(self) -> bool:
        return self.name == "error"


@dataclass(frozen=True)
class BatchResponse:
    """Per-step results, in exactly the order the steps were submitted."""

    responses: tuple[MethodResponse, ...]
    session_state: Optional[str] = None

    @property
    def labels(self) -> list[str]:
        return [r.label for r in self.responses]

    @property
    def step_labels(self) -> list[str]:
        """Labels with implicit follow-up responses folded: one entry per step.

        A single call may produce extra responses under its own label (e.g.
        EmailSubmission/set with onSuccessUpdateEmail also answers with an
        implicit Email/set).  A repeat only folds when its method name
        differs from the step's first response; a plain duplicate stays.
        """
        collapsed: list[str] = []
        first_name = None
        for response in self.responses:
            if collapsed and collapsed[-1] == response.label and response.name != first_name:
                continue
            collapsed.append(response.label)
            first_name = response.name
        return collapsed

    def get(self, label: str, name: Optional[str] = None) -> Optional[MethodResponse]:
        """First response for `label` (optionally also matching method `name`)."""
        for response in self.responses:
            if response.label == label and (name is None or response.name == name):
                return response
        return None

    def follow_ups(self, label: str) -> list[MethodResponse]:
        """Implicit responses produced by step `label`, after its own answer."""
        return [r for r in self.responses if r.label == label][1:]

    def __iter__(self) -> Iterator[MethodResponse]:
        return iter(self.responses)

    def __len__(self) -> int:
        return len(self.responses)


# -----------------------------------------------------------------------------
# Operation results that are more than "a list of records"
# -----------------------------------------------------------------------------
@dataclass
class SendResult:
    """Outcome of a successful send: the draft that was created and submitted.

    not_moved lists refusals of the post-send patch (move to Sent, drop
    $draft).  The message was still sent; it just stayed where it was.
    """

    submission_id: str
    email_id: str
    identity_id: str
    from_address: str
    not_moved: list[dict] = field(default_factory=list)


@dataclass
class BulkResult:
    """Outcome of a bulk update where every targeted id succeeded."""

    updated: list[str] = field(default_factory=list)
