# =============================================================================
# core/errors.py  —  Error Taxonomy
# =============================================================================
#
# Every failure the core can produce is one of the classes below.  Callers
# (the MCP tool layer) catch FastmailError and turn it into a tool error;
# nothing inside core/ logs-and-swallows.
#
#   FastmailError
#   ├── TransportError              network / HTTP failure (status detail)
#   │   └── AuthenticationError     credential missing or rejected
#   ├── ProtocolError               response breaks the batch contract
#   ├── DomainRejectionError        server refused a record-level effect
#   ├── CapabilityUnavailableError  account / server lacks a namespace
#   └── ConfigurationError          well-known container not found
#
# BatchBuildError is a programming error raised while assembling a batch.
# It subclasses ValueError, not FastmailError: it never reaches the network.
# =============================================================================

from dataclasses import dataclass
from typing import Optional


class FastmailError(Exception):
    """Base class for every error raised by the core.

    `context` holds facts about partial progress the caller should still see,
    e.g. {"email_id": ...} when a draft was created but its submission failed.
    """

    def __init__(self, *args, context: Optional[dict] = None):
        super().__init__(*args)
        self.context = dict(context or {})


class TransportError(FastmailError):
    """The HTTP exchange failed (connection error or non-2xx status)."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: str = "",
        problem_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.problem_type = problem_type


class AuthenticationError(TransportError):
    """The API token is missing or was rejected by the server."""


class ProtocolError(FastmailError):
    """The server's response violates the structural batch contract."""


class CapabilityUnavailableError(FastmailError):
    """A method or capability namespace is not usable for this account."""

    def __init__(self, message: str, capability: Optional[str] = None):
        super().__init__(message)
        self.capability = capability


class ConfigurationError(FastmailError):
    """A required well-known container could not be resolved."""

    def __init__(self, message: str, role: Optional[str] = None, name_hint: Optional[str] = None):
        super().__init__(message)
        self.role = role
        self.name_hint = name_hint


class BatchBuildError(ValueError):
    """A batch was assembled incorrectly (duplicate label, bad reference)."""


# -----------------------------------------------------------------------------
# Rejection — one record the server declined to find/create/update/destroy
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Rejection:
    """A single record-level refusal, reason codes kept verbatim."""

    id: str                            # Record id or creation id
    kind: str                          # "notFound", "notCreated", "notUpdated", "notDestroyed", "error"
    type: str                          # JMAP SetError type, e.g. "notFound", "forbidden"
    description: Optional[str] = None

    def to_dict(self) -> dict:
        data = {"id": self.id, "kind": self.kind, "type": self.type}
        if self.description:
            data["description"] = self.description
        return data


class DomainRejectionError(FastmailError):
    """The server processed the batch but refused specific record-level effects.

    This is the only error a caller might reasonably act on (e.g. retry with
    corrected input).  It carries:

      - rejections: the refused records, with their reason codes
      - label:      the batch step the refusals came from
      - succeeded:  ids from the same step that were NOT refused
      - context:    see FastmailError
    """

    def __init__(
        self,
        message: str,
        rejections: list[Rejection],
        label: Optional[str] = None,
        succeeded: Optional[list[str]] = None,
        context: Optional[dict] = None,
    ):
        super().__init__(message, context=context)
        self.rejections = list(rejections)
        self.label = label
        self.succeeded = list(succeeded or [])

    @property
    def failed_ids(self) -> set[str]:
        return {r.id for r in self.rejections}

    @property
    def reasons(self) -> dict[str, str]:
        return {r.id: r.type for r in self.rejections}

    def to_dict(self) -> dict:
        return {
            "error": str(self),
            "step": self.label,
            "rejections": [r.to_dict() for r in self.rejections],
            "succeeded": self.succeeded,
            "context": self.context,
        }
