# =============================================================================
# core/executor.py  —  Batch Executor
# =============================================================================
#
# execute(batch) does exactly one POST and turns the reply into a
# BatchResponse.  It never retries, reorders or de-duplicates.
#
# FAILURE MAPPING:
#   401 / 403                      → AuthenticationError
#   any other non-2xx              → TransportError (status, reason, problem type)
#   body not JSON / wrong shape    → ProtocolError
#   response count != step count   → ProtocolError
#   label mismatch at a position   → ProtocolError
#
# Method-level failures ("error" responses for a single step) are NOT raised
# here: the batch as a whole succeeded.  The resolver decides what they mean.
# =============================================================================

import json
import logging

from core.batch import to_wire
from core.errors import AuthenticationError, ProtocolError, TransportError
from core.models import Batch, BatchResponse, MethodResponse, Session
from core.session import SessionCache

log = logging.getLogger(__name__)


class BatchExecutor:
    """Sends batches to the account's API endpoint."""

    def __init__(self, sessions: SessionCache, transport):
        self.sessions = sessions
        self.transport = transport

    @property
    def session(self) -> Session:
        return self.sessions.get()

    def execute(self, batch: Batch) -> BatchResponse:
        session = self.sessions.get()
        payload = json.dumps(to_wire(batch)).encode("utf-8")
        log.debug(
            "Batch → %s",
            ", ".join(f"{s.label}:{s.method}" for s in batch.steps),
        )

        response = self.transport.send("POST", session.api_url, self.sessions.auth.headers(), payload)
        if not response.ok:
            raise _status_error(response)

        parsed = _parse_body(response.body)
        _check_alignment(batch, parsed)
        log.debug(
            "Batch ← %s",
            ", ".join(f"{r.label}:{r.name}" for r in parsed.responses),
        )
        return parsed


def _status_error(response) -> TransportError:
    problem_type = None
    detail = ""
    try:
        problem = json.loads(response.body)
        if isinstance(problem, dict):
            problem_type = problem.get("type")
            detail = problem.get("detail") or ""
    except (ValueError, UnicodeDecodeError):
        pass  # not a problem-details body; status line is enough

    message = f"JMAP request failed: {response.status} {response.reason}"
    if problem_type:
        message += f" ({problem_type})"
    if detail:
        message += f": {detail}"

    cls = AuthenticationError if response.status in (401, 403) else TransportError
    return cls(message, status=response.status, reason=response.reason, problem_type=problem_type)


def _parse_body(body: bytes) -> BatchResponse:
    try:
        data = json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise ProtocolError(f"Batch response is not valid JSON: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("methodResponses"), list):
        raise ProtocolError("Batch response has no methodResponses list")

    responses = []
    for index, entry in enumerate(data["methodResponses"]):
        if (
            not isinstance(entry, list)
            or len(entry) != 3
            or not isinstance(entry[0], str)
            or not isinstance(entry[1], dict)
            or not isinstance(entry[2], str)
        ):
            raise ProtocolError(f"Malformed method response at position {index}: {entry!r}")
        responses.append(MethodResponse(name=entry[0], arguments=entry[1], label=entry[2]))

    return BatchResponse(responses=tuple(responses), session_state=data.get("sessionState"))


def _check_alignment(batch: Batch, response: BatchResponse) -> None:
    # Implicit follow-up responses share their call's label and are folded
    # into that step; after folding, counts and labels must match exactly.
    answered = response.step_labels
    if len(answered) != len(batch):
        raise ProtocolError(
            f"Sent {len(batch)} method calls but received responses for {len(answered)}"
        )
    for position, (step, label) in enumerate(zip(batch.steps, answered)):
        if step.label != label:
            raise ProtocolError(
                f"Response {position} is labelled {label!r}, expected {step.label!r}"
            )
