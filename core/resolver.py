# =============================================================================
# core/resolver.py  —  Result Resolver
# =============================================================================
#
# resolve(response, label, path, targets) pulls one step's payload out of a
# BatchResponse and decides whether the caller should see a value or an
# error.  Three kinds of "no":
#
#   label not in the response       → ProtocolError (contract broken)
#   step answered with "error"      → CapabilityUnavailableError when the
#                                     method/namespace is unsupported,
#                                     DomainRejectionError otherwise
#   targeted id in a rejection set  → DomainRejectionError naming ONLY the
#                                     rejected ids; the rest go in .succeeded
#
# Rejection sets (RFC 8620 §5.1 / §5.3):
#   notFound      list of ids                     (from /get)
#   notCreated    {creation id: SetError}         (from /set create)
#   notUpdated    {id: SetError}                  (from /set update)
#   notDestroyed  {id: SetError}                  (from /set destroy)
# =============================================================================

from typing import Any, Iterable, Optional

from core.errors import (
    CapabilityUnavailableError,
    DomainRejectionError,
    ProtocolError,
    Rejection,
)
from core.models import BatchResponse

# Method-level error types meaning "this account/server can't do that at all".
UNSUPPORTED_ERROR_TYPES = frozenset({
    "unknownMethod",
    "unknownCapability",
    "accountNotSupportedByMethod",
})

_SET_ERROR_KINDS = ("notCreated", "notUpdated", "notDestroyed")


def resolve(
    response: BatchResponse,
    label: str,
    path: Optional[str] = None,
    targets: Optional[Iterable[str]] = None,
) -> Any:
    """Return the payload of step `label`, optionally projected to `path`.

    Args:
        response: The executor's BatchResponse.
        label:    Step label chosen when the batch was built.
        path:     Optional sub-path such as "list" or "created/draft/id".
                  A missing sub-path yields None, not an error.
        targets:  Ids (or creation ids) the caller cares about.  If any of
                  them appears in a rejection set, DomainRejectionError is
                  raised.  None disables the check.
    """
    method_response = response.get(label)
    if method_response is None:
        raise ProtocolError(f"No response for step {label!r} (got {response.labels})")

    payload = method_response.arguments
    if method_response.is_error:
        raise _method_error(label, payload)

    if targets is not None:
        check_rejections(payload, label, targets)

    if path is None:
        return payload
    return project(payload, path)


def check_rejections(payload: dict, label: str, targets: Iterable[str]) -> None:
    """Raise DomainRejectionError if any targeted id was refused."""
    wanted = list(dict.fromkeys(targets))
    wanted_set = set(wanted)
    rejections = [r for r in collect_rejections(payload) if r.id in wanted_set]
    if not rejections:
        return

    failed = {r.id for r in rejections}
    succeeded = [i for i in wanted if i not in failed]
    summary = ", ".join(f"{r.id} ({r.type})" for r in rejections)
    raise DomainRejectionError(
        f"Step {label!r} rejected {len(failed)} of {len(wanted)} record(s): {summary}",
        rejections=rejections,
        label=label,
        succeeded=succeeded,
    )


def collect_rejections(payload: dict) -> list[Rejection]:
    """All rejections listed in a /get or /set payload, in server order."""
    found: list[Rejection] = []

    not_found = payload.get("notFound") or []
    if isinstance(not_found, dict):
        # Some servers key notFound by id; treat keys as the id list.
        not_found = list(not_found)
    for record_id in not_found:
        found.append(Rejection(id=record_id, kind="notFound", type="notFound"))

    for kind in _SET_ERROR_KINDS:
        entries = payload.get(kind) or {}
        for record_id, set_error in entries.items():
            set_error = set_error if isinstance(set_error, dict) else {}
            found.append(Rejection(
                id=record_id,
                kind=kind,
                type=set_error.get("type", "unknown"),
                description=set_error.get("description"),
            ))
    return found


def project(payload: Any, path: str) -> Any:
    """Walk a "/"-separated path through dicts and list indexes."""
    current = payload
    for part in (p for p in path.strip("/").split("/") if p):
        part = part.replace("~1", "/").replace("~0", "~")
        if isinstance(current, dict):
            if part not in current:
                return None
            current = current[part]
        elif isinstance(current, list) and part.isdigit():
            index = int(part)
            if index >= len(current):
                return None
            current = current[index]
        else:
            return None
    return current


def _method_error(label: str, payload: dict) -> Exception:
    error_type = payload.get("type", "unknown")
    description = payload.get("description")
    message = f"Step {label!r} failed with {error_type}"
    if description:
        message += f": {description}"
    if error_type in UNSUPPORTED_ERROR_TYPES:
        return CapabilityUnavailableError(message)
    return DomainRejectionError(
        message,
        rejections=[Rejection(id=label, kind="error", type=error_type, description=description)],
        label=label,
    )


def not_found_error(record_id: str, label: str) -> DomainRejectionError:
    """Rejection for a /get that came back without the requested record."""
    return DomainRejectionError(
        f"Record {record_id} not found",
        rejections=[Rejection(id=record_id, kind="notFound", type="notFound")],
        label=label,
    )
