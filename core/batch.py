# =============================================================================
# core/batch.py  —  Batch Request Builder
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Assembles an ordered list of method calls into one Batch.  A later step
#   can use the output of an earlier one without a second round trip, by
#   putting a BackReference where a literal value would go:
#
#       builder = BatchBuilder(account_id="u1", using=[MAIL_CAPABILITY])
#       query = builder.add("Email/query", {"filter": {"text": "invoice"}}, "query")
#       builder.add("Email/get", {"ids": builder.ref(query, "/ids")}, "emails")
#       batch = builder.build()
#
#   On the wire the second step's "ids" argument becomes
#       "#ids": {"resultOf": "query", "name": "Email/query", "path": "/ids"}
#
# RULES ENFORCED HERE (all raise BatchBuildError immediately):
#   - step labels are unique within a batch
#   - a BackReference may only point at a step added EARLIER
#
# The builder does no I/O.  Arguments are deep-copied on the way in, so the
# caller's dicts are never mutated and two steps never share nested objects.
# =============================================================================

import copy
from typing import Any, Iterable, Optional, Union

from core.errors import BatchBuildError
from core.models import CORE_CAPABILITY, BackReference, Batch, BatchStep


def creation_ref(creation_id: str) -> str:
    """Reference to a record created earlier in the same batch ("#draft")."""
    return f"#{creation_id}"


class BatchBuilder:
    """Collects steps for one batch; see module docstring."""

    def __init__(self, account_id: Optional[str] = None, using: Iterable[str] = ()):
        self.account_id = account_id
        self._using: list[str] = [CORE_CAPABILITY]
        self._steps: list[BatchStep] = []
        self._labels: dict[str, BatchStep] = {}
        self.require(*using)

    def require(self, *capabilities: str) -> "BatchBuilder":
        """Declare capability namespaces the batch needs (order kept, no dups)."""
        for capability in capabilities:
            if capability not in self._using:
                self._using.append(capability)
        return self

    def add(
        self,
        method: str,
        arguments: Optional[dict[str, Any]] = None,
        label: Optional[str] = None,
    ) -> BatchStep:
        """Append a step and return it (pass it to ref() in later steps)."""
        if label is None:
            label = f"s{len(self._steps)}"
        if label in self._labels:
            raise BatchBuildError(f"Duplicate step label {label!r} in batch")

        args = copy.deepcopy(arguments) if arguments else {}
        if self.account_id is not None:
            args.setdefault("accountId", self.account_id)
        for ref in _iter_references(args):
            if ref.result_of not in self._labels:
                raise BatchBuildError(
                    f"Step {label!r} references {ref.result_of!r}, "
                    f"which is not an earlier step of this batch"
                )
        _render(args)  # fail now on a reference placed inside a list

        step = BatchStep(method=method, arguments=args, label=label)
        self._steps.append(step)
        self._labels[label] = step
        return step

    def ref(self, step: Union[BatchStep, str], path: str) -> BackReference:
        """Point at `path` inside the result of an already-added step."""
        if isinstance(step, str):
            if step not in self._labels:
                raise BatchBuildError(f"Unknown step label {step!r}")
            step = self._labels[step]
        elif self._labels.get(step.label) is not step:
            raise BatchBuildError(f"Step {step.label!r} was not added to this batch")
        if not path.startswith("/"):
            path = "/" + path
        return BackReference(result_of=step.label, name=step.method, path=path)

    def build(self) -> Batch:
        if not self._steps:
            raise BatchBuildError("Cannot build an empty batch")
        return Batch(using=tuple(self._using), steps=tuple(self._steps))


# -----------------------------------------------------------------------------
# Serialization
# -----------------------------------------------------------------------------
def to_wire(batch: Batch) -> dict:
    """Render a Batch as the JSON request envelope."""
    return {
        "using": list(batch.using),
        "methodCalls": [
            [step.method, _render(step.arguments), step.label] for step in batch.steps
        ],
    }


def _render(value: Any) -> Any:
    if isinstance(value, dict):
        rendered = {}
        for key, item in value.items():
            if isinstance(item, BackReference):
                rendered[f"#{key}"] = item.to_wire()
            else:
                rendered[key] = _render(item)
        return rendered
    if isinstance(value, (list, tuple)):
        return [_render(item) for item in value]
    if isinstance(value, BackReference):
        # Only valid as the value of an argument key.
        raise BatchBuildError("A BackReference must be the value of an argument key")
    return value


def _iter_references(value: Any):
    if isinstance(value, BackReference):
        yield value
    elif isinstance(value, dict):
        for item in value.values():
            yield from _iter_references(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_references(item)
