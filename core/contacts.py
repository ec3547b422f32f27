# =============================================================================
# core/contacts.py  —  Contacts operations with candidate strategies
# =============================================================================
#
# Fastmail has served contacts through two protocol surfaces:
#
#   1. urn:ietf:params:jmap:contacts   ContactCard/query, ContactCard/get
#   2. com:fastmail:contacts           Contact/query,     Contact/get
#
# Each operation tries the surfaces in that order.  The distinction that
# matters is WHY a strategy failed:
#
#   strategy unsupported  (capability missing from the session, a method-level
#                          unknownMethod/unknownCapability error, or a request
#                          rejected as unknownCapability)      → try the next
#   strategy supported    (record not found, invalid arguments, ...)
#                                                              → stop, report
#
# Only when every strategy is unsupported does the caller get
# CapabilityUnavailableError.
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from core.errors import CapabilityUnavailableError, TransportError
from core.executor import BatchExecutor
from core.models import CONTACTS_CAPABILITY, FASTMAIL_CONTACTS_CAPABILITY
from core.recipes import get_records, query_then_get
from core.resolver import not_found_error

log = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ContactStrategy:
    """One protocol surface for contacts."""

    name: str
    capability: str
    record_type: str
    properties: tuple[str, ...]


JMAP_CONTACT_CARDS = ContactStrategy(
    name="jmap-contacts",
    capability=CONTACTS_CAPABILITY,
    record_type="ContactCard",
    properties=("id", "name", "emails", "phones", "addresses", "notes"),
)

FASTMAIL_CONTACTS = ContactStrategy(
    name="fastmail-contacts",
    capability=FASTMAIL_CONTACTS_CAPABILITY,
    record_type="Contact",
    properties=("id", "name", "emails", "phones", "addresses", "notes"),
)

DEFAULT_STRATEGIES = (JMAP_CONTACT_CARDS, FASTMAIL_CONTACTS)


class ContactsOperations:
    """Address book reads over a shared executor."""

    def __init__(self, executor: BatchExecutor, strategies=DEFAULT_STRATEGIES):
        self.executor = executor
        self.strategies = tuple(strategies)

    def list_contacts(self, limit: int = 50) -> list[dict]:
        return self._first_supported(lambda s: query_then_get(
            self.executor, s.record_type, [s.capability],
            limit=limit,
            properties=list(s.properties),
        ))

    def search_contacts(self, query: str, limit: int = 20) -> list[dict]:
        return self._first_supported(lambda s: query_then_get(
            self.executor, s.record_type, [s.capability],
            filter={"text": query},
            limit=limit,
            properties=list(s.properties),
        ))

    def get_contact(self, contact_id: str) -> dict:
        def fetch(strategy: ContactStrategy) -> dict:
            records = get_records(self.executor, strategy.record_type, [strategy.capability], [contact_id])
            if not records:
                raise not_found_error(contact_id, "records")
            return records[0]

        return self._first_supported(fetch)

    # -------------------------------------------------------------------------
    # Strategy loop
    # -------------------------------------------------------------------------
    def _first_supported(self, attempt: Callable[[ContactStrategy], T]) -> T:
        session = self.executor.session
        tried: list[str] = []

        for strategy in self.strategies:
            # An empty capability map means the server didn't advertise any;
            # in that case let the request itself decide.
            if session.capabilities and not session.supports(strategy.capability):
                log.debug("Skipping %s: %s not in session", strategy.name, strategy.capability)
                tried.append(f"{strategy.name} (not advertised)")
                continue
            try:
                return attempt(strategy)
            except CapabilityUnavailableError as e:
                log.info("Contacts strategy %s unsupported: %s", strategy.name, e)
                tried.append(f"{strategy.name} ({e})")
            except TransportError as e:
                if not _is_unknown_capability(e.problem_type):
                    raise
                log.info("Contacts strategy %s rejected by server: %s", strategy.name, e)
                tried.append(f"{strategy.name} ({e.problem_type})")

        raise CapabilityUnavailableError(
            "Contacts are not available for this account; tried: " + "; ".join(tried),
            capability=self.strategies[-1].capability if self.strategies else None,
        )


def _is_unknown_capability(problem_type: Optional[str]) -> bool:
    return bool(problem_type) and problem_type.endswith("unknownCapability")
