# =============================================================================
# core/client.py  —  Wiring: one session, one executor, three domains
# =============================================================================
#
#                 ┌──────────────┐
#                 │ SessionCache │  (fetched once, read-only afterwards)
#                 └──────┬───────┘
#                        │
#                 ┌──────▼───────┐
#                 │BatchExecutor │  (one POST per execute())
#                 └──────┬───────┘
#          ┌─────────────┼──────────────┐
#   MailOperations  ContactsOperations  CalendarOperations
#
# The domains don't know about each other; each holds the same executor.
# =============================================================================

from typing import Optional

from core.calendar import CalendarOperations
from core.config import Settings
from core.contacts import ContactsOperations
from core.executor import BatchExecutor
from core.http import UrllibTransport
from core.mail import MailOperations
from core.session import FastmailAuth, SessionCache


class FastmailClient:
    """Owns the session cache and executor shared by every domain."""

    def __init__(self, auth: FastmailAuth, transport=None):
        self.transport = transport or UrllibTransport()
        self.sessions = SessionCache(auth, self.transport)
        self.executor = BatchExecutor(self.sessions, self.transport)

        self.mail = MailOperations(self.executor)
        self.contacts = ContactsOperations(self.executor)
        self.calendar = CalendarOperations(self.executor)

    @classmethod
    def from_settings(cls, settings: Settings, transport: Optional[object] = None) -> "FastmailClient":
        auth = FastmailAuth(settings.api_token, settings.base_url)
        return cls(auth, transport or UrllibTransport(timeout=settings.timeout))
