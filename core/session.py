# =============================================================================
# core/session.py  —  Authentication and the Session Cache
# =============================================================================
#
# Before any batch can be sent we need two facts from the server: the URL
# that accepts batches, and the account id every method call must carry.
# Both come from the session resource (GET <base>/jmap/session).
#
# SessionCache fetches that resource once and keeps it for the lifetime of
# the cache object.  There is no expiry handling: a stale session is never
# refreshed behind the caller's back.  Whoever owns the cache decides when
# (if ever) to call reset().
# =============================================================================

import json
import logging
from typing import Optional

from core.config import DEFAULT_BASE_URL
from core.errors import AuthenticationError, ProtocolError, TransportError
from core.models import Session

log = logging.getLogger(__name__)


class FastmailAuth:
    """Bearer-token credentials plus the well-known session URL."""

    def __init__(self, api_token: str, base_url: str = DEFAULT_BASE_URL):
        if not api_token:
            raise AuthenticationError("An API token is required")
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")

    def headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    @property
    def session_url(self) -> str:
        return f"{self.base_url}/jmap/session"


class SessionCache:
    """Fetches the session on first use and memoizes it."""

    def __init__(self, auth: FastmailAuth, transport):
        self.auth = auth
        self.transport = transport
        self._session: Optional[Session] = None

    @property
    def loaded(self) -> bool:
        return self._session is not None

    def get(self) -> Session:
        if self._session is None:
            self._session = self._fetch()
        return self._session

    def reset(self) -> None:
        """Forget the cached session; the next get() fetches a new one."""
        self._session = None

    def _fetch(self) -> Session:
        url = self.auth.session_url
        response = self.transport.send("GET", url, self.auth.headers())

        if response.status in (401, 403):
            raise AuthenticationError(
                f"Session request rejected: {response.status} {response.reason}",
                status=response.status,
                reason=response.reason,
            )
        if not response.ok:
            raise TransportError(
                f"Failed to get session: {response.status} {response.reason}",
                status=response.status,
                reason=response.reason,
            )

        try:
            data = json.loads(response.body)
        except (ValueError, UnicodeDecodeError) as e:
            raise ProtocolError(f"Session response is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise ProtocolError("Session response is not a JSON object")

        api_url = data.get("apiUrl")
        accounts = data.get("accounts")
        if not api_url or not isinstance(accounts, dict) or not accounts:
            raise ProtocolError("Session response is missing apiUrl or accounts")

        # Multi-account tokens are not disambiguated: the first account wins.
        account_id = next(iter(accounts))
        if len(accounts) > 1:
            log.warning("Token grants %d accounts; using %s", len(accounts), account_id)

        capabilities = dict(data.get("capabilities") or {})
        account = accounts[account_id] if isinstance(accounts[account_id], dict) else {}
        for name, value in (account.get("accountCapabilities") or {}).items():
            capabilities.setdefault(name, value)

        session = Session(
            api_url=api_url,
            account_id=account_id,
            capabilities=capabilities,
            username=data.get("username", ""),
        )
        log.info("JMAP session ready for account %s", session.account_id)
        return session
