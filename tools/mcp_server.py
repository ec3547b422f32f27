# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the Fastmail account to an agent as MCP tools.  Each tool is a
#   thin wrapper around a core/ operation: it logs the call, runs the
#   operation, and turns the result into a JSON-friendly dict.
#
# TOOL NAMING CONVENTIONS:
#   - list_* / get_* / search_*   read-only, safe to retry
#   - mark_* / move_* / delete_*  mutate existing mail
#   - bulk_*                      one batched mutation over many emails
#   - send_email, create_*        create new records
#
# ERRORS:
#   Core errors (FastmailError subclasses) become ToolError, which FastMCP
#   reports to the agent as a failed tool call with a readable message.
#   Record-level rejections include the rejected ids and reason codes so the
#   agent can correct its input; partial bulk failures also list the ids
#   that DID succeed.
#
# RUNNING THIS SERVER:
#     python -m tools.mcp_server        (stdio transport)
#   FASTMAIL_API_TOKEN must be set (environment or .env).
# =============================================================================

import functools
import json
import logging
import sys
from dataclasses import asdict
from typing import Any, Callable, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from core.client import FastmailClient
from core.config import load_settings
from core.errors import DomainRejectionError, FastmailError

# =============================================================================
# Logging Setup
# =============================================================================
# STDOUT carries the MCP protocol, so logs go to STDERR.
#   CYAN    incoming tool calls
#   GREEN   responses
#   YELLOW  status / progress
#   RED     errors
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RED = "\033[31m"
_RESET = "\033[0m"

# Responses longer than this are truncated in the log line only.
_LOG_PREVIEW_CHARS = 600

log = logging.getLogger("fastmail.tools")


def configure_logging(level: str = "INFO") -> None:
    numeric = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=numeric,
        format="%(asctime)s [MCP] %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )
    # basicConfig is a no-op once handlers exist; the level must still apply.
    logging.getLogger().setLevel(numeric)


def _log_request(tool_name: str, **params) -> None:
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    log.info(f"{_CYAN}{tool_name} called with: {param_str}{_RESET}")


def _log_status(message: str) -> None:
    log.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: Any) -> Any:
    text = json.dumps(result, separators=(",", ":"), default=str)
    if len(text) > _LOG_PREVIEW_CHARS:
        text = text[:_LOG_PREVIEW_CHARS] + "…"
    log.info(f"{_GREEN}  ← {tool_name} response: {text}{_RESET}")
    return result


# =============================================================================
# Client lifecycle
# =============================================================================
# One FastmailClient per server process, built on the first tool call so
# that listing tools works even before a token is configured.
# =============================================================================
@functools.lru_cache(maxsize=1)
def get_client() -> FastmailClient:
    settings = load_settings()
    configure_logging(settings.log_level)
    return FastmailClient.from_settings(settings)


def _run(tool_name: str, operation: Callable[[FastmailClient], Any]) -> Any:
    """Execute one core operation and translate core errors to ToolError."""
    try:
        result = operation(get_client())
    except DomainRejectionError as e:
        log.info(f"{_RED}  ✗ {tool_name} rejected: {e}{_RESET}")
        raise ToolError(json.dumps(e.to_dict())) from e
    except FastmailError as e:
        log.info(f"{_RED}  ✗ {tool_name} failed: {type(e).__name__}: {e}{_RESET}")
        message = f"{type(e).__name__}: {e}"
        if e.context:
            message += f" {json.dumps(e.context)}"
        raise ToolError(message) from e
    except ValueError as e:
        raise ToolError(str(e)) from e
    return _log_response(tool_name, result)


mcp = FastMCP("fastmail")


# =============================================================================
# MAIL: reading
# =============================================================================
@mcp.tool()
def list_mailboxes() -> list[dict]:
    """List all mailboxes (folders) in the account.

    Returns each mailbox's id, name, role (inbox, drafts, sent, trash, ...
    or null), and counts.  Use the ids with list_emails and move_email.
    """
    _log_request("list_mailboxes")
    return _run("list_mailboxes", lambda c: c.mail.list_mailboxes())


@mcp.tool()
def list_emails(mailbox_id: Optional[str] = None, limit: int = 20) -> list[dict]:
    """List the newest emails, optionally from one mailbox.

    Args:
        mailbox_id: Mailbox id from list_mailboxes (omit for all mail).
        limit: Maximum number of emails to return (default 20).

    Returns:
        Email summaries: id, subject, from, to, receivedAt, preview,
        hasAttachment.
    """
    _log_request("list_emails", mailbox_id=mailbox_id, limit=limit)
    return _run("list_emails", lambda c: c.mail.list_emails(mailbox_id, limit))


@mcp.tool()
def get_recent_emails(limit: int = 10, mailbox_name: str = "inbox") -> list[dict]:
    """Get the most recent emails from a mailbox chosen by name or role.

    Args:
        limit: Number of emails (default 10, max 50).
        mailbox_name: Mailbox name or role, e.g. "inbox", "sent", "Receipts".
    """
    _log_request("get_recent_emails", limit=limit, mailbox_name=mailbox_name)
    return _run("get_recent_emails", lambda c: c.mail.get_recent_emails(limit, mailbox_name))


@mcp.tool()
def get_email(email_id: str) -> dict:
    """Get one email in full, including its text/HTML body and attachments list."""
    _log_request("get_email", email_id=email_id)
    return _run("get_email", lambda c: c.mail.get_email(email_id))


@mcp.tool()
def search_emails(query: str, limit: int = 20) -> list[dict]:
    """Search emails by subject, body, or address text.

    Args:
        query: Free-text search string.
        limit: Maximum number of results (default 20).
    """
    _log_request("search_emails", query=query, limit=limit)
    return _run("search_emails", lambda c: c.mail.search_emails(query, limit))


@mcp.tool()
def list_identities() -> list[dict]:
    """List sending identities (addresses this account may send from)."""
    _log_request("list_identities")
    return _run("list_identities", lambda c: c.mail.list_identities())


# =============================================================================
# MAIL: changing
# =============================================================================
@mcp.tool()
def mark_email_read(email_id: str, read: bool = True) -> dict:
    """Mark an email as read (read=True) or unread (read=False)."""
    _log_request("mark_email_read", email_id=email_id, read=read)

    def op(c: FastmailClient) -> dict:
        c.mail.mark_email_read(email_id, read)
        return {"email_id": email_id, "read": read}

    return _run("mark_email_read", op)


@mcp.tool()
def move_email(email_id: str, target_mailbox_id: str) -> dict:
    """Move an email into another mailbox (replaces its current mailboxes)."""
    _log_request("move_email", email_id=email_id, target_mailbox_id=target_mailbox_id)

    def op(c: FastmailClient) -> dict:
        c.mail.move_email(email_id, target_mailbox_id)
        return {"email_id": email_id, "mailbox_id": target_mailbox_id}

    return _run("move_email", op)


@mcp.tool()
def delete_email(email_id: str) -> dict:
    """Delete an email by moving it to the Trash mailbox."""
    _log_request("delete_email", email_id=email_id)

    def op(c: FastmailClient) -> dict:
        c.mail.delete_email(email_id)
        return {"email_id": email_id, "deleted": True}

    return _run("delete_email", op)


@mcp.tool()
def bulk_mark_read(email_ids: list[str], read: bool = True) -> dict:
    """Mark many emails read or unread in one request.

    If some ids fail, the error lists exactly the failed ids (with reasons)
    and the ids that were updated.
    """
    _log_request("bulk_mark_read", email_ids=email_ids, read=read)
    return _run("bulk_mark_read", lambda c: asdict(c.mail.bulk_mark_read(email_ids, read)))


@mcp.tool()
def bulk_move_emails(email_ids: list[str], target_mailbox_id: str) -> dict:
    """Move many emails to one mailbox in one request."""
    _log_request("bulk_move_emails", email_ids=email_ids, target_mailbox_id=target_mailbox_id)
    return _run("bulk_move_emails", lambda c: asdict(c.mail.bulk_move(email_ids, target_mailbox_id)))


@mcp.tool()
def bulk_delete_emails(email_ids: list[str]) -> dict:
    """Move many emails to Trash in one request."""
    _log_request("bulk_delete_emails", email_ids=email_ids)
    return _run("bulk_delete_emails", lambda c: asdict(c.mail.bulk_delete(email_ids)))


@mcp.tool()
def send_email(
    to: list[str],
    subject: str,
    text_body: Optional[str] = None,
    html_body: Optional[str] = None,
    cc: Optional[list[str]] = None,
    bcc: Optional[list[str]] = None,
    from_address: Optional[str] = None,
    mailbox_id: Optional[str] = None,
) -> dict:
    """Send an email.

    WHEN TO CALL THIS: only after the user has confirmed recipients, subject
    and body.  Provide text_body, html_body, or both.

    Args:
        to: Recipient addresses (at least one).
        subject: Subject line.
        text_body: Plain-text body.
        html_body: HTML body.
        cc: CC addresses.
        bcc: BCC addresses.
        from_address: Must be one of list_identities(); defaults to the
            account's primary identity.
        mailbox_id: Where to save the draft before sending (default Drafts).

    Returns:
        submission_id, email_id, identity_id, from_address, and not_moved
        (non-empty if the sent email could not be filed into Sent).  If the
        draft is created but sending fails, the error includes email_id.
    """
    _log_request("send_email", to=to, subject=subject, cc=cc, bcc=bcc,
                 from_address=from_address, mailbox_id=mailbox_id)
    if not to:
        raise ToolError("'to' must contain at least one address")
    return _run("send_email", lambda c: asdict(c.mail.send_email(
        to=to, subject=subject, text_body=text_body, html_body=html_body,
        cc=cc, bcc=bcc, from_address=from_address, mailbox_id=mailbox_id,
    )))


# =============================================================================
# CONTACTS
# =============================================================================
@mcp.tool()
def list_contacts(limit: int = 50) -> list[dict]:
    """List contacts from the address book (default 50)."""
    _log_request("list_contacts", limit=limit)
    return _run("list_contacts", lambda c: c.contacts.list_contacts(limit))


@mcp.tool()
def get_contact(contact_id: str) -> dict:
    """Get one contact by id."""
    _log_request("get_contact", contact_id=contact_id)
    return _run("get_contact", lambda c: c.contacts.get_contact(contact_id))


@mcp.tool()
def search_contacts(query: str, limit: int = 20) -> list[dict]:
    """Search contacts by name or email address."""
    _log_request("search_contacts", query=query, limit=limit)
    return _run("search_contacts", lambda c: c.contacts.search_contacts(query, limit))


# =============================================================================
# CALENDAR
# =============================================================================
@mcp.tool()
def list_calendars() -> list[dict]:
    """List all calendars."""
    _log_request("list_calendars")
    return _run("list_calendars", lambda c: c.calendar.list_calendars())


@mcp.tool()
def list_calendar_events(calendar_id: Optional[str] = None, limit: int = 50) -> list[dict]:
    """List events, soonest first, optionally from one calendar."""
    _log_request("list_calendar_events", calendar_id=calendar_id, limit=limit)
    return _run("list_calendar_events", lambda c: c.calendar.list_events(calendar_id, limit))


@mcp.tool()
def get_calendar_event(event_id: str) -> dict:
    """Get one calendar event by id."""
    _log_request("get_calendar_event", event_id=event_id)
    return _run("get_calendar_event", lambda c: c.calendar.get_event(event_id))


@mcp.tool()
def create_calendar_event(
    calendar_id: str,
    title: str,
    start: str,
    end: str,
    description: str = "",
    location: str = "",
    participants: Optional[list[dict]] = None,
) -> dict:
    """Create a calendar event.

    Args:
        calendar_id: Calendar id from list_calendars.
        title: Event title.
        start: Start time, ISO 8601 (e.g. "2026-03-02T09:00:00").
        end: End time, ISO 8601.
        description: Optional description.
        location: Optional location.
        participants: Optional list of {"email": ..., "name": ...}.
    """
    _log_request("create_calendar_event", calendar_id=calendar_id, title=title,
                 start=start, end=end)

    def op(c: FastmailClient) -> dict:
        event_id = c.calendar.create_event(
            calendar_id=calendar_id, title=title, start=start, end=end,
            description=description, location=location, participants=participants,
        )
        _log_status(f"Created event {event_id}")
        return {"event_id": event_id}

    return _run("create_calendar_event", op)


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    configure_logging()
    mcp.run()
