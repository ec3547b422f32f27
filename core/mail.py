# =============================================================================
# core/mail.py  —  Mail operations
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Every mail action the tool server exposes, each one a fixed batch shape
#   built from core/recipes.py or assembled inline (send).
#
# ROUND TRIPS PER OPERATION:
#   list / search / get / mark / move / bulk     1
#   recent emails, delete                        2  (mailbox lookup first)
#   send                                         2  (identities + mailboxes
#                                                    share the first batch)
#
# SENDING (create-then-relate):
#   One batch, two steps:
#     createEmail   Email/set            create {"draft": <email>}
#     submitEmail   EmailSubmission/set  create {"submission": emailId "#draft"}
#                                        onSuccessUpdateEmail "#submission":
#                                          move to Sent, drop $draft
#   Each step's rejection set is checked on its own.  If the draft was
#   created but the submission failed (refused or unsupported), the error
#   carries the draft's id in .context["email_id"] so the caller can see (and
#   clean up) the draft.  A refused post-send patch does not fail the send;
#   it is reported in SendResult.not_moved.
# =============================================================================

import logging
from typing import Optional

from core.batch import creation_ref
from core.containers import find_by_name_or_role, find_container
from core.errors import ConfigurationError, DomainRejectionError, FastmailError, Rejection
from core.executor import BatchExecutor
from core.models import (
    MAIL_CAPABILITY,
    SUBMISSION_CAPABILITY,
    BulkResult,
    MethodResponse,
    SendResult,
)
from core.recipes import get_all, get_records, new_batch, query_then_get, update_records
from core.resolver import collect_rejections, not_found_error, resolve

log = logging.getLogger(__name__)

MAIL = (MAIL_CAPABILITY,)
SUBMISSION = (MAIL_CAPABILITY, SUBMISSION_CAPABILITY)

SUMMARY_PROPERTIES = ["id", "subject", "from", "to", "receivedAt", "preview", "hasAttachment"]
RECENT_PROPERTIES = SUMMARY_PROPERTIES + ["keywords"]
FULL_PROPERTIES = [
    "id", "subject", "from", "to", "cc", "bcc", "receivedAt", "keywords", "mailboxIds",
    "textBody", "htmlBody", "bodyValues", "attachments",
]

NEWEST_FIRST = [{"property": "receivedAt", "isAscending": False}]
RECENT_LIMIT_MAX = 50


class MailOperations:
    """Mail, mailbox and identity operations over a shared executor."""

    def __init__(self, executor: BatchExecutor):
        self.executor = executor

    # -------------------------------------------------------------------------
    # Reading
    # -------------------------------------------------------------------------
    def list_mailboxes(self) -> list[dict]:
        return get_all(self.executor, "Mailbox", MAIL)

    def list_emails(self, mailbox_id: Optional[str] = None, limit: int = 20) -> list[dict]:
        """Newest emails, optionally restricted to one mailbox."""
        return query_then_get(
            self.executor, "Email", MAIL,
            filter={"inMailbox": mailbox_id} if mailbox_id else None,
            sort=NEWEST_FIRST,
            limit=limit,
            properties=SUMMARY_PROPERTIES,
        )

    def search_emails(self, query: str, limit: int = 20) -> list[dict]:
        return query_then_get(
            self.executor, "Email", MAIL,
            filter={"text": query},
            sort=NEWEST_FIRST,
            limit=limit,
            properties=SUMMARY_PROPERTIES,
        )

    def get_recent_emails(self, limit: int = 10, mailbox_name: str = "inbox") -> list[dict]:
        mailbox = find_by_name_or_role(self.list_mailboxes(), mailbox_name)
        return query_then_get(
            self.executor, "Email", MAIL,
            filter={"inMailbox": mailbox["id"]},
            sort=NEWEST_FIRST,
            limit=min(limit, RECENT_LIMIT_MAX),
            properties=RECENT_PROPERTIES,
        )

    def get_email(self, email_id: str) -> dict:
        records = get_records(
            self.executor, "Email", MAIL, [email_id],
            properties=FULL_PROPERTIES,
            extra={"fetchTextBodyValues": True, "fetchHTMLBodyValues": True},
        )
        if not records:
            raise not_found_error(email_id, "records")
        email = records[0]
        # Replace body part references with their text, when fetched.
        values = email.pop("bodyValues", None) or {}
        for key in ("textBody", "htmlBody"):
            for part in email.get(key) or []:
                value = values.get(part.get("partId"))
                if value is not None:
                    part["value"] = value.get("value")
        return email

    def list_identities(self) -> list[dict]:
        return get_all(self.executor, "Identity", SUBMISSION)

    def get_default_identity(self) -> dict:
        identities = self.list_identities()
        if not identities:
            raise ConfigurationError("No sending identity found for this account")
        return default_identity(identities)

    # -------------------------------------------------------------------------
    # Single-record mutations
    # -------------------------------------------------------------------------
    def mark_email_read(self, email_id: str, read: bool = True) -> None:
        update_records(self.executor, "Email", MAIL, {email_id: _seen_patch(read)}, "updateEmail")

    def move_email(self, email_id: str, target_mailbox_id: str) -> None:
        update_records(
            self.executor, "Email", MAIL,
            {email_id: {"mailboxIds": {target_mailbox_id: True}}},
            "moveEmail",
        )

    def delete_email(self, email_id: str) -> None:
        """Move an email to the Trash mailbox."""
        trash = find_container(self.list_mailboxes(), "trash")
        update_records(
            self.executor, "Email", MAIL,
            {email_id: {"mailboxIds": {trash["id"]: True}}},
            "moveToTrash",
        )

    # -------------------------------------------------------------------------
    # Bulk mutations: N updates in one Email/set step
    # -------------------------------------------------------------------------
    def bulk_mark_read(self, email_ids: list[str], read: bool = True) -> BulkResult:
        patches = {email_id: _seen_patch(read) for email_id in email_ids}
        return BulkResult(updated=update_records(self.executor, "Email", MAIL, patches, "bulkUpdate"))

    def bulk_move(self, email_ids: list[str], target_mailbox_id: str) -> BulkResult:
        patches = {email_id: {"mailboxIds": {target_mailbox_id: True}} for email_id in email_ids}
        return BulkResult(updated=update_records(self.executor, "Email", MAIL, patches, "bulkMove"))

    def bulk_delete(self, email_ids: list[str]) -> BulkResult:
        trash = find_container(self.list_mailboxes(), "trash")
        patches = {email_id: {"mailboxIds": {trash["id"]: True}} for email_id in email_ids}
        return BulkResult(updated=update_records(self.executor, "Email", MAIL, patches, "bulkDelete"))

    # -------------------------------------------------------------------------
    # Sending
    # -------------------------------------------------------------------------
    def send_email(
        self,
        to: list[str],
        subject: str,
        text_body: Optional[str] = None,
        html_body: Optional[str] = None,
        cc: Optional[list[str]] = None,
        bcc: Optional[list[str]] = None,
        from_address: Optional[str] = None,
        mailbox_id: Optional[str] = None,
    ) -> SendResult:
        if not text_body and not html_body:
            raise ValueError("Either text_body or html_body must be provided")

        identities, mailboxes = self._sending_context()
        identity = pick_identity(identities, from_address)
        sender = from_address or identity["email"]

        drafts = find_container(mailboxes, "drafts")
        sent = find_container(mailboxes, "sent")

        email = build_email(
            sender=sender,
            to=to, cc=cc, bcc=bcc,
            subject=subject,
            text_body=text_body,
            html_body=html_body,
            mailbox_id=mailbox_id or drafts["id"],
        )
        recipients = list(to) + list(cc or []) + list(bcc or [])

        builder = new_batch(self.executor, *SUBMISSION)
        builder.add("Email/set", {"create": {"draft": email}}, "createEmail")
        builder.add("EmailSubmission/set", {
            "create": {
                "submission": {
                    "emailId": creation_ref("draft"),
                    "identityId": identity["id"],
                    "envelope": {
                        "mailFrom": {"email": sender},
                        "rcptTo": [{"email": addr} for addr in recipients],
                    },
                },
            },
            "onSuccessUpdateEmail": {
                creation_ref("submission"): {
                    "mailboxIds": {sent["id"]: True},
                    "keywords/$draft": None,
                },
            },
        }, "submitEmail")

        response = self.executor.execute(builder.build())

        email_id = resolve(response, "createEmail", "created/draft/id", targets=["draft"])
        try:
            submission_id = resolve(response, "submitEmail", "created/submission/id", targets=["submission"])
        except FastmailError as e:
            e.context["email_id"] = email_id
            log.info("Draft %s created but its submission failed: %s", email_id, e)
            raise

        not_moved = post_send_rejections(response.follow_ups("submitEmail"), email_id)
        if not_moved:
            log.warning("Email %s was sent but not moved to Sent: %s", email_id, not_moved)

        log.info("Submitted email %s as %s", email_id, submission_id)
        return SendResult(
            submission_id=submission_id or "unknown",
            email_id=email_id or "unknown",
            identity_id=identity["id"],
            from_address=sender,
            not_moved=[r.to_dict() for r in not_moved],
        )

    def _sending_context(self) -> tuple[list[dict], list[dict]]:
        """Identities and mailboxes, fetched together in one batch."""
        builder = new_batch(self.executor, *SUBMISSION)
        builder.add("Identity/get", {}, "identities")
        builder.add("Mailbox/get", {}, "mailboxes")
        response = self.executor.execute(builder.build())
        return (
            resolve(response, "identities", "list") or [],
            resolve(response, "mailboxes", "list") or [],
        )


# -----------------------------------------------------------------------------
# Helpers (pure functions; unit-tested directly)
# -----------------------------------------------------------------------------
def default_identity(identities: list[dict]) -> dict:
    """The identity that can't be deleted is the account's primary one."""
    for identity in identities:
        if identity.get("mayDelete") is False:
            return identity
    return identities[0]


def pick_identity(identities: list[dict], from_address: Optional[str]) -> dict:
    """Identity to send as; `from_address` must be one of the account's."""
    if not identities:
        raise ConfigurationError("No sending identity found for this account")
    if not from_address:
        return default_identity(identities)

    wanted = from_address.strip().lower()
    for identity in identities:
        if (identity.get("email") or "").lower() == wanted:
            return identity
    # Wildcard identities ("*@example.com") cover a whole domain.
    for identity in identities:
        email = (identity.get("email") or "").lower()
        if email.startswith("*@") and wanted.endswith(email[1:]):
            return identity

    allowed = ", ".join(i.get("email", "?") for i in identities)
    raise DomainRejectionError(
        f"{from_address} is not a sending identity of this account (allowed: {allowed})",
        rejections=[Rejection(id=from_address, kind="notCreated", type="forbiddenFrom")],
        label="identities",
    )


def post_send_rejections(follow_ups: list[MethodResponse], email_id: Optional[str]) -> list[Rejection]:
    """Refusals of the onSuccessUpdateEmail patch for the sent email."""
    found: list[Rejection] = []
    for follow_up in follow_ups:
        payload = follow_up.arguments
        if follow_up.is_error:
            found.append(Rejection(
                id=email_id or "unknown",
                kind="error",
                type=payload.get("type", "unknown"),
                description=payload.get("description"),
            ))
        else:
            found.extend(r for r in collect_rejections(payload) if r.id == email_id)
    return found


def build_email(
    sender: str,
    to: list[str],
    subject: str,
    mailbox_id: str,
    cc: Optional[list[str]] = None,
    bcc: Optional[list[str]] = None,
    text_body: Optional[str] = None,
    html_body: Optional[str] = None,
) -> dict:
    """The Email object for an Email/set create."""
    email = {
        "mailboxIds": {mailbox_id: True},
        "keywords": {"$draft": True, "$seen": True},
        "from": [{"email": sender}],
        "to": [{"email": addr} for addr in to],
        "cc": [{"email": addr} for addr in cc or []],
        "bcc": [{"email": addr} for addr in bcc or []],
        "subject": subject,
        "bodyValues": {},
    }
    if text_body:
        email["textBody"] = [{"partId": "text", "type": "text/plain"}]
        email["bodyValues"]["text"] = {"value": text_body}
    if html_body:
        email["htmlBody"] = [{"partId": "html", "type": "text/html"}]
        email["bodyValues"]["html"] = {"value": html_body}
    return email


def _seen_patch(read: bool) -> dict:
    # Patch one keyword only; other keywords ($flagged, labels) survive.
    return {"keywords/$seen": True if read else None}

