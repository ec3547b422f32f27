# =============================================================================
# core/containers.py  —  Well-known container lookup
# =============================================================================
#
# Sending, deleting and "recent mail" need a specific mailbox: Drafts, Sent,
# Trash, Inbox.  Lookup is two-tier:
#
#   1. exact role tag ("drafts", "sent", "trash", "inbox"), anywhere in the list
#   2. case-insensitive substring of a name hint in the display name
#
# The role tag is authoritative when present; name matching only covers
# accounts whose mailboxes carry no role metadata.
# =============================================================================

from typing import Iterable, Optional

from core.errors import ConfigurationError

# Name fallbacks per role.  "draft" also matches "Drafts" and "My Drafts".
DEFAULT_NAME_HINTS = {
    "drafts": "draft",
    "sent": "sent",
    "trash": "trash",
    "inbox": "inbox",
    "archive": "archive",
    "junk": "junk",
}


def find_container(
    containers: Iterable[dict],
    role: str,
    name_hint: Optional[str] = None,
) -> dict:
    """Pick the container for `role`, falling back to a name match."""
    containers = list(containers)
    role = role.lower()
    hint = (name_hint or DEFAULT_NAME_HINTS.get(role, role)).lower()

    for container in containers:
        if (container.get("role") or "").lower() == role:
            return container

    for container in containers:
        if hint in (container.get("name") or "").lower():
            return container

    raise ConfigurationError(
        f"Required container not found: no mailbox with role {role!r} "
        f"or a name containing {hint!r}",
        role=role,
        name_hint=hint,
    )


def find_by_name_or_role(containers: Iterable[dict], name: str) -> dict:
    """Resolve a user-supplied mailbox name such as "inbox" or "Receipts"."""
    wanted = name.strip().lower()
    containers = list(containers)
    for container in containers:
        if (container.get("name") or "").lower() == wanted:
            return container
    return find_container(containers, role=wanted, name_hint=wanted)
