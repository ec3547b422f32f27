# =============================================================================
# core/__init__.py
# =============================================================================
# The JMAP batch engine and the mail/contacts/calendar operations built on it.
#
# Nothing in this package imports FastMCP, Google ADK, or any orchestration
# framework.  HTTP goes through an injectable transport, so every module here
# can be exercised offline with canned responses (see tests/).
# =============================================================================
