# =============================================================================
# agent/__init__.py
# =============================================================================
# The Google ADK assistant: a system prompt plus an MCP connection to
# tools/mcp_server.py.  No mail logic lives here; the agent only decides
# which tools to call and how to present the results.
# =============================================================================
