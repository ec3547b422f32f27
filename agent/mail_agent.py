# =============================================================================
# agent/mail_agent.py  —  Google ADK assistant wired to the Fastmail tools
# =============================================================================
#
#   ┌───────────────────────────────┐
#   │  ADK Agent (LiteLlm model)    │
#   │  instruction = prompt.py      │
#   └──────────────┬────────────────┘
#                  │ MCP over stdio
#   ┌──────────────▼────────────────┐
#   │  tools/mcp_server.py          │  (spawned as a subprocess)
#   └──────────────┬────────────────┘
#                  │
#   ┌──────────────▼────────────────┐
#   │  core/  JMAP batch engine     │
#   └───────────────────────────────┘
#
# MODEL:
#   ASSISTANT_MODEL selects the LiteLlm model string
#   (default "openrouter/openai/gpt-4o"; LiteLlm reads the provider's API key
#   from the environment, e.g. OPENROUTER_API_KEY).
#
# The subprocess inherits this process's environment, so FASTMAIL_API_TOKEN
# only needs to be set once (shell or .env).
# =============================================================================

import os
import sys

from google.adk.agents import Agent
from google.adk.models.lite_llm import LiteLlm
from google.adk.tools.mcp_tool import MCPToolset
from mcp import StdioServerParameters

from agent.prompt import get_mail_assistant_prompt

DEFAULT_MODEL = "openrouter/openai/gpt-4o"
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))


def server_parameters() -> StdioServerParameters:
    """How to launch the tool server: this interpreter, `-m tools.mcp_server`."""
    return StdioServerParameters(
        command=sys.executable,
        args=["-m", "tools.mcp_server"],
        cwd=PROJECT_ROOT,
        env=dict(os.environ),
    )


def create_agent(model: str = "") -> Agent:
    """Create the Fastmail assistant agent."""
    mcp_tools = MCPToolset(connection_params=server_parameters())

    return Agent(
        name="fastmail_assistant",
        model=LiteLlm(model=model or os.environ.get("ASSISTANT_MODEL", DEFAULT_MODEL)),
        instruction=get_mail_assistant_prompt(),
        tools=[mcp_tools],
    )
