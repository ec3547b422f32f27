# =============================================================================
# main.py  —  Interactive console for the Fastmail assistant
# =============================================================================
#
# HOW TO RUN:
#   python main.py
#
# Needs FASTMAIL_API_TOKEN and the LLM provider key (e.g. OPENROUTER_API_KEY)
# in the environment or in a .env file next to this script.
#
# WHAT HAPPENS:
#   1. Creates the ADK agent (agent/mail_agent.py), which spawns the MCP
#      tool server (tools/mcp_server.py) as a subprocess
#   2. Opens an in-memory conversation session
#   3. Sends each line you type to the agent and prints tool calls as they
#      happen, then the final answer
# =============================================================================

import asyncio

from dotenv import load_dotenv

# Must run before the agent is created: LiteLlm and the tool subprocess both
# read their keys from the environment.
load_dotenv()

from google.adk.runners import Runner
from google.adk.sessions import InMemorySessionService
from google.genai import types

from agent.mail_agent import create_agent

APP_NAME = "fastmail_assistant"
USER_ID = "console_user"


async def run_agent():
    """Read-eval-print loop around the assistant."""
    print("=" * 70)
    print("  FASTMAIL ASSISTANT")
    print("  Google ADK + FastMCP + JMAP")
    print("=" * 70)
    print("\n🔧 Initializing agent...")
    agent = create_agent()

    session_service = InMemorySessionService()
    runner = Runner(agent=agent, app_name=APP_NAME, session_service=session_service)
    session = await session_service.create_session(app_name=APP_NAME, user_id=USER_ID)

    print("✅ Ready.  Ask about your mail, contacts or calendar ('quit' to exit).\n")
    print("-" * 70)

    while True:
        try:
            user_input = input("\n🧑 You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\n\n👋 Goodbye!")
            break

        if user_input.lower() in ("quit", "exit", "q"):
            print("\n👋 Goodbye!")
            break
        if not user_input:
            continue

        user_message = types.Content(role="user", parts=[types.Part(text=user_input)])

        print("\n🤖 Working...\n")
        final_response = ""

        async for event in runner.run_async(
            user_id=USER_ID,
            session_id=session.id,
            new_message=user_message,
        ):
            if not (event.content and event.content.parts):
                continue
            for part in event.content.parts:
                if getattr(part, "function_call", None):
                    print(f"  🔧 Calling tool: {part.function_call.name}")
                if getattr(part, "text", None):
                    final_response = part.text

        print("-" * 70)
        if final_response:
            print(f"\n🤖 Assistant:\n\n{final_response}")
        else:
            print("\n⚠️  No response generated.")
        print("\n" + "=" * 70)


if __name__ == "__main__":
    asyncio.run(run_agent())
