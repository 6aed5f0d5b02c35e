"""
Interactive CLI adapter for the tool-dispatch engine.

Architectural role:
- Exposes terminal-driven tool execution for manual testing of backends.
- Maintains the active project folder pointer.
- Delegates all execution to `tooldispatch.core.dispatcher`.

Request lifecycle (per input line):
1. Read stdin.
2. Handle local control commands (`exit`/`quit`, `/project`, `/tools`).
3. Parse the line as a JSON `{"id", "name", "input"}` tool invocation.
4. Print progress events as they are emitted, then the tool result JSON.

Error handling strategy:
- Invalid JSON or invocation shape prints a message and continues.
- Backend failures print the error and continue with the next line.
- EOF and keyboard interrupts terminate the loop without traceback output.
"""

from dotenv import load_dotenv

load_dotenv()

import argparse
import asyncio
import json
import logging
import sys

from tooldispatch.backends.progress import CallbackProgressSink
from tooldispatch.core.dispatcher import get_default_dispatcher
from tooldispatch.core.tool_definitions import TOOL_DEFINITIONS
from tooldispatch.core.tool_types import SessionContext, ToolInvocation


# =========================================================
# UTF-8 SAFE OUTPUT
# Best-effort stdout encoding normalization for interactive terminals.
# =========================================================

if hasattr(sys.stdout, "reconfigure"):
    try:
        sys.stdout.reconfigure(encoding="utf-8", errors="ignore")
    except Exception:
        pass


def print_event(event_kind, payload):
    print(f"[{event_kind}] {payload.get('message', payload)}", flush=True)


def run_invocation(line, project_folder_name, dispatcher):
    """Parse and dispatch one JSON line; return the printable result."""
    invocation = ToolInvocation.from_dict(json.loads(line))
    context = SessionContext(
        project_folder_name=project_folder_name,
        progress_sink=CallbackProgressSink(print_event),
    )
    outcome = asyncio.run(dispatcher.dispatch(invocation, context))
    if not outcome.handled:
        return f"Tool '{invocation.name}' is not handled."
    return json.dumps(outcome.to_messages(), indent=2, ensure_ascii=False)


# =========================================================
# MAIN
# =========================================================

def main(argv=None):
    """
    Run the CLI loop.

    Hard trigger handling:
    - `/project <name>` switches the active project folder.
    - `/tools` lists tool names.
    """
    parser = argparse.ArgumentParser(prog="tooldispatch")
    parser.add_argument("--project", default="default-project", help="Active project folder name")
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
    )

    try:
        dispatcher = get_default_dispatcher()
    except Exception as e:
        print(f"Dispatcher initialization error: {e}")
        return 1

    project = args.project
    print("Tool dispatcher started. (Type 'exit' to quit)")
    print(f"Active project: {project}\n")
    print("-" * 60)

    while True:

        try:
            line = input("Tool call: ").strip()

        except EOFError:
            print()
            break

        except KeyboardInterrupt:
            print("\nOperation cancelled by user.")
            break

        if not line:
            continue

        if line.lower() in ("exit", "quit"):
            print("Shutting down.")
            break

        if line.startswith("/tools"):
            for definition in TOOL_DEFINITIONS:
                print(f" - {definition['name']}")
            continue

        if line.startswith("/project"):
            parts = line.split(maxsplit=1)
            if len(parts) == 1:
                print(f"\nCurrent project: {project}\nUsage: /project <name>\n")
            else:
                project = parts[1].strip()
                print(f"\nSwitched to project: {project}\n")
            continue

        try:
            print(run_invocation(line, project, dispatcher))
        except (json.JSONDecodeError, ValueError) as e:
            print(f"Invalid tool call: {e}")
        except Exception as e:
            print(f"Tool failed: {e}")

        print("\n" + "-" * 60 + "\n")

    return 0


if __name__ == "__main__":
    sys.exit(main())
