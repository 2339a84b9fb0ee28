"""Minimal MCP stdio server used by the subprocess bridge tests.

Flags:
    --silent  read requests but never answer
    --noisy   emit a notification and a non-JSON line before every reply
    --deaf    never read stdin at all
"""

from __future__ import annotations

import json
import sys
import time
from typing import Any, Dict

TOOLS = [
    {
        "name": "echo",
        "description": "Return the arguments after an optional delay.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "tag": {"type": "string", "description": "Value echoed back"},
                "delay": {"type": "number", "description": "Seconds to wait before answering"},
            },
        },
    }
]


def write(msg: Dict[str, Any]) -> None:
    sys.stdout.write(json.dumps(msg) + "\n")
    sys.stdout.flush()


def main() -> None:
    silent = "--silent" in sys.argv
    noisy = "--noisy" in sys.argv
    if "--deaf" in sys.argv:
        time.sleep(60)
        return

    for line in sys.stdin:
        try:
            payload = json.loads(line)
        except json.JSONDecodeError:
            continue

        if silent:
            continue

        method = payload.get("method")
        msg_id = payload.get("id")
        if msg_id is None:
            continue

        if noisy:
            write({"jsonrpc": "2.0", "method": "notifications/message", "params": {"level": "info"}})
            sys.stdout.write("stub: about to answer\n")
            sys.stdout.flush()

        if method == "tools/list":
            write({"jsonrpc": "2.0", "id": msg_id, "result": {"tools": TOOLS}})
        elif method == "tools/call":
            params = payload.get("params") or {}
            arguments = params.get("arguments") or {}
            if params.get("name") == "crash":
                sys.exit(3)
            time.sleep(float(arguments.get("delay", 0)))
            write(
                {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "result": {
                        "content": [{"type": "text", "text": str(arguments.get("tag", ""))}],
                    },
                }
            )
        else:
            write(
                {
                    "jsonrpc": "2.0",
                    "id": msg_id,
                    "error": {"code": -32601, "message": "Method not found"},
                }
            )


if __name__ == "__main__":
    main()
