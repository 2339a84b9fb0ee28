"""Manual check: start the stdio server, ask for its tools, print them."""

from __future__ import annotations

import asyncio
import json
import os
import sys
from pathlib import Path

ROOT_DIR = Path(__file__).resolve().parents[1]

LIST_TOOLS_REQUEST = {"jsonrpc": "2.0", "id": 1, "method": "tools/list", "params": {}}


async def run() -> int:
    print("Testing Spoonacular MCP Server...\n")
    print("Starting MCP server...")
    process = await asyncio.create_subprocess_exec(
        sys.executable,
        "-m",
        "spoonacular_mcp",
        "stdio",
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        cwd=ROOT_DIR,
        env=os.environ.copy(),
    )
    assert process.stdin is not None and process.stdout is not None

    await asyncio.sleep(1)
    print("\nSending list tools request...")
    process.stdin.write(json.dumps(LIST_TOOLS_REQUEST).encode("utf-8") + b"\n")
    await process.stdin.drain()

    try:
        while True:
            line = await asyncio.wait_for(process.stdout.readline(), timeout=10)
            if not line:
                print(f"Server exited with code {await process.wait()}")
                return 1
            response = line.decode("utf-8").strip()
            try:
                parsed = json.loads(response)
            except json.JSONDecodeError:
                print("Response:", response)
                continue
            tools = (parsed.get("result") or {}).get("tools")
            if tools:
                print("\nServer is working! Available tools:")
                for index, tool in enumerate(tools, start=1):
                    print(f"   {index}. {tool['name']} - {tool['description']}")
                return 0
            print("Response:", response)
    except asyncio.TimeoutError:
        print("No response from server within 10 seconds")
        return 1
    finally:
        if process.returncode is None:
            process.kill()
            await process.wait()


def main() -> int:
    if not os.environ.get("SPOONACULAR_API_KEY"):
        print("Error: SPOONACULAR_API_KEY environment variable is required", file=sys.stderr)
        print("   export SPOONACULAR_API_KEY=your_key_here", file=sys.stderr)
        return 1
    print("API Key: set")
    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
