from . import health, mcp, proxy, sse

__all__ = [
    "health",
    "mcp",
    "proxy",
    "sse",
]
