"""MCP server exposing the Spoonacular recipe and nutrition API as tools."""

__version__ = "1.0.0"
