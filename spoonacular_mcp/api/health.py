from __future__ import annotations

from fastapi import APIRouter

from ..services.protocol import SERVER_NAME

router = APIRouter(tags=["health"])


@router.get("/", name="root")
async def root():
    return {
        "status": "healthy",
        "service": SERVER_NAME,
        "message": "MCP Server running",
    }


@router.get("/health", name="health")
async def health():
    return {"status": "ok", "server": "spoonacular-mcp"}
