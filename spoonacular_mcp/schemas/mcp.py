from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, Field


class TextContent(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    content: List[TextContent] = Field(default_factory=list)
    isError: bool = False

    @classmethod
    def from_text(cls, text: str) -> "ToolResult":
        return cls(content=[TextContent(text=text)])

    @classmethod
    def error(cls, message: str) -> "ToolResult":
        return cls(content=[TextContent(text=f"Error: {message}")], isError=True)

    @property
    def text(self) -> str:
        return "\n".join(item.text for item in self.content)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"content": [item.model_dump() for item in self.content]}
        if self.isError:
            payload["isError"] = True
        return payload
