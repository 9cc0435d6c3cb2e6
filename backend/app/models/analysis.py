"""
Wire schemas for the analysis WebSocket and health check
"""

from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict


class AnalysisRequest(BaseModel):
    """Inbound client message"""

    model_config = ConfigDict(extra="ignore")

    spreadsheetId: Optional[str] = None
    content: str


class AnalysisResponse(BaseModel):
    """Outbound assistant message. `error` is only set when the request failed."""

    role: Literal["assistant"] = "assistant"
    content: str
    error: Optional[str] = None

    def to_wire(self) -> dict:
        return self.model_dump(exclude_none=True)


class Prompt(BaseModel):
    """System context plus user message for one chat completion"""

    system_text: str
    user_text: str
    max_tokens: Optional[int] = None


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
