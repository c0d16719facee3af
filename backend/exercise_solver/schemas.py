from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class ExerciseImage(BaseModel):
    data: bytes
    mime_type: str = Field(default="image/jpeg")
    filename: str = Field(default="")

    @property
    def size(self) -> int:
        return len(self.data)


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    models: List[str] = Field(default_factory=list)
    api_key_configured: bool = False
