from typing import Optional
from pydantic import BaseModel, Field


class InferenceRunRequest(BaseModel):
    message: Optional[str] = Field(default=None, description="User message; the configured default when omitted")
