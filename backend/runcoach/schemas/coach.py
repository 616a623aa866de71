from typing import Literal, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1)


class ChatEntry(BaseModel):
    role: Literal["user", "assistant"]
    content: str
    ts: Optional[int] = None


class ChatReply(BaseModel):
    reply: str
