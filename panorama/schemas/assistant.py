from typing import Literal
from pydantic import BaseModel, Field


class AskRequest(BaseModel):
    question: str = Field(min_length=1)


class AssistantMessage(BaseModel):
    role: Literal["user", "ai"] = "ai"
    text: str
    is_report: bool = False
