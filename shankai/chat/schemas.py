# shankai/chat/schemas.py
from pydantic import BaseModel, Field, field_validator

from shankai.projects.schemas import MessageOut


class ChatMessageCreate(BaseModel):
    """
    One new user turn. Whitespace-only text is rejected before anything
    is stored or sent upstream.
    """
    message: str = Field(max_length=32000)

    @field_validator("message")
    @classmethod
    def message_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message is required")
        return value


class ChatTurnResponse(BaseModel):
    """
    One round trip (user turn + assistant turn).
    """
    user_message: MessageOut
    assistant_message: MessageOut
