# shankai/chat/routes.py
from typing import Iterator
import json
import logging

from fastapi import APIRouter, Depends
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from shankai.ai.client import get_ai_client
from shankai.auth.deps import get_current_user
from shankai.chat import schemas as chat_schemas
from shankai.chat import service as chat_service
from shankai.database.session import get_db
from shankai.models.user import User
from shankai.projects.schemas import MessageOut

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])


def sse_frame(event_type: str, data) -> str:
    payload = json.dumps({"type": event_type, "data": data}, ensure_ascii=False)
    return f"event: {event_type}\ndata: {payload}\n\n"


@router.post(
    "/{project_id}",
    response_model=chat_schemas.ChatTurnResponse,
)
def send_message(
    project_id: int,
    payload: chat_schemas.ChatMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    client=Depends(get_ai_client),
):
    """
    Send one message and wait for the full reply.
    Returns both stored turns: the user's message and the assistant reply.
    """
    user_msg, assistant_msg = chat_service.send_message(
        db=db,
        user=current_user,
        project_id=project_id,
        content=payload.message,
        client=client,
    )
    return chat_schemas.ChatTurnResponse(
        user_message=MessageOut.model_validate(user_msg),
        assistant_message=MessageOut.model_validate(assistant_msg),
    )


@router.post("/{project_id}/stream")
def send_message_stream(
    project_id: int,
    payload: chat_schemas.ChatMessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    client=Depends(get_ai_client),
):
    """
    Send one message and stream the reply as server-sent events.

    Event types:
    - user_message: the stored user turn
    - chunk: a text fragment of the reply
    - done: the stored assistant turn (last event)
    - error: the reply failed (last event, nothing stored)

    Ownership and validation failures are returned as ordinary JSON errors
    before the stream starts.
    """
    project, history, user_msg = chat_service.begin_turn(
        db=db,
        user=current_user,
        project_id=project_id,
        content=payload.message,
    )
    events = chat_service.stream_turn_events(db, project, history, user_msg, client)

    def sse_generator() -> Iterator[str]:
        try:
            for event_type, data in events:
                logger.debug(f"[Chat Routes] sending event: {event_type}")
                yield sse_frame(event_type, data)
        except Exception:
            logger.error("[Chat Routes] stream processing error", exc_info=True)
            yield sse_frame("error", "Internal server error")
        finally:
            events.close()

    return StreamingResponse(
        sse_generator(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
