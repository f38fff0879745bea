# shankai/chat/service.py
from typing import Any, Dict, Iterator, List, Tuple
import logging

from sqlalchemy.orm import Session

from shankai.ai.service import (
    UpstreamError,
    ask_with_messages,
    ask_with_messages_stream,
    build_messages,
)
from shankai.config.settings import settings
from shankai.models.chat import Message, ROLE_ASSISTANT, ROLE_USER
from shankai.models.base import utcnow
from shankai.models.project import Project
from shankai.models.user import User
from shankai.projects.schemas import MessageOut
from shankai.projects.service import get_project_for_user
from shankai.utils.errors import NotFound, UpstreamNotConfigured, UpstreamUnavailable

logger = logging.getLogger(__name__)

FALLBACK_REPLY = (
    "I apologize, but I encountered an error processing your request. "
    "Please try again."
)

ChatEvent = Tuple[str, Any]


def _recent_history(db: Session, project: Project, limit: int) -> List[Dict[str, str]]:
    """
    The most recent ``limit`` turns, returned oldest-first.
    """
    rows = (
        db.query(Message)
        .filter(Message.project_id == project.id)
        .order_by(Message.created_at.desc(), Message.id.desc())
        .limit(limit)
        .all()
    )
    rows.reverse()
    return [{"role": m.role, "content": m.content} for m in rows]


def _save_message(db: Session, project_id: int, role: str, content: str) -> Message:
    msg = Message(project_id=project_id, role=role, content=content)
    db.add(msg)
    db.query(Project).filter(Project.id == project_id).update(
        {Project.updated_at: utcnow()}, synchronize_session=False
    )
    db.commit()
    db.refresh(msg)
    return msg


def begin_turn(
    db: Session,
    user: User,
    project_id: int,
    content: str,
) -> Tuple[Project, List[Dict[str, str]], Message]:
    """
    Steps shared by both chat variants:
    1. ownership check (NotFound otherwise)
    2. bounded history, read before the new turn exists
    3. persist the user turn before any network call
    """
    project = get_project_for_user(db, user, project_id)
    if not project:
        raise NotFound("Project not found")

    history = _recent_history(db, project, settings.CONTEXT_WINDOW_MESSAGES)
    user_msg = _save_message(db, project.id, ROLE_USER, content)
    logger.debug(
        f"[Chat Service] user turn saved: project_id={project.id}, message_id={user_msg.id}, "
        f"history={len(history)}, preview={content[:50]!r}"
    )
    return project, history, user_msg


def send_message(
    db: Session,
    user: User,
    project_id: int,
    content: str,
    client,
) -> Tuple[Message, Message]:
    """
    Buffered chat turn. Returns (user turn, assistant turn).

    If the endpoint fails, a fixed apology is stored as the assistant turn
    and UpstreamUnavailable is raised carrying the raw error as details.
    A missing API key raises UpstreamNotConfigured and stores no reply.
    """
    project, history, user_msg = begin_turn(db, user, project_id, content)
    messages = build_messages(project.system_prompt, history, content)

    try:
        answer_text = ask_with_messages(client, messages)
    except UpstreamNotConfigured:
        logger.error("[Chat Service] AI API key is not configured")
        raise
    except UpstreamError as e:
        logger.warning(f"[Chat Service] upstream failure for project_id={project.id}: {e}")
        _save_message(db, project.id, ROLE_ASSISTANT, FALLBACK_REPLY)
        raise UpstreamUnavailable(details=str(e)) from e

    assistant_msg = _save_message(db, project.id, ROLE_ASSISTANT, answer_text)
    logger.info(
        f"[Chat Service] turn complete: project_id={project.id}, "
        f"user_msg={user_msg.id}, assistant_msg={assistant_msg.id}"
    )
    return user_msg, assistant_msg


def _dump(msg: Message) -> Dict[str, Any]:
    return MessageOut.model_validate(msg).model_dump(mode="json")


def stream_turn_events(
    db: Session,
    project: Project,
    history: List[Dict[str, str]],
    user_msg: Message,
    client,
) -> Iterator[ChatEvent]:
    """
    Relay one streamed turn as (event_type, data) pairs.

    Event order is always ``user_message``, zero or more ``chunk``, then
    exactly one of ``done`` or ``error``. The assistant turn is stored only
    when the endpoint signals completion; an interrupted stream stores
    nothing.

    Everything read from ``project`` and ``user_msg`` is captured here, while
    the request's session is still open; the returned generator only touches
    the database by id.
    """
    messages = build_messages(project.system_prompt, history, user_msg.content)
    return _relay_stream(db, project.id, _dump(user_msg), messages, client)


def _relay_stream(
    db: Session,
    project_id: int,
    user_turn: Dict[str, Any],
    messages: List[Dict[str, str]],
    client,
) -> Iterator[ChatEvent]:
    yield ("user_message", user_turn)

    parts: List[str] = []
    fragments = ask_with_messages_stream(client, messages)
    try:
        for fragment in fragments:
            parts.append(fragment)
            yield ("chunk", fragment)
    except UpstreamNotConfigured as e:
        logger.error("[Chat Service] AI API key is not configured")
        yield ("error", e.message)
        return
    except UpstreamError as e:
        logger.warning(
            f"[Chat Service] stream failed for project_id={project_id} after {len(parts)} chunks: {e}"
        )
        yield ("error", str(e))
        return
    finally:
        # releases the upstream connection if the caller went away mid-stream
        fragments.close()

    assistant_msg = _save_message(db, project_id, ROLE_ASSISTANT, "".join(parts))
    logger.info(
        f"[Chat Service] stream complete: project_id={project_id}, "
        f"assistant_msg={assistant_msg.id}, chunks={len(parts)}"
    )
    yield ("done", _dump(assistant_msg))
