# shankai/models/chat.py
from sqlalchemy import (
    Column,
    Integer,
    String,
    DateTime,
    ForeignKey,
    Text,
)
from sqlalchemy.orm import relationship

from shankai.database.session import Base
from shankai.models.base import utcnow

ROLE_USER = "user"
ROLE_ASSISTANT = "assistant"


class Message(Base):
    """
    One chat turn in a project's transcript.
    """
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(
        Integer,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    role = Column(String(20), nullable=False)  # user / assistant
    content = Column(Text, nullable=False)
    created_at = Column(
        DateTime(timezone=True), default=utcnow, nullable=False, index=True
    )

    project = relationship("Project", back_populates="messages")
