# shankai/projects/schemas.py
from datetime import datetime
from typing import Annotated, List, Optional

from pydantic import AfterValidator, BaseModel, Field, field_validator

from shankai.models.base import as_utc

UtcDatetime = Annotated[datetime, AfterValidator(as_utc)]


# --- output models ---

class MessageOut(BaseModel):
    id: int
    project_id: int
    role: str
    content: str
    created_at: UtcDatetime

    class Config:
        from_attributes = True


class FileOut(BaseModel):
    id: int
    project_id: int
    filename: str
    original_name: str
    mime_type: str
    size: int
    created_at: UtcDatetime

    class Config:
        from_attributes = True


class ProjectOut(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    system_prompt: Optional[str] = None
    created_at: UtcDatetime
    updated_at: UtcDatetime

    class Config:
        from_attributes = True


class ProjectSummary(ProjectOut):
    message_count: int = 0
    file_count: int = 0


class ProjectDetail(ProjectOut):
    messages: List[MessageOut] = []
    files: List[FileOut] = []


# --- input models ---

class ProjectIn(BaseModel):
    """
    Create/update payload. Blank optional fields are stored as null; on
    update, optional fields that are left out keep their current value.
    """
    name: str = Field(max_length=255)
    description: Optional[str] = None
    system_prompt: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Project name is required")
        return value

    @field_validator("description", "system_prompt")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


# --- envelopes ---

class ProjectListResponse(BaseModel):
    projects: List[ProjectSummary]


class ProjectResponse(BaseModel):
    message: Optional[str] = None
    project: ProjectOut


class ProjectDetailResponse(BaseModel):
    project: ProjectDetail


class MessageListResponse(BaseModel):
    messages: List[MessageOut]


class DetailMessage(BaseModel):
    message: str
