# shankai/files/service.py
import logging
from typing import BinaryIO, List, Optional

from sqlalchemy.orm import Session

from shankai.config.settings import settings
from shankai.files.storage import BlobStorage
from shankai.models.file import ProjectFile
from shankai.models.project import Project
from shankai.models.user import User
from shankai.projects.service import get_project_for_user, list_files_for_project
from shankai.utils.errors import NotFound, ValidationFailure

logger = logging.getLogger(__name__)

ALLOWED_MIME_TYPES = frozenset({
    "text/plain",
    "application/pdf",
    "application/json",
    "text/markdown",
    "text/csv",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/png",
    "image/jpeg",
    "image/gif",
})


def _normalize_mime(content_type: Optional[str]) -> str:
    # drop parameters such as "; charset=utf-8"
    return (content_type or "").split(";", 1)[0].strip().lower()


def check_mime_type(content_type: Optional[str]) -> str:
    mime_type = _normalize_mime(content_type)
    if mime_type not in ALLOWED_MIME_TYPES:
        raise ValidationFailure("File type not allowed")
    return mime_type


def read_limited(stream: BinaryIO, max_size: int) -> bytes:
    """Read at most ``max_size`` bytes, failing if the body is larger."""
    data = stream.read(max_size + 1)
    if len(data) > max_size:
        raise ValidationFailure(
            f"File too large (max {max_size} bytes)"
        )
    return data


def list_files_for_user(
    db: Session,
    user: User,
    project_id: int,
) -> List[ProjectFile]:
    project = get_project_for_user(db, user, project_id)
    if not project:
        raise NotFound("Project not found")
    return list_files_for_project(db, project)


def upload_file(
    db: Session,
    user: User,
    project_id: int,
    original_name: str,
    content_type: Optional[str],
    stream: BinaryIO,
    storage: BlobStorage,
    max_size: Optional[int] = None,
) -> ProjectFile:
    """
    Validate, store and record one upload.

    Type, ownership and size are all checked before the blob is written;
    if the metadata row cannot be committed the blob is removed again.
    """
    if max_size is None:
        max_size = settings.MAX_UPLOAD_SIZE

    mime_type = check_mime_type(content_type)

    project: Optional[Project] = get_project_for_user(db, user, project_id)
    if not project:
        raise NotFound("Project not found")

    data = read_limited(stream, max_size)
    stored_name, path = storage.save(data, original_name)

    try:
        record = ProjectFile(
            project_id=project.id,
            filename=stored_name,
            original_name=original_name,
            mime_type=mime_type,
            size=len(data),
            path=path,
        )
        db.add(record)
        db.commit()
        db.refresh(record)
    except Exception:
        db.rollback()
        storage.delete(path)
        logger.error(f"[File Service] failed to record upload for project_id={project_id}", exc_info=True)
        raise

    logger.info(
        f"[File Service] file uploaded: file_id={record.id}, project_id={project.id}, size={record.size}"
    )
    return record


def delete_file_for_user(
    db: Session,
    user: User,
    project_id: int,
    file_id: int,
    storage: BlobStorage,
) -> None:
    project = get_project_for_user(db, user, project_id)
    if not project:
        raise NotFound("Project not found")

    record = (
        db.query(ProjectFile)
        .filter(
            ProjectFile.id == file_id,
            ProjectFile.project_id == project.id,
        )
        .first()
    )
    if not record:
        raise NotFound("File not found")

    path = record.path
    db.delete(record)
    db.commit()
    storage.delete(path)
    logger.info(f"[File Service] file deleted: file_id={file_id}, project_id={project.id}")
