# shankai/projects/service.py
import logging
from typing import List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from shankai.models.chat import Message
from shankai.models.file import ProjectFile
from shankai.models.project import Project
from shankai.models.user import User
from shankai.projects.schemas import ProjectIn
from shankai.files.storage import BlobStorage

logger = logging.getLogger(__name__)


def get_project_for_user(
    db: Session,
    user: User,
    project_id: int,
) -> Optional[Project]:
    # id and owner are matched in one query; a project owned by someone
    # else is indistinguishable from one that does not exist
    return (
        db.query(Project)
        .filter(
            Project.id == project_id,
            Project.owner_id == user.id,
        )
        .first()
    )


def list_projects_for_user(
    db: Session,
    user: User,
) -> List[Tuple[Project, int, int]]:
    """
    Return (project, message_count, file_count) rows, most recently
    updated first.
    """
    message_counts = (
        db.query(Message.project_id, func.count(Message.id).label("n"))
        .group_by(Message.project_id)
        .subquery()
    )
    file_counts = (
        db.query(ProjectFile.project_id, func.count(ProjectFile.id).label("n"))
        .group_by(ProjectFile.project_id)
        .subquery()
    )
    rows = (
        db.query(
            Project,
            func.coalesce(message_counts.c.n, 0),
            func.coalesce(file_counts.c.n, 0),
        )
        .outerjoin(message_counts, message_counts.c.project_id == Project.id)
        .outerjoin(file_counts, file_counts.c.project_id == Project.id)
        .filter(Project.owner_id == user.id)
        .order_by(Project.updated_at.desc(), Project.id.desc())
        .all()
    )
    return [(project, int(n_messages), int(n_files)) for project, n_messages, n_files in rows]


def create_project(
    db: Session,
    user: User,
    project_in: ProjectIn,
) -> Project:
    project = Project(
        owner_id=user.id,
        name=project_in.name,
        description=project_in.description,
        system_prompt=project_in.system_prompt,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info(f"[Project Service] project created: project_id={project.id}, owner={user.id}")
    return project


def update_project_for_user(
    db: Session,
    user: User,
    project_id: int,
    project_in: ProjectIn,
) -> Optional[Project]:
    project = get_project_for_user(db, user, project_id)
    if not project:
        return None

    # fields left out of the payload keep their stored value
    for field, value in project_in.model_dump(exclude_unset=True).items():
        setattr(project, field, value)
    db.commit()
    db.refresh(project)
    return project


def delete_project_for_user(
    db: Session,
    user: User,
    project_id: int,
    storage: BlobStorage,
) -> bool:
    """
    Delete a project together with its messages, file rows and blobs.
    Returns False if the caller owns no such project.
    """
    project = get_project_for_user(db, user, project_id)
    if not project:
        return False

    blob_paths = [f.path for f in project.files]

    # rows go in one transaction (ORM cascade), blobs only after it commits
    try:
        db.delete(project)
        db.commit()
    except Exception:
        db.rollback()
        logger.error(f"[Project Service] failed to delete project_id={project_id}", exc_info=True)
        raise

    for path in blob_paths:
        storage.delete(path)

    logger.info(
        f"[Project Service] project deleted: project_id={project_id}, blobs_removed={len(blob_paths)}"
    )
    return True


def list_messages_for_project(db: Session, project: Project) -> List[Message]:
    return (
        db.query(Message)
        .filter(Message.project_id == project.id)
        .order_by(Message.created_at.asc(), Message.id.asc())
        .all()
    )


def list_files_for_project(db: Session, project: Project) -> List[ProjectFile]:
    return (
        db.query(ProjectFile)
        .filter(ProjectFile.project_id == project.id)
        .order_by(ProjectFile.created_at.desc(), ProjectFile.id.desc())
        .all()
    )


def clear_messages_for_user(
    db: Session,
    user: User,
    project_id: int,
) -> Optional[int]:
    """
    Remove every message of one owned project. Returns the number of rows
    deleted, or None if the project is not the caller's.
    """
    project = get_project_for_user(db, user, project_id)
    if not project:
        return None

    deleted = (
        db.query(Message)
        .filter(Message.project_id == project.id)
        .delete(synchronize_session=False)
    )
    db.commit()
    logger.info(f"[Project Service] chat cleared: project_id={project.id}, deleted={deleted}")
    return deleted
