# shankai/projects/routes.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from shankai.auth.deps import get_current_user
from shankai.database.session import get_db
from shankai.files.storage import BlobStorage, get_storage
from shankai.models.user import User
from shankai.projects import schemas as project_schemas
from shankai.projects import service as project_service
from shankai.utils.errors import NotFound

router = APIRouter(prefix="/projects", tags=["projects"])


def _project_not_found() -> NotFound:
    return NotFound("Project not found")


@router.get(
    "",
    response_model=project_schemas.ProjectListResponse,
)
def list_projects(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    rows = project_service.list_projects_for_user(db, current_user)
    projects = [
        project_schemas.ProjectSummary(
            **project_schemas.ProjectOut.model_validate(project).model_dump(),
            message_count=message_count,
            file_count=file_count,
        )
        for project, message_count, file_count in rows
    ]
    return project_schemas.ProjectListResponse(projects=projects)


@router.post(
    "",
    response_model=project_schemas.ProjectResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_project(
    payload: project_schemas.ProjectIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = project_service.create_project(db, current_user, payload)
    return project_schemas.ProjectResponse(
        message="Project created successfully",
        project=project_schemas.ProjectOut.model_validate(project),
    )


@router.get(
    "/{project_id}",
    response_model=project_schemas.ProjectDetailResponse,
)
def get_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """
    One project with its full transcript and attached files.
    """
    project = project_service.get_project_for_user(db, current_user, project_id)
    if not project:
        raise _project_not_found()

    messages = project_service.list_messages_for_project(db, project)
    files = project_service.list_files_for_project(db, project)
    detail = project_schemas.ProjectDetail(
        **project_schemas.ProjectOut.model_validate(project).model_dump(),
        messages=[project_schemas.MessageOut.model_validate(m) for m in messages],
        files=[project_schemas.FileOut.model_validate(f) for f in files],
    )
    return project_schemas.ProjectDetailResponse(project=detail)


@router.put(
    "/{project_id}",
    response_model=project_schemas.ProjectResponse,
)
def update_project(
    project_id: int,
    payload: project_schemas.ProjectIn,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = project_service.update_project_for_user(
        db, current_user, project_id, payload
    )
    if not project:
        raise _project_not_found()
    return project_schemas.ProjectResponse(
        message="Project updated successfully",
        project=project_schemas.ProjectOut.model_validate(project),
    )


@router.delete(
    "/{project_id}",
    response_model=project_schemas.DetailMessage,
)
def delete_project(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    """
    Delete a project along with its messages and files (rows and blobs).
    """
    success = project_service.delete_project_for_user(
        db, current_user, project_id, storage
    )
    if not success:
        raise _project_not_found()
    return project_schemas.DetailMessage(message="Project deleted successfully")


@router.get(
    "/{project_id}/messages",
    response_model=project_schemas.MessageListResponse,
)
def list_messages(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    project = project_service.get_project_for_user(db, current_user, project_id)
    if not project:
        raise _project_not_found()
    messages = project_service.list_messages_for_project(db, project)
    return project_schemas.MessageListResponse(
        messages=[project_schemas.MessageOut.model_validate(m) for m in messages],
    )


@router.delete(
    "/{project_id}/messages",
    response_model=project_schemas.DetailMessage,
)
def clear_messages(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    deleted = project_service.clear_messages_for_user(db, current_user, project_id)
    if deleted is None:
        raise _project_not_found()
    return project_schemas.DetailMessage(message="Chat history cleared successfully")
