# shankai/files/routes.py
from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.orm import Session

from shankai.auth.deps import get_current_user
from shankai.database.session import get_db
from shankai.files import schemas as file_schemas
from shankai.files import service as file_service
from shankai.files.storage import BlobStorage, get_storage
from shankai.models.user import User
from shankai.projects.schemas import DetailMessage, FileOut

router = APIRouter(prefix="/files", tags=["files"])


@router.get(
    "/{project_id}",
    response_model=file_schemas.FileListResponse,
)
def list_files(
    project_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    files = file_service.list_files_for_user(db, current_user, project_id)
    return file_schemas.FileListResponse(
        files=[FileOut.model_validate(f) for f in files],
    )


@router.post(
    "/{project_id}",
    response_model=file_schemas.FileUploadResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_file(
    project_id: int,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    """
    Attach one file (multipart field ``file``) to a project.
    """
    record = file_service.upload_file(
        db=db,
        user=current_user,
        project_id=project_id,
        original_name=file.filename or "upload",
        content_type=file.content_type,
        stream=file.file,
        storage=storage,
    )
    return file_schemas.FileUploadResponse(
        message="File uploaded successfully",
        file=FileOut.model_validate(record),
    )


@router.delete(
    "/{project_id}/{file_id}",
    response_model=DetailMessage,
)
def delete_file(
    project_id: int,
    file_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    storage: BlobStorage = Depends(get_storage),
):
    file_service.delete_file_for_user(
        db=db,
        user=current_user,
        project_id=project_id,
        file_id=file_id,
        storage=storage,
    )
    return DetailMessage(message="File deleted successfully")
