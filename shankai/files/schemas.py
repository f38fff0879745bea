# shankai/files/schemas.py
from typing import List

from pydantic import BaseModel

from shankai.projects.schemas import FileOut


class FileListResponse(BaseModel):
    files: List[FileOut]


class FileUploadResponse(BaseModel):
    message: str
    file: FileOut
