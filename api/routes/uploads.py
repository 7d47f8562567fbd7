"""
api/routes/uploads.py -- Public image upload endpoints.

Routes:
  POST /api/uploads                 -- one file, form field "file"
  POST /api/uploads/multiple-files  -- up to MAX_FILES files, form field "files"
  GET  /api/uploads/{image}         -- serve a stored upload

Size, extension and naming rules live in uploads/storage.py.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, UploadFile
from fastapi.responses import FileResponse

from api.limiter import limiter
from api.models import UploadResponse
from core.errors import ValidationFailed
from uploads.storage import UploadStorage

router = APIRouter(prefix="/uploads")

MAX_FILES = 10


@router.post("", response_model=UploadResponse, status_code=201)
@limiter.limit("30/minute")
async def upload_file(request: Request, file: UploadFile) -> UploadResponse:
    storage: UploadStorage = request.app.state.uploads
    filename = storage.save(await file.read(), file.filename or "")
    return UploadResponse(message="file uploaded successfully", filenames=[filename])


@router.post("/multiple-files", response_model=UploadResponse, status_code=201)
@limiter.limit("10/minute")
async def upload_files(request: Request, files: list[UploadFile]) -> UploadResponse:
    if len(files) > MAX_FILES:
        raise ValidationFailed(f"at most {MAX_FILES} files per request")
    storage: UploadStorage = request.app.state.uploads
    # Read everything first so a bad file late in the batch stores nothing.
    payloads = [(await f.read(), f.filename or "") for f in files]
    for data, name in payloads:
        storage.check(data, name)
    filenames = [storage.save(data, name) for data, name in payloads]
    return UploadResponse(message="files uploaded successfully", filenames=filenames)


@router.get("/{image}", response_class=FileResponse)
def show_upload(request: Request, image: str) -> FileResponse:
    storage: UploadStorage = request.app.state.uploads
    return FileResponse(storage.path_for("", image))
