import logging
import mimetypes
import re
import time
from pathlib import Path

from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import FileResponse

from chatbot.core.config import settings
from chatbot.core.errors import BadRequestError, NotFoundError
from chatbot.core.sandbox import SandboxError, resolve_upload_path

router = APIRouter()
logger = logging.getLogger(__name__)


def _safe_name(filename: str) -> str:
    name = Path(filename).name
    return re.sub(r"[^A-Za-z0-9._-]", "_", name) or "upload"


@router.post("/files/upload")
async def upload_file(file: UploadFile | None = File(None)):
    if file is None:
        raise BadRequestError("No file uploaded", surface="files")

    content = await file.read()
    if len(content) > settings.max_upload_bytes:
        raise BadRequestError("File size should be less than 5MB", surface="files")
    if file.content_type not in settings.allowed_upload_types:
        raise BadRequestError("File type should be JPEG or PNG", surface="files")

    original_name = file.filename or "upload"
    filename = f"{int(time.time() * 1000)}-{_safe_name(original_name)}"
    try:
        file_path = resolve_upload_path(filename)
    except SandboxError as e:
        raise HTTPException(status_code=403, detail=str(e))

    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_bytes(content)
    logger.debug(f"Stored upload {filename} ({len(content)} bytes)")

    return {
        "url": f"/api/uploads/{filename}",
        "pathname": filename,
        "contentType": file.content_type,
        "contentDisposition": f'attachment; filename="{original_name}"',
    }


@router.get("/uploads/{filename}")
async def get_upload(filename: str):
    try:
        file_path = resolve_upload_path(filename)
    except SandboxError as e:
        raise HTTPException(status_code=403, detail=str(e))

    if not file_path.is_file():
        raise NotFoundError("File not found", surface="files")

    media_type = mimetypes.guess_type(file_path.name)[0] or "application/octet-stream"
    return FileResponse(file_path, media_type=media_type)
