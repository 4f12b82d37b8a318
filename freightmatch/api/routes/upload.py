import base64

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile

from freightmatch.core.security import get_current_user
from freightmatch.db.models.user import User
from freightmatch.schemas.misc import UploadResponse

router = APIRouter(prefix="/api/upload", tags=["upload"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
ALLOWED_PREFIXES = ("image/", "audio/", "video/")


# Multipart upload -> data URL (stored inline by the caller)
@router.post("", response_model=UploadResponse)
async def upload_file(file: UploadFile = File(...), current_user: User = Depends(get_current_user)):
    content_type = file.content_type or "application/octet-stream"
    if not content_type.startswith(ALLOWED_PREFIXES):
        raise HTTPException(status_code=400, detail="Unsupported file type")

    data = await file.read()
    if len(data) > MAX_UPLOAD_BYTES:
        raise HTTPException(status_code=413, detail="File too large")

    encoded = base64.b64encode(data).decode("ascii")
    return UploadResponse(
        url=f"data:{content_type};base64,{encoded}",
        file_name=file.filename or "upload",
        file_size=len(data),
        content_type=content_type,
    )
