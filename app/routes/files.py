import logging

from fastapi import APIRouter, Depends, File, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import ALLOWED_ATTACHMENT_TYPES, MAX_ATTACHMENT_SIZE_BYTES
from ..database import atomic, get_db
from ..errors import NotFoundError, ValidationError
from ..models import User, UserFile
from ..security_utils import sanitize_filename
from ..services.file_storage import R2FileStorage, build_object_key, get_file_storage

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/files", tags=["Files"])

# Read uploads in chunks so oversized files are refused without buffering them whole
UPLOAD_CHUNK_SIZE = 1024 * 1024


class FileResponse(BaseModel):
    id: str
    key: str
    fileName: str
    mimeType: str
    size: int
    url: str


class FileUrlResponse(BaseModel):
    id: str
    url: str


@router.post("", response_model=FileResponse, status_code=201)
async def upload_file(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: R2FileStorage = Depends(get_file_storage),
):
    """Upload a private file (CV or message attachment) and get a durable reference"""
    mime_type = (file.content_type or "").lower()
    if mime_type not in ALLOWED_ATTACHMENT_TYPES:
        raise ValidationError("Invalid file type. Only PDF, PNG, JPEG and WEBP files are allowed.")

    file_name = sanitize_filename(file.filename or "upload")
    logger.info(f"📤 Uploading {file_name} ({mime_type}) for user {current_user.id}")

    chunks = []
    size = 0
    while True:
        chunk = await file.read(UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        size += len(chunk)
        if size > MAX_ATTACHMENT_SIZE_BYTES:
            raise ValidationError("File size exceeds the 100MB limit.")
        chunks.append(chunk)

    if size == 0:
        raise ValidationError("File is empty.")

    key = build_object_key(current_user.id, file_name, mime_type)
    # Store in R2 before the row exists; never hold a transaction open across the upload
    storage.put_object(key, b"".join(chunks), mime_type)

    user_file = UserFile(
        owner_id=current_user.id, key=key, file_name=file_name, mime_type=mime_type, size=size
    )
    with atomic(db):
        db.add(user_file)
    db.refresh(user_file)

    logger.info(f"✅ Stored file {user_file.id} at {key}")
    return FileResponse(
        id=user_file.id,
        key=user_file.key,
        fileName=user_file.file_name,
        mimeType=user_file.mime_type,
        size=user_file.size,
        url=storage.generate_presigned_url(user_file.key, user_file.mime_type),
    )


@router.get("/{file_id}/url", response_model=FileUrlResponse)
async def get_file_url(
    file_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    storage: R2FileStorage = Depends(get_file_storage),
):
    """Get a fresh short-lived URL for one of my files"""
    user_file = db.query(UserFile).filter(UserFile.id == file_id).first()
    if not user_file or user_file.owner_id != current_user.id:
        raise NotFoundError("File not found")
    return FileUrlResponse(
        id=user_file.id, url=storage.generate_presigned_url(user_file.key, user_file.mime_type)
    )
