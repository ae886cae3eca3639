"""Attachment validation and signed-URL resolution for chat messages"""

import logging

from sqlalchemy.orm import Session

from ...config import ALLOWED_ATTACHMENT_TYPES, MAX_ATTACHMENT_SIZE_BYTES, MAX_ATTACHMENTS_PER_MESSAGE
from ...errors import ValidationError
from ...models import User
from ...services.file_storage import R2FileStorage
from .repository import MessageRepository
from .schemas import AttachmentResponse

logger = logging.getLogger(__name__)


def validate_attachments(db: Session, sender: User, file_ids: list[str]) -> list[dict]:
    """
    Check every referenced file and build the stored attachment records.

    Each file must exist, belong to the sender, have an allowed type and fit
    under the size ceiling. Records hold the durable reference only.
    """
    # Preserve order, drop repeats
    file_ids = list(dict.fromkeys(file_ids))
    if len(file_ids) > MAX_ATTACHMENTS_PER_MESSAGE:
        raise ValidationError(f"A message can carry at most {MAX_ATTACHMENTS_PER_MESSAGE} attachments")

    files = MessageRepository.get_files(db, file_ids)
    records = []
    for file_id in file_ids:
        user_file = files.get(file_id)
        if not user_file:
            raise ValidationError(f"Attachment {file_id} not found")
        if user_file.owner_id != sender.id:
            logger.warning(f"⚠️ User {sender.id} tried to attach file {file_id} they do not own")
            raise ValidationError("You can only attach files you uploaded")
        if user_file.mime_type not in ALLOWED_ATTACHMENT_TYPES:
            raise ValidationError(
                f"Attachment type {user_file.mime_type} is not allowed. Only PDF, PNG, JPEG and WEBP files are accepted"
            )
        if user_file.size > MAX_ATTACHMENT_SIZE_BYTES:
            raise ValidationError(f"Attachment {user_file.file_name} exceeds the 100MB limit")

        records.append(
            {
                "fileId": user_file.id,
                "key": user_file.key,
                "fileName": user_file.file_name,
                "mimeType": user_file.mime_type,
                "size": user_file.size,
            }
        )
    return records


def resolve_attachments(attachments: list[dict], storage: R2FileStorage) -> list[AttachmentResponse]:
    """Turn stored references into responses with freshly signed URLs"""
    resolved = []
    for item in attachments or []:
        try:
            url = storage.generate_presigned_url(item["key"], item.get("mimeType"))
        except Exception as e:
            logger.error(f"❌ Could not sign attachment {item.get('fileId')}: {e}")
            url = None
        resolved.append(
            AttachmentResponse(
                fileId=item["fileId"],
                fileName=item["fileName"],
                mimeType=item["mimeType"],
                size=item["size"],
                url=url,
            )
        )
    return resolved
