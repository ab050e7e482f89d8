"""
File storage service for uploaded photos, receipts and documents
Writes to the local filesystem; the cloud backend only records a URL for now
"""
import os
import uuid
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import FrozenSet, Optional

from fastapi import UploadFile

from app.config import settings

logger = logging.getLogger(__name__)

MB = 1024 * 1024


@dataclass(frozen=True)
class UploadRule:
    subdirectory: str
    extensions: FrozenSet[str]
    max_size: int


UPLOAD_RULES = {
    "photo": UploadRule("photos", frozenset({"jpg", "jpeg", "png", "gif"}), 5 * MB),
    "receipt": UploadRule("receipts", frozenset({"jpg", "jpeg", "png", "pdf"}), 5 * MB),
    "document": UploadRule("documents", frozenset({"pdf", "doc", "docx", "jpg", "jpeg", "png"}), 10 * MB),
}


class UploadValidationError(ValueError):
    """Raised when an uploaded file breaks its type or size rule"""


def get_file_extension(filename: str) -> str:
    """Get file extension from filename"""
    return Path(filename).suffix.lower().lstrip('.')


def generate_unique_filename(original_filename: str, prefix: str) -> str:
    """Generate unique filename with timestamp and UUID"""
    ext = get_file_extension(original_filename)
    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    unique_id = str(uuid.uuid4())[:8]
    return f"{prefix}_{timestamp}_{unique_id}.{ext}"


class FileStorageService:
    """Service for storing uploads on local disk or a cloud placeholder"""

    def __init__(
        self,
        base_dir: Optional[str] = None,
        static_url_prefix: Optional[str] = None,
        backend: Optional[str] = None,
        cloud_url: Optional[str] = None
    ):
        self.base_dir = base_dir or settings.UPLOAD_BASE_DIR
        self.static_url_prefix = (static_url_prefix or settings.STATIC_URL_PREFIX).rstrip('/')
        self.backend = backend or settings.STORAGE_BACKEND
        self.cloud_url = (cloud_url or settings.CLOUD_STORAGE_URL).rstrip('/')

    def validate(self, filename: Optional[str], size: int, kind: str) -> UploadRule:
        """
        Check an upload against the rule for its kind

        Raises:
            UploadValidationError: missing file, wrong extension or too large
        """
        rule = UPLOAD_RULES[kind]
        if not filename:
            raise UploadValidationError("Please upload a file")

        if get_file_extension(filename) not in rule.extensions:
            raise UploadValidationError(
                f"File type not allowed. Allowed types: {', '.join(sorted(rule.extensions))}"
            )

        if size > rule.max_size:
            raise UploadValidationError(
                f"File too large. Maximum size: {rule.max_size // MB}MB"
            )
        return rule

    def save(self, content: bytes, filename: str, kind: str, prefix: str) -> str:
        """
        Validate and store file content, returning its public URL
        """
        rule = self.validate(filename, len(content), kind)
        unique_filename = generate_unique_filename(filename, prefix)

        if self.backend == "cloud":
            url = f"{self.cloud_url}/{rule.subdirectory}/{unique_filename}"
            logger.info(f"Cloud storage placeholder, recorded {url}")
            return url

        directory = os.path.join(self.base_dir, rule.subdirectory)
        os.makedirs(directory, exist_ok=True)
        full_path = os.path.join(directory, unique_filename)
        with open(full_path, 'wb') as f:
            f.write(content)

        url = f"{self.static_url_prefix}/{rule.subdirectory}/{unique_filename}"
        logger.info(f"File uploaded successfully: {full_path} -> {url}")
        return url

    async def save_upload(self, file: UploadFile, kind: str, prefix: str) -> str:
        content = await file.read()
        return self.save(content, file.filename, kind, prefix)

    def delete(self, url: Optional[str]) -> bool:
        """Remove a locally stored file given its public URL"""
        if not url or self.backend == "cloud" or not url.startswith(self.static_url_prefix):
            return False

        relative = url[len(self.static_url_prefix):].lstrip('/')
        full_path = os.path.join(self.base_dir, relative)
        if os.path.exists(full_path):
            os.remove(full_path)
            logger.info(f"File deleted successfully: {full_path}")
            return True

        logger.warning(f"File not found for deletion: {full_path}")
        return False


# Create singleton instance
file_storage = FileStorageService()
