"""
Upload storage for shared documents (PDF and images).
"""

import logging
import os
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from werkzeug.utils import secure_filename

from .core.errors import FileTooLarge, UnsupportedFileType
from .core.session_store import FILE_TYPE_IMAGE, FILE_TYPE_PDF

logger = logging.getLogger(__name__)

DEFAULT_MAX_BYTES = 50 * 1024 * 1024

# mimetype -> accepted extensions, default first
ALLOWED_MIMETYPES = {
    'application/pdf': ('.pdf',),
    'image/jpeg': ('.jpg', '.jpeg'),
    'image/png': ('.png',),
    'image/gif': ('.gif',),
}


@dataclass(frozen=True)
class StoredUpload:
    filename: str
    file_type: str


def file_type_for(mimetype: str) -> str:
    return FILE_TYPE_PDF if mimetype == 'application/pdf' else FILE_TYPE_IMAGE


class UploadService:
    """
    Validates and writes uploaded documents to a directory.

    Stored names are `<epoch ms>-<8 hex><ext>`, so two uploads never share a
    name and a stored file's URL never changes.
    """

    def __init__(self, upload_dir, max_bytes: int = DEFAULT_MAX_BYTES):
        self.upload_dir = Path(upload_dir)
        self.max_bytes = max_bytes

    def validate(self, mimetype: str, size: int = None) -> None:
        """
        Raises:
            UnsupportedFileType: mimetype is not PDF/JPEG/PNG/GIF
            FileTooLarge: size exceeds the configured cap
        """
        if mimetype not in ALLOWED_MIMETYPES:
            raise UnsupportedFileType(mimetype)
        if size is not None and size > self.max_bytes:
            raise FileTooLarge(self.max_bytes)

    def store(self, data: bytes, mimetype: str, filename: str = '') -> StoredUpload:
        """
        Validate and persist an upload.

        Args:
            data: Raw file contents
            mimetype: Declared mimetype of the upload
            filename: Client-side filename; its extension is kept only when it
                matches the mimetype

        Returns:
            StoredUpload with the generated filename and 'pdf'/'image' type
        """
        self.validate(mimetype, len(data))

        extensions = ALLOWED_MIMETYPES[mimetype]
        ext = os.path.splitext(secure_filename(filename or ''))[1].lower()
        if ext not in extensions:
            ext = extensions[0]
        stored_name = f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}{ext}"

        self.upload_dir.mkdir(parents=True, exist_ok=True)
        with open(self.upload_dir / stored_name, 'wb') as f:
            f.write(data)

        logger.info(f"Stored upload {stored_name} ({mimetype}, {len(data)} bytes)")
        return StoredUpload(filename=stored_name, file_type=file_type_for(mimetype))

    def path_for(self, filename: str) -> Path:
        return self.upload_dir / filename
