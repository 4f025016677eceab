"""
Upload ingestion with admission control.

An upload is accepted only if its extension and declared content type both
pass the policy and its size stays within the ceiling. Bytes are streamed
into a temp file inside the upload directory and renamed to the final
`<epoch-millis><ext>` name only after every check has passed.
"""

import os
import tempfile
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, FrozenSet, Optional, Protocol

from .config import Settings
from .errors import (
    AdmissionError,
    NotFoundError,
    PayloadTooLargeError,
    StorageWriteError,
    UnsupportedMediaTypeError,
)
from .logger import StructuredLogger, get_logger
from .storage import default_file_mode

MiB = 1024 * 1024
CHUNK_SIZE = MiB


class Upload(Protocol):
    filename: Optional[str]
    content_type: Optional[str]
    file: BinaryIO


@dataclass(frozen=True)
class AdmissionPolicy:
    extensions: FrozenSet[str]
    # Declared content type must contain at least one of these substrings
    content_type_keywords: FrozenSet[str]
    max_bytes: int

    @classmethod
    def from_mode(
        cls,
        mode: str,
        max_bytes: Optional[int] = None,
        extensions: Optional[FrozenSet[str]] = None,
        content_type_keywords: Optional[FrozenSet[str]] = None,
    ) -> "AdmissionPolicy":
        try:
            preset = UPLOAD_MODES[mode]
        except KeyError:
            raise ValueError(f"Unknown upload mode {mode!r}; expected one of {sorted(UPLOAD_MODES)}") from None
        return cls(
            extensions=frozenset(extensions) if extensions else preset.extensions,
            content_type_keywords=frozenset(content_type_keywords) if content_type_keywords else preset.content_type_keywords,
            max_bytes=preset.max_bytes if max_bytes is None else max_bytes,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "AdmissionPolicy":
        return cls.from_mode(
            settings.upload_mode,
            max_bytes=settings.max_upload_bytes,
            extensions=settings.allowed_extensions,
            content_type_keywords=settings.allowed_content_types,
        )

    def check_type(self, filename: str, content_type: Optional[str]) -> str:
        """Return the original extension (with dot) or raise UnsupportedMediaTypeError."""
        ext = os.path.splitext(filename)[1]
        if ext.lower().lstrip(".") not in self.extensions:
            raise UnsupportedMediaTypeError(f"File extension {ext or '(none)'!r} is not allowed")
        declared = (content_type or "").lower()
        if not any(keyword in declared for keyword in self.content_type_keywords):
            raise UnsupportedMediaTypeError(f"Content type {content_type or '(none)'!r} is not allowed")
        return ext


_LEGACY_TYPES = frozenset({"jpeg", "jpg", "png", "gif", "mp4", "mov", "avi", "mkv", "webm"})

UPLOAD_MODES = {
    "images": AdmissionPolicy(
        extensions=frozenset({"jpeg", "jpg", "png", "gif", "webp", "mp4", "webm"}),
        content_type_keywords=frozenset({"image", "video"}),
        max_bytes=10 * MiB,
    ),
    # Same pattern tested against both the extension and the content type
    "legacy": AdmissionPolicy(
        extensions=_LEGACY_TYPES,
        content_type_keywords=_LEGACY_TYPES,
        max_bytes=200 * MiB,
    ),
}


class AttachmentStore:
    """Writes admitted uploads into one directory and hands back public paths."""

    def __init__(
        self,
        upload_dir: Path,
        policy: AdmissionPolicy,
        public_prefix: str = "/uploads",
        logger: Optional[StructuredLogger] = None,
    ):
        self.upload_dir = Path(upload_dir)
        self.policy = policy
        self.public_prefix = "/" + public_prefix.strip("/")
        self.logger = logger or get_logger()
        self._lock = threading.Lock()

    def ingest(self, upload: Optional[Upload]) -> str:
        """
        Store `upload` and return its public path, or "" when no file was sent.

        Raises:
            UnsupportedMediaTypeError: extension or content type not allowed
            PayloadTooLargeError: more than `policy.max_bytes` bytes
        """
        if upload is None or not upload.filename:
            return ""

        try:
            ext = self.policy.check_type(upload.filename, upload.content_type)
            self.upload_dir.mkdir(parents=True, exist_ok=True)
            tmp_path, size = self._write_part(upload.file)
        except AdmissionError as e:
            self.logger.record_upload_rejected(type(e).__name__)
            self.logger.warning("Upload rejected", filename=upload.filename,
                                content_type=upload.content_type, reason=str(e))
            raise

        with self._lock:
            # Collisions within the same millisecond overwrite the earlier file
            filename = f"{int(time.time() * 1000)}{ext}"
            try:
                os.replace(tmp_path, self.upload_dir / filename)
            except OSError as e:
                Path(tmp_path).unlink(missing_ok=True)
                raise StorageWriteError(f"Could not store upload {upload.filename!r}: {e}") from e

        self.logger.record_upload_accepted(size)
        self.logger.info("Upload stored", filename=filename, original=upload.filename, bytes=size)
        return f"{self.public_prefix}/{filename}"

    def _write_part(self, stream: BinaryIO):
        fd, tmp_name = tempfile.mkstemp(prefix=".upload-", suffix=".part", dir=self.upload_dir)
        size = 0
        try:
            with os.fdopen(fd, "wb") as out:
                while True:
                    chunk = stream.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    size += len(chunk)
                    if size > self.policy.max_bytes:
                        raise PayloadTooLargeError(
                            f"Upload exceeds allowed size of {self.policy.max_bytes} bytes"
                        )
                    out.write(chunk)
            os.chmod(tmp_name, default_file_mode())
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageWriteError(f"Could not write upload: {e}") from e
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        return tmp_name, size

    def discard(self, ref: str) -> bool:
        """Remove a file stored by `ingest` whose record never got persisted."""
        if not ref or not ref.startswith(self.public_prefix + "/"):
            return False
        try:
            path = self.resolve(ref[len(self.public_prefix) + 1:])
        except NotFoundError:
            return False
        path.unlink(missing_ok=True)
        self.logger.info("Upload discarded", filename=path.name)
        return True

    def resolve(self, filename: str) -> Path:
        """Map a public filename to the stored file, refusing anything outside the upload dir."""
        root = self.upload_dir.resolve()
        candidate = (root / filename).resolve()
        if candidate.parent != root or candidate.name.startswith(".") or not candidate.is_file():
            raise NotFoundError(f"Attachment {filename!r} not found")
        return candidate
