import logging
import re
import shutil
import time
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, List, Optional
from uuid import uuid4

from config import settings
from errors import NotFoundError, ValidationError
from models import ArchivedFile

logger = logging.getLogger(__name__)

PUBLIC_PREFIX = "/uploads/"


def _now_ms() -> int:
    return int(time.time() * 1000)


def _sanitize(text: str, pattern: str, replacement: str = "") -> str:
    return re.sub(pattern, replacement, text)


class UploadArchive:
    """
    Directory of uploaded files: SO PDFs attached to issued components and
    free-standing archive documents.

    The inventory ledger only ever sees the references returned here
    ('/uploads/<name>'); it never reads the files themselves.
    """

    def __init__(self, upload_dir: Optional[str] = None):
        self.root = Path(upload_dir or settings.UPLOAD_DIR)

    def ensure_dir(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    # ===== LEDGER ATTACHMENTS =====
    def store_so_pdf(self, issue_no: Any, part_no: Any, upload: Any) -> str:
        """
        Store the SO PDF of one issued line item.

        Args:
            issue_no: Issue number of the batch (characters other than
                alphanumerics and '-' become '_')
            part_no: Part number of the line (non-alphanumerics become '_')
            upload: bytes, a binary file object, or the path of a file to copy

        Returns:
            Reference to embed in the record ('/uploads/SO_<issue>_<part>_<ms>_<tag>.pdf')

        Raises:
            ValidationError: If the generated name would land outside the upload directory
        """
        self.ensure_dir()
        safe_issue = _sanitize(str(issue_no or ""), r"[^a-zA-Z0-9-]", "_")
        safe_part = _sanitize(str(part_no or ""), r"[^a-zA-Z0-9]", "_")
        # Lines of one batch can share a part number and a millisecond
        filename = f"SO_{safe_issue}_{safe_part}_{_now_ms()}_{uuid4().hex[:8]}.pdf"
        target = self.root / filename
        if target.resolve().parent != self.root.resolve():
            raise ValidationError(f"Invalid SO PDF name: {filename!r}")
        self._write(target, upload)
        logger.info("Stored SO PDF %s", filename)
        return PUBLIC_PREFIX + filename

    def discard(self, reference: str) -> None:
        """Remove a file stored for a batch that was not persisted."""
        path = self.root / Path(reference).name
        if path.is_file():
            path.unlink()
            logger.info("Discarded orphaned attachment %s", path.name)

    # ===== ARCHIVE =====
    def list_files(self) -> List[ArchivedFile]:
        """
        List archived files.

        Names follow '<timestamp>_<scientist>_desc_<description>.<ext>';
        scientist and description are parsed back out of them.
        """
        self.ensure_dir()
        files = []
        for path in sorted(self.root.iterdir()):
            if not path.is_file():
                continue
            stats = path.stat()
            parts = path.name.split("_")
            scientist = parts[1] if len(parts) > 1 and parts[1] else "Unknown"
            if "desc" in parts:
                tail = "_".join(parts[parts.index("desc") + 1:])
                description = tail.split(".")[0].replace("-", " ")
            else:
                description = "No description"
            created = getattr(stats, "st_birthtime", stats.st_mtime)
            files.append(ArchivedFile(
                id=f"FILE-{path.name.split('-')[0]}",
                name=path.name,
                scientist=scientist.replace("-", " "),
                path=PUBLIC_PREFIX + path.name,
                size=stats.st_size,
                upload_date=datetime.fromtimestamp(created, tz=timezone.utc).isoformat(),
                description=description,
            ))
        return files

    def upload(self, filename: str, data: Any, scientist: str = "Unknown",
               description: str = "") -> ArchivedFile:
        """
        Store a document in the archive under a generated name.

        Args:
            filename: Original file name (only its extension is kept)
            data: bytes, a binary file object, or the path of a file to copy
            scientist: Uploader name
            description: Short description embedded in the stored name

        Returns:
            The archived file entry
        """
        self.ensure_dir()
        safe_scientist = _sanitize(re.sub(r"\s+", "-", scientist or "Unknown"), r"[^a-zA-Z0-9-]")
        safe_description = _sanitize(re.sub(r"\s+", "-", description or ""), r"[^a-zA-Z0-9-]")
        name = f"{_now_ms()}_{safe_scientist}_desc_{safe_description}{Path(filename).suffix}"
        self._write(self.root / name, data)
        logger.info("Archived %s as %s", filename, name)
        return next(f for f in self.list_files() if f.name == name)

    def delete(self, filename: str) -> None:
        path = self._existing(filename)
        path.unlink()
        logger.info("Deleted archived file %s", filename)

    def rename(self, old_name: str, new_name: str) -> None:
        """
        Rename an archived file.

        Raises:
            NotFoundError: If old_name does not exist
            ValidationError: If new_name is taken or is not a plain file name
        """
        old_path = self._existing(old_name)
        new_path = self._child(new_name)
        if new_path.exists():
            raise ValidationError("A file with that name already exists")
        old_path.rename(new_path)
        logger.info("Renamed archived file %s to %s", old_name, new_name)

    def _child(self, filename: str) -> Path:
        if not filename or Path(filename).name != filename or filename in (".", ".."):
            raise ValidationError(f"Invalid file name: {filename!r}")
        return self.root / filename

    def _existing(self, filename: str) -> Path:
        path = self._child(filename)
        if not path.is_file():
            raise NotFoundError("File not found")
        return path

    @staticmethod
    def _write(target: Path, data: Any) -> None:
        if isinstance(data, (bytes, bytearray)):
            target.write_bytes(data)
        elif isinstance(data, (str, Path)):
            shutil.copyfile(data, target)
        elif hasattr(data, "read"):
            with open(target, "wb") as out:
                shutil.copyfileobj(data, out)
        else:
            raise TypeError(f"Unsupported upload type: {type(data).__name__}")
