"""Upload staging area with guaranteed cleanup."""

import shutil
import time
import uuid
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional

from post_analyzer.logger import get_logger
from post_analyzer.models import StagedFile

logger = get_logger(__name__)


class UploadStaging:
    """Holds uploaded files on disk for the lifetime of one request."""

    def __init__(self, base_dir: Path):
        """Create the staging directory if it does not exist yet.

        Args:
            base_dir: Directory uploads are written to.
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

        logger.info(
            "Upload staging directory ready",
            extra_data={"base_dir": self.base_dir.resolve()},
        )

    @staticmethod
    def unique_name(original_name: Optional[str]) -> str:
        """Build ``<epoch-millis>_<token>_<basename>`` for an upload.

        Directory components of the client-supplied name are dropped.
        """
        # Windows-style separators are not path separators on POSIX
        base = Path((original_name or "").replace("\\", "/")).name or "upload"
        millis = time.time_ns() // 1_000_000
        return f"{millis}_{uuid.uuid4().hex[:8]}_{base}"

    @contextmanager
    def stage(
        self,
        stream: BinaryIO,
        original_name: Optional[str],
        content_type: Optional[str] = None,
    ) -> Iterator[StagedFile]:
        """Write ``stream`` to the staging area and remove it on exit.

        The file is deleted when the ``with`` block exits, whether it
        returns normally or raises.
        """
        path = self.base_dir / self.unique_name(original_name)
        try:
            with open(path, "xb") as out:
                shutil.copyfileobj(stream, out)

            staged = StagedFile(
                path=path,
                original_name=original_name or path.name,
                content_type=content_type or "application/octet-stream",
                size_bytes=path.stat().st_size,
            )
            logger.debug(
                "Staged upload",
                extra_data={
                    "path": path,
                    "original_name": staged.original_name,
                    "size_bytes": staged.size_bytes,
                },
            )
            yield staged
        finally:
            self._remove(path)

    @staticmethod
    def _remove(path: Path) -> None:
        try:
            if path.exists():
                path.unlink()
                logger.info("Deleted temporary file", extra_data={"path": path})
        except OSError as exc:
            # Raising here would mask the error that ended the request
            logger.error(
                "Failed to delete temporary file",
                extra_data={"path": path, "error": str(exc)},
                exc_info=True,
            )
