"""Media type detection for staged uploads."""

import mimetypes
from typing import Optional

from post_analyzer.logger import get_logger
from post_analyzer.models import ExtractionMode

logger = get_logger(__name__)


PDF_SIGNATURE = b"%PDF"
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"
JPEG_SIGNATURE = b"\xff\xd8\xff"
GIF_SIGNATURES = (b"GIF87a", b"GIF89a")
TIFF_SIGNATURES = (b"II*\x00", b"MM\x00*")
BMP_SIGNATURE = b"BM"

# Bytes needed to recognise every signature above (WEBP needs 12)
SNIFF_LENGTH = 12

DEFAULT_MIME_TYPE = "application/octet-stream"


class DocumentDetector:
    """Works out what an upload actually is.

    The result is informational: the endpoint decides the extraction mode,
    and a mismatch is logged rather than rejected so the extractor can report
    the real failure.
    """

    def detect(
        self,
        head: bytes,
        file_name: str,
        declared_type: Optional[str] = None,
        mode: Optional[ExtractionMode] = None,
    ) -> str:
        sniffed = self._sniff_mime(head)
        if sniffed:
            mime_type = sniffed
            source = "signature"
        else:
            guessed, _ = mimetypes.guess_type(file_name)
            if guessed:
                mime_type = guessed
                source = "extension"
            else:
                mime_type = declared_type or DEFAULT_MIME_TYPE
                source = "declared"

        logger.debug(
            "Detected upload media type",
            extra_data={
                "file_name": file_name,
                "mime_type": mime_type,
                "declared_type": declared_type,
                "source": source,
            },
        )

        if mode is not None and not self.matches_mode(mime_type, mode):
            logger.warning(
                "Upload does not look like the expected document type",
                extra_data={
                    "file_name": file_name,
                    "mime_type": mime_type,
                    "mode": mode.value,
                },
            )

        return mime_type

    @staticmethod
    def matches_mode(mime_type: str, mode: ExtractionMode) -> bool:
        if mode is ExtractionMode.IMAGE:
            return mime_type.startswith("image/")
        return mime_type == "application/pdf"

    @staticmethod
    def _sniff_mime(head: bytes) -> Optional[str]:
        """Detect MIME type from file signature/magic bytes."""
        if head.startswith(PDF_SIGNATURE):
            return "application/pdf"
        if head.startswith(PNG_SIGNATURE):
            return "image/png"
        if head.startswith(JPEG_SIGNATURE):
            return "image/jpeg"
        if head.startswith(GIF_SIGNATURES):
            return "image/gif"
        if head.startswith(TIFF_SIGNATURES):
            return "image/tiff"
        if head.startswith(BMP_SIGNATURE):
            return "image/bmp"
        if head[:4] == b"RIFF" and head[8:12] == b"WEBP":
            return "image/webp"
        return None
