"""High-level API for text extraction without the HTTP server."""

import io
import tempfile
from pathlib import Path
from typing import Optional

from post_analyzer.config import OCRConfig
from post_analyzer.extractor import TextExtractor
from post_analyzer.models import ExtractionMode, ExtractionRequest, ExtractionResult
from post_analyzer.staging import UploadStaging

IMAGE_SUFFIXES = {".png", ".jpg", ".jpeg", ".gif", ".tif", ".tiff", ".bmp", ".webp"}


def mode_for(file_name: str, scanned: bool = False) -> ExtractionMode:
    """Pick the extraction mode for a file: images are always OCR'd."""
    if Path(file_name).suffix.lower() in IMAGE_SUFFIXES:
        return ExtractionMode.IMAGE
    return ExtractionMode.for_pdf(scanned)


def extract_document(
    file_path: Optional[str] = None,
    file_bytes: Optional[bytes] = None,
    file_name: Optional[str] = None,
    scanned: bool = False,
    ocr_config: Optional[OCRConfig] = None,
) -> ExtractionResult:
    """Extract text from a PDF or image.

    Accepts either a file path or raw bytes. Bytes are staged in a private
    temporary directory that is removed afterwards.

    Args:
        file_path: Path to the document (alternative to file_bytes)
        file_bytes: Raw document bytes (alternative to file_path)
        file_name: Original filename (required if using file_bytes)
        scanned: OCR a PDF instead of reading its text layer
        ocr_config: OCR configuration (optional, uses defaults if not provided)

    Returns:
        ExtractionResult with the extracted text

    Raises:
        ValueError: If neither or both of file_path and file_bytes are given,
            or file_bytes is given without file_name
        ExtractionError: If text extraction fails

    Examples:
        >>> result = extract_document(file_path="post.pdf")
        >>> print(result.text)

        >>> with open("scan.pdf", "rb") as f:
        ...     result = extract_document(
        ...         file_bytes=f.read(), file_name="scan.pdf", scanned=True
        ...     )
    """
    if file_path and file_bytes:
        raise ValueError("Provide either file_path or file_bytes, not both")

    if not file_path and not file_bytes:
        raise ValueError("Must provide either file_path or file_bytes")

    if file_path:
        path = Path(file_path)
        if not path.exists():
            raise ValueError(f"File not found: {file_path}")
        file_bytes = path.read_bytes()
        file_name = path.name

    if not file_name:
        raise ValueError("file_name is required when using file_bytes")

    mode = mode_for(file_name, scanned)
    extractor = TextExtractor(config=ocr_config)

    with tempfile.TemporaryDirectory(prefix="post-analyzer-") as tmp_dir:
        staging = UploadStaging(Path(tmp_dir))
        with staging.stage(io.BytesIO(file_bytes), file_name) as staged:
            return extractor.extract(ExtractionRequest(file=staged, mode=mode))
