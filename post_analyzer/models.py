"""Data models for post analyzer. Everything here lives for one request only."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional


class ExtractionMode(str, Enum):
    """How text is pulled out of an upload."""

    DIRECT_PDF = "direct_pdf"
    SCANNED_PDF = "scanned_pdf"
    IMAGE = "image"

    @classmethod
    def for_pdf(cls, scanned: bool) -> "ExtractionMode":
        return cls.SCANNED_PDF if scanned else cls.DIRECT_PDF

    @property
    def uses_ocr(self) -> bool:
        return self is not ExtractionMode.DIRECT_PDF


@dataclass(frozen=True)
class StagedFile:
    """An uploaded file written to the staging directory."""

    path: Path
    original_name: str
    content_type: str
    size_bytes: int

    def read_bytes(self) -> bytes:
        return self.path.read_bytes()


@dataclass(frozen=True)
class ExtractionRequest:
    file: StagedFile
    mode: ExtractionMode
    analyze: bool = False


@dataclass
class ExtractionResult:
    """Result of text extraction. Empty text is a valid outcome."""

    text: str
    mode: ExtractionMode
    file_name: str
    mime_type: str = "application/octet-stream"
    page_count: Optional[int] = None  # None for images

    @property
    def character_count(self) -> int:
        return len(self.text)

    @property
    def ocr_used(self) -> bool:
        return self.mode.uses_ocr

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())


@dataclass(frozen=True)
class AnalysisResult:
    markdown_text: str
    model: str


@dataclass
class ResponsePayload:
    """Body returned to the caller."""

    text: str
    analysis: Optional[str] = None
    analysis_error: Optional[str] = None
