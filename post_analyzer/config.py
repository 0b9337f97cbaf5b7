"""Configuration for post-analyzer.

``Settings`` is read from the process environment (and an optional ``.env``
file) once at startup. Components never read the environment themselves; they
receive the narrower ``OCRConfig`` / ``AnalysisConfig`` built from it.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CORS_ORIGINS = [
    "https://social-media-analyzer-frontend-wva8.onrender.com",
    "http://localhost:3000",
    "http://localhost:5173",
]


@dataclass
class OCRConfig:
    """Configuration for Tesseract OCR.

    Examples:
        >>> # English, pages rendered at twice their natural size
        >>> config = OCRConfig()

        >>> # Bilingual documents, sharper rasterization
        >>> config = OCRConfig(languages="eng+fra", render_scale=3.0)
    """

    tesseract_cmd: str = "tesseract"
    """Path to tesseract binary. Default: "tesseract" (assumes in PATH)."""

    tessdata_prefix: Optional[str] = None
    """Optional path to tessdata directory. If None, uses system default."""

    languages: str = "eng"
    """OCR languages in Tesseract format (e.g., "eng", "eng+fra")."""

    render_scale: float = 2.0
    """Zoom factor applied when rasterizing scanned PDF pages.

    Pages are rendered at ``render_scale`` times their natural size (72 dpi),
    so 2.0 gives 144 dpi. Larger values help OCR accuracy on small print but
    grow memory quadratically.
    """

    psm_mode: int = 3
    """Page segmentation mode (0-13). Default: 3 (fully automatic)."""


@dataclass
class AnalysisConfig:
    """Configuration for the Gemini analysis client."""

    api_key: Optional[str] = None
    model: str = "gemini-1.5-flash-latest"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = 60.0


class Settings(BaseSettings):
    """Process-wide settings. Field names map to upper-case environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-1.5-flash-latest"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    analysis_timeout_seconds: float = 60.0

    host: str = "0.0.0.0"
    port: int = 4040
    upload_dir: Path = Path("uploads")
    cors_origins: list[str] = list(DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"

    ocr_languages: str = "eng"
    ocr_render_scale: float = 2.0
    tesseract_cmd: str = "tesseract"
    tessdata_prefix: Optional[str] = None

    def ocr_config(self) -> OCRConfig:
        return OCRConfig(
            tesseract_cmd=self.tesseract_cmd,
            tessdata_prefix=self.tessdata_prefix,
            languages=self.ocr_languages,
            render_scale=self.ocr_render_scale,
        )

    def analysis_config(self) -> AnalysisConfig:
        return AnalysisConfig(
            api_key=self.gemini_api_key or None,
            model=self.gemini_model,
            base_url=self.gemini_base_url,
            timeout_seconds=self.analysis_timeout_seconds,
        )
