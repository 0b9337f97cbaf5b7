"""Text extraction and social media analysis for uploaded PDFs and images."""

from post_analyzer.analysis import AnalysisClient, build_prompt
from post_analyzer.config import AnalysisConfig, OCRConfig, Settings
from post_analyzer.detector import DocumentDetector
from post_analyzer.exceptions import (
    AnalysisCallError,
    AnalysisConfigError,
    AnalysisError,
    ExtractionError,
    InputError,
    PostAnalyzerError,
)
from post_analyzer.extractor import TextExtractor
from post_analyzer.models import (
    AnalysisResult,
    ExtractionMode,
    ExtractionRequest,
    ExtractionResult,
    ResponsePayload,
    StagedFile,
)
from post_analyzer.parser import extract_document
from post_analyzer.pipeline import UploadPipeline, compose_response
from post_analyzer.staging import UploadStaging

__version__ = "0.1.0"

__all__ = [
    # High-level API
    "extract_document",
    # Core classes
    "UploadPipeline",
    "UploadStaging",
    "TextExtractor",
    "AnalysisClient",
    "DocumentDetector",
    "build_prompt",
    "compose_response",
    # Data models
    "ExtractionMode",
    "StagedFile",
    "ExtractionRequest",
    "ExtractionResult",
    "AnalysisResult",
    "ResponsePayload",
    # Configuration
    "Settings",
    "OCRConfig",
    "AnalysisConfig",
    # Exceptions
    "PostAnalyzerError",
    "InputError",
    "ExtractionError",
    "AnalysisError",
    "AnalysisConfigError",
    "AnalysisCallError",
]
