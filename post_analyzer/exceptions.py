"""Custom exceptions for post analyzer."""


class PostAnalyzerError(Exception):
    """Base exception for post analyzer errors."""

    pass


class InputError(PostAnalyzerError):
    """Raised when the request carries no usable file."""

    pass


class ExtractionError(PostAnalyzerError):
    """Raised when text extraction fails (malformed PDF, OCR failure, unreadable file)."""

    pass


class AnalysisError(PostAnalyzerError):
    """Base exception for failures of the optional analysis step."""

    pass


class AnalysisConfigError(AnalysisError):
    """Raised when the analysis service is not configured (e.g. missing API key)."""

    pass


class AnalysisCallError(AnalysisError):
    """Raised when the analysis service call fails or returns an unusable response."""

    pass
