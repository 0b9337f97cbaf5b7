"""Request lifecycle: stage, extract, analyze, compose, clean up."""

from typing import BinaryIO, Optional

from post_analyzer.analysis import AnalysisClient
from post_analyzer.exceptions import AnalysisError
from post_analyzer.extractor import TextExtractor
from post_analyzer.logger import get_logger
from post_analyzer.models import (
    AnalysisResult,
    ExtractionMode,
    ExtractionRequest,
    ExtractionResult,
    ResponsePayload,
)
from post_analyzer.staging import UploadStaging

logger = get_logger(__name__)

ANALYSIS_FAILED = "AI analysis failed."


def compose_response(
    extraction: ExtractionResult,
    analysis: Optional[AnalysisResult] = None,
    analysis_error: Optional[str] = None,
) -> ResponsePayload:
    return ResponsePayload(
        text=extraction.text,
        analysis=analysis.markdown_text if analysis else None,
        analysis_error=analysis_error,
    )


class UploadPipeline:
    def __init__(
        self,
        staging: UploadStaging,
        extractor: TextExtractor,
        analyzer: AnalysisClient,
    ) -> None:
        self.staging = staging
        self.extractor = extractor
        self.analyzer = analyzer

    def process(
        self,
        stream: BinaryIO,
        file_name: Optional[str],
        content_type: Optional[str],
        mode: ExtractionMode,
        analyze: bool,
    ) -> ResponsePayload:
        """Run one upload through the whole pipeline.

        The staged copy of the upload is removed before this returns or raises.

        Raises:
            ExtractionError: If no text could be extracted from the file.
                Analysis failures do not raise; they are reported in
                ``ResponsePayload.analysis_error``.
        """
        logger.info(
            "Processing upload",
            extra_data={"file_name": file_name, "mode": mode.value, "analyze": analyze},
        )

        with self.staging.stage(stream, file_name, content_type) as staged:
            request = ExtractionRequest(file=staged, mode=mode, analyze=analyze)

            extraction = self.extractor.extract(request)
            return self._analyze_and_compose(request, extraction)

    def _analyze_and_compose(
        self, request: ExtractionRequest, extraction: ExtractionResult
    ) -> ResponsePayload:
        if not request.analyze:
            return compose_response(extraction)

        if not extraction.has_text:
            logger.info(
                "Skipping analysis, no text extracted",
                extra_data={"file_name": extraction.file_name},
            )
            return compose_response(extraction)

        try:
            analysis = self.analyzer.analyze(extraction.text)
        except AnalysisError as exc:
            logger.warning(
                "Returning extracted text without analysis",
                extra_data={
                    "file_name": extraction.file_name,
                    "error_type": type(exc).__name__,
                    "error": str(exc),
                },
            )
            return compose_response(extraction, analysis_error=ANALYSIS_FAILED)

        return compose_response(extraction, analysis)
