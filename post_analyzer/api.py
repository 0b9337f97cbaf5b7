"""HTTP interface: FastAPI application factory and upload endpoints."""

from dataclasses import asdict
from typing import Optional

from fastapi import Depends, FastAPI, File, Form, Request, UploadFile, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from post_analyzer.analysis import AnalysisClient
from post_analyzer.config import Settings
from post_analyzer.exceptions import InputError
from post_analyzer.extractor import TextExtractor
from post_analyzer.logger import get_logger, set_request_id
from post_analyzer.models import ExtractionMode
from post_analyzer.pipeline import UploadPipeline
from post_analyzer.staging import UploadStaging

logger = get_logger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
NO_FILE_MESSAGE = "No file uploaded."
PDF_FAILURE_MESSAGE = "Failed to process PDF."
IMAGE_FAILURE_MESSAGE = "Failed to extract image text."


class UploadResponse(BaseModel):
    text: str
    analysis: Optional[str] = None
    analysis_error: Optional[str] = None


def form_flag(value: Optional[str]) -> bool:
    """Form booleans arrive as strings; only the exact string "true" is true."""
    return value == "true"


def get_pipeline(request: Request) -> UploadPipeline:
    return request.app.state.pipeline


def require_file(file: Optional[UploadFile]) -> UploadFile:
    """Reject the request before anything is staged when no file was sent."""
    if file is None or not file.filename:
        raise InputError(NO_FILE_MESSAGE)
    return file


def _run_upload(
    pipeline: UploadPipeline,
    file: UploadFile,
    mode: ExtractionMode,
    analyze: bool,
    failure_message: str,
):
    try:
        payload = pipeline.process(
            file.file,
            file.filename,
            file.content_type,
            mode=mode,
            analyze=analyze,
        )
    except Exception as exc:
        logger.error(
            "Upload processing failed",
            extra_data={
                "file_name": file.filename,
                "mode": mode.value,
                "error_type": type(exc).__name__,
                "error": str(exc),
            },
            exc_info=True,
        )
        return PlainTextResponse(failure_message, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return UploadResponse(**asdict(payload))


def create_app(settings: Optional[Settings] = None, pipeline: Optional[UploadPipeline] = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Process settings. If None, read from the environment.
        pipeline: Pre-built pipeline (tests inject fakes here). If None, one is
            built from ``settings``.
    """
    settings = settings or Settings()
    if pipeline is None:
        pipeline = UploadPipeline(
            staging=UploadStaging(settings.upload_dir),
            extractor=TextExtractor(config=settings.ocr_config()),
            analyzer=AnalysisClient(config=settings.analysis_config()),
        )

    app = FastAPI(title="Post Analyzer")
    app.state.settings = settings
    app.state.pipeline = pipeline

    @app.exception_handler(InputError)
    async def input_error(_: Request, exc: InputError):
        return PlainTextResponse(str(exc) or NO_FILE_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

    allowed_origins = set(settings.cors_origins)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    # Registered after CORSMiddleware so it runs first
    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = set_request_id(request.headers.get(REQUEST_ID_HEADER))

        origin = request.headers.get("origin")
        if origin is not None and origin not in allowed_origins:
            logger.warning(
                "Rejected request from origin outside allow-list",
                extra_data={"origin": origin, "path": request.url.path},
            )
            return PlainTextResponse(
                "Not allowed by CORS",
                status_code=status.HTTP_403_FORBIDDEN,
                headers={REQUEST_ID_HEADER: request_id},
            )

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.post("/upload-pdf", response_model=UploadResponse)
    def upload_pdf(
        file: Optional[UploadFile] = File(None),
        scanned: Optional[str] = Form(None),
        analyze: Optional[str] = Form(None),
        pipeline: UploadPipeline = Depends(get_pipeline),
    ):
        return _run_upload(
            pipeline,
            require_file(file),
            mode=ExtractionMode.for_pdf(form_flag(scanned)),
            analyze=form_flag(analyze),
            failure_message=PDF_FAILURE_MESSAGE,
        )

    @app.post("/upload-image", response_model=UploadResponse)
    def upload_image(
        file: Optional[UploadFile] = File(None),
        analyze: Optional[str] = Form(None),
        pipeline: UploadPipeline = Depends(get_pipeline),
    ):
        return _run_upload(
            pipeline,
            require_file(file),
            mode=ExtractionMode.IMAGE,
            analyze=form_flag(analyze),
            failure_message=IMAGE_FAILURE_MESSAGE,
        )

    return app
