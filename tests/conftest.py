import io
import json
from typing import Callable, Optional

import fitz
import httpx
import pytest
import pytesseract
from fastapi.testclient import TestClient
from PIL import Image

from post_analyzer.analysis import AnalysisClient
from post_analyzer.api import create_app
from post_analyzer.config import AnalysisConfig, OCRConfig, Settings
from post_analyzer.extractor import TextExtractor
from post_analyzer.pipeline import UploadPipeline
from post_analyzer.staging import UploadStaging

ALLOWED_ORIGIN = "http://localhost:5173"

ANALYSIS_MARKDOWN = (
    "## Improved Text\nTrending now.\n\n"
    "## Suggested Hashtags\n#trending #viral #news #today #now\n\n"
    "## Engagement Advice\nAsk your audience a question."
)


def make_pdf(pages: list[str], width: float = 200, height: float = 100) -> bytes:
    """Build a PDF with one line of text per page."""
    document = fitz.open()
    for text in pages:
        page = document.new_page(width=width, height=height)
        if text:
            page.insert_text((10, 30), text, fontsize=11)
    data = document.tobytes()
    document.close()
    return data


def make_png(size: tuple[int, int] = (60, 20)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, "white").save(buffer, format="PNG")
    return buffer.getvalue()


def gemini_body(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}], "role": "model"}}]}


class FakeOCR:
    """Stands in for ``pytesseract.image_to_string``."""

    def __init__(self, texts: Optional[list[str]] = None, fail_on_call: Optional[int] = None):
        self.texts = list(texts or [])
        self.fail_on_call = fail_on_call
        self.calls: list[dict] = []

    def __call__(self, image, lang=None, config=None):
        self.calls.append({"size": image.size, "lang": lang, "config": config})
        if self.fail_on_call is not None and len(self.calls) == self.fail_on_call:
            raise pytesseract.TesseractError(1, "tesseract crashed")
        return self.texts.pop(0) if self.texts else ""


class GeminiStub:
    """Handler for ``httpx.MockTransport`` that records requests."""

    def __init__(self, status_code: int = 200, body: Optional[dict] = None, error: Optional[Exception] = None):
        self.status_code = status_code
        self.body = body if body is not None else gemini_body(ANALYSIS_MARKDOWN)
        self.error = error
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return httpx.Response(self.status_code, json=self.body)

    def prompt(self, index: int = 0) -> str:
        payload = json.loads(self.requests[index].content)
        return payload["contents"][0]["parts"][0]["text"]


@pytest.fixture
def fake_ocr(monkeypatch) -> Callable[..., FakeOCR]:
    def install(texts: Optional[list[str]] = None, fail_on_call: Optional[int] = None) -> FakeOCR:
        ocr = FakeOCR(texts, fail_on_call)
        monkeypatch.setattr(pytesseract, "image_to_string", ocr)
        return ocr

    return install


@pytest.fixture
def gemini() -> GeminiStub:
    return GeminiStub()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture
def settings(upload_dir) -> Settings:
    return Settings(
        _env_file=None,
        upload_dir=upload_dir,
        gemini_api_key="test-key",
        cors_origins=[ALLOWED_ORIGIN],
    )


@pytest.fixture
def analysis_config() -> AnalysisConfig:
    return AnalysisConfig(api_key="test-key", model="gemini-test", base_url="https://gemini.test/v1beta")


@pytest.fixture
def analyzer(analysis_config, gemini) -> AnalysisClient:
    return AnalysisClient(analysis_config, client=httpx.Client(transport=httpx.MockTransport(gemini)))


@pytest.fixture
def pipeline(upload_dir, analyzer) -> UploadPipeline:
    return UploadPipeline(
        staging=UploadStaging(upload_dir),
        extractor=TextExtractor(OCRConfig()),
        analyzer=analyzer,
    )


@pytest.fixture
def client(settings, pipeline) -> TestClient:
    return TestClient(create_app(settings, pipeline=pipeline))
