import logging

import httpx
import pytest

from post_analyzer.analysis import AnalysisClient, build_prompt
from post_analyzer.config import AnalysisConfig
from post_analyzer.exceptions import AnalysisCallError, AnalysisConfigError
from post_analyzer.logger import setup_logging
from tests.conftest import ANALYSIS_MARKDOWN, GeminiStub, gemini_body


def make_client(stub: GeminiStub, **config) -> AnalysisClient:
    config.setdefault("api_key", "secret")
    config.setdefault("model", "gemini-test")
    config.setdefault("base_url", "https://gemini.test/v1beta/")
    return AnalysisClient(AnalysisConfig(**config), client=httpx.Client(transport=httpx.MockTransport(stub)))


def test_prompt_contains_instructions_and_verbatim_text():
    text = "check out {our} new  product!!\nlink in bio"

    prompt = build_prompt(text)

    assert "5 to 10" in prompt
    for heading in ("Improved Text", "Suggested Hashtags", "Engagement Advice"):
        assert f'"{heading}"' in prompt
    assert "Markdown" in prompt
    assert f"---\n{text}\n---" in prompt


def test_analyze_returns_first_candidate_text(gemini):
    result = make_client(gemini).analyze("hello world")

    assert result.markdown_text == ANALYSIS_MARKDOWN
    assert result.model == "gemini-test"


def test_analyze_sends_key_in_url_and_prompt_in_body(gemini):
    make_client(gemini).analyze("hello world")

    request = gemini.requests[0]
    assert request.method == "POST"
    assert request.url.path == "/v1beta/models/gemini-test:generateContent"
    assert request.url.params["key"] == "secret"
    assert gemini.prompt() == build_prompt("hello world")


@pytest.mark.parametrize("api_key", [None, ""])
def test_missing_api_key_fails_before_network_call(gemini, api_key):
    client = make_client(gemini, api_key=api_key)

    with pytest.raises(AnalysisConfigError):
        client.analyze("hello world")

    assert gemini.requests == []


@pytest.mark.parametrize(
    "error",
    [
        httpx.ConnectError("connection refused"),
        httpx.ReadTimeout("timed out"),
        httpx.InvalidURL("Invalid URL host"),
        httpx.StreamConsumed(),
    ],
)
def test_request_failure_is_call_error(error):
    with pytest.raises(AnalysisCallError):
        make_client(GeminiStub(error=error)).analyze("hello world")


def test_call_error_message_masks_api_key():
    stub = GeminiStub(error=httpx.ConnectError("cannot reach https://gemini.test/?key=secret"))

    with pytest.raises(AnalysisCallError) as excinfo:
        make_client(stub).analyze("hello world")

    assert "secret" not in str(excinfo.value)
    assert "key=***" in str(excinfo.value)


def test_error_status_is_call_error():
    stub = GeminiStub(status_code=403, body={"error": {"message": "API key not valid"}})

    with pytest.raises(AnalysisCallError, match="403"):
        make_client(stub).analyze("hello world")


@pytest.mark.parametrize(
    "body",
    [
        {},
        {"candidates": []},
        {"candidates": [{"finishReason": "SAFETY"}]},
        {"candidates": [{"content": {"parts": []}}]},
        gemini_body(""),
    ],
)
def test_malformed_response_is_call_error(body):
    with pytest.raises(AnalysisCallError):
        make_client(GeminiStub(body=body)).analyze("hello world")


def test_non_json_response_is_call_error():
    def handler(request):
        return httpx.Response(200, text="<html>oops</html>")

    client = AnalysisClient(
        AnalysisConfig(api_key="secret"),
        client=httpx.Client(transport=httpx.MockTransport(handler)),
    )

    with pytest.raises(AnalysisCallError):
        client.analyze("hello world")


@pytest.fixture
def app_logging(caplog):
    """Install the service's logging setup while keeping caplog attached."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level

    setup_logging("DEBUG")
    root.addHandler(caplog.handler)
    yield caplog

    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.NOTSET)


def test_api_key_never_reaches_logs(app_logging, gemini):
    make_client(gemini, api_key="SUPER-SECRET-KEY").analyze("hello")

    assert gemini.requests[0].url.params["key"] == "SUPER-SECRET-KEY"
    assert any(record.name == "post_analyzer.analysis" for record in app_logging.records)
    leaked = [record.getMessage() for record in app_logging.records if "SUPER-SECRET-KEY" in record.getMessage()]
    assert leaked == []


def test_api_key_not_logged_when_request_fails(app_logging):
    stub = GeminiStub(error=httpx.ConnectError("cannot reach ?key=SUPER-SECRET-KEY"))

    with pytest.raises(AnalysisCallError):
        make_client(stub, api_key="SUPER-SECRET-KEY").analyze("hello")

    assert all("SUPER-SECRET-KEY" not in record.getMessage() for record in app_logging.records)
