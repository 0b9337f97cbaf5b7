"""Social media analysis through the Gemini generateContent API."""

from typing import Any, Optional

import httpx

from post_analyzer.config import AnalysisConfig
from post_analyzer.exceptions import AnalysisCallError, AnalysisConfigError
from post_analyzer.logger import Timer, get_logger
from post_analyzer.models import AnalysisResult

logger = get_logger(__name__)

PROMPT_TEMPLATE = """You are a world-class social media strategist. Analyze the following post text. Your task is to:
1. Correct any grammar and spelling mistakes to make it sound professional and clear.
2. Suggest a list of 5 to 10 relevant and trending hashtags to maximize reach.
3. Provide a short, actionable paragraph of advice on how to make the post more engaging.

Format your response in Markdown with clear headings for "Improved Text", "Suggested Hashtags", and "Engagement Advice".

Here is the post text:
---
{text}
---"""


def build_prompt(text: str) -> str:
    """Interpolate ``text`` verbatim into the analysis instructions."""
    # str.replace, not str.format: post text may contain braces
    return PROMPT_TEMPLATE.replace("{text}", text)


class AnalysisClient:
    """Minimal HTTP client for Gemini's ``models/{model}:generateContent``."""

    def __init__(
        self,
        config: Optional[AnalysisConfig] = None,
        *,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self.config = config or AnalysisConfig()
        self._client = client

    @property
    def endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"

    def analyze(self, text: str) -> AnalysisResult:
        """Ask the model to polish ``text`` and suggest hashtags and engagement tips.

        Raises:
            AnalysisConfigError: No API key is configured; nothing is sent.
            AnalysisCallError: Network failure, timeout, error status or a
                response without candidate text.
        """
        if not self.config.api_key:
            raise AnalysisConfigError("GEMINI_API_KEY is not configured")

        payload = {"contents": [{"parts": [{"text": build_prompt(text)}]}]}

        logger.info(
            "Requesting social media analysis",
            extra_data={"model": self.config.model, "input_characters": len(text)},
        )

        client = self._client
        close_client = False
        if client is None:
            client = httpx.Client(timeout=self.config.timeout_seconds)
            close_client = True

        try:
            with Timer("analysis") as timer:
                resp = client.post(
                    self.endpoint,
                    params={"key": self.config.api_key},
                    json=payload,
                    headers={"Content-Type": "application/json"},
                )
        except (httpx.HTTPError, httpx.InvalidURL, httpx.StreamError) as exc:
            error = self._redact(str(exc))
            logger.error(
                "Analysis request failed",
                extra_data={"error_type": type(exc).__name__, "error": error},
            )
            raise AnalysisCallError(f"AI analysis failed: {error}") from exc
        finally:
            if close_client:
                client.close()

        if resp.status_code != 200:
            logger.error(
                "Analysis service returned an error",
                extra_data={"status_code": resp.status_code, "body": resp.text[:500]},
            )
            raise AnalysisCallError(f"AI analysis failed: service returned {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as exc:
            raise AnalysisCallError("AI analysis failed: response is not JSON") from exc

        markdown = self._first_candidate_text(body)
        if not markdown:
            logger.error(
                "Unexpected analysis response structure",
                extra_data={"body": str(body)[:500]},
            )
            raise AnalysisCallError("Failed to parse analysis from the AI response.")

        logger.info(
            "Analysis received",
            extra_data={
                "model": self.config.model,
                "output_characters": len(markdown),
                "analysis_time_ms": timer.get_elapsed_ms(),
            },
        )
        return AnalysisResult(markdown_text=markdown, model=self.config.model)

    def _redact(self, message: str) -> str:
        """Mask the API key in messages that may echo the request URL."""
        if self.config.api_key:
            return message.replace(self.config.api_key, "***")
        return message

    @staticmethod
    def _first_candidate_text(body: Any) -> Optional[str]:
        """Return ``candidates[0].content.parts[0].text`` or None if any step is missing."""
        try:
            text = body["candidates"][0]["content"]["parts"][0]["text"]
        except (KeyError, IndexError, TypeError):
            return None
        return text if isinstance(text, str) else None
