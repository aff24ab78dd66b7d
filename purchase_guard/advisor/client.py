"""Cerebras chat completions client (OpenAI-compatible protocol).

Sends one request with one API key and reports the outcome as a
CompletionResponse. Transport problems never raise:
  - 429 → RATE_LIMITED
  - httpx timeout → TIMEOUT
  - other non-2xx / network errors → VENDOR_ERROR
  - 2xx without choices[0].message.content → MALFORMED
"""

from __future__ import annotations

import logging
import time

import httpx

from purchase_guard.advisor.types import CallStatus, CompletionResponse

logger = logging.getLogger(__name__)

API_URL = "https://api.cerebras.ai/v1/chat/completions"

# Fixed generation parameters, not configurable per call
MODEL = "qwen-3-235b-a22b-instruct-2507"
MAX_TOKENS = 4096
TEMPERATURE = 0.6
TOP_P = 0.95


class CompletionClient:
    """Stateless chat completions client; the API key is passed per call."""

    def __init__(
        self,
        api_url: str = API_URL,
        model: str = MODEL,
        timeout: float = 60.0,
    ):
        self.api_url = api_url
        self.model = model
        self.timeout = timeout

    def build_payload(self, messages: list[dict[str, str]]) -> dict:
        return {
            "model": self.model,
            "messages": messages,
            "stream": False,
            "max_completion_tokens": MAX_TOKENS,
            "temperature": TEMPERATURE,
            "top_p": TOP_P,
        }

    async def complete(self, api_key: str, messages: list[dict[str, str]]) -> CompletionResponse:
        response = CompletionResponse()
        start = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                resp = await client.post(
                    self.api_url,
                    json=self.build_payload(messages),
                    headers={
                        "Authorization": f"Bearer {api_key}",
                        "Content-Type": "application/json",
                    },
                )

            response.latency_ms = int((time.monotonic() - start) * 1000)

            if resp.status_code == 429:
                response.status = CallStatus.RATE_LIMITED
                response.error_code = "429"
                response.error_message = "Rate limited by Cerebras"
                return response

            resp.raise_for_status()
            data = resp.json()

            content = _first_choice_content(data)
            if content is None:
                response.status = CallStatus.MALFORMED
                response.error_message = "Response has no choices[0].message.content"
                return response

            response.content = content
            model = data.get("model")
            response.model_version = model if isinstance(model, str) else self.model

            usage = data.get("usage")
            if not isinstance(usage, dict):
                usage = {}
            response.input_tokens = _token_count(usage.get("prompt_tokens"))
            response.output_tokens = _token_count(usage.get("completion_tokens"))

            response.status = CallStatus.SUCCESS

        except httpx.TimeoutException:
            response.status = CallStatus.TIMEOUT
            response.error_message = f"Timeout after {self.timeout}s"
            response.latency_ms = int((time.monotonic() - start) * 1000)
        except httpx.HTTPStatusError as e:
            response.status = CallStatus.VENDOR_ERROR
            response.error_code = str(e.response.status_code)
            response.error_message = str(e)
            response.latency_ms = int((time.monotonic() - start) * 1000)
        except httpx.HTTPError as e:
            response.status = CallStatus.VENDOR_ERROR
            response.error_message = f"{type(e).__name__}: {e}"
            response.latency_ms = int((time.monotonic() - start) * 1000)
        except ValueError as e:
            # Body is not JSON
            response.status = CallStatus.MALFORMED
            response.error_message = f"Invalid JSON body: {e}"
            response.latency_ms = int((time.monotonic() - start) * 1000)

        return response


def _first_choice_content(data: object) -> str | None:
    if not isinstance(data, dict):
        return None
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    if not isinstance(choice, dict):
        return None
    message = choice.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if content is None:
        # Explicit null content is still a completed call; the normalizer handles it
        return "" if "content" in message else None
    if not isinstance(content, str):
        return None
    return content


def _token_count(value: object) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0
