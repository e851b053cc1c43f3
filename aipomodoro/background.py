"""AI-generated background images.

The timer never depends on this module.  The window asks a
``BackgroundGenerator`` for an image URL and paints it behind the clock.

Prompts are cleaned and validated locally, then sent to Replicate's HTTP
API through an explicitly constructed ``ReplicateClient``.  Results are
cached in the database under the SHA-256 of the normalized prompt, so
asking for "Misty  Forest" after "misty forest" costs nothing.
"""

from __future__ import annotations

import hashlib
import logging
import re
import time
from collections.abc import Mapping
from typing import Any, Callable

import requests

from .database.db import get_session
from .database.models import BackgroundImage
from .settings import Settings


logger = logging.getLogger(__name__)

MAX_PROMPT_LENGTH = 500
MIN_UI_PROMPT_LENGTH = 3
PROMPT_SUFFIX = ", high quality, detailed, background, 4k, cinematic lighting"
REPLICATE_API_URL = "https://api.replicate.com/v1"

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")
_WHITESPACE = re.compile(r"\s+")


# ── errors ────────────────────────────────────────────────────────────────


class BackgroundError(Exception):
    """Base class for background-image failures."""


class PromptError(BackgroundError, ValueError):
    """The prompt was rejected before any request was made."""


class ConfigurationError(BackgroundError):
    """The image service is not configured (e.g. missing API token)."""


class GenerationError(BackgroundError):
    """The image service failed or returned something unusable."""


# ── prompt helpers ────────────────────────────────────────────────────────


def normalize_prompt(prompt: str) -> str:
    return _WHITESPACE.sub(" ", prompt.strip().lower())


def hash_prompt(prompt: str) -> str:
    return hashlib.sha256(normalize_prompt(prompt).encode("utf-8")).hexdigest()


def validate_prompt(prompt: Any) -> str:
    """Return the stripped prompt or raise ``PromptError``."""
    if not isinstance(prompt, str):
        raise PromptError("Prompt must be a string")
    cleaned = prompt.strip()
    if not cleaned:
        raise PromptError("Prompt cannot be empty")
    if len(cleaned) > MAX_PROMPT_LENGTH:
        raise PromptError(f"Prompt must be no more than {MAX_PROMPT_LENGTH} characters")
    if _CONTROL_CHARS.search(cleaned):
        raise PromptError("Prompt contains invalid characters")
    return cleaned


def can_submit(prompt: str) -> bool:
    """Whether the prompt box holds enough text to enable *Generate*."""
    return len(prompt.strip()) >= MIN_UI_PROMPT_LENGTH


def decorate_prompt(prompt: str) -> str:
    return f"{prompt}{PROMPT_SUFFIX}"


def extract_image_url(output: Any) -> str:
    """Pull a single image URL out of a prediction's ``output`` field."""
    if isinstance(output, str):
        url = output
    elif isinstance(output, (list, tuple)):
        if not output:
            raise GenerationError("No image URL in prediction output")
        url = output[0]
    elif isinstance(output, Mapping):
        url = output.get("url") or output.get("href")
    else:
        raise GenerationError("Unexpected response format from image generation service")

    if not isinstance(url, str) or not url:
        raise GenerationError("Invalid response from image generation service")
    return url


def download_image(
    url: str, *, session: requests.Session | None = None, timeout: float = 30.0
) -> bytes:
    """Fetch image bytes so the window only swaps in a fully loaded picture."""
    http = session or requests
    try:
        resp = http.get(url, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise GenerationError(f"Failed to load background image: {exc}") from exc
    return resp.content


# ── HTTP client ───────────────────────────────────────────────────────────


def _error_detail(resp) -> str:
    try:
        body = resp.json()
    except ValueError:
        return ""
    return body.get("detail", "") if isinstance(body, dict) else ""


class ReplicateClient:
    """Minimal Replicate predictions client.

    Construct one per application with an explicit token; pass a
    ``requests.Session`` to share connections or to stub the network.
    """

    def __init__(
        self,
        token: str,
        *,
        session: requests.Session | None = None,
        base_url: str = REPLICATE_API_URL,
        poll_interval: float = 1.0,
        timeout: float = 60.0,
        request_timeout: float = 30.0,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not token:
            raise ConfigurationError("REPLICATE_API_TOKEN environment variable is required")
        self._token = token
        self._session = session or requests.Session()
        self._base_url = base_url.rstrip("/")
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._request_timeout = request_timeout
        self._sleep = sleep
        self._clock = clock

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

    def _request(self, method: str, url: str, **kwargs) -> dict:
        try:
            resp = self._session.request(
                method, url,
                headers=self._headers(),
                timeout=self._request_timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise GenerationError(f"Replicate request failed: {exc}") from exc

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            raise GenerationError(
                f"Replicate API error: {resp.status_code} {detail or resp.reason}".rstrip()
            )
        try:
            data = resp.json()
        except ValueError as exc:
            raise GenerationError("Invalid JSON from Replicate API") from exc
        if not isinstance(data, dict):
            raise GenerationError("Unexpected response format from Replicate API")
        return data

    def create_prediction(self, model: str, input: dict) -> dict:
        data = self._request(
            "POST",
            f"{self._base_url}/models/{model}/predictions",
            json={"input": input},
        )
        if not data.get("id"):
            raise GenerationError("Invalid response from Replicate API")
        return data

    def get_prediction(self, prediction_id: str) -> dict:
        return self._request("GET", f"{self._base_url}/predictions/{prediction_id}")

    def run(self, model: str, input: dict) -> str:
        """Create a prediction and poll it until it yields an image URL."""
        prediction = self.create_prediction(model, input)
        deadline = self._clock() + self._timeout
        while True:
            status = prediction.get("status")
            if status == "succeeded":
                return extract_image_url(prediction.get("output"))
            if status in ("failed", "canceled"):
                raise GenerationError(
                    f"Image generation failed: {prediction.get('error') or 'Unknown error'}"
                )
            if self._clock() >= deadline:
                raise GenerationError(
                    f"Image generation timed out after {self._timeout:g} seconds"
                )
            self._sleep(self._poll_interval)
            prediction = self.get_prediction(prediction["id"])


# ── generator ─────────────────────────────────────────────────────────────


class BackgroundGenerator:
    """Turns a user prompt into a background image URL, with caching."""

    def __init__(self, client: ReplicateClient | None, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    def build_input(self, prompt: str) -> dict:
        s = self._settings
        return {
            "prompt": decorate_prompt(prompt),
            "prompt_upsampling": True,
            "aspect_ratio": s.image_aspect_ratio,
            "output_format": s.image_output_format,
            "output_quality": s.image_output_quality,
            "safety_tolerance": s.image_safety_tolerance,
        }

    def cached_url(self, prompt: str) -> str | None:
        key = hash_prompt(prompt)
        with get_session() as db:
            row = db.query(BackgroundImage).filter_by(prompt_hash=key).first()
            return row.image_url if row else None

    def generate(self, prompt: str) -> str:
        cleaned = validate_prompt(prompt)

        cached = self.cached_url(cleaned)
        if cached:
            logger.info("Background cache hit for %r", cleaned)
            return cached

        if self._client is None:
            raise ConfigurationError("Replicate API token not configured")

        model = self._settings.image_model
        logger.info("Generating background with %s for %r", model, cleaned)
        url = self._client.run(model, self.build_input(cleaned))

        with get_session() as db:
            db.add(BackgroundImage(
                prompt_hash=hash_prompt(cleaned),
                prompt=cleaned,
                image_url=url,
                model=model,
            ))
        return url
