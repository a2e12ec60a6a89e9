import logging
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from app.core import config

logger = logging.getLogger(__name__)

VISION_PROMPT = (
    "Deskripsikan gambar ini dalam satu paragraf singkat dalam bahasa Indonesia. "
    "Fokus pada objek utama dan suasana yang terlihat."
)


class UpstreamConfigurationError(RuntimeError):
    """The upstream API key is not configured."""


class UpstreamError(Exception):
    """The upstream provider answered with an error status."""

    def __init__(self, status_code: int, body: str = ""):
        super().__init__(f"OpenRouter API error ({status_code}): {body[:500]}")
        self.status_code = status_code
        self.body = body


class ImageDescriptionError(Exception):
    """No vision model could describe the image."""


class OpenRouterClient:
    """Client for the OpenRouter chat completions API."""

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = config.OPENROUTER_BASE_URL,
        chat_model: str = config.OPENROUTER_CHAT_MODEL,
        vision_models: Optional[List[str]] = None,
        timeout: float = config.OPENROUTER_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.chat_model = chat_model
        self.vision_models = vision_models or list(config.OPENROUTER_VISION_MODELS)
        self.timeout = httpx.Timeout(timeout, connect=10.0)
        self.transport = transport

    @classmethod
    def from_env(cls) -> "OpenRouterClient":
        """Create a client with the API key from the environment."""
        return cls(api_key=config.get_openrouter_api_key())

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    def _headers(self) -> Dict[str, str]:
        if not self.api_key:
            raise UpstreamConfigurationError("OpenRouter API key not configured")
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": config.OPENROUTER_REFERER,
            "X-Title": config.OPENROUTER_TITLE,
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    async def stream_chat_completion(
        self,
        messages: List[Dict[str, Any]],
        max_tokens: int = config.CHAT_MAX_TOKENS,
        temperature: float = config.CHAT_TEMPERATURE,
    ) -> AsyncIterator[bytes]:
        """
        Request a streamed completion and yield the raw SSE bytes.

        Args:
            messages: Chat messages ({role, content}) including the system prompt
            max_tokens: Completion token limit
            temperature: Sampling temperature

        Yields:
            Raw byte chunks of the upstream event stream

        Raises:
            UpstreamConfigurationError: If no API key is configured
            UpstreamError: If the provider answers with a non-2xx status
            httpx.HTTPError: On network failures and timeouts
        """
        headers = self._headers()
        payload = {
            "model": self.chat_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": True,
        }

        async with self._client() as client:
            async with client.stream(
                "POST",
                f"{self.base_url}/chat/completions",
                json=payload,
                headers=headers,
            ) as response:
                if response.status_code >= 400:
                    body = (await response.aread()).decode("utf-8", errors="replace")
                    logger.error(
                        f"OpenRouter API Error - Status: {response.status_code}, Response: {body}"
                    )
                    raise UpstreamError(response.status_code, body)

                async for chunk in response.aiter_bytes():
                    yield chunk

    async def describe_image(self, image_url: str) -> str:
        """
        Describe an image with the first vision model that succeeds.

        Args:
            image_url: Public URL of the uploaded image

        Returns:
            One-paragraph Indonesian description

        Raises:
            ImageDescriptionError: If every vision model failed
        """
        try:
            headers = self._headers()
        except UpstreamConfigurationError as e:
            raise ImageDescriptionError(str(e)) from e

        last_error: Optional[Exception] = None

        async with self._client() as client:
            for model in self.vision_models:
                payload = {
                    "model": model,
                    "messages": [
                        {
                            "role": "user",
                            "content": [
                                {"type": "text", "text": VISION_PROMPT},
                                {"type": "image_url", "image_url": {"url": image_url}},
                            ],
                        }
                    ],
                    "max_tokens": 500,
                    "temperature": 0.7,
                }
                try:
                    response = await client.post(
                        f"{self.base_url}/chat/completions",
                        json=payload,
                        headers=headers,
                    )
                    response.raise_for_status()
                    data = response.json()
                    choices = data.get("choices") or [{}]
                    description = (choices[0].get("message") or {}).get("content")
                    if not description or not description.strip():
                        last_error = ImageDescriptionError("No description generated")
                        continue
                    return description.strip()
                except (httpx.HTTPError, ValueError, AttributeError, IndexError) as e:
                    logger.warning(f"Vision model {model} failed: {e}")
                    last_error = e

        raise ImageDescriptionError(f"All vision models failed: {last_error}")
