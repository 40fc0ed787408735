"""Async client for the OpenAI-compatible chat-completion endpoint."""

import time
from typing import Optional

import httpx
from pydantic import ValidationError

from fractal.core.config import DEFAULT_CREDENTIAL_KEY, DEFAULT_ENDPOINT, CredentialProvider
from fractal.core.errors import (
    DecodingFailedError,
    EncodingFailedError,
    InvalidEndpointError,
    MissingCredentialError,
    NoContentError,
    RequestFailedError,
)
from fractal.core.logging import StructuredLogger, get_logger
from fractal.schemas.completion import CompletionRequest, CompletionResponse


def clean_content(content: str) -> str:
    """Trim surrounding whitespace and the double quotes models sometimes wrap output in."""
    return content.strip().strip('"').strip()


class CompletionClient:
    """
    Sends one completion request per call; no retries, no caching.

    Implements CompletionClientBase protocol.
    """

    def __init__(
        self,
        credentials: CredentialProvider,
        endpoint: str = DEFAULT_ENDPOINT,
        credential_key: str = DEFAULT_CREDENTIAL_KEY,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        provider: str = "groq",
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Initialize completion client.

        Args:
            credentials: Where the bearer token is looked up
            endpoint: Full URL of the chat-completion endpoint
            credential_key: Key passed to the credential provider
            timeout: Request timeout in seconds (None keeps the httpx default)
            transport: Optional httpx transport, used to stub the network in tests
            provider: Service name used in logs
            logger: Structured logger (defaults to the shared one)
        """
        self.credentials = credentials
        self.endpoint = endpoint
        self.credential_key = credential_key
        self.timeout = timeout
        self.transport = transport
        self.provider = provider
        self.logger = logger or get_logger()

    def _resolve_url(self) -> httpx.URL:
        try:
            url = httpx.URL(self.endpoint)
        except (httpx.InvalidURL, TypeError) as e:
            raise InvalidEndpointError(f"Invalid endpoint {self.endpoint!r}", cause=e) from e
        if url.scheme not in ("https", "http") or not url.host:
            raise InvalidEndpointError(f"Invalid endpoint {self.endpoint!r}")
        return url

    def _client_kwargs(self) -> dict:
        kwargs: dict = {}
        if self.transport is not None:
            kwargs["transport"] = self.transport
        if self.timeout is not None:
            kwargs["timeout"] = self.timeout
        return kwargs

    async def complete(self, request: CompletionRequest) -> str:
        """
        Send the request and return the first choice's content.

        Raises:
            MissingCredentialError: No API key configured (checked before any network I/O)
            InvalidEndpointError: Endpoint is not an absolute http(s) URL
            EncodingFailedError: Request could not be serialized
            RequestFailedError: Transport failure or non-2xx status
            DecodingFailedError: Response body is not a valid completion envelope
            NoContentError: Response contained no choices
        """
        api_key = self.credentials.get(self.credential_key)
        if not api_key:
            raise MissingCredentialError(f"No value configured for {self.credential_key}")

        url = self._resolve_url()

        try:
            body = request.model_dump_json()
        except (ValueError, TypeError) as e:
            raise EncodingFailedError(str(e), cause=e) from e

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        started = time.perf_counter()
        try:
            async with httpx.AsyncClient(**self._client_kwargs()) as client:
                response = await client.post(url, content=body, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise RequestFailedError(
                f"Completion service returned HTTP {e.response.status_code}", cause=e
            ) from e
        except httpx.HTTPError as e:
            raise RequestFailedError(f"Request to completion service failed: {e}", cause=e) from e
        latency_ms = (time.perf_counter() - started) * 1000

        try:
            envelope = CompletionResponse.model_validate_json(response.content)
        except ValidationError as e:
            raise DecodingFailedError("Response is not a completion envelope", cause=e) from e

        if not envelope.choices:
            raise NoContentError("Completion response has no choices")

        content = clean_content(envelope.choices[0].message.content)

        user_prompt = request.messages[-1].content if request.messages else ""
        self.logger.log_llm_call(
            provider=self.provider,
            model=request.model,
            prompt=user_prompt,
            response=content,
            latency_ms=round(latency_ms, 1),
            status_code=response.status_code,
        )
        return content
