import asyncio
import json
from typing import Any, Dict

import httpx
from httpx import HTTPStatusError, TimeoutException

from entity360.core.exceptions import UpstreamError, UpstreamTimeoutError
from entity360.utils.logging import get_logger

LOGGER = get_logger(__name__)


class BaseAIServiceClient:
    """Base client for the AI service endpoints.

    Handles HTTP requests, retries with exponential backoff, timeouts and
    error logging. Every failure surfaces as ``UpstreamError`` or
    ``UpstreamTimeoutError`` so callers only handle one family.
    """

    service_name: str = "ai-service"

    def __init__(
        self,
        url: str,
        api_key: str = "",
        timeout: int = 120,
        max_retries: int = 3,
        retry_delay: int = 2,
    ):
        """Initialize the client.

        Args:
            url: Endpoint URL of the service
            api_key: Optional bearer token
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts
            retry_delay: Base delay for exponential backoff
        """
        self.url = url
        self.api_key = api_key
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.retry_delay = retry_delay
        self.logger = LOGGER

    async def invoke(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POST a payload and return the decoded status envelope.

        The body of the envelope is decoded when the service returns it as a
        JSON string.

        Raises:
            UpstreamError: If the call fails after retries or the payload is not JSON
            UpstreamTimeoutError: If the call times out after retries
        """
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        self.logger.debug(
            f"Calling {self.service_name}: {self.url}",
            extra={"timeout": self.timeout},
        )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            for attempt in range(self.max_retries):
                try:
                    response = await client.post(self.url, headers=headers, json=payload)
                    response.raise_for_status()
                    return self._decode(response.json())

                except HTTPStatusError as e:
                    await self._handle_http_error(e, attempt)

                except TimeoutException as e:
                    await self._handle_timeout_error(e, attempt)

                except (httpx.RequestError, ValueError) as e:
                    await self._handle_generic_error(e, attempt)

        raise UpstreamError(f"Failed to call {self.service_name} after {self.max_retries} attempts")

    def _decode(self, envelope: Any) -> Dict[str, Any]:
        if not isinstance(envelope, dict):
            raise UpstreamError(f"{self.service_name} returned a non-object payload")
        body = envelope.get("body")
        if isinstance(body, str):
            try:
                envelope = {**envelope, "body": json.loads(body)}
            except ValueError:
                pass
        return envelope

    async def _handle_http_error(self, error: HTTPStatusError, attempt: int) -> None:
        status_code = error.response.status_code
        self.logger.warning(
            f"{self.service_name} HTTP error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": self.url, "status_code": status_code},
        )

        # Don't retry on client errors (4xx) unless it's rate limiting (429)
        if 400 <= status_code < 500 and status_code != 429:
            raise UpstreamError(
                f"{self.service_name} client error {status_code}", original_error=error
            ) from error

        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise UpstreamError(
                f"{self.service_name} HTTP error {status_code} after retries", original_error=error
            ) from error

    async def _handle_timeout_error(self, error: TimeoutException, attempt: int) -> None:
        self.logger.warning(
            f"{self.service_name} timeout (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": self.url},
        )
        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise UpstreamTimeoutError(
                f"{self.service_name} timed out after {self.max_retries} attempts",
                original_error=error,
            ) from error

    async def _handle_generic_error(self, error: Exception, attempt: int) -> None:
        self.logger.warning(
            f"{self.service_name} error (Attempt {attempt + 1}/{self.max_retries})",
            extra={"url": self.url, "error": str(error)},
        )
        if attempt < self.max_retries - 1:
            await self._wait_before_retry(attempt)
        else:
            raise UpstreamError(
                f"{self.service_name} error: {str(error)}", original_error=error
            ) from error

    async def _wait_before_retry(self, attempt: int) -> None:
        """Exponential backoff wait."""
        await asyncio.sleep(self.retry_delay * (2 ** attempt))
