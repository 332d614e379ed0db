"""HTTP transport shared by all retailer adapters.

A thin wrapper around ``httpx.AsyncClient``. Every request is attempted
exactly once; failures surface as TransportError.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlparse

import httpx
import structlog

from app.config import settings
from app.core.exceptions import TransportError

logger = structlog.get_logger(__name__)


@dataclass
class Request:
    """Outbound HTTP request built by an adapter."""

    url: str
    method: str = "GET"
    json: Optional[Any] = None
    body: Optional[str] = None
    headers: Dict[str, str] = field(default_factory=dict)


@dataclass
class Response:
    """Decoded HTTP response handed back to the adapter."""

    body: str
    content: bytes
    headers: Dict[str, str]
    status_code: int = 200


class HttpTransport:
    """Send adapter requests over a shared ``httpx.AsyncClient``.

    Use as an async context manager, or call start()/close() explicitly.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the transport.

        Args:
            timeout: Request timeout in seconds (defaults to settings)
            user_agent: User-Agent header sent with every request
            client: Pre-built client, mainly for tests with MockTransport
        """
        self.timeout = timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS
        self.user_agent = user_agent or settings.USER_AGENT
        self._client = client
        self._owns_client = client is None
        self.logger = logger.bind(service="http_transport")

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                follow_redirects=True,
            )
            self.logger.info("http_client_started", timeout=self.timeout)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self.logger.info("http_client_closed")
        self._client = None

    async def __aenter__(self) -> "HttpTransport":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def send(self, request: Request) -> Response:
        """Send a request once and return the decoded response.

        Args:
            request: Request built by an adapter

        Returns:
            Response with text body, raw content and headers

        Raises:
            TransportError: network failure, timeout, error status or an
                unbuildable request
        """
        if self._client is None:
            await self.start()

        host = urlparse(request.url).netloc or request.url

        try:
            response = await self._client.request(
                request.method,
                request.url,
                json=request.json,
                content=request.body,
                headers=request.headers or None,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            self.logger.warning(
                "http_error_status",
                url=request.url,
                status_code=e.response.status_code,
            )
            raise TransportError(host, f"HTTP {e.response.status_code} for {request.url}") from e
        except (httpx.HTTPError, httpx.InvalidURL, UnicodeEncodeError) as e:
            self.logger.warning("http_request_failed", url=request.url, error=str(e))
            raise TransportError(host, f"{type(e).__name__}: {e}") from e

        self.logger.debug(
            "http_request_sent",
            method=request.method,
            url=request.url,
            status_code=response.status_code,
            bytes=len(response.content),
        )

        return Response(
            body=response.text,
            content=response.content,
            headers=dict(response.headers),
            status_code=response.status_code,
        )
