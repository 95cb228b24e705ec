"""HTTP client for downloading ICS calendar files for import."""

import asyncio
import ipaddress
import logging
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import urlparse

import httpx

from .exceptions import (
    ICSAuthError,
    ICSContentError,
    ICSFetchError,
    ICSNetworkError,
    ICSTimeoutError,
)
from .models import ICSResponse

logger = logging.getLogger(__name__)

DEFAULT_MAX_ICS_SIZE_BYTES = 10 * 1024 * 1024
MAX_REDIRECTS = 5


class ICSFetcher:
    """Async HTTP client for downloading ICS calendar files."""

    def __init__(self, settings: Any):
        """Initialize ICS fetcher.

        Args:
            settings: Application settings
        """
        self.settings = settings
        self.client: Optional[httpx.AsyncClient] = None
        self.max_retries = getattr(settings, "max_retries", 2)
        self.retry_backoff_factor = getattr(settings, "retry_backoff_factor", 1.5)
        self.request_timeout = getattr(settings, "request_timeout", 30)
        self.max_size_bytes = getattr(settings, "max_ics_size_bytes", DEFAULT_MAX_ICS_SIZE_BYTES)
        self.allow_private_urls = getattr(settings, "allow_private_urls", False)

        logger.debug("ICS fetcher initialized")

    async def __aenter__(self) -> "ICSFetcher":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self._close_client()

    async def _ensure_client(self) -> None:
        """Ensure HTTP client exists."""
        if self.client is None or self.client.is_closed:
            timeout = httpx.Timeout(
                connect=10.0, read=float(self.request_timeout), write=10.0, pool=30.0
            )
            app_name = getattr(self.settings, "app_name", "StudioCal")

            self.client = httpx.AsyncClient(
                timeout=timeout,
                follow_redirects=False,
                verify=True,
                headers={
                    "User-Agent": f"{app_name}/1.0.0 ICS-Client",
                    "Accept": "text/calendar, text/plain;q=0.9, */*;q=0.8",
                    "Accept-Charset": "utf-8",
                    "Cache-Control": "no-cache",
                },
            )

    async def _close_client(self) -> None:
        """Close HTTP client."""
        if self.client and not self.client.is_closed:
            await self.client.aclose()

    def _validate_url_for_ssrf(self, url: str) -> bool:
        """Reject URLs that could reach internal services.

        Only http/https are allowed. Private, loopback and link-local hosts
        are blocked, including decimal and hex encoded IPv4 addresses,
        unless ``allow_private_urls`` is set.

        Args:
            url: URL to validate

        Returns:
            True if the URL may be fetched
        """
        try:
            parsed = urlparse(url)
        except ValueError:
            logger.warning(f"SSRF protection: malformed URL {url!r}")
            return False

        if parsed.scheme not in ("http", "https"):
            logger.warning(f"SSRF protection: blocked scheme {parsed.scheme!r} in {url}")
            return False

        hostname = parsed.hostname
        if not hostname:
            logger.warning(f"SSRF protection: blocked URL with empty hostname: {url}")
            return False

        if self.allow_private_urls:
            return True

        ip = self._parse_host_ip(hostname)
        if ip is not None:
            if ip.is_private or ip.is_loopback or ip.is_link_local:
                logger.warning(f"SSRF protection: blocked private address {hostname} -> {ip}")
                return False
            return True

        if hostname.lower() == "localhost" or hostname.lower().endswith(".localhost"):
            logger.warning(f"SSRF protection: blocked private hostname {hostname}")
            return False

        return True

    @staticmethod
    def _parse_host_ip(hostname: str) -> Optional[Any]:
        """Parse dotted, decimal (2130706433) or hex (0x7f000001) IP hosts."""
        try:
            return ipaddress.ip_address(hostname)
        except ValueError:
            pass

        try:
            if hostname.isdigit():
                number = int(hostname)
            elif hostname.lower().startswith("0x"):
                number = int(hostname, 16)
            else:
                return None
        except ValueError:
            return None

        if 0 <= number <= 0xFFFFFFFF:
            return ipaddress.IPv4Address(number)
        return None

    async def fetch_ics(self, url: str, headers: Optional[Dict[str, str]] = None) -> ICSResponse:
        """Download ICS content from ``url``.

        Every redirect hop is checked against the same SSRF rules as ``url``.

        Args:
            url: HTTP(S) URL of the calendar feed
            headers: Extra request headers

        Returns:
            ICSResponse with ``success`` and ``content`` on success, or an
            ``error_message`` for blocked URLs and non-auth HTTP errors

        Raises:
            ICSAuthError: On HTTP 401/403
            ICSFetchError: When a redirect is blocked, on too many redirects,
                or on any other unexpected failure
            ICSNetworkError: When the host cannot be reached after retries
            ICSTimeoutError: When every attempt timed out
            ICSContentError: When the body exceeds ``max_ics_size_bytes``
        """
        await self._ensure_client()

        if not self._validate_url_for_ssrf(url):
            error_msg = "URL blocked for security reasons"
            logger.error(f"SSRF protection: {error_msg} - {url}")
            return ICSResponse(success=False, error_message=error_msg, status_code=403)

        try:
            logger.debug(f"Fetching ICS from {url}")
            response, body = await self._make_request_with_retry(url, headers or {})
            return self._create_response(response, body)

        except httpx.TimeoutException as e:
            logger.error(f"Timeout fetching ICS from {url}: {e}")
            raise ICSTimeoutError(f"Request timeout after {self.request_timeout}s") from e

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"HTTP error fetching ICS from {url}: {status}")

            if status == 401:
                raise ICSAuthError("Authentication failed - check credentials", status)
            if status == 403:
                raise ICSAuthError("Access forbidden - insufficient permissions", status)
            return ICSResponse(
                success=False,
                status_code=status,
                error_message=f"HTTP {status}: {e.response.reason_phrase}",
                headers=dict(e.response.headers),
            )

        except httpx.NetworkError as e:
            logger.error(f"Network error fetching ICS from {url}: {e}")
            raise ICSNetworkError(f"Network error: {e}") from e

        except (ICSContentError, ICSFetchError):
            raise

        except Exception as e:
            logger.error(f"Unexpected error fetching ICS from {url}: {e}")
            raise ICSFetchError(f"Unexpected error: {e}") from e

    async def _make_request_with_retry(
        self, url: str, headers: Dict[str, str]
    ) -> Tuple[httpx.Response, bytes]:
        """Make HTTP GET with retry on timeouts and network errors."""
        for attempt in range(self.max_retries + 1):
            try:
                if self.client is None:
                    raise ICSFetchError("HTTP client not initialized")

                response = await self._send_following_redirects(url, headers)
                if response.is_error:
                    await response.aclose()
                    response.raise_for_status()

                body = await self._read_limited(response)
                logger.debug(f"Successfully fetched ICS from {url} (attempt {attempt + 1})")
                return response, body

            except (httpx.TimeoutException, httpx.NetworkError) as e:
                if attempt < self.max_retries:
                    backoff_time = self.retry_backoff_factor**attempt
                    logger.warning(
                        f"Request failed (attempt {attempt + 1}/{self.max_retries + 1}), "
                        f"retrying in {backoff_time:.1f}s: {e}"
                    )
                    await asyncio.sleep(backoff_time)
                else:
                    logger.error(f"All retry attempts failed for {url}")
                    raise

        raise ICSFetchError("Maximum retries exceeded")

    async def _send_following_redirects(
        self, url: str, headers: Dict[str, str]
    ) -> httpx.Response:
        """Send a streaming GET, validating each redirect target before following it."""
        if self.client is None:
            raise ICSFetchError("HTTP client not initialized")
        current_url = url

        for _ in range(MAX_REDIRECTS + 1):
            request = self.client.build_request("GET", current_url, headers=headers)
            response = await self.client.send(request, stream=True, follow_redirects=False)
            if not response.is_redirect:
                return response

            await response.aclose()
            next_url = str(response.url.join(response.headers["location"]))
            if not self._validate_url_for_ssrf(next_url):
                logger.error(f"SSRF protection: redirect from {current_url} to {next_url} blocked")
                raise ICSFetchError("Redirect blocked for security reasons", 403)

            logger.debug(f"Following redirect {response.status_code} to {next_url}")
            current_url = next_url

        raise ICSFetchError(f"Too many redirects fetching {url}")

    async def _read_limited(self, response: httpx.Response) -> bytes:
        """Read a streamed body, stopping as soon as it passes ``max_size_bytes``."""
        try:
            declared = response.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > self.max_size_bytes:
                raise ICSContentError(
                    f"ICS content too large: {declared} bytes exceeds {self.max_size_bytes} limit"
                )

            chunks: List[bytes] = []
            size = 0
            async for chunk in response.aiter_bytes():
                size += len(chunk)
                if size > self.max_size_bytes:
                    raise ICSContentError(
                        f"ICS content too large: more than {self.max_size_bytes} bytes"
                    )
                chunks.append(chunk)
            return b"".join(chunks)
        finally:
            await response.aclose()

    def _create_response(self, http_response: httpx.Response, body: bytes) -> ICSResponse:
        """Create ICS response from HTTP response and its body."""
        headers = dict(http_response.headers)
        content = body.decode(http_response.charset_encoding or "utf-8", errors="replace")
        size = len(body)

        content_type = headers.get("content-type", "").lower()
        if content_type and not any(ct in content_type for ct in ("text/calendar", "text/plain")):
            logger.warning(f"Unexpected content type: {content_type}")

        if not content or not content.strip():
            logger.error("Empty ICS content received")
            return ICSResponse(
                success=False,
                status_code=http_response.status_code,
                error_message="Empty content received",
                headers=headers,
            )

        if "BEGIN:VCALENDAR" not in content:
            logger.warning("Content does not appear to be valid ICS format")

        logger.debug(f"Successfully fetched ICS content ({size} bytes)")
        return ICSResponse(
            success=True,
            content=content,
            status_code=http_response.status_code,
            headers=headers,
        )
