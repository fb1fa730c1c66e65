"""
HTTP transport for the id server.

Handles session management, headers and status checking. There is no retry
loop: a failed request is terminal for the resolution that issued it and the
calling layer decides when to try again.
"""

import asyncio
import logging
from typing import Optional

import requests

from just_id.config.settings import get_settings
from just_id.errors import TransportError

logger = logging.getLogger(__name__)


def sanitize_url_for_logging(url: str) -> str:
    """
    Drop the query string from ``url`` before logging it.

    Example:
        >>> sanitize_url_for_logging("https://id.example/getId.js?sourceId=abc")
        'https://id.example/getId.js'
    """
    return url.split("?", 1)[0]


class IdServerTransport:
    """
    requests-based transport for ``POST https://<domain>/getId``.

    Cookies set by the id server are kept on the session, so repeated calls
    behave like a credentialed browser request. The blocking request runs in
    a worker thread; callers only ever see the coroutine.
    """

    def __init__(
        self,
        *,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the transport.

        Args:
            timeout: Request timeout in seconds. If None, uses settings default
            session: Pre-built session (tests, shared connection pools)
        """
        settings = get_settings()
        self.timeout = (
            timeout if timeout is not None else settings.request_timeout_seconds
        )

        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json; charset=utf-8",
            }
        )

        logger.debug(
            "Id server transport initialized",
            extra={"timeout": self.timeout},
        )

    async def post(self, url: str, body: str) -> str:
        """
        POST ``body`` to ``url`` and return the response text.

        Raises:
            TransportError: On connection problems or non-2xx status codes
        """
        return await asyncio.to_thread(self._post, url, body)

    def _post(self, url: str, body: str) -> str:
        sanitized_url = sanitize_url_for_logging(url)

        logger.debug(
            "Making id server request",
            extra={"method": "POST", "url": sanitized_url},
        )

        try:
            response = self.session.post(
                url, data=body.encode("utf-8"), timeout=self.timeout
            )
        except requests.RequestException as e:
            logger.warning(
                "Id server request failed",
                extra={"url": sanitized_url, "error": str(e)},
            )
            raise TransportError(
                f"Request to {sanitized_url} failed: {e}", original_error=e
            ) from e

        if not 200 <= response.status_code < 300:
            logger.warning(
                "Unexpected id server response",
                extra={"url": sanitized_url, "status_code": response.status_code},
            )
            raise TransportError(
                f"Unexpected status code: {response.status_code}",
                status_code=response.status_code,
            )

        logger.debug(
            "Id server request successful",
            extra={"url": sanitized_url, "status_code": response.status_code},
        )
        return response.text

    def close(self) -> None:
        self.session.close()
