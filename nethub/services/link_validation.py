"""
HTTP Link Validation Client

Checks whether a URL answers an HTTP HEAD request and classifies the
outcome. ``check_link`` never raises; every failure is encoded in the
returned ``LinkCheckResult``.
"""

import logging
import socket
import time
from typing import Optional
from urllib.parse import urlsplit

import requests

from nethub.shared.config import LinkCheckConfig
from nethub.shared.constants import (
    HTTP_STATUS_PHRASES,
    TRANSPORT_FAILURE_STATUS,
    VALID_STATUS_MIN,
    VALID_STATUS_MAX,
)
from nethub.shared.models import LinkCheckResult


logger = logging.getLogger(__name__)

_INVALID_URL_ERRORS = (
    requests.exceptions.MissingSchema,
    requests.exceptions.InvalidSchema,
    requests.exceptions.InvalidURL,
    requests.exceptions.URLRequired,
)


def describe_status(status_code: int) -> str:
    """Short human-readable phrase for an HTTP status code."""
    return HTTP_STATUS_PHRASES.get(status_code, f"HTTP {status_code}")


def is_valid_status(status_code: int) -> bool:
    """True for 2xx and 3xx codes."""
    return VALID_STATUS_MIN <= status_code < VALID_STATUS_MAX


def _is_name_resolution_failure(exc: BaseException) -> bool:
    """Walk the exception chain looking for a DNS lookup failure."""
    seen = set()
    pending = [exc]
    while pending:
        current = pending.pop()
        if current is None or id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, socket.gaierror):
            return True
        # urllib3 keeps the underlying error in ``reason``; requests in ``args``
        pending.append(getattr(current, 'reason', None))
        pending.append(current.__cause__)
        pending.append(current.__context__)
        pending.extend(arg for arg in getattr(current, 'args', ()) if isinstance(arg, BaseException))
    return False


class LinkValidationClient:
    """
    Stateless HEAD-request link checker.

    Each call builds and discards its own HTTP session, so nothing is
    shared between checks.
    """

    def __init__(self, config: Optional[LinkCheckConfig] = None) -> None:
        """
        Initialize the checker.

        Args:
            config: Timeouts and request identification.
        """
        self.config = config or LinkCheckConfig()

    def check_link(self, url: str) -> LinkCheckResult:
        """
        Check whether ``url`` is reachable.

        Args:
            url: Absolute http(s) URL.

        Returns:
            The classified outcome, including elapsed wall-clock time.
        """
        start = time.monotonic()

        try:
            request = requests.Request(
                'HEAD', url, headers={'User-Agent': self.config.user_agent}
            ).prepare()
            self._validate_target(request.url)
        except (ValueError, *_INVALID_URL_ERRORS) as e:
            return self._failure(url, f"Invalid URL format: {e}", start)

        try:
            with requests.Session() as session:
                session.trust_env = self.config.trust_env
                response = session.send(
                    request,
                    timeout=(self.config.connect_timeout, self.config.read_timeout),
                    allow_redirects=self.config.follow_redirects,
                )
                status_code = response.status_code
                elapsed = self._elapsed_ms(start)
                response.close()
        except _INVALID_URL_ERRORS as e:
            # Redirect targets are only parsed once followed
            return self._failure(url, f"Invalid URL format: {e}", start)
        except requests.exceptions.ConnectionError as e:
            if _is_name_resolution_failure(e):
                host = urlsplit(request.url).hostname or url
                return self._failure(url, f"Unknown host: {host}", start)
            return self._failure(url, f"Connection error: {e}", start)
        except requests.exceptions.RequestException as e:
            return self._failure(url, f"Connection error: {e}", start)
        except ValueError as e:
            # urllib3 rejects some hosts (empty IDNA labels) only when connecting
            return self._failure(url, f"Invalid URL format: {e}", start)
        except Exception as e:
            logger.exception(f"Unexpected error while checking {url}")
            return self._failure(url, f"Connection error: {e}", start)

        result = LinkCheckResult(
            url=url,
            valid=is_valid_status(status_code),
            status_code=status_code,
            message=describe_status(status_code),
            response_time_ms=elapsed,
        )
        logger.info(f"Link check {url} -> {status_code} in {elapsed}ms")
        return result

    @staticmethod
    def _validate_target(prepared_url: Optional[str]) -> None:
        """Reject URLs that are not absolute http(s) URLs with a host."""
        parts = urlsplit(prepared_url or "")
        if parts.scheme.lower() not in ('http', 'https'):
            raise requests.exceptions.InvalidSchema(f"unknown protocol: {parts.scheme or prepared_url}")
        if not parts.hostname:
            raise requests.exceptions.InvalidURL(f"no host in {prepared_url}")

    @staticmethod
    def _elapsed_ms(start: float) -> int:
        return max(0, int((time.monotonic() - start) * 1000))

    def _failure(self, url: str, message: str, start: float) -> LinkCheckResult:
        elapsed = self._elapsed_ms(start)
        logger.info(f"Link check {url} failed in {elapsed}ms: {message}")
        return LinkCheckResult(
            url=url,
            valid=False,
            status_code=TRANSPORT_FAILURE_STATUS,
            message=message,
            response_time_ms=elapsed,
        )
