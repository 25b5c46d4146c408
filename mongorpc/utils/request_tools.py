# Copyright DataStax, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

from __future__ import annotations

import logging
from typing import Iterable, Sequence

import httpx

from mongorpc.constants import CallerType
from mongorpc.settings.defaults import (
    DEFAULT_REDACTED_HEADER_NAMES,
    FIXED_SECRET_PLACEHOLDER,
    SECRETS_REDACT_CHAR,
    SECRETS_REDACT_ENDING,
    SECRETS_REDACT_ENDING_LENGTH,
)

logger = logging.getLogger(__name__)


def redact_secret(secret: str, show_chars: int = SECRETS_REDACT_ENDING_LENGTH) -> str:
    """
    Mask a secret for display, keeping only a few of its trailing characters.
    Short secrets are masked entirely.
    """
    if len(secret) <= 2 * show_chars:
        return FIXED_SECRET_PLACEHOLDER
    return f"{SECRETS_REDACT_CHAR * 3}{SECRETS_REDACT_ENDING}{secret[-show_chars:]}"


def redact_headers(
    headers: dict[str, str], redacted_header_names: Iterable[str] = ()
) -> dict[str, str]:
    """Return a copy of the headers fit for logging, with secrets replaced."""
    upper_redacted_names = {
        header_name.upper()
        for header_name in (set(redacted_header_names) | DEFAULT_REDACTED_HEADER_NAMES)
    }
    return {
        k: v if k.upper() not in upper_redacted_names else FIXED_SECRET_PLACEHOLDER
        for k, v in headers.items()
    }


def compose_user_agent(callers: Sequence[CallerType]) -> str | None:
    """
    Build a User-Agent string out of (name, version) pairs, e.g.
    `[("app", "1.2"), ("mongorpc", None)]` -> "app/1.2 mongorpc".
    Pairs with no name are skipped; None if nothing is left.
    """
    pieces = [
        f"{name}/{version}" if version else name
        for name, version in callers
        if name
    ]
    return " ".join(pieces) if pieces else None


def log_httpx_request(
    http_method: str,
    full_url: str,
    redacted_request_headers: dict[str, str],
    encoded_payload: str | None,
    timeout_ms: int | None,
) -> None:
    """
    Log the details of an HTTP request for debugging purposes.

    Args:
        http_method: the HTTP verb of the request (e.g. "POST").
        full_url: the URL of the request (e.g. "https://domain.com/full/path").
        redacted_request_headers: caution, as these will be logged as they are.
        encoded_payload: the payload sent with the request, if any.
        timeout_ms: the timeout in milliseconds, if any is set.
    """
    logger.debug(f"Request URL: {http_method} {full_url}")
    if redacted_request_headers:
        logger.debug(f"Request headers: '{redacted_request_headers}'")
    if encoded_payload is not None:
        logger.debug(f"Request payload: '{encoded_payload}'")
    logger.debug(f"Timeout (ms): {timeout_ms or '(unset)'}")


def log_httpx_response(response: httpx.Response) -> None:
    """
    Log the details of an httpx.Response.

    Args:
        response: the httpx.Response object to log.
    """
    logger.debug(f"Response status code: {response.status_code}")
    logger.debug(f"Response headers: '{response.headers}'")
    logger.debug(f"Response text: '{response.text}'")


class HttpMethod:
    POST = "POST"


def to_httpx_timeout(timeout_ms: int | None) -> httpx.Timeout | None:
    if not timeout_ms:
        return None
    return httpx.Timeout(timeout_ms / 1000)
