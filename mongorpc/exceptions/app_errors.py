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

from dataclasses import dataclass
from typing import Any

import httpx

from mongorpc.utils.str_enum import StrEnum


class ErrorKind(StrEnum):
    """
    The kind of an AppError: either detected locally while encoding
    arguments or decoding a reply (MALFORMED_JSON), or reported by the
    RPC channel (SERVICE_ERROR).
    """

    SERVICE_ERROR = "service_error"
    MALFORMED_JSON = "malformed_json"


class MongoRPCException(Exception):
    """
    Any exception specific to mongorpc.
    """

    pass


@dataclass
class AppError(MongoRPCException):
    """
    The error value delivered, alongside a zero-valued result, to the
    completion of an operation that did not succeed.

    AppError instances are handed over to completions rather than raised;
    `Outcome.unwrap()` is the only place where they are raised.

    Attributes:
        kind: an ErrorKind telling locally-detected failures from service ones.
        message: a human-readable description of the error.
        code: an optional error code, as reported by the remote service.
    """

    kind: ErrorKind
    message: str
    code: str | None

    def __init__(
        self,
        kind: ErrorKind | str,
        message: str,
        *,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = ErrorKind.coerce(kind)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} ({self.code})"
        return self.message

    @property
    def is_malformed_json(self) -> bool:
        return self.kind == ErrorKind.MALFORMED_JSON

    @property
    def is_service_error(self) -> bool:
        return self.kind == ErrorKind.SERVICE_ERROR


@dataclass
class MalformedJsonError(AppError):
    """
    A filter, update, option or reply document failed to parse as JSON,
    or a reply lacked a field expected for the operation.

    Attributes:
        message: the parse or lookup diagnostic.
        raw_text: the offending text, if available.
    """

    raw_text: str | None

    def __init__(
        self,
        message: str,
        *,
        raw_text: str | None = None,
    ) -> None:
        super().__init__(ErrorKind.MALFORMED_JSON, message)
        self.raw_text = raw_text


@dataclass
class ServiceError(AppError):
    """
    An upstream failure: authentication, remote execution fault or
    network fault. The error travels through this layer untouched.

    Attributes:
        message: the description given by the service or the transport.
        code: the service error code, if any.
        status_code: the HTTP status code, for channels speaking HTTP.
    """

    status_code: int | None

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(ErrorKind.SERVICE_ERROR, message, code=code)
        self.status_code = status_code

    @classmethod
    def from_httpx_error(cls, httpx_error: httpx.HTTPError) -> ServiceError:
        """Parse an httpx error (of any kind) into this exception."""

        if not isinstance(httpx_error, httpx.HTTPStatusError):
            return cls(str(httpx_error) or httpx_error.__class__.__name__)

        raw_response: dict[str, Any]
        # any body, or no body at all, must be tolerated here
        try:
            raw_response = httpx_error.response.json() or {}
            if not isinstance(raw_response, dict):
                raw_response = {}
        except Exception:
            raw_response = {}
        remote_message = raw_response.get("error")
        remote_code = raw_response.get("error_code")
        if remote_message:
            text = f"{remote_message}. {str(httpx_error)}"
        else:
            text = str(httpx_error)
        try:
            status_code = httpx_error.response.status_code
        except Exception:
            status_code = None

        return cls(
            text,
            code=str(remote_code) if remote_code else None,
            status_code=status_code,
        )
