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

import json
import logging
from abc import ABC, abstractmethod
from concurrent.futures import Future, ThreadPoolExecutor
from types import TracebackType
from typing import Any

import httpx

from mongorpc import __version__
from mongorpc.constants import ChannelCompletionType
from mongorpc.ejson import encode_json
from mongorpc.exceptions import ServiceError
from mongorpc.options import ChannelOptions
from mongorpc.settings.defaults import DEFAULT_AUTH_HEADER, FUNCTION_CALL_PATH_TEMPLATE
from mongorpc.utils.request_tools import (
    HttpMethod,
    compose_user_agent,
    log_httpx_request,
    log_httpx_response,
    redact_headers,
    redact_secret,
    to_httpx_timeout,
)

logger = logging.getLogger(__name__)


def _log_completion_failure(future: Future[None]) -> None:
    exc = future.exception()
    if exc is not None:
        logger.error("Completion raised an exception", exc_info=exc)


class RPCChannel(ABC):
    """
    The remote procedure call primitive the collections are built upon:
    invoke a named remote function with a JSON argument document.

    Implementations must not block the caller: the outcome of the call
    is delivered, at most once, to the `on_complete` callable, as the pair
    (error, reply). On success `error` is None and `reply` is the JSON string
    returned by the function (or None for functions returning nothing);
    on failure `error` is set and `reply` is None. The thread on which
    `on_complete` runs is up to the implementation.
    """

    @abstractmethod
    def call_function(
        self,
        function_name: str,
        arguments_json: str,
        on_complete: ChannelCompletionType,
    ) -> None: ...


class HttpRPCChannel(RPCChannel):
    """
    An RPC channel invoking the functions of a remote application service
    through its HTTP "function call" endpoint.

    Requests run on a pool of worker threads, so that `call_function`
    returns immediately; completions are invoked on the worker threads.
    No retry is attempted: any HTTP failure is reported as a ServiceError.

    Args:
        base_url: the root URL of the service, e.g. "https://services.example.com".
        app_id: the identifier of the application exposing the functions.
        access_token: a bearer token to authenticate the requests, if needed.
        options: a ChannelOptions object with further settings.

    Example:
        >>> channel = HttpRPCChannel(
        ...     "https://services.example.com",
        ...     "myapp-abcde",
        ...     access_token="eyJhbGciOi...",
        ... )
        >>> collection = RemoteMongoClient(channel)["app"]["users"]
    """

    def __init__(
        self,
        base_url: str,
        app_id: str,
        *,
        access_token: str | None = None,
        options: ChannelOptions | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.app_id = app_id
        self.options = options or ChannelOptions()
        self._access_token = access_token
        self.full_url = self.base_url + FUNCTION_CALL_PATH_TEMPLATE.format(
            app_id=app_id
        )

        user_agent = compose_user_agent(
            list(self.options.callers) + [("mongorpc", __version__)]
        )
        self.full_headers: dict[str, str] = {
            k: v
            for k, v in {
                **{
                    "Content-Type": "application/json",
                    "Accept": "application/json",
                    "User-Agent": user_agent,
                    DEFAULT_AUTH_HEADER: (
                        f"Bearer {access_token}" if access_token else None
                    ),
                },
                **self.options.additional_headers,
            }.items()
            if v is not None
        }
        self._loggable_headers = redact_headers(
            self.full_headers, self.options.redacted_header_names
        )
        self.client = httpx.Client()
        self._executor = ThreadPoolExecutor(
            max_workers=self.options.max_workers,
            thread_name_prefix="mongorpc-channel",
        )

    def __repr__(self) -> str:
        token_desc = (
            f', access_token="{redact_secret(self._access_token)}"'
            if self._access_token
            else ""
        )
        return (
            f'{self.__class__.__name__}(base_url="{self.base_url}", '
            f'app_id="{self.app_id}"{token_desc}, options={self.options})'
        )

    def __enter__(self) -> HttpRPCChannel:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: TracebackType | None = None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Wait for the in-flight calls to complete, then release all resources."""
        self._executor.shutdown(wait=True)
        self.client.close()

    def _encode_payload(self, function_name: str, arguments_json: str) -> str:
        arguments_document: dict[str, Any] = json.loads(arguments_json)
        return encode_json(
            {
                "name": function_name,
                "service": self.options.service_name,
                "arguments": arguments_document["arguments"],
            }
        )

    def request_function(
        self,
        function_name: str,
        arguments_json: str,
    ) -> tuple[ServiceError | None, str | None]:
        """
        Invoke a function, blocking until the HTTP exchange is over.

        Returns:
            the pair (error, reply) as it would be passed to a completion.
        """
        try:
            encoded_payload = self._encode_payload(function_name, arguments_json)
            payload_bytes = encoded_payload.encode("utf-8")
        except (KeyError, RecursionError, TypeError, ValueError) as exc:
            return (
                ServiceError(f"Cannot send arguments to '{function_name}': {exc}"),
                None,
            )
        log_httpx_request(
            http_method=HttpMethod.POST,
            full_url=self.full_url,
            redacted_request_headers=self._loggable_headers,
            encoded_payload=encoded_payload,
            timeout_ms=self.options.request_timeout_ms,
        )

        try:
            raw_response = self.client.request(
                method=HttpMethod.POST,
                url=self.full_url,
                content=payload_bytes,
                timeout=to_httpx_timeout(self.options.request_timeout_ms),
                headers=self.full_headers,
            )
            raw_response.raise_for_status()
        except httpx.TimeoutException as timeout_exc:
            text_0 = str(timeout_exc) or "timed out"
            logger.warning(f"Function '{function_name}' timed out: {text_0}")
            return (
                ServiceError(
                    f"{text_0} (timeout honoured: "
                    f"request_timeout_ms = {self.options.request_timeout_ms} ms)"
                ),
                None,
            )
        except httpx.HTTPError as http_exc:
            logger.warning(f"Function '{function_name}' failed: {http_exc}")
            return ServiceError.from_httpx_error(http_exc), None

        log_httpx_response(response=raw_response)
        return None, (raw_response.text or None)

    def call_function(
        self,
        function_name: str,
        arguments_json: str,
        on_complete: ChannelCompletionType,
    ) -> None:
        future = self._executor.submit(
            self._call_and_complete, function_name, arguments_json, on_complete
        )
        future.add_done_callback(_log_completion_failure)

    def _call_and_complete(
        self,
        function_name: str,
        arguments_json: str,
        on_complete: ChannelCompletionType,
    ) -> None:
        try:
            error, reply = self.request_function(function_name, arguments_json)
        except Exception as exc:
            logger.error(f"Function '{function_name}' failed unexpectedly: {exc}")
            error = ServiceError(f"Could not call '{function_name}': {exc}")
            reply = None
        on_complete(error, reply)
