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

from dataclasses import dataclass, field, replace
from typing import Any, Sequence

from mongorpc.constants import CallerType
from mongorpc.settings.defaults import (
    DEFAULT_CHANNEL_MAX_WORKERS,
    DEFAULT_REQUEST_TIMEOUT_MS,
    DEFAULT_SERVICE_NAME,
)


@dataclass(frozen=True)
class FindOptions:
    """
    Optional settings for the `find` and `find_one` collection methods.

    Any field left to None is absent, i.e. it is not sent to the remote function
    at all (and the service default applies).

    Attributes:
        limit: the maximum number of documents to return.
        projection: a JSON document (as a string) selecting the fields
            of the returned documents, e.g. '{"name": 1, "_id": 0}'.
        sort: a JSON document (as a string) specifying the sort order
            of the matches, e.g. '{"age": -1}'.
    """

    limit: int | None = None
    projection: str | None = None
    sort: str | None = None


@dataclass(frozen=True)
class FindOneAndModifyOptions:
    """
    Optional settings for the `find_one_and_update`, `find_one_and_replace`
    and `find_one_and_delete` collection methods.

    Any field left to None is absent. Boolean flags set to False are not sent
    either, since False is what the remote service assumes when they are missing.

    Attributes:
        upsert: if True, a new document is inserted when nothing matches.
        return_new_document: if True, the document is returned as it is
            after the modification (rather than before it).
        projection: a JSON document (as a string) selecting the fields
            of the returned document.
        sort: a JSON document (as a string) determining which document comes
            first, hence which one is modified, among several matches.
    """

    upsert: bool | None = None
    return_new_document: bool | None = None
    projection: str | None = None
    sort: str | None = None


@dataclass(frozen=True)
class ChannelOptions:
    """
    The settings for an HTTP RPC channel.

    Attributes:
        service_name: the name of the remote service the functions
            are invoked on.
        request_timeout_ms: a timeout, in milliseconds, for each HTTP request.
            A timeout of zero means no timeout at all.
        max_workers: the size of the thread pool that performs the requests,
            i.e. the number of calls that can be in flight at any given time.
        additional_headers: further HTTP headers to send with every request.
            A header set to None is not sent.
        redacted_header_names: headers whose value is masked in the logs
            (on top of the authorization header, always masked).
        callers: (name, version) pairs to compose the User-Agent header with.
    """

    service_name: str = DEFAULT_SERVICE_NAME
    request_timeout_ms: int = DEFAULT_REQUEST_TIMEOUT_MS
    max_workers: int = DEFAULT_CHANNEL_MAX_WORKERS
    additional_headers: dict[str, str | None] = field(default_factory=dict)
    redacted_header_names: frozenset[str] = frozenset()
    callers: Sequence[CallerType] = ()

    def __post_init__(self) -> None:
        if self.request_timeout_ms < 0:
            raise ValueError("request_timeout_ms cannot be negative.")
        if self.max_workers < 1:
            raise ValueError("max_workers must be a positive integer.")

    def with_override(self, **overrides: Any) -> ChannelOptions:
        """
        Return a copy of these options where the provided settings
        replace the current ones.

        Example:
            >>> ChannelOptions().with_override(request_timeout_ms=2500)
            ChannelOptions(service_name='mongodb-atlas', request_timeout_ms=2500, ...)
        """
        if "redacted_header_names" in overrides:
            overrides["redacted_header_names"] = frozenset(
                overrides["redacted_header_names"]
            )
        return replace(self, **overrides)
