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

"""
Fixtures for the unit tests: a scripted, recording RPC channel
and a recorder for operation completions.
"""

from __future__ import annotations

import json
import threading
from typing import Any, Generic, Iterator, TypeVar

import pytest

from mongorpc import RemoteMongoCollection
from mongorpc.channel import RPCChannel
from mongorpc.constants import ChannelCompletionType
from mongorpc.exceptions import AppError

T = TypeVar("T")

COLLECTION_NAME = "users"
DATABASE_NAME = "app"


class RecordingChannel(RPCChannel):
    """
    An RPCChannel replying with scripted (error, reply) pairs, by function name,
    and keeping track of all invocations.
    Unless `threaded`, completions run synchronously within `call_function`.
    """

    def __init__(self, *, threaded: bool = False) -> None:
        self.threaded = threaded
        self.calls: list[tuple[str, str]] = []
        self._replies: dict[str, tuple[AppError | None, str | None]] = {}
        self._threads: list[threading.Thread] = []

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(threaded={self.threaded})"

    def set_reply(
        self,
        function_name: str,
        reply: str | None = None,
        *,
        error: AppError | None = None,
    ) -> None:
        self._replies[function_name] = (error, reply)

    def call_function(
        self,
        function_name: str,
        arguments_json: str,
        on_complete: ChannelCompletionType,
    ) -> None:
        self.calls.append((function_name, arguments_json))
        error, reply = self._replies.get(function_name, (None, None))
        if self.threaded:
            thread = threading.Thread(target=on_complete, args=(error, reply))
            self._threads.append(thread)
            thread.start()
        else:
            on_complete(error, reply)

    @property
    def function_names(self) -> list[str]:
        return [call[0] for call in self.calls]

    @property
    def last_arguments(self) -> dict[str, Any]:
        return json.loads(self.calls[-1][1])  # type: ignore[no-any-return]

    def join(self) -> None:
        for thread in self._threads:
            thread.join(timeout=5)


class CompletionRecorder(Generic[T]):
    """A completion callable storing each (result, error) it receives."""

    def __init__(self) -> None:
        self.calls: list[tuple[T, AppError | None]] = []
        self._event = threading.Event()

    def __call__(self, result: T, error: AppError | None) -> None:
        self.calls.append((result, error))
        self._event.set()

    def wait(self, timeout: float = 5) -> None:
        assert self._event.wait(timeout), "the completion was never invoked"

    @property
    def result(self) -> T:
        assert len(self.calls) == 1
        return self.calls[0][0]

    @property
    def error(self) -> AppError | None:
        assert len(self.calls) == 1
        return self.calls[0][1]


@pytest.fixture
def channel() -> RecordingChannel:
    return RecordingChannel()


@pytest.fixture
def threaded_channel() -> Iterator[RecordingChannel]:
    t_channel = RecordingChannel(threaded=True)
    yield t_channel
    t_channel.join()


@pytest.fixture
def collection(channel: RecordingChannel) -> RemoteMongoCollection:
    return RemoteMongoCollection(COLLECTION_NAME, DATABASE_NAME, channel=channel)


@pytest.fixture
def recorder() -> CompletionRecorder[Any]:
    return CompletionRecorder()
