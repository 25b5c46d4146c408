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

from typing import Callable, Optional, Tuple, TypeVar

from mongorpc.exceptions import AppError

# documents travel as JSON strings, never interpreted by this library
FilterType = str
UpdateType = str
DocumentType = str
CallerType = Tuple[Optional[str], Optional[str]]

T = TypeVar("T")

# the continuation of an operation: (result, error), exactly one meaningful
CompletionType = Callable[[T, Optional[AppError]], None]
# the continuation handed to an RPC channel: (error, raw JSON reply)
ChannelCompletionType = Callable[[Optional[AppError], Optional[str]], None]
