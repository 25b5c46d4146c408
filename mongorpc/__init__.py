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

__version__: str = "0.1.0"


import mongorpc.constants  # noqa: E402
from mongorpc.channel import HttpRPCChannel, RPCChannel  # noqa: E402
from mongorpc.client import RemoteMongoClient  # noqa: E402
from mongorpc.collection import (  # noqa: E402
    AsyncRemoteMongoCollection,
    RemoteMongoCollection,
)
from mongorpc.database import RemoteMongoDatabase  # noqa: E402
from mongorpc.exceptions import (  # noqa: E402
    AppError,
    ErrorKind,
    MalformedJsonError,
    ServiceError,
)
from mongorpc.options import (  # noqa: E402
    ChannelOptions,
    FindOneAndModifyOptions,
    FindOptions,
)
from mongorpc.results import (  # noqa: E402
    DeleteResult,
    InsertManyResult,
    InsertOneResult,
    Outcome,
    UpdateResult,
)

__all__ = [
    "AppError",
    "AsyncRemoteMongoCollection",
    "ChannelOptions",
    "DeleteResult",
    "ErrorKind",
    "FindOneAndModifyOptions",
    "FindOptions",
    "HttpRPCChannel",
    "InsertManyResult",
    "InsertOneResult",
    "MalformedJsonError",
    "Outcome",
    "RPCChannel",
    "RemoteMongoClient",
    "RemoteMongoCollection",
    "RemoteMongoDatabase",
    "ServiceError",
    "UpdateResult",
    "__version__",
]
