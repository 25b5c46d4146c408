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
from typing import Any

from mongorpc.channel import RPCChannel
from mongorpc.database import RemoteMongoDatabase

logger = logging.getLogger(__name__)


class RemoteMongoClient:
    """
    A client for a remote MongoDB service reachable through an RPC channel.
    This is the entry point, sitting at the top of the conceptual
    "client -> database -> collection" hierarchy.

    Args:
        channel: the RPCChannel to invoke the remote functions through.
            All databases and collections spawned from the client share it.

    Example:
        >>> from mongorpc import HttpRPCChannel, RemoteMongoClient
        >>> client = RemoteMongoClient(
        ...     HttpRPCChannel("https://services.example.com", "myapp-abcde")
        ... )
        >>> collection = client["app"]["users"]
        >>> acollection = client.get_database("app").get_async_collection("users")
    """

    def __init__(self, channel: RPCChannel) -> None:
        self._channel = channel

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(channel={self._channel})"

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, RemoteMongoClient):
            return self._channel is other._channel
        else:
            return False

    def __getitem__(self, database_name: str) -> RemoteMongoDatabase:
        return self.get_database(database_name)

    @property
    def channel(self) -> RPCChannel:
        return self._channel

    def get_database(self, name: str) -> RemoteMongoDatabase:
        """
        Spawn a RemoteMongoDatabase object for a database on the service.

        Args:
            name: the database name.

        Returns:
            a RemoteMongoDatabase object.
        """
        logger.debug(f"getting database '{name}'")
        return RemoteMongoDatabase(name, channel=self._channel)
