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

from typing import Any

from mongorpc.channel import RPCChannel
from mongorpc.collection import AsyncRemoteMongoCollection, RemoteMongoCollection


class RemoteMongoDatabase:
    """
    A database on a remote MongoDB service, spawning the collection objects.
    It only holds the database name and the channel: nothing is checked
    against the service upon creation.

    Collections can be obtained by name through `get_collection`, or with
    the shorthands `database["users"]` and `database.users`.

    Args:
        name: the database name.
        channel: the RPCChannel to invoke the remote functions through.

    Example:
        >>> database = RemoteMongoDatabase("app", channel=my_channel)
        >>> database.users
        RemoteMongoCollection(name="users", database_name="app", channel=...)
    """

    def __init__(self, name: str, *, channel: RPCChannel) -> None:
        self._name = name
        self._channel = channel

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name="{self._name}", '
            f"channel={self._channel})"
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, RemoteMongoDatabase):
            return all(
                [
                    self._name == other._name,
                    self._channel is other._channel,
                ]
            )
        else:
            return False

    def __getattr__(self, collection_name: str) -> RemoteMongoCollection:
        if collection_name.startswith("_"):
            raise AttributeError(
                f"'{self.__class__.__name__}' has no attribute '{collection_name}'"
            )
        return self.get_collection(collection_name)

    def __getitem__(self, collection_name: str) -> RemoteMongoCollection:
        return self.get_collection(collection_name)

    @property
    def name(self) -> str:
        """The name of this database."""
        return self._name

    @property
    def channel(self) -> RPCChannel:
        return self._channel

    def get_collection(self, name: str) -> RemoteMongoCollection:
        """
        Spawn a RemoteMongoCollection object for a collection in this database.

        Args:
            name: the name of the collection.

        Returns:
            a RemoteMongoCollection, with a callback-based interface.
        """
        return RemoteMongoCollection(name, self._name, channel=self._channel)

    def get_async_collection(self, name: str) -> AsyncRemoteMongoCollection:
        """
        Spawn an AsyncRemoteMongoCollection object for a collection
        in this database.

        Args:
            name: the name of the collection.

        Returns:
            an AsyncRemoteMongoCollection, with an asyncio interface.
        """
        return AsyncRemoteMongoCollection(name, self._name, channel=self._channel)
