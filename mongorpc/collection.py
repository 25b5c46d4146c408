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

import asyncio
import logging
import threading
from typing import Any, Callable, Generic, Sequence, TypeVar

from mongorpc.arguments import (
    CollectionIdentity,
    build_aggregate_arguments,
    build_count_arguments,
    build_delete_arguments,
    build_find_arguments,
    build_find_one_and_modify_arguments,
    build_insert_many_arguments,
    build_insert_one_arguments,
    build_update_arguments,
)
from mongorpc.channel import RPCChannel
from mongorpc.constants import (
    CompletionType,
    DocumentType,
    FilterType,
    UpdateType,
)
from mongorpc.exceptions import AppError, ServiceError
from mongorpc.options import FindOneAndModifyOptions, FindOptions
from mongorpc.replies import (
    decode_count_reply,
    decode_delete_reply,
    decode_documents_reply,
    decode_insert_many_reply,
    decode_insert_one_reply,
    decode_optional_document_reply,
    decode_update_reply,
)
from mongorpc.results import (
    DeleteResult,
    InsertManyResult,
    InsertOneResult,
    Outcome,
    UpdateResult,
)
from mongorpc.settings.defaults import (
    RPC_FUNCTION_AGGREGATE,
    RPC_FUNCTION_COUNT,
    RPC_FUNCTION_DELETE_MANY,
    RPC_FUNCTION_DELETE_ONE,
    RPC_FUNCTION_FIND,
    RPC_FUNCTION_FIND_ONE,
    RPC_FUNCTION_FIND_ONE_AND_DELETE,
    RPC_FUNCTION_FIND_ONE_AND_REPLACE,
    RPC_FUNCTION_FIND_ONE_AND_UPDATE,
    RPC_FUNCTION_INSERT_MANY,
    RPC_FUNCTION_INSERT_ONE,
    RPC_FUNCTION_UPDATE_MANY,
    RPC_FUNCTION_UPDATE_ONE,
)

T = TypeVar("T")

ReplyDecoderType = Callable[[Any, Any], Outcome[T]]

logger = logging.getLogger(__name__)


class _SingleShotCompletion(Generic[T]):
    """
    Wrap a completion so that it runs at most once, whatever the channel does.
    """

    def __init__(self, on_complete: CompletionType[T], description: str) -> None:
        self._on_complete = on_complete
        self._description = description
        self._lock = threading.Lock()
        self._fired = False

    def __call__(self, result: T, error: AppError | None) -> None:
        with self._lock:
            if self._fired:
                logger.warning(
                    f"Dropping repeated completion for {self._description}"
                )
                return
            self._fired = True
        self._on_complete(result, error)

    @property
    def fired(self) -> bool:
        with self._lock:
            return self._fired


class RemoteMongoCollection:
    """
    A collection on a remote MongoDB service, reached through an RPC channel.
    This class has a callback-based, non-blocking interface.

    Documents (filters, updates, projections, ...) are passed as JSON strings,
    and documents returned by the service come back as JSON strings as well.

    Each operation takes an `on_complete` callable, invoked exactly once with
    the pair (result, error), exactly one of which is meaningful:
    if `error` is None the operation succeeded; otherwise `error` is an AppError
    and `result` is the zero value for the operation. Errors are never raised
    by these methods. The completion runs on a thread controlled by the
    channel, except for invalid JSON inputs: those are reported immediately,
    on the calling thread, without contacting the service.

    There is no ordering guarantee between concurrent operations: callers
    needing sequential semantics should chain them through the completions.

    Args:
        name: the collection name.
        database_name: the name of the database the collection belongs to.
        channel: the RPCChannel to invoke the remote functions through.

    Example:
        >>> def report(result, error):
        ...     print(error or result)
        ...
        >>> collection = RemoteMongoCollection("users", "app", channel=my_channel)
        >>> collection.insert_one('{"name": "Ada"}', on_complete=report)
        InsertOneResult(inserted_id='65f1a2b3c4d5e6f708192a3b')
        >>> collection.count('{"name": "Ada"}', on_complete=report)
        1
    """

    def __init__(
        self,
        name: str,
        database_name: str,
        *,
        channel: RPCChannel,
    ) -> None:
        self._identity = CollectionIdentity(name=name, database_name=database_name)
        self._channel = channel

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f'database_name="{self.database_name}", channel={self._channel})'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, RemoteMongoCollection):
            return all(
                [
                    self._identity == other._identity,
                    self._channel is other._channel,
                ]
            )
        else:
            return False

    def __call__(self, *pargs: Any, **kwargs: Any) -> None:
        raise TypeError(
            f"'{self.__class__.__name__}' object is not callable. If you "
            f"meant to call the '{self.name}' method on a database "
            "object it is failing because no such method exists."
        )

    @property
    def name(self) -> str:
        """The name of this collection."""
        return self._identity.name

    @property
    def database_name(self) -> str:
        """The name of the database containing this collection."""
        return self._identity.database_name

    @property
    def full_name(self) -> str:
        """
        The fully-qualified collection name within the service,
        in the form "database_name.collection_name".
        """
        return f"{self.database_name}.{self.name}"

    @property
    def identity(self) -> CollectionIdentity:
        return self._identity

    @property
    def channel(self) -> RPCChannel:
        return self._channel

    def to_async(self) -> AsyncRemoteMongoCollection:
        """
        Create an AsyncRemoteMongoCollection for the same remote collection
        and through the same channel.

        Example:
            >>> outcome = await my_collection.to_async().count("{}")
            >>> outcome.unwrap()
            37
        """
        return AsyncRemoteMongoCollection(
            self.name, self.database_name, channel=self._channel
        )

    def _dispatch(
        self,
        function_name: str,
        arguments: Outcome[str],
        decoder: ReplyDecoderType[T],
        on_complete: CompletionType[T],
    ) -> None:
        completion = _SingleShotCompletion(
            on_complete, description=f"{function_name} on '{self.name}'"
        )
        if arguments.error is not None:
            logger.warning(
                f"{function_name} on '{self.name}' not sent: {arguments.error}"
            )
            failed = decoder(arguments.error, None)
            completion(failed.result, failed.error)
            return

        def _on_channel_complete(error: AppError | None, reply: str | None) -> None:
            outcome = decoder(error, reply)
            logger.info(f"finished {function_name} on '{self.name}'")
            completion(outcome.result, outcome.error)

        logger.info(f"{function_name} on '{self.name}'")
        try:
            self._channel.call_function(
                function_name, arguments.result, _on_channel_complete
            )
        except Exception as exc:
            if completion.fired:
                # raised from within the completion itself, on this thread
                raise
            logger.error(f"Channel failed to dispatch {function_name}: {exc}")
            failed = decoder(
                ServiceError(f"Could not invoke '{function_name}': {exc}"), None
            )
            completion(failed.result, failed.error)

    def find(
        self,
        filter_json: FilterType,
        options: FindOptions | None = None,
        *,
        on_complete: CompletionType[str],
    ) -> None:
        """
        Find the documents matching a filter.

        Args:
            filter_json: the filter as a JSON string, e.g. '{"age": {"$gt": 30}}'.
            options: a FindOptions object with limit, projection and sort.
            on_complete: called with the JSON string of the resulting
                documents, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_FIND,
            build_find_arguments(self._identity, filter_json, options),
            decode_documents_reply,
            on_complete,
        )

    def find_one(
        self,
        filter_json: FilterType,
        options: FindOptions | None = None,
        *,
        on_complete: CompletionType[str | None],
    ) -> None:
        """
        Find one document matching a filter. If several documents match,
        the first one according to the sort order (or the natural order) is
        returned.

        Args:
            filter_json: the filter as a JSON string.
            options: a FindOptions object with limit, projection and sort.
            on_complete: called with the JSON string of the document, or None
                if no document matches, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_FIND_ONE,
            build_find_arguments(self._identity, filter_json, options),
            decode_optional_document_reply,
            on_complete,
        )

    def aggregate(
        self,
        pipeline: Sequence[str],
        *,
        on_complete: CompletionType[str],
    ) -> None:
        """
        Run an aggregation pipeline on the collection.

        Args:
            pipeline: the stages of the pipeline, each a JSON string,
                e.g. ['{"$match": {"active": true}}', '{"$count": "n"}'].
            on_complete: called with the JSON string of the resulting
                documents, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_AGGREGATE,
            build_aggregate_arguments(self._identity, pipeline),
            decode_documents_reply,
            on_complete,
        )

    def count(
        self,
        filter_json: FilterType,
        limit: int | None = None,
        *,
        on_complete: CompletionType[int],
    ) -> None:
        """
        Count the documents matching a filter.

        Args:
            filter_json: the filter as a JSON string.
            limit: if provided, the maximum number of documents to count.
            on_complete: called with the count, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_COUNT,
            build_count_arguments(self._identity, filter_json, limit),
            decode_count_reply,
            on_complete,
        )

    def insert_one(
        self,
        document_json: DocumentType,
        *,
        on_complete: CompletionType[InsertOneResult],
    ) -> None:
        """
        Insert a document. If the document has no `_id`, the service
        generates one.

        Args:
            document_json: the document as a JSON string.
            on_complete: called with an InsertOneResult, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_INSERT_ONE,
            build_insert_one_arguments(self._identity, document_json),
            decode_insert_one_reply,
            on_complete,
        )

    def insert_many(
        self,
        documents_json: Sequence[DocumentType],
        *,
        on_complete: CompletionType[InsertManyResult],
    ) -> None:
        """
        Insert several documents with a single call.

        Args:
            documents_json: the documents, each a JSON string.
            on_complete: called with an InsertManyResult, whose `inserted_ids`
                maps the position of each document in `documents_json`
                to its ID, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_INSERT_MANY,
            build_insert_many_arguments(self._identity, documents_json),
            decode_insert_many_reply,
            on_complete,
        )

    def delete_one(
        self,
        filter_json: FilterType,
        *,
        on_complete: CompletionType[DeleteResult],
    ) -> None:
        """
        Delete one document matching a filter.

        Args:
            filter_json: the filter as a JSON string.
            on_complete: called with a DeleteResult, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_DELETE_ONE,
            build_delete_arguments(self._identity, filter_json),
            decode_delete_reply,
            on_complete,
        )

    def delete_many(
        self,
        filter_json: FilterType,
        *,
        on_complete: CompletionType[DeleteResult],
    ) -> None:
        """
        Delete all documents matching a filter.

        Args:
            filter_json: the filter as a JSON string.
            on_complete: called with a DeleteResult, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_DELETE_MANY,
            build_delete_arguments(self._identity, filter_json),
            decode_delete_reply,
            on_complete,
        )

    def update_one(
        self,
        filter_json: FilterType,
        update_json: UpdateType,
        upsert: bool | None = None,
        *,
        on_complete: CompletionType[UpdateResult],
    ) -> None:
        """
        Update one document matching a filter.

        Args:
            filter_json: the filter as a JSON string.
            update_json: the update as a JSON string, e.g. '{"$set": {"a": 1}}'.
            upsert: if True, insert a new document when nothing matches.
            on_complete: called with an UpdateResult, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_UPDATE_ONE,
            build_update_arguments(self._identity, filter_json, update_json, upsert),
            decode_update_reply,
            on_complete,
        )

    def update_many(
        self,
        filter_json: FilterType,
        update_json: UpdateType,
        upsert: bool | None = None,
        *,
        on_complete: CompletionType[UpdateResult],
    ) -> None:
        """
        Update all documents matching a filter.

        Args:
            filter_json: the filter as a JSON string.
            update_json: the update as a JSON string.
            upsert: if True, insert a new document when nothing matches.
            on_complete: called with an UpdateResult, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_UPDATE_MANY,
            build_update_arguments(self._identity, filter_json, update_json, upsert),
            decode_update_reply,
            on_complete,
        )

    def find_one_and_update(
        self,
        filter_json: FilterType,
        update_json: UpdateType,
        options: FindOneAndModifyOptions | None = None,
        *,
        on_complete: CompletionType[str | None],
    ) -> None:
        """
        Find a document and update it, returning the document as it was
        before the update (or after, with `return_new_document`).
        Atomicity of the find-and-update is guaranteed by the service.

        Args:
            filter_json: the filter as a JSON string.
            update_json: the update as a JSON string.
            options: a FindOneAndModifyOptions object.
            on_complete: called with the JSON string of the document, or None
                if no document matched, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_FIND_ONE_AND_UPDATE,
            build_find_one_and_modify_arguments(
                self._identity, filter_json, update_json, options
            ),
            decode_optional_document_reply,
            on_complete,
        )

    def find_one_and_replace(
        self,
        filter_json: FilterType,
        replacement_json: DocumentType,
        options: FindOneAndModifyOptions | None = None,
        *,
        on_complete: CompletionType[str | None],
    ) -> None:
        """
        Find a document and replace it with a new one, returning the document
        as it was before the replacement (or after, with `return_new_document`).

        Args:
            filter_json: the filter as a JSON string.
            replacement_json: the new document as a JSON string.
            options: a FindOneAndModifyOptions object.
            on_complete: called with the JSON string of the document, or None
                if no document matched, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_FIND_ONE_AND_REPLACE,
            build_find_one_and_modify_arguments(
                self._identity, filter_json, replacement_json, options
            ),
            decode_optional_document_reply,
            on_complete,
        )

    def find_one_and_delete(
        self,
        filter_json: FilterType,
        options: FindOneAndModifyOptions | None = None,
        *,
        on_complete: CompletionType[str | None],
    ) -> None:
        """
        Find a document and delete it, returning it as it was before deletion.

        Args:
            filter_json: the filter as a JSON string.
            options: a FindOneAndModifyOptions object (its projection and
                sort are the relevant settings here).
            on_complete: called with the JSON string of the deleted document,
                or None if no document matched, or with an error.
        """
        self._dispatch(
            RPC_FUNCTION_FIND_ONE_AND_DELETE,
            build_find_one_and_modify_arguments(
                self._identity, filter_json, None, options
            ),
            decode_optional_document_reply,
            on_complete,
        )


class AsyncRemoteMongoCollection:
    """
    A collection on a remote MongoDB service, reached through an RPC channel.
    This class has an asynchronous (asyncio) interface.

    Each operation is a coroutine returning an Outcome: its `error` is None
    on success (and then `result` holds the result), otherwise it is an AppError
    and `result` is the zero value for the operation. Use `Outcome.unwrap()`
    to get the result or have the error raised.

    Args:
        name: the collection name.
        database_name: the name of the database the collection belongs to.
        channel: the RPCChannel to invoke the remote functions through.

    Example:
        >>> acollection = AsyncRemoteMongoCollection("users", "app", channel=my_channel)
        >>> outcome = await acollection.find_one('{"name": "Ada"}')
        >>> outcome.unwrap()
        '{"_id":{"$oid":"65f1a2b3c4d5e6f708192a3b"},"name":"Ada"}'
        >>> (await acollection.find_one('{"name": "Bob"}')).unwrap() is None
        True
    """

    def __init__(
        self,
        name: str,
        database_name: str,
        *,
        channel: RPCChannel,
    ) -> None:
        self._collection = RemoteMongoCollection(
            name, database_name, channel=channel
        )

    def __repr__(self) -> str:
        return (
            f'{self.__class__.__name__}(name="{self.name}", '
            f'database_name="{self.database_name}", channel={self.channel})'
        )

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, AsyncRemoteMongoCollection):
            return self._collection == other._collection
        else:
            return False

    def __call__(self, *pargs: Any, **kwargs: Any) -> None:
        raise TypeError(
            f"'{self.__class__.__name__}' object is not callable. If you "
            f"meant to call the '{self.name}' method on a database "
            "object it is failing because no such method exists."
        )

    @property
    def name(self) -> str:
        """The name of this collection."""
        return self._collection.name

    @property
    def database_name(self) -> str:
        """The name of the database containing this collection."""
        return self._collection.database_name

    @property
    def full_name(self) -> str:
        """
        The fully-qualified collection name within the service,
        in the form "database_name.collection_name".
        """
        return self._collection.full_name

    @property
    def identity(self) -> CollectionIdentity:
        return self._collection.identity

    @property
    def channel(self) -> RPCChannel:
        return self._collection.channel

    def to_sync(self) -> RemoteMongoCollection:
        """
        Create a (callback-based) RemoteMongoCollection for the same remote
        collection and through the same channel.
        """
        return RemoteMongoCollection(
            self.name, self.database_name, channel=self.channel
        )

    async def _run(self, launch: Callable[[CompletionType[T]], None]) -> Outcome[T]:
        # completions may come from any thread: hop back onto the loop
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Outcome[T]] = loop.create_future()

        def _resolve(outcome: Outcome[T]) -> None:
            if not future.done():
                future.set_result(outcome)

        def _on_complete(result: T, error: AppError | None) -> None:
            loop.call_soon_threadsafe(_resolve, Outcome(result=result, error=error))

        launch(_on_complete)
        return await future

    async def find(
        self,
        filter_json: FilterType,
        options: FindOptions | None = None,
    ) -> Outcome[str]:
        """
        Find the documents matching a filter.
        See `RemoteMongoCollection.find` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.find(
                filter_json, options, on_complete=on_complete
            )
        )

    async def find_one(
        self,
        filter_json: FilterType,
        options: FindOptions | None = None,
    ) -> Outcome[str | None]:
        """
        Find one document matching a filter; the result is None if none matches.
        See `RemoteMongoCollection.find_one` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.find_one(
                filter_json, options, on_complete=on_complete
            )
        )

    async def aggregate(self, pipeline: Sequence[str]) -> Outcome[str]:
        """
        Run an aggregation pipeline on the collection.
        See `RemoteMongoCollection.aggregate` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.aggregate(
                pipeline, on_complete=on_complete
            )
        )

    async def count(
        self,
        filter_json: FilterType,
        limit: int | None = None,
    ) -> Outcome[int]:
        """
        Count the documents matching a filter.
        See `RemoteMongoCollection.count` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.count(
                filter_json, limit, on_complete=on_complete
            )
        )

    async def insert_one(
        self, document_json: DocumentType
    ) -> Outcome[InsertOneResult]:
        """
        Insert a document.
        See `RemoteMongoCollection.insert_one` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.insert_one(
                document_json, on_complete=on_complete
            )
        )

    async def insert_many(
        self, documents_json: Sequence[DocumentType]
    ) -> Outcome[InsertManyResult]:
        """
        Insert several documents with a single call.
        See `RemoteMongoCollection.insert_many` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.insert_many(
                documents_json, on_complete=on_complete
            )
        )

    async def delete_one(self, filter_json: FilterType) -> Outcome[DeleteResult]:
        return await self._run(
            lambda on_complete: self._collection.delete_one(
                filter_json, on_complete=on_complete
            )
        )

    async def delete_many(self, filter_json: FilterType) -> Outcome[DeleteResult]:
        return await self._run(
            lambda on_complete: self._collection.delete_many(
                filter_json, on_complete=on_complete
            )
        )

    async def update_one(
        self,
        filter_json: FilterType,
        update_json: UpdateType,
        upsert: bool | None = None,
    ) -> Outcome[UpdateResult]:
        return await self._run(
            lambda on_complete: self._collection.update_one(
                filter_json, update_json, upsert, on_complete=on_complete
            )
        )

    async def update_many(
        self,
        filter_json: FilterType,
        update_json: UpdateType,
        upsert: bool | None = None,
    ) -> Outcome[UpdateResult]:
        return await self._run(
            lambda on_complete: self._collection.update_many(
                filter_json, update_json, upsert, on_complete=on_complete
            )
        )

    async def find_one_and_update(
        self,
        filter_json: FilterType,
        update_json: UpdateType,
        options: FindOneAndModifyOptions | None = None,
    ) -> Outcome[str | None]:
        """
        Find a document and update it.
        See `RemoteMongoCollection.find_one_and_update` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.find_one_and_update(
                filter_json, update_json, options, on_complete=on_complete
            )
        )

    async def find_one_and_replace(
        self,
        filter_json: FilterType,
        replacement_json: DocumentType,
        options: FindOneAndModifyOptions | None = None,
    ) -> Outcome[str | None]:
        """
        Find a document and replace it.
        See `RemoteMongoCollection.find_one_and_replace` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.find_one_and_replace(
                filter_json, replacement_json, options, on_complete=on_complete
            )
        )

    async def find_one_and_delete(
        self,
        filter_json: FilterType,
        options: FindOneAndModifyOptions | None = None,
    ) -> Outcome[str | None]:
        """
        Find a document and delete it.
        See `RemoteMongoCollection.find_one_and_delete` for the details.
        """
        return await self._run(
            lambda on_complete: self._collection.find_one_and_delete(
                filter_json, options, on_complete=on_complete
            )
        )
