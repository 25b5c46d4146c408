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
Decoding of the replies returned by the remote functions.

Every decoder receives what the RPC channel handed to its completion, i.e.
an error (or None) and the raw JSON reply (or None), and returns an Outcome.
Decoding is only attempted if there is no error and a reply is present:
otherwise the zero value for the operation is returned alongside the
error, untouched (possibly None). A reply lacking the expected structure
yields a MalformedJsonError instead.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from mongorpc.ejson import (
    ExtendedJSONError,
    get_field,
    parse_json,
    unwrap_number_int,
    unwrap_number_long,
    unwrap_object_id,
)
from mongorpc.exceptions import AppError, MalformedJsonError
from mongorpc.results import (
    DeleteResult,
    InsertManyResult,
    InsertOneResult,
    Outcome,
    UpdateResult,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

# replies standing for "no document" in the find_one family
NO_DOCUMENT_REPLIES = {"", "null"}


def _decode(
    error: AppError | None,
    reply: str | None,
    *,
    zero: Callable[[], T],
    decoder: Callable[[Any], T],
    description: str,
) -> Outcome[T]:
    if error is not None or reply is None:
        return Outcome(result=zero(), error=error)
    parsed = parse_json(reply)
    if parsed.error is not None:
        logger.warning(f"Unparseable {description} reply: {parsed.error.message}")
        return Outcome(
            result=zero(),
            error=MalformedJsonError(
                f"Unparseable {description} reply: {parsed.error.message}",
                raw_text=reply,
            ),
        )
    try:
        return Outcome(result=decoder(parsed.result))
    except (ExtendedJSONError, TypeError, ValueError) as exc:
        logger.warning(f"Faulty {description} reply: {exc}")
        return Outcome(
            result=zero(),
            error=MalformedJsonError(
                f"Faulty {description} reply: {exc}",
                raw_text=reply,
            ),
        )


def decode_documents_reply(error: AppError | None, reply: str | None) -> Outcome[str]:
    """
    Decode the reply of `find` or `aggregate`: the documents are returned
    as they are, an opaque JSON string.
    """
    if error is not None or reply is None:
        return Outcome(result="", error=error)
    return Outcome(result=reply)


def decode_optional_document_reply(
    error: AppError | None, reply: str | None
) -> Outcome[str | None]:
    """
    Decode the reply of `findOne` and the `findOneAnd*` functions.

    The document, if any, is returned as an opaque JSON string. A missing,
    empty or JSON-null reply means that no document matched: the result
    is then None (and the error is None as well).
    """
    if error is not None:
        return Outcome(result="", error=error)
    if reply is None or reply.strip() in NO_DOCUMENT_REPLIES:
        return Outcome(result=None)
    return Outcome(result=reply)


def _count_from_document(document: Any) -> int:
    return unwrap_number_long(document)


def decode_count_reply(error: AppError | None, reply: str | None) -> Outcome[int]:
    """Decode `{"$numberLong": "<n>"}` into n."""
    return _decode(
        error,
        reply,
        zero=int,
        decoder=_count_from_document,
        description="count",
    )


def _delete_result_from_document(document: Any) -> DeleteResult:
    return DeleteResult(
        deleted_count=unwrap_number_int(get_field(document, "deletedCount"))
    )


def decode_delete_reply(
    error: AppError | None, reply: str | None
) -> Outcome[DeleteResult]:
    """Decode `{"deletedCount": {"$numberInt": "<n>"}}`."""
    return _decode(
        error,
        reply,
        zero=DeleteResult,
        decoder=_delete_result_from_document,
        description="delete",
    )


def _update_result_from_document(document: Any) -> UpdateResult:
    matched_count = unwrap_number_int(get_field(document, "matchedCount"))
    modified_count = unwrap_number_int(get_field(document, "modifiedCount"))
    upserted_id = ""
    if "upsertedId" in document:
        upserted_id = unwrap_object_id(document["upsertedId"])
    return UpdateResult(
        matched_count=matched_count,
        modified_count=modified_count,
        upserted_id=upserted_id,
    )


def decode_update_reply(
    error: AppError | None, reply: str | None
) -> Outcome[UpdateResult]:
    """
    Decode the reply of `updateOne`/`updateMany`, such as:
        {
            "matchedCount": {"$numberInt": "1"},
            "modifiedCount": {"$numberInt": "0"},
            "upsertedId": {"$oid": "5f1b..."}
        }
    where `upsertedId` is only there if an upsert took place.
    """
    return _decode(
        error,
        reply,
        zero=UpdateResult,
        decoder=_update_result_from_document,
        description="update",
    )


def _insert_one_result_from_document(document: Any) -> InsertOneResult:
    inserted_id = get_field(document, "insertedId")
    if isinstance(inserted_id, str):
        return InsertOneResult(inserted_id=inserted_id)
    return InsertOneResult(inserted_id=unwrap_object_id(inserted_id))


def decode_insert_one_reply(
    error: AppError | None, reply: str | None
) -> Outcome[InsertOneResult]:
    """Decode `{"insertedId": {"$oid": "<id>"}}`."""
    return _decode(
        error,
        reply,
        zero=InsertOneResult,
        decoder=_insert_one_result_from_document,
        description="insertOne",
    )


def _insert_many_result_from_document(document: Any) -> InsertManyResult:
    inserted_ids = get_field(document, "insertedIds")
    if not isinstance(inserted_ids, list):
        raise ExtendedJSONError("'insertedIds' must be an array")
    return InsertManyResult(
        inserted_ids={
            id_i: unwrap_object_id(inserted_id)
            for id_i, inserted_id in enumerate(inserted_ids)
        }
    )


def decode_insert_many_reply(
    error: AppError | None, reply: str | None
) -> Outcome[InsertManyResult]:
    """
    Decode `{"insertedIds": [{"$oid": "<id0>"}, {"$oid": "<id1>"}, ...]}`
    into the mapping {0: "<id0>", 1: "<id1>", ...}.
    """
    return _decode(
        error,
        reply,
        zero=InsertManyResult,
        decoder=_insert_many_result_from_document,
        description="insertMany",
    )
