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

import pytest

from mongorpc.exceptions import ErrorKind, MalformedJsonError, ServiceError
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
    UpdateResult,
)

ALL_DECODERS_AND_ZEROS = [
    (decode_documents_reply, ""),
    (decode_optional_document_reply, ""),
    (decode_count_reply, 0),
    (decode_delete_reply, DeleteResult()),
    (decode_update_reply, UpdateResult()),
    (decode_insert_one_reply, InsertOneResult()),
    (decode_insert_many_reply, InsertManyResult()),
]


class TestReplies:
    @pytest.mark.describe("test of upstream errors passing through untouched")
    def test_error_passthrough(self) -> None:
        service_error = ServiceError("auth failed", code="InvalidSession")
        for decoder, zero in ALL_DECODERS_AND_ZEROS:
            outcome = decoder(service_error, '{"whatever": 1}')  # type: ignore[operator]
            assert outcome.error is service_error
            assert outcome.result == zero

    @pytest.mark.describe("test of absent replies yielding zero values")
    def test_absent_reply(self) -> None:
        for decoder, zero in ALL_DECODERS_AND_ZEROS:
            if decoder is decode_optional_document_reply:
                continue
            outcome = decoder(None, None)  # type: ignore[operator]
            assert outcome.error is None
            assert outcome.result == zero

    @pytest.mark.describe("test of documents replies passed through verbatim")
    def test_documents_reply(self) -> None:
        reply = '[{"_id": {"$oid": "5f1b"}, "age": 31},\n {"age": 44}]'
        outcome = decode_documents_reply(None, reply)
        assert outcome.error is None
        assert outcome.result is reply

    @pytest.mark.describe("test of optional-document replies")
    def test_optional_document_reply(self) -> None:
        doc = '{"_id": {"$oid": "5f1b"}, "name": "Ada"}'
        assert decode_optional_document_reply(None, doc).result == doc
        for no_document in [None, "", "null", " null\n"]:
            outcome = decode_optional_document_reply(None, no_document)
            assert outcome.error is None
            assert outcome.result is None

    @pytest.mark.describe("test of count replies")
    def test_count_reply(self) -> None:
        assert decode_count_reply(None, '{"$numberLong": "42"}').result == 42
        assert decode_count_reply(None, '{"$numberLong": "0"}').result == 0
        big = decode_count_reply(None, '{"$numberLong": "18446744073709551615"}')
        assert big.error is None
        assert big.result == 2**64 - 1

    @pytest.mark.describe("test of malformed count replies")
    def test_count_reply_malformed(self) -> None:
        for faulty in [
            "",
            "not json",
            "42",
            '{"$numberInt": "42"}',
            '{"$numberLong": 42}',
            '{"$numberLong": "-1"}',
            '{"$numberLong": "4.2"}',
            '{"$numberLong": " 42"}',
            '{"$numberLong": "18446744073709551616"}',
            '["$numberLong"]',
        ]:
            outcome = decode_count_reply(None, faulty)
            assert outcome.result == 0
            assert isinstance(outcome.error, MalformedJsonError)
            assert outcome.error.kind == ErrorKind.MALFORMED_JSON
            assert outcome.error.raw_text == faulty

    @pytest.mark.describe("test of delete replies")
    def test_delete_reply(self) -> None:
        outcome = decode_delete_reply(None, '{"deletedCount": {"$numberInt": "3"}}')
        assert outcome.error is None
        assert outcome.result == DeleteResult(deleted_count=3)

        for faulty in [
            "{}",
            '{"deletedCount": 3}',
            '{"deletedCount": {"$numberInt": "three"}}',
        ]:
            f_outcome = decode_delete_reply(None, faulty)
            assert f_outcome.result == DeleteResult()
            assert isinstance(f_outcome.error, MalformedJsonError)
            assert "delete" in f_outcome.error.message

    @pytest.mark.describe("test of update replies, with and without upsert")
    def test_update_reply(self) -> None:
        no_upsert = decode_update_reply(
            None,
            '{"matchedCount": {"$numberInt": "2"}, '
            '"modifiedCount": {"$numberInt": "1"}}',
        )
        assert no_upsert.error is None
        assert no_upsert.result == UpdateResult(
            matched_count=2, modified_count=1, upserted_id=""
        )

        upsert = decode_update_reply(
            None,
            '{"matchedCount": {"$numberInt": "0"}, '
            '"modifiedCount": {"$numberInt": "0"}, '
            '"upsertedId": {"$oid": "5f1b0c3e2a"}}',
        )
        assert upsert.error is None
        assert upsert.result.upserted_id == "5f1b0c3e2a"
        assert upsert.result.matched_count == 0

    @pytest.mark.describe("test of malformed update replies")
    def test_update_reply_malformed(self) -> None:
        for faulty in [
            '{"matchedCount": {"$numberInt": "1"}}',
            '{"modifiedCount": {"$numberInt": "1"}}',
            '{"matchedCount": {"$numberInt": "1"}, '
            '"modifiedCount": {"$numberInt": "1"}, "upsertedId": "5f1b"}',
            '{"matchedCount": {"$numberInt": "1"}, '
            '"modifiedCount": {"$numberInt": "1"}, "upsertedId": {"$oid": 12}}',
        ]:
            outcome = decode_update_reply(None, faulty)
            assert outcome.result == UpdateResult()
            assert isinstance(outcome.error, MalformedJsonError)

    @pytest.mark.describe("test of insert_one replies")
    def test_insert_one_reply(self) -> None:
        oid_form = decode_insert_one_reply(None, '{"insertedId": {"$oid": "5f1b"}}')
        assert oid_form.result == InsertOneResult(inserted_id="5f1b")
        bare_form = decode_insert_one_reply(None, '{"insertedId": "my-id"}')
        assert bare_form.result == InsertOneResult(inserted_id="my-id")

        for faulty in ['{"insertedIds": "x"}', '{"insertedId": 12}', "[]"]:
            outcome = decode_insert_one_reply(None, faulty)
            assert outcome.result == InsertOneResult()
            assert isinstance(outcome.error, MalformedJsonError)

    @pytest.mark.describe("test of insert_many replies")
    def test_insert_many_reply(self) -> None:
        outcome = decode_insert_many_reply(
            None,
            '{"insertedIds": [{"$oid": "a0"}, {"$oid": "b1"}, {"$oid": "c2"}]}',
        )
        assert outcome.error is None
        assert outcome.result.inserted_ids == {0: "a0", 1: "b1", 2: "c2"}

        empty = decode_insert_many_reply(None, '{"insertedIds": []}')
        assert empty.error is None
        assert empty.result.inserted_ids == {}

        for faulty in [
            '{"insertedIds": {"$oid": "a0"}}',
            '{"insertedIds": [{"$oid": "a0"}, "b1"]}',
            "{}",
        ]:
            f_outcome = decode_insert_many_reply(None, faulty)
            assert f_outcome.result == InsertManyResult()
            assert isinstance(f_outcome.error, MalformedJsonError)

    @pytest.mark.describe("test of the InsertManyResult representation")
    def test_insert_many_result_repr(self) -> None:
        short = InsertManyResult(inserted_ids={0: "a", 1: "b"})
        assert repr(short) == "InsertManyResult(inserted_ids={0: 'a', 1: 'b'})"
        long = InsertManyResult(inserted_ids={i: f"id{i}" for i in range(8)})
        assert "(8 total)" in repr(long)
        assert "id5" not in repr(long)

    @pytest.mark.describe("test of deeply nested replies being malformed")
    def test_deeply_nested_reply(self) -> None:
        deep_reply = "[" * 100000 + "]" * 100000
        for decoder, zero in ALL_DECODERS_AND_ZEROS:
            if decoder in {decode_documents_reply, decode_optional_document_reply}:
                continue
            outcome = decoder(None, deep_reply)  # type: ignore[operator]
            assert outcome.result == zero
            assert isinstance(outcome.error, MalformedJsonError)
