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
Construction of the argument documents sent to the remote functions.

Every remote function receives the same envelope,
    {"arguments": [{"database": ..., "collection": ..., <operation fields>}]}
with the database and collection names first, then the fields derived from
the filter/update documents, then those derived from the options, in a fixed
order. Optional fields are present only when set. The documents supplied
by the caller as JSON strings are parsed here (and only checked for being
valid JSON): if any of them does not parse, the build fails with a
MalformedJsonError and no argument document is produced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Sequence

from mongorpc.ejson import encode_json, parse_json
from mongorpc.exceptions import MalformedJsonError
from mongorpc.options import FindOneAndModifyOptions, FindOptions
from mongorpc.results import Outcome


@dataclass(frozen=True)
class CollectionIdentity:
    """
    The immutable pair (collection name, database name) addressing
    a remote collection.
    """

    name: str
    database_name: str

    def base_arguments(self) -> dict[str, Any]:
        return {"database": self.database_name, "collection": self.name}


class ArgumentsBuilder:
    """
    A fluent builder for one argument document. Each call adds a field;
    after the first failure to parse an input all further additions are
    ignored and `build()` reports that failure.

    Example:
        >>> ArgumentsBuilder(CollectionIdentity("users", "app")).add_json(
        ...     "query", '{"age": 30}', label="filter"
        ... ).build()
        Outcome(result='{"arguments":[{"database":"app","collection":"users","query":{"age":30}}]}', error=None)
    """

    def __init__(self, identity: CollectionIdentity) -> None:
        self._fields = identity.base_arguments()
        self._error: MalformedJsonError | None = None

    def add_json(self, key: str, json_text: str, *, label: str) -> ArgumentsBuilder:
        if self._error is None:
            parsed = parse_json(json_text)
            if parsed.error is not None:
                self._fail(label, parsed.error, json_text)
            else:
                self._fields[key] = parsed.result
        return self

    def add_optional_json(
        self, key: str, json_text: str | None, *, label: str
    ) -> ArgumentsBuilder:
        if json_text is not None:
            self.add_json(key, json_text, label=label)
        return self

    def add_json_array(
        self, key: str, json_texts: Sequence[str], *, label: str
    ) -> ArgumentsBuilder:
        if self._error is None:
            items: list[Any] = []
            for item_i, json_text in enumerate(json_texts):
                parsed = parse_json(json_text)
                if parsed.error is not None:
                    self._fail(f"{label} (item {item_i})", parsed.error, json_text)
                    return self
                items.append(parsed.result)
            self._fields[key] = items
        return self

    def add_optional_value(self, key: str, value: Any | None) -> ArgumentsBuilder:
        if self._error is None and value is not None:
            self._fields[key] = value
        return self

    def add_flag(self, key: str, flag: bool | None) -> ArgumentsBuilder:
        # a False flag is left out, same as a missing one
        if self._error is None and flag:
            self._fields[key] = True
        return self

    def build(self) -> Outcome[str]:
        if self._error is not None:
            return Outcome(result="", error=self._error)
        try:
            encoded = encode_json({"arguments": [self._fields]})
            # lone surrogates survive parsing but not UTF-8 encoding
            encoded.encode("utf-8")
        except (RecursionError, TypeError, ValueError) as exc:
            return Outcome(
                result="",
                error=MalformedJsonError(f"Cannot encode arguments: {exc}"),
            )
        return Outcome(result=encoded)

    def _fail(self, label: str, parse_error: MalformedJsonError, json_text: Any) -> None:
        self._error = MalformedJsonError(
            f"Invalid {label} JSON: {parse_error.message}",
            raw_text=json_text if isinstance(json_text, str) else None,
        )


def build_find_arguments(
    identity: CollectionIdentity,
    filter_json: str,
    options: FindOptions | None = None,
) -> Outcome[str]:
    """Arguments for `find` and `findOne`."""
    _options = options or FindOptions()
    return (
        ArgumentsBuilder(identity)
        .add_json("query", filter_json, label="filter")
        .add_optional_value("limit", _options.limit)
        .add_optional_json("project", _options.projection, label="projection")
        .add_optional_json("sort", _options.sort, label="sort")
        .build()
    )


def build_aggregate_arguments(
    identity: CollectionIdentity,
    pipeline: Sequence[str],
) -> Outcome[str]:
    return (
        ArgumentsBuilder(identity)
        .add_json_array("pipeline", pipeline, label="pipeline stage")
        .build()
    )


def build_count_arguments(
    identity: CollectionIdentity,
    filter_json: str,
    limit: int | None = None,
) -> Outcome[str]:
    return (
        ArgumentsBuilder(identity)
        .add_json("query", filter_json, label="filter")
        .add_optional_value("limit", limit)
        .build()
    )


def build_insert_one_arguments(
    identity: CollectionIdentity,
    document_json: str,
) -> Outcome[str]:
    return (
        ArgumentsBuilder(identity)
        .add_json("document", document_json, label="document")
        .build()
    )


def build_insert_many_arguments(
    identity: CollectionIdentity,
    documents_json: Sequence[str],
) -> Outcome[str]:
    return (
        ArgumentsBuilder(identity)
        .add_json_array("documents", documents_json, label="document")
        .build()
    )


def build_delete_arguments(
    identity: CollectionIdentity,
    filter_json: str,
) -> Outcome[str]:
    """Arguments for `deleteOne` and `deleteMany`."""
    return (
        ArgumentsBuilder(identity)
        .add_json("query", filter_json, label="filter")
        .build()
    )


def build_update_arguments(
    identity: CollectionIdentity,
    filter_json: str,
    update_json: str,
    upsert: bool | None = None,
) -> Outcome[str]:
    """Arguments for `updateOne` and `updateMany`."""
    return (
        ArgumentsBuilder(identity)
        .add_json("query", filter_json, label="filter")
        .add_json("update", update_json, label="update")
        .add_flag("upsert", upsert)
        .build()
    )


def build_find_one_and_modify_arguments(
    identity: CollectionIdentity,
    filter_json: str,
    update_json: str | None = None,
    options: FindOneAndModifyOptions | None = None,
) -> Outcome[str]:
    """
    Arguments for `findOneAndUpdate`, `findOneAndReplace` (where `update_json`
    is the replacement document) and `findOneAndDelete` (no `update_json`).
    """
    _options = options or FindOneAndModifyOptions()
    return (
        ArgumentsBuilder(identity)
        .add_json("query", filter_json, label="filter")
        .add_optional_json("update", update_json, label="update")
        .add_flag("upsert", _options.upsert)
        .add_flag("returnNewDocument", _options.return_new_document)
        .add_optional_json("project", _options.projection, label="projection")
        .add_optional_json("sort", _options.sort, label="sort")
        .build()
    )
