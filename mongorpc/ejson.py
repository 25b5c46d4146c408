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
Helpers for the MongoDB-flavoured extended JSON spoken by the remote service,
where scalars such as 32/64-bit integers and object identifiers travel as
single-key wrapper documents, e.g. `{"$numberInt": "5"}` or `{"$oid": "..."}`.
"""

from __future__ import annotations

import json
from typing import Any

from mongorpc.exceptions import MalformedJsonError
from mongorpc.results import Outcome
from mongorpc.settings.defaults import MAX_UNSIGNED_64

NUMBER_INT_KEY = "$numberInt"
NUMBER_LONG_KEY = "$numberLong"
OBJECT_ID_KEY = "$oid"


class ExtendedJSONError(ValueError):
    """A value does not have the extended-JSON shape it was expected to have."""

    pass


def parse_json(text: str) -> Outcome[Any]:
    """
    Parse a JSON string.

    Args:
        text: the string to parse.

    Returns:
        an Outcome with the parsed value, or with a MalformedJsonError
        carrying the parser diagnostic (and a None result).
    """
    try:
        return Outcome(result=json.loads(text))
    except (RecursionError, TypeError, ValueError) as exc:
        return Outcome(
            result=None,
            error=MalformedJsonError(str(exc), raw_text=_as_text(text)),
        )


def encode_json(value: Any) -> str:
    """Compact, deterministic JSON encoding for outgoing documents."""
    return json.dumps(
        value,
        allow_nan=False,
        separators=(",", ":"),
        ensure_ascii=False,
    )


def get_field(document: Any, key: str) -> Any:
    if not isinstance(document, dict):
        raise ExtendedJSONError(
            f"expected a document holding '{key}', found {_describe(document)}"
        )
    if key not in document:
        raise ExtendedJSONError(f"missing field '{key}'")
    return document[key]


def unwrap_number_long(value: Any) -> int:
    """`{"$numberLong": "42"}` -> 42"""
    return _parse_unsigned(get_field(value, NUMBER_LONG_KEY), NUMBER_LONG_KEY)


def unwrap_number_int(value: Any) -> int:
    """`{"$numberInt": "3"}` -> 3"""
    return _parse_unsigned(get_field(value, NUMBER_INT_KEY), NUMBER_INT_KEY)


def unwrap_object_id(value: Any) -> str:
    """`{"$oid": "5f1b..."}` -> "5f1b..." """
    oid = get_field(value, OBJECT_ID_KEY)
    if not isinstance(oid, str):
        raise ExtendedJSONError(
            f"'{OBJECT_ID_KEY}' must be a string, found {_describe(oid)}"
        )
    return oid


def _parse_unsigned(raw_value: Any, key: str) -> int:
    # counts travel as decimal strings; no sign, no blanks, no fractions.
    if not isinstance(raw_value, str):
        raise ExtendedJSONError(f"'{key}' must be a string, found {_describe(raw_value)}")
    if not raw_value.isascii() or not raw_value.isdigit():
        raise ExtendedJSONError(
            f"'{key}' is not a non-negative integer: '{raw_value}'"
        )
    parsed = int(raw_value)
    if parsed > MAX_UNSIGNED_64:
        raise ExtendedJSONError(f"'{key}' out of range: '{raw_value}'")
    return parsed


def _describe(value: Any) -> str:
    if value is None:
        return "null"
    return type(value).__name__


def _as_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None
