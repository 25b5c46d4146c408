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

from dataclasses import dataclass, field
from typing import Generic, TypeVar

from mongorpc.exceptions import AppError

T = TypeVar("T")


@dataclass
class InsertOneResult:
    """
    Class that represents the result of insert_one operations on a collection.

    Attributes:
        inserted_id: the ID of the inserted document, in the string form
            of an object identifier. Empty for the zero-value result.
    """

    inserted_id: str = ""


@dataclass
class InsertManyResult:
    """
    Class that represents the result of insert_many operations on a collection.

    Attributes:
        inserted_ids: a mapping from the (0-based) position of each document
            in the insert_many call to its ID.
    """

    inserted_ids: dict[int, str] = field(default_factory=dict)

    def __repr__(self) -> str:
        _ins_ids_str: str
        if len(self.inserted_ids) > 5:
            _first_items = list(self.inserted_ids.items())[:5]
            _ins_ids_str = (
                f"{{{', '.join(f'{k}: {v}' for k, v in _first_items)} "
                f"... ({len(self.inserted_ids)} total)}}"
            )
        else:
            _ins_ids_str = str(self.inserted_ids)
        return f"{self.__class__.__name__}(inserted_ids={_ins_ids_str})"


@dataclass
class DeleteResult:
    """
    Class that represents the result of delete operations on a collection.

    Attributes:
        deleted_count: number of deleted documents.
    """

    deleted_count: int = 0


@dataclass
class UpdateResult:
    """
    Class that represents the result of update_one/update_many operations.

    Attributes:
        matched_count: number of documents matching the filter.
        modified_count: number of documents actually modified.
        upserted_id: the ID of the inserted document, if the operation ended
            up in an upsert. Empty otherwise.
    """

    matched_count: int = 0
    modified_count: int = 0
    upserted_id: str = ""


@dataclass
class Outcome(Generic[T]):
    """
    The outcome of one collection operation: a result and an error, of which
    exactly one is meaningful.

    If `error` is None, `result` holds the operation result (which, for
    the find_one family, can be None to signal that no document matched).
    Otherwise `result` is the zero value for the operation (empty string,
    zero, empty mapping or default result object).

    Attributes:
        result: the result of the operation, or its zero value.
        error: an AppError if the operation failed, else None.
    """

    result: T
    error: AppError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """
        Return the result, or raise the error if the operation failed.

        Raises:
            AppError: the error carried by this outcome, if any.
        """
        if self.error is not None:
            raise self.error
        return self.result
