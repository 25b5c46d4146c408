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

from enum import Enum, EnumMeta
from typing import TypeVar

T = TypeVar("T", bound="StrEnum")


class StrEnumMeta(EnumMeta):
    def _lookup_member_name(cls, value: str) -> str | None:
        """Find the member name matching a string by name or value, ignoring case."""
        u_value = value.upper()
        for member_name, member in cls._member_map_.items():
            if u_value in {member_name.upper(), str(member.value).upper()}:
                return member_name
        return None

    def __contains__(cls, value: object) -> bool:
        if isinstance(value, str):
            return cls._lookup_member_name(value) is not None
        return isinstance(value, cls)


class StrEnum(str, Enum, metaclass=StrEnumMeta):
    """
    A string-valued Enum accepting loose spellings of its members,
    so that e.g. "malformed_json", "MALFORMED_JSON" and "malformed-json"
    (if that is the value) all resolve to the same member.
    """

    def __str__(self) -> str:
        return str(self.value)

    @classmethod
    def coerce(cls: type[T], value: str | T) -> T:
        """
        Return the enum member corresponding to the input, which can be
        a member already or a string matching a name or a value (case-insensitive).

        Raises:
            ValueError: if no member matches.
        """

        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            member_name = cls._lookup_member_name(value)
            if member_name is not None:
                return cls[member_name]
        raise ValueError(
            f"Invalid value '{value}' for {cls.__name__}. "
            f"Allowed values are: {[e.value for e in cls]}"
        )
