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

import httpx
import pytest
from httpx import HTTPStatusError, Response

from mongorpc.exceptions import (
    AppError,
    ErrorKind,
    MalformedJsonError,
    MongoRPCException,
    ServiceError,
)
from mongorpc.results import Outcome

ERROR_MESSAGE = "no authentication methods were specified"
ERROR_CODE = "InvalidSession"
FULL_RESPONSE_OF_401 = (
    '{"error": "no authentication methods were specified", '
    '"error_code": "InvalidSession", "link": "https://logs.example.com/1"}'
)


@pytest.mark.describe("test ServiceError from httpx errors")
def test_serviceerror_from_httpx() -> None:
    """Test that regardless of how incorrect the input httpx error, nothing breaks."""
    se0 = HTTPStatusError(message="httpx_message", request="req", response=None)  # type: ignore[arg-type]
    se1 = HTTPStatusError(message="httpx_message", request="req", response="blah")  # type: ignore[arg-type]
    se2 = HTTPStatusError(
        message="httpx_message",
        request="req",  # type: ignore[arg-type]
        response=Response(status_code=500, text="blah"),
    )
    se3 = HTTPStatusError(
        message="httpx_message",
        request="req",  # type: ignore[arg-type]
        response=Response(status_code=500, text='["error"]'),
    )
    se4 = HTTPStatusError(
        message="httpx_message",
        request="req",  # type: ignore[arg-type]
        response=Response(status_code=500, text='{"error": null}'),
    )
    se5 = HTTPStatusError(
        message="httpx_message",
        request="req",  # type: ignore[arg-type]
        response=Response(status_code=401, text=FULL_RESPONSE_OF_401),
    )

    de0 = ServiceError.from_httpx_error(se0)
    de1 = ServiceError.from_httpx_error(se1)
    de2 = ServiceError.from_httpx_error(se2)
    de3 = ServiceError.from_httpx_error(se3)
    de4 = ServiceError.from_httpx_error(se4)
    de5 = ServiceError.from_httpx_error(se5)

    for de in [de0, de1, de2, de3, de4, de5]:
        repr(de)
        str(de)
        assert de.kind == ErrorKind.SERVICE_ERROR

    assert de0.status_code is None
    assert de1.status_code is None
    assert de2.status_code == 500
    assert de2.code is None
    assert de3.message == "httpx_message"
    assert de4.message == "httpx_message"

    assert de5.status_code == 401
    assert de5.code == ERROR_CODE
    assert de5.message.startswith(ERROR_MESSAGE)
    assert str(de5) == f"{de5.message} ({ERROR_CODE})"


@pytest.mark.describe("test ServiceError from httpx transport errors")
def test_serviceerror_from_transport_error() -> None:
    de0 = ServiceError.from_httpx_error(httpx.ConnectError("connection refused"))
    assert de0.message == "connection refused"
    assert de0.status_code is None

    de1 = ServiceError.from_httpx_error(httpx.ReadError(""))
    assert de1.message == "ReadError"


@pytest.mark.describe("test error kinds and hierarchy")
def test_error_kinds() -> None:
    m_err = MalformedJsonError("Expecting value", raw_text="{")
    s_err = ServiceError("boom", code="E1")
    for err in [m_err, s_err]:
        assert isinstance(err, AppError)
        assert isinstance(err, MongoRPCException)
        assert isinstance(err, Exception)

    assert m_err.kind == ErrorKind.MALFORMED_JSON
    assert m_err.is_malformed_json
    assert not m_err.is_service_error
    assert str(m_err) == "Expecting value"
    assert m_err.code is None

    assert s_err.kind == ErrorKind.SERVICE_ERROR
    assert s_err.is_service_error
    assert str(s_err) == "boom (E1)"

    g_err = AppError("MALFORMED_JSON", "text")
    assert g_err.kind is ErrorKind.MALFORMED_JSON
    with pytest.raises(ValueError):
        AppError("unknown_kind", "text")
    assert str(ErrorKind.SERVICE_ERROR) == "service_error"


@pytest.mark.describe("test outcomes and their unwrapping")
def test_outcome_unwrap() -> None:
    assert Outcome(result=3).ok
    assert Outcome(result=3).unwrap() == 3
    assert Outcome(result=None).unwrap() is None

    failed: Outcome[int] = Outcome(result=0, error=ServiceError("down"))
    assert not failed.ok
    with pytest.raises(ServiceError) as exc_info:
        failed.unwrap()
    assert exc_info.value is failed.error
