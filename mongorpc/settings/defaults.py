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

# Names of the remote functions, one per collection operation
RPC_FUNCTION_FIND = "find"
RPC_FUNCTION_FIND_ONE = "findOne"
RPC_FUNCTION_AGGREGATE = "aggregate"
RPC_FUNCTION_COUNT = "count"
RPC_FUNCTION_INSERT_ONE = "insertOne"
RPC_FUNCTION_INSERT_MANY = "insertMany"
RPC_FUNCTION_DELETE_ONE = "deleteOne"
RPC_FUNCTION_DELETE_MANY = "deleteMany"
RPC_FUNCTION_UPDATE_ONE = "updateOne"
RPC_FUNCTION_UPDATE_MANY = "updateMany"
RPC_FUNCTION_FIND_ONE_AND_UPDATE = "findOneAndUpdate"
RPC_FUNCTION_FIND_ONE_AND_REPLACE = "findOneAndReplace"
RPC_FUNCTION_FIND_ONE_AND_DELETE = "findOneAndDelete"

# Defaults/settings for the HTTP RPC channel
DEFAULT_SERVICE_NAME = "mongodb-atlas"
DEFAULT_REQUEST_TIMEOUT_MS = 10000
DEFAULT_CHANNEL_MAX_WORKERS = 8
DEFAULT_AUTH_HEADER = "Authorization"
FUNCTION_CALL_PATH_TEMPLATE = "/api/client/v2.0/app/{app_id}/functions/call"

# Settings for redacting secrets in string representations and logging
SECRETS_REDACT_ENDING = "..."
SECRETS_REDACT_CHAR = "*"
SECRETS_REDACT_ENDING_LENGTH = 3
FIXED_SECRET_PLACEHOLDER = "***"
DEFAULT_REDACTED_HEADER_NAMES = {DEFAULT_AUTH_HEADER}

# Upper bound for counts decoded from extended-JSON wrappers
MAX_UNSIGNED_64 = 2**64 - 1
