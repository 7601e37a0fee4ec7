# Copyright 2026 Firefly Software Solutions Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
"""SQLAlchemy adapter: composes query specifications onto ``Select`` statements."""

from queryspec.data.sqlalchemy.builder import QuerySpecBuilder
from queryspec.data.sqlalchemy.compiled import (
    AsyncCompiledQuery,
    CompiledQuery,
    build,
    build_async,
    fetch,
    fetch_async,
)
from queryspec.data.sqlalchemy.compose import (
    NO_TRACKING_OPTION,
    SPLIT_QUERY_OPTION,
    compose,
    is_no_tracking,
    is_split_query,
    query,
)

__all__ = [
    "AsyncCompiledQuery",
    "CompiledQuery",
    "NO_TRACKING_OPTION",
    "QuerySpecBuilder",
    "SPLIT_QUERY_OPTION",
    "build",
    "build_async",
    "compose",
    "fetch",
    "fetch_async",
    "is_no_tracking",
    "is_split_query",
    "query",
]
