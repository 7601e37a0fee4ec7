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
"""queryspec: declarative filter, sort and paging specifications for SQLAlchemy.

Describe *what* a query should filter, sort and paginate on, and let
queryspec turn it into a ``Select`` or a reusable compiled query function::

    from queryspec import ComposeOption, QuerySettings, build, compose

    stmt = compose(User, QuerySettings(take=20), [User.active], [(User.name, True)])
    find_admins = build(User, predicates=[User.role == "admin"])
"""

from queryspec.core.config import Config, config_properties
from queryspec.config.properties import QueryProperties
from queryspec.data import (
    ComposeOption,
    Order,
    Pageable,
    PredicateEntry,
    QuerySettings,
    Sort,
    SortEntry,
)
from queryspec.data.sqlalchemy import (
    AsyncCompiledQuery,
    CompiledQuery,
    QuerySpecBuilder,
    build,
    build_async,
    compose,
    fetch,
    fetch_async,
    is_no_tracking,
    is_split_query,
    query,
)
from queryspec.kernel import (
    InvalidPredicateException,
    InvalidQuerySettingsException,
    InvalidSortKeyException,
    InvalidSourceException,
    MissingSessionException,
    QuerySpecException,
)

__version__ = "0.1.0"

__all__ = [
    # Description types
    "ComposeOption",
    "Order",
    "Pageable",
    "PredicateEntry",
    "QuerySettings",
    "Sort",
    "SortEntry",
    # SQLAlchemy adapter
    "AsyncCompiledQuery",
    "CompiledQuery",
    "QuerySpecBuilder",
    "build",
    "build_async",
    "compose",
    "fetch",
    "fetch_async",
    "is_no_tracking",
    "is_split_query",
    "query",
    # Configuration
    "Config",
    "QueryProperties",
    "config_properties",
    # Errors
    "InvalidPredicateException",
    "InvalidQuerySettingsException",
    "InvalidSortKeyException",
    "InvalidSourceException",
    "MissingSessionException",
    "QuerySpecException",
]
