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
"""queryspec data: backend-neutral query description types.

Settings, predicate entries, sort entries and page requests live here;
the SQLAlchemy adapter (``queryspec.data.sqlalchemy``) turns them into
statements.
"""

from queryspec.data.ordering import SortEntry, normalize_sort
from queryspec.data.pageable import Order, Pageable, Sort
from queryspec.data.predicate import ComposeOption, PredicateEntry, normalize_predicates
from queryspec.data.settings import QuerySettings

__all__ = [
    "ComposeOption",
    "Order",
    "Pageable",
    "PredicateEntry",
    "QuerySettings",
    "Sort",
    "SortEntry",
    "normalize_predicates",
    "normalize_sort",
]
