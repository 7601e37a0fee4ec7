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
"""Sort entries and chained ordering.

The first entry of a sort list is the primary ordering; every later entry
only breaks ties left by the entries before it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from queryspec.data.pageable import Order, Sort

K = TypeVar("K")


@dataclass(frozen=True)
class SortEntry(Generic[K]):
    """A sort key and its direction.

    *key* is whatever the backend can order by: a column expression, an
    attribute name on the root entity, or a callable taking the root entity.
    """

    key: K
    ascending: bool = True

    @staticmethod
    def asc(key: K) -> SortEntry[K]:
        return SortEntry(key, True)

    @staticmethod
    def desc(key: K) -> SortEntry[K]:
        return SortEntry(key, False)


def normalize_sort(sort: Any) -> tuple[SortEntry[Any], ...]:
    """Coerce the accepted sort shapes into a tuple of entries.

    Accepted:
        - ``None``, an empty list/tuple, or an unsorted :class:`Sort`.
        - a :class:`Sort`, an :class:`Order`, or a :class:`SortEntry`.
        - a list/tuple whose items are :class:`SortEntry`, :class:`Order`,
          ``(key, ascending)`` pairs, or bare keys (ascending).
    """
    if sort is None:
        return ()
    if isinstance(sort, Sort):
        return tuple(_from_order(o) for o in sort.orders)
    if isinstance(sort, (Order, SortEntry)):
        return (_to_entry(sort),)
    if not isinstance(sort, (list, tuple)):
        return (SortEntry(sort),)
    if _is_pair(sort):
        return (_to_entry(sort),)
    return tuple(_to_entry(item) for item in sort)


def _from_order(order: Order) -> SortEntry[str]:
    return SortEntry(order.property, order.is_ascending)


def _is_pair(item: Any) -> bool:
    return isinstance(item, tuple) and len(item) == 2 and isinstance(item[1], bool)


def _to_entry(item: Any) -> SortEntry[Any]:
    if isinstance(item, SortEntry):
        return item
    if isinstance(item, Order):
        return _from_order(item)
    if _is_pair(item):
        return SortEntry(item[0], item[1])
    return SortEntry(item)
