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
"""Page requests and property-name sort orders.

These are the transport-friendly forms of a query window: an API layer can
build them from request parameters without touching SQLAlchemy.  A
:class:`Sort` is accepted anywhere sort entries are, and a :class:`Pageable`
can stand in for :class:`~queryspec.data.settings.QuerySettings`, its sort
being appended after any explicit sort keys::

    page = Pageable.of(3, 25, Sort.by("last_name").and_then(Sort.by("id")))
    stmt = compose(User, page, predicates=[User.active])
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

Direction = Literal["asc", "desc"]


@dataclass(frozen=True)
class Order:
    """One sort key, named by the mapped attribute it resolves to."""

    property: str
    direction: Direction = "asc"

    @staticmethod
    def asc(property: str) -> Order:
        return Order(property, "asc")

    @staticmethod
    def desc(property: str) -> Order:
        return Order(property, "desc")

    @property
    def is_ascending(self) -> bool:
        return self.direction == "asc"

    def reversed(self) -> Order:
        return Order(self.property, "desc" if self.is_ascending else "asc")


@dataclass(frozen=True)
class Sort:
    """Sort keys in priority order; ``orders[0]`` replaces any existing ORDER BY."""

    orders: tuple[Order, ...] = ()

    @staticmethod
    def by(*properties: str) -> Sort:
        return Sort(tuple(Order.asc(name) for name in properties))

    @staticmethod
    def unsorted() -> Sort:
        return Sort()

    @property
    def is_sorted(self) -> bool:
        return len(self.orders) > 0

    def and_then(self, other: Sort) -> Sort:
        """Tie-break this sort with *other*'s keys."""
        return Sort(self.orders + other.orders)

    def descending(self) -> Sort:
        return Sort(tuple(Order.desc(order.property) for order in self.orders))


@dataclass(frozen=True)
class Pageable:
    """A 1-based page of *size* rows; ``size=None`` asks for every row.

    Invalid page numbers and sizes raise ``ValueError`` on construction, as
    they usually come straight from user input.
    """

    page: int = 1
    size: int | None = 20
    sort: Sort = field(default_factory=Sort)

    def __post_init__(self) -> None:
        if self.size is None:
            return
        if self.page < 1:
            raise ValueError(f"page must be >= 1, got {self.page}")
        if self.size < 1:
            raise ValueError(f"size must be >= 1, got {self.size}")

    @staticmethod
    def of(page: int, size: int, sort: Sort | None = None) -> Pageable:
        return Pageable(page, size, sort or Sort())

    @staticmethod
    def unpaged(sort: Sort | None = None) -> Pageable:
        return Pageable(1, None, sort or Sort())

    @property
    def is_paged(self) -> bool:
        return self.size is not None

    @property
    def offset(self) -> int:
        """Rows to skip before this page starts; always 0 when unpaged."""
        if self.size is None:
            return 0
        return (self.page - 1) * self.size

    def next(self) -> Pageable:
        return Pageable(self.page + 1, self.size, self.sort)

    def previous(self) -> Pageable:
        """The page before this one, staying on page 1."""
        return Pageable(max(1, self.page - 1), self.size, self.sort)
