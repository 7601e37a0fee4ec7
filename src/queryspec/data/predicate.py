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
"""Predicate entries and their AND/OR combinators.

A predicate list is an ordered sequence of ``(expression, ComposeOption)``
entries folded strictly left to right.  The first entry seeds the filter
regardless of its combinator; every following entry is merged into what
has been accumulated so far::

    [(p1, AND), (p2, OR), (p3, AND)]   ->   ((p1 OR p2) AND p3)

There is no operator precedence: an ``OR`` entry can bring back rows an
earlier ``AND`` entry excluded.

The expression type is backend-specific and opaque at this level.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

E = TypeVar("E")


class ComposeOption(str, Enum):
    """Boolean operator merging a predicate into the accumulated filter."""

    AND = "and"
    OR = "or"


@dataclass(frozen=True)
class PredicateEntry(Generic[E]):
    """One predicate and the combinator used to merge it."""

    expression: E
    option: ComposeOption = ComposeOption.AND

    @staticmethod
    def and_(expression: E) -> PredicateEntry[E]:
        return PredicateEntry(expression, ComposeOption.AND)

    @staticmethod
    def or_(expression: E) -> PredicateEntry[E]:
        return PredicateEntry(expression, ComposeOption.OR)


def normalize_predicates(predicates: Any) -> tuple[PredicateEntry[Any], ...]:
    """Coerce the accepted predicate shapes into a tuple of entries.

    Accepted:
        - ``None`` or an empty list/tuple: no filtering.
        - a single bare expression: one AND entry.
        - a list/tuple whose items are :class:`PredicateEntry`,
          ``(expression, ComposeOption)`` pairs, or bare expressions (AND).
    """
    if predicates is None:
        return ()
    if isinstance(predicates, PredicateEntry):
        return (predicates,)
    if not isinstance(predicates, (list, tuple)):
        return (PredicateEntry(predicates),)
    if _is_pair(predicates):
        return (_to_entry(predicates),)
    return tuple(_to_entry(item) for item in predicates)


def _is_pair(item: Any) -> bool:
    return isinstance(item, tuple) and len(item) == 2 and isinstance(item[1], ComposeOption)


def _to_entry(item: Any) -> PredicateEntry[Any]:
    if isinstance(item, PredicateEntry):
        return item
    if _is_pair(item):
        return PredicateEntry(item[0], item[1])
    return PredicateEntry(item)
