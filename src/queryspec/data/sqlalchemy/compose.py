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
"""Compose filters, ordering, pagination and execution hints onto a ``Select``.

:func:`compose` is the single composition path.  Everything else in this
package (the positional :func:`query` wrapper, the compiled queries and the
fluent builder) forwards to it.

Example::

    stmt = compose(
        User,
        QuerySettings(skip=20, take=10),
        predicates=[
            (User.role == "admin", ComposeOption.AND),
            (User.active.is_(True), ComposeOption.OR),
        ],
        sort=[(User.last_name, True), (User.created_at, False)],
    )
    users = list(fetch(session, stmt))

Predicates are column expressions, callables receiving the root entity
(``lambda root: root.age >= 18``), or specification objects exposing
``to_predicate(root, select)``.  Sort keys are column expressions, attribute
names, or callables receiving the root entity.

Nothing here checks whether an expression can be rendered as SQL.
SQLAlchemy raises its own errors for that (``ArgumentError`` while building,
``CompileError`` when the statement is compiled) and they are not wrapped.
"""

from __future__ import annotations

from typing import Any

import structlog
from sqlalchemy import Select, and_, asc, desc, inspect, or_, select
from sqlalchemy.orm import Mapper, selectinload
from sqlalchemy.orm.util import AliasedInsp
from sqlalchemy.sql.elements import ClauseElement, ColumnElement

from queryspec.data.ordering import SortEntry, normalize_sort
from queryspec.data.pageable import Pageable
from queryspec.data.predicate import ComposeOption, PredicateEntry, normalize_predicates
from queryspec.data.settings import QuerySettings
from queryspec.kernel.exceptions import (
    InvalidPredicateException,
    InvalidSortKeyException,
    InvalidSourceException,
)
from queryspec.logging.port import QUERY_LOGGER

logger = structlog.get_logger(QUERY_LOGGER)

NO_TRACKING_OPTION = "queryspec_no_tracking"
SPLIT_QUERY_OPTION = "queryspec_split_query"

__all__ = [
    "NO_TRACKING_OPTION",
    "SPLIT_QUERY_OPTION",
    "apply_ordering",
    "apply_settings",
    "as_select",
    "build_predicate",
    "compose",
    "is_no_tracking",
    "is_split_query",
    "query",
    "root_entity",
    "selects_entity",
]


def compose(
    source: Any,
    settings: QuerySettings | Pageable | None = None,
    predicates: Any = None,
    sort: Any = None,
) -> Select[Any]:
    """Return a new ``Select`` reflecting *predicates*, *sort* and *settings*.

    Steps, in order: filter by the folded predicates, order by the sort
    entries, offset/limit, mark no-tracking, and switch to split-query
    loading when ``settings.forkable`` is set.  *source* is left untouched
    and nothing is executed.

    Args:
        source: A ``Select`` or a mapped class (``select(cls)`` is used).
        settings: Skip/take/forkable settings, or a :class:`Pageable` whose
            sort orders are appended after *sort*.  ``None`` means unpaged.
        predicates: See :func:`~queryspec.data.predicate.normalize_predicates`.
        sort: See :func:`~queryspec.data.ordering.normalize_sort`.
    """
    sort_entries = normalize_sort(sort)
    if isinstance(settings, Pageable):
        sort_entries += normalize_sort(settings.sort)
        settings = QuerySettings.from_pageable(settings)
    settings = settings or QuerySettings()
    predicate_entries = normalize_predicates(predicates)

    stmt = as_select(source)
    root = root_entity(stmt)

    if predicate_entries:
        stmt = stmt.where(build_predicate(predicate_entries, root))
    if sort_entries:
        stmt = apply_ordering(stmt, sort_entries, root)
    stmt = apply_settings(stmt, settings, root)

    logger.debug(
        "query_composed",
        entity=_entity_name(root),
        predicates=len(predicate_entries),
        sort_keys=len(sort_entries),
        skip=settings.skip,
        take=settings.take,
        forkable=settings.forkable,
    )
    return stmt


def query(
    source: Any,
    *predicates: Any,
    skip: int = 0,
    take: int | None = None,
    forkable: bool = False,
    sort: Any = None,
) -> Select[Any]:
    """Positional shorthand for :func:`compose`; bare predicates are ANDed."""
    return compose(source, QuerySettings(skip, take, forkable), list(predicates), sort)


def as_select(source: Any) -> Select[Any]:
    """Return *source* as a ``Select``, selecting the entity for mapped classes."""
    if isinstance(source, Select):
        return source
    if isinstance(source, type) and inspect(source, raiseerr=False) is not None:
        return select(source)
    raise InvalidSourceException(
        f"Cannot compose a query over {source!r}: expected a Select or a mapped class",
        code="QUERY_SOURCE",
        context={"source": repr(source)},
    )


def root_entity(stmt: Select[Any]) -> Any:
    """The first ORM entity the statement selects from, or ``None``."""
    for description in stmt.column_descriptions:
        entity = description.get("entity")
        if entity is not None:
            return entity
    return None


def selects_entity(stmt: Select[Any]) -> bool:
    """Whether the first selected column is a whole ORM entity (not a column of one)."""
    descriptions = stmt.column_descriptions
    if not descriptions:
        return False
    return isinstance(inspect(descriptions[0]["expr"], raiseerr=False), (Mapper, AliasedInsp))


def build_predicate(entries: tuple[PredicateEntry[Any], ...], root: Any) -> ColumnElement[bool]:
    """Fold *entries* left to right into a single boolean clause."""
    clause: Any = None
    for entry in entries:
        expression = _resolve_predicate(entry.expression, root)
        if clause is None:
            clause = expression
        elif entry.option is ComposeOption.AND:
            clause = and_(clause, expression)
        else:
            clause = or_(clause, expression)
    return clause


def apply_ordering(stmt: Select[Any], entries: tuple[SortEntry[Any], ...], root: Any) -> Select[Any]:
    """Order by the first entry, replacing any existing ORDER BY, then by the rest."""
    for index, entry in enumerate(entries):
        column = _resolve_sort_key(entry.key, root)
        if index == 0:
            stmt = stmt.order_by(None)
        stmt = stmt.order_by(asc(column) if entry.ascending else desc(column))
    return stmt


def apply_settings(stmt: Select[Any], settings: QuerySettings, root: Any) -> Select[Any]:
    """Apply offset/limit, the no-tracking marker, and split-query loading."""
    if settings.skip > 0:
        stmt = stmt.offset(settings.skip)
    if settings.take is not None:
        stmt = stmt.limit(settings.take)
    stmt = stmt.execution_options(**{NO_TRACKING_OPTION: True})
    if settings.forkable:
        stmt = _split_query(stmt, root)
    return stmt


def is_no_tracking(stmt: Select[Any]) -> bool:
    return bool(stmt.get_execution_options().get(NO_TRACKING_OPTION, False))


def is_split_query(stmt: Select[Any]) -> bool:
    return bool(stmt.get_execution_options().get(SPLIT_QUERY_OPTION, False))


def _split_query(stmt: Select[Any], root: Any) -> Select[Any]:
    # Relationships mapped with lazy="joined" are loaded with a second SELECT ... IN instead.
    # Loader options only apply when whole entities are selected.
    stmt = stmt.execution_options(**{SPLIT_QUERY_OPTION: True})
    if root is None or not selects_entity(stmt):
        return stmt
    mapper = inspect(root).mapper
    loaders = [
        selectinload(getattr(root, relationship.key))
        for relationship in mapper.relationships
        if relationship.lazy in ("joined", False)
    ]
    return stmt.options(*loaders) if loaders else stmt


def _is_sql_expression(value: Any) -> bool:
    return isinstance(value, ClauseElement) or hasattr(value, "__clause_element__")


def _resolve_predicate(expression: Any, root: Any) -> Any:
    if _is_sql_expression(expression):
        return expression
    if hasattr(expression, "to_predicate"):
        if root is None:
            raise InvalidPredicateException(
                "Specification predicates need a statement that selects an ORM entity",
                code="QUERY_PREDICATE",
            )
        clause = expression.to_predicate(root, select(root)).whereclause
        if clause is None:
            raise InvalidPredicateException(
                f"Specification {expression!r} did not add a WHERE clause",
                code="QUERY_PREDICATE",
            )
        return clause
    if callable(expression):
        if root is None:
            raise InvalidPredicateException(
                "Callable predicates need a statement that selects an ORM entity",
                code="QUERY_PREDICATE",
            )
        return expression(root)
    return expression


def _resolve_sort_key(key: Any, root: Any) -> Any:
    if _is_sql_expression(key):
        return key
    if isinstance(key, str):
        attribute = getattr(root, key, None) if root is not None else None
        if attribute is None:
            raise InvalidSortKeyException(
                f"Cannot sort by {key!r}: no such attribute on {_entity_name(root)}",
                code="QUERY_SORT",
                context={"key": key, "entity": _entity_name(root)},
            )
        return attribute
    if callable(key):
        if root is None:
            raise InvalidSortKeyException(
                "Callable sort keys need a statement that selects an ORM entity",
                code="QUERY_SORT",
            )
        return key(root)
    return key


def _entity_name(root: Any) -> str | None:
    if root is None:
        return None
    return getattr(root, "__name__", None) or inspect(root).mapper.class_.__name__
