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
"""Reusable query functions built from a composed ``Select``.

:func:`build` composes once and returns a :class:`CompiledQuery`, a callable
``session -> Iterator[T]`` meant to be created at import or startup time and
invoked with a fresh session per unit of work.  :func:`build_async` returns
the ``AsyncSession`` counterpart yielding through the async cursor.

Usage::

    active_admins = build(User, limit=50, predicates=[User.role == "admin", User.active])

    with Session(engine) as session:
        for user in active_admins(session):
            ...

    recent = build_async(Order, sort=[(Order.created_at, False)], limit=10)

    async with async_session() as session:
        async for order in recent(session):
            ...

Compiled queries never use split-query loading: a forkable request is
dropped so the statement keeps one shape and one cached plan per dialect.
SQLAlchemy's compiled cache keeps the executed plan keyed by that shape.

Results are read-only: entities loaded by the query, eagerly loaded related
instances included, are expunged from the session as they are yielded,
unless the session was already tracking them before the query ran.
"""

from __future__ import annotations

import threading
from collections.abc import AsyncIterator, Iterator
from typing import Any, Generic, TypeVar

import structlog
from sqlalchemy import Select, inspect
from sqlalchemy.engine import Dialect
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session
from sqlalchemy.sql.compiler import Compiled

from queryspec.data.settings import QuerySettings
from queryspec.data.sqlalchemy.compose import compose, is_no_tracking, is_split_query, root_entity, selects_entity
from queryspec.kernel.exceptions import MissingSessionException
from queryspec.logging.port import QUERY_LOGGER

T = TypeVar("T")

logger = structlog.get_logger(QUERY_LOGGER)


class _CompiledQueryBase(Generic[T]):
    """Holds the composed statement and its per-dialect compiled plans."""

    def __init__(self, statement: Select[Any]) -> None:
        self._statement = statement
        self._plans: dict[tuple[str, str], Compiled] = {}
        self._lock = threading.Lock()

    @property
    def statement(self) -> Select[Any]:
        return self._statement

    @property
    def is_split_query(self) -> bool:
        return is_split_query(self._statement)

    @property
    def is_no_tracking(self) -> bool:
        return is_no_tracking(self._statement)

    def compile_for(self, dialect: Dialect) -> Compiled:
        """Compile the statement for *dialect*, once per dialect and driver.

        The cached ``Compiled`` is a validation record: invocations check
        that the statement renders before any row is fetched, while the
        executed plan comes from the engine's own compiled cache.

        Raises:
            sqlalchemy.exc.CompileError: If the dialect cannot render the statement.
        """
        key = (dialect.name, dialect.driver)
        plan = self._plans.get(key)
        if plan is None:
            with self._lock:
                plan = self._plans.get(key)
                if plan is None:
                    plan = self._statement.compile(dialect=dialect)
                    self._plans[key] = plan
                    logger.debug("query_plan_compiled", dialect=dialect.name, driver=dialect.driver)
        return plan

    def _bind_for(self, session: Session | AsyncSession) -> Any:
        # Resolve through the statement's mapper so per-entity ``binds`` work as in ``execute``.
        root = root_entity(self._statement)
        mapper = inspect(root).mapper if root is not None else None
        return session.get_bind(mapper=mapper, clause=self._statement)

    def _require_session(self, session: Any) -> None:
        if session is None:
            raise MissingSessionException(
                "A compiled query must be invoked with a session",
                code="QUERY_SESSION",
            )


class CompiledQuery(_CompiledQueryBase[T]):
    """Callable ``Session -> Iterator[T]`` over a fixed composed statement."""

    def __call__(self, session: Session) -> Iterator[T]:
        self._require_session(session)
        self.compile_for(self._bind_for(session).dialect)
        return fetch(session, self._statement)


class AsyncCompiledQuery(_CompiledQueryBase[T]):
    """Callable ``AsyncSession -> AsyncIterator[T]`` over a fixed composed statement."""

    def __call__(self, session: AsyncSession) -> AsyncIterator[T]:
        self._require_session(session)
        self.compile_for(self._bind_for(session).dialect)
        return fetch_async(session, self._statement)


def build(
    source: Any,
    skip: int = 0,
    limit: int | None = None,
    predicates: Any = None,
    sort: Any = None,
    *,
    settings: QuerySettings | None = None,
) -> CompiledQuery[Any]:
    """Compose a query and wrap it as a reusable synchronous query function.

    *settings*, when given, replaces *skip* and *limit*.  Its ``forkable``
    flag is ignored.
    """
    return CompiledQuery(_compose_for_compilation(source, skip, limit, predicates, sort, settings))


def build_async(
    source: Any,
    skip: int = 0,
    limit: int | None = None,
    predicates: Any = None,
    sort: Any = None,
    *,
    settings: QuerySettings | None = None,
) -> AsyncCompiledQuery[Any]:
    """Async counterpart of :func:`build`."""
    return AsyncCompiledQuery(_compose_for_compilation(source, skip, limit, predicates, sort, settings))


def _compose_for_compilation(
    source: Any,
    skip: int,
    limit: int | None,
    predicates: Any,
    sort: Any,
    settings: QuerySettings | None,
) -> Select[Any]:
    requested = settings if settings is not None else QuerySettings(skip=skip, take=limit)
    if requested.forkable:
        logger.debug("split_query_ignored", skip=requested.skip, take=requested.take)
    statement = compose(source, requested.compiled(), predicates, sort)
    logger.debug("query_built", skip=requested.skip, take=requested.take)
    return statement


def fetch(session: Session, statement: Select[Any]) -> Iterator[Any]:
    """Lazily execute *statement* and yield the first column of each row.

    Whole-entity results are de-duplicated (joined eager collections) and,
    for no-tracking statements, detached from *session* as they are yielded
    together with every related instance the query loaded.
    """
    detach = is_no_tracking(statement)
    tracked = _tracking_snapshot(session) if detach else None
    result = session.execute(statement)
    try:
        rows = result.scalars()
        if selects_entity(statement):
            rows = rows.unique()
        for item in rows:
            if tracked is not None:
                _detach_loaded(session, tracked)
            yield item
    finally:
        result.close()


async def fetch_async(session: AsyncSession, statement: Select[Any]) -> AsyncIterator[Any]:
    """Stream *statement* through the async cursor; see :func:`fetch`."""
    sync_session = session.sync_session
    detach = is_no_tracking(statement)
    tracked = _tracking_snapshot(sync_session) if detach else None
    result = await session.stream(statement)
    try:
        rows = result.scalars()
        if selects_entity(statement):
            rows = rows.unique()
        async for item in rows:
            if tracked is not None:
                _detach_loaded(sync_session, tracked)
            yield item
    finally:
        await result.close()


def _tracking_snapshot(session: Session) -> tuple[set[Any], set[int]]:
    # Identity keys already tracked, plus pending instances an autoflush may key during execution.
    return set(session.identity_map.keys()), {id(obj) for obj in session.new}


def _detach_loaded(session: Session, tracked: tuple[set[Any], set[int]]) -> None:
    keys, pending = tracked
    for key, obj in list(session.identity_map.items()):
        if key in keys or id(obj) in pending:
            continue
        if obj in session:
            session.expunge(obj)
