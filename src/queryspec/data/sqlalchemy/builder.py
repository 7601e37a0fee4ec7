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
"""Fluent, immutable front end over :func:`compose` and :func:`build`.

Example::

    page = (
        QuerySpecBuilder(Product)
        .where(Product.category == "book")
        .or_where(Product.price < 5)
        .order_by(Product.category)
        .order_by_desc("price")
        .page(Pageable.of(2, 25))
        .compose()
    )

Every method returns a new builder, so a partially configured builder can
be shared and specialised freely.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from sqlalchemy import Select

from queryspec.config.properties.query import QueryProperties
from queryspec.core.config import Config
from queryspec.data.ordering import SortEntry, normalize_sort
from queryspec.data.pageable import Pageable
from queryspec.data.predicate import ComposeOption, PredicateEntry, normalize_predicates
from queryspec.data.settings import QuerySettings
from queryspec.data.sqlalchemy.compiled import AsyncCompiledQuery, CompiledQuery, build, build_async
from queryspec.data.sqlalchemy.compose import compose
from queryspec.kernel.exceptions import InvalidQuerySettingsException

T = TypeVar("T")


@dataclass(frozen=True, eq=False)
class QuerySpecBuilder(Generic[T]):
    """Accumulates predicates, sort entries and settings for one query source.

    Attributes:
        source: A ``Select`` or a mapped class.
        settings: Current skip/take/forkable settings.
        predicates: Predicate entries in fold order.
        sort_entries: Sort entries, primary first.
        properties: Limits from configuration; ``None`` means unrestricted.
    """

    source: Any
    settings: QuerySettings = field(default_factory=QuerySettings)
    predicates: tuple[PredicateEntry[Any], ...] = ()
    sort_entries: tuple[SortEntry[Any], ...] = ()
    properties: QueryProperties | None = None

    @classmethod
    def from_config(cls, source: Any, config: Config) -> QuerySpecBuilder[Any]:
        """Create a builder honouring ``queryspec.query.default-take`` and ``max-take``."""
        properties = config.bind(QueryProperties)
        return cls(source, QuerySettings(take=properties.default_take), properties=properties)

    # ------------------------------------------------------------------
    # Filtering
    # ------------------------------------------------------------------

    def where(self, *expressions: Any) -> QuerySpecBuilder[T]:
        """Append predicates; bare expressions are ANDed, explicit entries keep their option."""
        return dataclasses.replace(self, predicates=self.predicates + normalize_predicates(list(expressions)))

    def or_where(self, *expressions: Any) -> QuerySpecBuilder[T]:
        """Append predicates merged with OR into everything accumulated so far."""
        entries = tuple(PredicateEntry(e, ComposeOption.OR) for e in expressions)
        return dataclasses.replace(self, predicates=self.predicates + entries)

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def order_by(self, *keys: Any) -> QuerySpecBuilder[T]:
        """Append ascending sort keys (``Order``/``SortEntry`` keep their own direction)."""
        return dataclasses.replace(self, sort_entries=self.sort_entries + normalize_sort(list(keys)))

    def order_by_desc(self, *keys: Any) -> QuerySpecBuilder[T]:
        entries = tuple(SortEntry(k, False) for k in keys)
        return dataclasses.replace(self, sort_entries=self.sort_entries + entries)

    # ------------------------------------------------------------------
    # Settings
    # ------------------------------------------------------------------

    def skip(self, count: int) -> QuerySpecBuilder[T]:
        return dataclasses.replace(self, settings=dataclasses.replace(self.settings, skip=count))

    def take(self, count: int | None) -> QuerySpecBuilder[T]:
        return dataclasses.replace(self, settings=dataclasses.replace(self.settings, take=count))

    def forkable(self, enabled: bool = True) -> QuerySpecBuilder[T]:
        return dataclasses.replace(self, settings=dataclasses.replace(self.settings, forkable=enabled))

    def page(self, pageable: Pageable) -> QuerySpecBuilder[T]:
        """Use *pageable*'s window and append its sort orders."""
        return dataclasses.replace(
            self,
            settings=QuerySettings.from_pageable(pageable, forkable=self.settings.forkable),
            sort_entries=self.sort_entries + normalize_sort(pageable.sort),
        )

    # ------------------------------------------------------------------
    # Terminal operations
    # ------------------------------------------------------------------

    def compose(self) -> Select[Any]:
        self._check_limits()
        return compose(self.source, self.settings, self.predicates, self.sort_entries)

    def build(self) -> CompiledQuery[T]:
        self._check_limits()
        return build(self.source, predicates=self.predicates, sort=self.sort_entries, settings=self.settings)

    def build_async(self) -> AsyncCompiledQuery[T]:
        self._check_limits()
        return build_async(self.source, predicates=self.predicates, sort=self.sort_entries, settings=self.settings)

    def _check_limits(self) -> None:
        if self.properties is None or self.properties.max_take is None:
            return
        take = self.settings.take
        if take is None or take > self.properties.max_take:
            raise InvalidQuerySettingsException(
                f"take must be <= {self.properties.max_take}, got {take}",
                code="QUERY_SETTINGS",
                context={"take": take, "max_take": self.properties.max_take},
            )
