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
"""Tests for compose(): filter folding, chained ordering, paging and hints."""

from __future__ import annotations

import pytest
from sqlalchemy import ForeignKey, String, column, create_engine, event, select, table
from sqlalchemy.exc import ArgumentError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, relationship

from queryspec.data.pageable import Pageable, Sort
from queryspec.data.predicate import ComposeOption, PredicateEntry
from queryspec.data.settings import QuerySettings
from queryspec.data.sqlalchemy.compose import compose, is_no_tracking, is_split_query, query
from queryspec.data.sqlalchemy.compiled import fetch
from queryspec.kernel.exceptions import (
    InvalidPredicateException,
    InvalidSortKeyException,
    InvalidSourceException,
)

# ---------------------------------------------------------------------------
# Test entities
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Product(Base):
    __tablename__ = "compose_products"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    category: Mapped[str] = mapped_column(String(50))
    price: Mapped[int]
    active: Mapped[bool] = mapped_column(default=True)


class Catalog(Base):
    __tablename__ = "compose_catalogs"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    entries: Mapped[list[CatalogEntry]] = relationship(lazy="joined", order_by="CatalogEntry.id")


class CatalogEntry(Base):
    __tablename__ = "compose_catalog_entries"

    id: Mapped[int] = mapped_column(primary_key=True)
    catalog_id: Mapped[int] = mapped_column(ForeignKey("compose_catalogs.id"))
    label: Mapped[str] = mapped_column(String(50))


# Predicates used across the fold tests.
IS_BOOK = Product.category == "book"
IS_CHEAP = Product.price < 5
IS_ACTIVE = Product.active.is_(True)

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def engine():
    engine = create_engine("sqlite://")
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    #  name  category  price  active   book  cheap  active
    #  A     book      10     True     T     F      T
    #  B     book      3      False    T     T      F
    #  C     toy       2      True     F     T      T
    #  D     toy       20     True     F     F      T
    #  E     food      4      False    F     T      F
    with Session(engine) as seed:
        seed.add_all(
            [
                Product(name="A", category="book", price=10, active=True),
                Product(name="B", category="book", price=3, active=False),
                Product(name="C", category="toy", price=2, active=True),
                Product(name="D", category="toy", price=20, active=True),
                Product(name="E", category="food", price=4, active=False),
            ]
        )
        seed.commit()
    with Session(engine) as session:
        yield session


@pytest.fixture
def numbered_session(engine):
    with Session(engine) as seed:
        seed.add_all(Product(name=f"p{i:02d}", category="n", price=i) for i in range(10))
        seed.commit()
    with Session(engine) as session:
        yield session


@pytest.fixture
def catalog_session(engine):
    with Session(engine) as seed:
        seed.add_all(
            [
                Catalog(name="spring", entries=[CatalogEntry(label="s1"), CatalogEntry(label="s2")]),
                Catalog(name="autumn", entries=[CatalogEntry(label="a1")]),
            ]
        )
        seed.commit()
    with Session(engine) as session:
        yield session


def _names(session: Session, stmt) -> list[str]:
    return [p.name for p in session.scalars(stmt)]


def _sorted_names(session: Session, stmt) -> list[str]:
    return sorted(_names(session, stmt))


# ---------------------------------------------------------------------------
# Filtering
# ---------------------------------------------------------------------------


class TestComposeAndPredicates:
    def test_and_list_equals_chained_filters(self, session: Session):
        composed = compose(Product, predicates=[IS_ACTIVE, IS_CHEAP])
        chained = select(Product).where(IS_ACTIVE).where(IS_CHEAP)
        assert _sorted_names(session, composed) == _sorted_names(session, chained) == ["C"]

    def test_and_list_is_intersection(self, session: Session):
        book = set(_names(session, compose(Product, predicates=[IS_BOOK])))
        cheap = set(_names(session, compose(Product, predicates=[IS_CHEAP])))
        both = set(_names(session, compose(Product, predicates=[IS_BOOK, IS_CHEAP])))
        assert both == book & cheap == {"B"}

    def test_single_entry_equals_plain_filter(self, session: Session):
        composed = compose(Product, predicates=[(IS_BOOK, ComposeOption.AND)])
        assert _sorted_names(session, composed) == _sorted_names(session, select(Product).where(IS_BOOK))

    def test_single_bare_expression(self, session: Session):
        assert _sorted_names(session, compose(Product, predicates=IS_BOOK)) == ["A", "B"]


class TestComposeLeftFold:
    def test_or_reintroduces_rows_excluded_by_earlier_and(self, session: Session):
        stmt = compose(
            Product,
            predicates=[
                (IS_BOOK, ComposeOption.AND),
                (IS_CHEAP, ComposeOption.OR),
                (IS_ACTIVE, ComposeOption.AND),
            ],
        )
        # ((book OR cheap) AND active): C is not a book but comes back through OR.
        assert _sorted_names(session, stmt) == ["A", "C"]

    def test_fold_matches_python_evaluation(self, session: Session):
        products = session.scalars(select(Product)).all()
        expected = sorted(
            p.name for p in products if ((p.category == "book") or p.price < 5) and p.active
        )
        stmt = compose(
            Product,
            predicates=[
                PredicateEntry.and_(IS_BOOK),
                PredicateEntry.or_(IS_CHEAP),
                PredicateEntry.and_(IS_ACTIVE),
            ],
        )
        assert _sorted_names(session, stmt) == expected

    def test_fold_is_not_precedence_based(self, session: Session):
        # book AND (cheap OR active) would give A and B.
        stmt = compose(Product, predicates=[IS_BOOK, (IS_CHEAP, ComposeOption.OR), IS_ACTIVE])
        assert _sorted_names(session, stmt) == ["A", "C"]

    def test_first_entry_seeds_regardless_of_option(self, session: Session):
        stmt = compose(Product, predicates=[(IS_CHEAP, ComposeOption.OR)])
        assert _sorted_names(session, stmt) == ["B", "C", "E"]


class TestComposePredicateForms:
    def test_callable_receives_root_entity(self, session: Session):
        stmt = compose(Product, predicates=[lambda root: root.price >= 10])
        assert _sorted_names(session, stmt) == ["A", "D"]

    def test_specification_objects(self, session: Session):
        class CategorySpec:
            def __init__(self, category: str) -> None:
                self.category = category

            def to_predicate(self, root, q):
                return q.where(root.category == self.category)

        stmt = compose(
            Product,
            predicates=[(CategorySpec("book"), ComposeOption.AND), (CategorySpec("toy"), ComposeOption.OR)],
        )
        assert _sorted_names(session, stmt) == ["A", "B", "C", "D"]

    def test_callable_without_entity_is_rejected(self):
        raw = table("compose_products", column("price"))
        with pytest.raises(InvalidPredicateException):
            compose(select(raw.c.price), predicates=[lambda root: root.price > 1])

    def test_untranslatable_expression_propagates_engine_error(self):
        with pytest.raises(ArgumentError):
            compose(Product, predicates=["name = 'A'"])

    def test_existing_where_clause_is_kept(self, session: Session):
        source = select(Product).where(Product.category == "toy")
        stmt = compose(source, predicates=[IS_CHEAP])
        assert _names(session, stmt) == ["C"]


# ---------------------------------------------------------------------------
# Ordering
# ---------------------------------------------------------------------------


class TestComposeOrdering:
    def test_primary_then_secondary_desc(self, session: Session):
        stmt = compose(Product, sort=[(Product.category, True), (Product.price, False)])
        assert _names(session, stmt) == ["A", "B", "E", "D", "C"]

    def test_ties_broken_by_second_key(self, session: Session):
        asc_price = compose(Product, predicates=[IS_BOOK], sort=[(Product.category, True), (Product.price, True)])
        desc_price = compose(Product, predicates=[IS_BOOK], sort=[(Product.category, True), (Product.price, False)])
        assert _names(session, asc_price) == ["B", "A"]
        assert _names(session, desc_price) == ["A", "B"]

    def test_attribute_names_and_sort_objects(self, session: Session):
        stmt = compose(Product, sort=Sort.by("category").and_then(Sort.by("price").descending()))
        assert _names(session, stmt) == ["A", "B", "E", "D", "C"]

    def test_callable_sort_key(self, session: Session):
        stmt = compose(Product, sort=[(lambda root: root.price, False)])
        assert _names(session, stmt) == ["D", "A", "E", "B", "C"]

    def test_primary_sort_replaces_existing_order(self, session: Session):
        source = select(Product).order_by(Product.name.desc())
        assert _names(session, compose(source, sort="name")) == ["A", "B", "C", "D", "E"]

    def test_unknown_attribute_is_rejected(self):
        with pytest.raises(InvalidSortKeyException) as exc_info:
            compose(Product, sort="colour")
        assert exc_info.value.context == {"key": "colour", "entity": "Product"}


# ---------------------------------------------------------------------------
# Paging
# ---------------------------------------------------------------------------


class TestComposePaging:
    def test_skip_zero_is_a_noop(self, session: Session):
        plain = compose(Product, sort="name")
        skipped = compose(Product, QuerySettings(skip=0), sort="name")
        assert _names(session, skipped) == _names(session, plain)

    def test_skip_drops_leading_rows(self, session: Session):
        stmt = compose(Product, QuerySettings(skip=3), sort="name")
        assert _names(session, stmt) == ["D", "E"]

    def test_take_none_is_unbounded(self, numbered_session: Session):
        stmt = compose(Product, QuerySettings(take=None), sort="price")
        assert len(_names(numbered_session, stmt)) == 10

    def test_skip_then_take_window(self, numbered_session: Session):
        stmt = compose(Product, QuerySettings(skip=3, take=2), sort="price")
        assert _names(numbered_session, stmt) == ["p03", "p04"]

    def test_pageable_as_settings(self, numbered_session: Session):
        stmt = compose(Product, Pageable.of(2, 4, Sort.by("price").descending()))
        assert _names(numbered_session, stmt) == ["p05", "p04", "p03", "p02"]

    def test_paging_applies_after_filtering(self, numbered_session: Session):
        stmt = compose(Product, QuerySettings(skip=1, take=2), [Product.price >= 5], "price")
        assert _names(numbered_session, stmt) == ["p06", "p07"]


# ---------------------------------------------------------------------------
# Hints and identity
# ---------------------------------------------------------------------------


class TestComposeHints:
    def test_no_tracking_is_always_set(self):
        assert is_no_tracking(compose(Product))
        assert is_no_tracking(compose(Product, QuerySettings(skip=1, take=1, forkable=True)))

    def test_split_query_only_when_forkable(self):
        assert not is_split_query(compose(Product))
        assert is_split_query(compose(Product, QuerySettings(forkable=True)))

    def test_source_is_not_mutated(self):
        source = select(Product)
        before = str(source)
        compose(source, QuerySettings(skip=1, take=1, forkable=True), [IS_BOOK], "name")
        assert str(source) == before
        assert source.whereclause is None
        assert not is_no_tracking(source)

    def test_identity_round_trip(self, session: Session):
        assert _names(session, compose(Product)) == _names(session, select(Product))

    def test_rejects_unmapped_source(self):
        with pytest.raises(InvalidSourceException):
            compose(dict)


class TestComposeSplitQuery:
    @staticmethod
    def _count_statements(engine, run) -> int:
        statements: list[str] = []

        def _record(conn, cursor, statement, parameters, context, executemany):
            statements.append(statement)

        event.listen(engine, "before_cursor_execute", _record)
        try:
            run()
        finally:
            event.remove(engine, "before_cursor_execute", _record)
        return len(statements)

    def test_joined_relationships_load_in_one_round_trip(self, engine, catalog_session: Session):
        stmt = compose(Catalog, sort="name")
        loaded: list[Catalog] = []
        count = self._count_statements(engine, lambda: loaded.extend(fetch(catalog_session, stmt)))
        assert count == 1
        assert [len(c.entries) for c in loaded] == [1, 2]

    def test_forkable_splits_joined_relationships(self, engine, catalog_session: Session):
        stmt = compose(Catalog, QuerySettings(forkable=True), sort="name")
        loaded: list[Catalog] = []
        count = self._count_statements(engine, lambda: loaded.extend(fetch(catalog_session, stmt)))
        assert count == 2
        assert [[e.label for e in c.entries] for c in loaded] == [["a1"], ["s1", "s2"]]

    def test_forkable_column_select_runs(self, catalog_session: Session):
        stmt = compose(select(Catalog.name), QuerySettings(forkable=True), sort="name")
        assert is_split_query(stmt)
        assert list(catalog_session.scalars(stmt)) == ["autumn", "spring"]
        assert list(fetch(catalog_session, stmt)) == ["autumn", "spring"]


class TestQueryShorthand:
    def test_positional_predicates_are_anded(self, session: Session):
        stmt = query(Product, IS_ACTIVE, IS_CHEAP)
        assert _names(session, stmt) == ["C"]

    def test_keyword_settings(self, session: Session):
        stmt = query(Product, skip=1, take=2, sort=[(Product.price, False)])
        assert _names(session, stmt) == ["A", "E"]
        assert not is_split_query(stmt)
