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
"""Pagination and execution-mode settings for a composed query."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass

from queryspec.data.pageable import Pageable
from queryspec.kernel.exceptions import InvalidQuerySettingsException


@dataclass(frozen=True)
class QuerySettings:
    """Skip/take window plus the split-query switch.

    Attributes:
        skip: Number of leading rows to discard. Applied only when > 0.
        take: Maximum number of rows to return; ``None`` means unbounded.
        forkable: Allow the engine to load joined eager relationships in
            separate round trips (``selectinload``) instead of one joined query.

    Raises:
        InvalidQuerySettingsException: On a negative *skip* or a *take* below 1.
    """

    skip: int = 0
    take: int | None = None
    forkable: bool = False

    def __post_init__(self) -> None:
        if self.skip < 0:
            raise InvalidQuerySettingsException(
                f"skip must be >= 0, got {self.skip}",
                code="QUERY_SETTINGS",
                context={"skip": self.skip},
            )
        if self.take is not None and self.take < 1:
            raise InvalidQuerySettingsException(
                f"take must be >= 1 or None, got {self.take}",
                code="QUERY_SETTINGS",
                context={"take": self.take},
            )

    @staticmethod
    def of(skip: int = 0, take: int | None = None, forkable: bool = False) -> QuerySettings:
        return QuerySettings(skip=skip, take=take, forkable=forkable)

    @staticmethod
    def unpaged() -> QuerySettings:
        return QuerySettings()

    @staticmethod
    def from_pageable(pageable: Pageable, forkable: bool = False) -> QuerySettings:
        """Translate a page request into a skip/take window.

        An unpaged request yields unbounded settings. The pageable's sort is
        not part of the settings; pass it as the sort list.
        """
        return QuerySettings(skip=pageable.offset, take=pageable.size, forkable=forkable)

    @property
    def is_paged(self) -> bool:
        return self.skip > 0 or self.take is not None

    def compiled(self) -> QuerySettings:
        """Return these settings with split-query mode switched off."""
        if not self.forkable:
            return self
        return dataclasses.replace(self, forkable=False)
