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
"""Hook for routing the library's query logs into an application's logging setup.

Every module under :mod:`queryspec.data` logs through the logger named
:data:`QUERY_LOGGER`, at debug level, with these events:

``query_composed``
    a statement left :func:`~queryspec.data.sqlalchemy.compose.compose`
    (entity, predicate and sort-key counts, skip, take, forkable).
``query_built``
    a compiled query function was created.
``query_plan_compiled``
    a compiled query was first rendered for a dialect.
``split_query_ignored``
    a forkable request reached the compiled path and was dropped.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from queryspec.core.config import Config

QUERY_LOGGER = "queryspec.data"


@runtime_checkable
class LoggingPort(Protocol):
    """What an adapter provides so those events reach the application's handlers."""

    def configure(self, config: Config) -> None:
        """Apply ``queryspec.logging.*`` settings (format, root and per-logger levels)."""
        ...

    def get_logger(self, name: str) -> Any: ...

    def set_level(self, name: str, level: str) -> None:
        """Change one logger's level, e.g. ``set_level(QUERY_LOGGER, "DEBUG")``."""
        ...
