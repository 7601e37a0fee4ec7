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
"""Unified exception hierarchy for queryspec.

Every error raised by this library inherits from ``QuerySpecException``.
Errors raised by SQLAlchemy itself (``ArgumentError``, ``CompileError``,
``UnboundExecutionError`` ...) are never wrapped and reach the caller as-is.

Categories:
- BusinessException: invalid query descriptions (settings, predicates, sort keys)
- InfrastructureException: missing or unusable data context
"""

from __future__ import annotations

# =============================================================================
# Base Exception
# =============================================================================


class QuerySpecException(Exception):
    """Base exception for all queryspec errors.

    Args:
        message: Human-readable error description.
        code: Machine-readable error code (e.g. "QUERY_SETTINGS").
        context: Arbitrary key-value pairs describing the offending input.
    """

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.context: dict = context if context is not None else {}


# =============================================================================
# Business Exceptions
# =============================================================================


class BusinessException(QuerySpecException):
    """The query description itself is wrong."""


class ValidationException(BusinessException):
    """Input validation failures."""


class InvalidQuerySettingsException(ValidationException):
    """Negative skip, non-positive take, or a take above the configured maximum."""


class InvalidPredicateException(ValidationException):
    """A predicate entry is neither an SQL expression nor something that produces one."""


class InvalidSortKeyException(ValidationException):
    """A sort key cannot be resolved against the root entity."""


class InvalidSourceException(ValidationException):
    """The query source is neither a ``Select`` nor a mapped class."""


# =============================================================================
# Infrastructure Exceptions
# =============================================================================


class InfrastructureException(QuerySpecException):
    """The data context needed to run a query is unavailable."""


class MissingSessionException(InfrastructureException):
    """A compiled query was invoked without a session."""
