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
"""Tests for StructlogAdapter, the structlog-backed LoggingPort."""

import logging

from queryspec.core.config import Config
from queryspec.logging.port import QUERY_LOGGER, LoggingPort
from queryspec.logging.structlog_adapter import StructlogAdapter


class TestStructlogAdapterConformance:
    def test_implements_logging_port(self):
        assert isinstance(StructlogAdapter(), LoggingPort)


class TestStructlogAdapterConfigure:
    def test_configure_with_defaults(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        assert adapter._root_level == "INFO"
        assert adapter._format == "console"

    def test_configure_reads_root_level_and_format(self):
        adapter = StructlogAdapter()
        config = Config({"queryspec": {"logging": {"format": "JSON", "level": {"root": "debug"}}}})
        adapter.configure(config)
        assert adapter._root_level == "DEBUG"
        assert adapter._format == "json"

    def test_configure_reads_per_module_levels(self):
        adapter = StructlogAdapter()
        config = Config({"queryspec": {"logging": {"level": {"root": "INFO", "queryspec.data": "debug"}}}})
        adapter.configure(config)
        assert adapter._module_levels == {"queryspec.data": "DEBUG"}
        assert logging.getLogger("queryspec.data").level == logging.DEBUG

    def test_nested_module_levels_are_flattened(self):
        adapter = StructlogAdapter()
        config = Config({"queryspec": {"logging": {"level": {"myapp": {"repositories": "WARNING"}}}}})
        adapter.configure(config)
        assert adapter._module_levels == {"myapp.repositories": "WARNING"}


class TestStructlogAdapterGetLogger:
    def test_get_logger_returns_usable_logger(self):
        adapter = StructlogAdapter()
        adapter.configure(Config({}))
        logger = adapter.get_logger("queryspec.data")
        assert callable(getattr(logger, "debug", None))
        logger.debug("query_composed", entity="Product", predicates=2)

    def test_set_level(self):
        adapter = StructlogAdapter()
        adapter.set_level("myapp.services", "ERROR")
        assert logging.getLogger("myapp.services").level == logging.ERROR


class TestQueryLogger:
    def test_query_logger_level_can_be_raised(self):
        adapter = StructlogAdapter()
        adapter.set_level(QUERY_LOGGER, "DEBUG")
        assert QUERY_LOGGER == "queryspec.data"
        assert logging.getLogger(QUERY_LOGGER).level == logging.DEBUG
