"""Unit tests for util/logging.py"""

import logging

from mdstream.util.logging import ROOT_LOGGER, get_logger, set_level


def test_get_logger_attaches_single_root_handler():
    """Module loggers propagate to one stderr handler on the package root."""
    logger = get_logger("mdstream.test")
    get_logger("mdstream.other")
    assert logger.name == "mdstream.test"
    assert len(logging.getLogger(ROOT_LOGGER).handlers) == 1


def test_set_level_accepts_names():
    set_level("DEBUG")
    assert logging.getLogger(ROOT_LOGGER).level == logging.DEBUG
    set_level("WARNING")
    assert logging.getLogger(ROOT_LOGGER).level == logging.WARNING


def test_extension_errors_are_logged(caplog):
    from mdstream.core.extensions import BlockExtension, ExtensionRegistry
    from mdstream.core.parser import BlockParser

    def _boom(token, base, context):
        raise RuntimeError("kaboom")

    registry = ExtensionRegistry([BlockExtension(name="boom", handler=_boom)])
    with caplog.at_level(logging.ERROR, logger=ROOT_LOGGER):
        BlockParser(registry=registry).parse("Hello")
    assert "kaboom" in caplog.text
