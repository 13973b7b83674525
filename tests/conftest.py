"""Root pytest configuration for all tests."""

from __future__ import annotations

import pytest

# Configure pytest-asyncio to use auto mode
# This is redundant with pyproject.toml but ensures it's set
pytest_plugins = ("pytest_asyncio",)


@pytest.fixture(autouse=True)
def reset_quietwatch_logging():
    """Undo setup_logging() so level and handlers never leak between tests."""
    import quietwatch.logging as logging_module

    logger = logging_module.logger
    level = logger.level
    handlers = list(logger.handlers)

    yield

    for handler in list(logger.handlers):
        if handler not in handlers:
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(level)
    logging_module._initialized = False
