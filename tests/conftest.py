"""Test configuration."""

import os
from pathlib import Path
from typing import List

import pytest
from dotenv import load_dotenv
from pytest import Config

# Settings are read at import time; flag test mode before anything loads them
os.environ["TESTING"] = "true"
os.environ.setdefault("VISIBILITY_BACKEND", "memory")

project_dir = Path(__file__).parent.parent
env_test_file = project_dir / ".env.test"
if env_test_file.exists():
    load_dotenv(env_test_file, override=True)

from content_visibility.core.logging import configure_logging  # noqa: E402

fixture = pytest.fixture


@fixture(scope="session")
def project_root() -> Path:
    """Get the project root directory."""
    return project_dir


pytest_plugins: List[str] = [
    "tests.fixtures.visibility",
    "tests.fixtures.api",
]


def pytest_configure(config: Config) -> None:
    """Configure pytest.

    Args:
        config: Pytest configuration object
    """
    configure_logging(testing=True)
    config.addinivalue_line("markers", "integration: mark test as an integration test")
