"""
Common test fixtures
"""

# Standard
import os

# Third Party
import pytest

# First Party
import alog

# Local
from proto_to_jsonschema.registry import PackageRegistry

# Global logging config
alog.configure(
    default_level=os.environ.get("LOG_LEVEL", "info"),
    filters=os.environ.get("LOG_FILTERS", ""),
    formatter="json" if os.environ.get("LOG_JSON", "").lower() == "true" else "pretty",
    thread_id=os.environ.get("LOG_THREAD_ID", "").lower() == "true",
)


@pytest.fixture
def registry():
    """Fixture to isolate the package registry used in each test"""
    yield PackageRegistry()
