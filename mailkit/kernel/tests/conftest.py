"""
Mailkit kernel test configuration.

Kernel tests are pure or use MemoryStorage and function-scoped event loops.
PostgresStorage tests that need DATABASE_URL are skipped automatically when not set.
"""

import pytest

from mailkit.kernel.mock_generator import MockGenerator
from mailkit.kernel.model import TemplateModel, new_template
from mailkit.kernel.products import SAMPLE_PRODUCTS, StaticProductResolver


@pytest.fixture
def model() -> TemplateModel:
    return new_template("Summer Sale")


@pytest.fixture
def resolver() -> StaticProductResolver:
    return StaticProductResolver(SAMPLE_PRODUCTS)


@pytest.fixture
def mock_generator() -> MockGenerator:
    return MockGenerator(profile="instant")
