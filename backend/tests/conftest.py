"""Root conftest — shared test configuration and settings fixtures.

Invariants:
    - Every test that touches disk gets its own tmp_path config documents
    - The bundled settings description is the schema under test
"""

import os

# Ensure tests never call a real group directory
os.environ.setdefault("DOMAIN_SETTINGS_DIRECTORY_ACCESS_TOKEN", "")
os.environ.setdefault("DOMAIN_SETTINGS_LOG_FORMAT", "text")

import pytest

from domain_settings.infrastructure.config_store import ConfigStore
from domain_settings.infrastructure.schema_loader import bundled_description_path, load_schema
from domain_settings.services.permissions_registry import PermissionsRegistry


@pytest.fixture(scope="session")
def schema():
    return load_schema(bundled_description_path())


@pytest.fixture
def user_config_path(tmp_path):
    return tmp_path / "config.json"


@pytest.fixture
def store(user_config_path):
    config_store = ConfigStore(user_config_path)
    config_store.load()
    return config_store


@pytest.fixture
def registry(store):
    return PermissionsRegistry(store)
