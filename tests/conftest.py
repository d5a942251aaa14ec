"""Pytest fixtures for cloudlayer tests."""
import pytest
from Crypto.Random import get_random_bytes

from cloudlayer.core import ConfigStore, Router
from cloudlayer.core.crypto import obscure


@pytest.fixture
def config():
    """Empty remote configuration."""
    return ConfigStore()


@pytest.fixture
def router(config):
    """Router with its own memory store."""
    return Router(config)


@pytest.fixture
def data_key():
    """Generates a 32-byte content key."""
    return get_random_bytes(32)


@pytest.fixture
def random_data():
    """Factory for random buffers."""
    return get_random_bytes


@pytest.fixture
def obscured_password():
    """Obscured form of the test password."""
    return obscure("correct horse battery staple")


@pytest.fixture
def obscured_salt():
    """Obscured form of the test salt password."""
    return obscure("pepper")
