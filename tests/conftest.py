"""Shared test fixtures."""

import os
import sys

import pytest

# Ensure src is in path
sys.path.insert(0, "src")

from graphmapper import Mapper, MapperConfig, clear_cache


@pytest.fixture(autouse=True)
def fresh_descriptor_cache():
    """Each test reflects types from scratch."""
    clear_cache()
    yield
    clear_cache()


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep GRAPHMAPPER_* variables of the developer shell out of tests."""
    for name in list(os.environ):
        if name.startswith("GRAPHMAPPER_"):
            monkeypatch.delenv(name)


@pytest.fixture
def config() -> MapperConfig:
    """Default config that ignores any .env file."""
    return MapperConfig(_env_file=None)


@pytest.fixture
def mapper(config) -> Mapper:
    """Mapper with default behavior."""
    return Mapper(config)


@pytest.fixture
def make_mapper():
    """Factory for mappers with config overrides."""

    def factory(**overrides) -> Mapper:
        return Mapper(MapperConfig(_env_file=None, **overrides))

    return factory

