"""Shared fixtures for fightclub tests."""

import random

import pytest
from typer.testing import CliRunner

from fightclub.arena.registry import ParticipantRegistry
from fightclub.core.fighters import TeamConfig
from fightclub.data.teams import get_team
from fightclub.utils.config import Config


# Settings fixtures
@pytest.fixture
def fast_settings():
    """Match rules with a short decision deadline so timeouts resolve quickly."""
    return Config(decision_timeout=0.05)


# Team fixtures
@pytest.fixture
def fire_team() -> TeamConfig:
    return get_team("fire")


@pytest.fixture
def water_team() -> TeamConfig:
    return get_team("water")


# Service fixtures
@pytest.fixture
def registry(fast_settings):
    """An empty participant registry."""
    return ParticipantRegistry(fast_settings)


@pytest.fixture
def seeded_rng():
    return random.Random(1234)


# CLI fixtures
@pytest.fixture
def cli_runner():
    """Create a CLI runner for testing commands."""
    return CliRunner()
