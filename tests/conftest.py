"""
Test configuration and shared fixtures
"""

import logging

import pytest

from persona_panel.config import ConfigManager
from persona_panel.core.models import Agent

# Configure pytest for async tests
pytest_plugins = ('pytest_asyncio',)


@pytest.fixture(autouse=True)
def setup_test_logging():
    """Setup logging for tests"""
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


@pytest.fixture
def config():
    """Configuration built from defaults, ignoring any local .env file"""
    return ConfigManager(env_file_path="/nonexistent/.env")


@pytest.fixture
def team():
    """Frontend, backend and product agents used across the tests"""
    return [
        Agent(id="alex", name="Alex Morgan", role="Frontend Engineer", color="#3b82f6"),
        Agent(id="brenda", name="Brenda Chen", role="Backend Engineer", color="#10b981"),
        Agent(id="carlos", name="Carlos Rodriguez", role="Product Manager", color="#f59e0b"),
    ]


@pytest.fixture
def team_with_devops(team):
    return team + [Agent(id="diana", name="Diana Kim", role="DevOps Engineer", color="#ef4444")]
