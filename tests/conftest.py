"""Shared pytest fixtures."""

from unittest.mock import Mock

import pytest

from notifications_email.config.models import EmailProcessorConfig
from notifications_email.logging.context import clear_log_context
from notifications_email.transports import SendResult, Transport

from tests.helpers import FIXTURES_DIR, FakeDirectory, load_fixture_entities


@pytest.fixture(autouse=True)
def clean_log_context():
    """Reset logging context between tests."""
    clear_log_context()
    yield
    clear_log_context()


@pytest.fixture
def directory_entities():
    """Raw entities from the directory fixture."""
    return load_fixture_entities(FIXTURES_DIR / "directory.yaml")


@pytest.fixture
def fake_directory(directory_entities):
    """FakeDirectory serving the directory fixture."""
    return FakeDirectory(directory_entities)


@pytest.fixture
def mock_transport():
    """Transport mock that accepts every message."""
    transport = Mock(spec=Transport)
    transport.name = "mock"
    transport.send.side_effect = lambda message: SendResult(
        message_id=f"<{message.to}>", accepted=[message.to]
    )
    return transport


@pytest.fixture
def smtp_processor_config():
    """Minimal SMTP processor configuration."""
    return EmailProcessorConfig.model_validate(
        {
            "transport": {
                "transport": "smtp",
                "hostname": "localhost",
                "port": 465,
                "secure": True,
                "requireTLS": False,
            },
            "sender": "b@b.io",
        }
    )


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Set environment variables read by load_environment_config."""
    monkeypatch.setenv("CATALOG_BASE_URL", "https://backstage.b.io/api/catalog/")
    monkeypatch.setenv("CATALOG_TOKEN", "catalog-token")
    monkeypatch.delenv("SMTP_USERNAME", raising=False)
    monkeypatch.delenv("SMTP_PASSWORD", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every environment variable the loader reads."""
    for name in (
        "CATALOG_BASE_URL",
        "CATALOG_TOKEN",
        "SMTP_USERNAME",
        "SMTP_PASSWORD",
        "LOG_LEVEL",
        "ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)
