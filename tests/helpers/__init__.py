"""Test helper utilities for notifications email processor tests."""

from pathlib import Path

from .fake_directory import FakeDirectory, entity_ref_of, load_fixture_entities

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

__all__ = ["FIXTURES_DIR", "FakeDirectory", "entity_ref_of", "load_fixture_entities"]
