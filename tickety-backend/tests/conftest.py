"""
Pytest configuration for the seller backend tests.

This file adds the parent directory to the Python path so that tests
can import from the domain, repositories, services, adapters and api modules,
and provides the shared in-memory fakes.
"""

import sys
from pathlib import Path

import pytest

# Add the tickety-backend directory to the Python path
# so tests can import domain, repositories, etc.
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from fakes import FakeStripeAdapter, FakeSupabase  # noqa: E402


@pytest.fixture
def supabase() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def stripe_adapter() -> FakeStripeAdapter:
    return FakeStripeAdapter()
