"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import pytest

from tests.fakes import Harness, make_task, make_version, transition


@pytest.fixture
def basic_version():
    """A -> B, A -> C, A -> Review, Review -> Done"""
    return make_version([
        transition("t-ab", "st-a", "st-b"),
        transition("t-ac", "st-a", "st-c"),
        transition("t-review", "st-a", "st-review", key="send-to-review"),
        transition("t-done", "st-review", "st-done", key="approve"),
    ])


@pytest.fixture
def harness(basic_version):
    return Harness([basic_version], [make_task()])
