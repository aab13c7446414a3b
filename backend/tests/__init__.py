"""
Test Suite

This module contains all tests for the Spaceflow workflow engine backend.

Structure:
    tests/
    ├── __init__.py             # This file
    ├── conftest.py             # Pytest fixtures
    ├── fakes.py                # In-memory repositories and builders
    ├── unit/                   # Unit tests
    │   ├── test_domain/        # Model decoding and invariants
    │   ├── test_engine/        # Guards, executor, post-functions, scorer
    │   ├── test_repositories/  # MongoDB repositories over mocked collections
    │   └── test_services/      # Service layer tests
    └── integration/            # Integration tests
        └── test_api/           # API endpoint tests

To run tests:
    pytest backend/tests/
    pytest backend/tests/unit/
    pytest backend/tests/integration/
"""
