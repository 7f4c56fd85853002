"""
Shared pytest configuration
All async tests and fixtures run on one session-scoped event loop, so the
in-process API server and the tests that call it share a loop.
"""

import pytest
from pytest_asyncio import is_async_test


def pytest_collection_modifyitems(config, items):
    """Pin async tests to the session loop and add markers by location"""
    session_loop = pytest.mark.asyncio(loop_scope="session")

    for item in items:
        if is_async_test(item):
            item.add_marker(session_loop, append=False)

        if "posts_crud" in item.path.parts:
            item.add_marker(pytest.mark.crud)
            if any(name in item.name.lower() for name in ("health", "full_crud_cycle")):
                item.add_marker(pytest.mark.smoke)
        else:
            item.add_marker(pytest.mark.unit)


def pytest_addoption(parser):
    """Add custom command line options"""
    parser.addoption(
        "--smoke-only",
        action="store_true",
        default=False,
        help="Run only smoke tests"
    )


def pytest_runtest_setup(item):
    # Skip non-smoke tests in smoke-only mode
    if item.config.getoption("--smoke-only") and not item.get_closest_marker("smoke"):
        pytest.skip("Skipping non-smoke test")
