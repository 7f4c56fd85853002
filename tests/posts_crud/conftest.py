"""
Fixtures for the blog posts CRUD contract suite

Session: the API server and the store connection are opened once.
Function: every test is seeded before it runs and the database is dropped
after it, whether it passed or not.
"""

from typing import AsyncGenerator

import pytest
import pytest_asyncio

from blog_api.database.connection import close_database, init_database
from blog_api.server import close_server, run_server
from tests.posts_crud.config import TestConfig, get_config
from tests.posts_crud.core.database_validator import DatabaseValidator
from tests.posts_crud.core.orchestrator import APITestOrchestrator
from tests.posts_crud.core.rest_client import RestClient


@pytest.fixture(scope="session")
def test_config() -> TestConfig:
    return get_config()


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def api_base_url(test_config: TestConfig) -> AsyncGenerator[str, None]:
    """Start the API once per session, or attach to an external one"""
    if test_config.api_base_url:
        print(f"\n🔗 Using external Blog Posts API at {test_config.api_base_url}")
        await init_database(test_config.test_database_url)
        yield test_config.api_base_url
        await close_database()
        return

    print("\n🚀 Starting Blog Posts API test server...")
    base_url = await run_server(
        test_config.test_database_url,
        host=test_config.api_host,
        port=test_config.api_port
    )
    print(f"✅ Listening on {base_url}")
    yield base_url
    await close_server()
    print("\n🧹 Test server stopped")


@pytest_asyncio.fixture(scope="session", loop_scope="session")
async def rest_client(api_base_url: str) -> AsyncGenerator[RestClient, None]:
    """Shared REST client for the session"""
    client = RestClient(api_base_url)
    assert await client.health_check(), "❌ Blog Posts API not accessible"
    yield client
    await client.close()


@pytest.fixture(scope="session")
def database_validator() -> DatabaseValidator:
    return DatabaseValidator()


@pytest_asyncio.fixture(loop_scope="session")
async def orchestrator(rest_client: RestClient, database_validator: DatabaseValidator) -> AsyncGenerator[APITestOrchestrator, None]:
    """Seeded orchestrator; the database is dropped after the test"""
    orch = APITestOrchestrator(rest_client, database_validator)
    try:
        await orch.setup()
        yield orch
    finally:
        await orch.teardown()
