"""
Programmatic server lifecycle

run_server() opens the document store and serves the app with uvicorn on the
running event loop; close_server() undoes both. Used once per test session.
"""

import asyncio
import logging
import socket
from typing import Optional

import uvicorn

from blog_api.app import app
from blog_api.config.settings import DATABASE_URL
from blog_api.database.connection import init_database, close_database

logger = logging.getLogger(__name__)

_server: Optional[uvicorn.Server] = None
_server_task: Optional[asyncio.Task] = None


async def run_server(database_url: Optional[str] = None, host: str = "127.0.0.1", port: int = 0) -> str:
    """
    Start serving the API in the background

    Args:
        database_url: Document store URL (defaults to DATABASE_URL)
        host: Interface to bind
        port: Port to bind; 0 lets the OS pick a free one

    Returns:
        Base URL the server is listening on
    """
    global _server, _server_task
    if _server is not None:
        raise RuntimeError("Server already running")

    await init_database(database_url or DATABASE_URL)

    # Bind up front so a taken port fails here instead of inside uvicorn
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind((host, port))
    except OSError:
        sock.close()
        await close_database()
        raise
    bound_port = sock.getsockname()[1]

    # The store is already open, so the app lifespan stays off
    config = uvicorn.Config(app, lifespan="off", log_config=None, access_log=False)
    server = uvicorn.Server(config)
    task = asyncio.create_task(server.serve(sockets=[sock]))

    while not server.started:
        if task.done():
            sock.close()
            await close_database()
            task.result()
            raise RuntimeError("Server exited during startup")
        await asyncio.sleep(0.01)

    _server, _server_task = server, task
    base_url = f"http://{host}:{bound_port}"
    logger.info(f"Blog Posts API listening on {base_url}")
    return base_url


async def close_server():
    """Stop the background server and close the document store"""
    global _server, _server_task
    if _server is not None:
        _server.should_exit = True
        await _server_task
        _server, _server_task = None, None
        logger.info("Blog Posts API stopped")
    await close_database()
