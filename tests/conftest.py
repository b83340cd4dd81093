"""
Shared pytest fixtures for the ComfyOne SDK tests
"""

import asyncio
import json
import logging
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
import websockets

from comfyone_sdk.websocket import ComfyOneWebSocket

# Keep the library's own handshake logs out of test output
logging.getLogger("websockets").setLevel(logging.WARNING)


@pytest.fixture
def logger():
    """Mock logger exposing the leveled methods the SDK calls"""
    mock_logger = MagicMock(spec=logging.Logger)
    mock_logger.debug = MagicMock()
    mock_logger.info = MagicMock()
    mock_logger.warning = MagicMock()
    mock_logger.error = MagicMock()
    return mock_logger


class FakeEventServer:
    """Local WebSocket server recording connections and inbound frames"""

    def __init__(self):
        self.url = ""
        self.connections = []
        self.auth_headers = []
        self.frames = asyncio.Queue()

    async def handler(self, connection):
        self.connections.append(connection)
        self.auth_headers.append(connection.request.headers.get("Authorization"))
        async for message in connection:
            await self.frames.put(json.loads(message))

    async def next_frame(self, timeout=2.0):
        return await asyncio.wait_for(self.frames.get(), timeout)

    async def push(self, frame, index=-1):
        await self.connections[index].send(json.dumps(frame))


@pytest_asyncio.fixture
async def event_server():
    """Run a FakeEventServer on an ephemeral localhost port"""
    server = FakeEventServer()
    async with websockets.serve(server.handler, "127.0.0.1", 0) as ws_server:
        port = next(iter(ws_server.sockets)).getsockname()[1]
        server.url = f"ws://127.0.0.1:{port}"
        yield server


@pytest_asyncio.fixture
async def make_session(logger):
    """Factory for sessions that are closed after the test"""
    sessions = []

    def factory(url, reconnect_delay=0.05, token="secret-token"):
        session = ComfyOneWebSocket(
            token, url=url, reconnect_delay=reconnect_delay, logger=logger
        )
        sessions.append(session)
        return session

    yield factory

    for session in sessions:
        session.close()
        await session.wait_closed()


async def _wait_until(predicate, timeout=2.0, interval=0.01):
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(interval)


@pytest.fixture
def wait_until():
    """Poll a predicate until it is true or the timeout elapses"""
    return _wait_until
