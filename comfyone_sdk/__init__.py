"""
comfyone-sdk: Python client SDK for the ComfyOne workflow-execution service.

Example usage::

    import asyncio

    from comfyone_sdk import ComfyOne, ComfyOneConfig

    async def main():
        async with ComfyOne(ComfyOneConfig(api_key="your-key")) as sdk:
            ws = sdk.connect_websocket()
            ws.add_message_handler("finished", lambda msg: print(msg["data"]))

            workflows = await sdk.api.get_workflows()
            result = await sdk.api.prompt(
                {"workflow_id": workflows.data[0]["id"], "inputs": []}
            )
            print(result.code, result.message)

    asyncio.run(main())
"""

from comfyone_sdk.client import ComfyOneClient
from comfyone_sdk.comfyone import ComfyOne
from comfyone_sdk.config import ComfyOneConfig
from comfyone_sdk.dispatch import DispatchTable
from comfyone_sdk.errors import (
    APIError,
    AuthenticationError,
    ClientConnectionError,
    ComfyOneError,
    ProtocolError,
    RetryExhaustedError,
)
from comfyone_sdk.log import LoggerLike, get_logger
from comfyone_sdk.types import (
    APIResponse,
    IOType,
    PromptInput,
    PromptPayload,
    WorkflowInput,
    WorkflowOutput,
    WorkflowPayload,
)
from comfyone_sdk.websocket import ComfyOneWebSocket

__all__ = [
    "ComfyOne",
    "ComfyOneClient",
    "ComfyOneConfig",
    "ComfyOneWebSocket",
    "DispatchTable",
    "ComfyOneError",
    "APIError",
    "AuthenticationError",
    "ClientConnectionError",
    "ProtocolError",
    "RetryExhaustedError",
    "LoggerLike",
    "get_logger",
    "APIResponse",
    "IOType",
    "PromptInput",
    "PromptPayload",
    "WorkflowInput",
    "WorkflowOutput",
    "WorkflowPayload",
]

__version__ = "0.1.0"
