"""Register backends, create a workflow, run it and download the results.

Run with ``COMFYONE_API_KEY`` set::

    COMFYONE_API_KEY=... python examples/main.py workflow.json instance-id
"""

from __future__ import annotations

import asyncio
import json
import signal
import sys
from pathlib import Path
from typing import Any

from comfyone_sdk import (
    ComfyOne,
    ComfyOneConfig,
    ComfyOneError,
    IOType,
    PromptInput,
    PromptPayload,
    WorkflowInput,
    WorkflowPayload,
)


def install_shutdown(sdk: ComfyOne, stop: asyncio.Event) -> None:
    """Close the session and wake ``main`` on SIGINT/SIGTERM."""
    loop = asyncio.get_running_loop()

    def shutdown() -> None:
        print("\nShutdown signal received. Closing connections...")
        sdk.close()
        stop.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, shutdown)


async def register_missing(sdk: ComfyOne, instance_ids: set[str]) -> None:
    backends = await sdk.api.get_available_backends()
    existing = {b["name"] for b in backends.data or []}
    for instance_id in sorted(instance_ids - existing):
        result = await sdk.api.register_backend(instance_id)
        if result.ok:
            print(f"Registered instance: {json.dumps(result.data)}")
        else:
            print(f"Failed to register instance: {result.code}, {result.message}")


async def main(workflow_file: str, instance_ids: set[str]) -> int:
    stop = asyncio.Event()
    async with ComfyOne(ComfyOneConfig.from_env()) as sdk:
        install_shutdown(sdk, stop)
        try:
            await register_missing(sdk, instance_ids)
        except ComfyOneError as exc:
            print(f"Error: {exc}")
            return 1

        ws = sdk.connect_websocket()

        def on_pending(msg: dict[str, Any]) -> None:
            print(f"Task {msg.get('taskId')} pending, position: {msg['data'].get('current')}")

        def on_progress(msg: dict[str, Any]) -> None:
            print(f"Task {msg.get('taskId')} in progress: {msg['data'].get('process')}%")

        async def on_finished(msg: dict[str, Any]) -> None:
            if not msg["data"].get("success"):
                return
            status = await sdk.api.get_prompt_status(msg["taskId"])
            for url in (status.data or {}).get("images", []):
                saved = await sdk.api.download_file(url)
                print(f"Downloaded result to: {saved}")

        def on_error(msg: dict[str, Any]) -> None:
            print(f"Task execution error: {msg['data'].get('message')}")

        ws.add_message_handler("pending", on_pending)
        ws.add_message_handler("progress", on_progress)
        ws.add_message_handler("finished", on_finished)
        ws.add_message_handler("error", on_error)

        workflow = WorkflowPayload(
            name="test",
            workflow=json.loads(Path(workflow_file).read_text()),
            inputs=[
                WorkflowInput(id="5", type=IOType.NUMBER, name="height"),
                WorkflowInput(id="5", type=IOType.NUMBER, name="width"),
            ],
            outputs=["9"],
        )
        try:
            created = await sdk.api.create_workflow(workflow)
            if not created.ok:
                print(f"Failed to create workflow: {created.code}, {created.message}")
                return 1
            prompt = PromptPayload(
                workflow_id=created.data["id"],
                inputs=[PromptInput(id="5", params={"width": 1024, "height": 1024})],
            )
            result = await sdk.api.prompt(prompt)
        except ComfyOneError as exc:
            print(f"Error: {exc}")
            return 1
        if not result.ok:
            print(f"Failed to generate image: {result.code}, {result.message}")
            return 1
        print(f"Prompt data: {result.data}")

        await stop.wait()
    return 0


if __name__ == "__main__":
    if len(sys.argv) < 3:
        print("usage: main.py WORKFLOW_JSON INSTANCE_ID [INSTANCE_ID ...]")
        sys.exit(2)
    sys.exit(asyncio.run(main(sys.argv[1], set(sys.argv[2:]))))
