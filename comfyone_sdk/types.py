"""Type definitions for the ComfyOne SDK."""

from __future__ import annotations

import enum
from dataclasses import asdict, dataclass, field
from typing import Any


class IOType(str, enum.Enum):
    """Value types a workflow input may declare."""

    NUMBER = "number"
    STRING = "string"
    BOOLEAN = "boolean"
    IMAGE = "image"


@dataclass
class APIResponse:
    """Envelope returned by every ComfyOne REST endpoint.

    ``code`` is the application-level status (0 means success); the SDK does
    not interpret it.
    """

    code: int
    message: str
    data: Any = None

    @property
    def ok(self) -> bool:
        return self.code == 0


@dataclass
class WorkflowInput:
    """Declares one node parameter of a workflow as a prompt input."""

    id: str
    type: IOType
    name: str


@dataclass
class WorkflowOutput:
    """Declares one node of a workflow as an output."""

    id: str
    type: str


@dataclass
class WorkflowPayload:
    """Body for creating or updating a workflow."""

    name: str
    workflow: dict[str, Any] | None = None
    config: dict[str, Any] | None = None
    description: str | None = None
    inputs: list[WorkflowInput] = field(default_factory=list)
    # Node IDs whose results are returned
    outputs: list[str | WorkflowOutput] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(self)


@dataclass
class PromptInput:
    """Concrete parameter values for one workflow node."""

    id: str
    params: dict[str, Any]


@dataclass
class PromptPayload:
    """Body for running a workflow once."""

    workflow_id: str
    inputs: list[PromptInput] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return _drop_none(self)


def _drop_none(obj: Any) -> dict[str, Any]:
    data = asdict(obj)
    extra = data.pop("extra", {})
    for item in data.get("inputs", []):
        if isinstance(item.get("type"), IOType):
            item["type"] = item["type"].value
    body = {k: v for k, v in data.items() if v is not None}
    body.update(extra)
    return body
