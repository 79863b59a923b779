"""Tool contract and registry built on Pydantic v2 argument models."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel, ValidationError

from agentic_rag.errors import ToolError
from agentic_rag.types import ToolInvocation, ToolResult

logger = logging.getLogger(__name__)


class Tool(ABC):
    """Executable tool with a Pydantic-declared argument schema.

    Subclasses set `name`, `description` and `args_model` and implement
    `run`. `execute` checks the invocation targets this tool and validates
    its arguments before `run` sees them.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    args_model: ClassVar[type[BaseModel]]

    def parameter_schema(self) -> dict[str, Any]:
        return self.args_model.model_json_schema()

    def schema(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameter_schema(),
        }

    def parse_arguments(self, invocation: ToolInvocation) -> BaseModel:
        if invocation.name != self.name:
            raise ToolError(
                self.name, f"Expected tool '{self.name}', got '{invocation.name}'"
            )
        try:
            return self.args_model.model_validate(invocation.arguments)
        except ValidationError as exc:
            raise ToolError(self.name, f"Invalid arguments: {exc}") from exc

    async def execute(self, invocation: ToolInvocation) -> ToolResult:
        arguments = self.parse_arguments(invocation)
        return await self.run(arguments)

    @abstractmethod
    async def run(self, arguments: Any) -> ToolResult:
        """Execute with validated arguments."""


class ToolRegistry:
    """Name-keyed tool catalog."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        if tool.name in self._tools:
            raise ToolError(tool.name, f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool
        logger.debug("Registered tool %s", tool.name)

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def remove(self, name: str) -> Tool | None:
        return self._tools.pop(name, None)

    def list_tools(self) -> list[str]:
        return list(self._tools)

    def schema(self, name: str) -> dict[str, Any] | None:
        tool = self._tools.get(name)
        return tool.schema() if tool is not None else None

    def schemas(self) -> list[dict[str, Any]]:
        return [tool.schema() for tool in self._tools.values()]

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    async def execute(self, invocation: ToolInvocation) -> ToolResult:
        tool = self._tools.get(invocation.name)
        if tool is None:
            raise ToolError(
                invocation.name, f"Tool '{invocation.name}' not found in registry"
            )
        try:
            return await tool.execute(invocation)
        except ToolError:
            raise
        except Exception as exc:
            logger.exception("Tool %s raised unexpectedly", invocation.name)
            raise ToolError(invocation.name, str(exc), recoverable=True) from exc
