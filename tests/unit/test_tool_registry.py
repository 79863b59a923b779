import pytest
from pydantic import BaseModel, Field

from agentic_rag.agent.registry import Tool, ToolRegistry
from agentic_rag.errors import ErrorKind, ToolError
from agentic_rag.types import ToolInvocation, ToolResult


class EchoInput(BaseModel):
    value: int = Field(ge=1)


class EchoTool(Tool):
    name = "echo"
    description = "echo positive int"
    args_model = EchoInput

    async def run(self, arguments: EchoInput) -> ToolResult:
        return ToolResult.ok(arguments.value * 2)


class BrokenTool(EchoTool):
    name = "broken"

    async def run(self, arguments: EchoInput) -> ToolResult:
        raise OSError("disk gone")


@pytest.mark.asyncio
async def test_execute_validates_arguments() -> None:
    registry = ToolRegistry()
    registry.register(EchoTool())

    result = await registry.execute(ToolInvocation("echo", {"value": 3}))
    assert result == ToolResult(success=True, result=6)

    with pytest.raises(ToolError) as exc_info:
        await registry.execute(ToolInvocation("echo", {"value": 0}))
    assert exc_info.value.recoverable is False
    assert "Invalid arguments" in exc_info.value.message


def test_duplicate_tool_registration_rejected() -> None:
    registry = ToolRegistry()
    registry.register(EchoTool())

    with pytest.raises(ToolError) as exc_info:
        registry.register(EchoTool())

    assert exc_info.value.message == "Tool 'echo' is already registered"
    assert exc_info.value.recoverable is False


@pytest.mark.asyncio
async def test_unknown_tool_is_not_found() -> None:
    registry = ToolRegistry()

    with pytest.raises(ToolError) as exc_info:
        await registry.execute(ToolInvocation("missing"))

    assert exc_info.value.message == "Tool 'missing' not found in registry"
    assert exc_info.value.to_pipeline_error().kind is ErrorKind.TOOL


@pytest.mark.asyncio
async def test_tool_rejects_invocation_for_other_name() -> None:
    with pytest.raises(ToolError) as exc_info:
        await EchoTool().execute(ToolInvocation("other", {"value": 1}))

    assert exc_info.value.message == "Expected tool 'echo', got 'other'"


@pytest.mark.asyncio
async def test_unexpected_tool_exception_becomes_recoverable_tool_error() -> None:
    registry = ToolRegistry()
    registry.register(BrokenTool())

    with pytest.raises(ToolError) as exc_info:
        await registry.execute(ToolInvocation("broken", {"value": 1}))

    assert exc_info.value.recoverable is True
    assert exc_info.value.message == "disk gone"


def test_listing_schemas_and_removal() -> None:
    registry = ToolRegistry()
    registry.register(EchoTool())
    registry.register(BrokenTool())

    assert registry.list_tools() == ["echo", "broken"]
    assert "echo" in registry
    schema = registry.schema("echo")
    assert schema is not None
    assert schema["name"] == "echo"
    assert schema["parameters"]["properties"]["value"]["minimum"] == 1
    assert [item["name"] for item in registry.schemas()] == ["echo", "broken"]

    removed = registry.remove("broken")
    assert removed is not None and removed.name == "broken"
    assert registry.remove("broken") is None
    assert registry.get("broken") is None
    assert len(registry) == 1
