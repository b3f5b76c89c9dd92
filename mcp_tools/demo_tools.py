"""
Demo tools

Two fixtures for exercising an MCP client end to end:
- echo_success: returns its input, always succeeds
- always_fail: raises on every call, for testing error handling
"""

from typing import Optional

from pydantic import BaseModel

from .base import ToolDescriptor, ToolRegistry, ToolResult


class EchoInput(BaseModel):
    message: str


class EchoOutput(BaseModel):
    echoed: str


class AlwaysFailInput(BaseModel):
    reason: Optional[str] = None


class AlwaysFailOutput(BaseModel):
    # Never produced; declared so the tool advertises an output schema
    ok: bool


async def echo_success(args: EchoInput) -> ToolResult:
    """Echo the provided message back as text and as structured content."""
    output = EchoOutput(echoed=args.message)
    return ToolResult.ok(
        text=f"Echoed message: {args.message}",
        structured_content=output.model_dump(),
    )


async def always_fail(args: AlwaysFailInput) -> ToolResult:
    suffix = f" (reason: {args.reason})" if args.reason else ""
    raise RuntimeError(f"Intentional failure from always_fail tool{suffix}")


DEMO_TOOLS = (
    ToolDescriptor(
        name="echo_success",
        title="Successful Echo",
        description="Echoes the provided message back to the caller.",
        input_model=EchoInput,
        output_model=EchoOutput,
        handler=echo_success,
    ),
    ToolDescriptor(
        name="always_fail",
        title="Always Fails",
        description="Deliberately throws an error every time, useful for testing error handling.",
        input_model=AlwaysFailInput,
        output_model=AlwaysFailOutput,
        handler=always_fail,
    ),
)


def register_demo_tools(registry: ToolRegistry) -> ToolRegistry:
    for descriptor in DEMO_TOOLS:
        registry.register(descriptor)
    return registry


def build_registry() -> ToolRegistry:
    """Create a frozen registry holding the demo tools."""
    return register_demo_tools(ToolRegistry()).freeze()
