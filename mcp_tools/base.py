"""
Tool Registry

Provides the shared building blocks for MCP tools:
- ToolResult: success/failure variant returned at the tool boundary
- ToolDescriptor: a tool's name, schemas and handler
- ToolRegistry: name -> descriptor mapping with validation and invocation
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterator, List, Optional, Type

from pydantic import BaseModel, ValidationError

from error_handling import (
    DuplicateToolError,
    InvalidInputError,
    MCPDemoError,
    RegistryFrozenError,
    ToolExecutionError,
    UnknownToolError,
    get_tracer,
    log_error,
)

logger = logging.getLogger("mcp_tools")


@dataclass
class ToolResult:
    """Standard result structure for MCP tool calls."""
    success: bool
    content: List[Dict[str, Any]] = field(default_factory=list)
    structured_content: Optional[Dict[str, Any]] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, text: str, structured_content: Optional[Dict[str, Any]] = None) -> "ToolResult":
        return cls(
            success=True,
            content=[{"type": "text", "text": text}],
            structured_content=structured_content,
        )

    @classmethod
    def failure(cls, message: str) -> "ToolResult":
        return cls(success=False, content=[{"type": "text", "text": message}], error=message)


ToolHandler = Callable[[BaseModel], Awaitable[ToolResult]]


@dataclass(frozen=True)
class ToolDescriptor:
    """
    Definition of a single tool.

    The input and output models double as the tool's declared JSON schemas.
    """
    name: str
    title: str
    description: str
    input_model: Type[BaseModel]
    output_model: Type[BaseModel]
    handler: ToolHandler

    @property
    def input_schema(self) -> Dict[str, Any]:
        return self.input_model.model_json_schema()

    @property
    def output_schema(self) -> Dict[str, Any]:
        return self.output_model.model_json_schema()


def _summarize_validation_error(exc: ValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "loc": ".".join(str(part) for part in err["loc"]) or "(root)",
            "msg": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


class ToolRegistry:
    """
    Holds the set of callable tools.

    Tools are registered once at startup, after which the registry is frozen
    and only read. There is no removal operation.
    """

    def __init__(self):
        self._tools: Dict[str, ToolDescriptor] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> "ToolRegistry":
        self._frozen = True
        return self

    def register(self, descriptor: ToolDescriptor) -> ToolDescriptor:
        if self._frozen:
            raise RegistryFrozenError(descriptor.name)
        if descriptor.name in self._tools:
            raise DuplicateToolError(descriptor.name)
        self._tools[descriptor.name] = descriptor
        logger.info(f"Registered tool: {descriptor.name}")
        return descriptor

    def tool(
        self,
        name: str,
        *,
        title: str,
        description: str,
        input_model: Type[BaseModel],
        output_model: Type[BaseModel],
    ) -> Callable[[ToolHandler], ToolHandler]:
        """Decorator form of register()."""

        def decorator(handler: ToolHandler) -> ToolHandler:
            self.register(
                ToolDescriptor(
                    name=name,
                    title=title,
                    description=description,
                    input_model=input_model,
                    output_model=output_model,
                    handler=handler,
                )
            )
            return handler

        return decorator

    def get(self, name: str) -> Optional[ToolDescriptor]:
        return self._tools.get(name)

    def list_tools(self) -> List[ToolDescriptor]:
        return list(self._tools.values())

    def names(self) -> List[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)

    def __iter__(self) -> Iterator[ToolDescriptor]:
        return iter(self._tools.values())

    async def invoke(self, name: str, raw_args: Optional[Dict[str, Any]]) -> ToolResult:
        """
        Validate arguments and run a tool's handler.

        Raises:
            UnknownToolError: no tool is registered under ``name``
            InvalidInputError: ``raw_args`` does not match the input schema
            ToolExecutionError: the handler raised, or returned structured
                content that does not match the output schema
        """
        descriptor = self._tools.get(name)
        if descriptor is None:
            raise UnknownToolError(name)

        tracer = get_tracer(__name__)
        with tracer.start_as_current_span(f"mcp.tool.{name}") as span:
            span.set_attribute("mcp.tool.name", name)
            span.set_attribute("mcp.tool.arguments", str(raw_args))

            try:
                arguments = descriptor.input_model.model_validate(
                    raw_args if raw_args is not None else {}
                )
            except ValidationError as e:
                errors = _summarize_validation_error(e)
                summary = "; ".join(f"{err['loc']}: {err['msg']}" for err in errors)
                span.set_attribute("mcp.tool.status", "error")
                span.set_attribute("mcp.tool.error", summary)
                raise InvalidInputError(name, summary, errors=errors) from e

            try:
                result = await descriptor.handler(arguments)
                if result.success and result.structured_content is not None:
                    try:
                        result.structured_content = descriptor.output_model.model_validate(
                            result.structured_content
                        ).model_dump()
                    except ValidationError as e:
                        raise ValueError(f"Output validation error: {e.errors()[0]['msg']}") from e
            except Exception as e:
                span.set_attribute("mcp.tool.status", "error")
                span.set_attribute("mcp.tool.error", str(e))
                raise ToolExecutionError(name, e) from e

            span.set_attribute("mcp.tool.status", "success" if result.success else "error")
            return result

    async def call(self, name: str, raw_args: Optional[Dict[str, Any]]) -> ToolResult:
        """
        Boundary form of invoke(): registry errors become a failure ToolResult.
        """
        try:
            return await self.invoke(name, raw_args)
        except MCPDemoError as e:
            log_error(
                e,
                logger,
                level=logging.ERROR if e.status_code >= 500 else logging.WARNING,
                extra={"tool": name},
            )
            return ToolResult.failure(e.message)
