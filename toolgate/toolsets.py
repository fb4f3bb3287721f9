"""
Toolsets: grouped MCP tools and the policy that decides which are served.

This module is the gatekeeper between "every tool this server knows about"
and "the tools a client can actually see and call". Four independent
controls are combined:

- **Toolset enabled**: each toolset starts disabled and must be enabled by
  name (or all at once with the reserved name "all")
- **Everything on**: once "all" is requested, every toolset counts as enabled
- **Read-only mode**: write tools are suppressed; the switch only turns on
- **Disabled tools**: individual tool names excluded regardless of toolset

Typical wiring (see tools.py and server.py):

    group = ToolsetGroup(read_only=False, disabled_tools=["write_document"])
    group.add_toolset(
        Toolset("documents", "Read and write documents")
        .add_read_tools(read_tool)
        .add_write_tools(write_tool)
    )
    group.enable_toolsets(["documents"])
    group.register_tools(mcp)   # mcp is a FastMCP server

The read-only guarantee is enforced at three independent points: appending
write tools, listing active tools and registering tools. A code path that
skips one check still hits the others.

Nothing here does I/O or locking. Callers sharing a group across threads
must serialize access themselves.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Protocol

from fastmcp.tools.tool import Tool
from mcp.types import ToolAnnotations

logger = logging.getLogger("toolgate.toolsets")

# Reserved toolset name that turns every toolset on.
# A toolset literally named "all" can't be enabled individually through
# ToolsetGroup.enable_toolsets() because the sentinel wins.
ALL_TOOLSETS = "all"


class ToolsetNotFoundError(LookupError):
    """
    Raised when a toolset name is not registered in the group.

    Attributes:
        name: The toolset name that was looked up
    """

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"toolset {name} does not exist")


class Registrar(Protocol):
    """Anything that can serve a tool. FastMCP satisfies this."""

    def add_tool(self, tool: Tool) -> Any: ...


@dataclass(frozen=True)
class ServerTool:
    """
    A tool definition paired with the handler that implements it.

    The handler is opaque to this module: it is never called here, only
    handed to the registrar when the tool is registered.

    Attributes:
        name: Tool name as clients see it, unique across the server
        handler: The callable FastMCP executes on tools/call
        description: Human-readable description sent in tools/list
        read_only_hint: Forwarded to the MCP readOnlyHint annotation
    """

    name: str
    handler: Callable[..., Any]
    description: str = ""
    read_only_hint: bool = False

    def to_tool(self) -> Tool:
        """Build the FastMCP Tool object for this definition."""
        return Tool.from_function(
            self.handler,
            name=self.name,
            description=self.description or None,
            annotations=ToolAnnotations(readOnlyHint=self.read_only_hint),
        )


def new_server_tool(
    handler: Callable[..., Any],
    name: str | None = None,
    description: str | None = None,
    read_only_hint: bool = False,
) -> ServerTool:
    """
    Create a ServerTool from a handler function.

    The name defaults to the function name and the description to the first
    paragraph of its docstring.
    """
    if description is None:
        doc = (handler.__doc__ or "").strip()
        description = doc.split("\n\n", 1)[0].strip()
    return ServerTool(
        name=name or handler.__name__,
        handler=handler,
        description=description,
        read_only_hint=read_only_hint,
    )


class Toolset:
    """
    A named group of tools, split into read tools and write tools.

    A toolset serves nothing until enabled. Once read-only it never exposes
    a write tool again: new write tools are silently dropped, and write
    tools added earlier stay in the list but are filtered out of every
    active listing and registration.
    """

    def __init__(self, name: str, description: str = ""):
        self._name = name
        self._description = description
        self._enabled = False
        self._read_only = False
        self._write_tools: list[ServerTool] = []
        self._read_tools: list[ServerTool] = []
        # Replaced by the group's shared set in ToolsetGroup.add_toolset()
        self._disabled_tools: set[str] = set()

    def __repr__(self) -> str:
        return (
            f"Toolset(name={self._name!r}, enabled={self._enabled}, "
            f"read_only={self._read_only})"
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return self._description

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def read_tools(self) -> list[ServerTool]:
        return list(self._read_tools)

    @property
    def write_tools(self) -> list[ServerTool]:
        return list(self._write_tools)

    @property
    def disabled_tools(self) -> set[str]:
        """Tool names filtered out of this toolset, shared with its group."""
        return self._disabled_tools

    def _share_disabled_tools(self, names: set[str]) -> None:
        # Called once by ToolsetGroup.add_toolset(); keeps the reference, not a copy
        self._disabled_tools = names

    def enable(self) -> None:
        """Turn the toolset on. There is no way to turn it off again."""
        self._enabled = True

    def set_read_only(self) -> None:
        """Mark the toolset read-only. Idempotent and irreversible."""
        self._read_only = True

    def add_read_tools(self, *tools: ServerTool) -> "Toolset":
        self._read_tools.extend(tools)
        return self

    def add_write_tools(self, *tools: ServerTool) -> "Toolset":
        # Silently ignored when read-only so the contract can't be breached
        if not self._read_only:
            self._write_tools.extend(tools)
        return self

    def _not_disabled(self, tools: Iterable[ServerTool]) -> list[ServerTool]:
        return [tool for tool in tools if tool.name not in self._disabled_tools]

    def get_active_tools(self) -> list[ServerTool]:
        """
        Tools this toolset currently serves, in registration order.

        Empty when the toolset is disabled. Otherwise read tools first, then
        write tools unless read-only, minus anything in the disabled set.
        """
        if not self._enabled:
            return []
        active = self._not_disabled(self._read_tools)
        if not self._read_only:
            active.extend(self._not_disabled(self._write_tools))
        return active

    def get_available_tools(self) -> list[ServerTool]:
        """
        Every tool this toolset could serve, ignoring enabled and disabled.

        Used for documentation and --list-toolsets, not for gating.
        """
        if self._read_only:
            return list(self._read_tools)
        return self._read_tools + self._write_tools

    def register_tools(self, registrar: Registrar) -> None:
        """Register the enabled and *not disabled* tools with the registrar."""
        if not self._enabled:
            return

        def register_if_not_disabled(tools: list[ServerTool]) -> None:
            for tool in tools:
                if tool.name in self._disabled_tools:
                    continue
                logger.debug("Registering tool %s from toolset %s", tool.name, self._name)
                registrar.add_tool(tool.to_tool())

        register_if_not_disabled(self._read_tools)
        if not self._read_only:
            register_if_not_disabled(self._write_tools)


class ToolsetGroup:
    """
    Every toolset the server knows about, plus the global switches.

    The read-only flag and the disabled-tool set are fixed at construction.
    Each toolset added gets the read-only flag stamped on (one way) and
    shares this group's disabled set by reference.
    """

    def __init__(self, read_only: bool = False, disabled_tools: Iterable[str] = ()):
        self.toolsets: dict[str, Toolset] = {}
        self._everything_on = False
        self._read_only = read_only
        # Shared with every toolset; never mutated after this point
        self._disabled_tools: set[str] = set(disabled_tools)

    @property
    def everything_on(self) -> bool:
        return self._everything_on

    @property
    def read_only(self) -> bool:
        return self._read_only

    @property
    def disabled_tools(self) -> set[str]:
        return self._disabled_tools

    def add_toolset(self, toolset: Toolset) -> None:
        if self._read_only:
            toolset.set_read_only()
        toolset._share_disabled_tools(self._disabled_tools)
        self.toolsets[toolset.name] = toolset

    def get_toolset(self, name: str) -> Toolset:
        try:
            return self.toolsets[name]
        except KeyError:
            raise ToolsetNotFoundError(name) from None

    def is_enabled(self, name: str) -> bool:
        if self._everything_on:
            return True
        toolset = self.toolsets.get(name)
        if toolset is None:
            return False
        return toolset.enabled

    def enable_toolset(self, name: str) -> None:
        """
        Enable a single toolset by name.

        Raises:
            ToolsetNotFoundError: If no toolset with that name was added
        """
        self.get_toolset(name).enable()
        logger.info("Toolset enabled: %s", name)

    def enable_toolsets(self, names: Iterable[str]) -> None:
        """
        Enable the named toolsets, or every toolset if "all" is among them.

        Names before "all" are enabled one by one; scanning stops at "all".
        The first unknown name raises ToolsetNotFoundError and leaves the
        toolsets enabled so far as they are (no rollback).

        Raises:
            ToolsetNotFoundError: If a name before "all" is unknown
        """
        for name in names:
            if name == ALL_TOOLSETS:
                self._everything_on = True
                break
            self.enable_toolset(name)

        # Runs after the loop so "all" anywhere in the list enables everything
        if self._everything_on:
            for name in list(self.toolsets):
                self.enable_toolset(name)

    def register_tools(self, registrar: Registrar) -> None:
        for toolset in self.toolsets.values():
            toolset.register_tools(registrar)
