"""
MCP server that only serves the toolsets its policy allows.

This module creates and runs the MCP server with:
- Toolsets from tools.py, gated by the policy in toolsets.py
  (enabled toolsets, read-only mode, disabled tools)
- An audit middleware logging every tools/list and tools/call
- Health and readiness HTTP endpoints (for Kubernetes probes)
- Structured JSON logging
- Streamable HTTP transport (the current MCP standard)

Architecture:
    Gating happens once, at startup:

    1. Settings come from the environment (config.py), optionally
       overridden on the command line
    2. build_toolset_group() creates every toolset and enables the
       requested ones
    3. ToolsetGroup.register_tools() hands only the active tools to
       FastMCP; inactive tools are never registered, so clients can't list
       or call them

Running the server:
    python -m toolgate.server --toolsets documents --read-only

    Show what would be served without starting anything:
    python -m toolgate.server --toolsets documents --list-toolsets
"""

import argparse
import json
import logging
import sys
import uuid
from pathlib import Path
from typing import Sequence

from fastmcp import FastMCP
from fastmcp.server.middleware import CallNext, Middleware, MiddlewareContext
from fastmcp.tools.tool import Tool, ToolResult
from mcp.types import CallToolRequestParams, ListToolsRequest
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from toolgate.config import LOG_LEVELS, Settings, settings
from toolgate.tools import SERVER_NAME, build_toolset_group
from toolgate.toolsets import ToolsetGroup, ToolsetNotFoundError

# ---------------------------------------------------------------------------
# Structured JSON Logging
# ---------------------------------------------------------------------------
# Logs go to stdout, one JSON object per line, so cloud logging systems can
# index fields like tool, decision and request_id.


class JSONLogFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Example output:

        {"timestamp": "2026-02-06 10:30:00,123", "level": "INFO",
         "logger": "toolgate", "message": "Tool call", "tool": "read_document"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Merge extra fields passed via logger.info("msg", extra={"audit_data": {...}})
        if hasattr(record, "audit_data"):
            log_entry.update(record.audit_data)
        return json.dumps(log_entry)


handler = logging.StreamHandler(sys.stdout)
handler.setFormatter(JSONLogFormatter())

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper()),
    handlers=[handler],
)
logger = logging.getLogger("toolgate")


# ---------------------------------------------------------------------------
# Audit Middleware
# ---------------------------------------------------------------------------


class AuditMiddleware(Middleware):
    """
    Logs every tools/list and tools/call request.

    Gating itself is done at registration time, so this middleware never
    blocks anything. It records what clients saw and what they called.
    """

    async def on_list_tools(
        self,
        context: MiddlewareContext[ListToolsRequest],
        call_next: CallNext[ListToolsRequest, Sequence[Tool]],
    ) -> Sequence[Tool]:
        request_id = str(uuid.uuid4())[:8]
        tools = await call_next(context)
        logger.info(
            "Tool list served",
            extra={
                "audit_data": {
                    "request_id": request_id,
                    "tools": [t.name for t in tools],
                }
            },
        )
        return tools

    async def on_call_tool(
        self,
        context: MiddlewareContext[CallToolRequestParams],
        call_next: CallNext[CallToolRequestParams, ToolResult],
    ) -> ToolResult:
        request_id = str(uuid.uuid4())[:8]
        tool_name = context.message.name
        logger.info(
            "Tool call",
            extra={"audit_data": {"request_id": request_id, "tool": tool_name}},
        )
        try:
            return await call_next(context)
        except Exception:
            logger.warning(
                "Tool call failed",
                extra={
                    "audit_data": {
                        "request_id": request_id,
                        "tool": tool_name,
                        "decision": "error",
                    }
                },
            )
            raise


# ---------------------------------------------------------------------------
# Server factory
# ---------------------------------------------------------------------------


def create_server(config: Settings) -> FastMCP:
    """
    Build a FastMCP server serving only the active tools for this config.

    Raises:
        ToolsetNotFoundError: If config.toolsets names an unknown toolset
    """
    group = build_toolset_group(config)

    mcp = FastMCP(
        name=SERVER_NAME,
        instructions=(
            "MCP server exposing grouped tools. Which tools are available "
            "depends on the enabled toolsets and on read-only mode."
        ),
        middleware=[AuditMiddleware()],
    )
    group.register_tools(mcp)

    logger.info(
        "Toolsets registered",
        extra={
            "audit_data": {
                "read_only": group.read_only,
                "enabled_toolsets": [n for n in group.toolsets if group.is_enabled(n)],
                "disabled_tools": sorted(group.disabled_tools),
            }
        },
    )

    # Plain HTTP endpoints for Kubernetes probes, outside the MCP protocol

    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> Response:
        """Liveness probe: is the server process alive and responsive?"""
        return JSONResponse({"status": "healthy"})

    @mcp.custom_route("/ready", methods=["GET"])
    async def readiness_check(request: Request) -> Response:
        """Readiness probe: are the enabled toolsets able to serve?"""
        if group.is_enabled("documents") and not config.documents_dir.is_dir():
            return JSONResponse(
                {"status": "not_ready", "reason": "documents directory missing"},
                status_code=503,
            )
        return JSONResponse({"status": "ready"})

    return mcp


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------


def format_toolsets(group: ToolsetGroup) -> str:
    """Render every toolset and its tools, marking which ones are active."""
    lines = []
    for toolset in group.toolsets.values():
        state = "enabled" if group.is_enabled(toolset.name) else "disabled"
        if toolset.read_only:
            state += ", read-only"
        lines.append(f"{toolset.name} ({state}): {toolset.description}")
        active = {tool.name for tool in toolset.get_active_tools()}
        read_names = {tool.name for tool in toolset.read_tools}
        for tool in toolset.get_available_tools():
            kind = "read" if tool.name in read_names else "write"
            mark = "+" if tool.name in active else "-"
            lines.append(f"  {mark} {tool.name} [{kind}]")
    return "\n".join(lines)


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="toolgate",
        description="Run an MCP server exposing only the allowed toolsets.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  Everything (default):
    %(prog)s

  Documents only, no writes:
    %(prog)s --toolsets documents --read-only

  Everything except one tool:
    %(prog)s --toolsets all --disable-tools write_document

  Preview without starting the server:
    %(prog)s --toolsets context --list-toolsets
        """,
    )
    parser.add_argument(
        "--toolsets",
        nargs="+",
        default=None,
        help="Space-separated toolsets to enable, or 'all' (default: MCP_TOOLSETS)",
    )
    parser.add_argument(
        "--read-only",
        action="store_true",
        default=None,
        help="Hide every write tool (default: MCP_READ_ONLY)",
    )
    parser.add_argument(
        "--disable-tools",
        nargs="+",
        default=None,
        help="Space-separated tool names to disable (default: MCP_DISABLED_TOOLS)",
    )
    parser.add_argument(
        "--documents-dir",
        type=Path,
        default=None,
        help="Directory served by the documents toolset",
    )
    parser.add_argument("--host", default=None, help="Interface to bind to")
    parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (default: MCP_LOG_LEVEL)",
    )
    parser.add_argument(
        "--list-toolsets",
        action="store_true",
        help="Print toolsets and their tools, then exit",
    )
    return parser.parse_args(argv)


def settings_from_args(args: argparse.Namespace, base: Settings) -> Settings:
    """Overlay command line values on top of environment settings."""
    overrides = {
        "toolsets": args.toolsets,
        "read_only": args.read_only,
        "disabled_tools": args.disable_tools,
        "documents_dir": args.documents_dir,
        "host": args.host,
        "port": args.port,
        "log_level": args.log_level,
    }
    overrides = {k: v for k, v in overrides.items() if v is not None}
    # Validate the merged values the same way environment values are
    return type(base).model_validate({**base.model_dump(), **overrides})


def main(argv: Sequence[str] | None = None) -> None:
    args = parse_args(argv)
    config = settings_from_args(args, settings)
    logging.getLogger().setLevel(getattr(logging, config.log_level.upper()))

    try:
        if args.list_toolsets:
            print(format_toolsets(build_toolset_group(config)))
            return
        mcp = create_server(config)
    except ToolsetNotFoundError as e:
        logger.error("Unknown toolset: %s", e.name)
        sys.exit(2)

    logger.info(
        "Starting MCP server on %s:%d (transport=streamable-http)",
        config.host,
        config.port,
    )
    mcp.run(
        transport="streamable-http",
        host=config.host,
        port=config.port,
        log_level=config.log_level,
    )


if __name__ == "__main__":
    main()
