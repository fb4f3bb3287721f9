"""
Application configuration loaded from environment variables.

Uses pydantic-settings to define typed configuration that automatically reads
from environment variables. All config comes from the environment (or a .env
file); the command line in server.py can override individual fields.

The toolset policy lives here too:
- MCP_TOOLSETS picks which toolsets are served ("all" for every toolset)
- MCP_READ_ONLY hides every write tool
- MCP_DISABLED_TOOLS removes individual tools by name

List fields take comma-separated values from the environment, e.g.
MCP_TOOLSETS=documents,context
"""

from pathlib import Path
from typing import Annotated, Literal, get_args

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode


LogLevel = Literal["debug", "info", "warning", "error", "critical"]
LOG_LEVELS: tuple[str, ...] = get_args(LogLevel)


class Settings(BaseSettings):
    """
    Server configuration with environment variable bindings.

    Each field maps to an environment variable with the MCP_ prefix.
    For example, `host` reads from MCP_HOST, `disabled_tools` reads
    from MCP_DISABLED_TOOLS.
    """

    # --- Server settings ---

    # "0.0.0.0" listens on all interfaces, which Docker containers need.
    host: str = "0.0.0.0"

    port: int = 8080

    # Logging verbosity. Maps to Python's logging levels.
    log_level: LogLevel = "info"

    # --- Toolset policy ---

    # Toolsets to enable at startup. "all" enables every toolset, including
    # ones whose names appear nowhere else in this list.
    toolsets: Annotated[list[str], NoDecode] = ["all"]

    # Read-only mode: write tools are never listed or callable.
    # Fixed for the lifetime of the server.
    read_only: bool = False

    # Tool names to remove from every toolset, e.g. "write_document".
    disabled_tools: Annotated[list[str], NoDecode] = []

    # --- Document settings ---

    # Directory served by the documents toolset.
    documents_dir: Path = Path("documents")

    model_config = {
        "env_prefix": "MCP_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    @field_validator("toolsets", "disabled_tools", mode="before")
    @classmethod
    def _split_comma_separated(cls, value):
        # Environment values arrive as one string; lists pass through as-is
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _lowercase_log_level(cls, value):
        # MCP_LOG_LEVEL=INFO and MCP_LOG_LEVEL=info are the same level
        if isinstance(value, str):
            return value.lower()
        return value


# Singleton instance: import this from other modules.
settings = Settings()
