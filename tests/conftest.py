"""
Shared test fixtures for the toolgate test suite.

Key fixtures:
- make_tool: A factory for ServerTool objects with throwaway handlers
- registrar: A fake registrar that records every add_tool() call
- make_settings: A factory for Settings pointing at a temporary documents dir

Testing approach:
- test_toolsets.py: Unit tests for the gating policy (Toolset, ToolsetGroup)
  using make_tool and the fake registrar. No server involved.
- test_tools.py: The shipped toolsets and build_toolset_group(), against a
  temporary documents directory.
- test_server.py: Integration tests through FastMCP's in-memory Client, so
  tools/list and tools/call go through the real MCP protocol handlers.
- test_config.py: Environment parsing of the settings.
"""

import pytest

from toolgate.config import Settings
from toolgate.toolsets import ServerTool, new_server_tool


class RecordingRegistrar:
    """Stands in for FastMCP: remembers the name of every tool registered."""

    def __init__(self):
        self.registered: list[str] = []
        self.tools = []

    def add_tool(self, tool):
        self.registered.append(tool.name)
        self.tools.append(tool)
        return tool


@pytest.fixture
def make_tool():
    """
    Factory fixture for ServerTool objects.

    Usage in tests:
        def test_something(make_tool):
            tool = make_tool("toolA")
    """

    def _make_tool(name: str, description: str = "") -> ServerTool:
        def handler() -> str:
            return name

        return new_server_tool(handler, name=name, description=description)

    return _make_tool


@pytest.fixture
def registrar() -> RecordingRegistrar:
    return RecordingRegistrar()


@pytest.fixture
def documents_dir(tmp_path):
    """A documents directory with one document in it."""
    directory = tmp_path / "documents"
    directory.mkdir()
    (directory / "public.md").write_text("# Public Company Information\n", encoding="utf-8")
    return directory


@pytest.fixture
def make_settings(documents_dir):
    """
    Factory fixture for Settings that ignore the real environment's .env file.

    Usage in tests:
        def test_something(make_settings):
            config = make_settings(toolsets=["documents"], read_only=True)
    """

    def _make_settings(**overrides) -> Settings:
        values = {"documents_dir": documents_dir}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make_settings
