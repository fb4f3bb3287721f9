"""
Tests for the shipped toolsets and build_toolset_group() (toolgate/tools.py).

The handlers are called directly here; test_server.py covers calling them
through the MCP protocol.
"""

import pytest

from toolgate.tools import build_toolset_group, context_toolset, documents_toolset
from toolgate.toolsets import ToolsetGroup, ToolsetNotFoundError


def handlers(toolset) -> dict:
    return {tool.name: tool.handler for tool in toolset.get_available_tools()}


class TestDocumentsToolset:
    """Tests for the documents toolset handlers."""

    def test_tool_classification(self, documents_dir):
        toolset = documents_toolset(documents_dir)

        assert [t.name for t in toolset.read_tools] == ["list_documents", "read_document"]
        assert [t.name for t in toolset.write_tools] == ["write_document"]
        assert all(t.read_only_hint for t in toolset.read_tools)

    def test_list_documents(self, documents_dir):
        (documents_dir / "b.md").write_text("b", encoding="utf-8")

        result = handlers(documents_toolset(documents_dir))["list_documents"]()

        assert result == ["b.md", "public.md"]

    def test_list_documents_missing_directory(self, tmp_path):
        result = handlers(documents_toolset(tmp_path / "nope"))["list_documents"]()

        assert result == []

    def test_read_document(self, documents_dir):
        result = handlers(documents_toolset(documents_dir))["read_document"]("public.md")

        assert "Public Company Information" in result

    def test_read_missing_document_returns_error_text(self, documents_dir):
        result = handlers(documents_toolset(documents_dir))["read_document"]("nope.md")

        assert result == "Error: document 'nope.md' not found."

    @pytest.mark.parametrize("name", ["../secret.txt", "/etc/passwd", "."])
    def test_read_outside_documents_dir_is_denied(self, documents_dir, name):
        with pytest.raises(PermissionError, match="outside the documents directory"):
            handlers(documents_toolset(documents_dir))["read_document"](name)

    def test_write_document(self, documents_dir):
        result = handlers(documents_toolset(documents_dir))["write_document"]("new.md", "hello")

        assert result == "Wrote 5 characters to 'new.md'."
        assert (documents_dir / "new.md").read_text(encoding="utf-8") == "hello"

    def test_write_outside_documents_dir_is_denied(self, documents_dir):
        with pytest.raises(PermissionError):
            handlers(documents_toolset(documents_dir))["write_document"]("../x.md", "x")

        assert not (documents_dir.parent / "x.md").exists()


class TestContextToolset:
    """Tests for get_server_info."""

    def test_reports_group_state(self, documents_dir):
        group = ToolsetGroup(read_only=True, disabled_tools=["list_documents"])
        group.add_toolset(documents_toolset(documents_dir))
        group.add_toolset(context_toolset(group))
        group.enable_toolsets(["documents", "context"])

        info = handlers(group.toolsets["context"])["get_server_info"]()

        assert info == {
            "name": "toolgate",
            "read_only": True,
            "enabled_toolsets": ["documents", "context"],
            "active_tools": ["read_document", "get_server_info"],
        }


class TestBuildToolsetGroup:
    """Tests for wiring settings into the toolset group."""

    def test_default_settings_enable_everything(self, make_settings):
        group = build_toolset_group(make_settings())

        assert group.everything_on is True
        assert list(group.toolsets) == ["documents", "context"]
        assert all(t.enabled for t in group.toolsets.values())

    def test_selected_toolsets_only(self, make_settings):
        group = build_toolset_group(make_settings(toolsets=["context"]))

        assert group.is_enabled("context") is True
        assert group.is_enabled("documents") is False

    def test_read_only_setting_reaches_every_toolset(self, make_settings):
        group = build_toolset_group(make_settings(read_only=True))

        assert all(t.read_only for t in group.toolsets.values())
        active = [t.name for t in group.toolsets["documents"].get_active_tools()]
        assert active == ["list_documents", "read_document"]

    def test_disabled_tools_setting(self, make_settings):
        group = build_toolset_group(make_settings(disabled_tools=["write_document"]))

        assert group.disabled_tools == {"write_document"}
        active = [t.name for t in group.toolsets["documents"].get_active_tools()]
        assert "write_document" not in active

    def test_unknown_toolset_raises(self, make_settings):
        with pytest.raises(ToolsetNotFoundError) as exc_info:
            build_toolset_group(make_settings(toolsets=["documents", "billing"]))

        assert exc_info.value.name == "billing"
