"""
The toolsets this server ships, and how configuration turns them on.

Two toolsets are defined:

    documents   read:  list_documents, read_document
                write: write_document
    context     read:  get_server_info

build_toolset_group() is the single place where settings meet the toolset
policy in toolsets.py:

    settings.read_only       -> ToolsetGroup(read_only=...)
    settings.disabled_tools  -> ToolsetGroup(disabled_tools=...)
    settings.toolsets        -> ToolsetGroup.enable_toolsets(...)

To add a tool, write the handler here and add it to its toolset as a read
tool (never changes state) or a write tool (does). Read-only mode relies on
that classification being honest.
"""

from pathlib import Path

from toolgate.config import Settings
from toolgate.toolsets import Toolset, ToolsetGroup, new_server_tool

SERVER_NAME = "toolgate"


def _resolve_document(documents_dir: Path, name: str) -> Path:
    """
    Resolve a document name inside the documents directory.

    Raises:
        PermissionError: If the name points outside the directory
            (e.g. "../secrets.txt" or an absolute path)
    """
    root = documents_dir.resolve()
    path = (root / name).resolve()
    if path == root or not path.is_relative_to(root):
        raise PermissionError(f"Access denied: '{name}' is outside the documents directory")
    return path


def documents_toolset(documents_dir: Path) -> Toolset:
    """Build the documents toolset rooted at documents_dir."""

    def list_documents() -> list[str]:
        """List the names of all documents, sorted alphabetically."""
        if not documents_dir.is_dir():
            return []
        return sorted(p.name for p in documents_dir.iterdir() if p.is_file())

    def read_document(name: str) -> str:
        """Return the contents of a document by file name."""
        path = _resolve_document(documents_dir, name)
        if not path.is_file():
            return f"Error: document '{name}' not found."
        return path.read_text(encoding="utf-8")

    def write_document(name: str, content: str) -> str:
        """Create or overwrite a document with the given content."""
        path = _resolve_document(documents_dir, name)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        return f"Wrote {len(content)} characters to '{name}'."

    return (
        Toolset("documents", "Read, list and write company documents")
        .add_read_tools(
            new_server_tool(list_documents, read_only_hint=True),
            new_server_tool(read_document, read_only_hint=True),
        )
        .add_write_tools(new_server_tool(write_document))
    )


def context_toolset(group: ToolsetGroup) -> Toolset:
    """Build the context toolset, which reports on the group it belongs to."""

    def get_server_info() -> dict:
        """Describe this server: read-only mode, enabled toolsets and active tools."""
        enabled = [name for name in group.toolsets if group.is_enabled(name)]
        active = [
            tool.name
            for toolset in group.toolsets.values()
            for tool in toolset.get_active_tools()
        ]
        return {
            "name": SERVER_NAME,
            "read_only": group.read_only,
            "enabled_toolsets": enabled,
            "active_tools": active,
        }

    return Toolset("context", "Information about this server").add_read_tools(
        new_server_tool(get_server_info, read_only_hint=True),
    )


def build_toolset_group(settings: Settings) -> ToolsetGroup:
    """
    Create every toolset and enable the ones the settings ask for.

    Raises:
        ToolsetNotFoundError: If settings.toolsets names an unknown toolset
    """
    group = ToolsetGroup(
        read_only=settings.read_only,
        disabled_tools=settings.disabled_tools,
    )
    group.add_toolset(documents_toolset(settings.documents_dir))
    group.add_toolset(context_toolset(group))
    group.enable_toolsets(settings.toolsets)
    return group
