"""toolgate: an MCP server that serves only the toolsets its policy allows."""
