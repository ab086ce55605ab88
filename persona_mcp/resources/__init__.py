"""MCP resources: persona:// data views and openapi:// documentation."""
