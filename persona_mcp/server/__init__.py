"""MCP stdio server and FastAPI gateway."""
