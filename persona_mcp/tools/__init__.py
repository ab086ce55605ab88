"""MCP tools backed by the Persona API."""
