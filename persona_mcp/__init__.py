"""MCP server exposing the Persona identity-verification API."""

from persona_mcp.envelope import EncodedRequest, EnvelopeTranslator, decode, encode

__version__ = "1.0.0"

__all__ = ["EncodedRequest", "EnvelopeTranslator", "decode", "encode", "__version__"]
