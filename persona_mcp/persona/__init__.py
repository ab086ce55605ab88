"""Persona API wire models, query helpers and HTTP client."""
