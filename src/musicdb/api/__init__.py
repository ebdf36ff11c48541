"""API layer: canonical CRUD/list surface for music records.

This is what a transport layer (HTTP handlers, CLI) calls. Rules:

1. No SQLAlchemy statements here - only call repo functions
2. Validate input before any repo write
3. Return Pydantic models only
4. Surface musicdb.errors exceptions unchanged; mapping them to responses is
   the caller's job
"""
