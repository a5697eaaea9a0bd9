"""Schemas — Pydantic models for data crossing the HTTP boundary."""
