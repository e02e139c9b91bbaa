"""Shared Pydantic schemas."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    message: str
    error: str


class ArchiveResponse(BaseModel):
    files: list[str]
