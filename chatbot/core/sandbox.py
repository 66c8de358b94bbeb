"""Sandboxed upload access - ensures served and stored files stay within the uploads directory."""

from pathlib import Path

from chatbot.core.config import settings


class SandboxError(Exception):
    pass


def resolve_upload_path(filename: str) -> Path:
    """Resolve a filename within the uploads directory. Raises SandboxError if it escapes."""
    uploads_dir = settings.uploads_dir.resolve()
    resolved = (uploads_dir / filename).resolve()

    if resolved == uploads_dir or not resolved.is_relative_to(uploads_dir):
        raise SandboxError(f"Path '{filename}' escapes the uploads directory")

    return resolved
