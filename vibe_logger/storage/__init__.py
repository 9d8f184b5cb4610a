"""Document storage for session logs."""

from .docs_client import GoogleDocsClient

__all__ = ["GoogleDocsClient"]
