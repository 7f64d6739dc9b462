"""
Builders and doubles for testing code that generates stubs.

WorkspaceFactory writes pyproject.toml files with tomli-w, which is installed
by the `test` extra: pip install "stubforge[test]".
"""

from .factories import NamespaceFactory
from .spy import SpyReflector
from .workspace import WorkspaceFactory

__all__ = ["NamespaceFactory", "SpyReflector", "WorkspaceFactory"]
