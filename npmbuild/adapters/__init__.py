"""Adapters — tool bindings for the package manager.

Public re-exports for convenient access.
"""

from npmbuild.adapters.base import Adapter, ExecutionContext
from npmbuild.adapters.languages.node import NpmAdapter
from npmbuild.adapters.mock import MockNpmAdapter

__all__ = [
    "Adapter",
    "ExecutionContext",
    "MockNpmAdapter",
    "NpmAdapter",
]
