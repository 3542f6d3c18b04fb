"""Language adapters — node/npm."""

from npmbuild.adapters.languages.node import NpmAdapter

__all__ = ["NpmAdapter"]
