"""ztln - a versioned personal knowledge base.

Notes are immutable and content-addressed by UUID, linked into parent
chains and grouped under topics. Paths are named, movable pointers to the
newest note of a chain, like branches in git.
"""

from .errors import ZtlnError
from .organization import Organization
from .store import RepositoryStore

__all__ = ["Organization", "RepositoryStore", "ZtlnError"]
