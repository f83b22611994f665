"""
Repository layer for data access.

Provides the generic Repository following the Repository pattern,
isolating store access from domain code.
"""

from datarepo.repositories.repository import Repository

__all__ = ["Repository"]
