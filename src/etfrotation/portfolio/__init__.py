"""
Rotation universe definitions.
"""

from .universe import Universe

__all__ = [
    "Universe",
]
