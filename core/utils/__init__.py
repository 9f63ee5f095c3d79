"""
Utility modules for core functionality.

Modules:
- decorators: Utility decorators (timer, etc.)
"""

from .decorators import timer

__all__ = ["timer"]
