"""
Utilities Package.

Naming helpers used across capture runs.
"""

from .text import slugify, step_name_from_url

__all__ = [
    "slugify",
    "step_name_from_url",
]
