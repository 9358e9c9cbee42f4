"""
Utility Functions
=================
Schema validation helpers.
"""

from .schema_validation import (
    validate_against_schema,
    validate_forwarded_base_mod_options,
)

__all__ = [
    "validate_against_schema",
    "validate_forwarded_base_mod_options",
]
