# File: schemaforge/errors.py
"""
SchemaForge - Error Taxonomy
============================
Exceptions and warnings raised by the analysis and generation pipeline.

    SchemaForgeError            base class for everything raised here
    ├── SchemaFormatError       raw schema input is structurally invalid
    └── TableNotFoundError      a named table is not part of the analysis

    UnknownGeneratorWarning     soft failure: a synthetic-value recipe is
                                unknown and a fallback value was used
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.errors")


class SchemaForgeError(Exception):
    """Base class for all SchemaForge errors."""


class SchemaFormatError(SchemaForgeError, ValueError):
    """
    Raised when a raw schema description cannot be normalized.

    ``reason`` is the human-readable explanation; ``path`` optionally points
    at the offending location (``tables[2].columns``).
    """

    def __init__(self, reason: str, path: Optional[str] = None) -> None:
        self.reason: str = reason
        self.path: Optional[str] = path
        message: str = f"{path}: {reason}" if path else reason
        super().__init__(message)


class TableNotFoundError(SchemaForgeError, LookupError):
    """Raised when a generation or preview call names a table that does not exist."""

    def __init__(self, table_name: str, available: Sequence[str] = ()) -> None:
        self.table_name: str = table_name
        self.available: List[str] = list(available)
        message: str = f"Table '{table_name}' not found in schema analysis."
        if self.available:
            message += f" Available tables: {', '.join(self.available)}"
        super().__init__(message)


class UnknownGeneratorWarning(UserWarning):
    """Issued when a declared generator category/subtype has no implementation."""


__all__: List[str] = [
    "SchemaForgeError",
    "SchemaFormatError",
    "TableNotFoundError",
    "UnknownGeneratorWarning",
]

logger.debug("schemaforge.errors loaded.")
