# File: schemaforge/utils.py
"""
SchemaForge - Utility Functions & Helpers
=========================================
String transformation, singularization strategies, file I/O and timing
helpers used throughout the pipeline.

- Case conversions are ``@lru_cache``-decorated: the code synthesizer asks
  for the same table/column names many times per run.
- File writes go through a temp file plus ``os.replace`` so a crash never
  leaves a half-written file behind.
- Standard library only.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple, runtime_checkable

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("schemaforge.utils")

# ---------------------------------------------------------------------------
# Pre-compiled regex patterns
# ---------------------------------------------------------------------------

_NON_ALPHANUM_RE: re.Pattern[str] = re.compile(r"[^a-zA-Z0-9]")
_SPLIT_WORDS_RE: re.Pattern[str] = re.compile(
    r"[A-Z]?[a-z]+|[A-Z]+(?=[A-Z][a-z]|\d|\b)|[A-Z]|\d+"
)
_JS_IDENTIFIER_RE: re.Pattern[str] = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")


# ---------------------------------------------------------------------------
# Cached string transformation functions
# ---------------------------------------------------------------------------


@functools.lru_cache(maxsize=None)
def to_camel_case(name: str) -> str:
    """
    Convert any string to camelCase.

    Examples:
        >>> to_camel_case("user_profile")
        'userProfile'
        >>> to_camel_case("HTTPResponse")
        'httpResponse'
    """
    if not name:
        return ""
    words: Tuple[str, ...] = _extract_words(name)
    if not words:
        return ""
    return words[0] + "".join(w.capitalize() for w in words[1:])


@functools.lru_cache(maxsize=None)
def capitalize_first(name: str) -> str:
    """Upper-case the first character only (``order_item`` → ``Order_item``)."""
    if not name:
        return ""
    return name[0].upper() + name[1:]


@functools.lru_cache(maxsize=None)
def js_identifier(name: str) -> str:
    """
    Return *name* when it is already a valid JavaScript identifier,
    otherwise its camelCase form (``order-items`` → ``orderItems``).
    """
    if _JS_IDENTIFIER_RE.match(name):
        return name
    camel: str = to_camel_case(name)
    if not camel:
        return "_"
    if camel[0].isdigit():
        return f"_{camel}"
    return camel


@functools.lru_cache(maxsize=None)
def _extract_words(name: str) -> Tuple[str, ...]:
    """
    Extract individual words from any casing style.

    Returns a tuple (hashable for LRU cache) of lowercase word strings.
    """
    cleaned: str = _NON_ALPHANUM_RE.sub(" ", name)
    words: List[str] = _SPLIT_WORDS_RE.findall(cleaned)
    return tuple(w.lower() for w in words if w)


# ---------------------------------------------------------------------------
# Singularization strategies
# ---------------------------------------------------------------------------


@runtime_checkable
class Singularizer(Protocol):
    """Anything with a ``singularize(word) -> word`` capability."""

    def singularize(self, word: str) -> str:
        ...


class SimpleSingularizer:
    """
    Mechanical singularization: ``ies`` → ``y``, otherwise a trailing
    ``s`` is dropped unless the word ends in ``ss``.

    Irregular plurals (``people``, ``children``) pass through unchanged.
    """

    def singularize(self, word: str) -> str:
        if word.endswith("ies"):
            return word[:-3] + "y"
        if word.endswith("s") and not word.endswith("ss"):
            return word[:-1]
        return word

    def __repr__(self) -> str:
        return "<SimpleSingularizer>"


# Reverse irregulars common in database schemas
_REVERSE_IRREGULARS: Dict[str, str] = {
    "people": "person",
    "children": "child",
    "men": "man",
    "women": "woman",
    "mice": "mouse",
    "geese": "goose",
    "teeth": "tooth",
    "feet": "foot",
    "data": "datum",
    "indices": "index",
    "matrices": "matrix",
    "vertices": "vertex",
    "axes": "axis",
    "crises": "crisis",
    "analyses": "analysis",
    "statuses": "status",
    "addresses": "address",
}


class EnglishSingularizer:
    """
    Irregular-aware singularization.

    Looks the word up in an irregulars table first, then applies suffix
    rules in reverse order of English pluralisation.
    """

    def __init__(self, irregulars: Optional[Dict[str, str]] = None) -> None:
        self._irregulars: Dict[str, str] = dict(_REVERSE_IRREGULARS)
        if irregulars:
            self._irregulars.update({k.lower(): v for k, v in irregulars.items()})

    def singularize(self, word: str) -> str:
        if not word:
            return ""

        lower: str = word.lower()

        if lower in self._irregulars:
            singular: str = self._irregulars[lower]
            if word[0].isupper():
                return singular[0].upper() + singular[1:]
            return singular

        if lower.endswith("ies") and len(word) > 3:
            return word[:-3] + "y"
        if lower.endswith("ves"):
            return word[:-3] + "f"
        if lower.endswith("oes") and len(word) > 3:
            return word[:-2]
        if lower.endswith(("ses", "xes", "zes", "ches", "shes")):
            return word[:-2]
        if lower.endswith("s") and not lower.endswith("ss"):
            return word[:-1]

        return word

    def __repr__(self) -> str:
        return f"<EnglishSingularizer {len(self._irregulars)} irregulars>"


# ---------------------------------------------------------------------------
# File I/O helpers
# ---------------------------------------------------------------------------


def write_file(path: Path, content: str, atomic: bool = True) -> int:
    """
    Write *content* to *path*, creating parent directories.

    When *atomic* is True, writes to a temporary file in the same
    directory first and then renames it over the target.

    Returns the number of bytes written.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    encoded: bytes = content.encode("utf-8")

    if atomic:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=f".{path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(encoded)
            os.replace(tmp_path, str(path))
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise
    else:
        path.write_bytes(encoded)

    logger.debug("Wrote %d bytes to %s", len(encoded), path)
    return len(encoded)


# ---------------------------------------------------------------------------
# Checksum & metrics
# ---------------------------------------------------------------------------


def sha256_hex(content: str) -> str:
    """Return SHA-256 hex digest of a string."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def count_lines(content: str) -> int:
    """Count the number of lines in a string."""
    if not content:
        return 0
    return content.count("\n") + (1 if not content.endswith("\n") else 0)


# ---------------------------------------------------------------------------
# Timer context manager
# ---------------------------------------------------------------------------


class Timer:
    """
    Context-manager timer for profiling pipeline steps.

    Usage:
        with Timer("analyze") as t:
            ...
        print(t.elapsed)
    """

    __slots__ = ("label", "start_time", "end_time", "elapsed")

    def __init__(self, label: str = "operation") -> None:
        self.label: str = label
        self.start_time: float = 0.0
        self.end_time: float = 0.0
        self.elapsed: float = 0.0

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[BaseException],
        exc_tb: Optional[object],
    ) -> None:
        self.end_time = time.perf_counter()
        self.elapsed = self.end_time - self.start_time
        logger.debug("Timer [%s]: %.4f seconds", self.label, self.elapsed)

    def __repr__(self) -> str:
        return f"<Timer {self.label}: {self.elapsed:.4f}s>"


__all__: List[str] = [
    "to_camel_case",
    "capitalize_first",
    "js_identifier",
    "Singularizer",
    "SimpleSingularizer",
    "EnglishSingularizer",
    "write_file",
    "sha256_hex",
    "count_lines",
    "Timer",
]

logger.debug("schemaforge.utils loaded — %d public symbols.", len(__all__))
