"""
Raw variable name resolution.

A ``variableStart`` cell names the raw variable behind a harmonized one,
per applicability window:

    "cycle1::SMK_01, cycle2::SMKA_01, [SMK_01]"
"""

import logging
import re
from typing import List, Optional

logger = logging.getLogger(__name__)

_QUALIFIED = re.compile(r"^([^\s:\[\]]+)::([^\s:\[\]]+)$")
_FALLBACK = re.compile(r"^\[([^\[\],]+)\]$")
_PLAIN = re.compile(r"^[A-Za-z_.][A-Za-z0-9_.]*$")
DERIVED_PREFIXES = ("DerivedVar::", "Func::")


def _segments(expression: str) -> List[str]:
    return [part.strip() for part in expression.split(",") if part.strip()]


def resolve_variable_start(expression: Optional[str], window: str) -> Optional[str]:
    """
    Resolve the raw variable name for one window.

    An exact ``window::name`` match wins. Otherwise the first bare
    ``[name]`` fallback is used, then a plain bare name. Derived
    expressions and anything else resolve to None.
    """
    if expression is None:
        return None
    clean = str(expression).strip()
    if not clean or clean.startswith(DERIVED_PREFIXES):
        return None

    segments = _segments(clean)
    for segment in segments:
        match = _QUALIFIED.match(segment)
        if match and match.group(1) == window:
            return match.group(2)

    fallbacks = [m.group(1).strip() for m in (_FALLBACK.match(s) for s in segments) if m]
    if fallbacks:
        if len(fallbacks) > 1:
            logger.debug("Multiple fallbacks in %r, using %r", clean, fallbacks[0])
        return fallbacks[0]

    if len(segments) == 1 and _PLAIN.match(segments[0]):
        return segments[0]
    return None


def derived_dependencies(expression: Optional[str]) -> List[str]:
    """Raw variables named in ``DerivedVar::[a, b]``."""
    if expression is None:
        return []
    clean = str(expression).strip()
    if not clean.startswith("DerivedVar::"):
        return []
    body = clean[len("DerivedVar::"):].strip()
    if body.startswith("[") and body.endswith("]"):
        body = body[1:-1]
    return _segments(body)
