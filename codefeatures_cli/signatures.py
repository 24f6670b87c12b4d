"""Type-signature parsing: find every generic type usage in a signature.

A signature such as ``HashMap<String, List<Integer>>`` denotes the
parameterized types ``HashMap<String, List<Integer>>`` and ``List<Integer>``
plus their raw forms ``HashMap`` and ``List``. Each is counted in a mapping
owned by the caller. Bare element types (``String``) are not recorded.

Parsing uses an explicit work-list rather than recursion, and rejects
signatures nested deeper than ``max_depth`` before touching the counts.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import List, MutableMapping, Optional

from .config import DEFAULT_MAX_SIGNATURE_DEPTH

# Characters that end a type name inside a parameter list
_SEPARATORS = frozenset("&|, .\t")

_SUPER_WILDCARD = re.compile(r"\?\s*super\s+.+")
_EXTENDS_WILDCARD = re.compile(r"\?\s*extends\s+.+")


class WildcardKind(str, Enum):
    SUPER = "super"
    EXTENDS = "extends"
    OTHER = "other"


class SignatureTooComplexError(ValueError):
    """Raised when a signature nests generics deeper than allowed."""

    def __init__(self, signature: str, depth: int, max_depth: int) -> None:
        super().__init__(
            f"Generic nesting depth {depth} exceeds limit {max_depth}: {signature!r}"
        )
        self.signature = signature
        self.depth = depth
        self.max_depth = max_depth


def nesting_depth(signature: str) -> int:
    """Return the deepest ``<`` nesting in *signature*; stray ``>`` are ignored."""
    depth = deepest = 0
    for ch in signature:
        if ch == "<":
            depth += 1
            deepest = max(deepest, depth)
        elif ch == ">" and depth > 0:
            depth -= 1
    return deepest


def raw_type(signature: str) -> str:
    """Erase the parameter list of *signature*.

    The text before the first ``<`` is joined with whatever follows the last
    ``>``, so ``Outer<T>.Inner`` becomes ``Outer.Inner``.
    """
    bracket = signature.find("<")
    if bracket < 0:
        return signature.strip()
    raw = signature[:bracket].strip()
    if not signature.endswith(">"):
        raw += signature[signature.rfind(">") + 1:].strip()
    return raw


def found_type(signature: str, counts: MutableMapping[str, int]) -> None:
    """Count *signature* and its raw form, dropping a trailing varargs ``...``."""
    type_name = signature[:-3].strip() if signature.endswith("...") else signature.strip()
    counts[type_name] = counts.get(type_name, 0) + 1

    erased = raw_type(type_name)
    counts[erased] = counts.get(erased, 0) + 1


def _split_top_level(signature: str, separator: str) -> List[str]:
    """Split on *separator* wherever it appears outside angle brackets."""
    segments = []
    depth = 0
    last = 0
    for i, ch in enumerate(signature):
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth -= 1
        elif ch == separator and depth == 0:
            segments.append(signature[last:i].strip())
            last = i + 1
    segments.append(signature[last:].strip())
    return segments


def _record_parameters(signature: str, counts: MutableMapping[str, int]) -> None:
    """Count every parameterized type nested inside the outer brackets."""
    starts: List[int] = []
    last_start = signature.index("<") + 1
    for i in range(last_start, signature.rfind(">")):
        ch = signature[i]
        if ch == "<":
            starts.append(last_start)
            last_start = i + 1
        elif ch == ">":
            # unmatched '>' is ignored
            if starts:
                found_type(signature[starts.pop():i + 1].strip(), counts)
        elif ch in _SEPARATORS:
            last_start = i + 1


def parse_generic_type(
    signature: str,
    counts: MutableMapping[str, int],
    max_depth: int = DEFAULT_MAX_SIGNATURE_DEPTH,
) -> None:
    """Record every generic type usage in *signature* into *counts*.

    Unions (``A<T> | B``) and top-level intersections (``A<T> & B<U>``) are
    split and each part parsed on its own. Signatures without ``<``, or
    starting with ``<``, record nothing.

    Raises:
        SignatureTooComplexError: nesting exceeds *max_depth*; *counts* is
            left untouched.
    """
    depth = nesting_depth(signature)
    if depth > max_depth:
        raise SignatureTooComplexError(signature, depth, max_depth)

    pending = [signature]
    while pending:
        name = pending.pop()
        if "<" not in name or name.startswith("<"):
            continue

        if "|" in name:
            pending.extend(reversed([part.strip() for part in name.split("|")]))
            continue

        if "&" in name:
            parts = _split_top_level(name, "&")
            # '&' only inside brackets (a bounded parameter) is not a split point
            if len(parts) > 1:
                pending.extend(reversed(parts))
                continue

        found_type(name, counts)
        _record_parameters(name, counts)


# ---------------------------------------------------------------------------
# Wildcards
# ---------------------------------------------------------------------------

def is_super_wildcard(signature: str) -> bool:
    return _SUPER_WILDCARD.search(signature) is not None


def is_extends_wildcard(signature: str) -> bool:
    return _EXTENDS_WILDCARD.search(signature) is not None


def is_other_wildcard(signature: str) -> bool:
    return (
        "?" in signature
        and not is_extends_wildcard(signature)
        and not is_super_wildcard(signature)
    )


def classify_wildcard(signature: str) -> Optional[WildcardKind]:
    """Classify the wildcard in *signature*, or return ``None`` if it has none.

    ``? super X`` takes precedence over ``? extends X``; any other ``?`` is
    :attr:`WildcardKind.OTHER`.
    """
    if is_super_wildcard(signature):
        return WildcardKind.SUPER
    if is_extends_wildcard(signature):
        return WildcardKind.EXTENDS
    if "?" in signature:
        return WildcardKind.OTHER
    return None
