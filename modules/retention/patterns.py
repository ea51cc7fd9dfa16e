from __future__ import annotations

from typing import Iterable


# Filename prefixes written by the generation adapters: <prefix>-<token>.png
PROVIDER_PREFIXES: tuple[str, ...] = ("gemini-image", "fashion-tryOn", "product-image")

DEFAULT_PATTERNS: tuple[str, ...] = tuple(f"{p}-*.png" for p in PROVIDER_PREFIXES)


def matches(name: str, pattern: str) -> bool:
    """Full-string wildcard match where ``*`` stands for zero or more characters.

    Every other character is literal, so ``.`` or ``(`` in a pattern never act as
    regex syntax.
    """
    parts = pattern.split("*")
    if len(parts) == 1:
        return name == pattern

    head, *middle, tail = parts
    if not name.startswith(head) or not name.endswith(tail):
        return False
    if len(name) < len(head) + len(tail):
        return False

    pos = len(head)
    end = len(name) - len(tail)
    for seg in middle:
        if not seg:
            continue
        idx = name.find(seg, pos, end)
        if idx < 0:
            return False
        pos = idx + len(seg)
    return True


def matches_any(name: str, patterns: Iterable[str]) -> bool:
    return any(matches(name, p) for p in patterns)
