"""Byte-budget truncation for tool output and error text."""

from __future__ import annotations

DEFAULT_MARKER = "\n… [output truncated by {removed} bytes]"


def _fit_prefix(text: str, budget: int) -> str:
    """Longest character-aligned prefix of ``text`` whose UTF-8 size is <= budget."""
    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if len(text[:mid].encode("utf-8")) <= budget:
            lo = mid
        else:
            hi = mid - 1
    return text[:lo]


def truncate(text: str, max_bytes: int, marker: str = DEFAULT_MARKER) -> str:
    """Cap ``text`` to ``max_bytes`` UTF-8 bytes, suffixing how much was cut.

    ``marker`` is a format string with a ``{removed}`` field. The result,
    suffix included, never exceeds the budget and never splits a character,
    so truncating an already truncated string returns it unchanged.
    """
    max_bytes = max(0, max_bytes)
    total = len(text.encode("utf-8"))
    if total <= max_bytes:
        return text

    def size_with_suffix(count: int) -> int:
        prefix_bytes = len(text[:count].encode("utf-8"))
        suffix = marker.format(removed=total - prefix_bytes)
        return prefix_bytes + len(suffix.encode("utf-8"))

    # Total size is non-decreasing in the prefix length: each added character
    # grows the prefix by at least one byte and shrinks the count by at most
    # one digit.
    if size_with_suffix(0) > max_bytes:
        return _fit_prefix(text, max_bytes)

    lo, hi = 0, len(text)
    while lo < hi:
        mid = (lo + hi + 1) // 2
        if size_with_suffix(mid) <= max_bytes:
            lo = mid
        else:
            hi = mid - 1

    prefix = text[:lo]
    removed = total - len(prefix.encode("utf-8"))
    return prefix + marker.format(removed=removed)
