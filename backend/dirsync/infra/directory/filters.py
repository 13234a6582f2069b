"""LDAP search filter helpers (RFC 4515)."""

from __future__ import annotations

from collections.abc import Sequence

from ldap3.utils.conv import escape_filter_chars


def combine_filter(parts: Sequence[str], operator: str = "&") -> str:
    """Join filter fragments under *operator*.

    Empty fragments are dropped; bare fragments like ``cn=*`` get wrapped
    in parentheses.
    """
    combined = "(" + operator
    for part in parts:
        if not part:
            continue
        if part[0] != "(":
            part = f"({part})"
        combined += part
    return combined + ")"


def combine_filter_with_and(parts: Sequence[str]) -> str:
    return combine_filter(parts, "&")


def combine_filter_with_or(parts: Sequence[str]) -> str:
    return combine_filter(parts, "|")


def user_search_filter(term: str, attributes: Sequence[str]) -> str:
    """Filter fragment matching *term* as a prefix of any of *attributes*.

    Returns an empty string for an empty term, which places no restriction
    on the search.
    """
    term = term.strip()
    if not term or not attributes:
        return ""
    escaped = escape_filter_chars(term)
    parts = [f"{attribute}={escaped}*" for attribute in attributes]
    if len(parts) == 1:
        return f"({parts[0]})"
    return combine_filter_with_or(parts)
