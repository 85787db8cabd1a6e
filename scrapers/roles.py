"""
Clinic Staffing Monitor - Role Extraction

Rota pages list who is booked on a shift as bracketed labels, e.g.
"Dr Smith (Optometrist)" or "[Assistant; Receptionist]". Roles are kept as
free text; downstream checks use case-insensitive substring matching.
"""

import re
from typing import Iterable


PAREN_PATTERN = re.compile(r"\(([^)]*)\)")
BRACKET_PATTERN = re.compile(r"\[([^\]]*)\]")
ROLE_SEPARATORS = re.compile(r"[,;&|]")


def extract_roles(text: str) -> list[str]:
    """
    Extract role labels from parenthesised and square-bracketed text.

    Parenthesised groups are collected first, then square-bracketed ones.
    Each group is split on , ; & | and blank tokens are dropped.
    Order is preserved and duplicates are kept.

    Args:
        text: Cell text

    Returns:
        List of role labels, possibly empty
    """
    if not text:
        return []

    groups = PAREN_PATTERN.findall(text) + BRACKET_PATTERN.findall(text)

    roles = []
    for group in groups:
        for token in ROLE_SEPARATORS.split(group):
            token = token.strip()
            if token:
                roles.append(token)
    return roles


def has_role(roles: Iterable[str], needle: str) -> bool:
    """Whether any role label contains needle, ignoring case."""
    needle = needle.lower()
    return any(needle in role.lower() for role in roles)


__all__ = ["extract_roles", "has_role"]
