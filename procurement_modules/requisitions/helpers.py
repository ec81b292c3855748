"""Helpers for the requisition editor."""

import re
from collections.abc import Iterable

# Ledger descriptions may carry a "[REQ-001]" tag from the requisition they came from
_REQ_TAG = re.compile(r"\[REQ-[^\]]+\]")


def clean_description(text: str) -> str:
    """Strip requisition tags and surrounding whitespace."""
    return _REQ_TAG.sub("", text or "").strip()


def suggest_item_names(
    history: Iterable[str],
    query: str,
    limit: int = 5,
) -> list[str]:
    """
    Suggest line-item names from past descriptions.

    Matches are case-insensitive substring hits on ``query``, in the order
    they first appear in ``history``.  A name equal to ``query`` is left out
    since suggesting what was already typed is noise.
    """
    if not query or limit <= 0:
        return []
    needle = query.lower()
    seen: set[str] = set()
    matches: list[str] = []
    for raw in history:
        name = clean_description(raw)
        if not name or name in seen:
            continue
        seen.add(name)
        if needle in name.lower() and name != query:
            matches.append(name)
            if len(matches) == limit:
                break
    return matches
