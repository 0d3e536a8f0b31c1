from typing import Optional


def is_not_modified(if_none_match: Optional[str], entity_tag: str) -> bool:
    """True when the client's If-None-Match is exactly the current entity tag.

    Only a single, byte-for-byte equal tag counts: no weak comparison,
    no comma-separated lists and no ``*``.
    """
    return if_none_match is not None and if_none_match == entity_tag
