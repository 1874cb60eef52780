"""LIKE patterns built from user input."""

LIKE_ESCAPE = "\\"

_LIKE_SPECIALS = str.maketrans({
    LIKE_ESCAPE: LIKE_ESCAPE * 2,
    "%": LIKE_ESCAPE + "%",
    "_": LIKE_ESCAPE + "_",
})


def escape_like(text: str) -> str:
    """Make ``text`` match itself literally inside a LIKE pattern.

    >>> escape_like("KYX_100%")
    'KYX\\\\_100\\\\%'
    """
    return text.translate(_LIKE_SPECIALS)


def contains_pattern(text: str) -> str:
    """Pattern matching any value that contains ``text``; pair with ``escape=LIKE_ESCAPE``."""
    return f"%{escape_like(text)}%"
