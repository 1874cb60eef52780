"""Redemption code generation and parsing."""

import re
import secrets
import string

CODE_PREFIX = "KYX"
CODE_RANDOM_LENGTH = 8
CODE_ALPHABET = string.ascii_letters + string.digits

# Accepted format for admin-uploaded codes
UPLOAD_CODE_PATTERN = re.compile(r"^[A-Za-z0-9_-]{6,64}$")
_SEPARATORS = re.compile(r"[,;，；\s]+")


def generate_redemption_code(length: int = CODE_RANDOM_LENGTH) -> str:
    """Generate a code like ``KYXa8Fk2Q9z``."""
    return CODE_PREFIX + "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def generate_unique_codes(count: int, existing: set[str] | None = None) -> list[str]:
    """Generate ``count`` distinct codes not present in ``existing``."""
    taken = set(existing or ())
    codes: list[str] = []
    while len(codes) < count:
        code = generate_redemption_code()
        if code in taken:
            continue
        taken.add(code)
        codes.append(code)
    return codes


def is_valid_upload_code(code: str) -> bool:
    return bool(UPLOAD_CODE_PATTERN.match(code))


def parse_uploaded_codes(content: str) -> tuple[list[str], list[str], int]:
    """Split uploaded text into codes.

    Returns:
        (unique valid codes in file order, invalid tokens, total token count)
    """
    tokens = [t for t in _SEPARATORS.split(content) if t]
    valid: list[str] = []
    invalid: list[str] = []
    seen: set[str] = set()
    for token in tokens:
        if not is_valid_upload_code(token):
            invalid.append(token)
            continue
        if token in seen:
            continue
        seen.add(token)
        valid.append(token)
    return valid, invalid, len(tokens)
