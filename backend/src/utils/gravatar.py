"""Gravatar avatar URLs derived from email addresses."""

import hashlib
from typing import Optional

GRAVATAR_BASE = "https://www.gravatar.com/avatar"


def derive_avatar_url(email: Optional[str], size: int = 200) -> Optional[str]:
    """
    Build the Gravatar URL for ``email``.

    The hash is taken over the trimmed, lowercased address, so the result
    does not depend on case or surrounding whitespace. Accounts without a
    Gravatar get a generated identicon.
    """
    if not email:
        return None
    normalized = email.strip().lower()
    # Gravatar keys avatars by the md5 of the address
    email_hash = hashlib.md5(normalized.encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"{GRAVATAR_BASE}/{email_hash}?s={size}&d=identicon"
