import html
from typing import Optional

import bleach


def sanitize_text(value: Optional[str]) -> str:
    """Clean a user-supplied string before it is stored.

    - Removes NULL bytes
    - Strips HTML tags using bleach.clean(..., strip=True)
    - Decodes the entities bleach escapes, so "&" and "<" are stored as typed
    - Trims whitespace
    """
    if value is None:
        return ""
    val = value.replace("\x00", "")
    val = html.unescape(bleach.clean(val, tags=[], strip=True))
    return val.strip()
