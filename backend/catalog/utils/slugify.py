"""Slug helper producing URL-safe identifiers from Icelandic titles."""

import re
import unicodedata

# Letters NFKD cannot decompose into ASCII
_ICELANDIC = {
    "Ð": "D",
    "ð": "d",
    "Þ": "TH",
    "þ": "th",
    "Æ": "AE",
    "æ": "ae",
    "Ö": "O",
    "ö": "o",
}


def slugify(s: str) -> str:
    """Return a lower-case, diacritic-free slug or "" if nothing survives.

    >>> slugify("Tölvunarfræðideild")
    'tolvunarfraedideild'
    """
    if not isinstance(s, str):
        return ""
    s = "".join(_ICELANDIC.get(ch, ch) for ch in s)
    s = unicodedata.normalize("NFKD", s).encode("ascii", "ignore").decode("ascii")
    s = re.sub(r"[^a-z0-9\s-]", "", s.lower())
    return re.sub(r"[\s-]+", "-", s).strip("-")
