import re
from unidecode import unidecode


def slugify(text):
    text = unidecode(text or "").lower()
    text = re.sub(r'[^a-z0-9]+', '-', text).strip('-')
    return text


def unique_slug(base, taken):
    """First of ``base``, ``base-2``, ``base-3``... not present in ``taken``."""
    if base not in taken:
        return base
    n = 2
    while f"{base}-{n}" in taken:
        n += 1
    return f"{base}-{n}"
