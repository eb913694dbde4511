import re
from unidecode import unidecode

EMPTY_SLUG = "n-a"


def slugify(text, separator="-"):
    if text is None or (isinstance(text, str) and not text.strip()):
        raise ValueError("slugify() requires a non-empty string")
    text = unidecode(str(text)).lower()
    text = re.sub(r"[^a-z0-9]+", separator, text).strip(separator)
    return text or EMPTY_SLUG.replace("-", separator)
