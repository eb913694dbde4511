"""
Label Utilities

Derive human-readable labels, URL paths and table names from List keys and
field paths ("postCategory", "created_at", "Post Category").
"""

import re

_WORD_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|[_\-\s]+")

# Irregular nouns that show up as List keys
_IRREGULAR_PLURALS = {
    "person": "people",
    "child": "children",
    "man": "men",
    "woman": "women",
    "mouse": "mice",
}
_IRREGULAR_SINGULARS = {plural: singular for singular, plural in _IRREGULAR_PLURALS.items()}


def split_words(key: str) -> list[str]:
    """Split camelCase, snake_case, kebab-case and spaced keys into words."""
    return [word for word in _WORD_BOUNDARY.split(key or "") if word]


def key_to_label(key: str) -> str:
    """'postCategory' -> 'Post Category', 'created_at' -> 'Created At'"""
    return " ".join(word[:1].upper() + word[1:] for word in split_words(key))


def snake_case(key: str) -> str:
    """'PostCategory' -> 'post_category'"""
    return "_".join(word.lower() for word in split_words(key))


def kebab_case(key: str) -> str:
    """'Post Category' -> 'post-category'"""
    return "-".join(word.lower() for word in split_words(key))


def _match_case(source: str, replacement: str) -> str:
    if source[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def plural(word: str) -> str:
    """Pluralize the last word of a label: 'Post Category' -> 'Post Categories'"""
    if not word:
        return word
    head, _, last = word.rpartition(" ")
    lower = last.lower()
    if lower in _IRREGULAR_PLURALS:
        result = _match_case(last, _IRREGULAR_PLURALS[lower])
    elif lower in _IRREGULAR_SINGULARS:
        result = last
    elif re.search(r"[^aeiou]y$", lower):
        result = last[:-1] + "ies"
    elif re.search(r"(s|x|z|ch|sh)$", lower):
        result = last + "es"
    else:
        result = last + "s"
    return f"{head} {result}" if head else result


def singular(word: str) -> str:
    """Singularize the last word of a label: 'Post Categories' -> 'Post Category'"""
    if not word:
        return word
    head, _, last = word.rpartition(" ")
    lower = last.lower()
    if lower in _IRREGULAR_SINGULARS:
        result = _match_case(last, _IRREGULAR_SINGULARS[lower])
    elif lower.endswith("ies") and len(lower) > 3:
        result = last[:-3] + "y"
    elif re.search(r"(ss|x|z|ch|sh)es$", lower):
        result = last[:-2]
    elif lower.endswith("s") and not lower.endswith("ss"):
        result = last[:-1]
    else:
        result = last
    return f"{head} {result}" if head else result
