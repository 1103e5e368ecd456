import re

CHEMICAL_ID_MAX_LENGTH = 50

_NON_ALNUM = re.compile(r"[^a-z0-9\s]")
_WHITESPACE = re.compile(r"\s+")
_SLUG = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


def derive_chemical_id(name: str) -> str:
    """Stable id for a chemical: lowercase letters, digits and single hyphens."""
    chemical_id = _NON_ALNUM.sub("", name.lower()).strip()
    chemical_id = _WHITESPACE.sub("-", chemical_id)
    return chemical_id[:CHEMICAL_ID_MAX_LENGTH].strip("-")


def slugify(name: str) -> str:
    return _WHITESPACE.sub("-", _NON_ALNUM.sub(" ", name.lower()).strip())


def is_valid_slug(slug: str) -> bool:
    return bool(_SLUG.match(slug))
