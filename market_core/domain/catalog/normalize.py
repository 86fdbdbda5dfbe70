# market_core/domain/catalog/normalize.py
import re
import unicodedata

# Longer spellings first so "kgs" is not read as "kg" + "s".
_UNIT_ALIASES = {
    "kilograms": "kg",
    "kilogram": "kg",
    "kgs": "kg",
    "kg": "kg",
    "grams": "g",
    "gram": "g",
    "gms": "g",
    "gm": "g",
    "g": "g",
    "millilitres": "ml",
    "millilitre": "ml",
    "milliliters": "ml",
    "milliliter": "ml",
    "mls": "ml",
    "ml": "ml",
    "litres": "l",
    "litre": "l",
    "liters": "l",
    "liter": "l",
    "ltr": "l",
    "lt": "l",
    "l": "l",
    "packs": "pack",
    "pack": "pack",
    "pck": "pack",
    "pk": "pack",
    "pieces": "pack",
    "piece": "pack",
    "pcs": "pack",
    "pc": "pack",
}

_UNIT_PATTERN = "|".join(sorted(_UNIT_ALIASES, key=len, reverse=True))

_QUANTITY_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(" + _UNIT_PATTERN + r")(?![^\W\d_])")
_MULTIPACK_RE = re.compile(r"(\d)\s*x\s*(?=\d)")

_APOSTROPHE_RE = re.compile(r"['\u2019`]")
# Anything that is not a word character, whitespace, dot, percent or hyphen.
_NOISE_RE = re.compile(r"[^\w\s.%\-]")
_STRAY_DOT_RE = re.compile(r"(?<!\d)\.|\.(?!\d)")
_DASH_RUN_RE = re.compile(r"-{2,}")
_LOOSE_DASH_RE = re.compile(r"(?<![^\W_])-|-(?![^\W_])")
_WS_RE = re.compile(r"\s+")

_SLUG_RE = re.compile(r"[^a-z0-9]+")


def normalize(raw_name: str) -> str:
    """Reduce a product name to the form used for exact-match comparison.

    Lower-cases, drops punctuation that says nothing about which product it
    is, and rewrites quantities so that "10KG", "10 Kg" and "10kg" all become
    "10 kg". Brand words are kept. ``normalize(normalize(x)) == normalize(x)``.
    """
    if not raw_name:
        return ""

    s = unicodedata.normalize("NFKC", raw_name)
    s = unicodedata.normalize("NFKC", s.lower())
    s = s.replace("×", "x")  # multiplication sign

    s = _APOSTROPHE_RE.sub("", s)
    s = s.replace("_", " ")
    s = _NOISE_RE.sub(" ", s)
    s = _DASH_RUN_RE.sub(" ", s)
    s = _LOOSE_DASH_RE.sub(" ", s)
    s = _STRAY_DOT_RE.sub(" ", s)

    s = _MULTIPACK_RE.sub(r"\1 x ", s)
    s = _QUANTITY_RE.sub(lambda m: f"{m.group(1)} {_UNIT_ALIASES[m.group(2)]}", s)

    return _WS_RE.sub(" ", s).strip()


def slugify(text: str) -> str:
    return _SLUG_RE.sub("-", (text or "").lower()).strip("-")
