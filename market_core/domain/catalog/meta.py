# market_core/domain/catalog/meta.py
import re
from dataclasses import dataclass
from typing import Optional, Protocol

_SIZE_UNITS = {
    "kilograms": "kg",
    "kilogram": "kg",
    "kgs": "kg",
    "kg": "kg",
    "grams": "g",
    "gram": "g",
    "gms": "g",
    "gm": "g",
    "g": "g",
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
}

_SIZE_RE = re.compile(
    r"(\d+(?:[.,]\d+)?)\s?("
    + "|".join(sorted(_SIZE_UNITS, key=len, reverse=True))
    + r")(?![a-z])",
    re.IGNORECASE,
)
_MULTIPACK_RE = re.compile(r"(\d+)\s?[x×]\s?(\d+)(?![\d.])", re.IGNORECASE)
_NUMERIC_RE = re.compile(r"^[\d.,×x/%-]+$", re.IGNORECASE)
_TOKEN_STRIP = "()[]{},;:'\"“”"


@dataclass(frozen=True)
class ProductMeta:
    brand: Optional[str] = None
    size: Optional[str] = None


class MetaExtractor(Protocol):
    """Guesses brand and size from a raw product name.

    Only used to fill empty product fields, never to decide identity, so an
    implementation should prefer returning None over guessing badly.
    """

    def extract(self, raw_name: str) -> ProductMeta: ...


class RegexMetaExtractor:
    """Token scan: first quantity-looking token is the size, a capitalised
    leading word is the brand."""

    def extract(self, raw_name: str) -> ProductMeta:
        if not raw_name or not raw_name.strip():
            return ProductMeta()
        return ProductMeta(brand=self._brand(raw_name), size=self._size(raw_name))

    def _size(self, raw_name: str) -> Optional[str]:
        m = _SIZE_RE.search(raw_name)
        if m:
            amount = m.group(1).replace(",", ".")
            return f"{amount}{_SIZE_UNITS[m.group(2).lower()]}"

        m = _MULTIPACK_RE.search(raw_name)
        if m:
            return f"{m.group(1)}x{m.group(2)}"
        return None

    def _brand(self, raw_name: str) -> Optional[str]:
        first = raw_name.strip().split()[0].strip(_TOKEN_STRIP)
        if not first or not first[0].isalpha() or not first[0].isupper():
            return None
        if _NUMERIC_RE.match(first) or _SIZE_RE.fullmatch(first) or _MULTIPACK_RE.fullmatch(first):
            return None
        return first


default_extractor = RegexMetaExtractor()


def extract_meta(raw_name: str) -> ProductMeta:
    return default_extractor.extract(raw_name)
