from __future__ import annotations

from types import MappingProxyType
from typing import Any, List, Mapping, Tuple

# Uppercase character -> characters OCR commonly reads it as.
CONFUSION_MAP: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "0": ("O", "Q", "D"),
    "O": ("0", "Q"),
    "Q": ("0", "O"),
    "D": ("0",),
    "1": ("I", "l"),
    "I": ("1", "l"),
    "L": ("1", "I"),
    "5": ("S",),
    "S": ("5",),
    "8": ("B",),
    "B": ("8",),
    "6": ("G",),
    "G": ("6",),
    "2": ("Z",),
    "Z": ("2",),
})


def generate_ocr_variants(token: Any) -> List[str]:
    """Single-substitution OCR-confusion spellings of ``token``.

    The token is uppercased and, for each position whose character appears in
    ``CONFUSION_MAP``, one variant is emitted per alternative with only that
    position rewritten. Alternatives are inserted as listed, so ``1`` can
    become a lowercase ``l``. Order is position order, then alternative order;
    duplicates are dropped. Non-string input yields ``[]``.
    """
    if not isinstance(token, str):
        return []
    upper = token.upper()
    variants: dict = {}
    for i, ch in enumerate(upper):
        for alt in CONFUSION_MAP.get(ch, ()):
            if alt == ch:
                continue
            variants.setdefault(upper[:i] + alt + upper[i + 1:], None)
    return list(variants)


def expand_candidates(term: str) -> List[str]:
    upper = term.upper()
    candidates = dict.fromkeys([upper])
    for variant in generate_ocr_variants(term):
        candidates.setdefault(variant, None)
    return list(candidates)
