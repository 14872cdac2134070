"""Ingredient/packaging classification strategies for inventory materials."""

from __future__ import annotations

import re
from typing import Iterable, Protocol

from lca_impact_engine.core.constants import (
    CATEGORY_INGREDIENT,
    CATEGORY_PACKAGING,
    PACKAGING_CATEGORY_TAGS,
)
from lca_impact_engine.core.reference_data import DEFAULT_PACKAGING_KEYWORDS

_TOKEN_PATTERN = re.compile(r"[a-z]+")
_TAG_SEPARATORS = re.compile(r"[\s\-]+")


class MaterialClassifier(Protocol):
    """Protocol implemented by classification strategies."""

    def classify(self, name: str, category: str | None = None) -> str: ...


class KeywordMaterialClassifier:
    """Classify by explicit category tag first, then by packaging vocabulary.

    Names are matched per word (with simple plural forms), so "Cane sugar"
    stays an ingredient while "Glass bottles" is packaging.
    """

    def __init__(self, keywords: Iterable[str] | None = None) -> None:
        source = DEFAULT_PACKAGING_KEYWORDS if keywords is None else keywords
        self._keywords = frozenset(keyword.strip().lower() for keyword in source if keyword.strip())

    def classify(self, name: str, category: str | None = None) -> str:
        tag = _TAG_SEPARATORS.sub("_", (category or "").strip().lower())
        if tag in PACKAGING_CATEGORY_TAGS:
            return CATEGORY_PACKAGING
        if tag == CATEGORY_INGREDIENT:
            return CATEGORY_INGREDIENT
        for token in _TOKEN_PATTERN.findall((name or "").lower()):
            if self._matches(token):
                return CATEGORY_PACKAGING
        return CATEGORY_INGREDIENT

    def _matches(self, token: str) -> bool:
        if token in self._keywords:
            return True
        if token.endswith("es") and token[:-2] in self._keywords:
            return True
        return token.endswith("s") and token[:-1] in self._keywords
