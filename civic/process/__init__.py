"""Per-post processing steps: spam detection, classification, normalization."""

from __future__ import annotations

from civic.process.classifier import KEYWORD_FAMILIES, KeywordFamily, classify
from civic.process.normalize import Normalizer, normalize
from civic.process.spam import detect

__all__ = [
    "KEYWORD_FAMILIES",
    "KeywordFamily",
    "Normalizer",
    "classify",
    "detect",
    "normalize",
]
