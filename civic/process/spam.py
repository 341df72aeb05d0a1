"""Rule-based fake/spam detection for incoming posts."""

from __future__ import annotations

import re

from civic.models import Verdict

MIN_LENGTH = 40

TOO_SHORT = "too short to be a genuine report."
PROMOTIONAL = "contains spam/promotional content."
JOKE = "appears to be a test or joke post."
REPEATED = "repeated filler characters detected."
INCOHERENT = "no coherent text found."
NOT_CIVIC = "no civic-issue relevance detected."

_PROMO_RE = re.compile(r"http|bit\.ly|click|buy now|discount|promo|free.*code|deal")
_JOKE_RE = re.compile(r"lol|haha|test test|not a real")
_REPEATED_RE = re.compile(r"aaa+|xxx+|zzz+")
_WORD_RE = re.compile(r"[a-z]{5,}")  # ASCII only; applied to lower-cased text

# Infrastructure nouns plus colloquial Hindi complaint markers
CIVIC_KEYWORDS = (
    "pothole", "light", "water", "garbage", "trash", "road", "park",
    "tree", "sewer", "drain", "bus", "parking", "broken", "repair", "fix",
    "problem", "issue", "complaint", "dirty", "unsafe", "danger", "blocked",
    "smell", "pest", "flood", "street", "signal", "traffic", "paani", "karo",
    "nahi", "gaya", "bhai", "bahut", "playground", "swing", "vandal", "leak",
)


def detect(text: str | None) -> Verdict:
    """Run every rule over the text and collect reasons in rule order.

    Never raises; empty or missing text is reported as too short and
    incoherent.
    """
    t = (text or "").strip().lower()
    reasons = []

    if len(t) < MIN_LENGTH:
        reasons.append(TOO_SHORT)
    if _PROMO_RE.search(t):
        reasons.append(PROMOTIONAL)
    if _JOKE_RE.search(t):
        reasons.append(JOKE)
    if _REPEATED_RE.search(t):
        reasons.append(REPEATED)
    if not _WORD_RE.search(t):
        reasons.append(INCOHERENT)

    if not reasons and not any(kw in t for kw in CIVIC_KEYWORDS):
        reasons.append(NOT_CIVIC)

    return Verdict(reasons=tuple(reasons))
