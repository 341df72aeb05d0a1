"""Keyword-table classifier for department, urgency and confidence."""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from civic.models import Classification


def _term_pattern(term: str) -> re.Pattern:
    # "tree" must not fire inside "street"; symbols such as the alarm emoji match anywhere
    prefix = r"\b" if re.match(r"\w", term) else ""
    return re.compile(prefix + re.escape(term))


@dataclass(frozen=True)
class KeywordFamily:
    """Keywords that route a complaint to one department."""

    department: str
    keywords: tuple[str, ...]
    urgency: str = "medium"  # urgency when matched without a severity marker
    _patterns: tuple[re.Pattern, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_patterns", tuple(_term_pattern(kw) for kw in self.keywords))

    def hits(self, text: str) -> set[str]:
        """Keywords that start a word in ``text``; stems match longer words."""
        return {kw for kw, pattern in zip(self.keywords, self._patterns) if pattern.search(text)}


# Order is the tie-break priority
KEYWORD_FAMILIES: tuple[KeywordFamily, ...] = (
    KeywordFamily(
        "Electricity",
        ("streetlight", "street light", "light", "power line", "power", "electric",
         "wire", "transformer", "outage", "bijli"),
    ),
    KeywordFamily(
        "Roads & Transport",
        ("pothole", "road", "street", "traffic", "signal", "footpath",
         "bus stop", "bus", "metro", "flyover"),
    ),
    KeywordFamily(
        "Water Supply",
        ("water", "pipeline", "leak", "tanker", "paani", "supply"),
    ),
    KeywordFamily(
        "Sanitation",
        ("garbage", "trash", "waste", "dustbin", "sewer", "drain",
         "overflow", "gutter", "smell", "kachra"),
    ),
    KeywordFamily(
        "Parks & Horticulture",
        ("park", "tree", "playground", "swing", "bench", "garden",
         "graffiti", "vandal"),
        urgency="low",
    ),
    KeywordFamily(
        "Police",
        ("police", "illegal", "theft", "encroach", "noise", "harass"),
    ),
)

SEVERITY_TERMS = (
    "urgent", "danger", "hazard", "emergency", "accident", "hurt", "injur",
    "burst", "collapse", "fire", "electrocut", "serious", "unsafe", "\U0001f6a8",
)
EXCLAMATION_THRESHOLD = 2
_SEVERITY_PATTERNS = tuple((term, _term_pattern(term)) for term in SEVERITY_TERMS)

NO_MATCH_CONFIDENCE = 40
BASE_CONFIDENCE = 52
CONFIDENCE_STEP = 8


def severity_markers(text: str) -> set[str]:
    """Severity terms present in lower-cased text; dense '!' counts as one."""
    markers = {term for term, pattern in _SEVERITY_PATTERNS if pattern.search(text)}
    if text.count("!") >= EXCLAMATION_THRESHOLD:
        markers.add("!")
    return markers


def classify(
    text: str | None,
    hint: str = "",
    families: tuple[KeywordFamily, ...] = KEYWORD_FAMILIES,
) -> Classification:
    """Pick a department by keyword hits and derive urgency and confidence.

    The hint (e.g. a reporter-chosen category or an email subject) is
    scanned together with the text.
    """
    t = f"{text or ''} {hint or ''}".lower()

    department = None
    family_urgency = None
    best = 0
    keyword_hits = 0
    for family in families:
        hits = len(family.hits(t))
        keyword_hits += hits
        if hits > best:
            best = hits
            department = family.department
            family_urgency = family.urgency

    markers = severity_markers(t)
    if markers:
        urgency = "high"
    elif department is not None:
        urgency = family_urgency
    else:
        urgency = "medium"

    signals = keyword_hits + len(markers)
    if signals:
        confidence = min(100, BASE_CONFIDENCE + CONFIDENCE_STEP * signals)
    else:
        confidence = NO_MATCH_CONFIDENCE

    return Classification(urgency=urgency, department=department, confidence=confidence)
