"""Tests for record normalization and synthetic geocoding."""

from __future__ import annotations

import random
import re

from civic.models import EMAIL, SOCIAL, Classification, RawPost
from civic.process.normalize import (
    AUTO_LOCATION,
    CITY_SPOTS,
    MAX_JITTER,
    Normalizer,
    make_title,
    normalize,
)

STREETLIGHT = (
    "The streetlight near Connaught Place has been broken for 2 weeks!! "
    "Nobody fixing it #DelhiProblems #Infrastructure"
)

HIGH_ROADS = Classification(urgency="high", department="Roads & Transport", confidence=84)


def _post(text, source=SOCIAL, **kwargs):
    return RawPost(id="x1", source=source, origin_handle="@someone", text=text, **kwargs)


def test_streetlight_record(seeded_normalizer, fixed_now):
    record = seeded_normalizer.normalize(_post(STREETLIGHT), HIGH_ROADS)

    assert "#" not in record.title
    assert record.title == "The streetlight near Connaught Place has been broken for 2 w..."
    assert len(record.title) <= 60 + len("...")
    assert record.description == (
        "The streetlight near Connaught Place has been broken for 2 weeks!! Nobody fixing it"
    )
    assert record.status == "open"
    assert record.location == AUTO_LOCATION
    assert record.urgency == "high"
    assert record.department == "Roads & Transport"
    assert record.created_at == fixed_now.isoformat()
    assert record.source == SOCIAL
    assert record.source_handle == "@someone"
    assert 0 <= record.upvotes < 20


def test_short_title_has_no_ellipsis(seeded_normalizer):
    text = "Garbage not collected on Lane 4 #cleanup"
    record = seeded_normalizer.normalize(_post(text), HIGH_ROADS)
    assert record.title == "Garbage not collected on Lane 4"
    assert not record.title.endswith("...")


def test_email_subject_becomes_title():
    post = _post(
        "Subject: Dead tree leaning on power lines\n\nA large dead tree is leaning over the wires.",
        source=EMAIL,
    )
    assert make_title(post) == "Dead tree leaning on power lines"


def test_display_code_format(seeded_normalizer):
    record = seeded_normalizer.normalize(_post(STREETLIGHT), HIGH_ROADS)
    assert re.fullmatch(r"CMR-2026-\d{4}", record.display_code)
    assert 2000 <= int(record.display_code.rsplit("-", 1)[1]) <= 2998


def test_missing_department_uses_fallback():
    normalizer = Normalizer(seed=1, default_department="Public Works")
    unknown = Classification(urgency="medium", department=None, confidence=40)
    assert normalizer.normalize(_post(STREETLIGHT), unknown).department == "Public Works"
    assert Normalizer(seed=1).normalize(_post(STREETLIGHT), unknown).department == "Infrastructure"


def test_explicit_location_is_kept(seeded_normalizer):
    post = _post(STREETLIGHT, location="Connaught Place, Block B")
    assert seeded_normalizer.normalize(post, HIGH_ROADS).location == "Connaught Place, Block B"


def test_coordinates_stay_near_a_known_spot():
    normalizer = Normalizer(seed=3)
    for _ in range(200):
        record = normalizer.normalize(_post(STREETLIGHT), HIGH_ROADS)
        assert any(
            abs(record.lat - lat) <= MAX_JITTER and abs(record.lng - lng) <= MAX_JITTER
            for lat, lng in CITY_SPOTS
        )


def test_same_seed_same_output(fixed_now):
    a = Normalizer(rng=random.Random(99), clock=lambda: fixed_now)
    b = Normalizer(rng=random.Random(99), clock=lambda: fixed_now)
    for _ in range(5):
        assert a.normalize(_post(STREETLIGHT), HIGH_ROADS) == b.normalize(_post(STREETLIGHT), HIGH_ROADS)


def test_ids_unique_across_10000_calls(seeded_normalizer):
    """Frozen clock means every call lands in the same millisecond."""
    ids = {seeded_normalizer.normalize(_post(STREETLIGHT), HIGH_ROADS).id for _ in range(10_000)}
    assert len(ids) == 10_000


def test_module_level_normalize():
    record = normalize(_post(STREETLIGHT), HIGH_ROADS)
    assert record.created_at.endswith("+00:00")
    assert record.to_dict()["display_code"] == record.display_code
