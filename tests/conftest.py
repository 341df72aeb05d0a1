"""Shared test fixtures."""

from __future__ import annotations

import random
from datetime import datetime, timezone

import pytest

from civic.config import load_config
from civic.db import get_connection, init_db
from civic.models import EMAIL, GROUP, SOCIAL, RawPost
from civic.process.normalize import Normalizer

STREETLIGHT = (
    "The streetlight near Connaught Place has been broken for 2 weeks!! "
    "Nobody fixing it #DelhiProblems #Infrastructure"
)
SPAM = (
    "lol free pizza lol discount code FREE100 click link bit.ly/fakespam "
    "not a real complaint haha spam test"
)


@pytest.fixture
def sample_config(tmp_path):
    """Minimal config for testing with fast scheduler timing."""
    config_text = """
sources:
  demo:
    enabled: true
  http_feed:
    enabled: false
    urls: []

scheduler:
  tick_interval: 0.03
  resolve_delay: 0.01

normalize:
  default_department: "Infrastructure"
  seed: 7

neglect:
  threshold_days: 30

database:
  path: "DB_PATH_PLACEHOLDER"
"""
    db_path = str(tmp_path / "test.db")
    cfg_path = tmp_path / "config.yaml"
    cfg_path.write_text(config_text.replace("DB_PATH_PLACEHOLDER", db_path))
    return load_config(str(cfg_path))


@pytest.fixture
def db_conn(sample_config):
    """Initialized test database connection."""
    db_path = sample_config["database"]["path"]
    init_db(db_path)
    conn = get_connection(db_path)
    yield conn
    conn.close()


@pytest.fixture
def fixed_now():
    return datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def seeded_normalizer(fixed_now):
    """Normalizer with a fixed seed and a frozen clock."""
    return Normalizer(rng=random.Random(42), clock=lambda: fixed_now)


@pytest.fixture
def sample_posts():
    """A small mixed batch: three genuine posts and one spam post."""
    return [
        RawPost(id="p1", source=SOCIAL, origin_handle="@delhi_resident", text=STREETLIGHT),
        RawPost(
            id="p2", source=GROUP, origin_handle="Saket Residents",
            text="Sewer line overflow ho gayi Select City Walk ke peeche. "
            "Bahut buri smell. Health hazard ban raha hai",
        ),
        RawPost(id="p3", source=SOCIAL, origin_handle="@techie_delhi", text=SPAM),
        RawPost(
            id="p4", source=EMAIL, origin_handle="ramesh.k@gmail.com",
            text="Subject: Water supply cut in Sector 14\n\nWe have not received "
            "water supply for four days in Sector 14, Dwarka.",
        ),
    ]
