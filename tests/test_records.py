"""
Tests for post/job record factories.
"""

import re
import time
from datetime import datetime

import pytest

from sitecms.errors import ValidationError
from sitecms.records import format_date, make_job, make_post

DATE_RE = re.compile(r"(Mon|Tue|Wed|Thu|Fri|Sat|Sun) [A-Z][a-z]{2} \d{2} \d{4}")


class TestMakePost:
    """Test post construction."""

    def test_fields_pass_through(self, sample_post_fields):
        post = make_post(sample_post_fields, media="/uploads/1.png")
        assert post["title"] == "Hello"
        assert post["content"] == "World"
        assert post["type"] == "News"
        assert post["media"] == "/uploads/1.png"

    def test_defaults(self):
        post = make_post({})
        assert post["title"] == ""
        assert post["content"] == ""
        assert post["type"] == "General"
        assert post["media"] == ""

    def test_empty_type_falls_back(self):
        assert make_post({"type": ""})["type"] == "General"

    def test_server_fields(self):
        before = int(time.time() * 1000)
        post = make_post({"title": "x"})
        after = int(time.time() * 1000)

        assert isinstance(post["id"], int)
        assert before <= post["id"] <= after
        assert DATE_RE.fullmatch(post["date"])

    def test_strict_rejects_missing_fields(self):
        with pytest.raises(ValidationError) as exc:
            make_post({"title": "only"}, strict=True)
        assert any("content" in e for e in exc.value.errors)

    def test_strict_accepts_complete_post(self, sample_post_fields):
        assert make_post(sample_post_fields, strict=True)["title"] == "Hello"


class TestMakeJob:
    """Test job construction."""

    def test_fields_pass_through(self, sample_job_fields):
        job = make_job(sample_job_fields)
        assert {k: job[k] for k in ("title", "link", "company")} == sample_job_fields
        assert set(job) == {"id", "title", "link", "company", "date"}

    def test_company_optional(self):
        job = make_job({"title": "Dev", "link": "https://x.io/j"})
        assert job["company"] == ""

    def test_strict_requires_absolute_link(self):
        with pytest.raises(ValidationError) as exc:
            make_job({"title": "Dev", "link": "careers/dev"}, strict=True)
        assert any("link" in e for e in exc.value.errors)


class TestFormatDate:
    def test_known_date(self):
        assert format_date(datetime(2026, 10, 18)) == "Sun Oct 18 2026"

    def test_day_is_zero_padded(self):
        assert format_date(datetime(2024, 2, 5)) == "Mon Feb 05 2024"
