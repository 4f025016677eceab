"""
Tests for strict-mode field checks.
"""

from sitecms.schema import validate_job, validate_post


class TestValidatePost:
    """Test post validation."""

    def test_valid_post(self, sample_post_fields):
        assert validate_post(sample_post_fields) == []

    def test_missing_required_field(self):
        errors = validate_post({"title": "x"})
        assert errors == ["Missing required field: content"]

    def test_blank_field(self):
        errors = validate_post({"title": "   ", "content": "body"})
        assert any("title" in e for e in errors)

    def test_none_counts_as_missing(self):
        errors = validate_post({"title": None, "content": None, "type": None})
        assert len(errors) == 2


class TestValidateJob:
    """Test job validation."""

    def test_valid_job(self, sample_job_fields):
        assert validate_job(sample_job_fields) == []

    def test_invalid_url(self):
        errors = validate_job({"title": "Dev", "link": "not-a-url"})
        assert any("link" in e.lower() for e in errors)

    def test_valid_url_formats(self):
        for url in ["https://example.com/jobs/1", "http://jobs.example.org/dev"]:
            assert validate_job({"title": "Dev", "link": url}) == []

    def test_non_http_scheme_rejected(self):
        assert validate_job({"title": "Dev", "link": "ftp://example.com/job"})

    def test_company_must_be_string(self):
        errors = validate_job({"title": "Dev", "link": "https://x.io", "company": 5})
        assert any("company" in e for e in errors)
