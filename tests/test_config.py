"""Unit tests for Settings."""
import pytest

from config import Settings, split_list
from scraper.collector import PaginatedSource, SitemapSource


class TestSettings:
    """Test cases for Settings.from_env."""

    def test_defaults(self):
        settings = Settings.from_env({})

        assert settings.source_mode == "paginated"
        assert settings.agenda_url == (
            "https://www.destination-paysbigouden.com/a-voir-a-faire/agenda"
        )
        assert settings.timezone == "Europe/Paris"
        assert settings.namespace == "pays-bigouden-calendar"
        assert settings.max_span_days == 60
        assert settings.max_occurrences == 20
        assert settings.title_keywords == ()
        assert settings.excluded_types == ("exposition", "expositions", "exhibition")
        assert settings.default_duration_hours == 2

    def test_sitemap_mode_defaults(self):
        settings = Settings.from_env({"SOURCE_MODE": "Sitemap"})

        assert settings.source_mode == "sitemap"
        assert settings.max_span_days == 31
        assert settings.title_keywords == ("exposition", "exhibition")
        assert settings.sitemap_urls == ("https://www.destination-paysbigouden.com/sitemap.xml",)

    def test_overrides(self):
        settings = Settings.from_env({
            "BASE_URL": "https://example.com/",
            "SITEMAP_URLS": "https://example.com/a.xml, https://example.com/b.xml",
            "EXCLUDED_TYPES": "Loto,Vide-grenier",
            "MAX_SPAN_DAYS": "10",
            "FETCH_CONCURRENCY": "4",
            "BATCH_DELAY_SECONDS": "1.5",
            "DEFAULT_DURATION_HOURS": "1.5"
        })

        assert settings.agenda_url == "https://example.com/a-voir-a-faire/agenda"
        assert settings.sitemap_urls == ("https://example.com/a.xml", "https://example.com/b.xml")
        assert settings.excluded_types == ("Loto", "Vide-grenier")
        assert settings.max_span_days == 10
        assert settings.fetch_concurrency == 4
        assert settings.batch_delay_seconds == 1.5
        assert settings.default_duration_hours == 1.5

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            Settings.from_env({"SOURCE_MODE": "rss"})

    def test_invalid_number(self):
        with pytest.raises(ValueError):
            Settings.from_env({"MAX_PAGES": "many"})

    def test_paginated_source(self):
        source = Settings.from_env({"MAX_PAGES": "5"}).source()

        assert isinstance(source, PaginatedSource)
        assert source.max_pages == 5
        assert source.max_consecutive_empty == 2

    def test_sitemap_source(self):
        source = Settings.from_env({
            "SOURCE_MODE": "sitemap",
            "DETAIL_PATH_PATTERN": "/fiche/FMA/"
        }).source()

        assert isinstance(source, SitemapSource)
        assert source.path_pattern == "/fiche/FMA/"

    def test_split_list(self):
        assert split_list(" a, ,b ,") == ["a", "b"]
