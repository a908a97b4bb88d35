# FILE: tests/test_settings.py
"""
Tests for config/settings.py
"""

from config.settings import Settings, get_settings


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in (
            "HUB_SIMILARITY_URL",
            "HUB_SIMILARITY_TOKEN",
            "HUB_SIMILARITY_TIMEOUT_S",
            "HUB_HEALTH_PROBE_TIMEOUT_S",
            "HUB_SEARCH_LIMIT",
            "HUB_LOG_LEVEL",
            "HUB_ROUTER_DEBUG",
        ):
            monkeypatch.delenv(name, raising=False)

        assert get_settings() == Settings()

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("HUB_SIMILARITY_URL", "http://vectors:9000")
        monkeypatch.setenv("HUB_SIMILARITY_TOKEN", "t0k")
        monkeypatch.setenv("HUB_SIMILARITY_TIMEOUT_S", "2.5")
        monkeypatch.setenv("HUB_SEARCH_LIMIT", "25")
        monkeypatch.setenv("HUB_LOG_LEVEL", "debug")
        monkeypatch.setenv("HUB_ROUTER_DEBUG", "1")

        settings = get_settings()

        assert settings.similarity_url == "http://vectors:9000"
        assert settings.similarity_token == "t0k"
        assert settings.similarity_timeout_s == 2.5
        assert settings.search_limit == 25
        assert settings.log_level == "DEBUG"
        assert settings.router_debug is True
