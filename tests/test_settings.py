import pytest

from notebook_studio.config.settings import Settings


def test_defaults(settings, tmp_path):
    assert settings.llm_model == "test-model"
    assert settings.llm_base_url == "https://llm.test/v1"
    assert settings.data_dir == tmp_path / "data"
    assert settings.scraper_use_browser is False
    assert settings.log_level == "DEBUG"


def test_missing_api_key(monkeypatch):
    # Keep a developer .env from filling the gap
    monkeypatch.setattr("notebook_studio.config.settings.load_dotenv", lambda *args, **kwargs: None)
    monkeypatch.delenv("API_KEY")

    with pytest.raises(ValueError, match="API_KEY"):
        Settings()


@pytest.mark.parametrize("value,expected", [("1", True), ("YES", True), ("off", False), ("nonsense", False)])
def test_browser_flag(monkeypatch, value, expected):
    monkeypatch.setenv("SCRAPER_USE_BROWSER", value)
    assert Settings().scraper_use_browser is expected
