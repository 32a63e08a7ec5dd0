from logonscope.config import DEFAULT_DAYS, load_settings


def test_load_settings_reads_environment(monkeypatch, tmp_path):
    monkeypatch.setenv("LOGONSCOPE_DAYS", "90")
    monkeypatch.setenv("LOGONSCOPE_SOURCE", "SQL")
    monkeypatch.setenv("LOGONSCOPE_DATABASE_URL", "sqlite:///events.db")
    monkeypatch.setenv("LOGONSCOPE_CONCURRENT_FETCH", "no")
    monkeypatch.setenv("LOGONSCOPE_LOG_LEVEL", "info")

    settings = load_settings(tmp_path / "missing.env")

    assert settings.days == 90
    assert settings.source == "sql"
    assert settings.database_url == "sqlite:///events.db"
    assert settings.concurrent_fetch is False
    assert settings.log_level == "INFO"


def test_load_settings_falls_back_on_invalid_values(monkeypatch, tmp_path):
    monkeypatch.setenv("LOGONSCOPE_DAYS", "900")
    monkeypatch.setenv("LOGONSCOPE_SOURCE", "ldap")
    monkeypatch.setenv("LOGONSCOPE_CONCURRENT_FETCH", "maybe")

    settings = load_settings(tmp_path / "missing.env")

    assert settings.days == DEFAULT_DAYS
    assert settings.source == "win32"
    assert settings.concurrent_fetch is True


def test_load_settings_reads_dotenv_file(monkeypatch, tmp_path):
    monkeypatch.setenv("LOGONSCOPE_DAYS", "1")
    monkeypatch.delenv("LOGONSCOPE_DAYS")
    dotenv = tmp_path / ".env"
    dotenv.write_text("LOGONSCOPE_DAYS=7\n", encoding="utf-8")

    settings = load_settings(dotenv)

    assert settings.days == 7
