import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from dropserve.config import Settings  # noqa: E402
from dropserve.models import ColorScheme  # noqa: E402


def test_load_from_dotenv(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "LOG_LEVEL=DEBUG\nOVERWRITE_FILES=true\nROOT_DIR=/srv/files\n",
        encoding="utf-8",
    )
    monkeypatch.chdir(tmp_path)
    for name in ("LOG_LEVEL", "OVERWRITE_FILES", "ROOT_DIR"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.log_level == "DEBUG"
    assert settings.overwrite_files is True
    assert settings.root_dir == "/srv/files"


def test_env_overrides_dotenv(tmp_path, monkeypatch):
    env_file = tmp_path / ".env"
    env_file.write_text("LOG_LEVEL=DEBUG\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("LOG_LEVEL", "WARNING")
    settings = Settings()
    assert settings.log_level == "WARNING"


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("OVERWRITE_FILES", "RANDOM_ROUTE", "DEFAULT_COLOR_SCHEME"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings()
    assert settings.overwrite_files is False
    assert settings.strict_status_codes is False
    assert settings.default_color_scheme is ColorScheme.SQUIRREL
    assert settings.uses_random_route is False
    assert settings.route_prefix == ""


def test_random_route_and_theme_from_env(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("RANDOM_ROUTE", "/abc123/")
    monkeypatch.setenv("DEFAULT_COLOR_SCHEME", "zenburn")
    settings = Settings()
    assert settings.uses_random_route is True
    assert settings.route_prefix == "/abc123"
    assert settings.default_color_scheme is ColorScheme.ZENBURN
