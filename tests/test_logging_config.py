import logging
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from dropserve import logging_config  # noqa: E402


def test_yaml_config_rotates(tmp_path, monkeypatch):
    cfg = tmp_path / "config.yml"
    log_file = tmp_path / "logs" / "app.log"
    cfg.write_text(
        f"""
logging:
  level: INFO
  file: "{log_file}"
  max_bytes: 100
  backup_count: 1
  format: "%(levelname)s:%(message)s"
""",
        encoding="utf-8",
    )
    monkeypatch.setenv("DROPSERVE_CONFIG", str(cfg))

    root = logging.getLogger()
    saved = list(root.handlers)
    saved_level = root.level
    try:
        logging_config.setup_logging("WARNING", None)
        log = logging.getLogger("test")
        for _ in range(20):
            log.info("x" * 10)

        assert log_file.exists()
        assert Path(f"{log_file}.1").exists()
        assert "INFO:xxxxxxxxxx" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved
        root.setLevel(saved_level)


def test_missing_yaml_uses_arguments(tmp_path, monkeypatch):
    monkeypatch.setenv("DROPSERVE_CONFIG", str(tmp_path / "absent.yml"))
    assert logging_config.load_logging_config() == {}

    root = logging.getLogger()
    saved = list(root.handlers)
    saved_level = root.level
    try:
        logging_config.setup_logging("debug", tmp_path / "server.log")
        assert root.level == logging.DEBUG
        logging.getLogger("dropserve").debug("started")
        assert "started" in (tmp_path / "server.log").read_text(encoding="utf-8")
    finally:
        for handler in root.handlers:
            handler.close()
        root.handlers[:] = saved
        root.setLevel(saved_level)
