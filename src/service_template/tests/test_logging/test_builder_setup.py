import logging

from service_template.core.logging.builder import make_dict_config, setup_logging
from service_template.core.logging.formatters import ColorFormatter


class DummySettings:
    """Minimal Settings stand-in; only the attributes the builder reads."""

    LOG_FORMAT = "json"
    LOG_LEVEL = "INFO"
    LOG_TO_STDOUT = False
    LOG_DIR = None  # set per test
    LOG_MAX_BYTES = 1000
    LOG_BACKUP_COUNT = 1
    ENV = "development"
    SERVICE_NAME = "svc"
    ENABLE_SQL_LOGGING = False


def test_file_handlers_when_not_logging_to_stdout(tmp_path):
    settings = DummySettings()
    settings.LOG_DIR = tmp_path

    cfg = make_dict_config(settings)

    assert set(cfg["handlers"]) == {"console", "file", "error_file"}
    assert cfg["handlers"]["error_file"]["formatter"] == "json"
    assert cfg["formatters"]["json"]["service"] == "svc"
    assert cfg["loggers"][""]["handlers"] == ["console", "file", "error_file"]


def test_stdout_only_uses_error_console(tmp_path):
    settings = DummySettings()
    settings.LOG_TO_STDOUT = True
    settings.LOG_DIR = tmp_path

    cfg = make_dict_config(settings)

    assert set(cfg["handlers"]) == {"console", "error_console"}
    assert cfg["handlers"]["error_console"]["stream"] == "ext://sys.stderr"


def test_text_format_uses_color_in_development():
    settings = DummySettings()
    settings.LOG_FORMAT = "text"
    settings.LOG_TO_STDOUT = True

    cfg = make_dict_config(settings)

    assert cfg["handlers"]["console"]["formatter"] == "standard"
    assert cfg["formatters"]["standard"]["()"] is ColorFormatter


def test_text_format_is_plain_outside_development():
    settings = DummySettings()
    settings.ENV = "production"

    assert make_dict_config(settings)["formatters"]["standard"]["()"] is logging.Formatter


def test_sql_logging_switch():
    settings = DummySettings()
    settings.ENABLE_SQL_LOGGING = True
    assert make_dict_config(settings)["loggers"]["sqlalchemy.engine"]["level"] == "DEBUG"


def test_setup_logging_creates_log_dir(tmp_path):
    settings = DummySettings()
    settings.LOG_DIR = tmp_path / "logs"
    assert not settings.LOG_DIR.exists()

    setup_logging(settings)

    assert settings.LOG_DIR.exists()
    logging.getLogger("service_template.test").error("written to file")
    for handler in logging.getLogger().handlers:
        handler.flush()
    assert "written to file" in (settings.LOG_DIR / "errors.log").read_text(encoding="utf-8")
