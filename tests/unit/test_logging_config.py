"""
Unit tests for service logging.

Tests cover:
- Logger naming under the networth prefix
- Level selection from arguments and environment
- SQL_ECHO leaving the engine loggers untouched
- Startup settings without leaking the scheduler secret
"""

import logging

import pytest

from networth.logging_config import get_logger, log_service_settings, setup_logging


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.messages = []

    def emit(self, record):
        self.messages.append(record.getMessage())


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    for name in ("APP_LOG_LEVEL", "THIRD_PARTY_LOG_LEVEL", "LOG_FILE", "SQL_ECHO"):
        monkeypatch.delenv(name, raising=False)
    yield
    monkeypatch.delenv("SQL_ECHO", raising=False)
    setup_logging(app_log_level="INFO", third_party_log_level="WARNING")


class TestGetLogger:

    def test_module_names_are_prefixed(self):
        assert get_logger("jobs").name == "networth.jobs"

    def test_package_names_are_kept(self):
        assert get_logger("networth.services.net_worth").name == "networth.services.net_worth"
        assert get_logger().name == "networth"


class TestSetupLogging:

    def test_argument_level_and_no_propagation(self):
        logger = setup_logging(app_log_level="DEBUG")

        assert logger.name == "networth"
        assert logger.level == logging.DEBUG
        assert logger.propagate is False
        assert len(logger.handlers) == 1

    def test_environment_level_and_unknown_names_fall_back(self, monkeypatch):
        monkeypatch.setenv("APP_LOG_LEVEL", "warning")

        assert setup_logging().level == logging.WARNING
        assert setup_logging(app_log_level="LOUD").level == logging.INFO

    def test_repeated_setup_does_not_stack_handlers(self):
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1

    def test_log_file_adds_rotating_handler(self, tmp_path):
        log_file = tmp_path / "logs" / "networth.log"

        logger = setup_logging(log_file=str(log_file))

        assert len(logger.handlers) == 2
        assert log_file.parent.is_dir()
        for handler in logger.handlers[1:]:
            handler.close()

    def test_engine_loggers_pinned_without_sql_echo(self):
        setup_logging(third_party_log_level="ERROR")

        assert logging.getLogger("sqlalchemy.engine").level == logging.ERROR
        assert logging.getLogger("uvicorn.access").level == logging.ERROR

    def test_sql_echo_leaves_engine_loggers_alone(self, monkeypatch):
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
        monkeypatch.setenv("SQL_ECHO", "true")

        setup_logging(third_party_log_level="ERROR")

        assert logging.getLogger("sqlalchemy.engine").level == logging.INFO
        assert logging.getLogger("sqlalchemy.pool").level == logging.ERROR


class TestServiceSettings:

    def test_logs_backend_workers_and_cron_mode_without_secret(self, monkeypatch):
        """
        GIVEN a Postgres URL with credentials, four workers and a cron secret
        WHEN the startup settings are logged
        THEN only the backend name, worker count and auth mode appear
        """
        monkeypatch.setenv("DATABASE_URL", "postgresql://admin:hunter2@db/networth")
        monkeypatch.setenv("NET_WORTH_FETCH_WORKERS", "4")
        monkeypatch.setenv("CRON_SECRET", "s3cret-token")
        logger = get_logger("startup_check")
        logger.setLevel(logging.INFO)
        handler = RecordingHandler()
        logger.addHandler(handler)

        try:
            log_service_settings(logger)
        finally:
            logger.removeHandler(handler)

        output = "\n".join(handler.messages)
        assert "Database backend: postgresql" in output
        assert "Snapshot fetch workers: 4" in output
        assert "bearer token required" in output
        assert "s3cret-token" not in output
        assert "hunter2" not in output

    def test_open_cron_endpoint_and_default_workers(self, monkeypatch):
        monkeypatch.delenv("CRON_SECRET", raising=False)
        monkeypatch.delenv("NET_WORTH_FETCH_WORKERS", raising=False)
        logger = get_logger("startup_defaults")
        logger.setLevel(logging.INFO)
        handler = RecordingHandler()
        logger.addHandler(handler)

        try:
            log_service_settings(logger)
        finally:
            logger.removeHandler(handler)

        assert "Snapshot fetch workers: one per snapshot read" in handler.messages
        assert "Scheduled recording endpoint: open (CRON_SECRET not set)" in handler.messages
