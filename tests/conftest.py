"""Shared pytest configuration and fixtures."""

from collections.abc import Generator
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from stability_report.config import Settings, get_settings

LEDGER_HEADER = (
    "Date,Ticket,Name,CloudStack/Service,Duration (in minutes),Cause,Solution,Assignee,Status,Severity\n"
)


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-e2e",
        action="store_true",
        default=False,
        help="Run e2e tests that hit real services (requires .env with valid credentials)",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-e2e"):
        return
    skip_e2e = pytest.mark.skip(reason="Need --run-e2e flag to run")
    for item in items:
        if "e2e" in item.keywords:
            item.add_marker(skip_e2e)


@pytest.fixture(autouse=True)
def _no_dotenv(request: pytest.FixtureRequest) -> Generator[None]:
    """Block .env loading so a developer's local settings never leak into tests."""
    if "e2e" in request.keywords:
        yield
        return

    get_settings.cache_clear()
    original = Settings.model_config.get("env_file")
    Settings.model_config["env_file"] = None

    try:
        yield
    finally:
        Settings.model_config["env_file"] = original
        get_settings.cache_clear()


@pytest.fixture
def mock_settings() -> Generator[Any]:
    """Provide fake settings so tests don't need a .env file.

    Patches get_settings at every import site so cached references are overridden.
    """
    fake_settings = type(
        "FakeSettings",
        (),
        {
            "outages_csv_path": "outages.csv",
            # Jira
            "jira_url": "https://jira.test",
            "jira_token": "jira-test-token",
            "jira_email": "bot@test.com",
            # LM Studio
            "lm_studio_url": "http://lmstudio.test:1234/v1",
            "lm_studio_model": "test-model",
            "lm_studio_api_key": "lm-studio",
            "use_ai": True,
            "ai_timeout_seconds": 5.0,
            # SMTP / Email
            "smtp_host": "smtp.test.com",
            "smtp_port": 587,
            "smtp_username": "test@test.com",
            "smtp_password": "test-password",
            "report_recipient_email": "cto@test.com, ceo@test.com",
            # Report schedule
            "report_schedule_cron": "",
            "metrics_port": 0,
        },
    )()
    with (
        patch("stability_report.config.get_settings", return_value=fake_settings),
        patch("stability_report.clients.jira.get_settings", return_value=fake_settings),
        patch("stability_report.clients.lm_studio.get_settings", return_value=fake_settings),
        patch("stability_report.report.narrative.get_settings", return_value=fake_settings),
        patch("stability_report.report.generator.get_settings", return_value=fake_settings),
        patch("stability_report.report.email.get_settings", return_value=fake_settings),
        patch("stability_report.report.scheduler.get_settings", return_value=fake_settings),
        patch("stability_report.cli.get_settings", return_value=fake_settings),
    ):
        yield fake_settings


@pytest.fixture
def write_ledger(tmp_path: Path) -> Any:
    """Write CSV body rows under the standard ledger header and return the path."""

    def _write(*rows: str) -> Path:
        path = tmp_path / "outages.csv"
        _ = path.write_text(LEDGER_HEADER + "".join(f"{row}\n" for row in rows), encoding="utf-8")
        return path

    return _write
