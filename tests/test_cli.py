"""Tests for the CLI entry point."""

from __future__ import annotations

import json
from datetime import date
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from metrika.cli import main
from metrika.config import AppConfig
from metrika.errors import FetchFailedError
from metrika.models import DateRange, RawResult, ReportRequest, ReportResult
from metrika.output import write_report


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def ok_result(visits_views_users_response: dict[str, Any]) -> ReportResult:
    return ReportResult(
        report_key="visits-views-users",
        query={"ids": "44147844"},
        cache_key="44147844_abc",
        request=ReportRequest(
            report_key="visits-views-users",
            date_range=DateRange(date(2024, 6, 13), date(2024, 6, 14)),
        ),
        raw=RawResult(visits_views_users_response),
    )


def test_cli_help(runner: CliRunner) -> None:
    result = runner.invoke(main, ["--help"])
    assert result.exit_code == 0
    assert "Yandex Metrika" in result.output


def test_report_help(runner: CliRunner) -> None:
    result = runner.invoke(main, ["report", "--help"])
    assert result.exit_code == 0
    for option in ("--days", "--start", "--end", "--param", "--adapt", "--env", "--output-dir"):
        assert option in result.output


def test_reports_lists_catalog(runner: CliRunner) -> None:
    result = runner.invoke(main, ["reports"])
    assert result.exit_code == 0
    assert "geo-area" in result.output
    assert "country_id=225" in result.output


def test_report_rejects_unknown_key(runner: CliRunner) -> None:
    result = runner.invoke(main, ["report", "no-such-report"])
    assert result.exit_code != 0


def test_report_requires_both_period_bounds(runner: CliRunner) -> None:
    result = runner.invoke(main, ["report", "geo-area", "--start", "2024-06-01"])
    assert result.exit_code != 0
    assert "--start and --end" in result.output


def test_report_rejects_malformed_param(runner: CliRunner) -> None:
    result = runner.invoke(main, ["report", "geo-area", "--param", "max_results"])
    assert result.exit_code != 0


@patch("metrika.cli._run_report", new_callable=AsyncMock)
@patch("metrika.cli.load_config")
def test_report_prints_adapted_json(
    mock_load_config: Any,
    mock_run_report: AsyncMock,
    runner: CliRunner,
    dev_app_config: AppConfig,
    ok_result: ReportResult,
) -> None:
    mock_load_config.return_value = dev_app_config
    mock_run_report.return_value = ok_result.adapt()

    result = runner.invoke(
        main,
        ["report", "visits-views-users", "--days", "7", "--param", "max-results=5", "--adapt"],
    )

    assert result.exit_code == 0
    args = mock_run_report.call_args.args
    assert args[1:5] == ("visits-views-users", 7, None, None)
    assert args[5] == {"max_results": 5}
    assert args[6] is True
    body = json.loads(result.stdout[result.stdout.index("{"):])
    assert body["adapted"]["2024-06-13"]["visits"] == 120.0


@patch("metrika.cli._run_report", new_callable=AsyncMock)
@patch("metrika.cli.load_config")
def test_report_writes_output_file(
    mock_load_config: Any,
    mock_run_report: AsyncMock,
    runner: CliRunner,
    dev_app_config: AppConfig,
    ok_result: ReportResult,
    tmp_output_dir: Path,
) -> None:
    mock_load_config.return_value = dev_app_config
    mock_run_report.return_value = ok_result

    result = runner.invoke(
        main,
        [
            "report", "visits-views-users",
            "--start", "2024-06-13", "--end", "2024-06-14",
            "--output-dir", str(tmp_output_dir),
        ],
    )

    assert result.exit_code == 0
    assert mock_run_report.call_args.args[3] == date(2024, 6, 13)
    out_file = tmp_output_dir / "44147844" / "visits-views-users_2024-06-13_2024-06-14.json"
    assert out_file.exists()


@patch("metrika.cli._run_report", new_callable=AsyncMock)
@patch("metrika.cli.load_config")
def test_report_failure_exits_nonzero(
    mock_load_config: Any,
    mock_run_report: AsyncMock,
    runner: CliRunner,
    dev_app_config: AppConfig,
) -> None:
    mock_load_config.return_value = dev_app_config
    mock_run_report.return_value = ReportResult(
        report_key="visits-views-users", error=FetchFailedError("HTTP 503"),
    )

    result = runner.invoke(main, ["report", "visits-views-users"])

    assert result.exit_code == 1


@patch("metrika.cli.load_config", side_effect=FileNotFoundError("nope"))
def test_report_config_error(mock_load_config: Any, runner: CliRunner) -> None:
    result = runner.invoke(main, ["report", "sources-summary"])
    assert result.exit_code == 1


def test_write_report_envelope(ok_result: ReportResult, tmp_output_dir: Path) -> None:
    path = write_report(ok_result, "44147844", str(tmp_output_dir))

    with open(path, encoding="utf-8") as f:
        envelope = json.load(f)

    assert envelope["metadata"]["report"] == "visits-views-users"
    assert envelope["metadata"]["counter_id"] == "44147844"
    assert "fetch_timestamp" in envelope["metadata"]
    assert envelope["data"]["raw"]["total_rows"] == 2


def test_write_report_raw_query(tmp_output_dir: Path) -> None:
    result = ReportResult(
        report_key="raw",
        query={"date1": "2024-06-01", "date2": "2024-06-15"},
        raw=RawResult({"data": []}),
    )
    path = write_report(result, "1", str(tmp_output_dir))
    assert path.name == "raw_2024-06-01_2024-06-15.json"
