"""Integration tests for the run, status and version CLI commands."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import patch

import pytest
from botocore.exceptions import ClientError
from typer.testing import CliRunner

from ebs_backup import __version__
from ebs_backup.cli.main import app
from tests.fixtures.resources import FakeProvider, create_snapshot, create_volume


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def cli_env(tmp_path: Path) -> Dict[str, str]:
    """Environment isolating the CLI from any real config file."""
    return {
        "EBS_BACKUP_CONFIG": str(tmp_path / "absent.yaml"),
        "EBS_BACKUP_REGIONS": "",
        "EBS_BACKUP_DRY_RUN": "false",
        "COLUMNS": "200",
    }


@pytest.fixture
def providers() -> Dict[Optional[str], FakeProvider]:
    """Fake providers per region sharing one call log."""
    calls: List[tuple] = []
    long_ago = int(time.time()) - 60
    return {
        None: FakeProvider(
            volumes=[create_volume("vol-default", name="web")],
            snapshots=[create_snapshot("snap-expired", purge_at=long_ago)],
            calls=calls,
        ),
        "us-east-1": FakeProvider(region="us-east-1", volumes=[create_volume("vol-east")], calls=calls),
        "us-west-2": FakeProvider(
            region="us-west-2",
            snapshots=[create_snapshot("snap-west", purge_at=long_ago)],
            calls=calls,
        ),
    }


def _patch_provider(providers: Dict[Optional[str], FakeProvider]):
    def build(region: Optional[str] = None, aws_profile: Optional[str] = None) -> FakeProvider:
        return providers[region]

    return patch("ebs_backup.cli.main.EC2BackupProvider", side_effect=build)


class TestRunCommand:
    """Integration tests for the run command."""

    def test_single_pass_default_region(
        self, runner: CliRunner, cli_env: Dict[str, str], providers: Dict[Optional[str], FakeProvider]
    ) -> None:
        """Test a single pass backs up and purges in the default region."""
        with _patch_provider(providers):
            result = runner.invoke(app, ["run"], env=cli_env)

        assert result.exit_code == 0, result.stdout
        provider = providers[None]
        assert [call[0] for call in provider.mutating_calls] == [
            "create_snapshot",
            "set_tags",
            "set_tags",
            "delete_snapshot",
        ]
        assert "1 backup(s), 1 purge(s)" in result.stdout

    def test_regions_processed_in_order(
        self, runner: CliRunner, cli_env: Dict[str, str], providers: Dict[Optional[str], FakeProvider]
    ) -> None:
        with _patch_provider(providers):
            result = runner.invoke(app, ["run", "-r", "us-east-1", "-r", "us-west-2"], env=cli_env)

        assert result.exit_code == 0, result.stdout
        calls = providers["us-east-1"].calls
        assert [call[:2] for call in calls] == [
            ("list_volumes", "us-east-1"),
            ("create_snapshot", "us-east-1"),
            ("set_tags", "us-east-1"),
            ("set_tags", "us-east-1"),
            ("list_volumes", "us-west-2"),
            ("list_snapshots", "us-east-1"),
            ("list_snapshots", "us-west-2"),
            ("delete_snapshot", "us-west-2"),
        ]

    def test_regions_from_environment(
        self, runner: CliRunner, cli_env: Dict[str, str], providers: Dict[Optional[str], FakeProvider]
    ) -> None:
        env = dict(cli_env, EBS_BACKUP_REGIONS="us-west-2")

        with _patch_provider(providers):
            result = runner.invoke(app, ["run"], env=env)

        assert result.exit_code == 0, result.stdout
        assert {call[1] for call in providers["us-west-2"].calls} == {"us-west-2"}

    def test_dry_run_makes_no_changes(
        self, runner: CliRunner, cli_env: Dict[str, str], providers: Dict[Optional[str], FakeProvider]
    ) -> None:
        """Test --dry-run lists planned actions without mutating calls."""
        with _patch_provider(providers):
            result = runner.invoke(app, ["run", "--dry-run"], env=cli_env)

        assert result.exit_code == 0, result.stdout
        assert providers[None].mutating_calls == []
        assert "Planned actions (dry run)" in result.stdout
        assert "vol-default" in result.stdout
        assert "snap-expired" in result.stdout

    def test_nothing_to_do(self, runner: CliRunner, cli_env: Dict[str, str]) -> None:
        with _patch_provider({None: FakeProvider()}):
            result = runner.invoke(app, ["run"], env=cli_env)

        assert result.exit_code == 0
        assert "Nothing to do" in result.stdout

    def test_aws_error_exits_with_code_2(self, runner: CliRunner, cli_env: Dict[str, str]) -> None:
        class DeniedProvider(FakeProvider):
            def list_volumes(self, tag_key: str, tag_value: str):  # type: ignore
                error_response = {"Error": {"Code": "UnauthorizedOperation", "Message": "denied"}}
                raise ClientError(error_response, "DescribeVolumes")

        with _patch_provider({None: DeniedProvider()}):
            result = runner.invoke(app, ["run"], env=cli_env)

        assert result.exit_code == 2
        assert "AWS error" in result.stdout

    def test_interval_polls_until_interrupted(
        self, runner: CliRunner, cli_env: Dict[str, str], providers: Dict[Optional[str], FakeProvider]
    ) -> None:
        """Test --interval runs passes with sleeps and stops cleanly on Ctrl+C."""
        with _patch_provider(providers), patch(
            "ebs_backup.backup.runner.time.sleep", side_effect=[None, KeyboardInterrupt()]
        ) as mock_sleep:
            result = runner.invoke(app, ["run", "--interval", "30", "--dry-run"], env=cli_env)

        assert result.exit_code == 0, result.stdout
        assert mock_sleep.call_count == 2
        assert "monitor stopped" in result.stdout
        assert providers[None].mutating_calls == []

    def test_invalid_config_file_exits_with_code_1(self, runner: CliRunner, tmp_path: Path) -> None:
        config_file = tmp_path / "config.yaml"
        config_file.write_text("- not\n- a mapping\n")

        result = runner.invoke(app, ["--config", str(config_file), "run"])

        assert result.exit_code == 1
        assert "✗ Config file" in result.stdout


class TestStatusCommand:
    """Integration tests for the status command."""

    def test_status_is_read_only(
        self, runner: CliRunner, cli_env: Dict[str, str], providers: Dict[Optional[str], FakeProvider]
    ) -> None:
        with _patch_provider(providers):
            result = runner.invoke(app, ["status"], env=cli_env)

        assert result.exit_code == 0, result.stdout
        assert providers[None].mutating_calls == []
        assert "vol-default" in result.stdout
        assert "snap-expired" in result.stdout

    def test_status_flags_unparseable_purge_tag(self, runner: CliRunner, cli_env: Dict[str, str]) -> None:
        provider = FakeProvider(snapshots=[create_snapshot("snap-bad", purge_at="later")])

        with _patch_provider({None: provider}):
            result = runner.invoke(app, ["status"], env=cli_env)

        assert result.exit_code == 0, result.stdout
        assert "unparseable" in result.stdout


def test_version(runner: CliRunner, cli_env: Dict[str, str]) -> None:
    result = runner.invoke(app, ["version"], env=cli_env)

    assert result.exit_code == 0
    assert __version__ in result.stdout
