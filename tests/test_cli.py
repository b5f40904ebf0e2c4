import argparse
from pathlib import Path

import pytest

from office_checkin.cli import apply_overrides, build_client, main
from office_checkin.client import HttpCheckInClient, StubCheckInClient
from office_checkin.config import CheckInConfig
from office_checkin.geofence import Coordinate

ENV_KEYS = ("CHECKIN_API_BASE_URL", "USE_MOCK_LOCATION", "ROSTER_PATH", "SIMULATED_POSITION")


@pytest.fixture
def clean_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    for key in ENV_KEYS:
        monkeypatch.setenv(key, "")
    monkeypatch.setenv("STUB_DELAY_MS", "0")
    return tmp_path / "missing.env"


def _args(**overrides) -> argparse.Namespace:
    values = {"mock_location": False, "simulate_position": None, "headed": False}
    values.update(overrides)
    return argparse.Namespace(**values)


def test_list_prints_roster(clean_env: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["--list", "--env-file", str(clean_env)]) == 0

    out = capsys.readouterr().out
    assert "emp-1" in out
    assert "Hanako Sato" in out


def test_init_env_creates_template(tmp_path: Path) -> None:
    env_file = tmp_path / ".env"

    assert main(["--init-env", "--env-file", str(env_file)]) == 0
    assert env_file.exists()


def test_unknown_employee_exits_with_usage_error(clean_env: Path) -> None:
    assert main(["--employee", "emp-404", "--env-file", str(clean_env)]) == 2


def test_mock_location_check_in_succeeds(clean_env: Path) -> None:
    assert main(["--employee", "emp-1", "--mock-location", "--env-file", str(clean_env)]) == 0


def test_locate_only_with_mock_location(clean_env: Path) -> None:
    assert main(["--locate-only", "--mock-location", "--env-file", str(clean_env)]) == 0


def test_roster_file_errors_are_reported(clean_env: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    roster = tmp_path / "roster.json"
    roster.write_text("[]", encoding="utf-8")
    monkeypatch.setenv("ROSTER_PATH", str(roster))

    assert main(["--list", "--env-file", str(clean_env)]) == 2


def test_overrides_fold_flags_into_config() -> None:
    config = apply_overrides(
        CheckInConfig(),
        _args(mock_location=True, simulate_position="35.5,139.5", headed=True),
    )

    assert config.gate.use_mock_location is True
    assert config.simulated_position == Coordinate(35.5, 139.5)
    assert config.headless is False


def test_overrides_leave_defaults_alone() -> None:
    config = apply_overrides(CheckInConfig(), _args())

    assert config == CheckInConfig()


def test_client_choice_follows_base_url() -> None:
    assert isinstance(build_client(CheckInConfig()), StubCheckInClient)
    assert isinstance(
        build_client(CheckInConfig(api_base_url="https://api.example.com")), HttpCheckInClient
    )
