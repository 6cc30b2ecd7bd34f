"""CLI / Cloud Functions エントリーポイントのテスト

create_sweep をモックし、終了コードと HTTP レスポンスへの変換を検証する。
"""

from unittest.mock import MagicMock, patch

import pytest
from duetrack.domain.errors import ConfigurationError, StoreUnavailableError
from duetrack.domain.models import SweepSummary
from duetrack.entrypoints import cli
from duetrack.entrypoints.cloud_function import sweep_deadlines_http


def _sweep_returning(summary=None, error=None) -> MagicMock:
    sweep = MagicMock()
    if error is not None:
        sweep.run.side_effect = error
    else:
        sweep.run.return_value = summary or SweepSummary()
    return sweep


@pytest.fixture(autouse=True)
def no_logging_setup():
    with patch("duetrack.entrypoints.cli.setup_logging"):
        yield


class TestCli:
    def test_success_returns_normally(self):
        sweep = _sweep_returning(SweepSummary(candidates=1, notified=1, delivered=2))
        with patch("duetrack.entrypoints.cli.create_sweep", return_value=sweep):
            cli.main()

        sweep.run.assert_called_once()

    def test_individual_failures_still_exit_zero(self):
        """個別の締め切りの失敗は次回再試行されるため正常終了扱い"""
        sweep = _sweep_returning(SweepSummary(candidates=2, failed=1))
        with patch("duetrack.entrypoints.cli.create_sweep", return_value=sweep):
            cli.main()

    def test_configuration_error_exits_2(self):
        with patch(
            "duetrack.entrypoints.cli.create_sweep",
            side_effect=ConfigurationError("missing credentials"),
        ):
            with pytest.raises(SystemExit) as exc_info:
                cli.main()

        assert exc_info.value.code == cli.EXIT_CONFIG == 2

    def test_store_unavailable_exits_1(self):
        sweep = _sweep_returning(error=StoreUnavailableError("down"))
        with patch("duetrack.entrypoints.cli.create_sweep", return_value=sweep):
            with pytest.raises(SystemExit) as exc_info:
                cli.main()

        assert exc_info.value.code == cli.EXIT_FATAL == 1

    def test_unexpected_error_exits_1(self):
        sweep = _sweep_returning(error=RuntimeError("boom"))
        with patch("duetrack.entrypoints.cli.create_sweep", return_value=sweep):
            with pytest.raises(SystemExit) as exc_info:
                cli.main()

        assert exc_info.value.code == 1

    def test_keyboard_interrupt_exits_130(self):
        sweep = _sweep_returning(error=KeyboardInterrupt())
        with patch("duetrack.entrypoints.cli.create_sweep", return_value=sweep):
            with pytest.raises(SystemExit) as exc_info:
                cli.main()

        assert exc_info.value.code == 130


class TestCloudFunction:
    def test_returns_summary_with_200(self):
        sweep = _sweep_returning(SweepSummary(candidates=1, notified=1, delivered=1))
        with patch(
            "duetrack.entrypoints.cloud_function.create_sweep", return_value=sweep
        ):
            body, code = sweep_deadlines_http(MagicMock())

        assert code == 200
        assert body["status"] == "ok"
        assert body["notified"] == 1
        assert body["delivered"] == 1

    def test_configuration_error_is_500(self):
        with patch(
            "duetrack.entrypoints.cloud_function.create_sweep",
            side_effect=ConfigurationError("bad"),
        ):
            body, code = sweep_deadlines_http(MagicMock())

        assert code == 500
        assert body["reason"] == "configuration"

    def test_store_unavailable_is_503(self):
        sweep = _sweep_returning(error=StoreUnavailableError("down"))
        with patch(
            "duetrack.entrypoints.cloud_function.create_sweep", return_value=sweep
        ):
            body, code = sweep_deadlines_http(MagicMock())

        assert code == 503
        assert body["reason"] == "store_unavailable"
