"""
Command line parsing and dispatch.
"""

import logging

from creek_bot import cli
from creek_bot.commands import discover, repay, withdraw
from creek_bot.errors import DiscoveryError, ExecutionError


class Recorder:
    def __init__(self, error=None):
        self.calls = []
        self.error = error

    def __call__(self, *args, **kwargs):
        self.calls.append((args, kwargs))
        if self.error:
            raise self.error
        return []


class TestMain:

    def test_no_command(self, capsys):
        assert cli.main([]) == 2
        assert "withdraw" in capsys.readouterr().out

    def test_missing_env_file(self):
        assert cli.main(["withdraw", "--env", "missing.env"]) == 1

    def test_withdraw_overrides(self, monkeypatch):
        recorder = Recorder()
        monkeypatch.setattr(withdraw, "run", recorder)
        code = cli.main([
            "withdraw", "--mode", "percent", "--percent", "30", "--dry-run",
            "--target", "0x1::withdraw_collateral::withdraw_collateral_entry",
        ])
        assert code == 0
        (settings, logger), _ = recorder.calls[0]
        assert settings.action == "withdraw"
        assert (settings.mode, settings.percent, settings.dry_run) == ("percent", 30, True)
        assert settings.target_override.endswith("withdraw_collateral_entry")
        assert isinstance(logger, logging.Logger)

    def test_flags_left_unset_keep_env(self, monkeypatch):
        monkeypatch.setenv("WITHDRAW_AMOUNT", "777")
        monkeypatch.setenv("DRYRUN", "1")
        recorder = Recorder()
        monkeypatch.setattr(withdraw, "run", recorder)
        assert cli.main(["withdraw"]) == 0
        (settings, _), _ = recorder.calls[0]
        assert settings.amount == 777
        assert settings.dry_run

    def test_repay_dispatch(self, monkeypatch):
        recorder = Recorder()
        monkeypatch.setattr(repay, "run", recorder)
        assert cli.main(["repay", "--mode", "all", "--list-only"]) == 0
        (settings, _), _ = recorder.calls[0]
        assert settings.action == "repay"
        assert settings.mode == "all"
        assert settings.list_only
        assert settings.refresh_assets == ()

    def test_invalid_percent(self, monkeypatch):
        monkeypatch.setattr(withdraw, "run", Recorder())
        assert cli.main(["withdraw", "--percent", "0"]) == 1

    def test_execution_error_is_fatal(self, monkeypatch, caplog):
        error = ExecutionError("Aborted on unclassified failure", last_message="MoveAbort 1537")
        monkeypatch.setattr(withdraw, "run", Recorder(error))
        with caplog.at_level(logging.ERROR):
            assert cli.main(["withdraw"]) == 1
        assert "FATAL" in caplog.text
        assert "Last chain message: MoveAbort 1537" in caplog.text

    def test_discover_dispatch(self, monkeypatch):
        recorder = Recorder()
        monkeypatch.setattr(discover, "run", recorder)
        assert cli.main(["discover", "borrow", "--limit", "5"]) == 0
        (settings, action, _), kwargs = recorder.calls[0]
        assert settings.action == "borrow"
        assert action == "borrow"
        assert kwargs == {"limit": 5}

    def test_discover_failure(self, monkeypatch):
        monkeypatch.setattr(discover, "run", Recorder(DiscoveryError("No borrow entry found")))
        assert cli.main(["discover", "borrow"]) == 1
