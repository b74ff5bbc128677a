"""CLI argument parsing and exit-code behavior tests.

Verifies how ``wsnav.cli.main`` routes subcommands and reports outcomes.
Dispatch functions are mocked so no tmux server is needed.
"""

from __future__ import annotations

import io
import tempfile
import unittest
from contextlib import redirect_stderr, redirect_stdout
from pathlib import Path
from unittest import mock

from wsnav import cli
from wsnav.dispatch import CommandResult
from wsnav.navigation import Action, Outcome
from wsnav.picker import PickerError
from wsnav.tmux import AdapterError


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        patcher = mock.patch("wsnav.cli.setup_logging")
        patcher.start()
        self.addCleanup(patcher.stop)
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        config_patcher = mock.patch("wsnav.config.CONFIG_PATH", Path(tmp.name) / "config.json")
        config_patcher.start()
        self.addCleanup(config_patcher.stop)
        self.history_file = Path(tmp.name) / "history"

    def _main(self, argv: list[str]) -> tuple[int, str, str]:
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = cli.main(["--history-file", str(self.history_file), *argv])
        return code, out.getvalue(), err.getvalue()

    def test_kill_passes_optional_session_argument(self) -> None:
        with mock.patch("wsnav.cli.run_kill", return_value=CommandResult()) as run_kill:
            code, _out, _err = self._main(["kill", "work"])
        self.assertEqual(code, cli.EXIT_OK)
        deps, target = run_kill.call_args.args
        self.assertEqual(target, "work")
        self.assertEqual(deps.store.path, self.history_file)

    def test_max_history_flag_reaches_store(self) -> None:
        with mock.patch("wsnav.cli.run_back", return_value=CommandResult()) as run_back:
            self._main(["--max-history", "3", "back"])
        self.assertEqual(run_back.call_args.args[0].store.max_entries, 3)

    def test_noop_message_goes_to_stderr_with_success_exit(self) -> None:
        result = CommandResult(message="No previous session in history")
        with mock.patch("wsnav.cli.run_back", return_value=result):
            code, out, err = self._main(["back"])
        self.assertEqual(code, cli.EXIT_OK)
        self.assertEqual(out, "")
        self.assertIn("No previous session in history", err)

    def test_no_sessions_remain_is_not_a_failure(self) -> None:
        outcome = Outcome(action=Action(destroy="A", no_sessions_remain=True), history=(), history_changed=False)
        result = CommandResult(outcome=outcome, message="No sessions remain")
        with mock.patch("wsnav.cli.run_kill", return_value=result):
            code, _out, err = self._main(["kill", "A"])
        self.assertEqual(code, cli.EXIT_OK)
        self.assertIn("No sessions remain", err)

    def test_history_lines_print_to_stdout(self) -> None:
        with mock.patch("wsnav.cli.run_history", return_value=CommandResult(lines=("B", "A"))):
            code, out, _err = self._main(["history"])
        self.assertEqual(code, cli.EXIT_OK)
        self.assertEqual(out, "B\nA\n")

    def test_adapter_and_picker_failures_exit_nonzero(self) -> None:
        for exc in (AdapterError("tmux not found on PATH"), PickerError("fzf not found on PATH")):
            with mock.patch("wsnav.cli.run_pick", side_effect=exc):
                code, _out, err = self._main(["pick"])
            self.assertEqual(code, cli.EXIT_FAILURE)
            self.assertIn(f"Error: {exc}", err)

    def test_missing_subcommand_is_usage_error(self) -> None:
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit) as raised:
            cli.main([])
        self.assertEqual(raised.exception.code, 2)

    def test_package_main_delegates_to_cli(self) -> None:
        import wsnav

        with mock.patch("wsnav.cli.main", return_value=0) as cli_main:
            self.assertEqual(wsnav.main(["history"]), 0)
        cli_main.assert_called_once_with(["history"])


if __name__ == "__main__":
    unittest.main()
