"""Tests for the python -m lidov entry point."""

import json

import pytest

from lidov import hd80860, save_scenario
from lidov.__main__ import build_parser, main


class TestParser:
    """Argument parsing."""

    def test_defaults(self):
        args = build_parser().parse_args([])
        assert args.config is None
        assert args.steps is None
        assert not args.record_initial
        assert not args.dump_config

    def test_values(self):
        args = build_parser().parse_args(
            ["--steps", "5", "--macro-step", "1.5", "--record-initial"])
        assert args.steps == 5
        assert args.macro_step == 1.5
        assert args.record_initial


class TestDumpConfig:
    """--dump-config prints the resolved scenario without running."""

    def test_builtin(self, capsys):
        assert main(["--dump-config"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data['planet']['a'] == 5.0
        assert data['perturber']['inc_deg'] == 85.6
        assert data['run']['n_steps'] == 1_000_000

    def test_overrides(self, capsys):
        assert main(["--dump-config", "--steps", "7", "--output", "x.txt",
                     "--max-time", "500"]) == 0
        run = json.loads(capsys.readouterr().out)['run']
        assert run['n_steps'] == 7
        assert run['output'] == "x.txt"
        assert run['max_time_years'] == 500.0

    def test_from_file(self, tmp_path, capsys):
        path = str(tmp_path / "scenario.json")
        save_scenario(hd80860().replace_run(n_steps=3), path)
        assert main(["--config", path, "--dump-config"]) == 0
        assert json.loads(capsys.readouterr().out)['run']['n_steps'] == 3


class TestErrors:
    """Configuration problems exit with status 2."""

    def test_missing_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "nope.json")]) == 2
        assert "lidov:" in capsys.readouterr().err

    def test_invalid_json(self, tmp_path, capsys):
        path = tmp_path / "bad.json"
        path.write_text("{not json")
        assert main(["--config", str(path)]) == 2

    def test_invalid_override(self, capsys):
        assert main(["--steps", "5", "--macro-step", "-1", "--dump-config"]) == 2
