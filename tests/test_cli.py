from __future__ import annotations

import yaml

from elemental_reactions.__main__ import main


def test_dump_config_prints_merged_yaml(tmp_path, capsys):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("wetness:\n  max_level: 7\n", encoding="utf-8")
    assert main(["--config", str(cfg), "--dump-config"]) == 0
    data = yaml.safe_load(capsys.readouterr().out)
    assert data["wetness"]["max_level"] == 7
    assert data["damage"]["restraints"][0] == "fire->nature"


def test_strict_mode_reports_missing_file(tmp_path, capsys):
    assert main(["--config", str(tmp_path / "missing.yaml"), "--strict"]) == 2
    assert "not found" in capsys.readouterr().err


def test_headless_run_needs_a_step_limit(tmp_path, capsys):
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("{}\n", encoding="utf-8")
    assert main(["--config", str(cfg)]) == 2
    assert main(["--config", str(cfg), "--max-steps", "3", "--tick-rate", "0", "--seed", "7"]) == 0
    assert "ran 3 ticks" in capsys.readouterr().out
