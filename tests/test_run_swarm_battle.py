"""
Tests for the headless battle runner script.
"""

import importlib.util
import json
import re
from pathlib import Path

import pytest


SCRIPT = Path(__file__).parent.parent / "scripts" / "run_swarm_battle.py"


@pytest.fixture
def runner():
    """Load the script as a module without running it."""
    spec = importlib.util.spec_from_file_location("run_swarm_battle", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def close_quarters_config(tmp_path):
    """
    Tiny arena: the spawn margin collapses every swarm onto the center, and
    the aim range covers the whole arena, so shots are guaranteed.
    """
    path = tmp_path / "battle.json"
    path.write_text(json.dumps({
        "arena_width": 200,
        "arena_height": 200,
        "record_events": False,
        "ship": {"aim_range": 1000.0},
    }))
    return str(path)


def test_summary_counts_without_recorded_events(runner, close_quarters_config,
                                                monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", [
        "run_swarm_battle.py",
        "--config", close_quarters_config,
        "--swarms", "2",
        "--ticks", "100",
        "--seed", "42",
    ])

    assert runner.main() == 0

    out = capsys.readouterr().out
    match = re.search(r"Shots fired: (\d+)", out)
    assert match is not None
    assert int(match.group(1)) > 0


def test_missing_config_file(runner, tmp_path, monkeypatch, capsys):
    monkeypatch.setattr("sys.argv", [
        "run_swarm_battle.py", "--config", str(tmp_path / "missing.json"),
    ])
    assert runner.main() == 1
    assert "Error loading config" in capsys.readouterr().err
