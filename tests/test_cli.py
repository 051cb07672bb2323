from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml

from launch_blueprint.cli import EXIT_FAILURE, main

WORKFLOW = """\
Actions:
  Build:
    Identifier: aws/build@v1
    Inputs:
      Variables:
        - Name: region
          Value: us-west-2
"""


def _options_file(tmp_path: Path) -> Path:
    path = tmp_path / "options.json"
    path.write_text(
        json.dumps(
            {
                "sourceRepository": "https://example.invalid/app.git",
                "destinationRepositoryName": "app",
                "launchOptions": [{"key": "region", "value": "eu-central-1"}],
            }
        ),
        encoding="utf-8",
    )
    return path


def test_synth_with_cached_source(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    outdir = tmp_path / "out"
    workflow = outdir / ".cache" / "app" / ".codecatalyst" / "workflows" / "build.yaml"
    workflow.parent.mkdir(parents=True)
    workflow.write_text(WORKFLOW, encoding="utf-8")

    code = main(["synth", "--options", str(_options_file(tmp_path)), "--outdir", str(outdir)])
    assert code == 0

    repo = Path(capsys.readouterr().out.strip())
    assert repo.parent.parent.parent == (outdir / "synth").resolve()
    out = yaml.safe_load((repo / ".codecatalyst" / "workflows" / "build.yaml").read_text(encoding="utf-8"))
    assert out["Actions"]["Build"]["Inputs"]["Variables"] == [{"Name": "region", "Value": "eu-central-1"}]


def test_missing_options_file_fails(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    code = main(["synth", "--options", str(tmp_path / "missing.json"), "--outdir", str(tmp_path / "out")])
    assert code == EXIT_FAILURE
    assert "Options file does not exist" in capsys.readouterr().err


def test_invalid_options_fail(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    path = tmp_path / "options.json"
    path.write_text("{}", encoding="utf-8")
    code = main(["synth", "--options", str(path), "--outdir", str(tmp_path / "out")])
    assert code == EXIT_FAILURE
    assert "sourceRepository" in capsys.readouterr().err


def test_synth_requires_subcommand() -> None:
    with pytest.raises(SystemExit):
        main([])
