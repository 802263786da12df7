from __future__ import annotations

import json
from pathlib import Path

from click.testing import CliRunner

from pipeforge.cli import main


def test_resolve_prints_camel_case(tmp_path: Path) -> None:
    path = tmp_path / "pipeline.json"
    path.write_text(json.dumps({"name": "cli", "plugins": {"modelTrain": {"package": "trainer"}}}))

    result = CliRunner().invoke(main, ["resolve", path.as_uri()])

    assert result.exit_code == 0, result.output
    body = json.loads(result.output[result.output.index("{") :])
    assert body["name"] == "cli"
    assert body["modelTrain"] == "trainer"


def test_resolve_bare_path_fails(tmp_path: Path) -> None:
    result = CliRunner().invoke(main, ["resolve", str(tmp_path / "pipeline.json")])

    assert result.exit_code == 1
    assert "not supported" in result.output


def test_copy_tree(tmp_path: Path) -> None:
    src = tmp_path / "src"
    src.mkdir()
    (src / "a.txt").write_text("alpha")
    (src / "link").symlink_to("a.txt")

    result = CliRunner().invoke(main, ["copy", str(src), str(tmp_path / "dest"), "--max-in-flight", "2"])

    assert result.exit_code == 0, result.output
    assert (tmp_path / "dest" / "a.txt").read_text() == "alpha"
    assert (tmp_path / "dest" / "link").readlink() == Path("a.txt")
