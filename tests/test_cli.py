import json
from pathlib import Path

from dds_helper import write_dds
from ntspgen.cli import EXIT_FAILURE, EXIT_OK, main
from ntspgen.utils.paths import collect_inputs


def _src(tmp_path: Path) -> Path:
    src = tmp_path / "src"
    src.mkdir()
    write_dds(src / "rock.dds", 16, 16, seed=1)
    write_dds(src / "moss.DDS", 8, 8, seed=2)
    (src / "readme.txt").write_text("ignored")
    return src


def test_collect_inputs(tmp_path: Path):
    src = _src(tmp_path)
    extra = write_dds(tmp_path / "extra.dds", 4, 4)
    inputs = collect_inputs([src, extra, tmp_path / "out.ntsp", tmp_path / "x.png"])
    assert [p.name for p in inputs.textures] == ["moss.DDS", "rock.dds", "extra.dds"]
    assert inputs.package == tmp_path / "out.ntsp"
    assert inputs.ignored == [tmp_path / "x.png"]


def test_build_then_validate_and_inspect(tmp_path: Path, capsys):
    src = _src(tmp_path)
    out = tmp_path / "level.ntsp"
    info_dir = tmp_path / "info"
    rc = main(["-r", "silent", "build", str(src), str(out), "--info-dir", str(info_dir)])
    assert rc == EXIT_OK
    assert out.exists()
    assert (info_dir / "rock.dds").exists()
    assert (info_dir / "moss.DDS").exists()

    assert main(["-r", "silent", "validate", str(out)]) == EXIT_OK

    capsys.readouterr()
    assert main(["-r", "silent", "inspect", str(out)]) == EXIT_OK
    pkg = json.loads(capsys.readouterr().out)
    assert sorted(e["name"] for e in pkg["entries"]) == ["moss", "rock"]

    assert main(["-r", "silent", "inspect", str(info_dir / "rock.dds")]) == EXIT_OK
    sidecar = json.loads(capsys.readouterr().out)
    assert sidecar["package_name"] == "level"
    assert sidecar["descriptor"].startswith(b"DDS ".hex())


def test_build_in_place_replaces_sources(tmp_path: Path):
    src = _src(tmp_path)
    out = tmp_path / "level.ntsp"
    assert main(["-r", "silent", "build", str(src), str(out)]) == EXIT_OK
    assert (src / "rock.dds").read_bytes()[:4] == b"NTSI"


def test_plan_json(tmp_path: Path, capsys):
    src = _src(tmp_path)
    capsys.readouterr()
    assert main(["-r", "silent", "plan", str(src), "--json"]) == EXIT_OK
    plan = json.loads(capsys.readouterr().out)
    assert plan["sections"]["entries"]["count"] == 2
    assert plan["file_size"] == plan["header_size"] + plan["data_size"]


def test_build_requires_package_path(tmp_path: Path):
    src = _src(tmp_path)
    assert main(["-r", "silent", "build", str(src)]) == EXIT_FAILURE


def test_build_with_only_broken_inputs_fails(tmp_path: Path):
    bad = tmp_path / "bad.dds"
    bad.write_bytes(b"nope")
    out = tmp_path / "p.ntsp"
    assert main(["-r", "silent", "build", str(bad), str(out)]) == EXIT_FAILURE
    assert not out.exists()


def test_json_reporter_keeps_plan_output_clean(tmp_path: Path, capsys):
    src = _src(tmp_path)
    capsys.readouterr()
    assert main(["-r", "json", "plan", str(src), "--json"]) == EXIT_OK
    captured = capsys.readouterr()
    plan = json.loads(captured.out)
    assert plan["sections"]["entries"]["count"] == 2
    events = [json.loads(line) for line in captured.err.splitlines()]
    assert any(e["event"] == "task_end" for e in events)
