from __future__ import annotations

import json
from pathlib import Path

import pytest

from conftest import BASE_URL, FakeResponse, write_delegate
from iwork_pipeline import BoxClient, ConversionInvoker
from iwork_pipeline.cli import main, parse_args, resolve_config


@pytest.fixture
def quiet_cli(monkeypatch):
    """Keep pytest's log capture intact; main() would reset root handlers."""
    monkeypatch.setattr("iwork_pipeline.cli._setup_logging", lambda **kwargs: None)


@pytest.fixture
def patch_box(monkeypatch, fake_session, text_converter):
    monkeypatch.delenv("BOX_FOLDER_ID", raising=False)
    created = {}

    def _client(token, **kwargs):
        created["token"] = token
        created.update(kwargs)
        kwargs["base_url"] = BASE_URL
        return BoxClient(token, session=fake_session, **kwargs)

    monkeypatch.setattr("iwork_pipeline.cli.BoxClient", _client)
    monkeypatch.setattr(
        "iwork_pipeline.cli.create_converter", lambda *args, **kwargs: text_converter
    )
    monkeypatch.setattr(
        "iwork_pipeline.processor.tqdm", lambda iterable, **kwargs: iterable
    )
    return created


def _reports(output_dir: Path) -> list[Path]:
    if not output_dir.exists():
        return []
    return sorted(output_dir.glob("processing_report_*.json"))


def test_parse_args_box_flags():
    args = parse_args(
        ["--box", "--token=abc", "--folder=123", "--format=html", "--output", "out"]
    )
    assert args.box is True
    assert args.token == "abc"
    assert args.folder == "123"
    assert args.format == "html"
    assert args.output_dir == Path("out")


def test_parse_args_rejects_bad_format():
    with pytest.raises(SystemExit):
        parse_args(["--box", "--format=pdf"])


def test_resolve_config_prefers_flags_over_environment():
    env = {
        "BOX_ACCESS_TOKEN": "env-token",
        "BOX_FOLDER_ID": "env-folder",
        "OUTPUT_DIR": "env-out",
        "TEMP_DIR": "env-temp",
    }
    config = resolve_config(parse_args(["--box", "--token", "flag-token"]), env)

    assert config.token == "flag-token"
    assert config.folder_id == "env-folder"
    assert config.output_dir == Path("env-out")
    assert config.temp_dir == Path("env-temp")


def test_resolve_config_defaults():
    config = resolve_config(parse_args(["--box"]), {})
    assert config.token == ""
    assert config.folder_id == "0"
    assert config.output_format == "txt"
    assert config.output_dir == Path("extracted")
    assert config.temp_dir == Path("temp")
    assert config.timeout == 30


def test_main_box_run_writes_report(
    tmp_path, scenario_session, patch_box, quiet_cli
):
    output_dir = tmp_path / "extracted"
    temp_dir = tmp_path / "temp"

    main(
        [
            "--box",
            "--token",
            "secret",
            "--output",
            str(output_dir),
            "--temp",
            str(temp_dir),
        ]
    )

    assert patch_box["token"] == "secret"
    reports = _reports(output_dir)
    assert len(reports) == 1
    data = json.loads(reports[0].read_text(encoding="utf-8"))
    assert data["total_files"] == 2
    assert data["successful"] == 1
    assert data["failed"] == 1
    assert data["errors"][0].startswith("Failed to download Doc2.numbers: ")
    assert data["processed_files"][0]["original_file"] == "Doc1.pages"
    assert data["processed_files"][0]["file_size"] == 1024
    assert (output_dir / "Doc1_extracted.txt").exists()
    assert list(temp_dir.iterdir()) == []


def test_main_missing_token_aborts_without_report(
    tmp_path, monkeypatch, scenario_session, patch_box, quiet_cli, caplog
):
    monkeypatch.delenv("BOX_ACCESS_TOKEN", raising=False)
    output_dir = tmp_path / "extracted"

    with pytest.raises(SystemExit) as excinfo:
        main(
            [
                "--box",
                "--output",
                str(output_dir),
                "--temp",
                str(tmp_path / "temp"),
            ]
        )

    assert excinfo.value.code == 1
    assert scenario_session.calls == []
    assert _reports(output_dir) == []
    assert "BOX_ACCESS_TOKEN" in caplog.text


def test_main_listing_error_aborts(tmp_path, fake_session, patch_box, quiet_cli):
    fake_session.routes["folders/0/items"] = FakeResponse(500, reason="Server Error")
    output_dir = tmp_path / "extracted"

    with pytest.raises(SystemExit) as excinfo:
        main(["--box", "--token", "t", "--output", str(output_dir)])

    assert excinfo.value.code == 1
    assert _reports(output_dir) == []


def test_main_single_file_infers_text_format(tmp_path, monkeypatch, quiet_cli):
    seen = {}

    def txt(src: Path, dst: Path) -> None:
        seen["format"] = "txt"
        dst.write_text("plain")

    invoker = ConversionInvoker({"txt": txt, "html": write_delegate("<p/>")})
    monkeypatch.setattr(
        "iwork_pipeline.cli.create_converter", lambda *args, **kwargs: invoker
    )
    src = tmp_path / "doc.pages"
    src.write_bytes(b"raw")
    dst = tmp_path / "doc.txt"

    main([str(src), str(dst)])

    assert seen["format"] == "txt"
    assert dst.read_text() == "plain"


def test_main_single_file_failure_exits_nonzero(tmp_path, monkeypatch, quiet_cli):
    def broken(src: Path, dst: Path) -> None:
        raise RuntimeError("bad container")

    invoker = ConversionInvoker({"txt": broken, "html": broken})
    monkeypatch.setattr(
        "iwork_pipeline.cli.create_converter", lambda *args, **kwargs: invoker
    )

    with pytest.raises(SystemExit) as excinfo:
        main([str(tmp_path / "doc.pages"), str(tmp_path / "doc.html")])
    assert excinfo.value.code == 1


def test_main_without_arguments_prints_help(capsys, quiet_cli):
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2
    assert "usage:" in capsys.readouterr().out
