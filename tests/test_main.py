import json
from pathlib import Path

from conftest import build_zip, read_zip
from datapack_editor.main import format_tree, run


def _write_datapack(tmp_path: Path) -> Path:
    source = tmp_path / "Pack.zip"
    source.write_bytes(
        build_zip(
            {
                "Pack/": None,
                "Pack/teams.csv": "1,Alpha",
                "Pack/logos/": None,
            }
        )
    )
    return source


def test_replace_and_rename(tmp_path):
    source = _write_datapack(tmp_path)
    replacement = tmp_path / "teams.csv"
    replacement.write_text("1,Alpha Rebranded")

    code = run(
        [
            str(source),
            "--name",
            "MyPack",
            "--replace",
            f"MyPack/teams.csv={replacement}",
        ]
    )

    assert code == 0
    exported = read_zip((tmp_path / "MyPack.zip").read_bytes())
    assert exported == {
        "MyPack/": b"",
        "MyPack/teams.csv": b"1,Alpha Rebranded",
        "MyPack/logos/": b"",
    }
    assert read_zip(source.read_bytes())["Pack/teams.csv"] == b"1,Alpha"


def test_never_overwrites_the_input(tmp_path):
    source = _write_datapack(tmp_path)

    assert run([str(source)]) == 0
    assert (tmp_path / "Pack_edited.zip").exists()


def test_tree_only(tmp_path, capsys):
    source = _write_datapack(tmp_path)
    dump = tmp_path / "tree.json"

    assert run([str(source), "--tree", "--dump-tree", str(dump)]) == 0

    assert capsys.readouterr().out.splitlines() == ["Pack/", "  logos/", "  teams.csv"]
    tree = json.loads(dump.read_text())
    assert tree[0]["path"] == "Pack"
    assert [child["name"] for child in tree[0]["children"]] == ["logos", "teams.csv"]
    assert not (tmp_path / "Pack_edited.zip").exists()


def test_malformed_archive(tmp_path):
    source = tmp_path / "Broken.zip"
    source.write_bytes(b"not a zip")

    assert run([str(source), "-o", str(tmp_path / "out.zip")]) == 1
    assert not (tmp_path / "out.zip").exists()


def test_replacing_a_folder_is_rejected(tmp_path):
    source = _write_datapack(tmp_path)
    replacement = tmp_path / "file.bin"
    replacement.write_bytes(b"data")

    assert run([str(source), "-r", f"Pack/logos={replacement}"]) == 2


def test_replacing_below_a_file_is_rejected(tmp_path):
    source = _write_datapack(tmp_path)
    replacement = tmp_path / "file.bin"
    replacement.write_bytes(b"data")

    assert run([str(source), "-r", f"Pack/teams.csv/extra={replacement}"]) == 2


def test_missing_files_fail_with_read_errors(tmp_path):
    source = _write_datapack(tmp_path)

    assert run([str(tmp_path / "Missing.zip")]) == 1
    assert run([str(source), "-r", f"Pack/teams.csv={tmp_path / 'missing.csv'}"]) == 1
    assert not (tmp_path / "Pack_edited.zip").exists()


def test_format_tree_empty():
    assert format_tree([]) == []
