import json

from geonotes.cli import main


def _write_config(tmp_path):
    config = tmp_path / "config.yaml"
    config.write_text(f"storage:\n  base_path: {tmp_path / 'store'}\n", encoding="utf-8")
    return str(config)


def test_seed_then_markers(tmp_path, capsys):
    config = _write_config(tmp_path)
    notes_file = tmp_path / "notes.json"
    notes_file.write_text(
        json.dumps(
            [
                {"title": "A", "content": "one", "latitude": 1.0, "longitude": 1.0},
                {"title": "B", "content": "two", "latitude": 1.0, "longitude": 1.0},
                {"title": "C", "content": "three", "latitude": 5, "longitude": 5},
                {"title": "", "content": "invalid"},
            ]
        ),
        encoding="utf-8",
    )
    account = ["--email", "ada@example.com", "--password", "secret1"]

    assert main(["--config", config, "seed", *account, "--full-name", "Ada", "--file", str(notes_file)]) == 0
    assert "Imported 3 of 4 notes" in capsys.readouterr().out

    assert main(["--config", config, "markers", *account]) == 0
    out = capsys.readouterr().out
    lines = out.splitlines()
    assert sum(line.startswith("cluster ") for line in lines) == 1
    assert sum(line.startswith("single ") for line in lines) == 1
    assert "2 Notes" in out
    assert "bounds sw=(1.000000,1.000000) ne=(5.000000,5.000000)" in out
