import json
from pathlib import Path

from fatalscan.cli import main


def test_smoke(tmp_path: Path):
    # A one-file plugin calling a function nobody defines
    plugin = tmp_path / "demo-plugin"
    plugin.mkdir()
    (plugin / "demo.php").write_text("<?php\n/*\nPlugin Name: Demo\n*/\necho acme_missing_helper();\n")
    out = tmp_path / "out"
    code = main(["scan", str(plugin), "--php", "8.1", "--wp", "6.4", "--no-php", "--no-progress", "--out", str(out)])
    assert code == 1
    assert (out / "findings.json").exists()
    data = json.loads((out / "findings.json").read_text())
    assert any(item["context"].get("function") == "acme_missing_helper" for item in data)
