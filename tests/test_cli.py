"""Tests for the command-line interface."""

import io
import json

import pytest

from pii_sanitize import cli


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("LANGUAGE_ENDPOINT", "LANGUAGE_KEY", "PII_SANITIZE_CONFIG"):
        monkeypatch.delenv(var, raising=False)


def _stdin(monkeypatch, data):
    monkeypatch.setattr("sys.stdin", io.StringIO(data))


def test_mask_command(monkeypatch, capsys):
    _stdin(monkeypatch, json.dumps({
        "text": "Call 0601020304 now",
        "entities": [{"category": "PhoneNumber", "offset": 5, "length": 10}],
    }))
    assert cli.main(["mask", "--policy", "pseudo"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["anonymized"] == "Call [PhoneNumber] now"
    assert out["spans"] == [{"start": 5, "end": 18}]


def test_mask_uses_config_filters(monkeypatch, capsys, tmp_path):
    cfg = tmp_path / "pii.yaml"
    cfg.write_text("pii_sanitize:\n  default_policy: hash\n  skip_categories: [Person]\n",
                   encoding="utf-8")
    _stdin(monkeypatch, json.dumps({
        "text": "Alice 0601020304",
        "entities": [{"category": "Person", "offset": 0, "length": 5},
                     {"category": "PhoneNumber", "offset": 6, "length": 10}],
    }))
    assert cli.main(["--config", str(cfg), "mask"]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["anonymized"].startswith("Alice ")
    assert len(out["anonymized"]) == len("Alice ") + 10


def test_mask_bad_policy_exit_code(monkeypatch, capsys):
    _stdin(monkeypatch, json.dumps({"text": "x", "entities": []}))
    assert cli.main(["mask", "--policy", "scramble"]) == 2
    err = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert "scramble" in err["error"]


def test_mask_invalid_json(monkeypatch, capsys):
    _stdin(monkeypatch, "{nope")
    assert cli.main(["mask"]) == 2


def test_sanitize_without_credentials(monkeypatch, capsys):
    _stdin(monkeypatch, "Call 0601020304 now")
    assert cli.main(["sanitize"]) == 1
    assert "LANGUAGE_ENDPOINT" in capsys.readouterr().err
