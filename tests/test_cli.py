"""Tests for the command line interface."""

import json
from unittest.mock import patch

import cv2
import numpy as np
import pytest

from pantryscan.cli import main
from pantryscan.db import InventoryDB
from pantryscan.vision import VisionBackend

REPLY = json.dumps(
    {
        "items": [
            {"name": "tomatoes", "category": "vegetables", "confidence": 0.9},
            {"name": "milk", "category": "dairy", "confidence": 0.8},
        ]
    }
)


class FakeBackend(VisionBackend):
    def __init__(self, reply):
        self.reply = reply

    async def describe(self, images, prompt):
        return self.reply


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    path = tmp_path / "inventory.db"
    monkeypatch.setenv("PANTRYSCAN_DB", str(path))
    return path


@pytest.fixture
def image_file(tmp_path):
    ok, buf = cv2.imencode(".jpg", np.zeros((48, 64, 3), dtype=np.uint8))
    assert ok
    path = tmp_path / "shelf.jpg"
    path.write_bytes(buf.tobytes())
    return path


def _stored(db_path):
    db = InventoryDB(db_path)
    try:
        return db.get_all()
    finally:
        db.close()


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 1
    assert "usage" in capsys.readouterr().out


def test_add_and_list(db_path, capsys):
    main(["add", "Greek yogurt", "--category", "dairy", "--quantity", "2"])
    assert "Added Greek yogurt x2" in capsys.readouterr().out

    main(["list", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert len(data) == 1
    assert data[0]["name"] == "Greek yogurt"
    assert data[0]["category"] == "dairy"
    assert data[0]["confidence"] == 1.0


def test_add_rejects_zero_quantity(db_path):
    with pytest.raises(SystemExit) as exc:
        main(["add", "Egg", "--quantity", "0"])
    assert exc.value.code == 1


def test_list_empty(db_path, capsys):
    main(["list"])
    assert "Inventory is empty." in capsys.readouterr().out


def test_search(db_path, capsys):
    main(["add", "Whole milk"])
    main(["add", "Ham"])
    capsys.readouterr()

    main(["search", "milk", "--json"])
    data = json.loads(capsys.readouterr().out)
    assert [d["name"] for d in data] == ["Whole milk"]


def test_quantity_rename_remove(db_path, capsys):
    main(["add", "Egg", "--quantity", "6"])
    item_id = _stored(db_path)[0].id

    main(["quantity", item_id, "-10"])
    assert "Egg: 1" in capsys.readouterr().out

    main(["rename", item_id, "Duck egg"])
    assert _stored(db_path)[0].name == "Duck egg"

    main(["remove", item_id])
    assert _stored(db_path) == []


def test_quantity_unknown_id(db_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["quantity", "missing", "1"])
    assert exc.value.code == 1
    assert "Inventory error" in capsys.readouterr().err


def test_clear(db_path, capsys):
    main(["add", "Egg"])
    main(["clear", "--yes"])
    assert _stored(db_path) == []


def test_clear_cancelled(db_path, capsys):
    main(["add", "Egg"])
    with patch("builtins.input", return_value="n"):
        main(["clear"])
    assert "Cancelled." in capsys.readouterr().out
    assert len(_stored(db_path)) == 1


def test_scan_with_image(db_path, image_file, capsys):
    with patch("pantryscan.cli.create_backend", return_value=FakeBackend(REPLY)):
        main(["scan", "--image", str(image_file)])

    out = capsys.readouterr().out
    assert "Detected 2 item(s)" in out
    assert "Tomato" in out
    assert {i.name for i in _stored(db_path)} == {"Tomato", "Milk"}


def test_scan_dry_run_json(db_path, image_file, capsys):
    with patch("pantryscan.cli.create_backend", return_value=FakeBackend(REPLY)):
        main(["scan", "--image", str(image_file), "--json", "--dry-run"])

    data = json.loads(capsys.readouterr().out.split("\n", 1)[1])
    assert [d["name"] for d in data] == ["Tomato", "Milk"]
    assert _stored(db_path) == []


def test_scan_failure(db_path, image_file, capsys):
    with patch("pantryscan.cli.create_backend", return_value=FakeBackend("no idea")):
        with pytest.raises(SystemExit) as exc:
            main(["scan", "--image", str(image_file)])

    assert exc.value.code == 1
    assert "Scan failed" in capsys.readouterr().err
    assert _stored(db_path) == []


def test_scan_missing_image(db_path, tmp_path, capsys):
    with pytest.raises(SystemExit) as exc:
        main(["scan", "--image", str(tmp_path / "nope.jpg")])
    assert exc.value.code == 1
    assert "Cannot read image" in capsys.readouterr().err


def test_scan_with_infinite_confidence(db_path, image_file, capsys):
    reply = '{"items": [{"name": "milk", "category": "dairy", "confidence": Infinity}]}'
    with patch("pantryscan.cli.create_backend", return_value=FakeBackend(reply)):
        main(["scan", "--image", str(image_file), "--dry-run"])

    out = capsys.readouterr().out
    assert "Detected 1 item(s)" in out
    assert "Milk" in out
