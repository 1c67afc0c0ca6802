import json

from tape_vision.store import TuningTable


def test_get_number_default_when_missing(table):
    assert table.get_number("hsvHMin", 7) == 7


def test_update_and_read(table):
    table.update(hsvHMin="12", angle1Min=-4.5)
    assert table.get_number("hsvHMin", 0) == 12.0
    assert table.get_number("angle1Min", 0) == -4.5


def test_update_skips_invalid_values(table, caplog):
    table.update(hsvHMin="twelve", hsvHMax=30)
    assert "hsvHMin" not in table.to_dict()
    assert table.get_number("hsvHMax", 0) == 30
    assert "Invalid value" in caplog.text


def test_booleans_are_not_numbers(table):
    table.set_boolean("ringlight", True)
    assert table.to_dict()["ringlight"] is True
    assert table.get_number("ringlight", -1) == -1


def test_set_default_only_fills_missing(table):
    table.set_default("minSizeEntry", 50)
    table.set_default("minSizeEntry", 80)
    assert table.get_number("minSizeEntry", 0) == 50


def test_to_dict_is_a_copy(table):
    table.update(hsvHMin=1)
    values = table.to_dict()
    values["hsvHMin"] = 99
    assert table.get_number("hsvHMin", 0) == 1


def test_save_and_load(tmp_path):
    path = tmp_path / "Camera0.json"
    table = TuningTable("Camera0")
    table.update(hsvHMin=20, exposureEntry=-1)
    table.set_boolean("ringlight", False)
    table.save(path)

    data = json.loads(path.read_text())
    assert data["hsvHMin"] == 20

    loaded = TuningTable.load("Camera0", path)
    assert loaded.to_dict() == table.to_dict()


def test_load_missing_or_corrupt_file_starts_empty(tmp_path):
    assert TuningTable.load("a", tmp_path / "missing.json").to_dict() == {}

    bad = tmp_path / "bad.json"
    bad.write_text("{not json")
    assert TuningTable.load("b", bad).to_dict() == {}
