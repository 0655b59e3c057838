"""Tests for the JSON preference store."""

from __future__ import annotations

import json
from pathlib import Path

from aquaris_control.preferences import PreferenceStore


def test_empty_store_returns_defaults(tmp_path: Path) -> None:
    """A missing file reads as no names and no last device."""
    store = PreferenceStore(tmp_path)
    assert store.get_device_names() == {}
    assert store.get_last_connected() is None
    assert not store.path.exists()


def test_directory_and_file_paths(tmp_path: Path) -> None:
    assert PreferenceStore(tmp_path).path == tmp_path / "preferences.json"
    custom = tmp_path / "custom.json"
    assert PreferenceStore(custom).path == custom


def test_device_names_round_trip_preserves_order(tmp_path: Path) -> None:
    store = PreferenceStore(tmp_path)
    store.set_device_names({"B": "Desk", "A": "Tank"})

    reloaded = PreferenceStore(tmp_path)
    assert list(reloaded.get_device_names().items()) == [
        ("B", "Desk"),
        ("A", "Tank"),
    ]
    on_disk = json.loads(store.path.read_text(encoding="utf-8"))
    assert on_disk["userDeviceNames"] == [["B", "Desk"], ["A", "Tank"]]


def test_set_device_name_overwrites_and_removes(tmp_path: Path) -> None:
    """A non-blank name replaces the old one; a blank name removes it."""
    store = PreferenceStore(tmp_path)
    store.set_device_name("A", "Tank")
    assert store.set_device_name("A", "Reef") == {"A": "Reef"}
    store.set_device_name("B", "Desk")

    assert store.set_device_name("A", "   ") == {"B": "Desk"}
    assert store.set_device_name("B", None) == {}
    assert store.get_device_names() == {}


def test_last_connected_persists(tmp_path: Path) -> None:
    store = PreferenceStore(tmp_path)
    store.set_device_name("A", "Tank")
    store.set_last_connected("A")

    reloaded = PreferenceStore(tmp_path)
    assert reloaded.get_last_connected() == "A"
    assert reloaded.get_device_names() == {"A": "Tank"}


def test_write_leaves_no_temp_file(tmp_path: Path) -> None:
    store = PreferenceStore(tmp_path)
    store.set_last_connected("A")
    assert not store.path.with_suffix(".tmp").exists()


def test_corrupt_file_reads_as_empty(tmp_path: Path) -> None:
    """Unreadable content is treated as no preferences and can be overwritten."""
    store = PreferenceStore(tmp_path)
    store.path.write_text("{not json", encoding="utf-8")
    assert store.get_device_names() == {}
    assert store.get_last_connected() is None

    store.set_last_connected("A")
    assert store.get_last_connected() == "A"


def test_unknown_keys_are_ignored(tmp_path: Path) -> None:
    store = PreferenceStore(tmp_path)
    store.path.write_text(
        json.dumps({"lastConnectedDeviceId": "A", "theme": "dark"}),
        encoding="utf-8",
    )
    assert store.get_last_connected() == "A"
