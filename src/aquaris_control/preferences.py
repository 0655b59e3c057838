"""Persistent per-device user preferences.

Preferences live in a single JSON file inside the configuration directory:

    {
      "lastConnectedDeviceId": "...",
      "userDeviceNames": [["<uuid>", "<display name>"], ...]
    }

Names are kept as an ordered list of pairs so that the order in which devices
were named survives a round trip.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .const import PREFERENCES_FILENAME

logger = logging.getLogger(__name__)


class StoredPreferences(BaseModel):
    """On-disk representation of the user preferences."""

    lastConnectedDeviceId: str | None = None
    userDeviceNames: list[tuple[str, str]] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


class PreferenceStore:
    """A JSON-backed store for device names and the last connected device."""

    def __init__(self, path: Path | str):
        """Initialize the store backed by the given directory or file path."""
        path = Path(path)
        if path.suffix != ".json":
            path = path / PREFERENCES_FILENAME
        self._path = path

    @property
    def path(self) -> Path:
        """Return the preferences file path."""
        return self._path

    def _read(self) -> StoredPreferences:
        if not self._path.exists():
            return StoredPreferences()
        try:
            raw = self._path.read_text(encoding="utf-8").strip()
            if not raw:
                return StoredPreferences()
            return StoredPreferences.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError, OSError) as exc:
            logger.warning(
                "Could not read preferences from %s: %s", self._path, exc
            )
            return StoredPreferences()

    def _write(self, stored: StoredPreferences) -> None:
        """Write the preferences atomically."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_file = self._path.with_suffix(".tmp")
        tmp_file.write_text(
            json.dumps(stored.model_dump(mode="json"), indent=2),
            encoding="utf-8",
        )
        tmp_file.replace(self._path)

    def get_device_names(self) -> dict[str, str]:
        """Return the uuid -> display name mapping (empty when nothing is stored)."""
        return dict(self._read().userDeviceNames)

    def set_device_names(self, names: Mapping[str, str]) -> None:
        """Replace the stored uuid -> display name mapping."""
        stored = self._read()
        stored.userDeviceNames = [(uuid, name) for uuid, name in names.items()]
        self._write(stored)

    def set_device_name(self, uuid: str, name: str | None) -> dict[str, str]:
        """Name a device; a blank name removes its mapping.

        Returns:
            The updated mapping.
        """
        names = self.get_device_names()
        if name is None or name.strip() == "":
            names.pop(uuid, None)
        else:
            names[uuid] = name
        self.set_device_names(names)
        return names

    def get_last_connected(self) -> str | None:
        """Return the identifier of the last successfully connected device."""
        return self._read().lastConnectedDeviceId

    def set_last_connected(self, uuid: str) -> None:
        """Record the identifier of a successfully connected device."""
        stored = self._read()
        stored.lastConnectedDeviceId = uuid
        self._write(stored)
