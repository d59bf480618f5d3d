"""JSON file storage for user preferences."""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from artelab.services.credentials import PreferencesStorage


@dataclass
class JsonFilePreferencesStorage(PreferencesStorage):
    """Stores the preferences document as a JSON file."""

    path: Path

    def read(self) -> dict[str, object]:
        """Return the stored document, or an empty dict if the file is absent."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        data = json.loads(raw)
        if not isinstance(data, dict):
            raise ValueError(f"Preferences file {self.path} is not a JSON object")
        return data

    def write(self, data: dict[str, object]) -> None:
        """Write the document through a temp file so readers never see half of it."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(json.dumps(data, sort_keys=True), encoding="utf-8")
        os.replace(tmp_path, self.path)
