"""JSON document store for icon color profiles.

Schema::

    {
      "version": 1,
      "icons": {
        "<icon name>": {
          "baseline_colors": ["#112233", ...],
          "color_mapping": {"#112233": "#445566"},
          "variants": [{"name": "dark", "colors": [...]}, ...],
          "default_variant": "dark" | null
        }
      }
    }

Loading never raises: a missing file is an empty store, a corrupt or
incompatible file is logged and treated as empty. Saving writes a sibling
``.tmp`` file and replaces the target so readers never see a half-written
document. I/O errors while saving propagate to the caller.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict

from config.settings import STORE_VERSION
from domain.models import IconColorProfile

__all__ = ["ProfileDocumentStore"]

_log = logging.getLogger(__name__)


class ProfileDocumentStore:
    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def load(self) -> Dict[str, IconColorProfile]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            _log.warning("Ignoring unreadable profile store %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict) or data.get("version") != STORE_VERSION:
            _log.warning(
                "Ignoring profile store %s with unsupported version %r",
                self.path,
                data.get("version") if isinstance(data, dict) else None,
            )
            return {}
        icons = data.get("icons")
        if not isinstance(icons, dict):
            return {}
        profiles: Dict[str, IconColorProfile] = {}
        for name, raw in icons.items():
            if not isinstance(raw, dict):
                _log.debug("Skipping malformed profile for %s", name)
                continue
            try:
                profiles[str(name)] = IconColorProfile.from_dict(str(name), raw)
            except (TypeError, AttributeError) as exc:
                _log.warning("Skipping malformed profile for %s: %s", name, exc)
        return profiles

    def save(self, profiles: Dict[str, IconColorProfile]) -> Path:
        doc: Dict[str, Any] = {
            "version": STORE_VERSION,
            "icons": {name: profile.to_dict() for name, profile in sorted(profiles.items())},
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(doc, indent=2, ensure_ascii=False), encoding="utf-8")
        tmp.replace(self.path)
        _log.debug("Saved %d icon profiles to %s", len(profiles), self.path)
        return self.path
