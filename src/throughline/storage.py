"""Single-blob persistence for the workspace configuration."""

import json
from pathlib import Path
from typing import Any

from throughline.config import Settings
from throughline.utils import get_logger

logger = get_logger(__name__)

STORE_KEY = "throughline:v1"


class WorkspaceStore:
    """Key/value file holding one serialized workspace blob.

    The blob has no schema version; changing its shape is a breaking
    change.
    """

    def __init__(self, path: str | Path, key: str = STORE_KEY) -> None:
        self.path = Path(path)
        self.key = key

    def _read_all(self) -> dict[str, Any]:
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("store root is not an object")
        return data

    def load_state(self) -> Any | None:
        """Return the stored blob, or None if missing or unreadable."""
        try:
            data = self._read_all()
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("store.load_failed", path=str(self.path), error=str(e))
            return None
        raw = data.get(self.key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("store.load_failed", path=str(self.path), error=str(e))
            return None

    def persist_state(self, state: Any) -> None:
        """Overwrite the stored blob. Failures are logged, not raised."""
        try:
            try:
                data = self._read_all()
            except (OSError, ValueError):
                data = {}
            data[self.key] = json.dumps(state, ensure_ascii=False)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.error("store.persist_failed", path=str(self.path), error=str(e))


def create_store(settings: Settings) -> WorkspaceStore:
    """Factory for the workspace store."""
    return WorkspaceStore(settings.store_full_path)
