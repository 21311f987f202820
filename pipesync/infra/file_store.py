"""
File store infrastructure for pipesync.

Persists the status document as JSON with:
- Atomic writes (write to temp, then rename)
- Pretty formatting for human readability
- Automatic parent directory creation
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Dict


class FileStore:
    """
    JSON file persistence with atomic, whole-file writes.

    Example:
        store = FileStore(Path("status.json"))
        store.write({"lang-sme": {"maturity": "prod"}})
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _write_atomic(self, data: Dict[str, Any]) -> None:
        """Serialize, write a sibling temp file, then rename it over the target."""
        payload = json.dumps(data, indent=2, ensure_ascii=False, sort_keys=True) + "\n"

        fd, temp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(temp_path, self.path)
        except OSError:
            Path(temp_path).unlink(missing_ok=True)
            raise

    def write(self, data: Dict[str, Any]) -> None:
        """
        Replace the whole document.

        Args:
            data: Dictionary to write
        """
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._write_atomic(data)
