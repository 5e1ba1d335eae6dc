"""Variables file persistence.

The file holds ``{"schema_version": ..., "variables": {...}}``. A bare mapping
(either binding shape, including the legacy path -> name shape) is also read.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

from ..exceptions import ConfigValidationError, ValidationError
from .table import BindingTable


logger = logging.getLogger(__name__)


class BindingStore:
    """Reads and atomically writes a BindingTable as JSON."""

    SCHEMA_VERSION = "1"

    def __init__(self, path: Path):
        """
        Initialize binding store.

        Args:
            path: Location of the variables JSON file
        """
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> BindingTable:
        """
        Load the table, or an empty table if the file does not exist.

        Raises:
            ConfigValidationError: If the file is not valid JSON or has the wrong shape
        """
        if not self.path.exists():
            logger.debug(f"No variables file at {self.path}, starting empty")
            return BindingTable()

        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigValidationError([ValidationError(f"Corrupted variables file: {e}", str(self.path))])

        # Only the wrapper written by save() carries schema_version
        if isinstance(data, dict) and "schema_version" in data:
            data = data.get("variables", {})

        table = BindingTable.from_dict(data)
        logger.info(f"Loaded {len(table)} variable(s) from {self.path}")
        return table

    def save(self, table: BindingTable):
        """Write the table atomically (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)

        payload: Dict[str, Any] = {
            "schema_version": self.SCHEMA_VERSION,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "variables": table.to_dict(),
        }

        temp_file = self.path.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(payload, f, indent=2)

        temp_file.replace(self.path)
        logger.debug(f"Saved {len(table)} variable(s) to {self.path}")
