"""
Model catalogue: maps the short model code a device reports (e.g. ``U7PG2``)
to a human readable description.

File format, one entry per line::

    U7PG2=UniFi AC Pro Gen2
    UCK-G2=UniFi Cloud Key Gen2;true

A ``;`` suffix marks Cloud Key models.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


class ModelCatalog:

    def __init__(self, entries: Optional[Dict[str, str]] = None):
        self._models: Dict[str, str] = dict(entries or {})

    def load(self, path: Path) -> int:
        """
        Load entries from a ``key=value`` file. Existing keys are kept.

        Returns:
            Number of entries added
        """
        path = Path(path)
        added = 0
        with open(path, encoding='utf-8') as f:
            for line_no, line in enumerate(f, 1):
                line = line.strip()
                if not line or line.startswith('#'):
                    continue
                key, sep, value = line.partition('=')
                if not sep or not key:
                    logger.debug(f"{path}:{line_no}: skipping malformed entry")
                    continue
                if key not in self._models:
                    self._models[key] = value
                    added += 1
        logger.info(f"Loaded {added} model descriptions from {path}")
        return added

    def describe(self, model: Optional[str]) -> str:
        desc = self._models.get(model) if model else None
        if desc is None:
            return UNKNOWN
        return desc.split(';', 1)[0]

    def is_cloud_key(self, model: Optional[str]) -> bool:
        desc = self._models.get(model) if model else None
        return desc is not None and ';' in desc

    def __len__(self):
        return len(self._models)

    def __contains__(self, model: str):
        return model in self._models
