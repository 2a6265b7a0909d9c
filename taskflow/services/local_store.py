"""
Local key-value store backed by a JSON file
"""

import json
from typing import Optional, Dict, Any
from pathlib import Path
from taskflow.config.settings import settings
from taskflow.utils.logger import logger


class LocalStore:
    """Durable named records kept in a single JSON file"""

    def __init__(self, store_file: Optional[str] = None):
        """
        Initialize local store

        Args:
            store_file: Path to store file (optional, uses settings)
        """
        if store_file is None:
            store_file = settings.TASKFLOW_STORE_PATH
        self.store_file = Path(store_file)
        self.logger = logger
        self._records: Dict[str, Any] = {}
        self._load()

    def _load(self):
        """Load records from file"""
        try:
            if self.store_file.exists():
                with open(self.store_file, 'r', encoding='utf-8') as f:
                    data = json.load(f)
                self._records = data if isinstance(data, dict) else {}
                self.logger.debug(f"Loaded {len(self._records)} records from {self.store_file}")
            else:
                self._records = {}
        except (OSError, ValueError) as e:
            self.logger.warning(f"Failed to load local store: {e}")
            self._records = {}

    def _save(self):
        """Save records to file"""
        try:
            self.store_file.parent.mkdir(parents=True, exist_ok=True)
            with open(self.store_file, 'w', encoding='utf-8') as f:
                json.dump(self._records, f, ensure_ascii=False, indent=2)
        except OSError as e:
            self.logger.warning(f"Failed to save local store: {e}. Using in-memory store only.")

    def get(self, name: str, default: Any = None) -> Any:
        """
        Read record

        Args:
            name: Record name
            default: Value returned when the record is missing

        Returns:
            Stored value or default
        """
        return self._records.get(name, default)

    def set(self, name: str, value: Any):
        """
        Write record and persist immediately

        Args:
            name: Record name
            value: JSON-serializable value
        """
        self._records[name] = value
        self._save()
        self.logger.debug(f"Stored record '{name}'")

    def delete(self, name: str):
        """Remove record if present"""
        if name in self._records:
            del self._records[name]
            self._save()

    def __contains__(self, name: str) -> bool:
        return name in self._records
