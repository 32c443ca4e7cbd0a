"""File-based store for the add-on configuration."""

import json
from pathlib import Path
from typing import Any, Dict
from sheetjira.models.config import AddonConfig
from sheetjira.utils.logger import get_logger

logger = get_logger(__name__)


class ConfigStore:
    """JSON file holding connection settings, tab settings, mapping and templates."""

    def __init__(self, storage_path: str = "sheetjira_config.json"):
        """
        Initialize the store.

        Args:
            storage_path: Path to the JSON configuration file
        """
        self.storage_path = Path(storage_path)

    def load(self) -> AddonConfig:
        """
        Load the configuration.

        Returns:
            Stored configuration, or an empty one if nothing was saved yet

        Raises:
            InvalidMapping: If the stored column mapping names an unknown target
        """
        return AddonConfig.from_store(self._load_raw())

    def save(self, config: AddonConfig) -> None:
        """
        Persist the configuration, overwriting what was stored.

        Args:
            config: Configuration to save
        """
        self.storage_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.storage_path, 'w') as f:
            json.dump(config.to_store(), f, indent=2)

        logger.info(f"Saved configuration to {self.storage_path}")

    def _load_raw(self) -> Dict[str, Any]:
        if not self.storage_path.exists():
            logger.debug(f"No configuration at {self.storage_path}, starting fresh")
            return {}

        try:
            with open(self.storage_path, 'r') as f:
                data = json.load(f)
        except json.JSONDecodeError:
            logger.warning(f"Could not parse configuration at {self.storage_path}, starting fresh")
            return {}

        if not isinstance(data, dict):
            logger.warning(f"Configuration at {self.storage_path} is not an object, starting fresh")
            return {}
        return data
