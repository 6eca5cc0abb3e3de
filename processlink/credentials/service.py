"""
Config node registry.

The host runtime registers the config nodes it has deployed; nodes and the
admin router look them up by id.
"""
import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Union

from processlink.credentials.models import ProcessLinkConfig

logger = logging.getLogger(__name__)


class ConfigNodeStore:
    """In-process registry of deployed Process Link config nodes."""

    def __init__(self):
        self._nodes: Dict[str, ProcessLinkConfig] = {}

    def register(self, config: ProcessLinkConfig) -> ProcessLinkConfig:
        if config.id in self._nodes:
            logger.info(f"Replacing config node {config.id}")
        self._nodes[config.id] = config
        return config

    def get(self, config_id: str) -> Optional[ProcessLinkConfig]:
        return self._nodes.get(config_id)

    def remove(self, config_id: str) -> bool:
        return self._nodes.pop(config_id, None) is not None

    def clear(self) -> None:
        self._nodes.clear()

    def __len__(self) -> int:
        return len(self._nodes)

    def load_file(self, path: Union[str, Path]) -> List[ProcessLinkConfig]:
        """
        Register every config node listed in a JSON file.

        The file holds a list of objects such as
        {"id": "a1", "name": "Plant", "siteId": "42", "apiKey": "..."}.

        Raises:
            ValueError: If the file is not a JSON list
        """
        with open(path, "r") as f:
            data = json.load(f)

        if not isinstance(data, list):
            raise ValueError(f"{path}: expected a JSON list of config nodes")

        loaded = [self.register(ProcessLinkConfig.model_validate(item)) for item in data]
        logger.info(f"Loaded {len(loaded)} config nodes from {path}")
        return loaded


# Global instance (populated by the host on deploy)
config_store = ConfigNodeStore()
