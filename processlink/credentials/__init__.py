from .models import ProcessLinkConfig
from .service import ConfigNodeStore, config_store

__all__ = ["ProcessLinkConfig", "ConfigNodeStore", "config_store"]
