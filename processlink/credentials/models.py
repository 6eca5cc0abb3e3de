from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr


class ProcessLinkConfig(BaseModel):
    """
    Shared credentials for all Process Link nodes.

    The host runtime owns storage of the API key; this model only carries it.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: Optional[str] = None
    site_id: Optional[str] = Field(None, alias="siteId")
    api_key: Optional[SecretStr] = Field(None, alias="apiKey")

    @property
    def api_key_value(self) -> Optional[str]:
        return self.api_key.get_secret_value() if self.api_key else None

    @property
    def is_ready(self) -> bool:
        return bool(self.site_id and self.api_key_value)

    def bearer_headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.api_key_value}"}
