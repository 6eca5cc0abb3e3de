import warnings
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import BeforeValidator, HttpUrl, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing_extensions import Self


def parse_hosts(v: Any) -> Union[List[str], str]:
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, (list, str)):
        return v
    raise ValueError(v)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="PROCESSLINK_",
        env_ignore_empty=True,
        extra="ignore",
    )

    PROJECT_NAME: str = "ProcessLink Nodes"
    ENVIRONMENT: Literal["local", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"
    SENTRY_DSN: Optional[HttpUrl] = None

    # Hosts that absolute redirect targets must match exactly
    ALLOWED_REDIRECT_HOSTS: Annotated[
        Union[List[str], str], BeforeValidator(parse_hosts)
    ] = [
        "files.processlink.com.au",
        "processlink.com.au",
        "processmail.processlink.com.au",
        "portal.processlink.com.au",
    ]
    FILES_HOST: str = "files.processlink.com.au"

    # Timeouts are in milliseconds, like the node editor fields
    REQUEST_TIMEOUT_MS: int = 10000
    LOCATIONS_TIMEOUT_MS: int = 15000
    NODE_REQUEST_TIMEOUT_MS: int = 30000
    MAX_REDIRECTS: int = 5

    MAX_UPLOAD_BYTES: int = 100 * 1024 * 1024
    FILES_UPLOAD_URL: str = (
        "https://files.processlink.com.au/api/v1/sites/{siteId}/files/upload"
    )
    MAIL_SEND_URL: str = "https://processmail.processlink.com.au/api/send"
    NOTIFY_GROUP_URL: str = (
        "https://processmail.processlink.com.au/api/v1/notify-group"
    )

    # Optional JSON file of config nodes loaded at startup
    CONFIG_NODES_FILE: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def allowed_hosts(self) -> frozenset:
        return frozenset(self.ALLOWED_REDIRECT_HOSTS)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def request_timeout(self) -> float:
        return self.REQUEST_TIMEOUT_MS / 1000

    @computed_field  # type: ignore[prop-decorator]
    @property
    def locations_timeout(self) -> float:
        return self.LOCATIONS_TIMEOUT_MS / 1000

    @model_validator(mode="after")
    def _check_timeouts(self) -> Self:
        if self.MAX_REDIRECTS < 0:
            raise ValueError("MAX_REDIRECTS must not be negative")
        if self.LOCATIONS_TIMEOUT_MS <= self.REQUEST_TIMEOUT_MS:
            message = (
                f"LOCATIONS_TIMEOUT_MS ({self.LOCATIONS_TIMEOUT_MS}) is not larger "
                f"than REQUEST_TIMEOUT_MS ({self.REQUEST_TIMEOUT_MS}); "
                "lookups will report 504 before a branch can report its own timeout."
            )
            if self.ENVIRONMENT == "local":
                warnings.warn(message, stacklevel=1)
            else:
                raise ValueError(message)
        return self


settings = Settings()  # type: ignore
