"""Balancer configuration, loaded from a JSON file."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from svcbalancer.exceptions import BalancerConfigException

REDACTED = "--not exposed--"

SENSITIVE_FIELDS: tuple[str, ...] = ("vapid_private", "api_secret")


class BalancerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    host: str = "0.0.0.0"
    port: int = Field(default=8100, ge=0, le=65535)
    api_secret: str = ""
    debug: bool = False
    database_path: str = "./db"
    vapid_public: str = ""
    vapid_private: str = ""

    wallet_service_path: str = ""
    wallet_service_count: int = Field(default=0, ge=0)
    wallet_service_first_port: int = Field(default=20000, ge=1, le=65535)
    wallet_service_args: list[str] = Field(default_factory=list)

    bbs_service_path: str = ""
    bbs_service_count: int = Field(default=0, ge=0)
    bbs_service_first_port: int = Field(default=30000, ge=1, le=65535)
    bbs_service_args: list[str] = Field(default_factory=list)

    restart_interval: float = Field(default=1.0, gt=0)

    def redacted(self) -> "BalancerConfig":
        """Returns a copy safe to expose, with every sensitive field masked."""
        return self.model_copy(update={name: REDACTED for name in SENSITIVE_FIELDS})


def load_config(path: str | Path) -> BalancerConfig:
    try:
        content = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise BalancerConfigException(f"Could not read the config file {path}: {e}") from e

    try:
        return BalancerConfig.model_validate_json(content)
    except ValidationError as e:
        raise BalancerConfigException(f"The config file {path} is invalid: {e}") from e
