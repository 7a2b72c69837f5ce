"""
Settlement configuration.

Sources, in decreasing precedence:
    explicit values (keyword arguments, or a YAML file via from_yaml)
    → NFTSETTLE_* environment variables → defaults

YAML example:

    chain_id: 1
    verifying_contract: "0x5FbDB2315678afecb367f032d93F642f64180aa3"
    domain_name: "Openmeta NFT Trade"
    domain_version: "2.0.0"
    reward_token: "0xe7f1725E7734CE288F8367e1Bb143E90bb3F0512"
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from eth_utils import is_address, to_checksum_address
from pydantic import ValidationError as PydanticValidationError
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nftsettle.core.exceptions import ConfigurationError
from nftsettle.core.models import ZERO_ADDRESS
from nftsettle.core.typed_data import TypedDataDomain

DEFAULT_DOMAIN_NAME    = "Openmeta NFT Trade"
DEFAULT_DOMAIN_VERSION = "2.0.0"


class SettlementConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="NFTSETTLE_", extra="forbid", frozen=True)

    chain_id:           int = 1
    verifying_contract: str = ZERO_ADDRESS
    domain_name:        str = DEFAULT_DOMAIN_NAME
    domain_version:     str = DEFAULT_DOMAIN_VERSION
    reward_token:       str = ZERO_ADDRESS

    def __init__(self, **values: Any) -> None:
        try:
            super().__init__(**values)
        except PydanticValidationError as exc:
            errors = exc.errors()
            unknown = sorted(str(e["loc"][0]) for e in errors if e["type"] == "extra_forbidden")
            if unknown:
                raise ConfigurationError(
                    "unknown configuration keys", details={"keys": unknown}
                ) from exc
            raise ConfigurationError(
                "invalid configuration",
                details={str(e["loc"][0]): e["msg"] for e in errors},
            ) from exc

    @field_validator("chain_id")
    @classmethod
    def positive_chain_id(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("chain_id must be positive")
        return value

    @field_validator("verifying_contract", "reward_token")
    @classmethod
    def checksum_address(cls, value: str) -> str:
        if not is_address(value):
            raise ValueError(f"not a valid address: {value}")
        return to_checksum_address(value)

    # ── Construction ──────────────────────────────────────────

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "SettlementConfig":
        keys = [k for k in data if not isinstance(k, str)]
        if keys:
            raise ConfigurationError("unknown configuration keys", details={"keys": keys})
        return cls(**dict(data))

    @classmethod
    def from_yaml(cls, path: Path) -> "SettlementConfig":
        """Load configuration from a YAML mapping."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigurationError(
                "configuration must be a mapping", details={"path": str(path)}
            )
        return cls.from_mapping(data)

    @classmethod
    def load(cls, path: Optional[Path] = None) -> "SettlementConfig":
        return cls.from_yaml(path) if path else cls()

    # ── Derived ───────────────────────────────────────────────

    def domain(self) -> TypedDataDomain:
        return TypedDataDomain(
            name=               self.domain_name,
            version=            self.domain_version,
            chain_id=           self.chain_id,
            verifying_contract= self.verifying_contract,
        )

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump()
