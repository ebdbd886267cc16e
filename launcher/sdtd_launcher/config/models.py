from __future__ import annotations
from types import MappingProxyType
from typing import Dict, List, Mapping
from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from .defaults import SECRET_KEYS


class ServerConfig(BaseModel):
    """Resolved settings table, immutable once built."""

    model_config = ConfigDict(frozen=True)

    values: Mapping[str, str] = Field(default_factory=dict)

    @field_validator("values", mode="after")
    @classmethod
    def _read_only(cls, v: Mapping[str, str]) -> Mapping[str, str]:
        return MappingProxyType(dict(v))

    @field_serializer("values")
    def _dump_values(self, v: Mapping[str, str]) -> Dict[str, str]:
        return dict(v)

    def get(self, key: str, default: str = "") -> str:
        return self.values.get(key, default)

    def __getitem__(self, key: str) -> str:
        return self.values[key]

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def admin_ids(self) -> List[str]:
        return self.get("ADMIN_STEAM_IDS").split()

    def redacted(self) -> Dict[str, str]:
        return {k: ("[REDACTED]" if k in SECRET_KEYS and v else v) for k, v in self.values.items()}
