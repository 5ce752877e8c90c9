"""Configuration schema and validation using Pydantic.

This module defines the settings schema that validates and coerces
configuration values from the environment, files, and programmatic overrides
into the correct types with proper defaults.
"""

import codecs
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "CONCAT_FILE_"


class ConcatSettings(BaseSettings):
    """Pydantic settings schema for concat_file configuration.

    Integrates with environment variables using the CONCAT_FILE_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=None,
        case_sensitive=False,
        extra="ignore",
    )

    default_fragment_order: str = Field(
        default="10",
        description="Order value for fragments that do not declare one",
        min_length=1,
    )

    encoding: str = Field(
        default="utf-8",
        description="Text encoding used to decode fetched fragment sources",
    )

    source_root: Path | None = Field(
        default=None,
        description="Base directory for relative source locators",
    )

    legacy_alpha_split: bool = Field(
        default=False,
        description="Split alpha-mode sort keys on '__' instead of '___'",
    )

    telemetry: bool = Field(
        default=False,
        description="Enable stage timing telemetry",
    )

    @field_validator("default_fragment_order", mode="before")
    @classmethod
    def coerce_order(cls, v: Any) -> Any:
        """Accept integer orders from TOML files."""
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @field_validator("default_fragment_order")
    @classmethod
    def check_order_chars(cls, v: str) -> str:
        """Reject characters fragments are not allowed to use in orders."""
        if any(c in v for c in "/:\n"):
            raise ValueError("Order cannot contain '/', ':', or '\\n'.")
        return v

    @field_validator("encoding")
    @classmethod
    def check_encoding(cls, v: str) -> str:
        """Ensure the codec exists."""
        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e
        return v

    def to_dict(self) -> dict[str, Any]:
        """Convert to a plain dictionary suitable for SourceMap annotation."""
        return {
            "default_fragment_order": self.default_fragment_order,
            "encoding": self.encoding,
            "source_root": self.source_root,
            "legacy_alpha_split": self.legacy_alpha_split,
            "telemetry": self.telemetry,
        }


FIELD_NAMES: tuple[str, ...] = tuple(ConcatSettings.model_fields)
