"""Environment variable configuration loading."""

import os
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from .schema import ENV_PREFIX, FIELD_NAMES, ConcatSettings


class EnvironmentConfigLoader:
    """Loads configuration from CONCAT_FILE_* environment variables."""

    def load_env_config(self) -> dict[str, Any]:
        """Return coerced values for fields actually set in the environment.

        Raises:
            ValueError: If an environment variable holds an invalid value.
        """
        env_values = {
            field: os.environ[f"{ENV_PREFIX}{field.upper()}"]
            for field in FIELD_NAMES
            if f"{ENV_PREFIX}{field.upper()}" in os.environ
        }
        if not env_values:
            return {}

        try:
            settings = ConcatSettings(**env_values)
        except PydanticValidationError as e:
            env_var_list = [
                f"{ENV_PREFIX}{field.upper()}={value}"
                for field, value in env_values.items()
            ]
            raise ValueError(
                f"Invalid environment variable values: {', '.join(env_var_list)}. "
                f"Error: {e}"
            ) from e

        return {field: getattr(settings, field) for field in env_values}
