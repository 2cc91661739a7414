"""Library-level defaults for compiling and conforming contracts."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, ClassVar, Literal

from pydantic import BaseModel, ConfigDict, ValidationError

from conform_kit.errors import ContractDefinitionError
from conform_kit.types import ExternalKeyFn, default_external_key, identity_external_key


class ContractSettings(BaseModel):
    """Defaults applied when a contract or compiler is built without explicit options.

    - ``atomize``: normalize external key names onto schema key names
    - ``key_style``: external form of schema keys (``camel``: ``first_name``
      is also accepted as ``firstName``; ``identity``: only ``str(key)``)
    - ``sort_errors``: order rendered errors by path
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    ENV_PREFIX: ClassVar[str] = "CONFORM_KIT_"

    atomize: bool = False
    key_style: Literal["camel", "identity"] = "camel"
    sort_errors: bool = True

    @property
    def external_key(self) -> ExternalKeyFn:
        if self.key_style == "identity":
            return identity_external_key
        return default_external_key


def load_settings(environ: Mapping[str, str] | None = None) -> ContractSettings:
    """Build settings from ``CONFORM_KIT_*`` environment variables.

    Unset variables keep their defaults. Boolean values accept the usual
    spellings (``1``/``0``, ``true``/``false``, ``yes``/``no``, ``on``/``off``).

    Raises:
        ContractDefinitionError: if a variable holds an invalid value
    """
    environ = os.environ if environ is None else environ
    raw: dict[str, Any] = {}
    for field_name in ContractSettings.model_fields:
        env_name = f"{ContractSettings.ENV_PREFIX}{field_name.upper()}"
        value = environ.get(env_name)
        if value is not None and value.strip():
            raw[field_name] = value.strip().lower()

    try:
        return ContractSettings.model_validate(raw)
    except ValidationError as exc:
        raise ContractDefinitionError(f"Invalid contract settings in environment: {exc}") from exc
