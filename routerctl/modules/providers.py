"""Provider configuration loading.

The operator-authored document looks like::

    providers:
      models:
        - name: coder
          access_key: sk-...
          endpoints:
            - name: primary
              endpoint: vllm.example.com:8000
        - name: general
          endpoint: https://api.example.com
      default_model: general

Only the entries directly under ``providers.models`` are models; the nested
``endpoints`` entries carry a ``name`` too but never count as models.
"""
import logging
import re
from pathlib import Path
from typing import Any, List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..errors import (
    ConfigNotFoundError,
    ConfigParseError,
    NoModelsError,
    UnknownDefaultModelError,
)

logger = logging.getLogger("routerctl.providers")

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")
_PORT_RE = re.compile(r":[0-9]*$")


def _optional_text(value: Any) -> Optional[str]:
    """Scalars become stripped strings; blanks become None."""
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        raise ValueError("must be a scalar value")
    text = str(value).strip()
    return text or None


class EndpointSpec(BaseModel):
    """One upstream endpoint nested under a model."""
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    endpoint: Optional[str] = None

    @field_validator("name", "endpoint", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Optional[str]:
        return _optional_text(v)


class ModelSpec(BaseModel):
    """A model declared under ``providers.models``."""
    model_config = ConfigDict(extra="allow")

    name: str
    access_key: Optional[str] = None
    endpoint: Optional[str] = None
    endpoints: List[EndpointSpec] = Field(default_factory=list)

    @field_validator("name", mode="before")
    @classmethod
    def name_not_empty(cls, v: Any) -> str:
        name = _optional_text(v)
        if name is None:
            raise ValueError("model name must not be empty")
        return name

    @field_validator("access_key", "endpoint", mode="before")
    @classmethod
    def blank_is_absent(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @field_validator("endpoints", mode="before")
    @classmethod
    def endpoints_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @model_validator(mode="after")
    def resolve_endpoint(self) -> "ModelSpec":
        """Fall back to the first nested endpoint when no direct one is given."""
        if self.endpoint is None:
            self.endpoint = next((e.endpoint for e in self.endpoints if e.endpoint), None)
        return self


class ProviderConfig(BaseModel):
    """The ``providers`` section of an operator configuration."""

    models: List[ModelSpec]
    default_model: Optional[str] = None
    source_text: str = Field(default="", repr=False)

    @field_validator("default_model", mode="before")
    @classmethod
    def blank_default_is_unset(cls, v: Any) -> Optional[str]:
        return _optional_text(v)

    @property
    def model_names(self) -> List[str]:
        return [m.name for m in self.models]

    @property
    def access_keys(self) -> List[str]:
        """Declared credentials in model order; models without one are skipped."""
        return [m.access_key for m in self.models if m.access_key]

    @property
    def first_endpoint(self) -> Optional[str]:
        return next((m.endpoint for m in self.models if m.endpoint), None)

    @property
    def upstream_host(self) -> Optional[str]:
        """Hostname of the first endpoint, without scheme, path or port."""
        if not self.first_endpoint:
            return None
        return upstream_hostname(self.first_endpoint)

    def is_default(self, name: str) -> bool:
        return self.default_model is not None and name == self.default_model


def upstream_hostname(endpoint: str) -> str:
    """Strip the scheme prefix, any path, and a trailing port from an endpoint."""
    host = _SCHEME_RE.sub("", endpoint.strip())
    host = host.split("/", 1)[0]
    return _PORT_RE.sub("", host)


def _describe_validation_error(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        problems.append(f"providers.{location}: {error.get('msg')}")
    return "; ".join(problems)


def _check(config: ProviderConfig, source: str) -> ProviderConfig:
    seen = set()
    for name in config.model_names:
        if name in seen:
            raise ConfigParseError(f"Duplicate model name '{name}' in {source}")
        seen.add(name)

    if config.default_model is not None and config.default_model not in seen:
        raise UnknownDefaultModelError(
            f"default_model '{config.default_model}' in {source} is not one of the declared models: "
            f"{', '.join(config.model_names)}"
        )
    return config


def parse(text: str, source: str = "<string>") -> ProviderConfig:
    """Parse a provider configuration document.

    Args:
        text: The YAML document
        source: Name used in error messages

    Returns:
        ProviderConfig with ``source_text`` set to ``text`` verbatim

    Raises:
        ConfigParseError: If the document is malformed or fails validation
        NoModelsError: If no models are declared
        UnknownDefaultModelError: If default_model is not a declared model
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigParseError(f"Invalid YAML in {source}: {e}") from e

    if document is None:
        document = {}
    if not isinstance(document, dict):
        raise ConfigParseError(f"{source} must be a YAML mapping with a 'providers' section")

    providers = document.get("providers") or {}
    if not isinstance(providers, dict):
        raise ConfigParseError(f"'providers' in {source} must be a mapping")

    models = providers.get("models") or []
    if not isinstance(models, list):
        raise ConfigParseError(f"'providers.models' in {source} must be a list")
    if not models:
        raise NoModelsError(f"No models found in {source}. Expected providers.models entries.")

    try:
        config = ProviderConfig(
            models=models,
            default_model=providers.get("default_model"),
            source_text=text,
        )
    except ValidationError as e:
        raise ConfigParseError(f"Invalid provider config in {source}: {_describe_validation_error(e)}") from e

    return _check(config, source)


def load(path: Union[str, Path]) -> ProviderConfig:
    """Load the provider configuration file at ``path``."""
    path = Path(path)
    if not path.is_file():
        raise ConfigNotFoundError(
            f"Config file not found: {path} "
            f"(copy /etc/semantic-router/templates/router.yaml.example and edit it)"
        )

    logger.info(f"📄 Loading config from {path}...")
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigParseError(f"Could not read {path}: {e}") from e

    config = parse(text, source=str(path))
    logger.debug(f"Extracted models: {config.model_names} (default: {config.default_model})")
    return config


def from_overrides(
    endpoint: str,
    model_coding: str,
    model_general: str,
    api_key: Optional[str] = None,
) -> ProviderConfig:
    """Build a two-model configuration from command line flags.

    Both models share the endpoint and credential; the general model is the default.
    """
    models = []
    for name in (model_coding, model_general):
        model = {"name": name, "endpoint": endpoint}
        if api_key:
            model["access_key"] = api_key
        models.append(model)

    document = {"providers": {"models": models, "default_model": model_general}}
    text = yaml.safe_dump(document, default_flow_style=False, sort_keys=False)
    return parse(text, source="command line flags")
