"""Placeholder rendering for the router and Envoy configuration templates.

Templates are plain text with ``__NAME__`` tokens drawn from a closed set:

- scalar placeholders: ``__ENDPOINT__``, ``__ENDPOINT_GENERAL__``, ``__API_KEY__``
- positional model placeholders: ``__MODEL_0__``, ``__MODEL_1__``, ...
- one block placeholder: ``__PROVIDERS__``, replaced with the operator's provider
  document verbatim

Substitution is literal and happens in a single pass, so text spliced in for one token
is never scanned for further tokens. A render either resolves every known token or
fails with :class:`RenderError`; partially rendered output is never returned.
"""
import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

from ..errors import RenderError
from .providers import ProviderConfig

logger = logging.getLogger("routerctl.render")


class Placeholder(str, Enum):
    """Named placeholders understood by the renderer."""
    ENDPOINT = 'ENDPOINT'
    ENDPOINT_GENERAL = 'ENDPOINT_GENERAL'
    API_KEY = 'API_KEY'
    PROVIDERS = 'PROVIDERS'

    @property
    def token(self) -> str:
        return f"__{self.value}__"

    @property
    def is_block(self) -> bool:
        return self in BLOCK_PLACEHOLDERS


BLOCK_PLACEHOLDERS = frozenset({Placeholder.PROVIDERS})


class ModelSlot(NamedTuple):
    """Positional placeholder for the n-th declared model."""
    index: int

    @property
    def token(self) -> str:
        return f"__MODEL_{self.index}__"


PlaceholderKey = Union[Placeholder, ModelSlot]

_NAMES = "|".join(sorted((p.value for p in Placeholder), key=len, reverse=True))
TOKEN_RE = re.compile(rf"__(?:(?P<name>{_NAMES})|MODEL_(?P<index>[0-9]+))__")


@dataclass(frozen=True)
class RenderTemplate:
    """A template document and the name it is reported under."""
    name: str
    text: str

    @classmethod
    def load(cls, path: Union[str, Path]) -> "RenderTemplate":
        path = Path(path)
        if not path.is_file():
            raise RenderError(f"Template not found: {path}")
        try:
            return cls(name=str(path), text=path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise RenderError(f"Could not read template {path}: {e}") from e


@dataclass(frozen=True)
class RenderedConfig:
    """Fully resolved output of a template."""
    template_name: str
    text: str


def find_placeholders(text: str) -> List[str]:
    """Return the distinct known placeholder tokens in ``text``, in order of appearance."""
    seen: Dict[str, None] = {}
    for match in TOKEN_RE.finditer(text):
        seen.setdefault(match.group(0), None)
    return list(seen)


def is_rendered(text: str) -> bool:
    """True when no known placeholder token is left in ``text``."""
    return TOKEN_RE.search(text) is None


def _coerce_key(key: Union[PlaceholderKey, str]) -> PlaceholderKey:
    if isinstance(key, ModelSlot):
        return key
    try:
        return Placeholder(key)
    except ValueError:
        raise RenderError(f"Unknown placeholder: {key!r}") from None


def render(
    template: RenderTemplate,
    scalars: Mapping[PlaceholderKey, str],
    block: Optional[Tuple[Placeholder, str]] = None,
) -> RenderedConfig:
    """Substitute placeholders in ``template``.

    Args:
        template: Template to render
        scalars: Values for scalar and positional placeholders; None values count as
            not supplied
        block: Optional ``(Placeholder.PROVIDERS, text)`` spliced in verbatim

    Returns:
        RenderedConfig with no known placeholder left

    Raises:
        RenderError: If a token in the template has no value, the block placeholder is
            misused, or tokens remain after substitution
    """
    values: Dict[str, str] = {}
    model_count = 0
    for key, value in scalars.items():
        key = _coerce_key(key)
        if isinstance(key, Placeholder) and key.is_block:
            raise RenderError(f"{key.token} is a block placeholder and cannot take a scalar value")
        if value is None:
            continue
        if isinstance(key, ModelSlot):
            model_count = max(model_count, key.index + 1)
        values[key.token] = str(value)

    if block is not None:
        placeholder, text = block
        placeholder = _coerce_key(placeholder)
        if not (isinstance(placeholder, Placeholder) and placeholder.is_block):
            raise RenderError(f"{placeholder.token} is not a block placeholder")
        occurrences = template.text.count(placeholder.token)
        if occurrences > 1:
            raise RenderError(
                f"{placeholder.token} appears {occurrences} times in {template.name}; it may appear only once"
            )
        if occurrences == 0:
            logger.debug(f"{template.name} has no {placeholder.token} block")
        values[placeholder.token] = text

    missing = [token for token in find_placeholders(template.text) if token not in values]
    if missing:
        out_of_range = [
            token for token in missing
            if token.startswith("__MODEL_") and int(token[len("__MODEL_"):-2]) >= model_count
        ]
        if out_of_range:
            raise RenderError(
                f"{template.name} references {', '.join(out_of_range)} but only "
                f"{model_count} model(s) are configured"
            )
        raise RenderError(f"No value for {', '.join(missing)} in {template.name}")

    rendered = TOKEN_RE.sub(lambda m: values[m.group(0)], template.text)

    leftover = find_placeholders(rendered)
    if leftover:
        raise RenderError(
            f"Rendering {template.name} left unresolved placeholders: {', '.join(leftover)} "
            f"(a substituted value contains placeholder text)"
        )

    return RenderedConfig(template_name=template.name, text=rendered)


def provider_context(
    config: ProviderConfig,
) -> Tuple[Dict[PlaceholderKey, str], Tuple[Placeholder, str]]:
    """Build the rendering context for a provider configuration.

    Scalars whose value is unknown (no endpoint, no credential) are left out, so a
    template that needs them fails to render instead of receiving an empty string.
    """
    scalars: Dict[PlaceholderKey, str] = {
        ModelSlot(i): name for i, name in enumerate(config.model_names)
    }
    if config.first_endpoint:
        scalars[Placeholder.ENDPOINT] = config.first_endpoint
        scalars[Placeholder.ENDPOINT_GENERAL] = config.upstream_host
    if config.access_keys:
        scalars[Placeholder.API_KEY] = config.access_keys[0]
    return scalars, (Placeholder.PROVIDERS, config.source_text)


def render_file(
    path: Union[str, Path],
    scalars: Mapping[PlaceholderKey, str],
    block: Optional[Tuple[Placeholder, str]] = None,
) -> RenderedConfig:
    """Load the template at ``path`` and render it."""
    template = RenderTemplate.load(path)
    logger.info(f"🧩 Rendering config from {template.name}...")
    return render(template, scalars, block)
