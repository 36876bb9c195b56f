"""Flat key/value configuration sources and binding into pydantic property models."""

import os
import re
from dataclasses import dataclass, field
from datetime import timedelta
from pathlib import Path
from typing import (
    Annotated,
    Any,
    ClassVar,
    Mapping,
    Optional,
    Protocol,
    Sequence,
    TypeVar,
    Union,
    get_args,
)

from beartype import beartype
from loguru import logger
from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

from pinjected_gcp_autoconfig.exceptions import PropertyBindingError

M = TypeVar("M", bound=BaseModel)

_PLACEHOLDER = re.compile(r"\$\{([^{}]+)\}")
_URI_SCHEME = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
_PROPERTY_LINE = re.compile(r"^([^=:\s]+)\s*[=:]\s*(.*)$")
_SUFFIXED_DURATION = re.compile(
    r"^\s*(?P<amount>[+-]?\d+(?:\.\d+)?)\s*(?P<unit>ns|us|ms|s|m|h|d)?\s*$"
)
_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
    "d": 86400.0,
}


class PropertySource(Protocol):
    name: str

    def get_property(self, key: str) -> Optional[Any]: ...


@dataclass(frozen=True)
class MapPropertySource:
    name: str
    mapping: Mapping[str, Any]

    def get_property(self, key: str) -> Optional[Any]:
        return self.mapping.get(key)


@beartype
def to_environment_key(key: str) -> str:
    """gcp.secretmanager.project-id -> GCP_SECRETMANAGER_PROJECT_ID"""
    return re.sub(r"[.\-]", "_", key).upper()


@dataclass(frozen=True)
class EnvironmentPropertySource:
    environ: Mapping[str, str] = field(default_factory=lambda: dict(os.environ))
    name: str = "environment"

    def get_property(self, key: str) -> Optional[str]:
        return self.environ.get(to_environment_key(key))


def properties_from_file(path: Union[str, Path]) -> MapPropertySource:
    """
    Load a ``.properties`` style file: one ``key=value`` (or ``key: value``) per line,
    ``#`` and ``!`` start comments.

    Raises:
        PropertyBindingError: On a line that is neither blank, a comment nor a property
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Properties file not found: {path}")

    mapping = {}
    for line_no, line in enumerate(path.read_text().splitlines(), start=1):
        line = line.strip()
        if not line or line[0] in "#!":
            continue
        match = _PROPERTY_LINE.match(line)
        if match is None:
            raise PropertyBindingError(
                f"{path}:{line_no}", line, "expected 'key=value' or 'key: value'"
            )
        mapping[match.group(1)] = match.group(2)
    logger.debug(f"Loaded {len(mapping)} properties from {path}")
    return MapPropertySource(name=str(path), mapping=mapping)


@beartype
def split_placeholder(expression: str) -> tuple[str, Optional[str]]:
    """
    Split ``key:default`` into its parts. A leading URI scheme such as ``sm://``
    is skipped before looking for the separator.
    """
    scheme = _URI_SCHEME.match(expression)
    start = scheme.end() if scheme else 0
    index = expression.find(":", start)
    if index < 0:
        return expression, None
    return expression[:index], expression[index + 1 :]


class ConfigEnvironment:
    """
    An ordered list of property sources. The first source that knows a key wins.
    String values may reference other keys with ``${key}`` or ``${key:default}``.
    """

    def __init__(self, property_sources: Sequence[PropertySource] = ()):
        self.property_sources: list[PropertySource] = list(property_sources)

    def add_first(self, source: PropertySource):
        self.property_sources.insert(0, source)

    def add_last(self, source: PropertySource):
        self.property_sources.append(source)

    def get_raw(self, key: str) -> Optional[Any]:
        for source in self.property_sources:
            value = source.get_property(key)
            if value is not None:
                return value
        return None

    def contains(self, key: str) -> bool:
        return self.get_raw(key) is not None

    def get_property(self, key: str, default: Optional[Any] = None) -> Optional[Any]:
        value = self._resolve_key(key, ())
        return default if value is None else value

    def resolve_placeholders(self, text: str) -> str:
        return self._resolve_text(text, ())

    def _resolve_key(self, key: str, trail: tuple[str, ...]) -> Optional[Any]:
        if key in trail:
            raise PropertyBindingError(
                key, None, f"circular placeholder reference {' -> '.join(trail + (key,))}"
            )
        value = self.get_raw(key)
        if isinstance(value, str):
            return self._resolve_text(value, trail + (key,))
        return value

    def _resolve_text(self, text: str, trail: tuple[str, ...]) -> str:
        def replace(match: re.Match) -> str:
            key, default = split_placeholder(match.group(1))
            value = self._resolve_key(key, trail)
            if value is not None:
                return str(value)
            if default is not None:
                return self._resolve_text(default, trail)
            raise PropertyBindingError(
                trail[-1] if trail else key,
                text,
                f"could not resolve placeholder '{match.group(0)}'",
            )

        # inner placeholders are replaced first, so repeat until nothing changes
        while True:
            resolved = _PLACEHOLDER.sub(replace, text)
            if resolved == text:
                return resolved
            text = resolved


def _duration_from_suffix(value: Any) -> Any:
    # "500ms", "5s", "2m" and bare numbers; ISO-8601 and timedelta are left to pydantic
    if isinstance(value, str):
        match = _SUFFIXED_DURATION.match(value)
        if match:
            unit = match.group("unit") or "s"
            return timedelta(seconds=float(match.group("amount")) * _UNIT_SECONDS[unit])
    return value


Duration = Annotated[timedelta, BeforeValidator(_duration_from_suffix)]
_DURATION_ADAPTER = TypeAdapter(Duration)


def parse_duration(value: Union[str, int, float, timedelta]) -> timedelta:
    """
    Parse a duration.

    Accepts bare numbers (seconds), suffixed values such as ``500ms``, ``5s``, ``2m``
    and ISO-8601 values such as ``PT1M30S``.

    Raises:
        ValueError: pydantic's ``ValidationError`` when the value is not a duration
    """
    return _DURATION_ADAPTER.validate_python(value)


def _split_commas(value: Any) -> Any:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return value


CommaSeparatedList = Annotated[list[str], BeforeValidator(_split_commas)]


def to_property_name(field_name: str) -> str:
    return field_name.replace("_", "-")


class PropertiesModel(BaseModel):
    """Field ``foo_bar`` is read from the key ``<prefix>.foo-bar``."""

    model_config = ConfigDict(
        alias_generator=to_property_name,
        populate_by_name=True,
        extra="ignore",
    )


def _nested_model(annotation: Any) -> Optional[type[BaseModel]]:
    for candidate in (annotation, *get_args(annotation)):
        if isinstance(candidate, type) and issubclass(candidate, BaseModel):
            return candidate
    return None


def collect_properties(
    environment: ConfigEnvironment, prefix: str, cls: type[BaseModel]
) -> dict[str, Any]:
    """
    Raw values under ``prefix`` keyed by property name, with one nested dict per nested
    model. Absent keys are left out so the model defaults apply; an optional nested
    model with no keys at all stays ``None``.
    """
    values = {}
    for name, info in cls.model_fields.items():
        alias = info.alias or name
        key = f"{prefix}.{alias}" if prefix else alias
        nested = _nested_model(info.annotation)
        if nested is not None:
            nested_values = collect_properties(environment, key, nested)
            if nested_values:
                values[alias] = nested_values
            continue
        raw = environment.get_property(key)
        if raw is not None:
            values[alias] = raw
    return values


def bind(environment: ConfigEnvironment, prefix: str, cls: type[M]) -> M:
    """
    Validate the keys under ``prefix`` into a new ``cls``.

    Raises:
        PropertyBindingError: For the first value pydantic rejects, named by its full key
    """
    values = collect_properties(environment, prefix, cls)
    try:
        return cls.model_validate(values)
    except ValidationError as e:
        error = e.errors()[0]
        key = ".".join(str(part) for part in (prefix, *error["loc"]) if part != "")
        raise PropertyBindingError(key, error.get("input"), error["msg"]) from e


class CredentialsProperties(PropertiesModel):
    location: Optional[str] = None
    encoded_key: Optional[str] = None
    scopes: CommaSeparatedList = Field(default_factory=list)

    def has_key(self) -> bool:
        return bool(self.location or self.encoded_key)


class RetryProperties(PropertiesModel):
    """Optional overrides for a retry policy. Unset fields keep the inherited value."""

    total_timeout: Optional[Duration] = None
    initial_retry_delay: Optional[Duration] = None
    retry_delay_multiplier: Optional[float] = None
    max_retry_delay: Optional[Duration] = None
    max_attempts: Optional[Annotated[int, Field(ge=0)]] = None
    initial_rpc_timeout: Optional[Duration] = None
    rpc_timeout_multiplier: Optional[float] = None
    max_rpc_timeout: Optional[Duration] = None


class GcpProperties(PropertiesModel):
    PREFIX: ClassVar[str] = "gcp"

    project_id: Optional[str] = None
    credentials: CredentialsProperties = Field(default_factory=CredentialsProperties)
