"""Config locations listed under ``config.import`` and the protocols that resolve them."""

from dataclasses import dataclass
from typing import Any, ClassVar, Protocol, Sequence

from pinjected_gcp_autoconfig.core.properties import ConfigEnvironment, PropertySource

CONFIG_IMPORT_KEY = "config.import"


@dataclass(frozen=True)
class ConfigDataLocation:
    OPTIONAL_PREFIX: ClassVar[str] = "optional:"

    value: str
    optional: bool = False

    @classmethod
    def of(cls, text: str) -> "ConfigDataLocation":
        text = text.strip()
        if text.startswith(cls.OPTIONAL_PREFIX):
            return cls(text[len(cls.OPTIONAL_PREFIX):].strip(), optional=True)
        return cls(text)

    def has_prefix(self, prefix: str) -> bool:
        return self.value.startswith(prefix)

    def __str__(self) -> str:
        return f"{self.OPTIONAL_PREFIX}{self.value}" if self.optional else self.value


def config_import_locations(environment: ConfigEnvironment) -> list[ConfigDataLocation]:
    raw = environment.get_property(CONFIG_IMPORT_KEY)
    if raw is None:
        return []
    items = raw if isinstance(raw, (list, tuple)) else str(raw).split(",")
    return [ConfigDataLocation.of(item) for item in items if str(item).strip()]


class ConfigDataLocationResolver(Protocol):
    def is_resolvable(self, environment: ConfigEnvironment, location: ConfigDataLocation) -> bool: ...

    def resolve(
        self, environment: ConfigEnvironment, location: ConfigDataLocation
    ) -> Sequence[Any]: ...


class ConfigDataLoader(Protocol):
    def is_loadable(self, resource: Any) -> bool: ...

    def load(self, resource: Any) -> PropertySource: ...
