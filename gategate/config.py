"""INI-backed configuration with section and key lookups that never fail."""

from __future__ import annotations

import configparser
import logging
import threading
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path

logger = logging.getLogger(__name__)

CONFIG_FILENAME = "config.ini"


@dataclass(frozen=True)
class Section:
    """Key/value pairs of one INI section; unknown keys read as ''."""

    values: Mapping[str, str] = field(default_factory=dict)

    def __getitem__(self, key: str) -> str:
        return self.values.get(key, "")

    def __contains__(self, key: object) -> bool:
        return key in self.values

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self.values))

    def __len__(self) -> int:
        return len(self.values)


class Config:
    """A set of named sections; unknown sections read as empty."""

    _instance: Config | None = None
    _instance_lock = threading.Lock()

    def __init__(self, sections: Mapping[str, Mapping[str, str]]) -> None:
        self._sections = {
            name: Section(dict(values)) for name, values in sections.items()
        }

    def __getitem__(self, section: str) -> Section:
        return self._sections.get(section, Section())

    def __contains__(self, section: object) -> bool:
        return section in self._sections

    def sections(self) -> list[str]:
        """Return the section names in sorted order."""
        return sorted(self._sections)

    def dump(self) -> str:
        """Render every section and its pairs, sorted, one per line."""
        lines: list[str] = []
        for name in self.sections():
            lines.append(f"[{name}]")
            section = self._sections[name]
            lines.extend(f"{key}={section[key]}" for key in section)
        return "".join(line + "\n" for line in lines)

    @classmethod
    def from_file(cls, path: str | Path) -> Config:
        """Read an INI file; raises OSError or configparser.Error on failure."""
        parser = configparser.ConfigParser(interpolation=None)
        parser.optionxform = str  # keep key case as written
        with open(path, encoding="utf-8") as handle:
            parser.read_file(handle)
        return cls({name: dict(parser.items(name)) for name in parser.sections()})

    @classmethod
    def instance(cls) -> Config:
        """Return the shared configuration read from ./config.ini."""
        with cls._instance_lock:
            if cls._instance is None:
                path = Path.cwd() / CONFIG_FILENAME
                logger.info("Config path: %s", path)
                config = cls.from_file(path)
                logger.debug("Loaded configuration:\n%s", config.dump())
                cls._instance = config
            return cls._instance