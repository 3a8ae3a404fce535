"""Configuration values edited by the setup script, on top of known defaults."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from copy import deepcopy
from pathlib import Path
from tomllib import load
from typing import Any

DEFAULTS_FILE = Path(__file__).parent / "defaults.toml"

SERVERS = "Servers"
SEPARATOR = "/"

_MISSING = object()


def flatten(mapping: Mapping[str, Any], prefix: str = "") -> dict[str, Any]:
    """Flatten nested tables into ``a/b/c`` paths; lists stay values."""
    flat: dict[str, Any] = {}
    for key, value in mapping.items():
        path = f"{prefix}{key}"
        if isinstance(value, Mapping) and value:
            flat.update(flatten(value, f"{path}{SEPARATOR}"))
        else:
            flat[path] = value
    return flat


def _segment(key: str) -> str | int:
    """Server ids are stored as integers."""
    return int(key) if key.isascii() and key.isdigit() else key


class ConfigFile:
    """Settings tree where only values differing from defaults are stored."""

    def __init__(
        self,
        defaults: Mapping[str, Any] | None = None,
        server_defaults: Mapping[str, Any] | None = None,
        persist_keys: Iterable[str] = (),
    ) -> None:
        self.defaults = flatten(defaults or {})
        self.server_defaults = flatten(server_defaults or {})
        self.persist_keys = dict.fromkeys(persist_keys)
        self.config: dict[str, Any] = {}

    @classmethod
    def from_defaults_file(cls, path: Path = DEFAULTS_FILE) -> ConfigFile:
        """Create an empty configuration using defaults from a TOML file."""
        with path.open("rb") as f:
            data = load(f)
        return cls(
            defaults=data.get("defaults", {}),
            server_defaults=data.get("server", {}),
            persist_keys=data.get("persist", {}).get("keys", []),
        )

    def get_default(self, path: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return the default for a path; every server shares one set."""
        parts = path.split(SEPARATOR)
        if parts[0] == SERVERS and len(parts) > 2:  # noqa: PLR2004
            return self.server_defaults.get(SEPARATOR.join(parts[2:]), default)
        return self.defaults.get(path, default)

    def get(self, path: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return the stored value at a path."""
        node: Any = self.config
        for key in path.split(SEPARATOR):
            if not isinstance(node, dict) or _segment(key) not in node:
                return default
            node = node[_segment(key)]
        return node

    def set(self, path: str, value: Any) -> None:  # noqa: ANN401
        """Store a value, dropping it when it only repeats the default."""
        if path not in self.persist_keys and self.get_default(path, _MISSING) == value:
            self.remove(path)
            return

        *parents, leaf = (_segment(key) for key in path.split(SEPARATOR))
        node = self.config
        for key in parents:
            if not isinstance(node.get(key), dict):
                node[key] = {}
            node = node[key]
        node[leaf] = value

    def remove(self, path: str) -> None:
        """Forget the value at a path and any tables left empty."""
        keys = [_segment(key) for key in path.split(SEPARATOR)]
        trail = [self.config]
        for key in keys[:-1]:
            node = trail[-1].get(key)
            if not isinstance(node, dict):
                return
            trail.append(node)

        if trail[-1].pop(keys[-1], _MISSING) is _MISSING:
            return
        for node, key in zip(reversed(trail[:-1]), reversed(keys[:-1]), strict=True):
            if node[key]:
                break
            del node[key]

    def update(self, settings: Mapping[str, Any]) -> None:
        """Store every leaf of a settings tree; ``Servers`` is a list of tables."""
        for key, value in settings.items():
            if key == SERVERS and isinstance(value, list):
                servers = self.config.setdefault(SERVERS, {})
                for server_id, server in enumerate(value, start=1):
                    servers.setdefault(server_id, {})
                    for path, item in flatten(server).items():
                        self.set(f"{SERVERS}/{server_id}/{path}", item)
            elif isinstance(value, Mapping) and value:
                for path, item in flatten(value).items():
                    self.set(f"{key}/{path}", item)
            else:
                self.set(key, value)

    def load_toml(self, path: Path) -> None:
        """Read settings from a TOML file."""
        with path.open("rb") as f:
            self.update(load(f))

    def get_config(self) -> dict[str, Any]:
        """Return a copy of the stored settings tree."""
        return deepcopy(self.config)

    def server_count(self) -> int:
        """Number of configured servers."""
        servers = self.config.get(SERVERS)
        return len(servers) if isinstance(servers, dict) else 0

    def server_name(self, server_id: int) -> str:
        """Verbose name of a server, falling back to its host."""
        if server_id not in self.config.get(SERVERS, {}):
            return ""
        if verbose := self.get(f"{SERVERS}/{server_id}/verbose"):
            return str(verbose)
        return str(self.get(f"{SERVERS}/{server_id}/host") or "localhost")
