"""Generation of a runnable Python configuration file."""

from collections.abc import Mapping, Sequence
from datetime import UTC, date, datetime, time
from email.utils import format_datetime
from importlib.metadata import PackageNotFoundError, version
from math import isfinite
from re import sub
from typing import Any, Literal, Protocol

from configgen.config_file import SEPARATOR, SERVERS

type EndOfLine = Literal["unix", "win"]

# Lists up to this length are written on a single line
INLINE_ITEMS = 4


class ConfigSource(Protocol):
    """Configuration the generator reads from."""

    persist_keys: Mapping[str, Any]

    def get_config(self) -> dict[str, Any]:
        """Return the settings tree."""
        ...

    def server_count(self) -> int:
        """Number of configured servers."""
        ...

    def server_name(self, server_id: int) -> str:
        """Display name of a server."""
        ...

    def get_default(self, path: str, default: Any = None) -> Any:  # noqa: ANN401
        """Return the default for a path."""
        ...


def sanitize(key: object) -> str:
    """Restrict a key to letters, digits and underscores."""
    return sub(r"[^A-Za-z0-9_]", "_", str(key))


def is_list(value: object) -> bool:
    """Whether a value is written as a list literal."""
    return isinstance(value, Sequence) and not isinstance(value, str | bytes)


def export_literal(value: Any) -> str:  # noqa: ANN401
    """Write a value as a Python literal the generated file can evaluate."""
    if isinstance(value, float) and not isfinite(value):
        return f"float('{value}')"
    if isinstance(value, Mapping):
        items = (f"{export_literal(k)}: {export_literal(v)}" for k, v in value.items())
        return "{" + ", ".join(items) + "}"
    if is_list(value):
        return "[" + ", ".join(export_literal(item) for item in value) + "]"
    return repr(value)


def uses_datetime(value: object) -> bool:
    """Whether a value holds dates or times, written as ``datetime`` calls."""
    if isinstance(value, date | time):
        return True
    if isinstance(value, Mapping):
        return any(uses_datetime(item) for item in value.values())
    if is_list(value):
        return any(uses_datetime(item) for item in value)
    return False


def export_list(values: Sequence[Any], eol: str) -> str:
    """Write a list literal, one item per line when it is long."""
    items = [export_literal(value) for value in values]
    if len(items) <= INLINE_ITEMS:
        return "[" + ", ".join(items) + "]"
    return "[" + ",".join(f"{eol}    {item}" for item in items) + "]"


def export_variable(name: str, value: Any, eol: str) -> str:  # noqa: ANN401
    """Write the assignments for one top-level setting."""
    target = f'cfg["{name}"]'
    if not isinstance(value, Mapping | Sequence) or isinstance(value, str) or not value:
        return f"{target} = {export_literal(value)}{eol}"
    if is_list(value):
        return f"{target} = {export_list(value, eol)}{eol}"

    lines = [f"{target} = {{}}{eol}"]
    lines.extend(
        f'{target}["{sanitize(key)}"] = {export_literal(item)}{eol}'
        for key, item in value.items()
    )
    return "".join(lines)


def server_part(source: ConfigSource, servers: Mapping[int, Any], eol: str) -> str:
    """Write one numbered block per server."""
    if source.server_count() == 0:
        return ""

    lines = [
        f"# Servers configuration{eol}",
        f'cfg["{SERVERS}"] = {{}}{eol}',
        f"i = 0{eol}",
        eol,
    ]
    for server_id, server in servers.items():
        label = f"{source.server_name(server_id)} [{server_id}]"
        label = label.translate(str.maketrans("*/\r\n", "--  "))
        lines += [
            f"# Server: {label}{eol}",
            f"i += 1{eol}",
            f'cfg["{SERVERS}"][i] = {{}}{eol}',
        ]
        for key, value in server.items():
            if is_list(value):
                literal = export_list(value, eol)
            else:
                literal = export_literal(value)
            lines.append(f'cfg["{SERVERS}"][i]["{sanitize(key)}"] = {literal}{eol}')
        lines.append(eol)
    lines += [f"# End of servers configuration{eol}", eol]
    return "".join(lines)


def _generator_version() -> str:
    """Return the installed toolkit version."""
    try:
        return version("dbadmin-toolkit")
    except PackageNotFoundError:
        return "dev"


def config_to_python(
    source: ConfigSource,
    *,
    eol: EndOfLine = "unix",
    now: datetime | None = None,
) -> str:
    """Serialize configuration as Python source that rebuilds ``cfg``."""
    crlf = "\r\n" if eol == "win" else "\n"
    config = source.get_config()
    generated = format_datetime(now or datetime.now(UTC), usegmt=True)

    header = [
        f"# Generated configuration file{crlf}",
        f"# Generated by: dbadmin-toolkit {_generator_version()} setup script{crlf}",
        f"# Date: {generated}{crlf}",
        crlf,
    ]
    parts = [f"cfg = {{}}{crlf}", crlf]
    written: list[Any] = []

    if config.get(SERVERS):
        servers = config.pop(SERVERS)
        parts.append(server_part(source, servers, crlf))
        written.append(servers)

    persist_keys = dict(source.persist_keys)
    for key, value in config.items():
        name = sanitize(key)
        parts.append(export_variable(name, value, crlf))
        written.append(value)
        persist_keys.pop(name, None)

    # Persisted single-level settings are written even when left at default
    for key in persist_keys:
        if SEPARATOR in key:
            continue
        value = source.get_default(key)
        parts.append(export_variable(sanitize(key), value, crlf))
        written.append(value)

    if uses_datetime(written):
        header += [f"import datetime{crlf}", crlf]

    return "".join(header + parts) + crlf
