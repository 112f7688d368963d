"""Connection settings read from the client's INI profile."""

from __future__ import annotations

import configparser
import os
from dataclasses import dataclass

PROFILE_FILE_NAME = "gui_config.ini"
PROFILE_SECTION = "network"
DEFAULT_IP = "localhost"
DEFAULT_PORT = "4999"


@dataclass(frozen=True)
class Profile:
    """Server address settings; both are kept as the text read from the profile."""

    ip: str = DEFAULT_IP
    port: str = DEFAULT_PORT


def _unquote(value: str) -> str:
    value = value.strip()
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def load_profile(path: str | os.PathLike[str] | None = None) -> Profile:
    """Read the ``network`` section of an INI profile.

    Without a path, ``gui_config.ini`` in the current directory is read. A
    missing or unreadable file, section or key falls back to the defaults.
    Section and key names match regardless of case.
    """
    if path is None:
        path = os.path.join(os.getcwd(), PROFILE_FILE_NAME)

    parser = configparser.ConfigParser(interpolation=None, strict=False)
    try:
        with open(path, encoding="utf-8", errors="replace") as handle:
            parser.read_file(handle)
    except (OSError, configparser.Error):
        return Profile()

    section = next(
        (name for name in parser.sections() if name.lower() == PROFILE_SECTION),
        None,
    )
    if section is None:
        return Profile()

    values = parser[section]
    ip = values.get("ip")
    port = values.get("port")
    return Profile(
        ip=DEFAULT_IP if ip is None else _unquote(ip),
        port=DEFAULT_PORT if port is None else _unquote(port),
    )