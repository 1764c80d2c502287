"""
Project metadata (name, version) for logs and the health endpoint.

An installed distribution answers from its metadata; a source checkout
answers from the nearest pyproject.toml above the starting folder.
"""

import tomllib
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Any

DISTRIBUTION_NAME = "service-template"

_MISSING = object()


def find_pyproject(start: Path, max_up: int = 5) -> Path | None:
    """First pyproject.toml in `start` or one of its `max_up - 1` parents."""
    start = Path(start)
    for folder in [start, *start.parents][:max_up]:
        candidate = folder / "pyproject.toml"
        if candidate.is_file():
            return candidate
    return None


def load_pyproject_data(pyproject_path: Path) -> dict:
    with pyproject_path.open("rb") as f:
        return tomllib.load(f)


def _lookup(data: dict, dotted_key: str) -> Any:
    node: Any = data
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return _MISSING
        node = node[part]
    return node


def get_pyproject_value(
    key: str,
    start: str | Path | None = None,
    max_up: int = 5,
    default: Any = None,
) -> Any:
    """
    Value of a dotted `key` such as "project.version" or "tool.pytest.ini_options".

    The search starts at `start` (this module's folder when omitted). A missing
    or unparseable file, or an absent key, gives `default`.
    """
    if not key:
        return default
    start_path = Path(start).resolve() if start is not None else Path(__file__).resolve().parent
    pyproject = find_pyproject(start_path, max_up=max_up)
    if pyproject is None:
        return default

    try:
        value = _lookup(load_pyproject_data(pyproject), key)
    except (OSError, tomllib.TOMLDecodeError):
        return default
    return default if value is _MISSING else value


def get_project_name(start: Path | str | None = None, max_up: int = 5, default: str | None = None) -> str | None:
    return get_pyproject_value("project.name", start=start, max_up=max_up, default=default)


def get_project_version(
    start: Path | str | None = None,
    max_up: int = 5,
    default: str = "unknown",
    prefer_installed: bool = True,
) -> str:
    """
    Version of the running service.

    Containers ship without pyproject.toml, so installed metadata comes first
    unless `prefer_installed` is False.
    """
    if prefer_installed:
        name = get_project_name(start=start, max_up=max_up) or DISTRIBUTION_NAME
        try:
            return importlib_metadata.version(name)
        except importlib_metadata.PackageNotFoundError:
            pass
    return get_pyproject_value("project.version", start=start, max_up=max_up, default=default)


__all__ = [
    "DISTRIBUTION_NAME",
    "find_pyproject",
    "load_pyproject_data",
    "get_pyproject_value",
    "get_project_name",
    "get_project_version",
]
