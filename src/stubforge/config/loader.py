import logging
import sys
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict

if sys.version_info < (3, 11):
    import tomli as tomllib
else:
    import tomllib

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class StubforgeConfig:
    indent_width: int = 2
    namespace_separator: str = "::"
    parameter_prefix: str = "arg"
    catch_all_parameter: str = "*args"
    root_name: str = "Object"

    @property
    def indent(self) -> str:
        return " " * self.indent_width


def _find_pyproject_toml(search_path: Path) -> Path:
    current_dir = search_path.resolve()
    while True:
        pyproject_path = current_dir / "pyproject.toml"
        if pyproject_path.is_file():
            return pyproject_path
        if current_dir.parent == current_dir:
            break
        current_dir = current_dir.parent
    raise FileNotFoundError("Could not find pyproject.toml in any parent directory.")


def config_from_dict(data: Dict[str, Any]) -> StubforgeConfig:
    known = {f.name for f in fields(StubforgeConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        log.warning(f"Ignoring unknown [tool.stubforge] keys: {', '.join(unknown)}")
    return StubforgeConfig(**{k: v for k, v in data.items() if k in known})


def load_config_from_path(search_path: Path) -> StubforgeConfig:
    try:
        config_path = _find_pyproject_toml(search_path)
    except FileNotFoundError:
        return StubforgeConfig()

    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    stubforge_data: Dict[str, Any] = data.get("tool", {}).get("stubforge", {})
    return config_from_dict(stubforge_data)
