"""
testlink.config.autoload - PSR-4 autoload mappings from composer.json.

Turns composer.json ``autoload`` / ``autoload-dev`` sections plus the
[namespaces] config table into an ordered list of
``(directory_prefix, namespace_prefix)`` mappings, and resolves the
namespace of a file by longest directory-prefix match.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Any

from testlink.exceptions import ConfigError

COMPOSER_FILE = "composer.json"


@dataclass(frozen=True)
class AutoloadMapping:
    """
    One directory -> namespace rule.

    Attributes:
        directory: Project-relative POSIX directory ("" for the root)
        namespace: Namespace prefix without trailing backslash
        dev: True for autoload-dev entries
    """

    directory: str
    namespace: str
    dev: bool = False


def _normalize_directory(directory: str) -> str:
    parts = [part for part in PurePosixPath(directory.replace("\\", "/")).parts if part not in (".", "/")]
    return "/".join(parts)


def read_composer(project_root: Path) -> dict[str, Any]:
    """
    Read composer.json from project_root.

    Returns:
        Decoded JSON, or an empty dict when there is no composer.json

    Raises:
        ConfigError: If composer.json exists but is unreadable or malformed
    """
    path = Path(project_root) / COMPOSER_FILE
    if not path.is_file():
        return {}
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"cannot read: {e}", path) from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid JSON: {e}", path) from e
    if not isinstance(data, dict):
        raise ConfigError("top-level value must be an object", path)
    return data


def composer_mappings(composer: dict[str, Any]) -> list[AutoloadMapping]:
    """PSR-4 mappings declared in composer.json, autoload before autoload-dev."""
    mappings: list[AutoloadMapping] = []
    for section, dev in (("autoload", False), ("autoload-dev", True)):
        autoload = composer.get(section) or {}
        if not isinstance(autoload, dict):
            raise ConfigError(f"{section} must be an object")
        psr4 = autoload.get("psr-4") or {}
        if not isinstance(psr4, dict):
            raise ConfigError(f"{section}.psr-4 must be an object")
        for namespace, directories in psr4.items():
            if isinstance(directories, str):
                directories = [directories]
            if not isinstance(directories, list):
                raise ConfigError(f"{section}.psr-4 entry for '{namespace}' must be a string or list")
            for directory in directories:
                mappings.append(
                    AutoloadMapping(
                        directory=_normalize_directory(str(directory)),
                        namespace=str(namespace).strip("\\"),
                        dev=dev,
                    )
                )
    return mappings


def load_autoload_mappings(project_root: Path, config: dict[str, Any] | None = None) -> list[AutoloadMapping]:
    """
    All autoload mappings for a project.

    Config [namespaces] mappings come first so they win ties over
    composer.json entries for the same directory.

    Raises:
        ConfigError: If composer.json is malformed
    """
    mappings: list[AutoloadMapping] = []
    configured = (config or {}).get("namespaces", {}).get("mappings", {}) or {}
    for directory, namespace in configured.items():
        mappings.append(AutoloadMapping(_normalize_directory(directory), str(namespace).strip("\\"), True))
    mappings.extend(composer_mappings(read_composer(project_root)))
    return mappings


class NamespaceResolver:
    """
    Resolves the namespace of a file from autoload mappings.

    The mapping whose directory is the longest prefix of the file's
    directory wins; the remaining sub-directories are appended as
    namespace segments. Without a match the default mapping applies
    (``tests`` -> ``Tests`` unless configured otherwise), and files outside
    every mapped directory use the default namespace followed by their
    own directory segments.
    """

    def __init__(
        self,
        mappings: list[AutoloadMapping],
        default_namespace: str = "Tests",
        default_directory: str = "tests",
    ):
        self.mappings = list(mappings)
        self.default = AutoloadMapping(_normalize_directory(default_directory), default_namespace.strip("\\"))

    def resolve(self, relative_path: Path | str) -> str:
        """Namespace for a project-relative file path (e.g. "tests/Unit/FooTest.php")."""
        directory = _normalize_directory(str(PurePosixPath(str(relative_path).replace("\\", "/")).parent))
        segments = directory.split("/") if directory else []

        best: AutoloadMapping | None = None
        best_length = -1
        for mapping in self.mappings:
            prefix = mapping.directory.split("/") if mapping.directory else []
            if segments[: len(prefix)] == prefix and len(prefix) > best_length:
                best, best_length = mapping, len(prefix)

        if best is None:
            default_prefix = self.default.directory.split("/") if self.default.directory else []
            if segments[: len(default_prefix)] == default_prefix:
                best, best_length = self.default, len(default_prefix)
            else:
                best, best_length = AutoloadMapping("", self.default.namespace), 0

        rest = segments[best_length:]
        return "\\".join(part for part in (best.namespace, *rest) if part)
