from pathlib import Path
from typing import Any

import yaml  # type: ignore
import yaml.constructor

from cardwise.domain.errors import StorageError


class UniqueKeyLoader(yaml.SafeLoader):
    """
    Custom YAML loader that forbids duplicate keys.
    """

    def construct_mapping(self, node, deep=False):
        mapping = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in mapping:
                raise yaml.constructor.ConstructorError(
                    None, None, f"found duplicate key '{key}'", key_node.start_mark
                )
            mapping.add(key)
        return super().construct_mapping(node, deep)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a YAML mapping from ``path``; a missing or empty file yields {}.

    Raises:
        StorageError: The file is unreadable, malformed, or not a mapping.
    """
    if not path.exists():
        return {}
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise StorageError(f"Cannot read {path}: {e}") from e

    if "\t" in text:
        line = text[: text.find("\t")].count("\n") + 1
        raise StorageError(f"{path}:{line}: tabs are not allowed in YAML indentation")

    try:
        data = yaml.load(text, Loader=UniqueKeyLoader) or {}
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        where = f"{path}:{mark.line + 1}" if mark is not None else str(path)
        raise StorageError(f"{where}: {getattr(e, 'problem', None) or e}") from e

    if not isinstance(data, dict):
        raise StorageError(f"{path}: expected a mapping at the top level")
    return data


def dump_yaml_file(path: Path, data: dict[str, Any]) -> None:
    """Write ``data`` atomically (temp file then rename)."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        tmp.write_text(
            yaml.safe_dump(data, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        tmp.replace(path)
    except OSError as e:
        raise StorageError(f"Cannot write {path}: {e}") from e
