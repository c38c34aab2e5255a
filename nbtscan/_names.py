"""Default name resolvers used by the schematic extractor.

Both resolvers are total: an unknown namespace resolves to itself and an
unknown DataVersion resolves to "Unknown".  The shipped tables are small
on purpose; hosts extend them at runtime (e.g. from mod metadata).
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Mapping, Optional, Union

UNKNOWN_VERSION = "Unknown"

DEFAULT_NAMESPACE_NAMES: Dict[str, str] = {
    "create": "Create",
    "railways": "Create: Steam 'n' Rails",
}

# DataVersion -> release label
DEFAULT_VERSION_LABELS: Dict[int, str] = {
    2586: "1.16.5",
    2730: "1.17.1",
    2975: "1.18.2",
    3120: "1.19.2",
    3337: "1.19.4",
    3465: "1.20.1",
    3700: "1.20.4",
    3839: "1.20.6",
    3953: "1.21",
    3955: "1.21.1",
}


class NamespaceResolver:
    """Map a block namespace (e.g. "create") to a display name."""

    def __init__(self, mapping: Optional[Mapping[str, str]] = None) -> None:
        self._names: Dict[str, str] = dict(DEFAULT_NAMESPACE_NAMES)
        if mapping:
            self._names.update(mapping)

    def __call__(self, namespace: str) -> str:
        return self._names.get(namespace, namespace)

    def __contains__(self, namespace: object) -> bool:
        return namespace in self._names

    def extend(self, mapping: Mapping[str, str]) -> None:
        """Add or override display names; later entries win."""
        self._names.update(mapping)

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "NamespaceResolver":
        """Build a resolver from a JSON object of {namespace: display name}."""
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
        if not isinstance(obj, dict) or not all(
                isinstance(k, str) and isinstance(v, str) for k, v in obj.items()):
            raise ValueError("{}: expected a JSON object of strings".format(path))
        return cls(obj)


def version_label(data_version: Optional[int]) -> str:
    """Release label for a DataVersion, or "Unknown"."""
    if data_version is None:
        return UNKNOWN_VERSION
    return DEFAULT_VERSION_LABELS.get(data_version, UNKNOWN_VERSION)
