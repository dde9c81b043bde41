"""JSON file record store.

A local RecordRepository: types and records live in flat JSON files under
a configurable base directory. There is no database - reads and writes go
through plain helper methods that load and dump JSON. Used for offline
runs (``--data-dir``) and in tests.

Directory layout:

    {base}/
      types.json               ← list of ContentType objects
      objects/
        {type_id}.json         ← list of StoredObject records of that type
"""

from __future__ import annotations

import json
import uuid
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from campaign_sim.errors import PersistenceFailed
from campaign_sim.models import ContentType, ObjectPayload, StoredObject

_MISSING = object()


class JsonStore:
    def __init__(self, base_path: Path) -> None:
        self._base = base_path
        self._objects_root = base_path / "objects"
        self._objects_root.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Internal path helpers
    # ------------------------------------------------------------------

    def _types_file(self) -> Path:
        return self._base / "types.json"

    def _objects_file(self, type_id: str) -> Path:
        return self._objects_root / f"{type_id}.json"

    def _read_json(self, path: Path, default: Any) -> Any:
        if not path.exists():
            return default
        try:
            return json.loads(path.read_text())
        except (OSError, json.JSONDecodeError) as e:
            raise PersistenceFailed(f"Cannot read {path}: {e}") from e

    def _write_json(self, path: Path, data: Any) -> None:
        try:
            path.write_text(json.dumps(data, indent=2))
        except OSError as e:
            raise PersistenceFailed(f"Cannot write {path}: {e}") from e

    # ------------------------------------------------------------------
    # Types
    # ------------------------------------------------------------------

    def list_types(self) -> list[ContentType]:
        path = self._types_file()
        try:
            return [ContentType.model_validate(t) for t in self._read_json(path, [])]
        except ValidationError as e:
            raise PersistenceFailed(f"Malformed type entry in {path}: {e}") from e

    def register_type(self, name: str, object_schema: dict[str, Any] | None = None) -> ContentType:
        """Create the type if no type with this name exists; return it."""
        types = self.list_types()
        for t in types:
            if t.name == name:
                return t
        content_type = ContentType(id=uuid.uuid4().hex, name=name, object_schema=object_schema)
        types.append(content_type)
        self._write_json(self._types_file(), [t.model_dump() for t in types])
        return content_type

    async def get_type_by_name(self, name: str) -> ContentType | None:
        for t in self.list_types():
            if t.name == name:
                return t
        return None

    # ------------------------------------------------------------------
    # Objects
    # ------------------------------------------------------------------

    def _load_objects(self, type_id: str) -> list[StoredObject]:
        path = self._objects_file(type_id)
        try:
            return [StoredObject.model_validate(o) for o in self._read_json(path, [])]
        except ValidationError as e:
            raise PersistenceFailed(f"Malformed record in {path}: {e}") from e

    async def find(self, query: dict[str, Any]) -> list[StoredObject]:
        """Return records matching every key of ``query``.

        Keys are dotted paths into the record ("properties.campaignId");
        a "type" key narrows the search to one objects file.
        """
        type_id = query.get("type")
        if type_id is not None:
            candidates = self._load_objects(type_id)
        else:
            candidates = []
            for path in sorted(self._objects_root.glob("*.json")):
                candidates.extend(self._load_objects(path.stem))

        return [
            obj for obj in candidates
            if all(_lookup(obj.model_dump(), key) == value for key, value in query.items())
        ]

    async def create(self, payload: ObjectPayload) -> StoredObject:
        obj = StoredObject(
            id=uuid.uuid4().hex,
            name=payload.name,
            type=payload.type,
            properties=payload.properties,
            parent=payload.parent,
            text=payload.text,
        )
        existing = self._load_objects(payload.type)
        existing.append(obj)
        self._write_json(
            self._objects_file(payload.type),
            [o.model_dump() for o in existing],
        )
        return obj


def _lookup(data: Any, path: str) -> Any:
    for part in path.split("."):
        if not isinstance(data, dict) or part not in data:
            return _MISSING
        data = data[part]
    return data
