"""Generic in-memory repository mirrored to one flat CSV file.

Every entity type uses the same engine; only its :class:`EntitySchema`
differs.  The repository keeps two structures that must always agree:

* ``_items`` - the entities in load/insertion order (display and saving);
* ``_index`` - normalized primary key -> entity (lookups and duplicates).

Each mutation validates first, rebuilds the entity the way a reload would
read it (trimmed text, converted numbers), changes both structures, then
rewrites the whole file.  If the rewrite fails the in-memory change is undone so memory
and disk never disagree.
"""

from __future__ import annotations

import csv
import dataclasses
import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, TypeVar, Union

from .codec import format_line, parse_line
from .exceptions import (
    DuplicateKeyError,
    MalformedRowError,
    RecordIOError,
    RecordNotFoundError,
    RecordValidationError,
    SourceNotBoundError,
)
from .schema import EntitySchema

logger = logging.getLogger(__name__)

E = TypeVar("E")

PathLike = Union[str, os.PathLike]


class EntityRepository(Generic[E]):
    """CRUD access to one entity type backed by a full-rewrite CSV file."""

    def __init__(
        self,
        schema: EntitySchema[E],
        *,
        strict: bool = False,
        encoding: str = "utf-8",
    ) -> None:
        self.schema = schema
        self.strict = strict
        self.encoding = encoding
        self._items: List[E] = []
        self._index: Dict[str, E] = {}
        self._source: Optional[Path] = None

    # ----- Loading -----------------------------------------------------
    def load(self, path: PathLike) -> int:
        """Replace the in-memory state with the rows of ``path``.

        Rows that are too short, have a blank key or repeat an earlier key are
        skipped with a warning unless the repository is strict.  Returns the
        number of entities loaded.
        """

        path = Path(path)
        self._items.clear()
        self._index.clear()
        self._source = None
        try:
            with path.open("r", encoding=self.encoding, newline="") as fh:
                header = fh.readline()
                if header:
                    for line_number, line in enumerate(fh, start=2):
                        self._load_row(line, line_number)
        except (OSError, UnicodeDecodeError) as exc:
            self._items.clear()
            self._index.clear()
            raise RecordIOError(f"Unable to read {self.schema.name} file {path}: {exc}", str(path)) from exc
        except MalformedRowError:
            self._items.clear()
            self._index.clear()
            raise
        self._source = path
        logger.debug("Loaded %s %s from %s", len(self._items), self.schema.name, path)
        return len(self._items)

    def _load_row(self, line: str, line_number: int) -> None:
        if not line.strip():
            return
        try:
            row = parse_line(line)
        except csv.Error as exc:
            self._skip(line_number, f"unparseable row ({exc})")
            return
        if len(row) < self.schema.min_columns:
            self._skip(
                line_number,
                f"expected at least {self.schema.min_columns} columns, found {len(row)}",
            )
            return
        key = self.schema.normalize_key(self.schema.row_key(row))
        if not key:
            self._skip(line_number, "blank primary key")
            return
        if key in self._index:
            self._skip(line_number, f"duplicate key {self.schema.row_key(row)!r}")
            return
        entity = self.schema.from_fields(row)
        self._items.append(entity)
        self._index[key] = entity

    def _skip(self, line_number: int, reason: str) -> None:
        message = f"{self.schema.name} line {line_number}: {reason}"
        if self.strict:
            raise MalformedRowError(message, entity=self.schema.name, line_number=line_number)
        logger.warning("Skipping %s", message)

    # ----- Queries -----------------------------------------------------
    @property
    def source_path(self) -> Optional[Path]:
        return self._source

    def get_all(self) -> List[E]:
        return list(self._items)

    def find_by_key(self, key: Any) -> Optional[E]:
        norm = self.schema.normalize_key(key)
        if not norm:
            return None
        return self._index.get(norm)

    def exists_by_key(self, key: Any) -> bool:
        return self.find_by_key(key) is not None

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[E]:
        return iter(list(self._items))

    def __contains__(self, key: object) -> bool:
        return self.exists_by_key(key)

    # ----- Mutations ---------------------------------------------------
    def add(self, entity: E) -> E:
        key = self._require_key(entity)
        entity = self.schema.coerce(entity)
        if key in self._index:
            raise DuplicateKeyError(
                f"{self.schema.name} already contains key {self.schema.key_of(entity)!r}",
                entity=self.schema.name,
                key=self.schema.key_of(entity),
            )

        def _undo() -> None:
            self._items.pop()
            del self._index[key]

        self._items.append(entity)
        self._index[key] = entity
        self._persist(_undo)
        logger.info("Added %s %s", self.schema.name, self.schema.key_of(entity))
        return entity

    def update(self, entity: E) -> E:
        key = self._require_key(entity)
        entity = self.schema.coerce(entity)
        existing = self._index.get(key)
        if existing is None:
            raise self._not_found(self.schema.key_of(entity))
        position = self._position_of(existing)

        def _undo() -> None:
            self._items[position] = existing
            self._index[key] = existing

        self._items[position] = entity
        self._index[key] = entity
        self._persist(_undo)
        logger.info("Updated %s %s", self.schema.name, self.schema.key_of(entity))
        return entity

    def modify(self, key: Any, **changes: Any) -> E:
        """Apply attribute ``changes`` to the stored entity and save it."""

        existing = self.find_by_key(key)
        if existing is None:
            raise self._not_found(key)
        unknown = set(changes) - set(self.schema.attributes)
        if unknown:
            raise RecordValidationError(
                f"Unknown {self.schema.name} attribute(s): {', '.join(sorted(unknown))}",
                entity=self.schema.name,
                key=str(key),
            )
        if self.schema.key_attr in changes and self.schema.normalize_key(
            changes[self.schema.key_attr]
        ) != self.schema.normalize_key(key):
            raise RecordValidationError(
                f"The {self.schema.name} key {self.schema.key_attr} cannot be changed",
                entity=self.schema.name,
                key=str(key),
            )
        return self.update(dataclasses.replace(existing, **changes))

    def delete(self, key: Any) -> E:
        norm = self.schema.normalize_key(key)
        existing = self._index.get(norm) if norm else None
        if existing is None:
            raise self._not_found(key)
        position = self._position_of(existing)

        def _undo() -> None:
            self._items.insert(position, existing)
            self._index[norm] = existing

        del self._items[position]
        del self._index[norm]
        self._persist(_undo)
        logger.info("Deleted %s %s", self.schema.name, self.schema.key_of(existing))
        return existing

    # ----- Persistence -------------------------------------------------
    def save(self) -> None:
        """Rewrite the bound file from the in-memory collection."""

        if self._source is None:
            raise SourceNotBoundError(
                f"{self.schema.name} file path not set; call load() first"
            )
        path = self._source
        lines = [self.schema.header]
        lines.extend(format_line(self.schema.to_fields(item)) for item in self._items)
        payload = "\n".join(lines) + "\n"
        tmp_path = path.with_name(path.name + ".tmp")
        try:
            with tmp_path.open("w", encoding=self.encoding, newline="") as fh:
                fh.write(payload)
            os.replace(tmp_path, path)
        except OSError as exc:
            if tmp_path.exists():
                tmp_path.unlink()
            raise RecordIOError(f"Unable to write {self.schema.name} file {path}: {exc}", str(path)) from exc
        logger.debug("Saved %s %s to %s", len(self._items), self.schema.name, path)

    def _persist(self, undo: Callable[[], None]) -> None:
        try:
            self.save()
        except (RecordIOError, SourceNotBoundError):
            undo()
            raise

    # ----- Internal utilities -----------------------------------------
    def _require_key(self, entity: Optional[E]) -> str:
        if entity is None:
            raise RecordValidationError(
                f"A {self.schema.name} entity is required", entity=self.schema.name
            )
        if not isinstance(entity, self.schema.entity_type):
            raise RecordValidationError(
                f"Expected {self.schema.entity_type.__name__}, got {type(entity).__name__}",
                entity=self.schema.name,
            )
        key = self.schema.normalize_key(self.schema.key_of(entity))
        if not key:
            raise RecordValidationError(
                f"{self.schema.name}: {self.schema.key_attr} is required",
                entity=self.schema.name,
            )
        return key

    def _position_of(self, entity: E) -> int:
        for position, item in enumerate(self._items):
            if item is entity:
                return position
        raise RuntimeError(f"{self.schema.name} index out of sync with collection")

    def _not_found(self, key: Any) -> RecordNotFoundError:
        return RecordNotFoundError(
            f"{self.schema.name} not found: {key}",
            entity=self.schema.name,
            key=None if key is None else str(key),
        )


__all__ = ["EntityRepository"]
