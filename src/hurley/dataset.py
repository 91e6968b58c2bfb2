"""
Request datasets for performance runs.

A dataset file holds one or more request definitions, as a JSON array,
a single JSON object, or newline-delimited JSON objects.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from .errors import DatasetError

logger = logging.getLogger(__name__)


class DatasetEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    method: str = "GET"
    path: str | None = None
    body: Any = None
    headers: dict[str, str] | None = None

    def body_string(self) -> str | None:
        if self.body is None:
            return None
        if isinstance(self.body, str):
            return self.body
        return json.dumps(self.body, separators=(",", ":"))


class Dataset:
    def __init__(self, entries: list[DatasetEntry]):
        self.entries = list(entries)

    def __len__(self) -> int:
        return len(self.entries)

    def is_empty(self) -> bool:
        return not self.entries

    @classmethod
    def from_file(cls, path: str | Path) -> "Dataset":
        try:
            content = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise DatasetError(f"Cannot read {path}: {e}") from e
        dataset = cls.from_json(content)
        logger.info(f"Loaded {len(dataset)} dataset entries from {path}")
        return dataset

    @classmethod
    def from_json(cls, content: str) -> "Dataset":
        """Parse an array, a single object, or NDJSON, in that order."""
        try:
            parsed = json.loads(content)
        except json.JSONDecodeError:
            parsed = None

        if isinstance(parsed, list):
            try:
                return cls([DatasetEntry.model_validate(item) for item in parsed])
            except ValidationError as e:
                raise DatasetError(f"Invalid entry: {e}") from e
        if isinstance(parsed, dict):
            try:
                return cls([DatasetEntry.model_validate(parsed)])
            except ValidationError as e:
                raise DatasetError(f"Invalid entry: {e}") from e

        entries = []
        for line in content.splitlines():
            line = line.strip()
            if not line:
                continue
            try:
                entries.append(DatasetEntry.model_validate_json(line))
            except ValidationError as e:
                raise DatasetError(f"Failed to parse line: {e}") from e

        if not entries:
            raise DatasetError("Empty dataset")
        logger.debug(f"Parsed {len(entries)} NDJSON entries")
        return cls(entries)

    @classmethod
    def simple(cls, count: int) -> "Dataset":
        """No-override GET entries, used when no dataset file is given."""
        return cls([DatasetEntry() for _ in range(count)])
