"""Structured run log mirrored into the standard logging tree."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger("cratecache.run")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


@dataclass(slots=True)
class StructuredLogger:
    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        state: str | None,
        key: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "state": state,
            "key": key,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)
        logger.log(_LEVELS.get(level, logging.INFO), "[%s] %s", state or operation, message)

    def records_for_state(self, state: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("state") == state]

    def states(self) -> list[str]:
        return [record["state"] for record in self.records if record.get("state")]

    def to_json_lines(self, path: str | Path) -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path
