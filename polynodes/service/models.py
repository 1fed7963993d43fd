from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


class ResultKind(str, Enum):
    NUMBER = "number"
    STRING = "string"
    IMAGE = "image"
    ERROR = "error"
    AUTO = "auto"
    NOOP = "noop"


@dataclass(frozen=True)
class ExecutionResult:
    """
    Output of one node after a run. ``value`` is only displayed, never
    interpreted by the editor.
    """

    value: Any
    kind: ResultKind
    meta: Optional[Dict[str, Any]] = None

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ExecutionResult":
        raw_kind = payload.get("type", payload.get("kind", ResultKind.AUTO.value))
        try:
            kind = ResultKind(raw_kind)
        except ValueError:
            kind = ResultKind.AUTO
        meta = payload.get("meta")
        return cls(
            value=payload.get("value"),
            kind=kind,
            meta=dict(meta) if isinstance(meta, Mapping) else None,
        )

    def _image_field(self, name: str) -> Any:
        for source in (self.value, self.meta):
            if isinstance(source, Mapping) and name in source:
                return source[name]
        return None

    @property
    def thumbnail_b64(self) -> Optional[str]:
        return self._image_field("thumb_b64")

    @property
    def width(self) -> Optional[int]:
        return self._image_field("width")

    @property
    def height(self) -> Optional[int]:
        return self._image_field("height")

    @property
    def filename(self) -> Optional[str]:
        return self._image_field("filename")

    @property
    def error_message(self) -> str:
        if self.meta and self.meta.get("error"):
            return str(self.meta["error"])
        return "Unknown error"


@dataclass(frozen=True)
class ExecutionResults:
    ok: bool
    results: Dict[str, ExecutionResult] = field(default_factory=dict)
    log: List[str] = field(default_factory=list)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "ExecutionResults":
        raw_results = payload.get("results") or {}
        if not isinstance(raw_results, Mapping):
            raise ValueError("Execution response 'results' must be an object keyed by node id.")
        return cls(
            ok=bool(payload.get("ok", False)),
            results={
                str(node_id): ExecutionResult.from_payload(result)
                for node_id, result in raw_results.items()
                if isinstance(result, Mapping)
            },
            log=[str(line) for line in payload.get("log") or []],
        )


@dataclass(frozen=True)
class GraphFile:
    name: str
    mtime: float


@dataclass(frozen=True)
class SaveReceipt:
    ok: bool
    filename: str
