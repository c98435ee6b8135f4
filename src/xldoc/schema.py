"""
xldoc.schema — 표 데이터 모델

스프레드시트에서 추출한 셀/행/표를 문서 조립기에 전달하기 위한
고정 형태의 레코드입니다. 값이 없는 선택 필드는 None 으로 표현합니다.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, time, timedelta
from enum import Enum
from pathlib import Path
from typing import Any, Union

CellValue = Union[str, int, float, bool, date, datetime, time, timedelta]


class CellType(str, Enum):
    """셀 데이터 타입."""
    TEXT = "text"
    NUMBER = "number"
    DATE = "date"
    FORMULA = "formula"
    BOOLEAN = "boolean"


class CellAlignment(str, Enum):
    """셀 정렬."""
    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    JUSTIFY = "justify"


@dataclass(frozen=True)
class CellStyle:
    """셀 표시 힌트 (계산하지 않고 그대로 전달)."""
    bold: bool | None = None
    italic: bool | None = None
    underline: bool | None = None
    font_size: float | None = None           # pt
    font_color: str | None = None            # RRGGBB
    background_color: str | None = None      # RRGGBB
    border_color: str | None = None          # RRGGBB
    border_width: float | None = None
    alignment: CellAlignment | None = None

    def to_dict(self) -> dict[str, Any]:
        """None 이 아닌 항목만 딕셔너리로."""
        data = {k: v for k, v in asdict(self).items() if v is not None}
        if self.alignment is not None:
            data["alignment"] = self.alignment.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CellStyle:
        processed = dict(data)
        if processed.get("alignment") is not None:
            processed["alignment"] = CellAlignment(processed["alignment"])
        valid_fields = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in processed.items() if k in valid_fields})


@dataclass(frozen=True)
class Cell:
    """
    논리적 셀 하나.

    colspan / rowspan 은 병합 영역의 시작(좌상단) 셀에만 설정됩니다.
    """
    value: CellValue
    display_value: str
    type: CellType = CellType.TEXT
    colspan: int | None = None
    rowspan: int | None = None
    formula: str | None = None
    style: CellStyle | None = None

    @property
    def is_empty(self) -> bool:
        """표시값이 공백뿐이면 빈 셀."""
        return self.display_value.strip() == ""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "value": _json_value(self.value),
            "displayValue": self.display_value,
            "type": self.type.value,
        }
        if self.colspan is not None:
            data["colspan"] = self.colspan
        if self.rowspan is not None:
            data["rowspan"] = self.rowspan
        if self.formula is not None:
            data["formula"] = self.formula
        if self.style is not None:
            data["style"] = self.style.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Cell:
        style = data.get("style")
        return cls(
            value=data.get("value", ""),
            display_value=data.get("displayValue", data.get("display_value", "")),
            type=CellType(data.get("type", "text")),
            colspan=data.get("colspan"),
            rowspan=data.get("rowspan"),
            formula=data.get("formula"),
            style=CellStyle.from_dict(style) if style else None,
        )


def empty_cell() -> Cell:
    """병합되지 않은 빈 주소에 대응하는 명시적 빈 셀."""
    return Cell(value="", display_value="", type=CellType.TEXT)


@dataclass(frozen=True)
class RowStyle:
    """행 단위 표시 힌트."""
    background_color: str | None = None
    border_color: str | None = None


@dataclass
class Row:
    """순서가 있는 셀 목록 (왼쪽→오른쪽 = 원본 열 순서)."""
    cells: list[Cell] = field(default_factory=list)
    height: float | None = None
    style: RowStyle | None = None

    @property
    def is_empty(self) -> bool:
        return all(cell.is_empty for cell in self.cells)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"cells": [c.to_dict() for c in self.cells]}
        if self.height is not None:
            data["height"] = self.height
        if self.style is not None:
            data["style"] = {k: v for k, v in asdict(self.style).items() if v is not None}
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Row:
        style = data.get("style")
        return cls(
            cells=[Cell.from_dict(c) for c in data.get("cells", [])],
            height=data.get("height"),
            style=RowStyle(**style) if style else None,
        )


@dataclass
class TableMetadata:
    """추출 메타데이터."""
    sheet_name: str = ""
    original_range: str = ""
    encoding: str = "utf8"
    special_chars_converted: int = 0
    processing_time: float = 0.0           # ms


@dataclass
class Table:
    """
    파이프라인의 정규 출력 표.

    total_rows / total_cols 는 원본 범위의 크기이며,
    병합으로 생략된 셀 수와는 무관합니다.
    """
    headers: list[Row] = field(default_factory=list)
    rows: list[Row] = field(default_factory=list)
    total_rows: int = 0
    total_cols: int = 0
    metadata: TableMetadata = field(default_factory=TableMetadata)
    title: str | None = None

    @property
    def all_rows(self) -> list[Row]:
        """헤더 + 데이터 행."""
        return [*self.headers, *self.rows]

    # ── 직렬화 ─────────────────────────────────────────────────

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (camelCase 키)."""
        data: dict[str, Any] = {
            "headers": [r.to_dict() for r in self.headers],
            "rows": [r.to_dict() for r in self.rows],
            "totalRows": self.total_rows,
            "totalCols": self.total_cols,
            "metadata": {
                "sheetName": self.metadata.sheet_name,
                "originalRange": self.metadata.original_range,
                "encoding": self.metadata.encoding,
                "specialCharsConverted": self.metadata.special_chars_converted,
                "processingTime": self.metadata.processing_time,
            },
        }
        if self.title is not None:
            data["title"] = self.title
        return data

    def to_json(self, indent: int = 2) -> str:
        """JSON 문자열로 변환."""
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Table:
        """딕셔너리에서 Table 생성."""
        meta = data.get("metadata", {})
        return cls(
            headers=[Row.from_dict(r) for r in data.get("headers", [])],
            rows=[Row.from_dict(r) for r in data.get("rows", [])],
            total_rows=data.get("totalRows", 0),
            total_cols=data.get("totalCols", 0),
            metadata=TableMetadata(
                sheet_name=meta.get("sheetName", ""),
                original_range=meta.get("originalRange", ""),
                encoding=meta.get("encoding", "utf8"),
                special_chars_converted=meta.get("specialCharsConverted", 0),
                processing_time=meta.get("processingTime", 0.0),
            ),
            title=data.get("title"),
        )

    @classmethod
    def from_json(cls, json_str: str) -> Table:
        return cls.from_dict(json.loads(json_str))

    def save(self, path: str | Path) -> None:
        """JSON 파일로 저장."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(), encoding="utf-8")


@dataclass
class ValidationResult:
    """표 검증 결과. 문제는 예외가 아니라 issues 로 보고됩니다."""
    valid: bool = True
    issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"valid": self.valid, "issues": list(self.issues)}


def _json_value(value: Any) -> Any:
    """JSON 으로 직접 표현할 수 없는 날짜/시각/기간 값을 문자열로."""
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return str(value)
    return value
