"""
xldoc.reader — 범위/병합 셀 리더

워크북 형태의 원본(희소 셀 맵 + 병합 영역 + 사용 범위)에서
지정한 범위의 셀을 행 단위로 읽어 옵니다.

병합 영역은 좌상단(시작) 셀 하나만 colspan/rowspan 을 달고 출력되며,
나머지 주소는 출력에서 완전히 생략됩니다. 병합되지 않은 빈 주소는
명시적인 빈 셀로 출력되므로 '생략' 과 '빈 셀' 은 구별됩니다.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Any, Iterable

from xldoc.schema import Cell, CellStyle, CellType, CellValue, empty_cell

logger = logging.getLogger(__name__)

# Excel 시트 한계
MAX_ROWS = 1_048_576
MAX_COLS = 16_384

_CELL_RE = re.compile(r"^\$?([A-Za-z]{1,3})\$?(\d+)$")


class NotFoundError(LookupError):
    """요청한 시트 또는 범위가 원본에 없습니다."""


# ── 주소 변환 ───────────────────────────────────────────────────

def column_letter(col: int) -> str:
    """0 기반 열 인덱스 → 열 문자 (0 → A, 26 → AA)."""
    if col < 0:
        raise ValueError(f"열 인덱스는 0 이상이어야 합니다: {col}")
    letters = ""
    n = col + 1
    while n:
        n, rem = divmod(n - 1, 26)
        letters = chr(ord("A") + rem) + letters
    return letters


def column_index(letters: str) -> int:
    """열 문자 → 0 기반 열 인덱스."""
    n = 0
    for ch in letters.upper():
        if not "A" <= ch <= "Z":
            raise ValueError(f"잘못된 열 문자: {letters!r}")
        n = n * 26 + (ord(ch) - ord("A") + 1)
    return n - 1


def encode_cell(row: int, col: int) -> str:
    """(0 기반 행, 열) → A1 주소."""
    if row < 0:
        raise ValueError(f"행 인덱스는 0 이상이어야 합니다: {row}")
    return f"{column_letter(col)}{row + 1}"


def decode_cell(address: str) -> tuple[int, int]:
    """A1 주소 → (0 기반 행, 열). 대소문자 무시, $ 허용."""
    match = _CELL_RE.match(address.strip())
    if not match:
        raise ValueError(f"잘못된 셀 주소: {address!r}")
    letters, digits = match.groups()
    row = int(digits) - 1
    if row < 0:
        raise ValueError(f"잘못된 셀 주소: {address!r}")
    return row, column_index(letters)


@dataclass(frozen=True)
class CellRange:
    """사각 범위 (0 기반, 양끝 포함)."""
    start_row: int
    start_col: int
    end_row: int
    end_col: int

    @property
    def n_rows(self) -> int:
        return self.end_row - self.start_row + 1

    @property
    def n_cols(self) -> int:
        return self.end_col - self.start_col + 1

    def contains(self, row: int, col: int) -> bool:
        return (self.start_row <= row <= self.end_row
                and self.start_col <= col <= self.end_col)

    def overlaps(self, other: CellRange) -> bool:
        return not (other.end_row < self.start_row or other.start_row > self.end_row
                    or other.end_col < self.start_col or other.start_col > self.end_col)

    def __str__(self) -> str:
        return encode_range(self)


def encode_range(cell_range: CellRange) -> str:
    """CellRange → "A1:C3"."""
    return (f"{encode_cell(cell_range.start_row, cell_range.start_col)}:"
            f"{encode_cell(cell_range.end_row, cell_range.end_col)}")


def decode_range(address: str) -> CellRange:
    """
    "A1:C3" 또는 "B2" → CellRange.

    모서리 순서가 뒤집혀 있어도 (C3:A1) 정규화합니다.
    """
    parts = address.strip().split(":")
    if len(parts) == 1:
        row, col = decode_cell(parts[0])
        return CellRange(row, col, row, col)
    if len(parts) != 2:
        raise ValueError(f"잘못된 범위 주소: {address!r}")
    r1, c1 = decode_cell(parts[0])
    r2, c2 = decode_cell(parts[1])
    return CellRange(min(r1, r2), min(c1, c2), max(r1, r2), max(c1, c2))


# ── 원본 모델 ───────────────────────────────────────────────────

@dataclass
class RawCell:
    """
    로더가 넘겨주는 원본 셀.

    type_tag: s(문자열) / n(숫자) / b(불리언) / d(날짜) / e(오류)
    """
    type_tag: str
    value: Any
    formatted: str | None = None
    formula: str | None = None
    style: CellStyle | None = None


@dataclass(frozen=True)
class MergeRegion:
    """병합 영역 (0 기반, 양끝 포함)."""
    start_row: int
    start_col: int
    end_row: int
    end_col: int

    @classmethod
    def from_address(cls, address: str) -> MergeRegion:
        r = decode_range(address)
        return cls(r.start_row, r.start_col, r.end_row, r.end_col)


@dataclass
class SheetSource:
    """시트 하나: 희소 셀 맵, 병합 목록, 사용 범위."""
    name: str
    cells: dict[tuple[int, int], RawCell] = field(default_factory=dict)
    merges: list[MergeRegion] = field(default_factory=list)
    used_range: CellRange | None = None
    row_heights: dict[int, float] = field(default_factory=dict)

    @classmethod
    def from_rows(
        cls,
        name: str,
        rows: Iterable[Iterable[Any]],
        merges: Iterable[str | MergeRegion] = (),
    ) -> SheetSource:
        """
        파이썬 값 격자로 시트를 만듭니다. None 은 빈 주소입니다.

        사용법:
            sheet = SheetSource.from_rows("Sheet1", [["회사명", "대표자"], ["㈜테크", "김철수"]])
        """
        cells: dict[tuple[int, int], RawCell] = {}
        max_row = max_col = -1
        for r, row in enumerate(rows):
            for c, value in enumerate(row):
                max_row = max(max_row, r)
                max_col = max(max_col, c)
                if value is None:
                    continue
                cells[(r, c)] = RawCell(type_tag=infer_type_tag(value), value=value)
        regions = [
            m if isinstance(m, MergeRegion) else MergeRegion.from_address(m)
            for m in merges
        ]
        used = CellRange(0, 0, max_row, max_col) if max_row >= 0 else None
        return cls(name=name, cells=cells, merges=regions, used_range=used)


@dataclass
class WorkbookSource:
    """순서가 있는 시트 목록."""
    sheets: list[SheetSource] = field(default_factory=list)

    @property
    def sheet_names(self) -> list[str]:
        return [s.name for s in self.sheets]

    def get(self, name: str) -> SheetSource | None:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        return None


def infer_type_tag(value: Any) -> str:
    """파이썬 값 → 원본 타입 태그."""
    if isinstance(value, bool):
        return "b"
    if isinstance(value, (int, float)):
        return "n"
    if isinstance(value, (date, datetime, time)):
        return "d"
    return "s"


# ── 병합 맵 ─────────────────────────────────────────────────────

@dataclass(frozen=True)
class MergeInfo:
    """주소별 병합 정보. 시작 셀이 아니면 colspan/rowspan 은 1."""
    is_origin: bool
    origin: tuple[int, int]
    colspan: int = 1
    rowspan: int = 1


def build_merge_map(merges: Iterable[MergeRegion]) -> dict[tuple[int, int], MergeInfo]:
    """병합 영역 목록 → (행, 열) 별 MergeInfo."""
    merge_map: dict[tuple[int, int], MergeInfo] = {}
    for m in merges:
        origin = (m.start_row, m.start_col)
        colspan = m.end_col - m.start_col + 1
        rowspan = m.end_row - m.start_row + 1
        for r in range(m.start_row, m.end_row + 1):
            for c in range(m.start_col, m.end_col + 1):
                if (r, c) == origin:
                    merge_map[(r, c)] = MergeInfo(True, origin, colspan, rowspan)
                else:
                    merge_map[(r, c)] = MergeInfo(False, origin)
    return merge_map


# ── 셀 분류 / 표시값 ────────────────────────────────────────────

_TAG_TYPES = {
    "n": CellType.NUMBER,
    "b": CellType.BOOLEAN,
    "d": CellType.DATE,
}


def classify_cell(raw: RawCell, preserve_formulas: bool = True) -> CellType:
    """
    셀 타입 결정.

    우선순위:
      1. 수식 텍스트가 있고 수식 보존이 켜져 있으면 FORMULA
      2. 그 외에는 원본 타입 태그 (n → NUMBER, b → BOOLEAN, d → DATE)
      3. 나머지(s, e, 알 수 없는 태그)는 TEXT
    """
    if raw.formula and preserve_formulas:
        return CellType.FORMULA
    return _TAG_TYPES.get(raw.type_tag, CellType.TEXT)


def format_date(value: date | datetime, pattern: str) -> str:
    """YYYY / MM / DD 토큰을 치환합니다. 예: "YYYY.MM.DD" → "2024.03.05"."""
    return (pattern
            .replace("YYYY", f"{value.year:04d}")
            .replace("MM", f"{value.month:02d}")
            .replace("DD", f"{value.day:02d}"))


def stringify(value: Any) -> str:
    """형식 문자열이 없을 때의 기본 표시값."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        if value.is_integer():
            return str(int(value))
        return repr(value)
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def process_cell(
    raw: RawCell,
    merge: MergeInfo | None = None,
    *,
    preserve_formulas: bool = True,
    number_precision: int | None = None,
    date_format: str | None = None,
) -> Cell:
    """원본 셀 하나를 Cell 로 변환 (특수문자 정규화 전)."""
    cell_type = classify_cell(raw, preserve_formulas)
    value: CellValue = "" if raw.value is None else raw.value

    if raw.formatted is not None:
        display = raw.formatted
    else:
        display = stringify(raw.value)

    if number_precision is not None and raw.type_tag == "n" and _is_number(value):
        value = round(float(value), number_precision)
        display = stringify(value)
    elif date_format and isinstance(value, (date, datetime)):
        display = format_date(value, date_format)

    return Cell(
        value=value,
        display_value=display,
        type=cell_type,
        colspan=merge.colspan if merge and merge.is_origin else None,
        rowspan=merge.rowspan if merge and merge.is_origin else None,
        formula=raw.formula if preserve_formulas else None,
        style=raw.style,
    )


# ── 범위 읽기 ───────────────────────────────────────────────────

@dataclass
class ReadRow:
    """원본 행 인덱스와 생략 후 남은 셀 목록."""
    index: int
    cells: list[Cell]


def read_range(
    sheet: SheetSource,
    cell_range: CellRange,
    *,
    preserve_formulas: bool = True,
    number_precision: int | None = None,
    date_format: str | None = None,
) -> list[ReadRow]:
    """
    범위 안의 모든 원본 행을 읽습니다.

    각 주소는 다음 중 하나가 됩니다:
      - 병합 영역의 시작 셀이 아님 → 생략 (출력 없음)
      - 병합 영역의 시작 셀 → colspan/rowspan 이 달린 셀
      - 병합되지 않은 빈 주소 → 명시적 빈 셀
      - 그 외 → 처리된 셀

    셀이 하나도 남지 않은 행도 ReadRow 로 반환됩니다 (cells=[]).
    """
    merge_map = build_merge_map(sheet.merges)
    rows: list[ReadRow] = []

    for r in range(cell_range.start_row, cell_range.end_row + 1):
        cells: list[Cell] = []
        for c in range(cell_range.start_col, cell_range.end_col + 1):
            merge = merge_map.get((r, c))
            if merge is not None and not merge.is_origin:
                continue
            raw = sheet.cells.get((r, c))
            if raw is None:
                if merge is not None:
                    cells.append(Cell(value="", display_value="",
                                      colspan=merge.colspan, rowspan=merge.rowspan))
                else:
                    cells.append(empty_cell())
                continue
            cells.append(process_cell(
                raw,
                merge,
                preserve_formulas=preserve_formulas,
                number_precision=number_precision,
                date_format=date_format,
            ))
        rows.append(ReadRow(index=r, cells=cells))

    logger.debug("범위 읽기: %s!%s → %d행", sheet.name, cell_range, len(rows))
    return rows


def resolve_sheet(workbook: WorkbookSource, name: str | None = None) -> SheetSource:
    """이름으로 시트를 찾습니다. 이름이 없으면 첫 번째 시트."""
    if name is None:
        if not workbook.sheets:
            raise NotFoundError("워크북에 시트가 없습니다")
        return workbook.sheets[0]
    sheet = workbook.get(name)
    if sheet is None:
        raise NotFoundError(
            f"시트 '{name}'을 찾을 수 없습니다 (사용 가능: {', '.join(workbook.sheet_names)})"
        )
    return sheet


def resolve_range(sheet: SheetSource, address: str | None = None) -> CellRange:
    """
    읽을 범위를 결정합니다.

    address 가 없으면 시트의 사용 범위를, 있으면 해당 주소를 사용합니다.
    사용 범위가 없는 시트, 시트 한계를 벗어난 범위, 사용 범위와
    전혀 겹치지 않는 범위는 NotFoundError.
    """
    if address is None:
        if sheet.used_range is None:
            raise NotFoundError(f"시트 '{sheet.name}'에서 유효한 데이터 범위를 찾을 수 없습니다")
        return sheet.used_range
    cell_range = decode_range(address)
    if cell_range.end_row >= MAX_ROWS or cell_range.end_col >= MAX_COLS:
        raise NotFoundError(f"시트 '{sheet.name}'에 범위 '{address}'가 없습니다")
    if sheet.used_range is None or not sheet.used_range.overlaps(cell_range):
        raise NotFoundError(
            f"시트 '{sheet.name}'의 범위 '{address}'에 데이터가 없습니다"
        )
    return cell_range
