"""
xldoc.loader — Excel(.xlsx) 워크북 로더

openpyxl 로 워크북을 읽어 리더가 사용하는 WorkbookSource 로 변환합니다.
수식 원문과 계산값을 모두 얻기 위해 워크북을 두 번 엽니다
(data_only=False / data_only=True).

구형 OLE2 바이너리(.xls, .hwp)는 olefile 로 감지하여 거부합니다.
"""

from __future__ import annotations

import io
import logging
import zipfile
from pathlib import Path
from typing import Any

import olefile
from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from openpyxl.worksheet.worksheet import Worksheet

from xldoc.reader import (
    CellRange,
    MergeRegion,
    RawCell,
    SheetSource,
    WorkbookSource,
    infer_type_tag,
)
from xldoc.schema import CellAlignment, CellStyle

logger = logging.getLogger(__name__)

_ALIGNMENTS = {
    "left": CellAlignment.LEFT,
    "center": CellAlignment.CENTER,
    "centerContinuous": CellAlignment.CENTER,
    "right": CellAlignment.RIGHT,
    "justify": CellAlignment.JUSTIFY,
    "distributed": CellAlignment.JUSTIFY,
}

# openpyxl 기본 글꼴 크기 / 색
_DEFAULT_FONT_SIZE = 11.0
_DEFAULT_FONT_COLOR = "000000"


# ── 진입점 ──────────────────────────────────────────────────────

def load_workbook_file(path: str | Path) -> WorkbookSource:
    """
    .xlsx 파일을 WorkbookSource 로 로드합니다.

    Raises:
        FileNotFoundError: 파일이 없는 경우
        ValueError: 구형 OLE2 형식이거나 읽을 수 없는 파일인 경우
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"파일을 찾을 수 없습니다: {path}")

    if olefile.isOleFile(str(path)):
        raise ValueError(
            f"구형 바이너리 형식(.xls/.hwp)은 지원하지 않습니다: {path.name} "
            "— .xlsx 로 다시 저장해 주세요"
        )

    logger.info("워크북 로드: %s", path)
    return _load(lambda: path.open("rb"), source=path.name)


def load_workbook_bytes(data: bytes) -> WorkbookSource:
    """.xlsx 바이트 버퍼를 WorkbookSource 로 로드합니다."""
    if olefile.isOleFile(io.BytesIO(data)):
        raise ValueError("구형 바이너리 형식(.xls/.hwp)은 지원하지 않습니다")
    return _load(lambda: io.BytesIO(data), source="<bytes>")


def _load(opener: Any, source: str) -> WorkbookSource:
    try:
        with opener() as fh:
            formula_wb = load_workbook(filename=fh, data_only=False)
        with opener() as fh:
            computed_wb = load_workbook(filename=fh, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise ValueError(f"Excel 파일을 읽을 수 없습니다: {source} ({exc})") from exc

    sheets = [
        convert_worksheet(formula_wb[name], computed_wb[name])
        for name in formula_wb.sheetnames
    ]
    logger.debug("시트 %d개 로드: %s", len(sheets), ", ".join(s.name for s in sheets))
    return WorkbookSource(sheets=sheets)


# ── 시트 변환 ───────────────────────────────────────────────────

def convert_worksheet(sheet: Worksheet, computed_sheet: Worksheet | None = None) -> SheetSource:
    """
    openpyxl 워크시트 → SheetSource.

    computed_sheet 는 data_only=True 로 연 같은 시트입니다.
    없으면 수식 셀의 계산값을 알 수 없으므로 빈 문자열로 둡니다.
    """
    cells: dict[tuple[int, int], RawCell] = {}

    for row in sheet.iter_rows():
        for cell in row:
            if cell.value is None:
                continue
            computed = None
            if computed_sheet is not None:
                computed = computed_sheet.cell(row=cell.row, column=cell.column).value
            raw = _raw_cell(cell, computed)
            cells[(cell.row - 1, cell.column - 1)] = raw

    merges = [
        MergeRegion(rng.min_row - 1, rng.min_col - 1, rng.max_row - 1, rng.max_col - 1)
        for rng in sheet.merged_cells.ranges
    ]

    row_heights = {
        idx - 1: dim.height
        for idx, dim in sheet.row_dimensions.items()
        if dim.height is not None
    }

    return SheetSource(
        name=sheet.title,
        cells=cells,
        merges=merges,
        used_range=_used_range(cells, merges),
        row_heights=row_heights,
    )


def _raw_cell(cell: Any, computed: Any) -> RawCell:
    style = _cell_style(cell)

    if cell.data_type == "f":
        formula = str(cell.value)
        if formula.startswith("="):
            formula = formula[1:]
        value = "" if computed is None else computed
        tag = infer_type_tag(value) if computed is not None else "s"
        return RawCell(
            type_tag=tag,
            value=value,
            formatted=format_number(value, cell.number_format) if tag == "n" else None,
            formula=formula,
            style=style,
        )

    if cell.is_date:
        return RawCell(type_tag="d", value=cell.value, style=style)

    tag = {"n": "n", "b": "b", "e": "e"}.get(cell.data_type, "s")
    if tag == "s" and not isinstance(cell.value, str):
        tag = infer_type_tag(cell.value)
    formatted = format_number(cell.value, cell.number_format) if tag == "n" else None
    return RawCell(type_tag=tag, value=cell.value, formatted=formatted, style=style)


def _used_range(
    cells: dict[tuple[int, int], RawCell],
    merges: list[MergeRegion],
) -> CellRange | None:
    rows = [r for r, _ in cells] + [m.start_row for m in merges] + [m.end_row for m in merges]
    cols = [c for _, c in cells] + [m.start_col for m in merges] + [m.end_col for m in merges]
    if not rows:
        return None
    return CellRange(min(rows), min(cols), max(rows), max(cols))


# ── 표시 형식 ───────────────────────────────────────────────────

def format_number(value: Any, number_format: str | None) -> str | None:
    """
    자주 쓰는 숫자 서식만 문자열로 렌더링합니다.

    지원: #,##0 / #,##0.00 / 0 / 0.00 / 0% / 0.00%
    그 외(General 포함)는 None 을 반환하여 기본 문자열 변환을 사용하게 합니다.
    """
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        return None
    fmt = (number_format or "General").split(";")[0]

    percent = fmt.endswith("%")
    if percent:
        fmt = fmt[:-1]
        value = value * 100

    if fmt not in ("#,##0", "#,##0.00", "0", "0.00"):
        return None

    decimals = len(fmt.split(".")[1]) if "." in fmt else 0
    separator = "," if fmt.startswith("#,##") else ""
    text = f"{value:{separator}.{decimals}f}"
    return text + "%" if percent else text


# ── 스타일 ──────────────────────────────────────────────────────

def _rgb(color: Any) -> str | None:
    """openpyxl Color → RRGGBB. 테마/인덱스 색은 None."""
    rgb = getattr(color, "rgb", None) if color is not None else None
    if isinstance(rgb, str) and len(rgb) in (6, 8):
        return rgb[-6:].upper()
    return None


def _cell_style(cell: Any) -> CellStyle | None:
    font = cell.font
    fill = cell.fill
    alignment = cell.alignment

    font_color = _rgb(font.color) if font is not None else None
    if font_color == _DEFAULT_FONT_COLOR:
        font_color = None
    font_size = float(font.sz) if font is not None and font.sz else None
    if font_size == _DEFAULT_FONT_SIZE:
        font_size = None

    background = None
    if fill is not None and fill.fill_type == "solid":
        background = _rgb(fill.fgColor)

    style = CellStyle(
        bold=True if font is not None and font.b else None,
        italic=True if font is not None and font.i else None,
        underline=True if font is not None and font.u else None,
        font_size=font_size,
        font_color=font_color,
        background_color=background,
        alignment=_ALIGNMENTS.get(alignment.horizontal) if alignment is not None else None,
    )
    return style if style.to_dict() else None
