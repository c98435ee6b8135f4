"""
xldoc.table — 정규 표 생성기

리더가 읽은 행을 Table(헤더 / 데이터 행 / 크기 / 메타데이터)로 조립하고,
검증(validate_table)과 최적화(optimize_table)를 제공합니다.

파이프라인:
  1. 시트 결정 (기본: 첫 번째 시트)
  2. 범위 결정 (기본: 사용 범위)
  3. 범위 읽기 (병합 생략 / 빈 셀)
  4. 표시값 특수문자 정규화
  5. 셀이 하나도 남지 않은 행 제외
  6. 헤더 / 데이터 행 분리
"""

from __future__ import annotations

import csv
import html
import io
import json
import logging
import time
from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any

from xldoc.encoding import SupportedEncoding
from xldoc.normalizer import TextNormalizer, default_normalizer
from xldoc.reader import (
    WorkbookSource,
    encode_range,
    read_range,
    resolve_range,
    resolve_sheet,
)
from xldoc.schema import Row, Table, TableMetadata, ValidationResult

logger = logging.getLogger(__name__)


# ── 추출 옵션 ───────────────────────────────────────────────────

_CAMEL_KEYS = {
    "sheetName": "sheet_name",
    "hasHeaders": "has_headers",
    "headerRows": "header_rows",
    "convertSpecialChars": "convert_special_chars",
    "preserveFormulas": "preserve_formulas",
    "dateFormat": "date_format",
    "numberPrecision": "number_precision",
}


@dataclass
class ExtractionOptions:
    """표 추출 옵션."""
    sheet_name: str | None = None
    range: str | None = None                  # 예: "A1:E10", 없으면 사용 범위
    has_headers: bool = True
    header_rows: int = 1
    encoding: str = SupportedEncoding.UTF8.value
    convert_special_chars: bool = True
    preserve_formulas: bool = True
    date_format: str | None = None            # 예: "YYYY-MM-DD"
    number_precision: int | None = None

    def __post_init__(self) -> None:
        if self.header_rows < 0:
            raise ValueError(f"header_rows 는 0 이상이어야 합니다: {self.header_rows}")
        if self.number_precision is not None and self.number_precision < 0:
            raise ValueError(f"number_precision 은 0 이상이어야 합니다: {self.number_precision}")
        # 잘못된 인코딩 이름은 여기서 ValueError
        self.encoding = SupportedEncoding(self.encoding).value

    @property
    def header_count(self) -> int:
        """헤더로 분리할 행 수."""
        return self.header_rows if self.has_headers else 0

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtractionOptions:
        """snake_case 또는 camelCase 키를 모두 받습니다. 모르는 키는 무시."""
        processed = {_CAMEL_KEYS.get(k, k): v for k, v in data.items()}
        valid_fields = {f for f in cls.__dataclass_fields__}
        return cls(**{k: v for k, v in processed.items() if k in valid_fields})

    @classmethod
    def from_file(cls, path: str | Path) -> ExtractionOptions:
        """JSON 파일에서 옵션 로드."""
        path = Path(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(data)


# ── 변환기 ──────────────────────────────────────────────────────

class TableConverter:
    """
    워크북 → 정규 표 변환기.

    사용법:
        converter = TableConverter()
        table = converter.extract_table_from_file("data.xlsx")
        result = converter.validate_table(table)
        compact = converter.optimize_table(table)
    """

    def __init__(self, normalizer: TextNormalizer | None = None):
        self.normalizer = normalizer or default_normalizer()

    def extract_table(
        self,
        workbook: WorkbookSource,
        options: ExtractionOptions | None = None,
    ) -> Table:
        """
        워크북에서 표를 추출합니다.

        Raises:
            NotFoundError: 시트 또는 범위가 없는 경우 (부분 결과 없음)
            ValueError: 범위 주소 형식이 잘못된 경우
        """
        options = options or ExtractionOptions()
        started = time.perf_counter()

        sheet = resolve_sheet(workbook, options.sheet_name)
        cell_range = resolve_range(sheet, options.range)

        read_rows = read_range(
            sheet,
            cell_range,
            preserve_formulas=options.preserve_formulas,
            number_precision=options.number_precision,
            date_format=options.date_format,
        )

        converted_total = 0
        rows: list[Row] = []
        for read_row in read_rows:
            if not read_row.cells:
                # 위쪽 병합에 모두 흡수된 행
                continue
            cells = read_row.cells
            if options.convert_special_chars:
                normalized = []
                for cell in cells:
                    conversion = self.normalizer.convert_special_chars(cell.display_value)
                    converted_total += conversion.converted
                    if conversion.converted:
                        cell = replace(cell, display_value=conversion.text)
                    normalized.append(cell)
                cells = normalized
            rows.append(Row(cells=cells, height=sheet.row_heights.get(read_row.index)))

        header_count = options.header_count
        elapsed_ms = (time.perf_counter() - started) * 1000

        table = Table(
            headers=rows[:header_count],
            rows=rows[header_count:],
            total_rows=cell_range.n_rows,
            total_cols=cell_range.n_cols,
            metadata=TableMetadata(
                sheet_name=sheet.name,
                original_range=encode_range(cell_range),
                encoding=options.encoding,
                special_chars_converted=converted_total,
                processing_time=elapsed_ms,
            ),
        )
        logger.info(
            "표 추출: %s!%s (헤더 %d행, 데이터 %d행, 특수문자 %d개 변환)",
            sheet.name, table.metadata.original_range,
            len(table.headers), len(table.rows), converted_total,
        )
        return table

    def extract_table_from_file(
        self,
        path: str | Path,
        options: ExtractionOptions | None = None,
    ) -> Table:
        """Excel 파일에서 표 추출."""
        from xldoc.loader import load_workbook_file

        return self.extract_table(load_workbook_file(path), options)

    def extract_table_from_bytes(
        self,
        data: bytes,
        options: ExtractionOptions | None = None,
    ) -> Table:
        """Excel 바이트 버퍼에서 표 추출."""
        from xldoc.loader import load_workbook_bytes

        return self.extract_table(load_workbook_bytes(data), options)

    # ── 검증 / 최적화 ──────────────────────────────────────────

    def validate_table(self, table: Table) -> ValidationResult:
        """
        표 구조를 검증합니다. 예외를 던지지 않습니다.

        데이터 행이 없거나 열 수가 0 이하일 때만 valid=False 입니다.
        행별 셀 수 불일치는 병합 때문에 생기는 정상 상황이므로
        issues 에 참고 메시지로만 남습니다.
        """
        issues: list[str] = []
        valid = True

        if not table.rows:
            issues.append("테이블에 데이터 행이 없습니다")
            valid = False
        if table.total_cols <= 0:
            issues.append("유효한 열이 없습니다")
            valid = False

        for idx, row in enumerate(table.rows):
            if len(row.cells) != table.total_cols:
                issues.append(
                    f"행 {idx + 1}: 예상 열 수({table.total_cols})와 "
                    f"실제 열 수({len(row.cells)})가 다릅니다"
                )

        return ValidationResult(valid=valid, issues=issues)

    def optimize_table(self, table: Table) -> Table:
        """
        빈 행/열을 제거한 새 Table 을 반환합니다. 입력은 변경하지 않습니다.

        - 앞/뒤의 빈 데이터 행 제거 (모든 셀의 표시값이 공백뿐인 행)
        - 남은 데이터 행 기준으로 내용이 있는 열 인덱스 집합을 계산하고,
          같은 집합을 헤더 행과 데이터 행에 똑같이 적용
        - total_rows (헤더 + 데이터), total_cols 재계산
        """
        data_rows = list(table.rows)
        start, end = 0, len(data_rows)
        while start < end and data_rows[start].is_empty:
            start += 1
        while end > start and data_rows[end - 1].is_empty:
            end -= 1
        data_rows = data_rows[start:end]

        retained = [
            idx for idx in range(table.total_cols)
            if any(idx < len(row.cells) and not row.cells[idx].is_empty for row in data_rows)
        ]
        keep = set(retained)

        def _filter(row: Row) -> Row:
            return Row(
                cells=[c for i, c in enumerate(row.cells) if i in keep],
                height=row.height,
                style=row.style,
            )

        headers = [_filter(r) for r in table.headers]
        rows = [_filter(r) for r in data_rows]

        logger.debug(
            "표 최적화: 행 %d → %d, 열 %d → %d",
            len(table.rows), len(rows), table.total_cols, len(retained),
        )
        return Table(
            headers=headers,
            rows=rows,
            total_rows=len(headers) + len(rows),
            total_cols=len(retained),
            metadata=replace(table.metadata),
            title=table.title,
        )


# ── 렌더링 ──────────────────────────────────────────────────────

def table_to_csv(table: Table) -> str:
    """헤더 + 데이터 행을 CSV 로 (모든 필드 따옴표)."""
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for row in table.all_rows:
        writer.writerow([cell.display_value for cell in row.cells])
    return buf.getvalue().rstrip("\n")


def table_to_html(table: Table) -> str:
    """HTML <table> 로 변환. colspan/rowspan 은 1보다 클 때만 출력."""
    parts = ['<table border="1">']
    if table.headers:
        parts.append("<thead>")
        for row in table.headers:
            parts.append(_html_row(row, "th"))
        parts.append("</thead>")
    parts.append("<tbody>")
    for row in table.rows:
        parts.append(_html_row(row, "td"))
    parts.append("</tbody></table>")
    return "".join(parts)


def _html_row(row: Row, tag: str) -> str:
    cells = []
    for cell in row.cells:
        attrs = ""
        if cell.colspan and cell.colspan > 1:
            attrs += f' colspan="{cell.colspan}"'
        if cell.rowspan and cell.rowspan > 1:
            attrs += f' rowspan="{cell.rowspan}"'
        cells.append(f"<{tag}{attrs}>{html.escape(cell.display_value)}</{tag}>")
    return "<tr>" + "".join(cells) + "</tr>"
