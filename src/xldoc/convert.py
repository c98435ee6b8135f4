"""
xldoc.convert — Excel → DOCX 변환 파이프라인

파이프라인:
  1. Excel 로드 → 표 추출 (TableConverter)
  2. (옵션) 빈 행/열 최적화
  3. 사업계획서 템플릿에 '데이터 분석' 섹션으로 표 추가
  4. DocxGenerator 로 DOCX 생성/저장

일괄 변환은 순차 처리하며, 한 파일의 실패는 기록만 하고 다음 파일로 넘어갑니다.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable

from xldoc.docx_builder import DocxGenerator, GenerationOptions, GenerationResult
from xldoc.schema import Table
from xldoc.table import ExtractionOptions, TableConverter
from xldoc.templates import CompanyProfile, PlanSection, get_template

logger = logging.getLogger(__name__)

DATA_SECTION_TITLE = "데이터 분석"


def convert_excel_to_docx(
    excel_path: str | Path,
    output_path: str | Path,
    template_type: str = "basic",
    company: CompanyProfile | dict[str, Any] | None = None,
    options: ExtractionOptions | None = None,
    optimize: bool = False,
    include_table_of_contents: bool = False,
) -> GenerationResult:
    """
    Excel 파일 → 사업계획서 DOCX.

    Raises:
        FileNotFoundError: Excel 파일이 없는 경우
        NotFoundError: 시트/범위가 없는 경우
        ValueError: 지원하지 않는 파일 형식, 알 수 없는 템플릿 종류
    """
    excel_path = Path(excel_path)
    converter = TableConverter()
    table = converter.extract_table_from_file(excel_path, options)
    if optimize:
        table = converter.optimize_table(table)

    template = get_template(template_type, company)
    template.add_section(_data_section(table))

    logger.info("변환: %s → %s (템플릿: %s)", excel_path.name, output_path, template_type)
    return DocxGenerator(converter.normalizer).generate_from_template(
        template,
        GenerationOptions(
            output_path=output_path,
            include_table_of_contents=include_table_of_contents,
        ),
    )


def create_business_plan(
    company: CompanyProfile | dict[str, Any] | None,
    output_path: str | Path,
    template_type: str = "basic",
) -> GenerationResult:
    """표 없이 템플릿만으로 사업계획서 초안을 만듭니다 (목차 포함)."""
    template = get_template(template_type, company)
    return DocxGenerator().generate_from_template(
        template,
        GenerationOptions(output_path=output_path, include_table_of_contents=True),
    )


def _data_section(table: Table) -> PlanSection:
    meta = table.metadata
    content = f"원본: {meta.sheet_name} 시트 {meta.original_range} ({table.total_rows}행 × {table.total_cols}열)"
    return PlanSection(title=DATA_SECTION_TITLE, content=content, table=table)


# ── 분석 ────────────────────────────────────────────────────────

def analyze_excel(path: str | Path, sheet_name: str | None = None) -> dict[str, Any]:
    """
    Excel 시트 요약.

    Returns:
        {"sheet", "range", "total_rows", "total_cols", "header_rows", "data_rows",
         "merged_cells", "cell_types", "encoding", "special_chars_converted",
         "validation"}
    """
    converter = TableConverter()
    table = converter.extract_table_from_file(path, ExtractionOptions(sheet_name=sheet_name))
    validation = converter.validate_table(table)

    cell_types: Counter[str] = Counter()
    merged = 0
    for row in table.all_rows:
        for cell in row.cells:
            cell_types[cell.type.value] += 1
            if (cell.colspan or 1) > 1 or (cell.rowspan or 1) > 1:
                merged += 1

    return {
        "sheet": table.metadata.sheet_name,
        "range": table.metadata.original_range,
        "total_rows": table.total_rows,
        "total_cols": table.total_cols,
        "header_rows": len(table.headers),
        "data_rows": len(table.rows),
        "merged_cells": merged,
        "cell_types": dict(cell_types),
        "encoding": table.metadata.encoding,
        "special_chars_converted": table.metadata.special_chars_converted,
        "validation": validation.to_dict(),
    }


# ── 일괄 변환 ───────────────────────────────────────────────────

@dataclass
class BatchItem:
    """일괄 변환 항목 하나의 결과."""
    source: str
    output: str = ""
    error: str = ""


@dataclass
class BatchResult:
    """일괄 변환 결과."""
    succeeded: list[BatchItem] = field(default_factory=list)
    failed: list[BatchItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.succeeded) + len(self.failed)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "succeeded": [vars(i) for i in self.succeeded],
            "failed": [vars(i) for i in self.failed],
        }


def batch_convert(
    paths: Iterable[str | Path],
    output_dir: str | Path,
    template_type: str = "basic",
    company: CompanyProfile | dict[str, Any] | None = None,
    options: ExtractionOptions | None = None,
    optimize: bool = False,
) -> BatchResult:
    """
    여러 Excel 파일을 순서대로 변환합니다.

    출력 파일명은 <output_dir>/<원본 이름>.docx 입니다.
    """
    output_dir = Path(output_dir)
    result = BatchResult()

    for path in paths:
        path = Path(path)
        output = output_dir / f"{path.stem}.docx"
        try:
            generated = convert_excel_to_docx(
                path, output,
                template_type=template_type,
                company=company,
                options=options,
                optimize=optimize,
            )
        except Exception as e:
            logger.warning("일괄 변환 실패: %s (%s)", path.name, e)
            result.failed.append(BatchItem(source=str(path), error=str(e)))
            continue

        if generated.success:
            result.succeeded.append(BatchItem(source=str(path), output=generated.file_path))
        else:
            error = "; ".join(generated.errors) or "문서 생성 실패"
            result.failed.append(BatchItem(source=str(path), error=error))

    logger.info("일괄 변환 완료: 성공 %d / 실패 %d", len(result.succeeded), len(result.failed))
    return result
