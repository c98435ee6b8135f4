"""
xldoc.docx_builder — DOCX 사업계획서 조립기

BusinessPlanTemplate(표지 + 섹션 트리 + 표) → python-docx 문서.

조립 순서:
  1. 문서 스타일 (글꼴, 줄간격, 용지, 여백)
  2. 표지 (제목, 부제목, 회사명, 대표이사, 날짜)
  3. 목차 (옵션)
  4. 섹션 (제목 → 본문 → 표 → 하위 섹션 → 페이지 나누기)
  5. 바닥글 (옵션)

표는 colspan/rowspan 을 격자에 배치한 뒤 셀 병합으로 재현합니다.
문서 생성 실패는 예외가 아니라 GenerationResult(success=False) 로 반환됩니다.
"""

from __future__ import annotations

import io
import logging
import time
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

from docx import Document
from docx.enum.table import WD_ALIGN_VERTICAL, WD_ROW_HEIGHT_RULE, WD_TABLE_ALIGNMENT
from docx.enum.text import WD_ALIGN_PARAGRAPH
from docx.oxml import OxmlElement
from docx.oxml.ns import qn
from docx.shared import Pt, RGBColor, Twips

from xldoc.normalizer import TextNormalizer, default_normalizer, strip_control_chars
from xldoc.schema import Cell, CellAlignment, Row, Table
from xldoc.table import TableConverter
from xldoc.templates import (
    BusinessPlanTemplate,
    CompanyProfile,
    DocumentStyle,
    PlanSection,
    TableStyle,
)

logger = logging.getLogger(__name__)

__all__ = [
    "DocumentStyle",
    "TableStyle",
    "GenerationOptions",
    "GenerationResult",
    "DocxGenerator",
    "place_cells",
]

TABLE_ERROR_TEXT = "[테이블 생성 오류]"

_ALIGN = {
    CellAlignment.LEFT: WD_ALIGN_PARAGRAPH.LEFT,
    CellAlignment.CENTER: WD_ALIGN_PARAGRAPH.CENTER,
    CellAlignment.RIGHT: WD_ALIGN_PARAGRAPH.RIGHT,
    CellAlignment.JUSTIFY: WD_ALIGN_PARAGRAPH.JUSTIFY,
}


# ── 옵션 / 결과 ─────────────────────────────────────────────────

@dataclass
class GenerationOptions:
    """문서 생성 옵션."""
    output_path: str | Path | None = None
    convert_special_chars: bool = True
    optimize_tables: bool = False
    include_table_of_contents: bool = False
    footer_text: str | None = None


@dataclass
class GenerationResult:
    """문서 생성 결과."""
    success: bool = False
    file_path: str = ""
    data: bytes = b""
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    table_count: int = 0
    word_count: int = 0
    processing_time: float = 0.0           # ms

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환 (바이트 본문 제외)."""
        return {
            "success": self.success,
            "file_path": self.file_path,
            "size": len(self.data),
            "errors": self.errors,
            "warnings": self.warnings,
            "table_count": self.table_count,
            "word_count": self.word_count,
            "processing_time": self.processing_time,
        }


# ── 격자 배치 ───────────────────────────────────────────────────

@dataclass(frozen=True)
class Placement:
    """격자 위의 셀 위치 (0 기반)."""
    row: int
    col: int
    rowspan: int
    colspan: int
    cell: Cell


def place_cells(rows: list[Row], min_cols: int = 0) -> tuple[list[Placement], int]:
    """
    생략된 셀이 있는 행 목록을 격자에 배치합니다.

    각 행의 셀은 위쪽 병합이 차지한 칸을 건너뛰며 왼쪽부터 채워집니다.
    rowspan 은 표 끝을 넘지 않도록 자릅니다.

    Returns:
        (배치 목록, 격자 열 수)
    """
    occupied: set[tuple[int, int]] = set()
    placements: list[Placement] = []
    n_rows = len(rows)
    width = min_cols

    for r, row in enumerate(rows):
        c = 0
        for cell in row.cells:
            while (r, c) in occupied:
                c += 1
            colspan = max(cell.colspan or 1, 1)
            rowspan = min(max(cell.rowspan or 1, 1), n_rows - r)
            for dr in range(rowspan):
                for dc in range(colspan):
                    occupied.add((r + dr, c + dc))
            placements.append(Placement(r, c, rowspan, colspan, cell))
            c += colspan
            width = max(width, c)

    return placements, width


# ── 생성기 ──────────────────────────────────────────────────────

class DocxGenerator:
    """
    사업계획서 DOCX 생성기.

    사용법:
        generator = DocxGenerator()
        template = get_template("basic", CompanyProfile(name="㈜테크스타트"))
        result = generator.generate_from_template(
            template, GenerationOptions(output_path="plan.docx")
        )
    """

    def __init__(self, normalizer: TextNormalizer | None = None):
        self.normalizer = normalizer or default_normalizer()
        self._words = 0

    def generate_from_template(
        self,
        template: BusinessPlanTemplate,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        options = options or GenerationOptions()
        started = time.perf_counter()
        result = GenerationResult()
        self._words = 0

        try:
            doc = Document()
            self._apply_document_style(doc, template.document_style)
            self._add_title_page(doc, template, options)

            if options.include_table_of_contents:
                self._add_table_of_contents(doc, template.sections)

            for section in template.sections:
                self._add_section(doc, section, template.table_style, options, result, depth=1)

            if options.footer_text:
                footer = doc.sections[0].footer.paragraphs[0]
                footer.text = self._text(options.footer_text, options)
                footer.alignment = WD_ALIGN_PARAGRAPH.CENTER

            buf = io.BytesIO()
            doc.save(buf)
            result.data = buf.getvalue()

            if options.output_path:
                path = Path(options.output_path)
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_bytes(result.data)
                result.file_path = str(path)
                logger.info("DOCX 저장: %s (%d bytes)", path, len(result.data))

            result.table_count = template.count_tables()
            result.word_count = self._words
            result.success = True

        except Exception as e:
            result.errors.append(str(e) or "문서 생성 실패")
            logger.error("문서 생성 오류: %s", e)

        result.processing_time = (time.perf_counter() - started) * 1000
        return result

    def generate_table_document(
        self,
        table: Table,
        options: GenerationOptions | None = None,
    ) -> GenerationResult:
        """표 하나만 담은 문서를 생성합니다."""
        template = BusinessPlanTemplate(
            title=table.title or "데이터 테이블",
            company=CompanyProfile(name="데이터 분석"),
            sections=[PlanSection(title="데이터 테이블", table=table)],
        )
        return self.generate_from_template(template, options)

    # ── 문서 구성 요소 ─────────────────────────────────────────

    @staticmethod
    def _apply_document_style(doc: Any, style: DocumentStyle) -> None:
        normal = doc.styles["Normal"]
        normal.font.name = style.font_family
        normal.font.size = Pt(style.font_size)
        normal.element.get_or_add_rPr().get_or_add_rFonts().set(qn("w:eastAsia"), style.font_family)
        normal.paragraph_format.line_spacing = style.line_spacing

        section = doc.sections[0]
        section.page_width = Twips(style.page_width)
        section.page_height = Twips(style.page_height)
        section.top_margin = Twips(style.margin_top)
        section.right_margin = Twips(style.margin_right)
        section.bottom_margin = Twips(style.margin_bottom)
        section.left_margin = Twips(style.margin_left)

    def _add_title_page(
        self,
        doc: Any,
        template: BusinessPlanTemplate,
        options: GenerationOptions,
    ) -> None:
        self._centered(doc, self._text(template.title, options), size=24, bold=True, after=20)
        if template.subtitle:
            self._centered(doc, self._text(template.subtitle, options), size=16, after=30)
        if template.company.name:
            self._centered(doc, self._text(template.company.name, options), size=14, bold=True, after=10)
        if template.company.ceo:
            self._centered(doc, f"대표이사: {self._text(template.company.ceo, options)}", size=12, after=5)
        today = date.today()
        self._centered(doc, f"{today.year}. {today.month}. {today.day}.", size=11, after=40)
        doc.add_page_break()

    def _add_table_of_contents(self, doc: Any, sections: list[PlanSection]) -> None:
        self._centered(doc, "목    차", size=16, bold=True, after=20)
        page = 3
        for idx, section in enumerate(sections, start=1):
            p = doc.add_paragraph()
            p.add_run(f"{idx}. {section.title}")
            p.add_run(f" ......................................... {page}")
            p.paragraph_format.space_after = Pt(5)
            page += section.estimate_pages()
        doc.add_page_break()

    def _add_section(
        self,
        doc: Any,
        section: PlanSection,
        table_style: TableStyle,
        options: GenerationOptions,
        result: GenerationResult,
        depth: int,
    ) -> None:
        doc.add_heading(self._text(section.title, options), level=min(depth, 9))

        if section.content:
            for line in section.content.splitlines():
                text = self._text(line, options)
                if text:
                    doc.add_paragraph(text)

        if section.table is not None:
            table = section.table
            if options.optimize_tables:
                table = TableConverter(self.normalizer).optimize_table(table)
            try:
                self._add_table(doc, table, table_style, options)
            except Exception as e:
                warning = f"테이블 생성 실패 ({section.title}): {e}"
                result.warnings.append(warning)
                logger.warning(warning)
                run = doc.add_paragraph().add_run(TABLE_ERROR_TEXT)
                run.italic = True
                run.font.color.rgb = RGBColor(0xFF, 0x00, 0x00)

        for sub in section.subsections:
            self._add_section(doc, sub, table_style, options, result, depth + 1)

        if section.page_break:
            doc.add_page_break()

    # ── 표 ─────────────────────────────────────────────────────

    def _add_table(
        self,
        doc: Any,
        table: Table,
        style: TableStyle,
        options: GenerationOptions,
    ) -> Any:
        rows = table.all_rows
        if not rows:
            raise ValueError("표에 행이 없습니다")

        placements, width = place_cells(rows, min_cols=0)
        if width == 0:
            raise ValueError("표에 열이 없습니다")

        doc_table = doc.add_table(rows=len(rows), cols=width)
        try:
            self._layout_table(doc_table, table, rows, placements, style, options)
        except Exception:
            # 실패한 표는 문서에 남기지 않음
            doc_table._tbl.getparent().remove(doc_table._tbl)
            raise

        doc.add_paragraph()
        logger.debug("표 추가: %d행 × %d열, 병합 배치 %d개", len(rows), width, len(placements))
        return doc_table

    def _layout_table(
        self,
        doc_table: Any,
        table: Table,
        rows: list[Row],
        placements: list[Placement],
        style: TableStyle,
        options: GenerationOptions,
    ) -> None:
        doc_table.style = "Table Grid"
        doc_table.alignment = WD_TABLE_ALIGNMENT.CENTER
        _set_table_width(doc_table, style.width_percent)
        _set_table_borders(doc_table, style.border_color, style.border_size)

        for p in placements:
            if p.rowspan > 1 or p.colspan > 1:
                origin = doc_table.cell(p.row, p.col)
                origin.merge(doc_table.cell(p.row + p.rowspan - 1, p.col + p.colspan - 1))

        n_headers = len(table.headers)
        for p in placements:
            is_header = p.row < n_headers
            background = None
            if is_header:
                background = style.header_background
            elif style.alternate_row_background and (p.row - n_headers) % 2 == 1:
                background = style.alternate_row_background
            self._fill_cell(doc_table.cell(p.row, p.col), p.cell, is_header, background, options)

        for idx, row in enumerate(rows):
            if row.height:
                doc_table.rows[idx].height = Pt(row.height)
                doc_table.rows[idx].height_rule = WD_ROW_HEIGHT_RULE.AT_LEAST

    def _fill_cell(
        self,
        doc_cell: Any,
        cell: Cell,
        is_header: bool,
        background: str | None,
        options: GenerationOptions,
    ) -> None:
        text = self._text(cell.display_value, options)
        paragraph = doc_cell.paragraphs[0]
        run = paragraph.add_run(text)
        cs = cell.style

        run.bold = True if is_header or (cs and cs.bold) else None
        if cs is not None:
            if cs.italic:
                run.italic = True
            if cs.underline:
                run.underline = True
            if cs.font_size:
                run.font.size = Pt(cs.font_size)
            if cs.font_color:
                run.font.color.rgb = RGBColor.from_string(cs.font_color)
            if cs.alignment is not None:
                paragraph.alignment = _ALIGN[cs.alignment]
            if cs.background_color and background is None:
                background = cs.background_color

        if background:
            _shade_cell(doc_cell, background)
        doc_cell.vertical_alignment = WD_ALIGN_VERTICAL.CENTER

    # ── 유틸 ───────────────────────────────────────────────────

    def _text(self, text: str, options: GenerationOptions) -> str:
        if options.convert_special_chars:
            safe = self.normalizer.to_docx_safe(text)
        else:
            safe = strip_control_chars(text).strip()
        self._count(safe)
        return safe

    def _count(self, text: str) -> None:
        self._words += len(text.split())

    def _centered(self, doc: Any, text: str, size: float, bold: bool = False, after: float = 0) -> None:
        p = doc.add_paragraph()
        p.alignment = WD_ALIGN_PARAGRAPH.CENTER
        run = p.add_run(text)
        run.bold = bold or None
        run.font.size = Pt(size)
        p.paragraph_format.space_after = Pt(after)


# ── 표 XML 속성 ─────────────────────────────────────────────────

def _shade_cell(doc_cell: Any, fill: str) -> None:
    """셀 배경색 (w:shd)."""
    tc_pr = doc_cell._tc.get_or_add_tcPr()
    shd = OxmlElement("w:shd")
    shd.set(qn("w:val"), "clear")
    shd.set(qn("w:color"), "auto")
    shd.set(qn("w:fill"), fill)
    tc_pr.append(shd)


def _set_table_borders(doc_table: Any, color: str, size: int) -> None:
    """표 바깥/안쪽 테두리를 단선으로."""
    tbl_pr = doc_table._tbl.tblPr
    borders = tbl_pr.find(qn("w:tblBorders"))
    if borders is None:
        borders = OxmlElement("w:tblBorders")
        _insert_before(tbl_pr, borders, ("w:shd", "w:tblLayout", "w:tblCellMar", "w:tblLook"))
    for name in ("top", "left", "bottom", "right", "insideH", "insideV"):
        border = OxmlElement(f"w:{name}")
        border.set(qn("w:val"), "single")
        border.set(qn("w:sz"), str(size))
        border.set(qn("w:space"), "0")
        border.set(qn("w:color"), color)
        borders.append(border)


def _set_table_width(doc_table: Any, percent: int) -> None:
    """표 너비를 페이지 대비 백분율로 (pct 단위는 1/50 %)."""
    tbl_pr = doc_table._tbl.tblPr
    tbl_w = tbl_pr.find(qn("w:tblW"))
    if tbl_w is None:
        tbl_w = OxmlElement("w:tblW")
        _insert_before(tbl_pr, tbl_w, ("w:jc", "w:tblInd", "w:tblBorders", "w:tblLayout", "w:tblLook"))
    tbl_w.set(qn("w:type"), "pct")
    tbl_w.set(qn("w:w"), str(percent * 50))


def _insert_before(parent: Any, element: Any, successors: tuple[str, ...]) -> None:
    """스키마 순서를 지키도록 첫 번째 후속 요소 앞에 삽입."""
    for tag in successors:
        found = parent.find(qn(tag))
        if found is not None:
            found.addprevious(element)
            return
    parent.append(element)
