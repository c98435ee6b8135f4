"""
test_docx_builder.py — DOCX 사업계획서 조립기 테스트

생성된 바이트를 python-docx 로 다시 열어 내용을 확인합니다.
"""

from __future__ import annotations

import io

from docx import Document
from docx.oxml.ns import qn

from xldoc.docx_builder import (
    TABLE_ERROR_TEXT,
    DocxGenerator,
    GenerationOptions,
    place_cells,
)
from xldoc.schema import Cell, CellStyle, Row, Table
from xldoc.templates import CompanyProfile, PlanSection, TableStyle, get_template


def _cell(text: str, colspan: int | None = None, rowspan: int | None = None, style=None) -> Cell:
    return Cell(value=text, display_value=text, colspan=colspan, rowspan=rowspan, style=style)


def _open(data: bytes):
    return Document(io.BytesIO(data))


def _merged_table() -> Table:
    """제목 A1:C1 병합 + 데이터 2행 (A + 병합 B:C)."""
    return Table(
        headers=[Row(cells=[_cell("사업 개요", colspan=3, rowspan=1)])],
        rows=[
            Row(cells=[_cell("항목"), _cell("내용", colspan=2, rowspan=1)]),
            Row(cells=[_cell("목표"), _cell("매출 10억", colspan=2, rowspan=1)]),
        ],
        total_rows=3,
        total_cols=3,
    )


class TestPlaceCells:
    """place_cells — 생략된 셀의 격자 배치."""

    def test_horizontal_and_vertical_merges(self):
        rows = [
            Row(cells=[_cell("A", rowspan=2), _cell("B"), _cell("C")]),
            Row(cells=[_cell("D"), _cell("E")]),
        ]
        placements, width = place_cells(rows)
        assert width == 3
        positions = [(p.row, p.col, p.cell.display_value) for p in placements]
        assert positions == [(0, 0, "A"), (0, 1, "B"), (0, 2, "C"), (1, 1, "D"), (1, 2, "E")]

    def test_rowspan_clamped_to_table_end(self):
        placements, _ = place_cells([Row(cells=[_cell("A", rowspan=5)])])
        assert placements[0].rowspan == 1

    def test_min_cols(self):
        _, width = place_cells([Row(cells=[_cell("A")])], min_cols=4)
        assert width == 4


class TestGenerateFromTemplate:
    """generate_from_template — 표지, 섹션, 표, 바닥글."""

    def test_title_page_and_sections(self, tmp_path):
        template = get_template("basic", CompanyProfile(name="㈜테크스타트", ceo="김철수"))
        output = tmp_path / "out" / "plan.docx"
        result = DocxGenerator().generate_from_template(template, GenerationOptions(output_path=output))

        assert result.success, result.errors
        assert output.exists()
        assert result.file_path == str(output)
        assert output.read_bytes() == result.data

        texts = [p.text for p in _open(result.data).paragraphs]
        assert texts[0] == "사업계획서"
        assert "(주)테크스타트" in texts
        assert "대표이사: 김철수" in texts
        assert "1. 사업 개요" in texts
        assert "5. 재무 계획" in texts
        assert result.word_count > 0
        assert result.table_count == 0

    def test_headings_follow_depth(self):
        template = get_template("government", CompanyProfile(name="랩"))
        result = DocxGenerator().generate_from_template(template)
        doc = _open(result.data)
        styles = {p.text: p.style.name for p in doc.paragraphs}
        assert styles["1. 사업 개요"] == "Heading 1"
        assert styles["1-1. 사업의 배경 및 필요성"] == "Heading 2"

    def test_no_output_path_returns_bytes_only(self):
        result = DocxGenerator().generate_from_template(get_template("vc"))
        assert result.success
        assert result.data.startswith(b"PK")
        assert result.file_path == ""

    def test_merged_table(self):
        template = get_template("basic", CompanyProfile(name="랩"))
        template.sections[0].table = _merged_table()
        result = DocxGenerator().generate_from_template(template)

        assert result.success
        assert result.table_count == 1
        doc_table = _open(result.data).tables[0]
        assert len(doc_table.columns) == 3
        assert len(doc_table.rows) == 3
        assert doc_table.cell(0, 0).text == "사업 개요"
        assert doc_table.cell(0, 2).text == "사업 개요"
        assert doc_table.cell(1, 1).text == "내용"
        assert doc_table.cell(2, 0).text == "목표"

    def test_header_shading_and_cell_style(self):
        table = Table(
            headers=[Row(cells=[_cell("구분"), _cell("값")])],
            rows=[Row(cells=[_cell("A", style=CellStyle(background_color="FFFF00")), _cell("1")])],
            total_rows=2,
            total_cols=2,
        )
        result = DocxGenerator().generate_table_document(table)
        doc_table = _open(result.data).tables[0]

        def fill(row, col):
            shd = doc_table.cell(row, col)._tc.tcPr.find(qn("w:shd"))
            return shd.get(qn("w:fill")) if shd is not None else None

        assert fill(0, 0) == TableStyle().header_background
        assert fill(1, 0) == "FFFF00"
        assert fill(1, 1) is None
        assert doc_table.cell(0, 0).paragraphs[0].runs[0].bold

    def test_cell_text_normalized(self):
        table = Table(rows=[Row(cells=[_cell("㈜랩\x07")])], total_rows=1, total_cols=1)
        result = DocxGenerator().generate_table_document(table)
        assert _open(result.data).tables[0].cell(0, 0).text == "(주)랩"

    def test_optimize_tables(self):
        table = Table(
            headers=[Row(cells=[_cell("a"), _cell("b"), _cell("c")])],
            rows=[Row(cells=[_cell("1"), _cell(""), _cell("3")])],
            total_rows=2,
            total_cols=3,
        )
        result = DocxGenerator().generate_table_document(table, GenerationOptions(optimize_tables=True))
        assert len(_open(result.data).tables[0].columns) == 2
        # 원본 표는 그대로
        assert len(table.rows[0].cells) == 3

    def test_table_failure_becomes_placeholder(self):
        """빈 표는 예외 대신 오류 문구 + 경고."""
        template = get_template("basic")
        template.sections[1].table = Table()
        result = DocxGenerator().generate_from_template(template)

        assert result.success
        assert len(result.warnings) == 1
        assert "2. 시장 분석" in result.warnings[0]
        doc = _open(result.data)
        assert doc.tables == []
        assert TABLE_ERROR_TEXT in [p.text for p in doc.paragraphs]

    def test_table_of_contents(self):
        template = get_template("basic")
        result = DocxGenerator().generate_from_template(
            template, GenerationOptions(include_table_of_contents=True),
        )
        texts = [p.text for p in _open(result.data).paragraphs]
        assert "목    차" in texts
        toc = [t for t in texts if "......" in t]
        assert len(toc) == 5
        assert toc[0].endswith(" 3")
        assert toc[1].endswith(" 4")

    def test_footer(self):
        result = DocxGenerator().generate_from_template(
            get_template("basic"), GenerationOptions(footer_text="대외비 ㈜랩"),
        )
        footer = _open(result.data).sections[0].footer
        assert footer.paragraphs[0].text == "대외비 (주)랩"

    def test_special_chars_off_keeps_text(self):
        """특수문자 변환을 끄면 본문과 표 셀 모두 원문 유지 (제어문자만 제거)."""
        template = get_template("basic", CompanyProfile(name="㈜랩"))
        template.sections[0].table = Table(
            rows=[Row(cells=[_cell("㈜테크①\x07")])], total_rows=1, total_cols=1,
        )
        result = DocxGenerator().generate_from_template(
            template, GenerationOptions(convert_special_chars=False),
        )
        doc = _open(result.data)
        assert "㈜랩" in [p.text for p in doc.paragraphs]
        assert doc.tables[0].cell(0, 0).text == "㈜테크①"

    def test_page_break_section(self):
        template = get_template("basic")
        template.add_section(PlanSection("부록", "첨부 자료", page_break=True))
        result = DocxGenerator().generate_from_template(template)
        assert "첨부 자료" in [p.text for p in _open(result.data).paragraphs]

    def test_write_failure_reported(self, tmp_path):
        """저장 경로가 디렉터리면 예외 대신 success=False."""
        result = DocxGenerator().generate_from_template(
            get_template("basic"), GenerationOptions(output_path=tmp_path),
        )
        assert not result.success
        assert result.errors
        assert result.to_dict()["success"] is False


class TestGenerateTableDocument:
    """generate_table_document — 표 하나짜리 문서."""

    def test_default_title(self):
        table = Table(rows=[Row(cells=[_cell("x")])], total_rows=1, total_cols=1)
        result = DocxGenerator().generate_table_document(table)
        texts = [p.text for p in _open(result.data).paragraphs]
        assert texts[0] == "데이터 테이블"
        assert "데이터 분석" in texts

    def test_table_title(self):
        table = Table(rows=[Row(cells=[_cell("x")])], total_rows=1, total_cols=1, title="매출 현황")
        result = DocxGenerator().generate_table_document(table)
        assert _open(result.data).paragraphs[0].text == "매출 현황"
