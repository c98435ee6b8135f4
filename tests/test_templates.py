"""
test_templates.py — 사업계획서 템플릿 테스트
"""

from __future__ import annotations

import json

import pytest

from xldoc.schema import Row, Table
from xldoc.templates import (
    TEMPLATE_TYPES,
    BusinessPlanTemplate,
    CompanyProfile,
    DocumentStyle,
    PlanSection,
    TableStyle,
    get_template,
)


class TestCompanyProfile:
    """CompanyProfile — 회사 정보 로드."""

    def test_from_dict_with_aliases(self):
        profile = CompanyProfile.from_dict({
            "company_name": "㈜테크스타트",
            "ceo_name": "김철수",
            "phone": 212345678,
            "industry": "AI",
        })
        assert profile.name == "㈜테크스타트"
        assert profile.ceo == "김철수"
        assert profile.phone == "212345678"

    def test_canonical_key_wins_over_alias(self):
        profile = CompanyProfile.from_dict({"name": "정식명", "company_name": "별칭"})
        assert profile.name == "정식명"

    def test_from_file(self, tmp_path):
        path = tmp_path / "company.json"
        path.write_text(json.dumps({"name": "㈜랩", "email": "a@b.kr"}, ensure_ascii=False), encoding="utf-8")
        profile = CompanyProfile.from_file(path)
        assert profile.name == "㈜랩"
        assert profile.email == "a@b.kr"
        assert json.loads(profile.to_json())["name"] == "㈜랩"


class TestTemplates:
    """템플릿 팩토리."""

    def test_registered_kinds(self):
        assert set(TEMPLATE_TYPES) == {"basic", "government", "vc"}

    def test_basic(self):
        template = get_template("basic", {"name": "테크스타트"})
        assert template.title == "사업계획서"
        assert template.subtitle == "테크스타트"
        assert len(template.sections) == 5
        assert template.sections[0].title == "1. 사업 개요"

    def test_basic_without_company_name(self):
        assert get_template("basic").subtitle is None

    def test_government_subsections(self):
        template = get_template("government", CompanyProfile(name="랩"))
        assert template.subtitle == "정부지원사업 신청용"
        assert [len(s.subsections) for s in template.sections] == [3, 3, 0, 0, 0]

    def test_vc(self):
        template = get_template("vc", CompanyProfile(name="랩"))
        assert template.title == "투자제안서"
        assert template.subtitle == "랩 투자 계획"
        assert len(template.sections) == 8
        assert template.sections[-1].title == "Team"

    def test_factories_return_fresh_objects(self):
        first = get_template("basic")
        first.add_section(PlanSection("부록"))
        assert len(get_template("basic").sections) == 5

    def test_unknown_kind(self):
        with pytest.raises(ValueError, match="bank"):
            get_template("bank")


class TestSections:
    """PlanSection — 표 개수, 페이지 추정."""

    def test_count_tables_nested(self):
        table = Table(rows=[Row()], total_cols=1)
        section = PlanSection("상위", table=table, subsections=[
            PlanSection("하위1", table=table),
            PlanSection("하위2"),
        ])
        template = BusinessPlanTemplate(title="t", company=CompanyProfile(), sections=[section])
        assert section.count_tables() == 2
        assert template.count_tables() == 2

    def test_estimate_pages(self):
        assert PlanSection("짧은 섹션").estimate_pages() == 1
        long_table = Table(rows=[Row() for _ in range(60)])
        assert PlanSection("긴 표", table=long_table).estimate_pages() == 4
        nested = PlanSection("상위", subsections=[PlanSection("a"), PlanSection("b")])
        assert nested.estimate_pages() == 3


class TestStyles:
    """스타일 기본값."""

    def test_document_style_a4(self):
        style = DocumentStyle()
        assert style.font_family == "맑은 고딕"
        assert (style.page_width, style.page_height) == (11906, 16838)
        assert style.margin_left == 1440

    def test_table_style(self):
        style = TableStyle()
        assert style.header_background == "E6E6FA"
        assert style.alternate_row_background is None
        assert style.width_percent == 100
