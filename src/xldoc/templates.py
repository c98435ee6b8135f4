"""
xldoc.templates — 사업계획서 템플릿

회사 정보(CompanyProfile)와 섹션 트리(PlanSection)로 구성된
사업계획서 템플릿, 그리고 문서/표 스타일 기본값을 정의합니다.

템플릿 종류:
  - basic:      일반 사업계획서 (5개 섹션)
  - government: 정부지원사업 신청용 (하위 섹션 포함)
  - vc:         VC 투자제안서 (8개 섹션)
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Callable

from xldoc.schema import Table


# ── 회사 정보 ───────────────────────────────────────────────────

@dataclass
class CompanyProfile:
    """표지에 들어가는 회사 정보."""
    name: str = ""                         # 기업명
    ceo: str = ""                          # 대표자명
    address: str = ""                      # 소재지
    phone: str = ""                        # 전화번호
    email: str = ""                        # 이메일
    website: str = ""                      # 웹사이트

    def to_dict(self) -> dict[str, Any]:
        """딕셔너리로 변환."""
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False, indent=indent)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CompanyProfile:
        """
        딕셔너리에서 CompanyProfile 생성.

        company_name / ceo_name 키도 받습니다 (회사 정보 JSON 호환).
        """
        aliases = {"company_name": "name", "ceo_name": "ceo"}
        processed: dict[str, Any] = {}
        for key, value in data.items():
            processed.setdefault(aliases.get(key, key), value)
        valid_fields = {f for f in cls.__dataclass_fields__}
        filtered = {k: str(v) for k, v in processed.items() if k in valid_fields and v is not None}
        return cls(**filtered)

    @classmethod
    def from_file(cls, path: str | Path) -> CompanyProfile:
        """JSON 파일에서 CompanyProfile 로드."""
        path = Path(path)
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls.from_dict(data)


# ── 스타일 ──────────────────────────────────────────────────────

@dataclass
class DocumentStyle:
    """문서 전체 스타일. 여백/용지 크기는 twip (1인치 = 1440)."""
    font_family: str = "맑은 고딕"
    font_size: float = 11.0                # pt
    line_spacing: float = 1.5
    margin_top: int = 1440
    margin_right: int = 1440
    margin_bottom: int = 1440
    margin_left: int = 1440
    page_width: int = 11906                # A4
    page_height: int = 16838


@dataclass
class TableStyle:
    """표 스타일. 색은 RRGGBB, 테두리 두께는 1/8 pt 단위."""
    border_color: str = "000000"
    border_size: int = 4
    header_background: str | None = "E6E6FA"
    alternate_row_background: str | None = None
    width_percent: int = 100


# ── 템플릿 구조 ─────────────────────────────────────────────────

@dataclass
class PlanSection:
    """사업계획서 섹션 (하위 섹션 중첩 가능)."""
    title: str
    content: str | None = None
    table: Table | None = None
    subsections: list[PlanSection] = field(default_factory=list)
    page_break: bool = False

    def count_tables(self) -> int:
        """이 섹션과 하위 섹션의 표 개수."""
        count = 1 if self.table is not None else 0
        return count + sum(sub.count_tables() for sub in self.subsections)

    def estimate_pages(self) -> int:
        """목차용 페이지 수 추정. 긴 표는 25행당 한 페이지."""
        pages = 1
        if self.table is not None and len(self.table.rows) > 20:
            pages += -(-len(self.table.rows) // 25)
        return pages + len(self.subsections)


@dataclass
class BusinessPlanTemplate:
    """표지 정보 + 섹션 목록 + 스타일."""
    title: str
    company: CompanyProfile
    subtitle: str | None = None
    sections: list[PlanSection] = field(default_factory=list)
    document_style: DocumentStyle = field(default_factory=DocumentStyle)
    table_style: TableStyle = field(default_factory=TableStyle)

    def count_tables(self) -> int:
        return sum(section.count_tables() for section in self.sections)

    def add_section(self, section: PlanSection) -> None:
        self.sections.append(section)


# ── 템플릿 팩토리 ───────────────────────────────────────────────

def create_basic_template(company: CompanyProfile) -> BusinessPlanTemplate:
    """기본 사업계획서."""
    return BusinessPlanTemplate(
        title="사업계획서",
        subtitle=company.name or None,
        company=company,
        sections=[
            PlanSection("1. 사업 개요", "사업의 목적과 비전을 설명합니다."),
            PlanSection("2. 시장 분석", "대상 시장과 경쟁 환경을 분석합니다."),
            PlanSection("3. 제품/서비스", "제공할 제품이나 서비스를 설명합니다."),
            PlanSection("4. 마케팅 전략", "마케팅 및 영업 전략을 설명합니다."),
            PlanSection("5. 재무 계획", "재무 계획과 투자 계획을 설명합니다."),
        ],
    )


def create_government_template(company: CompanyProfile) -> BusinessPlanTemplate:
    """정부지원사업 신청용 사업계획서."""
    return BusinessPlanTemplate(
        title="사업계획서",
        subtitle="정부지원사업 신청용",
        company=company,
        sections=[
            PlanSection("1. 사업 개요", subsections=[
                PlanSection("1-1. 사업의 배경 및 필요성"),
                PlanSection("1-2. 사업의 목표"),
                PlanSection("1-3. 사업의 내용"),
            ]),
            PlanSection("2. 기술개발 계획", subsections=[
                PlanSection("2-1. 기술개발 목표"),
                PlanSection("2-2. 기술개발 내용 및 방법"),
                PlanSection("2-3. 기대효과"),
            ]),
            PlanSection("3. 시장분석 및 사업화 계획", "시장 현황 분석 및 사업화 전략"),
            PlanSection("4. 연구개발 추진체계", "연구개발 조직 및 역할"),
            PlanSection("5. 소요예산 및 조달계획", "예산 계획 및 자금 조달 방안"),
        ],
    )


def create_vc_template(company: CompanyProfile) -> BusinessPlanTemplate:
    """VC 투자제안서."""
    return BusinessPlanTemplate(
        title="투자제안서",
        subtitle=f"{company.name} 투자 계획" if company.name else "투자 계획",
        company=company,
        sections=[
            PlanSection("Executive Summary", "사업 요약 및 투자 포인트"),
            PlanSection("Problem & Solution", "해결하고자 하는 문제와 솔루션"),
            PlanSection("Market Opportunity", "시장 기회와 규모"),
            PlanSection("Product & Technology", "제품 및 기술적 우위"),
            PlanSection("Business Model", "수익 모델과 비즈니스 구조"),
            PlanSection("Go-to-Market Strategy", "시장 진출 전략"),
            PlanSection("Financial Projections", "재무 전망 및 투자 계획"),
            PlanSection("Team", "팀 소개 및 역량"),
        ],
    )


TEMPLATE_TYPES: dict[str, Callable[[CompanyProfile], BusinessPlanTemplate]] = {
    "basic": create_basic_template,
    "government": create_government_template,
    "vc": create_vc_template,
}


def get_template(
    kind: str,
    company: CompanyProfile | dict[str, Any] | None = None,
) -> BusinessPlanTemplate:
    """
    템플릿 종류 이름으로 템플릿을 만듭니다.

    Raises:
        ValueError: 알 수 없는 템플릿 종류
    """
    factory = TEMPLATE_TYPES.get(kind)
    if factory is None:
        raise ValueError(
            f"알 수 없는 템플릿 종류: {kind} (사용 가능: {', '.join(TEMPLATE_TYPES)})"
        )
    if company is None:
        company = CompanyProfile()
    elif isinstance(company, dict):
        company = CompanyProfile.from_dict(company)
    return factory(company)
