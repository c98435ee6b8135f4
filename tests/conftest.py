"""
공용 fixture — openpyxl 로 테스트용 .xlsx 파일을 만듭니다.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill


@pytest.fixture
def sample_xlsx(tmp_path) -> Path:
    """
    시트 '매출':
        A1 회사명(굵게, 노랑 배경) | B1 매출 | C1 비고
        A2 ㈜테크스타트           | B2 1234567 (#,##0) | C2 =B2*2
        A3 2024-03-05 (날짜)      | B3 TRUE  | C3 ①번 항목
        A4:B4 병합 "합계"          |          | C4 ™
    시트 '요약': A1 "요약"
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "매출"

    ws["A1"] = "회사명"
    ws["A1"].font = Font(bold=True)
    ws["A1"].fill = PatternFill("solid", fgColor="FFFF00")
    ws["A1"].alignment = Alignment(horizontal="center")
    ws["B1"] = "매출"
    ws["C1"] = "비고"

    ws["A2"] = "㈜테크스타트"
    ws["B2"] = 1234567
    ws["B2"].number_format = "#,##0"
    ws["C2"] = "=B2*2"

    ws["A3"] = datetime(2024, 3, 5)
    ws["B3"] = True
    ws["C3"] = "①번 항목"

    ws["A4"] = "합계"
    ws.merge_cells("A4:B4")
    ws["C4"] = "™"

    summary = wb.create_sheet("요약")
    summary["A1"] = "요약"

    path = tmp_path / "sample.xlsx"
    wb.save(path)
    return path


@pytest.fixture
def ole_file(tmp_path) -> Path:
    """OLE2 시그니처만 있는 가짜 .xls 파일."""
    import olefile

    path = tmp_path / "legacy.xls"
    path.write_bytes(olefile.MAGIC + b"\x00" * 2048)
    return path
