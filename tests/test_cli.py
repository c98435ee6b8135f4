"""
test_cli.py — click 명령행 테스트
"""

from __future__ import annotations

import json
from datetime import time

from click.testing import CliRunner
from openpyxl import Workbook

from xldoc.cli import main


class TestTableCommand:
    """xldoc table."""

    def test_text_output(self, sample_xlsx):
        runner = CliRunner()
        result = runner.invoke(main, ["table", str(sample_xlsx)])
        assert result.exit_code == 0
        assert "매출!A1:C4" in result.output
        assert "(주)테크스타트 | 1,234,567 | " in result.output

    def test_json_to_file(self, sample_xlsx, tmp_path):
        output = tmp_path / "table.json"
        runner = CliRunner()
        result = runner.invoke(main, [
            "table", str(sample_xlsx), "--format", "json", "--no-headers", "-o", str(output),
        ])
        assert result.exit_code == 0
        assert "저장" in result.output

        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["headers"] == []
        assert len(data["rows"]) == 4
        assert data["totalCols"] == 3
        assert data["metadata"]["specialCharsConverted"] == 3

    def test_json_with_time_cell(self, tmp_path):
        """시각 서식 셀이 있어도 JSON 출력이 정상 종료."""
        wb = Workbook()
        ws = wb.active
        ws["A1"] = "시작"
        ws["A2"] = time(9, 30)
        path = tmp_path / "schedule.xlsx"
        wb.save(path)
        output = tmp_path / "schedule.json"

        runner = CliRunner()
        result = runner.invoke(main, ["table", str(path), "--format", "json", "-o", str(output)])
        assert result.exit_code == 0, result.output
        cell = json.loads(output.read_text(encoding="utf-8"))["rows"][0]["cells"][0]
        assert cell["value"] == "09:30:00"
        assert cell["type"] == "date"

    def test_csv_range(self, sample_xlsx):
        runner = CliRunner()
        result = runner.invoke(main, [
            "table", str(sample_xlsx), "--range", "A1:B2", "--format", "csv",
        ])
        assert result.exit_code == 0
        assert result.output.strip() == '"회사명","매출"\n"(주)테크스타트","1,234,567"'

    def test_options_file(self, sample_xlsx, tmp_path):
        options = tmp_path / "options.json"
        options.write_text(json.dumps({"range": "A2:A2", "hasHeaders": False}), encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, [
            "table", str(sample_xlsx), "--options", str(options), "--no-special-chars", "--format", "csv",
        ])
        assert result.exit_code == 0
        assert result.output.strip() == '"㈜테크스타트"'

    def test_missing_sheet(self, sample_xlsx):
        runner = CliRunner()
        result = runner.invoke(main, ["table", str(sample_xlsx), "--sheet", "없는시트"])
        assert result.exit_code == 1
        assert "❌" in result.output

    def test_bad_range(self, sample_xlsx):
        runner = CliRunner()
        result = runner.invoke(main, ["table", str(sample_xlsx), "--range", "??"])
        assert result.exit_code == 1
        assert "❌" in result.output


class TestAnalyzeCommand:
    """xldoc analyze."""

    def test_summary(self, sample_xlsx, tmp_path):
        output = tmp_path / "summary.json"
        runner = CliRunner()
        result = runner.invoke(main, ["analyze", str(sample_xlsx), "-o", str(output)])
        assert result.exit_code == 0
        assert "분석 결과: 매출" in result.output
        assert "✅ 유효한 표" in result.output
        assert json.loads(output.read_text(encoding="utf-8"))["merged_cells"] == 1


class TestConvertCommand:
    """xldoc convert / plan."""

    def test_convert(self, sample_xlsx, tmp_path):
        company = tmp_path / "company.json"
        company.write_text(json.dumps({"company_name": "㈜랩"}, ensure_ascii=False), encoding="utf-8")
        output = tmp_path / "plan.docx"
        runner = CliRunner()
        result = runner.invoke(main, [
            "convert", str(sample_xlsx), "-t", "government", "-c", str(company), "-o", str(output),
        ])
        assert result.exit_code == 0, result.output
        assert "저장 완료" in result.output
        assert output.exists()

    def test_default_output_path(self, sample_xlsx):
        runner = CliRunner()
        result = runner.invoke(main, ["convert", str(sample_xlsx), "--name", "테크"])
        assert result.exit_code == 0
        assert sample_xlsx.with_suffix(".docx").exists()

    def test_broken_company_json(self, sample_xlsx, tmp_path):
        company = tmp_path / "company.json"
        company.write_text("{잘못된", encoding="utf-8")
        runner = CliRunner()
        result = runner.invoke(main, ["convert", str(sample_xlsx), "-c", str(company)])
        assert result.exit_code == 1
        assert "❌" in result.output

    def test_plan(self, tmp_path):
        output = tmp_path / "draft.docx"
        runner = CliRunner()
        result = runner.invoke(main, ["plan", "-t", "vc", "--name", "랩", "-o", str(output)])
        assert result.exit_code == 0
        assert output.exists()


class TestCharsCommand:
    """xldoc chars."""

    def test_convert(self):
        runner = CliRunner()
        result = runner.invoke(main, ["chars", "㈜테크①"])
        assert result.exit_code == 0
        assert "(주)테크(1)" in result.output

    def test_docx_safe(self):
        runner = CliRunner()
        result = runner.invoke(main, ["chars", "--docx-safe", "  Ｔｅｃｈ㈜  "])
        assert result.exit_code == 0
        assert "Tech(주)" in result.output


class TestDetectCommand:
    """xldoc detect."""

    def test_euc_kr(self, tmp_path):
        path = tmp_path / "legacy.txt"
        path.write_bytes("사업계획서 ㈜테크".encode("cp949"))
        runner = CliRunner()
        result = runner.invoke(main, ["detect", str(path), "--to", "utf8"])
        assert result.exit_code == 0
        assert "euc-kr" in result.output or "cp949" in result.output
        assert "사업계획서 (주)테크" in result.output


class TestBatchCommand:
    """xldoc batch."""

    def test_partial_success(self, sample_xlsx, ole_file, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "batch", str(sample_xlsx), str(ole_file), "-o", str(tmp_path / "out"),
        ])
        assert result.exit_code == 0
        assert "성공 1 / 실패 1" in result.output
        assert (tmp_path / "out" / "sample.docx").exists()

    def test_all_failed(self, tmp_path):
        runner = CliRunner()
        result = runner.invoke(main, [
            "batch", str(tmp_path / "없음.xlsx"), "-o", str(tmp_path / "out"),
        ])
        assert result.exit_code == 1
        assert "성공 0 / 실패 1" in result.output
