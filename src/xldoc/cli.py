"""
xldoc.cli — 명령행 인터페이스

Usage:
    xldoc table <xlsx>          Excel 범위를 표로 추출 (text/json/csv/html)
    xldoc analyze <xlsx>        시트 구조 요약
    xldoc convert <xlsx>        Excel → 사업계획서 DOCX
    xldoc plan -o <docx>        템플릿만으로 사업계획서 초안 생성
    xldoc chars <text>          한글 특수문자 변환
    xldoc detect <file>         텍스트 파일 인코딩 감지
    xldoc batch <xlsx...> -o    여러 Excel 파일 일괄 변환
"""

from __future__ import annotations

import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Any

import click

logger = logging.getLogger("xldoc")

TEMPLATE_CHOICES = ["basic", "government", "vc"]


def _setup_logging(verbose: bool) -> None:
    """로깅 설정."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(name)s | %(levelname)s | %(message)s",
        stream=sys.stderr,
    )


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="상세 로그 출력")
@click.version_option(package_name="xldoc")
def main(verbose: bool) -> None:
    """xldoc — Excel 데이터를 한글 사업계획서(DOCX)로 변환"""
    _setup_logging(verbose)


# ── table ─────────────────────────────────────────────────────────

@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--sheet", default=None, help="시트 이름 (기본: 첫 번째 시트)")
@click.option("--range", "cell_range", default=None, help="셀 범위 (예: A1:E10)")
@click.option("--no-headers", is_flag=True, help="헤더 행 없이 모두 데이터 행으로")
@click.option("--header-rows", type=int, default=None, help="헤더 행 수 (기본: 1)")
@click.option("--no-special-chars", is_flag=True, help="특수문자 변환 안 함")
@click.option("--no-formulas", is_flag=True, help="수식 보존 안 함")
@click.option("--date-format", default=None, help="날짜 형식 (예: YYYY-MM-DD)")
@click.option("--precision", type=int, default=None, help="숫자 소수점 자릿수")
@click.option("--optimize", is_flag=True, help="빈 행/열 제거")
@click.option("--format", "fmt", type=click.Choice(["text", "json", "csv", "html"]),
              default="text", help="출력 형식")
@click.option("-o", "--output", type=click.Path(), default=None, help="결과 저장 경로")
@click.option("--options", "options_file", type=click.Path(exists=True), default=None,
              help="추출 옵션 JSON 파일")
def table(
    file: str,
    sheet: str | None,
    cell_range: str | None,
    no_headers: bool,
    header_rows: int | None,
    no_special_chars: bool,
    no_formulas: bool,
    date_format: str | None,
    precision: int | None,
    optimize: bool,
    fmt: str,
    output: str | None,
    options_file: str | None,
) -> None:
    """Excel 범위를 정규 표로 추출합니다."""
    from xldoc.table import ExtractionOptions, TableConverter, table_to_csv, table_to_html

    try:
        options = ExtractionOptions.from_file(options_file) if options_file else ExtractionOptions()
        overrides: dict[str, Any] = {}
        if sheet is not None:
            overrides["sheet_name"] = sheet
        if cell_range is not None:
            overrides["range"] = cell_range
        if no_headers:
            overrides["has_headers"] = False
        if header_rows is not None:
            overrides["header_rows"] = header_rows
        if no_special_chars:
            overrides["convert_special_chars"] = False
        if no_formulas:
            overrides["preserve_formulas"] = False
        if date_format is not None:
            overrides["date_format"] = date_format
        if precision is not None:
            overrides["number_precision"] = precision
        options = dataclasses.replace(options, **overrides)

        converter = TableConverter()
        result = converter.extract_table_from_file(file, options)
        if optimize:
            result = converter.optimize_table(result)
    except (FileNotFoundError, LookupError, ValueError) as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1)

    if fmt == "json":
        rendered = result.to_json()
    elif fmt == "csv":
        rendered = table_to_csv(result)
    elif fmt == "html":
        rendered = table_to_html(result)
    else:
        rendered = _render_text(result)

    if output:
        out = Path(output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(rendered, encoding="utf-8")
        click.echo(f"💾 저장: {out}")
    else:
        click.echo(rendered)


def _render_text(result: Any) -> str:
    meta = result.metadata
    lines = [
        f"📊 {meta.sheet_name}!{meta.original_range} "
        f"({result.total_rows}행 × {result.total_cols}열, 특수문자 {meta.special_chars_converted}개 변환)",
    ]
    for row in result.headers:
        lines.append(" | ".join(c.display_value for c in row.cells))
    if result.headers:
        lines.append("-" * 40)
    for row in result.rows:
        lines.append(" | ".join(c.display_value for c in row.cells))
    return "\n".join(lines)


# ── analyze ───────────────────────────────────────────────────────

@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--sheet", default=None, help="시트 이름 (기본: 첫 번째 시트)")
@click.option("-o", "--output", type=click.Path(), default=None, help="결과 저장 경로 (JSON)")
def analyze(file: str, sheet: str | None, output: str | None) -> None:
    """Excel 시트 구조를 요약합니다."""
    from xldoc.convert import analyze_excel

    click.echo(f"📄 Excel 분석 중: {Path(file).name}")
    try:
        summary = analyze_excel(file, sheet_name=sheet)
    except (FileNotFoundError, LookupError, ValueError) as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1)

    click.echo(f"\n{'='*60}")
    click.echo(f"📊 분석 결과: {summary['sheet']}")
    click.echo(f"{'='*60}")
    click.echo(f"  범위:      {summary['range']}")
    click.echo(f"  크기:      {summary['total_rows']}행 × {summary['total_cols']}열")
    click.echo(f"  헤더/데이터: {summary['header_rows']} / {summary['data_rows']}행")
    click.echo(f"  병합 셀:   {summary['merged_cells']}")
    click.echo(f"  특수문자:  {summary['special_chars_converted']}개 변환")

    if summary["cell_types"]:
        click.echo("\n🔢 셀 타입:")
        for name, count in sorted(summary["cell_types"].items()):
            click.echo(f"    {name}: {count}")

    validation = summary["validation"]
    if validation["issues"]:
        click.echo("\n⚠️  검증 메시지:")
        for issue in validation["issues"][:10]:
            click.echo(f"    {issue}")
    click.echo(f"\n{'✅ 유효한 표' if validation['valid'] else '❌ 유효하지 않은 표'}")

    if output:
        _save_json(summary, output)


# ── convert ───────────────────────────────────────────────────────

@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("-t", "--template", "template_type", type=click.Choice(TEMPLATE_CHOICES),
              default="basic", help="템플릿 종류")
@click.option("-c", "--company", "company_file", type=click.Path(exists=True), default=None,
              help="회사 정보 JSON 파일")
@click.option("--name", default=None, help="회사명 (JSON 보다 우선)")
@click.option("-o", "--output", type=click.Path(), default=None,
              help="출력 DOCX 경로 (기본: <파일명>.docx)")
@click.option("--sheet", default=None, help="시트 이름")
@click.option("--range", "cell_range", default=None, help="셀 범위")
@click.option("--optimize", is_flag=True, help="빈 행/열 제거")
@click.option("--toc/--no-toc", default=False, help="목차 포함 여부")
def convert(
    file: str,
    template_type: str,
    company_file: str | None,
    name: str | None,
    output: str | None,
    sheet: str | None,
    cell_range: str | None,
    optimize: bool,
    toc: bool,
) -> None:
    """Excel 데이터를 사업계획서 DOCX 로 변환합니다."""
    from xldoc.convert import convert_excel_to_docx
    from xldoc.table import ExtractionOptions

    path = Path(file)
    out = Path(output) if output else path.with_suffix(".docx")

    click.echo(f"📄 변환 중: {path.name} → {out.name} (템플릿: {template_type})")
    try:
        company = _load_company(company_file, name)
        result = convert_excel_to_docx(
            path, out,
            template_type=template_type,
            company=company,
            options=ExtractionOptions(sheet_name=sheet, range=cell_range),
            optimize=optimize,
            include_table_of_contents=toc,
        )
    except (FileNotFoundError, LookupError, ValueError) as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1)

    _report_generation(result)


# ── plan ──────────────────────────────────────────────────────────

@main.command()
@click.option("-t", "--template", "template_type", type=click.Choice(TEMPLATE_CHOICES),
              default="basic", help="템플릿 종류")
@click.option("-c", "--company", "company_file", type=click.Path(exists=True), default=None,
              help="회사 정보 JSON 파일")
@click.option("--name", default=None, help="회사명 (JSON 보다 우선)")
@click.option("-o", "--output", type=click.Path(), required=True, help="출력 DOCX 경로")
def plan(template_type: str, company_file: str | None, name: str | None, output: str) -> None:
    """템플릿만으로 사업계획서 초안을 생성합니다."""
    from xldoc.convert import create_business_plan

    click.echo(f"📝 사업계획서 초안 생성 중 (템플릿: {template_type})")
    try:
        company = _load_company(company_file, name)
        result = create_business_plan(company, output, template_type)
    except (FileNotFoundError, ValueError) as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1)

    _report_generation(result)


# ── chars ─────────────────────────────────────────────────────────

@main.command()
@click.argument("text")
@click.option("--docx-safe", is_flag=True, help="전각→반각, 제어문자 제거까지 적용")
def chars(text: str, docx_safe: bool) -> None:
    """한글 특수문자(㈜, ①, ™ …)를 문서 안전 표기로 변환합니다."""
    from xldoc.normalizer import default_normalizer

    normalizer = default_normalizer()
    conversion = normalizer.convert_special_chars(text)
    converted = normalizer.to_docx_safe(text) if docx_safe else conversion.text

    click.echo(converted)
    click.echo(f"🔤 변환된 특수문자: {conversion.converted}개", err=True)


# ── detect ────────────────────────────────────────────────────────

@main.command()
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
@click.option("--to", "target", type=click.Choice(["utf8", "euc-kr", "cp949"]), default=None,
              help="감지 후 변환할 인코딩 (결과를 표준출력으로)")
def detect(file: str, target: str | None) -> None:
    """텍스트 파일의 인코딩(UTF-8 / EUC-KR / CP949)을 감지합니다."""
    from xldoc.encoding import EncodingConverter, detect_encoding

    data = Path(file).read_bytes()
    detection = detect_encoding(data)

    mark = "✅" if detection.is_valid else "⚠️ "
    click.echo(f"{mark} {Path(file).name}: {detection.encoding.value} "
               f"(신뢰도 {detection.confidence:.2f})")

    if target:
        result = EncodingConverter().auto_convert(data, target)
        click.echo(result.text)
        for err in result.errors:
            click.echo(f"⚠️  {err}", err=True)


# ── batch ─────────────────────────────────────────────────────────

@main.command()
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("-o", "--output-dir", type=click.Path(file_okay=False), required=True,
              help="출력 폴더")
@click.option("-t", "--template", "template_type", type=click.Choice(TEMPLATE_CHOICES),
              default="basic", help="템플릿 종류")
@click.option("-c", "--company", "company_file", type=click.Path(exists=True), default=None,
              help="회사 정보 JSON 파일")
@click.option("--optimize", is_flag=True, help="빈 행/열 제거")
def batch(
    files: tuple[str, ...],
    output_dir: str,
    template_type: str,
    company_file: str | None,
    optimize: bool,
) -> None:
    """여러 Excel 파일을 순서대로 변환합니다. 실패한 파일은 건너뜁니다."""
    from xldoc.convert import batch_convert

    click.echo(f"📁 일괄 변환: {len(files)}개 파일 → {output_dir}")
    try:
        company = _load_company(company_file, None)
    except ValueError as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(1)

    result = batch_convert(
        files, output_dir,
        template_type=template_type,
        company=company,
        optimize=optimize,
    )

    for item in result.succeeded:
        click.echo(f"  ✅ {Path(item.source).name} → {item.output}")
    for item in result.failed:
        click.echo(f"  ❌ {Path(item.source).name}: {item.error}")

    click.echo(f"\n📊 성공 {len(result.succeeded)} / 실패 {len(result.failed)}")
    if not result.succeeded:
        raise SystemExit(1)


# ── 유틸리티 ──────────────────────────────────────────────────────

def _load_company(company_file: str | None, name: str | None) -> Any:
    """회사 정보 JSON + --name 옵션 → CompanyProfile."""
    from xldoc.templates import CompanyProfile

    try:
        company = CompanyProfile.from_file(company_file) if company_file else CompanyProfile()
    except json.JSONDecodeError as e:
        raise ValueError(f"회사 정보 JSON 을 읽을 수 없습니다: {company_file} ({e})") from e
    if name:
        company.name = name
    return company


def _report_generation(result: Any) -> None:
    """GenerationResult 출력. 실패 시 종료 코드 1."""
    for warning in result.warnings:
        click.echo(f"⚠️  {warning}")
    if not result.success:
        for err in result.errors:
            click.echo(f"❌ {err}", err=True)
        raise SystemExit(1)

    click.echo(f"  표: {result.table_count}개, 단어: {result.word_count}개")
    click.echo(f"✅ 저장 완료: {result.file_path}")


def _save_json(data: dict, path: str) -> None:
    """결과를 JSON 파일로 저장."""
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(
        json.dumps(data, ensure_ascii=False, indent=2),
        encoding="utf-8",
    )
