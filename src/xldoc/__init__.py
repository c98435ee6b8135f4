"""
xldoc — Excel 데이터를 한글 사업계획서(DOCX)로 변환하는 도구.

엑셀 넣고, 표 뽑고, 문서 받는다.
"""

__version__ = "0.1.0"

from xldoc.schema import Cell, CellType, Row, Table, TableMetadata, ValidationResult
from xldoc.reader import NotFoundError, SheetSource, WorkbookSource, decode_range, encode_range
from xldoc.normalizer import SPECIAL_CHAR_MAP, TextNormalizer, convert_special_chars, to_docx_safe
from xldoc.encoding import EncodingConverter, SupportedEncoding, detect_encoding
from xldoc.table import ExtractionOptions, TableConverter, table_to_csv, table_to_html
from xldoc.loader import load_workbook_bytes, load_workbook_file
from xldoc.templates import BusinessPlanTemplate, CompanyProfile, PlanSection, get_template
from xldoc.docx_builder import DocxGenerator, GenerationOptions, GenerationResult
from xldoc.convert import analyze_excel, batch_convert, convert_excel_to_docx, create_business_plan

__all__ = [
    # schema
    "Cell",
    "CellType",
    "Row",
    "Table",
    "TableMetadata",
    "ValidationResult",
    # reader
    "NotFoundError",
    "SheetSource",
    "WorkbookSource",
    "decode_range",
    "encode_range",
    # normalizer
    "SPECIAL_CHAR_MAP",
    "TextNormalizer",
    "convert_special_chars",
    "to_docx_safe",
    # encoding
    "EncodingConverter",
    "SupportedEncoding",
    "detect_encoding",
    # table
    "ExtractionOptions",
    "TableConverter",
    "table_to_csv",
    "table_to_html",
    # loader
    "load_workbook_bytes",
    "load_workbook_file",
    # templates
    "BusinessPlanTemplate",
    "CompanyProfile",
    "PlanSection",
    "get_template",
    # docx_builder
    "DocxGenerator",
    "GenerationOptions",
    "GenerationResult",
    # convert
    "analyze_excel",
    "batch_convert",
    "convert_excel_to_docx",
    "create_business_plan",
]
