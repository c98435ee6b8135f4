"""
test_encoding.py — 인코딩 감지/변환 테스트
"""

from __future__ import annotations

from xldoc.encoding import (
    ConversionResult,
    EncodingConverter,
    SupportedEncoding,
    detect_encoding,
    to_utf8,
)


class TestDetectEncoding:
    """detect_encoding — BOM → 후보별 신뢰도."""

    def test_bom_is_utf8(self):
        detection = detect_encoding(b"\xef\xbb\xbf\xb0\xa1")
        assert detection.encoding == SupportedEncoding.UTF8
        assert detection.confidence == 1.0
        assert detection.is_valid

    def test_empty_buffer(self):
        detection = detect_encoding(b"")
        assert detection.encoding == SupportedEncoding.UTF8
        assert detection.is_valid

    def test_utf8_korean(self):
        detection = detect_encoding("안녕하세요 사업계획서".encode("utf-8"))
        assert detection.encoding == SupportedEncoding.UTF8
        assert detection.confidence == 1.0
        assert detection.is_valid

    def test_euc_kr_korean(self):
        detection = detect_encoding("안녕하세요 사업계획서".encode("euc-kr"))
        assert detection.encoding == SupportedEncoding.EUC_KR
        assert detection.is_valid

    def test_cp949_extension_syllable(self):
        """EUC-KR 에 없는 음절(똠)은 CP949 로 감지."""
        detection = detect_encoding("똠방각하".encode("cp949"))
        assert detection.encoding == SupportedEncoding.CP949
        assert detection.is_valid

    def test_ascii_is_utf8(self):
        detection = detect_encoding(b"plain ascii text")
        assert detection.encoding == SupportedEncoding.UTF8

    def test_garbage_is_invalid(self):
        """어느 후보도 확정되지 않으면 최고 후보를 is_valid=False 로."""
        detection = detect_encoding(b"\xff\xfe\xff\xfe\xff")
        assert not detection.is_valid
        assert detection.encoding in SupportedEncoding
        assert 0.0 <= detection.confidence <= 1.0

    def test_to_dict(self):
        data = detect_encoding(b"abc").to_dict()
        assert data == {"encoding": "utf8", "confidence": 1.0, "isValid": True}


class TestEncodingConverter:
    """EncodingConverter.convert / auto_convert."""

    def test_convert_applies_special_chars(self):
        result = EncodingConverter().convert("㈜테크①", "utf8", "euc-kr")
        assert isinstance(result, ConversionResult)
        assert result.success
        assert result.text == "(주)테크(1)"
        assert result.special_chars_converted == 2
        assert result.data == "(주)테크(1)".encode("euc-kr")
        assert result.original_encoding == SupportedEncoding.UTF8
        assert result.target_encoding == SupportedEncoding.EUC_KR

    def test_unrepresentable_char_reports_failure(self):
        """대상 인코딩에 없는 문자는 예외 없이 success=False."""
        result = EncodingConverter().convert("가😀", "utf8", "euc-kr")
        assert not result.success
        assert result.text == "가?"
        assert result.errors

    def test_existing_question_marks_are_not_errors(self):
        result = EncodingConverter().convert("정말?", "utf8", "cp949")
        assert result.success
        assert result.text == "정말?"

    def test_broken_bytes_report_failure(self):
        result = EncodingConverter().convert(b"abc\xff", "utf8", "utf8")
        assert not result.success
        assert "\ufffd" in result.text

    def test_bytes_source_decoded_with_source_encoding(self):
        result = EncodingConverter().convert("사업".encode("euc-kr"), "euc-kr", "utf8")
        assert result.success
        assert result.text == "사업"

    def test_auto_convert_detects_source(self):
        result = EncodingConverter().auto_convert("테크스타트".encode("euc-kr"), "utf8")
        assert result.success
        assert result.original_encoding == SupportedEncoding.EUC_KR
        assert result.text == "테크스타트"

    def test_auto_convert_string(self):
        assert to_utf8("㈜테크") == "(주)테크"
