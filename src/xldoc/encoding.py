"""
xldoc.encoding — UTF-8 / EUC-KR / CP949 감지 및 변환

바이트 버퍼의 인코딩을 추정하고, 텍스트가 대상 인코딩을 왕복할 때
깨지는 문자가 생기는지 검사합니다. 깨짐은 예외가 아니라
ConversionResult.success=False 로 보고됩니다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from xldoc.normalizer import TextNormalizer, default_normalizer

logger = logging.getLogger(__name__)

UTF8_BOM = b"\xef\xbb\xbf"
REPLACEMENT_CHAR = "\ufffd"

# 이 값을 넘어야 해당 인코딩으로 확정
CONFIDENCE_THRESHOLD = 0.9


class SupportedEncoding(str, Enum):
    """지원 인코딩."""
    UTF8 = "utf8"
    EUC_KR = "euc-kr"
    CP949 = "cp949"

    @property
    def codec(self) -> str:
        """파이썬 코덱 이름."""
        return _CODECS[self]


_CODECS = {
    SupportedEncoding.UTF8: "utf-8",
    SupportedEncoding.EUC_KR: "euc_kr",
    SupportedEncoding.CP949: "cp949",
}

# 감지 시 시도 순서
DETECTION_ORDER = (
    SupportedEncoding.UTF8,
    SupportedEncoding.EUC_KR,
    SupportedEncoding.CP949,
)


@dataclass(frozen=True)
class EncodingDetection:
    """인코딩 감지 결과."""
    encoding: SupportedEncoding
    confidence: float
    is_valid: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "encoding": self.encoding.value,
            "confidence": self.confidence,
            "isValid": self.is_valid,
        }


@dataclass
class ConversionResult:
    """인코딩 변환 결과."""
    success: bool
    text: str
    original_encoding: SupportedEncoding
    target_encoding: SupportedEncoding
    special_chars_converted: int = 0
    data: bytes = b""
    errors: list[str] = field(default_factory=list)


# ── 감지 ─────────────────────────────────────────────────────────

def detect_encoding(data: bytes) -> EncodingDetection:
    """
    바이트 버퍼의 인코딩을 추정합니다.

    1. UTF-8 BOM 이 있으면 utf8 (신뢰도 1.0)
    2. utf8 → euc-kr → cp949 순서로 디코드/재인코드하여
       위치별로 같은 바이트 비율을 신뢰도로 계산
    3. 신뢰도 > 0.9 이고 대체문자(U+FFFD)가 없는 첫 후보를 선택
    4. 없으면 신뢰도가 가장 높은 후보를 is_valid=False 로 반환
    """
    if data.startswith(UTF8_BOM):
        return EncodingDetection(SupportedEncoding.UTF8, 1.0, True)
    if not data:
        return EncodingDetection(SupportedEncoding.UTF8, 1.0, True)

    candidates = [_try_encoding(data, enc) for enc in DETECTION_ORDER]
    for candidate in candidates:
        if candidate.is_valid:
            logger.debug("인코딩 감지: %s (%.2f)", candidate.encoding.value, candidate.confidence)
            return candidate

    best = max(candidates, key=lambda c: c.confidence)
    logger.debug("인코딩 확정 실패, 최고 후보: %s (%.2f)", best.encoding.value, best.confidence)
    return EncodingDetection(best.encoding, best.confidence, False)


def _try_encoding(data: bytes, encoding: SupportedEncoding) -> EncodingDetection:
    text = data.decode(encoding.codec, errors="replace")
    re_encoded = text.encode(encoding.codec, errors="replace")
    matches = sum(1 for a, b in zip(data, re_encoded) if a == b)
    confidence = matches / len(data)
    return EncodingDetection(
        encoding=encoding,
        confidence=confidence,
        is_valid=confidence > CONFIDENCE_THRESHOLD and REPLACEMENT_CHAR not in text,
    )


# ── 변환 ─────────────────────────────────────────────────────────

class EncodingConverter:
    """
    특수문자 치환 후 대상 인코딩으로 왕복 변환하는 변환기.

    대상 인코딩으로 표현할 수 없는 문자는 깨진 채로(최선의 결과) 반환되며
    success=False 와 설명 메시지가 함께 붙습니다.
    """

    def __init__(self, normalizer: TextNormalizer | None = None):
        self.normalizer = normalizer or default_normalizer()

    def convert(
        self,
        source: str | bytes,
        from_encoding: SupportedEncoding | str,
        to_encoding: SupportedEncoding | str,
    ) -> ConversionResult:
        """
        Args:
            source: 텍스트 또는 from_encoding 으로 인코딩된 바이트
            from_encoding: 원본 인코딩
            to_encoding: 대상 인코딩

        Returns:
            ConversionResult: text 는 대상 인코딩을 거친 텍스트, data 는 대상 인코딩 바이트
        """
        src_enc = SupportedEncoding(from_encoding)
        dst_enc = SupportedEncoding(to_encoding)

        if isinstance(source, bytes):
            text = source.decode(src_enc.codec, errors="replace")
        else:
            text = source

        conversion = self.normalizer.convert_special_chars(text)
        converted = conversion.text

        data = converted.encode(dst_enc.codec, errors="replace")
        final_text = data.decode(dst_enc.codec, errors="replace")

        errors: list[str] = []
        if REPLACEMENT_CHAR in final_text:
            errors.append("일부 문자가 깨졌습니다 (대체 문자 포함)")
        elif final_text.count("?") > converted.count("?"):
            errors.append(f"{dst_enc.value} 로 표현할 수 없는 문자가 있습니다")

        if errors:
            logger.warning("인코딩 변환 손실: %s → %s", src_enc.value, dst_enc.value)

        return ConversionResult(
            success=not errors,
            text=final_text,
            original_encoding=src_enc,
            target_encoding=dst_enc,
            special_chars_converted=conversion.converted,
            data=data,
            errors=errors,
        )

    def auto_convert(
        self,
        source: str | bytes,
        target_encoding: SupportedEncoding | str,
    ) -> ConversionResult:
        """원본 인코딩을 감지한 뒤 변환합니다. 감지 실패 시 utf8 로 간주."""
        if isinstance(source, str):
            return self.convert(source, SupportedEncoding.UTF8, target_encoding)

        detection = detect_encoding(source)
        source_encoding = detection.encoding if detection.is_valid else SupportedEncoding.UTF8
        return self.convert(source, source_encoding, target_encoding)


def to_utf8(source: str | bytes) -> str:
    """자동 감지 후 UTF-8 텍스트로."""
    return EncodingConverter().auto_convert(source, SupportedEncoding.UTF8).text


def to_euc_kr(source: str | bytes) -> str:
    """자동 감지 후 EUC-KR 로 표현 가능한 텍스트로."""
    return EncodingConverter().auto_convert(source, SupportedEncoding.EUC_KR).text
