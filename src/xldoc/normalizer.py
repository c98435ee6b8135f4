"""
xldoc.normalizer — 한글 특수문자 정규화

㈜, ①, ™, ₩, 전각 문장부호 등 문서에 그대로 넣으면 깨지기 쉬운 기호를
ASCII 또는 의미가 같은 표기로 치환합니다.

치환 결과(값)에는 치환 대상(키)이 다시 나타나지 않으므로,
키 순서와 무관하게 한 번의 패스로 충분하며 두 번 적용해도 결과가 같습니다.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Mapping

logger = logging.getLogger(__name__)

# ── 특수문자 매핑 ────────────────────────────────────────────────

SPECIAL_CHAR_MAP: Mapping[str, str] = MappingProxyType({
    # 회사 형태
    "㈜": "(주)",
    "㈏": "(가)",
    "㈐": "(나)",
    "㈑": "(다)",
    "㈒": "(라)",

    # 원문자
    "①": "(1)", "②": "(2)", "③": "(3)", "④": "(4)", "⑤": "(5)",
    "⑥": "(6)", "⑦": "(7)", "⑧": "(8)", "⑨": "(9)", "⑩": "(10)",
    "⑪": "(11)", "⑫": "(12)", "⑬": "(13)", "⑭": "(14)", "⑮": "(15)",

    # 상표 기호
    "™": "TM",
    "®": "(R)",
    "©": "(C)",

    # 통화
    "₩": "원",
    "¥": "엔",
    "€": "유로",
    "£": "파운드",

    # 문장 부호
    "：": ":",
    "；": ";",
    "！": "!",
    "？": "?",
    "～": "~",
    "－": "-",
    "․": "·",
    "‥": "..",
    "…": "...",
    "″": '"',
    "′": "'",
    "※": "*",

    # 도형
    "○": "O",
})

# C0 / DEL / C1 제어문자
_CONTROL_CHARS_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_FULL_WIDTH_ALNUM_RE = re.compile(r"[Ａ-Ｚａ-ｚ０-９]")
_FULL_WIDTH_OFFSET = 0xFEE0

UNKNOWN_CHAR = "□"


@dataclass(frozen=True)
class Conversion:
    """특수문자 변환 결과."""
    text: str
    converted: int = 0


class TextNormalizer:
    """
    특수문자 치환기.

    사용법:
        normalizer = TextNormalizer()
        result = normalizer.convert_special_chars("㈜테크①")
        # result.text == "(주)테크(1)", result.converted == 2

    overlay 로 전달한 항목은 같은 키의 기본 항목을 덮어씁니다.
    공유 매핑(SPECIAL_CHAR_MAP)은 수정하지 않습니다.
    """

    def __init__(self, overlay: Mapping[str, str] | None = None):
        merged = dict(SPECIAL_CHAR_MAP)
        if overlay:
            merged.update(overlay)
            logger.debug("특수문자 매핑 확장: %d개 항목", len(overlay))
        _check_single_pass(merged)
        self._map: Mapping[str, str] = MappingProxyType(merged)
        # 긴 키 우선, 각 위치는 한 번만 치환
        self._pattern = re.compile(
            "|".join(re.escape(k) for k in sorted(merged, key=len, reverse=True))
        )

    @property
    def char_map(self) -> Mapping[str, str]:
        """읽기 전용 치환 맵."""
        return self._map

    def convert_special_chars(self, text: str) -> Conversion:
        """매핑된 문자를 모두 치환하고, 치환된 개수(출현 횟수)를 함께 반환."""
        result, converted = self._pattern.subn(lambda m: self._map[m.group(0)], text)
        return Conversion(text=result, converted=converted)

    @staticmethod
    def to_half_width(text: str) -> str:
        """전각 영문/숫자를 반각으로. 그 외 문자는 그대로 둡니다."""
        return _FULL_WIDTH_ALNUM_RE.sub(
            lambda m: chr(ord(m.group(0)) - _FULL_WIDTH_OFFSET), text
        )

    def to_docx_safe(self, text: Any) -> str:
        """
        문서에 넣어도 안전한 문자열로 변환합니다.

        특수문자 치환 → 전각→반각 → 제어문자 제거 → 앞뒤 공백 제거.
        어떤 입력에도 예외를 던지지 않습니다.
        """
        if text is None:
            return ""
        if not isinstance(text, str):
            text = str(text)
        converted = self.convert_special_chars(text).text
        half = self.to_half_width(converted)
        return _CONTROL_CHARS_RE.sub("", half).strip()

    @staticmethod
    def to_safe_ascii(text: str) -> str:
        """비ASCII 문자를 [?] 로 표시 (최후 폴백)."""
        masked = re.sub(r"[^\x00-\x7f]", "?", text)
        return re.sub(r"\?+", "[?]", masked)

    @staticmethod
    def repair_broken_chars(text: str, context: str | None = None) -> str:
        """
        깨진 문자(U+FFFD, 연속된 ?)를 □ 로 표시합니다.

        context 에 '회사' 가 있으면 (주), '숫자' 가 있으면 (1) 로 추정합니다.
        """
        repaired = re.sub(r"\?{2,}", UNKNOWN_CHAR, text)
        repaired = repaired.replace("\ufffd", UNKNOWN_CHAR)
        if context and UNKNOWN_CHAR in repaired:
            if "회사" in context:
                repaired = repaired.replace(UNKNOWN_CHAR, "(주)")
            elif "숫자" in context:
                repaired = repaired.replace(UNKNOWN_CHAR, "(1)")
        return repaired


def _check_single_pass(char_map: Mapping[str, str]) -> None:
    """
    치환 결과에 키가 다시 생기지 않도록 검사합니다.

    치환 값에 어떤 키의 문자라도 들어 있으면, 값과 주변 문자가 이어져
    새 키가 만들어질 수 있으므로 거부합니다.
    """
    key_chars: dict[str, str] = {}
    for source in char_map:
        if not source:
            raise ValueError("특수문자 매핑에 빈 키가 있습니다")
        for ch in source:
            key_chars.setdefault(ch, source)
    for source, target in char_map.items():
        for ch in target:
            if ch in key_chars:
                raise ValueError(
                    f"특수문자 매핑 값 {target!r} ({source!r}) 에 "
                    f"매핑 키 {key_chars[ch]!r} 의 문자 {ch!r} 가 포함되어 있습니다"
                )


# ── 편의 함수 ──────────────────────────────────────────────────

_default = TextNormalizer()


def default_normalizer() -> TextNormalizer:
    """기본 매핑을 쓰는 공유 인스턴스 (읽기 전용이므로 공유해도 안전)."""
    return _default


def convert_special_chars(text: str) -> Conversion:
    return _default.convert_special_chars(text)


def to_docx_safe(text: Any) -> str:
    return _default.to_docx_safe(text)


def strip_control_chars(text: str) -> str:
    """C0/C1 제어문자만 제거 (특수문자 치환 없이)."""
    return _CONTROL_CHARS_RE.sub("", text)
