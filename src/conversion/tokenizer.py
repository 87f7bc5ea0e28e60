"""토크나이저: 원문 한 줄을 구조 토큰과 내용 토큰으로 나눈다.

토큰 종류:
  | 종류 | 예 | 재구성 시 |
  |------|----|-----------|
  | speaker | "ナナカマド『" | 그대로 유지 (줄머리에만) |
  | variable | "{00}" | 그대로 유지 |
  | line_break | "\\\\n" | 그대로 유지 |
  | control | "\\\\c", "\\\\r" | 그대로 유지 |
  | content | "げんき？" | 새 내용으로 교체 |

왼쪽에서 오른쪽으로 한 번만 훑는다. 디코딩된 str 위에서 동작하므로
가변 길이 인코딩에서도 글자 경계가 어긋나지 않는다.

보장: render_tokens(tokenize(x)) == x
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .normalizer import CARRIAGE_ESCAPE, LINE_BREAK, SEGMENT_DELIMITER, SPEAKER_PREFIX_RE

_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


class TokenType(str, Enum):
    CONTENT = "content"
    VARIABLE = "variable"
    LINE_BREAK = "line_break"
    CONTROL = "control"         # \c, \r
    SPEAKER = "speaker"


# 재구성 때 자리를 지켜야 하는 토큰
STRUCTURAL_TYPES = frozenset({TokenType.VARIABLE, TokenType.LINE_BREAK, TokenType.CONTROL})

_CONTROL_ESCAPES = (SEGMENT_DELIMITER, CARRIAGE_ESCAPE)


@dataclass(frozen=True)
class Token:
    type: TokenType
    value: str

    @property
    def is_content(self) -> bool:
        return self.type == TokenType.CONTENT


def _is_variable_at(text: str, i: int) -> bool:
    """text[i:i+4]가 {XX} (XX는 16진수 두 자리)인지 확인."""
    return (
        text[i] == "{"
        and i + 3 < len(text)
        and text[i + 1] in _HEX_DIGITS
        and text[i + 2] in _HEX_DIGITS
        and text[i + 3] == "}"
    )


def tokenize(raw: str) -> list[Token]:
    """원문 한 줄을 토큰 리스트로 바꾼다.

    입력: raw: 마커 사이의 원문 문자열.
    출력: Token 리스트 (원래 순서 그대로).

    각 위치에서의 우선순위:
      1. 화자 접두어 (0번 위치에서만)
      2. {XX} 변수 (4글자)
      3. \\\\n 줄바꿈 이스케이프 (2글자)
      4. \\\\c, \\\\r 제어 표지 (2글자)
      5. 그 밖의 글자는 현재 내용 토큰에 누적
    구조 토큰을 만나거나 줄이 끝나면 누적된 내용을 토큰으로 내보낸다.
    """
    tokens: list[Token] = []
    buffer: list[str] = []
    i = 0
    n = len(raw)

    def flush():
        if buffer:
            tokens.append(Token(TokenType.CONTENT, "".join(buffer)))
            buffer.clear()

    speaker = SPEAKER_PREFIX_RE.match(raw)
    if speaker:
        tokens.append(Token(TokenType.SPEAKER, speaker.group(0)))
        i = speaker.end()

    while i < n:
        if _is_variable_at(raw, i):
            flush()
            tokens.append(Token(TokenType.VARIABLE, raw[i:i + 4]))
            i += 4
            continue

        if raw.startswith(LINE_BREAK, i):
            flush()
            tokens.append(Token(TokenType.LINE_BREAK, LINE_BREAK))
            i += len(LINE_BREAK)
            continue

        control = next((c for c in _CONTROL_ESCAPES if raw.startswith(c, i)), None)
        if control:
            flush()
            tokens.append(Token(TokenType.CONTROL, control))
            i += len(control)
            continue

        buffer.append(raw[i])
        i += 1

    flush()
    return tokens


def render_tokens(tokens: list[Token]) -> str:
    """토큰 값을 순서대로 이어 붙인다. tokenize()의 역연산."""
    return "".join(token.value for token in tokens)


def structural_signature(tokens: list[Token]) -> tuple[str, ...]:
    """변수·줄바꿈·제어 표지 토큰 값만 순서대로 뽑는다.

    변환 전후의 시그니처가 같으면 구조가 보존된 것이다.
    """
    return tuple(t.value for t in tokens if t.type in STRUCTURAL_TYPES)
