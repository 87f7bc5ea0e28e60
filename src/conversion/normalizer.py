"""정규화기: 원문 줄을 비교용 정규형(canonical form)으로 바꾼다.

게임 스크립트 줄에는 화자 이름, 인라인 변수({00}), 줄바꿈 이스케이프(\\n),
제어 표지(\\c, \\r), 전각/반각 구두점, 모양만 다른 유니코드 글자가 섞여 있다.
말뭉치(corpus) 줄과 같은지 비교하려면 이 변이를 모두 걷어낸 형태가 필요하다.

처리 순서 (순서가 결과에 영향을 준다):
  1. 줄머리 화자 접두어 제거 (이름 + 『)
  2. 인라인 변수 {XX}, 말뭉치 변수 [VAR ...] 제거
  3. 제어 표지·줄바꿈 이스케이프·실제 개행 문자 제거
  4. 말줄임표 변형 통일 (⋯ ‥ → …, 연속 … → 하나)
  5. 구두점 삭제
  6. 유사 글자 접기 + NFC
  7. 공백 전부 제거

정규형은 비교 전용이다. 출력 문자열에는 절대 쓰지 않는다.

사용법:
    from conversion.normalizer import canonicalize

    canonicalize("{00}は　げんき？\\\\nよかった！")  # → "はげんきよかった"
"""

from __future__ import annotations

import re
import unicodedata


# ─── 마크업 상수 ──────────────────────────────────────

LINE_BREAK = "\\n"               # 두 글자: 역슬래시 + n
DOUBLE_BREAK = LINE_BREAK * 2
SEGMENT_DELIMITER = "\\c"
CARRIAGE_ESCAPE = "\\r"

# 화자 접두어: 줄머리의 가나/한자 이름 + 여는 겹낫표
SPEAKER_PREFIX_RE = re.compile(r"^[ぁ-んァ-ヶー一-龯々〆〤]+『")
VARIABLE_RE = re.compile(r"\{[0-9A-Fa-f]{2}\}")
CORPUS_VARIABLE_RE = re.compile(r"\[VAR\s+[^\]]+\]", re.IGNORECASE)

_ELLIPSIS_VARIANTS_RE = re.compile(r"[⋯‥]")
_ELLIPSIS_RUN_RE = re.compile(r"…{2,}")

# 비교에 의미 없는 구두점 (치환이 아니라 삭제)
_PUNCTUATION_RE = re.compile(r"[！!？?。、，,.；;：:（）()「」『』【】\[\]]")
_WHITESPACE_RE = re.compile(r"\s+")

_KANA_RE = re.compile(r"[\u3040-\u309f\u30a0-\u30ff]")

# 유사 글자 → 대표 글자
_LOOKALIKES = str.maketrans({
    "\u00a0": " ",
    "\u2007": " ",
    "\u202f": " ",
    "\u3000": " ",
    "\u201c": "\"",
    "\u201d": "\"",
    "\u2018": "'",
    "\u2019": "'",
    "\uff70": "\u30fc",  # 반각 장음
    "\uff0d": "\u30fc",  # 전각 하이픈마이너스
    "\u2010": "\u30fc",
    "\u2013": "\u30fc",
    "\u2014": "\u30fc",
    "\u2015": "\u30fc",
    "\u2212": "\u30fc",
    "-": "\u30fc",
    "\u00ba": "\u00b0",
    "\u02da": "\u00b0",
    "\u1d52": "\u00b0",
    "\u301c": "\uff5e",
})


# ─── 부분 단계 ───────────────────────────────────────

def clean_special(text: str) -> str:
    """유사 글자를 대표 글자로 접고 NFC 정규화한다. (6단계)

    예: "ちょっと-まって" → "ちょっとーまって"
    """
    return unicodedata.normalize("NFC", text.translate(_LOOKALIKES))


def strip_markup(text: str) -> str:
    """화자 접두어·변수·제어 표지·개행을 걷어낸다. (1~3단계)"""
    text = SPEAKER_PREFIX_RE.sub("", text)
    text = VARIABLE_RE.sub("", text)
    text = CORPUS_VARIABLE_RE.sub("", text)
    for marker in (SEGMENT_DELIMITER, CARRIAGE_ESCAPE, LINE_BREAK, "\n", "\r"):
        text = text.replace(marker, "")
    return text


def _canonicalize_once(raw: str) -> str:
    text = strip_markup(raw)

    # 4. 말줄임표
    text = _ELLIPSIS_VARIANTS_RE.sub("…", text)
    text = _ELLIPSIS_RUN_RE.sub("…", text)

    # 5. 구두점 삭제
    text = _PUNCTUATION_RE.sub("", text)

    # 6. 유사 글자 + NFC
    text = clean_special(text)

    # 7. 공백 제거
    text = _WHITESPACE_RE.sub("", text)
    return text.strip()


def canonicalize(raw: str) -> str:
    """원문 줄을 비교용 정규형으로 바꾼다.

    입력: raw: 마크업이 섞인 원문 한 줄.
    출력: 정규형 문자열. 순수 함수이며 멱등이다.

    주의: 제거 과정에서 새 토큰이 드러날 수 있으므로 (예: "{0\\\\n0}" → "{00}")
          결과가 더 바뀌지 않을 때까지 반복한다. 각 단계는 길이를 늘리지 않는다.
    """
    current = _canonicalize_once(raw)
    while True:
        nxt = _canonicalize_once(current)
        if nxt == current:
            return current
        current = nxt


def content_form(raw: str) -> str:
    """재구성에 쓰는 내용형: 구조 토큰과 공백은 빼고 구두점은 남긴다.

    말뭉치 한자 줄을 원문 구조에 다시 끼워 넣을 때 잘라 쓰는 대상이다.
    예: "{00}の\\\\n砂嵐！" → "の砂嵐！"

    결과의 어떤 부분 문자열도 변수나 줄바꿈 토큰이 되지 않도록
    마크업 제거를 더 바뀌지 않을 때까지 반복한다.
    """
    text = _WHITESPACE_RE.sub("", clean_special(raw))
    while True:
        stripped = strip_markup(text)
        if stripped == text:
            return text
        text = stripped


def contains_kana(text: str) -> bool:
    """히라가나·가타카나가 한 글자라도 있는지 확인한다."""
    return _KANA_RE.search(text) is not None
