"""병렬 말뭉치 읽기.

말뭉치 텍스트 덤프는 한 줄에 대사 하나이며,
파일 구분선(~~~~~~~~~~~~~~~)과 "Text File : ..." 머리줄이 섞여 있다.
가나판과 한자판은 같은 순서로 덤프되어 있어 줄 번호로 짝이 맞는다.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

logger = logging.getLogger(__name__)

FILE_SEPARATOR = "~~~~~~~~~~~~~~~"
FILE_HEADER_PREFIX = "Text File :"

_LINE_SPLIT_RE = re.compile(r"\r?\n")


def parse_corpus_text(text: str) -> list[str]:
    """말뭉치 덤프 텍스트를 대사 줄 목록으로 바꾼다.

    빈 줄, 파일 구분선, "Text File :" 머리줄은 버린다.
    줄 안의 공백은 그대로 둔다.
    """
    lines = []
    for line in _LINE_SPLIT_RE.split(text):
        if not line or line == FILE_SEPARATOR or line.startswith(FILE_HEADER_PREFIX):
            continue
        lines.append(line)
    return lines


def load_corpus_file(path: str | Path) -> list[str]:
    """말뭉치 파일 하나를 읽는다. 없으면 FileNotFoundError."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"말뭉치 파일이 없습니다: {path}")
    lines = parse_corpus_text(path.read_text(encoding="utf-8"))
    logger.info("말뭉치 로드: %s (%d줄)", path.name, len(lines))
    return lines


def load_parallel_corpus(
    phonetic_path: str | Path,
    logographic_path: str | Path,
) -> tuple[list[str], list[str]]:
    """가나판·한자판 말뭉치를 함께 읽는다.

    출력: (가나 줄 목록, 한자 줄 목록).
    줄 수가 다르면 경고만 남긴다. 색인은 짧은 쪽까지만 짝짓는다.
    """
    phonetic = load_corpus_file(phonetic_path)
    logographic = load_corpus_file(logographic_path)
    if len(phonetic) != len(logographic):
        logger.warning(
            "말뭉치 줄 수 불일치: 가나 %d줄, 한자 %d줄 (짧은 쪽까지만 사용)",
            len(phonetic), len(logographic),
        )
    return phonetic, logographic
