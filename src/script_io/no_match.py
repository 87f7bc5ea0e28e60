"""no_match 파일: 말뭉치에서 찾지 못한 줄을 LLM 단계로 넘기는 중간 파일.

형식:
    <?xml version="1.0" encoding="UTF-8"?>
    <strings_for_llm>
      <string line="12">まだ　ここに　いるの？</string>
    </strings_for_llm>

line은 원본 문서의 0부터 시작하는 줄 번호.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, NamedTuple, Optional

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'
ROOT_TAG = "strings_for_llm"

_ENTRY_RE = re.compile(r'<string line="(\d+)">(.*?)</string>')


class NoMatchEntry(NamedTuple):
    line: int
    text: str


def render_no_match(entries: Iterable[tuple[int, str]]) -> str:
    """항목 목록을 no_match 파일 본문으로 만든다."""
    body = "\n".join(
        f'  <string line="{line}">{text}</string>' for line, text in entries
    )
    return f"{XML_DECLARATION}\n<{ROOT_TAG}>\n{body}\n</{ROOT_TAG}>"


def parse_no_match(text: str) -> list[NoMatchEntry]:
    """no_match 파일 본문에서 항목을 읽는다."""
    return [
        NoMatchEntry(int(m.group(1)), m.group(2))
        for m in _ENTRY_RE.finditer(text)
    ]


def write_no_match(path: str | Path, entries: Iterable[tuple[int, str]]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(render_no_match(entries), encoding="utf-8")
    return path


def load_no_match(path: str | Path) -> list[NoMatchEntry]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"no_match 파일이 없습니다: {path}")
    return parse_no_match(path.read_text(encoding="utf-8"))


def find_latest_file(directory: str | Path, pattern: str = "no_match_*.xml") -> Optional[Path]:
    """directory에서 pattern(glob)에 맞는 가장 최근 수정 파일. 없으면 None."""
    directory = Path(directory)
    if not directory.is_dir():
        return None
    candidates = [p for p in directory.glob(pattern) if p.is_file()]
    if not candidates:
        return None
    return max(candidates, key=lambda p: p.stat().st_mtime)
