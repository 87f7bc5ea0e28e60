"""줄 단위 문자열 문서 (게임 문자열 XML 덤프).

    <string id="0" line="12">げんき？\\nよかった！</string>

이런 줄에서 태그 사이의 텍스트만 바꾸고 나머지는 바이트 단위로 보존한다.
XML 파서를 쓰지 않는다. 들여쓰기·속성 순서·엔티티 표기는 원본 그대로 남는다.

줄 번호는 0부터 시작하며, no_match 파일의 line="N"과 같은 번호다.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator

logger = logging.getLogger(__name__)

STRING_LINE_RE = re.compile(r"^(\s*<string\s+[^>]*>)(.*?)(</string>)$")
_LINE_SPLIT_RE = re.compile(r"\r?\n")


@dataclass(frozen=True)
class StringEntry:
    """<string> 줄 하나."""

    line_no: int
    prefix: str    # 여는 태그 (앞 공백 포함)
    text: str
    suffix: str    # 닫는 태그


class StringDocument:
    """<string> 줄을 가진 줄 단위 문서.

    사용법:
        doc = StringDocument.load("strings_ja.xml")
        for entry in doc.entries():
            doc.replace_text(entry.line_no, convert(entry.text))
        doc.save("strings_kanji_ja.xml")
    """

    def __init__(self, lines: list[str]):
        self._lines = list(lines)

    @classmethod
    def from_text(cls, text: str) -> StringDocument:
        return cls(_LINE_SPLIT_RE.split(text))

    @classmethod
    def load(cls, path: str | Path) -> StringDocument:
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"문서 파일이 없습니다: {path}")
        doc = cls.from_text(path.read_text(encoding="utf-8"))
        logger.info("문서 로드: %s (%d줄)", path.name, len(doc))
        return doc

    def __len__(self) -> int:
        return len(self._lines)

    def entry_at(self, line_no: int) -> StringEntry | None:
        """line_no 줄이 <string> 줄이면 StringEntry, 아니면 None."""
        if not 0 <= line_no < len(self._lines):
            return None
        m = STRING_LINE_RE.match(self._lines[line_no])
        if not m:
            return None
        return StringEntry(line_no, m.group(1), m.group(2), m.group(3))

    def entries(self) -> Iterator[StringEntry]:
        """<string> 줄을 순서대로 낸다. 태그 사이가 빈 줄은 건너뛴다."""
        for line_no in range(len(self._lines)):
            entry = self.entry_at(line_no)
            if entry is not None and entry.text:
                yield entry

    def replace_text(self, line_no: int, text: str) -> bool:
        """line_no 줄의 태그 사이 텍스트를 바꾼다.

        출력: 바꿨으면 True. <string> 줄이 아니면 False (문서는 그대로).
        """
        entry = self.entry_at(line_no)
        if entry is None:
            return False
        self._lines[line_no] = entry.prefix + text + entry.suffix
        return True

    def render(self) -> str:
        """문서 전체를 문자열로. 줄 끝은 \\n으로 통일된다."""
        return "\n".join(self._lines)

    def save(self, path: str | Path) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.render(), encoding="utf-8")
        logger.info("문서 저장: %s", path)
        return path
