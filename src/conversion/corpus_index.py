"""말뭉치 색인: 가나 정규형 → 한자 원문 매핑.

병렬 말뭉치(가나 줄 목록, 한자 줄 목록)를 같은 인덱스끼리 짝지어
한 번만 만든다. 만든 뒤에는 읽기 전용이며, 여러 스레드에서 잠금 없이 공유한다.

색인 항목 세 종류:
  | 종류 | 만드는 방법 |
  |------|-------------|
  | full | 말뭉치 한 줄 전체 |
  | segment | \\\\c 제어 표지로 나눈 부분 (양쪽 개수가 같을 때만) |
  | combination | 이어지는 2~6줄을 \\\\n\\\\n 으로 합친 것 |

같은 키가 다시 나오면 먼저 들어간 값을 유지한다 (first-writer-wins).
렌더러가 말뭉치의 여러 줄을 한 줄로 합쳐 출력하는 경우를 combination이 잡는다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterator, Mapping, Optional

from .normalizer import DOUBLE_BREAK, LINE_BREAK, SEGMENT_DELIMITER, canonicalize

logger = logging.getLogger(__name__)

# 이보다 짧은 정규형은 구별력이 없어 색인하지 않는다
MIN_KEY_LENGTH = 3
# 현재 줄 뒤로 합쳐 볼 줄 수 (1~5)
MAX_LOOKAHEAD = 5


@dataclass
class CorpusIndexStats:
    """색인 구축 통계. 보고서에 표시."""

    rows: int = 0
    skipped_empty: int = 0
    skipped_short: int = 0
    full_entries: int = 0
    segment_entries: int = 0
    combination_entries: int = 0
    duplicates_ignored: int = 0
    segment_mismatches: int = 0

    @property
    def total_entries(self) -> int:
        return self.full_entries + self.segment_entries + self.combination_entries

    def to_dict(self) -> dict:
        return {
            "rows": self.rows,
            "skipped_empty": self.skipped_empty,
            "skipped_short": self.skipped_short,
            "full_entries": self.full_entries,
            "segment_entries": self.segment_entries,
            "combination_entries": self.combination_entries,
            "duplicates_ignored": self.duplicates_ignored,
            "segment_mismatches": self.segment_mismatches,
            "total_entries": self.total_entries,
        }


class CorpusIndex:
    """읽기 전용 말뭉치 색인.

    직접 만들지 말고 build_index()를 쓴다.
    items()는 삽입 순서를 따른다 (퍼지 매칭이 이 순서에 의존).
    """

    def __init__(self, entries: dict[str, str], stats: Optional[CorpusIndexStats] = None):
        self._entries: Mapping[str, str] = MappingProxyType(dict(entries))
        self.stats = stats or CorpusIndexStats()

    def get(self, key: str) -> Optional[str]:
        """정규형 키로 한자 원문을 찾는다. 빈 키는 항상 None."""
        if not key:
            return None
        return self._entries.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def keys(self):
        return self._entries.keys()

    def items(self):
        return self._entries.items()

    def as_dict(self) -> dict[str, str]:
        """복사본을 dict로 반환한다."""
        return dict(self._entries)


class _IndexBuilder:
    """build_index() 내부 전용. 완성 후 CorpusIndex로 넘긴다."""

    def __init__(self):
        self.entries: dict[str, str] = {}
        self.stats = CorpusIndexStats()

    def insert(self, phonetic_raw: str, logographic_raw: str) -> Optional[str]:
        """키가 비어 있지 않고 아직 없을 때만 넣는다. 넣은 키를 반환."""
        key = canonicalize(phonetic_raw)
        if len(key) < MIN_KEY_LENGTH:
            return None
        if key in self.entries:
            self.stats.duplicates_ignored += 1
            return None
        self.entries[key] = logographic_raw
        return key

    def insert_split(self, phonetic_raw: str, logographic_raw: str, delimiter: str) -> None:
        """양쪽을 delimiter로 나누어 부분 쌍을 넣는다.

        나눈 개수가 다르면 1:1 대응이 깨진 것이므로 전부 버린다.
        """
        phonetic_parts = phonetic_raw.split(delimiter)
        logographic_parts = logographic_raw.split(delimiter)
        if len(phonetic_parts) != len(logographic_parts):
            self.stats.segment_mismatches += 1
            return

        for ph, lg in zip(phonetic_parts, logographic_parts):
            if not ph.strip() or not lg.strip():
                continue
            if self.insert(ph, lg):
                self.stats.segment_entries += 1


def build_index(
    phonetic_lines: list[str],
    logographic_lines: list[str],
    *,
    split_line_breaks: bool = False,
) -> CorpusIndex:
    """병렬 말뭉치에서 색인을 만든다.

    입력:
        phonetic_lines: 가나 말뭉치 줄 목록.
        logographic_lines: 같은 순서의 한자 말뭉치 줄 목록.
        split_line_breaks: True면 \\\\c가 없는 줄도 \\\\n 기준으로 나누어
                            부분 항목을 추가한다. 기본은 끔.
    출력: CorpusIndex (읽기 전용).

    짧은 쪽 길이까지만 짝짓는다. 잘못된 쌍은 조용히 버리며 구축은 중단되지 않는다.
    """
    builder = _IndexBuilder()
    stats = builder.stats
    row_count = min(len(phonetic_lines), len(logographic_lines))
    stats.rows = row_count

    for i in range(row_count):
        phonetic = phonetic_lines[i]
        logographic = logographic_lines[i]

        if not phonetic.strip() or not logographic.strip():
            stats.skipped_empty += 1
            continue
        if len(canonicalize(phonetic)) < MIN_KEY_LENGTH:
            stats.skipped_short += 1
            continue

        # 1. 줄 전체
        if builder.insert(phonetic, logographic):
            stats.full_entries += 1

        # 2. 제어 표지 기준 부분 항목
        if SEGMENT_DELIMITER in phonetic:
            builder.insert_split(phonetic, logographic, SEGMENT_DELIMITER)
        elif split_line_breaks and LINE_BREAK in phonetic:
            builder.insert_split(phonetic, logographic, LINE_BREAK)

        # 3. 이어지는 줄 조합
        phonetic_combo = [phonetic]
        logographic_combo = [logographic]
        for lookahead in range(1, MAX_LOOKAHEAD + 1):
            j = i + lookahead
            if j >= row_count:
                break
            next_phonetic = phonetic_lines[j]
            next_logographic = logographic_lines[j]
            if not next_phonetic.strip() or not next_logographic.strip():
                break
            phonetic_combo.append(next_phonetic)
            logographic_combo.append(next_logographic)
            if builder.insert(
                DOUBLE_BREAK.join(phonetic_combo),
                DOUBLE_BREAK.join(logographic_combo),
            ):
                stats.combination_entries += 1

    logger.debug(
        "말뭉치 색인 구축: %d줄 → %d항목 (full=%d, segment=%d, combination=%d)",
        row_count,
        len(builder.entries),
        stats.full_entries,
        stats.segment_entries,
        stats.combination_entries,
    )
    return CorpusIndex(builder.entries, stats)
