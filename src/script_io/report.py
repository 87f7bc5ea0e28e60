"""변환 보고서 (plain text).

logs/report_<timestamp>.txt에 저장하고 CLI가 화면에도 출력한다.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Mapping, Optional

from conversion.corpus_index import CorpusIndexStats
from conversion.pipeline import ConversionStats

RULE = "=" * 70
SUBRULE = "-" * 70


def timestamp_slug(now: Optional[datetime] = None) -> str:
    """파일 이름용 시각. 예: 2026-10-19T14-03-22"""
    now = now or datetime.now()
    return now.strftime("%Y-%m-%dT%H-%M-%S")


def _pct(part: int, whole: int) -> str:
    if whole <= 0:
        return "0.00%"
    return f"{part / whole * 100:.2f}%"


def render_report(
    stats: ConversionStats,
    index_stats: CorpusIndexStats,
    *,
    needing_llm: int,
    paths: Mapping[str, object],
    timestamp: str,
) -> str:
    """보고서 본문을 만든다.

    입력:
        stats: 문서 전체의 ConversionStats.
        index_stats: 색인 구축 통계.
        needing_llm: no_match 파일에 쓴 줄 수 (needs_kanjification 통과).
        paths: {"표시 이름": 경로} (FILES 절에 순서대로 출력).
        timestamp: 보고서 시각 문자열.
    """
    lines = [
        RULE,
        "KANA TO KANJI CONVERSION REPORT",
        RULE,
        "",
        f"Timestamp: {timestamp}",
        "",
        "STRING STATISTICS:",
        SUBRULE,
        f"Total string entries: {stats.total}",
        f"Strings containing kana: {stats.with_kana}",
        f"  Percentage: {_pct(stats.with_kana, stats.total)}",
        "",
        f"Strings matched: {stats.matched}",
        f"  Percentage of kana strings: {_pct(stats.matched, stats.with_kana)}",
        f"  Converted: {stats.converted}",
        f"  Unchanged after match: {stats.unchanged}",
        "",
        f"Strings with kana (unmatched): {stats.no_match}",
        f"  Percentage of kana strings: {_pct(stats.no_match, stats.with_kana)}",
        "",
        f"Strings ready for LLM processing: {needing_llm}",
        f"  Percentage of unmatched: {_pct(needing_llm, stats.no_match)}",
        "",
        "MATCH STRATEGIES:",
        SUBRULE,
    ]
    if stats.strategies:
        for name, count in sorted(stats.strategies.items(), key=lambda kv: (-kv[1], kv[0])):
            lines.append(f"{name}: {count}")
    else:
        lines.append("(none)")

    lines += [
        "",
        "CORPUS STATISTICS:",
        SUBRULE,
        f"Corpus rows: {index_stats.rows}",
        f"  Skipped (empty): {index_stats.skipped_empty}",
        f"  Skipped (too short): {index_stats.skipped_short}",
        f"Index entries: {index_stats.total_entries}",
        f"  Full lines: {index_stats.full_entries}",
        f"  Segments: {index_stats.segment_entries}",
        f"  Combinations: {index_stats.combination_entries}",
        f"  Duplicate keys ignored: {index_stats.duplicates_ignored}",
        f"  Segment count mismatches: {index_stats.segment_mismatches}",
        "",
        "NEXT STEPS:",
        SUBRULE,
        f"Run 'python -m cli kanjify' to process {needing_llm} strings with LLM",
        "",
        "FILES:",
        SUBRULE,
    ]
    lines += [f"{label}: {path}" for label, path in paths.items()]
    lines += ["", RULE]
    return "\n".join(lines)


def write_report(path: str | Path, report: str) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report, encoding="utf-8")
    return path
