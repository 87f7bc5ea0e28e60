"""스크립트 파일 입출력.

모듈 구성:
  corpus.py         : 병렬 말뭉치 텍스트 덤프 읽기
  string_document.py: <string> 줄 문서 읽기/교체/저장
  no_match.py       : LLM 단계로 넘기는 no_match 파일
  report.py         : 변환 보고서
"""

from .corpus import load_corpus_file, load_parallel_corpus, parse_corpus_text
from .no_match import (
    NoMatchEntry,
    find_latest_file,
    load_no_match,
    parse_no_match,
    render_no_match,
    write_no_match,
)
from .report import render_report, timestamp_slug, write_report
from .string_document import StringDocument, StringEntry

__all__ = [
    "parse_corpus_text",
    "load_corpus_file",
    "load_parallel_corpus",
    "StringDocument",
    "StringEntry",
    "NoMatchEntry",
    "render_no_match",
    "parse_no_match",
    "write_no_match",
    "load_no_match",
    "find_latest_file",
    "render_report",
    "write_report",
    "timestamp_slug",
]
