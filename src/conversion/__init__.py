"""가나 → 한자 스크립트 변환 엔진.

가나 전용 게임 스크립트 줄을 병렬 말뭉치(가나판/한자판)에서 찾아
한자 표기로 바꾸되, 화자 접두어·{XX} 변수·\\n 줄바꿈은 원래 자리에 둔다.

모듈 구성:
  normalizer.py    : 비교용 정규형, 유사 글자 정리
  tokenizer.py     : 구조 토큰/내용 토큰 분리
  corpus_index.py  : 가나 정규형 → 한자 원문 색인
  matcher.py       : 5단계 매칭 전략
  lcs_diff.py      : LCS 글자 단위 정렬과 매핑 적용
  reconstructor.py : 원문 구조에 한자 문자열 재배치
  pipeline.py      : 줄 단위 변환과 통계
  classifier.py    : LLM 한자화 대상 판별
  kanjify_llm.py   : LLM 배치 한자화 (llm 패키지 필요)
"""

from .classifier import needs_kanjification
from .corpus_index import CorpusIndex, CorpusIndexStats, build_index
from .lcs_diff import DiffSegment, apply_mappings, diff, find_mappings
from .matcher import MatchKind, MatchResult, MatchStrategy, match
from .normalizer import canonicalize, contains_kana
from .pipeline import (
    ConversionMode,
    ConversionStats,
    LineOutcome,
    LineStatus,
    convert_line,
    convert_lines,
)
from .reconstructor import reconstruct, reconstruct_match
from .tokenizer import Token, TokenType, render_tokens, structural_signature, tokenize

__all__ = [
    "canonicalize",
    "contains_kana",
    "Token",
    "TokenType",
    "tokenize",
    "render_tokens",
    "structural_signature",
    "CorpusIndex",
    "CorpusIndexStats",
    "build_index",
    "MatchKind",
    "MatchResult",
    "MatchStrategy",
    "match",
    "DiffSegment",
    "diff",
    "find_mappings",
    "apply_mappings",
    "reconstruct",
    "reconstruct_match",
    "ConversionMode",
    "ConversionStats",
    "LineOutcome",
    "LineStatus",
    "convert_line",
    "convert_lines",
    "needs_kanjification",
]
