"""pipeline 단위 테스트: 줄 상태 분류, diff 방식, 통계."""

import pytest

from conversion.corpus_index import build_index
from conversion.matcher import MatchStrategy
from conversion.pipeline import (
    ConversionMode,
    ConversionStats,
    LineStatus,
    convert_line,
    convert_lines,
)


@pytest.fixture
def index():
    return build_index(
        ["げんき？", "", "ポケモン", "", "わたしは　げんきです！", "", "すなあらし！"],
        ["元気？", "", "ポケモン", "", "私は元気です！", "", "砂嵐！"],
    )


class TestConvertLine:

    def test_no_kana_skipped(self, index):
        outcome = convert_line("ABC", index)
        assert outcome.status == LineStatus.SKIPPED
        assert outcome.text == "ABC"
        assert outcome.strategy == MatchStrategy.NONE

    def test_unknown_line_no_match(self, index):
        outcome = convert_line("まったくしらない", index)
        assert outcome.status == LineStatus.NO_MATCH
        assert outcome.text == "まったくしらない"
        assert not outcome.changed

    def test_converted(self, index):
        outcome = convert_line("げんき？", index)
        assert outcome.status == LineStatus.CONVERTED
        assert outcome.text == "元気？"
        assert outcome.strategy == MatchStrategy.EXACT
        assert outcome.changed

    @pytest.mark.parametrize("escape", ["\\c", "\\r"])
    def test_control_escape_survives_replace(self, index, escape):
        outcome = convert_line(f"げんき{escape}？", index)
        assert outcome.status == LineStatus.CONVERTED
        assert outcome.text == f"元気{escape}？"

    def test_found_but_identical_is_unchanged(self, index):
        outcome = convert_line("ポケモン", index)
        assert outcome.status == LineStatus.UNCHANGED
        assert outcome.text == "ポケモン"

    def test_bad_mode(self, index):
        with pytest.raises(ValueError):
            convert_line("げんき？", index, mode="fuzzy")

    def test_to_dict(self, index):
        d = convert_line("げんき？", index).to_dict()
        assert d["status"] == "converted"
        assert d["strategy"] == "exact"
        assert d["mappings"] == []


class TestDiffMode:

    def test_only_changed_spans_replaced(self, index):
        outcome = convert_line("{00}わたしは\\nげんきです！", index, mode="diff")
        assert outcome.text == "{00}私は\\n元気です！"
        assert len(outcome.mappings) == 2
        assert outcome.status == LineStatus.CONVERTED

    def test_segmented_match_falls_back_to_replace(self, index):
        outcome = convert_line("{00}の\\nすなあらし！", index, mode=ConversionMode.DIFF)
        assert outcome.strategy == MatchStrategy.SHORT_PREFIX
        assert outcome.text == "{00}の\\n砂嵐！"
        assert outcome.mappings == []


class TestConvertLines:

    LINES = ["ABC", "げんき？", "ポケモン", "まったくしらない", "{00}の\\nすなあらし！"]

    def test_order_preserved_with_workers(self, index):
        serial = convert_lines(self.LINES, index)
        threaded = convert_lines(self.LINES * 5, index, workers=4)
        assert [o.text for o in threaded] == [o.text for o in serial] * 5

    def test_empty_input(self, index):
        assert convert_lines([], index, workers=4) == []


class TestConversionStats:

    def test_counts(self, index):
        outcomes = convert_lines(["ABC", "げんき？", "ポケモン", "まったくしらない"], index)
        stats = ConversionStats.from_outcomes(outcomes)
        assert stats.total == 4
        assert stats.skipped == 1
        assert stats.with_kana == 3
        assert stats.converted == 1
        assert stats.unchanged == 1
        assert stats.no_match == 1
        assert stats.matched == 2
        assert stats.match_rate == pytest.approx(2 / 3)
        assert stats.strategies == {"exact": 2}

    def test_empty(self):
        stats = ConversionStats.from_outcomes([])
        assert stats.total == 0
        assert stats.match_rate == 0.0
        assert stats.to_dict()["match_rate"] == 0.0
