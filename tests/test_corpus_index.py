"""corpus_index 단위 테스트."""

import pytest

from conversion.corpus_index import MAX_LOOKAHEAD, CorpusIndex, build_index
from conversion.normalizer import canonicalize


class TestFullEntries:

    def test_single_row(self):
        index = build_index(["げんき？"], ["元気？"])
        assert index.get("げんき") == "元気？"
        assert len(index) == 1
        assert index.stats.full_entries == 1

    def test_key_is_canonical(self):
        index = build_index(["{00}は　げんき？"], ["{00}は元気？"])
        assert canonicalize("{00}は　げんき？") in index
        assert index.get("はげんき") == "{00}は元気？"

    def test_short_rows_skipped(self):
        index = build_index(["はい", "げんき？"], ["はい", "元気？"])
        assert index.stats.skipped_short == 1
        assert "はい" not in index
        assert index.get("げんき") == "元気？"

    def test_empty_rows_skipped(self):
        index = build_index(["", "げんき？", "   "], ["", "元気？", "x"])
        assert index.stats.skipped_empty == 2
        assert len(index) == 1

    def test_first_writer_wins(self):
        index = build_index(["げんき？", "げんき！"], ["元気？", "元気！"])
        assert index.get("げんき") == "元気？"
        assert index.stats.duplicates_ignored == 1

    def test_unequal_lengths_pair_to_shorter(self):
        index = build_index(["げんき？", "ありがとう", "さようなら"], ["元気？", "有難う"])
        assert index.stats.rows == 2
        assert index.get("さようなら") is None

    def test_empty_key_lookup(self):
        index = build_index(["げんき？"], ["元気？"])
        assert index.get("") is None


class TestSegmentEntries:

    def test_control_delimiter_split(self):
        index = build_index(["あいうえお\\cかきくけこ"], ["亜意宇絵尾\\c蚊木区毛子"])
        assert index.get("あいうえおかきくけこ") == "亜意宇絵尾\\c蚊木区毛子"
        assert index.get("あいうえお") == "亜意宇絵尾"
        assert index.get("かきくけこ") == "蚊木区毛子"
        assert index.stats.segment_entries == 2

    def test_segment_count_mismatch(self):
        index = build_index(["あいうえお\\cかきくけこ"], ["亜意宇絵尾"])
        assert index.get("あいうえお") is None
        assert index.stats.segment_mismatches == 1
        # 줄 전체 항목은 남는다
        assert index.get("あいうえおかきくけこ") == "亜意宇絵尾"

    def test_line_break_split_off_by_default(self):
        index = build_index(["あいうえお\\nかきくけこ"], ["亜意宇絵尾\\n蚊木区毛子"])
        assert index.get("あいうえお") is None

    def test_line_break_split_enabled(self):
        index = build_index(
            ["あいうえお\\nかきくけこ"], ["亜意宇絵尾\\n蚊木区毛子"],
            split_line_breaks=True,
        )
        assert index.get("あいうえお") == "亜意宇絵尾"
        assert index.get("かきくけこ") == "蚊木区毛子"


class TestCombinationEntries:

    def test_consecutive_rows_joined(self):
        index = build_index(
            ["げんき？", "ありがとう", "さようなら"],
            ["元気？", "有難う", "左様なら"],
        )
        assert index.get("げんきありがとう") == "元気？\\n\\n有難う"
        assert index.get("げんきありがとうさようなら") == "元気？\\n\\n有難う\\n\\n左様なら"
        assert index.get("ありがとうさようなら") == "有難う\\n\\n左様なら"
        assert index.stats.combination_entries == 3

    def test_empty_row_breaks_combination(self):
        index = build_index(["げんき？", "", "さようなら"], ["元気？", "", "左様なら"])
        assert index.get("げんきさようなら") is None
        assert index.stats.combination_entries == 0

    def test_lookahead_limit(self):
        words = ["あいうA", "かきくB", "さしすC", "たちつD", "なにぬE", "はひふF", "まみむG"]
        index = build_index(words, [w.upper() for w in words])
        six = canonicalize("".join(words[:MAX_LOOKAHEAD + 1]))
        seven = canonicalize("".join(words))
        assert six in index
        assert seven not in index


class TestDeterminism:

    def test_same_input_same_index(self):
        phonetic = ["げんき？", "げんき！", "ありがとう", "あいうえお\\cかきくけこ"]
        logographic = ["元気？", "元気！", "有難う", "亜意宇絵尾\\c蚊木区毛子"]
        a = build_index(phonetic, logographic)
        b = build_index(phonetic, logographic)
        assert list(a.items()) == list(b.items())
        assert a.stats.to_dict() == b.stats.to_dict()

    def test_read_only(self):
        index = build_index(["げんき？"], ["元気？"])
        assert isinstance(index, CorpusIndex)
        with pytest.raises(TypeError):
            index._entries["x"] = "y"

    def test_as_dict_is_copy(self):
        index = build_index(["げんき？"], ["元気？"])
        d = index.as_dict()
        d["ありがとう"] = "有難う"
        assert "ありがとう" not in index
