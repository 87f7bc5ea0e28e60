"""classifier 단위 테스트."""

import pytest

from conversion.classifier import needs_kanjification


@pytest.mark.parametrize("text,expected", [
    ("まだ　ここに　いるの？", True),
    ("ポケモンをつかまえた", True),
    ("{00}は\\nげんきかな？", True),
    ("ピカチュウ", False),
    ("ポケモンゲットだぜ", False),
    ("元気です", False),
    ("あい", False),
    ("はい！", False),
    ("ABCDEFあいう", False),
    ("", False),
])
def test_needs_kanjification(text, expected):
    assert needs_kanjification(text) is expected
