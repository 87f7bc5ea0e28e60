"""CLI 통합 테스트: 임시 디렉토리에서 convert → find-kana → kanjify."""

from typing import Optional

import pytest

import cli.__main__ as cli_main
from llm.providers.base import BaseLlmProvider, LlmResponse
from llm.router import LlmRouter
from script_io.no_match import find_latest_file, load_no_match, write_no_match
from script_io.string_document import StringDocument

DUMP_LINES = [
    '<?xml version="1.0" encoding="UTF-8"?>',
    "<strings>",
    '  <string id="0">げんき？</string>',
    '  <string id="1">{00}の\\nすなあらし！</string>',
    '  <string id="2">まだ　ここに　いるの？</string>',
    '  <string id="3">OK</string>',
    "</strings>",
]


@pytest.fixture
def workspace(tmp_path):
    dump = tmp_path / "strings_ja.xml"
    dump.write_text("\n".join(DUMP_LINES), encoding="utf-8")
    (tmp_path / "kana.txt").write_text(
        "~~~~~~~~~~~~~~~\nText File : 001.txt\nげんき？\nすなあらし！\n", encoding="utf-8",
    )
    (tmp_path / "kanji.txt").write_text(
        "~~~~~~~~~~~~~~~\nText File : 001.txt\n元気？\n砂嵐！\n", encoding="utf-8",
    )
    return tmp_path


def _convert(ws, *extra):
    cli_main.main([
        "convert",
        "--dump", str(ws / "strings_ja.xml"),
        "--phonetic", str(ws / "kana.txt"),
        "--logographic", str(ws / "kanji.txt"),
        "--output", str(ws / "strings_kanji_ja.xml"),
        "--logs", str(ws / "logs"),
        *extra,
    ])


class TestConvert:

    def test_end_to_end(self, workspace, capsys):
        _convert(workspace)

        doc = StringDocument.load(workspace / "strings_kanji_ja.xml")
        assert doc.entry_at(2).text == "元気？"
        assert doc.entry_at(3).text == "{00}の\\n砂嵐！"
        assert doc.entry_at(4).text == "まだ　ここに　いるの？"
        assert doc.entry_at(5).text == "OK"

        logs = workspace / "logs"
        assert load_no_match(find_latest_file(logs)) == [(4, "まだ　ここに　いるの？")]
        reports = list(logs.glob("report_*.txt"))
        assert len(reports) == 1
        assert "Strings matched: 2" in reports[0].read_text(encoding="utf-8")
        assert "KANA TO KANJI CONVERSION REPORT" in capsys.readouterr().out

    def test_diff_mode_with_workers(self, workspace):
        _convert(workspace, "--mode", "diff", "--workers", "2")
        doc = StringDocument.load(workspace / "strings_kanji_ja.xml")
        assert doc.entry_at(2).text == "元気？"
        assert doc.entry_at(3).text == "{00}の\\n砂嵐！"

    def test_missing_corpus(self, workspace, capsys):
        (workspace / "kana.txt").unlink()
        with pytest.raises(SystemExit) as exc:
            _convert(workspace)
        assert exc.value.code == 1
        assert "오류" in capsys.readouterr().err


class TestFindKana:

    def test_collects_lines_needing_kanji(self, workspace, capsys):
        cli_main.main([
            "find-kana",
            "--input", str(workspace / "strings_ja.xml"),
            "--logs", str(workspace / "logs"),
        ])
        entries = load_no_match(find_latest_file(workspace / "logs"))
        # げんき？ 는 정규형 3자로 통과, すなあらし 줄도 대상
        assert [e.line for e in entries] == [2, 3, 4]
        out = capsys.readouterr().out
        assert "SUMMARY" in out
        assert "가나가 있는 줄: 3" in out


class ScriptedProvider(BaseLlmProvider):
    provider_id = "scripted"
    display_name = "Scripted"

    async def is_available(self) -> bool:
        return True

    async def call(self, prompt, *, system: Optional[str] = None, model=None,
                   max_tokens=8192, temperature=None, purpose="kanjify", **kwargs):
        return LlmResponse(
            text='<string line="4">まだ　此処に　居るの？</string>',
            provider=self.provider_id,
            model="scripted-model",
        )


class TestKanjify:

    def test_no_no_match_file(self, workspace, capsys):
        with pytest.raises(SystemExit) as exc:
            cli_main.main([
                "kanjify",
                "--output", str(workspace / "strings_ja.xml"),
                "--logs", str(workspace / "empty"),
            ])
        assert exc.value.code == 1
        assert "no_match" in capsys.readouterr().err

    def test_writes_back_converted_lines(self, workspace, monkeypatch, capsys):
        output = workspace / "strings_ja.xml"
        no_match = write_no_match(workspace / "logs" / "no_match_x.xml",
                                  [(4, "まだ　ここに　いるの？")])
        monkeypatch.setattr(
            cli_main, "LlmRouter",
            lambda config: LlmRouter(config, providers=[ScriptedProvider(config)]),
        )

        cli_main.main([
            "kanjify",
            "--output", str(output),
            "--no-match", str(no_match),
            "--logs", str(workspace / "logs"),
        ])

        doc = StringDocument.load(output)
        assert doc.entry_at(4).text == "まだ　此処に　居るの？"
        assert doc.entry_at(2).text == "げんき？"
        out = capsys.readouterr().out
        assert "CONVERSION COMPLETE" in out
        assert "변환율: 100.00%" in out

    def test_zero_batch_size_rejected(self, workspace, monkeypatch, capsys):
        """--batch-size 0은 설정값으로 바뀌지 않고 오류로 끝난다."""
        no_match = write_no_match(workspace / "logs" / "no_match_x.xml",
                                  [(4, "まだ　ここに　いるの？")])
        monkeypatch.setattr(
            cli_main, "LlmRouter",
            lambda config: LlmRouter(config, providers=[ScriptedProvider(config)]),
        )

        with pytest.raises(SystemExit) as exc:
            cli_main.main([
                "kanjify",
                "--output", str(workspace / "strings_ja.xml"),
                "--no-match", str(no_match),
                "--logs", str(workspace / "logs"),
                "--batch-size", "0",
            ])
        assert exc.value.code == 1
        assert "batch_size" in capsys.readouterr().err
