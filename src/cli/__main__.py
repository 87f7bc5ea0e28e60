"""CLI 도구: 가나 → 한자 스크립트 변환기.

사용법:
    python -m cli convert --dump strings_ja.xml --phonetic kana.txt \\
        --logographic kanji.txt --output strings_kanji_ja.xml [--logs logs]
    python -m cli find-kana --input strings_kanji_ja.xml [--logs logs]
    python -m cli kanjify --output strings_kanji_ja.xml [--no-match FILE | --logs logs]

pip install -e . 후 실행하거나, src/ 디렉토리에서 실행한다.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# src/ 디렉토리를 Python 경로에 추가하여 pip install 없이도 실행 가능하게 한다.
_src_dir = str(Path(__file__).resolve().parent.parent)
if _src_dir not in sys.path:
    sys.path.insert(0, _src_dir)

from conversion.classifier import needs_kanjification  # noqa: E402
from conversion.corpus_index import build_index  # noqa: E402
from conversion.kanjify_llm import kanjify_entries  # noqa: E402
from conversion.normalizer import contains_kana  # noqa: E402
from conversion.pipeline import ConversionStats, LineStatus, convert_lines  # noqa: E402
from llm.config import LlmConfig  # noqa: E402
from llm.providers.base import LlmProviderError, LlmUnavailableError  # noqa: E402
from llm.router import LlmRouter  # noqa: E402
from script_io.corpus import load_parallel_corpus  # noqa: E402
from script_io.no_match import find_latest_file, load_no_match, write_no_match  # noqa: E402
from script_io.report import RULE, render_report, timestamp_slug, write_report  # noqa: E402
from script_io.string_document import StringDocument  # noqa: E402


def _fail(message: str):
    print(f"오류: {message}", file=sys.stderr)
    sys.exit(1)


def cmd_convert(args):
    """말뭉치로 문서를 변환하고 no_match 파일과 보고서를 남긴다."""
    try:
        print("1단계: 말뭉치 읽기")
        phonetic, logographic = load_parallel_corpus(args.phonetic, args.logographic)
        index = build_index(phonetic, logographic, split_line_breaks=args.split_line_breaks)
        print(f"  색인 항목: {len(index)}\n")

        print("2단계: 문서 읽기")
        doc = StringDocument.load(args.dump)
    except FileNotFoundError as e:
        _fail(str(e))

    entries = list(doc.entries())
    print(f"  <string> 항목: {len(entries)}\n")

    print("3단계: 매칭 및 재구성")
    outcomes = convert_lines(
        [entry.text for entry in entries], index,
        mode=args.mode, workers=args.workers,
    )

    for_llm = []
    for entry, outcome in zip(entries, outcomes):
        if outcome.changed:
            doc.replace_text(entry.line_no, outcome.text)
        elif outcome.status == LineStatus.NO_MATCH and needs_kanjification(entry.text):
            for_llm.append((entry.line_no, entry.text))

    stats = ConversionStats.from_outcomes(outcomes)
    print(f"  찾음: {stats.matched}, 못 찾음: {stats.no_match}\n")

    print("4단계: 결과 저장")
    logs_dir = Path(args.logs)
    ts = timestamp_slug()
    output_path = doc.save(args.output)
    no_match_path = write_no_match(logs_dir / f"no_match_{ts}.xml", for_llm)
    print(f"  출력: {output_path}")
    print(f"  LLM 입력: {no_match_path} ({len(for_llm)}줄)\n")

    report = render_report(
        stats,
        index.stats,
        needing_llm=len(for_llm),
        paths={
            "Input document": args.dump,
            "Output document": output_path,
            "Phonetic corpus": args.phonetic,
            "Logographic corpus": args.logographic,
            "LLM input": no_match_path,
        },
        timestamp=ts,
    )
    report_path = write_report(logs_dir / f"report_{ts}.txt", report)
    print(report)
    print(f"\n보고서: {report_path}")


def cmd_find_kana(args):
    """이미 변환된 문서에서 아직 한자화가 필요한 줄을 모은다."""
    try:
        doc = StringDocument.load(args.input)
    except FileNotFoundError as e:
        _fail(str(e))

    with_kana = 0
    found = []
    for entry in doc.entries():
        if not contains_kana(entry.text):
            continue
        with_kana += 1
        if needs_kanjification(entry.text):
            found.append((entry.line_no, entry.text))

    path = write_no_match(Path(args.logs) / f"no_match_{timestamp_slug()}.xml", found)

    print(RULE)
    print("SUMMARY")
    print(RULE)
    print(f"가나가 있는 줄: {with_kana}")
    print(f"한자화 대상: {len(found)}")
    print(f"출력: {path}")
    print(RULE)


async def _run_kanjify(entries, config: LlmConfig, args):
    router = LlmRouter(config)
    status = await router.get_status()
    if not any(info["available"] for info in status.values()):
        raise LlmUnavailableError(
            "사용 가능한 LLM provider가 없습니다. (ollama serve 또는 GOOGLE_API_KEY 확인)"
        )
    for pid, info in status.items():
        mark = "✓" if info["available"] else "✗"
        print(f"  {mark} {info['display_name']} ({pid})")

    def on_progress(p):
        print(f"  배치 {p['batch']}/{p['total_batches']}: "
              f"누적 변환 {p['converted']}/{p['total']}")

    return await kanjify_entries(
        entries,
        router,
        batch_size=(
            args.batch_size if args.batch_size is not None
            else config.get_int("kanjify_batch_size", 100)
        ),
        max_retries=(
            args.max_retries if args.max_retries is not None
            else config.get_int("kanjify_max_retries", 2)
        ),
        force_provider=args.provider,
        force_model=args.model,
        progress_callback=on_progress,
    )


def cmd_kanjify(args):
    """no_match 파일의 줄을 LLM으로 한자화해 출력 문서에 되쓴다."""
    logs_dir = Path(args.logs)
    no_match_path = Path(args.no_match) if args.no_match else find_latest_file(logs_dir)
    if no_match_path is None:
        _fail(f"no_match 파일이 없습니다: {logs_dir} (먼저 convert 또는 find-kana 실행)")

    try:
        entries = load_no_match(no_match_path)
        doc = StringDocument.load(args.output)
    except FileNotFoundError as e:
        _fail(str(e))

    print(f"입력: {no_match_path} ({len(entries)}줄)")
    if not entries:
        print("변환할 줄이 없습니다.")
        return

    config = LlmConfig(work_dir=logs_dir)
    try:
        result = asyncio.run(_run_kanjify(entries, config, args))
    except (LlmUnavailableError, LlmProviderError, ValueError) as e:
        _fail(str(e))

    updated = sum(
        1 for line_no, text in result.converted.items()
        if doc.replace_text(line_no, text)
    )
    doc.save(args.output)

    print()
    print(RULE)
    print("CONVERSION COMPLETE")
    print(RULE)
    print(f"처리한 줄: {result.total}")
    print(f"변환 성공: {len(result.converted)} (문서 반영 {updated})")
    print(f"구조 불일치로 거부: {len(result.rejected)}")
    print(f"응답 없음/실패: {len(result.failed_lines)}")
    print(f"변환율: {result.conversion_rate * 100:.2f}%")
    print(RULE)
    print(f"\n출력: {args.output}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kana-kanji",
        description="가나 → 한자 게임 스크립트 변환기: CLI 도구",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="디버그 로그 출력")
    subparsers = parser.add_subparsers(dest="command")

    # convert
    p_conv = subparsers.add_parser(
        "convert",
        help="병렬 말뭉치로 문서의 가나 줄을 한자 표기로 바꾼다",
    )
    p_conv.add_argument("--dump", required=True, help="원본 <string> 문서")
    p_conv.add_argument("--phonetic", required=True, help="가나판 말뭉치 텍스트")
    p_conv.add_argument("--logographic", required=True, help="한자판 말뭉치 텍스트")
    p_conv.add_argument("--output", required=True, help="변환 결과 문서")
    p_conv.add_argument("--logs", default="logs", help="no_match 파일·보고서 디렉토리")
    p_conv.add_argument("--mode", choices=["replace", "diff"], default="replace",
                        help="replace: 내용 전체 교체, diff: 바뀐 부분만 적용")
    p_conv.add_argument("--split-line-breaks", action="store_true",
                        help="\\n 기준 부분 항목도 색인한다")
    p_conv.add_argument("--workers", type=int, default=1, help="병렬 처리 스레드 수")
    p_conv.set_defaults(func=cmd_convert)

    # find-kana
    p_find = subparsers.add_parser(
        "find-kana",
        help="한자화가 더 필요한 줄을 no_match 파일로 모은다",
    )
    p_find.add_argument("--input", required=True, help="검사할 <string> 문서")
    p_find.add_argument("--logs", default="logs", help="출력 디렉토리")
    p_find.set_defaults(func=cmd_find_kana)

    # kanjify
    p_kan = subparsers.add_parser(
        "kanjify",
        help="no_match 파일의 줄을 LLM으로 한자화한다",
    )
    p_kan.add_argument("--output", required=True, help="되쓸 <string> 문서")
    p_kan.add_argument("--no-match", help="no_match 파일 (생략 시 --logs에서 최신 파일)")
    p_kan.add_argument("--logs", default="logs", help="no_match 파일·사용량 로그 디렉토리")
    p_kan.add_argument("--provider", choices=["ollama", "gemini"], help="provider 고정")
    p_kan.add_argument("--model", help="모델 고정 (--provider와 함께)")
    p_kan.add_argument("--batch-size", type=int, help="배치당 줄 수 (기본 100)")
    p_kan.add_argument("--max-retries", type=int, help="배치당 재시도 횟수 (기본 2)")
    p_kan.set_defaults(func=cmd_kanjify)

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        sys.exit(1)

    args.func(args)


if __name__ == "__main__":
    main()
