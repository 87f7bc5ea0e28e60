"""CLI 도구 패키지. python -m cli 로 실행한다."""
