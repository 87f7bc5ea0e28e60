"""LLM 사용량 추적.

작업 디렉토리의 llm_usage_log.jsonl에 매 호출 기록.
무료 provider(Ollama)도 기록하여 배치당 토큰·응답 시간을 비교할 수 있게 한다.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from .providers.base import LlmResponse

logger = logging.getLogger(__name__)

LOG_FILENAME = "llm_usage_log.jsonl"


class UsageTracker:
    """LLM 사용량 추적. 작업 디렉토리의 llm_usage_log.jsonl에 기록."""

    def __init__(self, config):
        self.config = config
        self._log_path: Optional[Path] = None

    def _get_log_path(self) -> Path:
        """로그 파일 경로. LlmConfig.work_dir 아래."""
        if self._log_path:
            return self._log_path

        self._log_path = Path(self.config.work_dir) / LOG_FILENAME
        self._log_path.parent.mkdir(parents=True, exist_ok=True)
        return self._log_path

    def log(self, response: LlmResponse, purpose: str = ""):
        """호출 기록 추가."""
        if not isinstance(response, LlmResponse):
            return

        self._append(response.to_usage_entry(purpose))

    def _append(self, entry: dict):
        """JSONL 파일에 한 줄 추가."""
        path = self._get_log_path()
        with open(path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")

    def _iter_entries(self, month_prefix: str):
        path = self._get_log_path()
        if not path.exists():
            return
        for line in path.read_text(encoding="utf-8").splitlines():
            if not line.strip():
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("사용량 로그의 깨진 줄을 건너뜀: %s", line[:80])
                continue
            if entry.get("type") == "call" and entry.get("ts", "").startswith(month_prefix):
                yield entry

    def get_monthly_summary(self) -> dict:
        """이번 달 사용량 요약.

        출력: {"total_calls", "total_cost_usd", "tokens_in", "tokens_out",
               "by_provider": {id: {"calls", "cost"}}, "by_model": {name: calls},
               "budget_usd", "budget_remaining_usd"}
        """
        month_prefix = datetime.now(timezone.utc).strftime("%Y-%m")

        total_calls = 0
        total_cost = 0.0
        tokens_in = 0
        tokens_out = 0
        by_provider: dict = {}
        by_model: dict = {}

        for entry in self._iter_entries(month_prefix):
            total_calls += 1
            cost = entry.get("cost_usd", 0.0) or 0.0
            total_cost += cost
            tokens_in += entry.get("tokens_in") or 0
            tokens_out += entry.get("tokens_out") or 0

            prov = entry.get("provider", "unknown")
            slot = by_provider.setdefault(prov, {"calls": 0, "cost": 0.0})
            slot["calls"] += 1
            slot["cost"] += cost

            model = entry.get("model", "unknown")
            by_model[model] = by_model.get(model, 0) + 1

        budget = float(self.config.get("monthly_budget_usd", 10.0) or 10.0)

        return {
            "total_calls": total_calls,
            "total_cost_usd": round(total_cost, 4),
            "tokens_in": tokens_in,
            "tokens_out": tokens_out,
            "by_provider": by_provider,
            "by_model": by_model,
            "budget_usd": budget,
            "budget_remaining_usd": round(budget - total_cost, 4),
        }

    def over_budget(self) -> bool:
        """이번 달 비용이 monthly_budget_usd를 넘었는지."""
        summary = self.get_monthly_summary()
        return summary["budget_remaining_usd"] < 0
