from __future__ import annotations

"""Session Manager: wires stores, sinks and the engine for one user session.

CLI-agnostic: all interaction goes through a ``ui`` dict of callbacks
(``ask(prompt) -> str`` and ``inform(msg)``).
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from storage.store import ParquetResultSink

from ..adaptive import (
    AdaptiveSettings,
    EngagementTracker,
    estimate_energy,
    generate_encouragement,
    interaction_quality,
    should_trigger_energy_break,
)
from ..engine.assessment_engine import AssessmentEngine
from ..engine.models import AssessmentConfig, AssessmentResult, AssessmentState, Question
from ..results.result_manager import ResultManager
from ..stats.stats import format_summary
from ..storage.progress_store import JsonFileProgressStore, MemoryProgressStore, ProgressStore
from .explain import trace as xtrace

logger = logging.getLogger(__name__)

BACK = "b"
SAVE = "s"


def make_store(cfg: Dict[str, Any]) -> ProgressStore:
    storage = cfg.get("storage", {})
    if storage.get("backend") == "memory":
        return MemoryProgressStore()
    return JsonFileProgressStore(Path(storage.get("progress_path", "./data/progress.json")))


def _pick(choices: tuple, token: str) -> Any:
    """Resolve a 1-based index or an id to the choice's value."""
    token = token.strip()
    if token.isdigit() and 1 <= int(token) <= len(choices):
        return choices[int(token) - 1].value
    for c in choices:
        if c.id == token:
            return c.value
    raise ValueError(f"'{token}' is not one of the listed choices")


def parse_answer(question: Question, raw: str) -> Any:
    """Convert console input into the answer shape the engine scores."""
    text = raw.strip()
    if question.type == "multiple-choice":
        if question.allow_multiple:
            return [_pick(question.options, t) for t in text.split(",") if t.strip()]
        return _pick(question.options, text)
    if question.type in ("scale", "slider"):
        try:
            value = float(text)
        except ValueError:
            raise ValueError(f"Enter a number between {question.min:g} and {question.max:g}") from None
        if not (question.min <= value <= question.max):
            raise ValueError(f"Enter a number between {question.min:g} and {question.max:g}")
        return int(value) if value.is_integer() else value
    if question.type == "ranking":
        order = [_pick(question.items, t) for t in text.split(",") if t.strip()]
        if sorted(map(str, order)) != sorted(str(i.value) for i in question.items):
            raise ValueError("Rank every item exactly once, e.g. 2,1,3")
        return order
    if question.type == "text":
        if question.max_length is not None and len(text) > question.max_length:
            raise ValueError(f"Keep it under {question.max_length} characters")
        return text
    raise ValueError(f"Question type {question.type} needs per-row input")


def _describe(question: Question) -> List[str]:
    lines = [question.text]
    if question.description:
        lines.append(question.description)
    if question.type == "multiple-choice":
        lines += [f"  {i}. {o.text}" for i, o in enumerate(question.options, 1)]
        if question.allow_multiple:
            lines.append("  (comma-separated for several)")
    elif question.type in ("scale", "slider"):
        lo = question.labels.get("min") or question.labels.get(f"{question.min:g}", "")
        hi = question.labels.get("max") or question.labels.get(f"{question.max:g}", "")
        lines.append(f"  {question.min:g} {lo} .. {question.max:g} {hi}".rstrip())
    elif question.type == "ranking":
        lines += [f"  {i}. {o.text}" for i, o in enumerate(question.items, 1)]
        lines.append("  (order them best first, e.g. 2,1,3)")
    elif question.type == "matrix":
        lines += [f"  {i}. {c.text}" for i, c in enumerate(question.columns, 1)]
    return lines


@dataclass
class RuntimeState:
    last_break_index: int = -1
    answered: int = 0
    messages: List[str] = field(default_factory=list)


class SessionManager:
    def __init__(
        self,
        cfg: Dict[str, Any],
        config: AssessmentConfig,
        *,
        store: Optional[ProgressStore] = None,
        results: Optional[ResultManager] = None,
        results_sink: Any = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.cfg = cfg
        self.config = config
        self.results = results if results is not None else ResultManager()
        self._extra_sink = results_sink
        if self._extra_sink is None and cfg.get("engine", {}).get("record_results"):
            self._extra_sink = ParquetResultSink(cfg.get("storage", {}).get("results_dir", "./data/results"))
        self.engine = AssessmentEngine(config, store if store is not None else make_store(cfg), results_sink=self)
        self.settings = AdaptiveSettings.from_config(cfg)
        self.tracker = EngagementTracker(self.settings)
        self.state = RuntimeState()
        self._clock = clock

    # Engine results sink: fan out to memory and the durable sink
    def record(self, result: AssessmentResult) -> None:
        if self._extra_sink is not None:
            self._extra_sink.record(result)
        self.results.record(result)

    async def start(self, user_id: str, resume: bool = True) -> AssessmentState:
        if resume and self.config.progress_saving:
            state = await self.engine.load_assessment_state(user_id)
            if state is not None:
                logger.info("Resuming %s for %s at question %d", self.config.id, user_id, state.current_question_index + 1)
                xtrace("session_resumed", {"assessment": self.config.id, "user": user_id})
                return state
        state = await self.engine.initialize_assessment(user_id)
        xtrace("session_started", {"assessment": self.config.id, "user": user_id})
        return state

    def _ask_matrix(self, question: Question, ui: Dict[str, Callable[..., Any]]) -> Any:
        answer: Dict[str, Any] = {}
        for row in question.rows:
            while True:
                raw = ui["ask"](f"  {row.text}> ")
                try:
                    answer[row.id] = _pick(question.columns, raw)
                    break
                except ValueError as e:
                    ui["inform"](str(e))
        return answer

    def _after_answer(self, question: Question, seconds: float, ui: Dict[str, Callable[..., Any]]) -> None:
        ms = seconds * 1000
        quality = interaction_quality(ms)
        self.tracker.record_response(question.id, ms, question.type, quality)
        index = self.engine.snapshot().current_question_index
        self.tracker.update_energy_level(estimate_energy(index, quality, self.settings.energy_floor))
        metrics = self.tracker.current_metrics()
        if should_trigger_energy_break(metrics, index, self.state.last_break_index, self.settings):
            self.state.last_break_index = index
            msg = generate_encouragement(metrics, self.engine.calculate_completion_rate() * 100)
            self.state.messages.append(msg)
            ui["inform"](f"\n~ {msg}\n")
            xtrace("energy_break", {"index": index, "energy": metrics.user_energy_level})

    async def run(self, ui: Dict[str, Callable[..., Any]]) -> Dict[str, Any]:
        """Drive the session until completion or a save-and-quit.

        Commands at any prompt: ``b`` back, ``s`` save and quit; blank input
        skips optional questions.
        """
        if not self.engine.is_initialized:
            raise RuntimeError("SessionManager.start() must be called before run()")
        inform = ui["inform"]
        question = self.engine.get_current_question()
        started = self._clock()
        while question is not None:
            summary = self.engine.get_progress_summary()
            inform(f"\n[{summary.current_question}/{summary.total_questions}] " + "\n".join(_describe(question)))
            existing = self.engine.snapshot().response_for(question.id)
            if existing is not None:
                inform(f"  (current answer: {existing.answer})")

            if question.type == "matrix":
                raw = ui["ask"]("Enter to answer row by row, or a command> ")
            else:
                raw = ui["ask"]("> ")
            cmd = raw.strip().lower()

            if cmd == BACK:
                prev = self.engine.previous_question()
                if prev is None:
                    inform("Going back is not available here.")
                else:
                    question = prev
                continue
            if cmd == SAVE:
                if await self.engine.save_progress():
                    inform("Progress saved. Run again to resume.")
                    return {"status": "saved", "result": None}
                inform("Progress saving is disabled for this assessment.")
                continue

            skipped = False
            if cmd == "" and question.type != "matrix":
                if question.required:
                    inform("This question is required.")
                    continue
                skipped = True
            else:
                try:
                    if question.type == "matrix":
                        answer = self._ask_matrix(question, ui)
                    else:
                        answer = parse_answer(question, raw)
                except ValueError as e:
                    inform(str(e))
                    continue

            now = self._clock()
            elapsed = max(now - started, 0.0)
            started = now
            if not skipped:
                await self.engine.submit_response(question.id, answer, elapsed)
                self.state.answered += 1
                self._after_answer(question, elapsed, ui)
            question = self.engine.next_question()

        if not self.engine.is_complete():
            answered = {r.question_id for r in self.engine.snapshot().responses}
            missing = [q.id for q in self.config.questions if q.required and q.id not in answered]
            inform(f"Required questions still unanswered: {', '.join(missing)}")
            saved = await self.engine.save_progress()
            return {"status": "saved" if saved else "incomplete", "result": None, "missing": missing}

        result = await self.engine.complete_assessment()
        if self.config.progress_saving:
            await self.engine.clear_progress(result.user_id)
        inform("\n" + format_summary(result))
        return {"status": "completed", "result": result}
