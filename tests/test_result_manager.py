import tempfile
import unittest
from dataclasses import replace
from datetime import timedelta
from pathlib import Path

from galaxykiro.engine.assessment_engine import AssessmentEngine
from galaxykiro.results.result_manager import ResultManager
from galaxykiro.stats.stats import format_summary, write_result

from assessment_fixtures import TIERS, category_config, simple_config


async def _complete(config, user: str, blue: str = "blue", scale: int = 4):
    engine = AssessmentEngine(config)
    await engine.initialize_assessment(user)
    await engine.submit_response("q1", blue, 30)
    await engine.submit_response("q2", scale, 45)
    return await engine.complete_assessment()


class ResultManagerTests(unittest.IsolatedAsyncioTestCase):
    async def test_record_and_query(self) -> None:
        rm = ResultManager()
        first = await _complete(simple_config(result_tiers=TIERS), "ana")
        second = await _complete(simple_config(result_tiers=TIERS), "ana", blue="red", scale=1)
        other = await _complete(simple_config(result_tiers=TIERS), "ben", blue="green", scale=5)
        # ids carry a millisecond stamp, so keep them distinct and strictly ordered
        second = replace(second, id=second.id + "-b", completed_at=first.completed_at + timedelta(seconds=1))
        other = replace(other, id=other.id + "-c")
        for r in (second, first, other):
            rm.record(r)

        self.assertEqual([r.user_id for r in rm.results_for("ana")], ["ana", "ana"])
        self.assertIs(rm.latest("ana", "test-assessment"), second)
        self.assertIsNone(rm.latest("ana", "other"))
        self.assertIs(rm.get(other.id), other)

        summary = rm.summarize("test-assessment")
        self.assertEqual(summary["users"], 2)
        self.assertEqual(summary["tiers"]["Advanced"], 2)
        self.assertEqual(summary["tiers"]["Beginner"], 1)

    async def test_summarize_empty(self) -> None:
        self.assertEqual(ResultManager().summarize("x")["attempts"], 0)


class StatsTests(unittest.IsolatedAsyncioTestCase):
    async def test_format_summary(self) -> None:
        result = await _complete(category_config(), "ana")
        text = format_summary(result)
        self.assertIn("Score: 10/13 (77%)", text)
        self.assertIn("satisfaction: 80% (weight 2)", text)
        self.assertIn("Time spent: 1m 15s", text)

    async def test_write_result(self) -> None:
        result = await _complete(simple_config(result_tiers=TIERS), "ana")
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "out" / "result.json"
            write_result(result, str(path))
            self.assertIn('"assessmentId": "test-assessment"', path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
