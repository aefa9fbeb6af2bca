import io
import tempfile
import unittest
from contextlib import redirect_stdout
from pathlib import Path

from galaxykiro.app import explain
from galaxykiro.app.cli import PACKAGED_DIR, main
from galaxykiro.app.session_manager import SessionManager, parse_answer
from galaxykiro.config.config import validate_config
from galaxykiro.engine.definitions import load_definition
from galaxykiro.storage.progress_store import MemoryProgressStore

from assessment_fixtures import COLOR, SATISFACTION, TIERS, simple_config


class FakeUI:
    def __init__(self, answers):
        self.answers = list(answers)
        self.messages = []

    def ask(self, prompt: str) -> str:
        return self.answers.pop(0)

    def inform(self, msg: str) -> None:
        self.messages.append(msg)

    def as_dict(self):
        return {"ask": self.ask, "inform": self.inform}


class Clock:
    def __init__(self, step: float = 20.0) -> None:
        self.now = 0.0
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


def _cfg():
    return validate_config({"storage": {"backend": "memory"}, "engine": {"record_results": False}})


class ParseAnswerTests(unittest.TestCase):
    def test_choice_by_index_or_id(self) -> None:
        self.assertEqual(parse_answer(COLOR, "2"), "blue")
        self.assertEqual(parse_answer(COLOR, "o3"), "green")
        with self.assertRaises(ValueError):
            parse_answer(COLOR, "9")

    def test_scale_range(self) -> None:
        self.assertEqual(parse_answer(SATISFACTION, "4"), 4)
        self.assertEqual(parse_answer(SATISFACTION, "2.5"), 2.5)
        with self.assertRaises(ValueError):
            parse_answer(SATISFACTION, "6")
        with self.assertRaises(ValueError):
            parse_answer(SATISFACTION, "lots")


class SessionRunTests(unittest.IsolatedAsyncioTestCase):
    async def test_full_run_completes(self) -> None:
        sm = SessionManager(_cfg(), simple_config(result_tiers=TIERS), clock=Clock())
        await sm.start("ana")
        ui = FakeUI(["", "2", "4", ""])
        outcome = await sm.run(ui.as_dict())
        self.assertEqual(outcome["status"], "completed")
        result = outcome["result"]
        self.assertEqual(result.scores.percentage, 75)
        self.assertEqual(result.time_spent, 40)
        self.assertIn("This question is required.", ui.messages)
        self.assertIs(sm.results.latest("ana", "test-assessment"), result)
        self.assertEqual(len(sm.tracker.history), 2)

    async def test_save_and_resume(self) -> None:
        store = MemoryProgressStore()
        config = simple_config(allow_back_navigation=True)
        sm = SessionManager(_cfg(), config, store=store, clock=Clock())
        await sm.start("ana")
        outcome = await sm.run(FakeUI(["3", "b", "1", "s"]).as_dict())
        self.assertEqual(outcome["status"], "saved")

        resumed = SessionManager(_cfg(), config, store=store, clock=Clock())
        state = await resumed.start("ana")
        self.assertEqual(state.current_question_index, 1)
        self.assertEqual(state.responses[0].answer, "red")
        outcome = await resumed.run(FakeUI(["5", "fine"]).as_dict())
        self.assertEqual(outcome["status"], "completed")
        self.assertEqual(outcome["result"].scores.total, 6)
        self.assertEqual(store.keys(), [])

    async def test_back_and_save_unavailable(self) -> None:
        sm = SessionManager(_cfg(), simple_config(progress_saving=False), clock=Clock())
        await sm.start("ana")
        ui = FakeUI(["b", "s", "1", "1", ""])
        outcome = await sm.run(ui.as_dict())
        self.assertEqual(outcome["status"], "completed")
        self.assertIn("Going back is not available here.", ui.messages)
        self.assertIn("Progress saving is disabled for this assessment.", ui.messages)

    async def test_run_requires_start(self) -> None:
        sm = SessionManager(_cfg(), simple_config())
        with self.assertRaises(RuntimeError):
            await sm.run(FakeUI([]).as_dict())

    async def test_packaged_definition_with_matrix_free_flow(self) -> None:
        config = load_definition(PACKAGED_DIR / "potential_quotient.yml").to_config()
        sm = SessionManager(_cfg(), config, clock=Clock(step=30))
        await sm.start("ana", resume=False)
        answers = ["5", "2", "stretch", "4", "3", "8", "2,1,4,3", "5", ""]
        outcome = await sm.run(FakeUI(answers).as_dict())
        self.assertEqual(outcome["status"], "completed")
        result = outcome["result"]
        self.assertEqual(result.visualization_data.chart_type, "radar")
        self.assertEqual(result.scores.category_scores["growth_power"].percentage, 100)
        self.assertEqual(result.scores.tier.label, "Potential Powerhouse")


class CliTests(unittest.TestCase):
    def tearDown(self) -> None:
        explain.enable(False)

    def test_show(self) -> None:
        buf = io.StringIO()
        with redirect_stdout(buf):
            code = main(["show", "potential_quotient"])
        self.assertEqual(code, 0)
        self.assertIn("potential_quotient: Potential Quotient", buf.getvalue())
        self.assertIn("Scoring: category-based", buf.getvalue())

    def test_unknown_definition_exits_2(self) -> None:
        buf = io.StringIO()
        with redirect_stdout(buf):
            self.assertEqual(main(["show", "does-not-exist"]), 2)

    def test_results_empty_store(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            cfg_path = Path(tmp) / "cfg.yml"
            cfg_path.write_text(f"storage:\n  results_dir: {Path(tmp) / 'results'}\n", encoding="utf-8")
            buf = io.StringIO()
            with redirect_stdout(buf):
                self.assertEqual(main(["--config", str(cfg_path), "results"]), 0)
            self.assertIn("No results stored", buf.getvalue())


if __name__ == "__main__":
    unittest.main()
