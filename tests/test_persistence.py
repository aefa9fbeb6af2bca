import json
import tempfile
import unittest
from pathlib import Path

from galaxykiro.engine.models import AssessmentState, ResponseRecord
from galaxykiro.storage.progress_store import JsonFileProgressStore, MemoryProgressStore, progress_key


class ProgressKeyTests(unittest.TestCase):
    def test_format(self) -> None:
        self.assertEqual(progress_key("pq", "u1"), "assessment_pq_u1")


class MemoryStoreTests(unittest.TestCase):
    def test_set_get_remove(self) -> None:
        store = MemoryProgressStore()
        store.set_item("k", "v")
        self.assertEqual(store.get_item("k"), "v")
        store.remove_item("k")
        store.remove_item("k")
        self.assertIsNone(store.get_item("k"))


class JsonFileStoreTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.path = Path(self._tmp.name) / "nested" / "progress.json"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_missing_file_reads_empty(self) -> None:
        store = JsonFileProgressStore(self.path)
        self.assertIsNone(store.get_item("k"))
        self.assertEqual(store.keys(), [])

    def test_values_survive_new_instance(self) -> None:
        JsonFileProgressStore(self.path).set_item("a", "1")
        JsonFileProgressStore(self.path).set_item("b", "2")
        store = JsonFileProgressStore(self.path)
        self.assertEqual(store.keys(), ["a", "b"])
        self.assertEqual(store.get_item("a"), "1")
        data = json.loads(self.path.read_text(encoding="utf-8"))
        self.assertEqual(data["schema"], 1)

    def test_malformed_file_reads_empty(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text("{broken", encoding="utf-8")
        store = JsonFileProgressStore(self.path)
        with self.assertLogs("galaxykiro.storage.progress_store", level="WARNING"):
            self.assertIsNone(store.get_item("a"))

    def test_foreign_schema_reads_empty(self) -> None:
        self.path.parent.mkdir(parents=True)
        self.path.write_text(json.dumps({"schema": "v9", "items": {"a": "1"}}), encoding="utf-8")
        self.assertIsNone(JsonFileProgressStore(self.path).get_item("a"))

    def test_remove(self) -> None:
        store = JsonFileProgressStore(self.path)
        store.set_item("a", "1")
        store.remove_item("a")
        self.assertIsNone(store.get_item("a"))


class StateSerializationTests(unittest.TestCase):
    def test_camel_case_round_trip(self) -> None:
        state = AssessmentState(assessment_id="pq", user_id="u", current_question_index=2, time_spent=12)
        state.responses.append(ResponseRecord(question_id="q1", answer={"r1": "high"}, time_spent=12))
        data = state.to_json()
        self.assertEqual(data["currentQuestionIndex"], 2)
        self.assertEqual(data["responses"][0]["questionId"], "q1")
        back = AssessmentState.from_json(json.loads(json.dumps(data)))
        self.assertEqual(back.responses[0].answer, {"r1": "high"})
        self.assertEqual(back.started_at, state.started_at)
        self.assertEqual(back.time_spent, 12)

    def test_naive_timestamp_is_utc(self) -> None:
        data = AssessmentState(assessment_id="pq", user_id="u").to_json()
        data["startedAt"] = "2024-01-02T03:04:05"
        back = AssessmentState.from_json(data)
        self.assertIsNotNone(back.started_at.tzinfo)

    def test_bad_values_raise_value_error(self) -> None:
        good = AssessmentState(assessment_id="pq", user_id="u").to_json()
        for name, value in (("timeSpent", None), ("isCompleted", "false"), ("userId", 7)):
            with self.subTest(field=name):
                with self.assertRaises(ValueError):
                    AssessmentState.from_json({**good, name: value})
        with self.assertRaises(ValueError):
            AssessmentState.from_json("not a mapping")


if __name__ == "__main__":
    unittest.main()
