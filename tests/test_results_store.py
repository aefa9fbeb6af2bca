import tempfile
import unittest
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pandas as pd
from pydantic import ValidationError

from galaxykiro.engine.assessment_engine import AssessmentEngine
from galaxykiro.engine.models import QuestionOption
from storage.schema import DTYPES, ResultRow
from storage.store import (
    DATA_FILE,
    ParquetResultSink,
    append_results,
    export_ndjson,
    init_store,
    load_all,
    query_assessment,
    rows_from_result,
    validate_records,
)

from assessment_fixtures import COLOR, SATISFACTION, TIERS, category_config, simple_config


async def _result(config, user: str = "ana"):
    engine = AssessmentEngine(config)
    await engine.initialize_assessment(user)
    await engine.submit_response("q1", "blue", 30)
    await engine.submit_response("q2", 4, 45)
    return await engine.complete_assessment()


class ResultRowTests(unittest.TestCase):
    def test_naive_timestamp_becomes_utc(self) -> None:
        row = ResultRow(
            result_id="r", assessment_id="a", user_id="u",
            completed_at=datetime(2024, 1, 1, 12, 0), score=1, max_possible=2, percentage=50,
        )
        self.assertEqual(row.completed_at.tzinfo, timezone.utc)

    def test_negative_percentage_and_tier_scope(self) -> None:
        base = dict(result_id="r", assessment_id="a", user_id="u", completed_at=datetime.now(timezone.utc), score=1, max_possible=2)
        self.assertEqual(ResultRow(**base, percentage=-25).percentage, -25)
        with self.assertRaises(ValidationError):
            ResultRow(**base, percentage=50, scope="cat", tier="Advanced")


class RowsFromResultTests(unittest.IsolatedAsyncioTestCase):
    async def test_simple_result_has_overall_row_only(self) -> None:
        rows = rows_from_result(await _result(simple_config(result_tiers=TIERS)))
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0].scope, "overall")
        self.assertEqual(rows[0].tier, "Advanced")
        self.assertEqual(rows[0].percentage, 75)
        self.assertEqual(rows[0].time_spent_s, 75)
        self.assertEqual(rows[0].n_responses, 2)

    async def test_category_result_adds_rows(self) -> None:
        rows = rows_from_result(await _result(category_config()))
        self.assertEqual([r.scope for r in rows], ["overall", "preferences", "satisfaction"])
        self.assertEqual(rows[2].weight, 2)
        self.assertEqual(rows[2].percentage, 80)


class StoreTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.data_dir = Path(self._tmp.name) / "results"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_init_and_empty_load(self) -> None:
        self.assertTrue(load_all(self.data_dir).empty)
        init_store(self.data_dir)
        self.assertTrue((self.data_dir / DATA_FILE).exists())
        df = load_all(self.data_dir)
        self.assertTrue(df.empty)
        self.assertIn("ratio", df.columns)

    async def test_validate_records_dtypes(self) -> None:
        df = validate_records(rows_from_result(await _result(category_config())))
        self.assertEqual(list(df.columns), list(DTYPES))
        self.assertEqual(str(df["percentage"].dtype), "Int32")
        self.assertTrue(pd.isna(df.loc[1, "tier"]))
        with self.assertRaises(TypeError):
            validate_records("nope")

    async def test_append_is_idempotent_per_result(self) -> None:
        init_store(self.data_dir)
        df = validate_records(rows_from_result(await _result(category_config())))
        append_results(df, self.data_dir)
        append_results(df, self.data_dir)
        self.assertEqual(len(load_all(self.data_dir)), 3)

    async def test_sink_and_query(self) -> None:
        sink = ParquetResultSink(self.data_dir)
        first = await _result(simple_config(result_tiers=TIERS), "ana")
        later = replace(first, id=first.id + "-2", completed_at=first.completed_at + timedelta(minutes=5))
        sink.record(later)
        sink.record(first)
        sink.record(await _result(simple_config(result_tiers=TIERS), "ben"))

        df = load_all(self.data_dir)
        self.assertEqual(len(df), 3)
        self.assertAlmostEqual(float(df["ratio"].iloc[0]), 0.75)
        self.assertAlmostEqual(float(df["time_per_response_s"].iloc[0]), 37.5)

        ana = query_assessment(df, assessment_id="test-assessment", user_id="ana")
        self.assertEqual(list(ana["result_id"]), [first.id, later.id])
        self.assertTrue(query_assessment(df, assessment_id="missing").empty)

        out = Path(self._tmp.name) / "export" / "ana.ndjson"
        export_ndjson(ana, out)
        self.assertEqual(len(out.read_text(encoding="utf-8").strip().splitlines()), 2)

    async def test_sink_keeps_negative_scores(self) -> None:
        penalty = replace(COLOR, options=COLOR.options + (QuestionOption(id="o4", text="Grey", value="grey", score=-9),))
        config = simple_config(questions=(penalty, SATISFACTION))
        engine = AssessmentEngine(config, results_sink=ParquetResultSink(self.data_dir))
        await engine.initialize_assessment("ana")
        await engine.submit_response("q1", "grey", 5)
        await engine.submit_response("q2", 1, 5)
        result = await engine.complete_assessment()
        self.assertEqual(result.scores.percentage, -100)
        df = load_all(self.data_dir)
        self.assertEqual(int(df["percentage"].iloc[0]), -100)


if __name__ == "__main__":
    unittest.main()
