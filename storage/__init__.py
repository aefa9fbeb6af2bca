from .schema import DTYPES, OVERALL_SCOPE, ResultRow
from .store import (
    ParquetResultSink,
    append_results,
    export_ndjson,
    init_store,
    load_all,
    query_assessment,
    rows_from_result,
    validate_records,
)

__all__ = [
    "DTYPES",
    "OVERALL_SCOPE",
    "ResultRow",
    "ParquetResultSink",
    "init_store",
    "validate_records",
    "rows_from_result",
    "append_results",
    "load_all",
    "query_assessment",
    "export_ndjson",
]
