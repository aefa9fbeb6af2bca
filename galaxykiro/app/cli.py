from __future__ import annotations

"""CLI for galaxykiro using SessionManager and the definitions loader."""

import argparse
import asyncio
import logging
from pathlib import Path
from typing import Any

from analytics import summarize_assessments
from storage.store import export_ndjson, load_all, query_assessment

from ..config.config import load_config, validate_config
from ..engine.assessment_engine import AssessmentEngine
from ..engine.definitions import load_definition
from ..engine.models import AssessmentConfig
from ..errors import ConfigError, DefinitionError
from ..stats.stats import write_result
from ..util.randomness import seed_if_needed
from .explain import enable as explain_enable
from .session_manager import SessionManager, make_store

logger = logging.getLogger(__name__)

PACKAGED_DIR = Path(__file__).resolve().parents[1] / "resources" / "assessments"


def resolve_definition(name: str, cfg: dict[str, Any]) -> Path:
    """Find a definition by path, then by id in the configured and packaged dirs."""
    direct = Path(name)
    if direct.is_file():
        return direct
    dirs = [Path(d) for d in [cfg.get("engine", {}).get("definitions_dir")] if d]
    dirs.append(PACKAGED_DIR)
    for d in dirs:
        for suffix in (".yml", ".yaml", ".json"):
            candidate = d / f"{name}{suffix}"
            if candidate.is_file():
                return candidate
    raise DefinitionError(f"No assessment definition named '{name}'")


def _load(name: str, cfg: dict[str, Any]) -> AssessmentConfig:
    path = resolve_definition(name, cfg)
    logger.debug("Loading definition %s", path)
    return load_definition(path).to_config()


def _build_ui() -> dict[str, Any]:
    def ask(prompt: str) -> str:
        return input(prompt)

    def inform(msg: str) -> None:
        print(msg)

    return {"ask": ask, "inform": inform}


def _show(config: AssessmentConfig) -> None:
    print(f"{config.id}: {config.title}")
    if config.description:
        print(config.description)
    print(f"Questions: {len(config.questions)} ({sum(1 for q in config.questions if q.required)} required)")
    print(f"Scoring: {config.scoring.type}")
    for cat in config.categories:
        print(f"  - {cat.id}: {cat.name} (weight {cat.weight:g})")
    if config.result_tiers:
        print("Tiers:")
        for t in config.result_tiers:
            print(f"  {t.min:g}-{t.max:g}: {t.label}")
    flags = []
    if config.allow_back_navigation:
        flags.append("back navigation")
    if config.progress_saving:
        flags.append("progress saving")
    if flags:
        print("Allows: " + ", ".join(flags))


async def _run(args: argparse.Namespace, cfg: dict[str, Any]) -> int:
    config = _load(args.assessment, cfg)
    sm = SessionManager(cfg, config)
    await sm.start(args.user, resume=not args.fresh)
    try:
        outcome = await sm.run(_build_ui())
    except (EOFError, KeyboardInterrupt):
        print()
        if await sm.engine.save_progress():
            print("Interrupted; progress saved.")
        return 130
    if outcome["status"] == "completed" and args.out:
        write_result(outcome["result"], args.out)
        print(f"Result written to {args.out}")
    return 0 if outcome["status"] in ("completed", "saved") else 1


async def _clear(args: argparse.Namespace, cfg: dict[str, Any]) -> int:
    config = _load(args.assessment, cfg)
    engine = AssessmentEngine(config, make_store(cfg))
    await engine.clear_progress(args.user)
    print(f"Cleared saved progress for {args.user} on {config.id}")
    return 0


def _results(args: argparse.Namespace, cfg: dict[str, Any]) -> int:
    data_dir = Path(cfg["storage"]["results_dir"])
    df = load_all(data_dir)
    if args.assessment:
        df = query_assessment(df, assessment_id=args.assessment, user_id=args.user)
    elif args.user:
        df = df[df["user_id"].astype("string") == args.user]
    if df.empty:
        print(f"No results stored in {data_dir}")
        return 0
    if args.export:
        export_ndjson(df, Path(args.export))
        print(f"Exported {len(df)} rows to {args.export}")
    print(summarize_assessments(df).to_string())
    return 0


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(prog="galaxykiro")
    p.add_argument("--config", default=None)
    p.add_argument("--explain", action="store_true")
    sub = p.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("show")
    sp.add_argument("assessment", help="Definition path or id")

    rp = sub.add_parser("run")
    rp.add_argument("assessment", help="Definition path or id")
    rp.add_argument("--user", required=True)
    rp.add_argument("--fresh", action="store_true", help="Ignore saved progress")
    rp.add_argument("--out", default=None, help="Write the completed result as JSON")

    cp = sub.add_parser("clear")
    cp.add_argument("assessment", help="Definition path or id")
    cp.add_argument("--user", required=True)

    rs = sub.add_parser("results")
    rs.add_argument("--assessment", default=None)
    rs.add_argument("--user", default=None)
    rs.add_argument("--export", default=None, help="Write matching rows as NDJSON")

    args = p.parse_args(argv)

    try:
        cfg = validate_config(load_config(args.config))
    except ConfigError as e:
        print(f"Config error: {e}")
        return 2
    logging.basicConfig(level=cfg["logging"]["level"], format="%(levelname)s %(name)s: %(message)s")
    explain_enable(args.explain or cfg["explain"]["enabled"])
    seed_if_needed()

    try:
        if args.cmd == "show":
            _show(_load(args.assessment, cfg))
            return 0
        if args.cmd == "run":
            return asyncio.run(_run(args, cfg))
        if args.cmd == "clear":
            return asyncio.run(_clear(args, cfg))
        if args.cmd == "results":
            return _results(args, cfg)
    except DefinitionError as e:
        print(f"Definition error: {e}")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
