# backend/house_health/cli/__main__.py
from __future__ import annotations

import argparse
import json
from datetime import date
from typing import Any

from house_health.cli.seed_demo import seed_demo
from house_health.db import SessionLocal, init_db
from house_health.logging_config import configure_logging
from house_health.schemas import RecommendationOut, ScoreResultOut
from house_health.services.health_service import (
    RecomputeOutcome,
    list_recommendations,
    recompute_house_health,
    resolve_recommendation,
    sweep_house_health,
)


def _print(payload: dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False, default=str, indent=2))


def _recs(rows) -> list[dict]:
    return [RecommendationOut.model_validate(r).model_dump(mode="json") for r in rows]


def score_payload(out: RecomputeOutcome) -> ScoreResultOut:
    r = out.result
    return ScoreResultOut(
        house_id=out.house_id,
        overall_score=r.overall_score,
        category_scores=r.category_scores,
        age_deduction=r.age_deduction,
        structure_bonus=r.structure_bonus,
        base_score=r.base_score,
        recommendations=r.recommendations,
        created=[RecommendationOut.model_validate(x) for x in out.created],
        unchanged_count=len(out.unchanged),
        duplicate_count=out.duplicates,
    )


def _cmd_recompute(args: argparse.Namespace) -> dict:
    db = SessionLocal()
    try:
        out = recompute_house_health(db, args.house_id, now=args.as_of, actor="cli")
        return {"ok": True, **score_payload(out).model_dump(mode="json")}
    finally:
        db.close()


def _cmd_sweep(args: argparse.Namespace) -> dict:
    db = SessionLocal()
    try:
        return {"ok": True, "sweep": sweep_house_health(db, now=args.as_of)}
    finally:
        db.close()


def _cmd_recommendations(args: argparse.Namespace) -> dict:
    db = SessionLocal()
    try:
        rows = list_recommendations(
            db, args.house_id, include_resolved=args.include_resolved, risk_level=args.risk_level
        )
        return {"ok": True, "house_id": args.house_id, "recommendations": _recs(rows)}
    finally:
        db.close()


def _cmd_resolve(args: argparse.Namespace) -> dict:
    db = SessionLocal()
    try:
        row = resolve_recommendation(db, args.house_id, args.id, actor="cli")
        return {"ok": True, "recommendation": _recs([row])[0]}
    finally:
        db.close()


def _cmd_seed_demo(args: argparse.Namespace) -> dict:
    out = seed_demo(house_name=args.house_name, built_year=args.built_year, structure_type=args.structure_type)
    return {"ok": True, "house_id": out.house_id, "components": out.component_count, "created": out.created}


def _cmd_init_db(args: argparse.Namespace) -> dict:
    init_db()
    return {"ok": True}


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="house_health")
    sub = p.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("init-db")
    sp.set_defaults(func=_cmd_init_db)

    sp = sub.add_parser("seed-demo")
    sp.add_argument("--house-name", default="デモ邸")
    sp.add_argument("--built-year", type=int, default=2006)
    sp.add_argument("--structure-type", default="wood", choices=["wood", "steel", "rc", "src", "unknown"])
    sp.set_defaults(func=_cmd_seed_demo)

    sp = sub.add_parser("recompute")
    sp.add_argument("--house-id", type=int, required=True)
    sp.add_argument("--as-of", type=date.fromisoformat, default=None)
    sp.set_defaults(func=_cmd_recompute)

    sp = sub.add_parser("sweep")
    sp.add_argument("--as-of", type=date.fromisoformat, default=None)
    sp.set_defaults(func=_cmd_sweep)

    sp = sub.add_parser("recommendations")
    sp.add_argument("--house-id", type=int, required=True)
    sp.add_argument("--include-resolved", action="store_true")
    sp.add_argument("--risk-level", default=None, choices=["high", "medium", "low"])
    sp.set_defaults(func=_cmd_recommendations)

    sp = sub.add_parser("resolve")
    sp.add_argument("--house-id", type=int, required=True)
    sp.add_argument("--id", type=int, required=True)
    sp.set_defaults(func=_cmd_resolve)

    return p


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    args = build_parser().parse_args(argv)
    _print(args.func(args))


if __name__ == "__main__":
    main()
