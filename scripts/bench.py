#!/usr/bin/env python3
# ruff: noqa: E402
from __future__ import annotations

import argparse
import json
import os
import platform
import sys
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

# Ensure repo root (which contains `microchess/`) is importable when running directly
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)

from microchess.config import LEVELS, level
from microchess.engine.board import Board
from microchess.search.service import SearchResult, SearchService


DEFAULT_POSITIONS = os.path.join(REPO_ROOT, "assets", "benchmarks", "positions.json")


@dataclass
class BenchItem:
    id: str
    name: str
    board: List[int]
    level: Optional[str] = None


def load_positions(path: str) -> List[BenchItem]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    items: List[BenchItem] = []
    for obj in data.get("positions", []):
        items.append(
            BenchItem(
                id=str(obj.get("id", obj.get("name", "pos"))),
                name=str(obj.get("name", "Unnamed")),
                board=[int(v, 0) if isinstance(v, str) else int(v) for v in obj["board"]],
                level=obj.get("level"),
            )
        )
    return items


def bench_position(
    svc: SearchService,
    item: BenchItem,
    *,
    level_name: str,
    iterations: int,
) -> Dict[str, Any]:
    try:
        board = Board.from_squares(item.board)
    except ValueError as e:
        raise ValueError(f"Invalid board for {item.id}: {e}")
    strength = level(item.level or level_name)

    total_time = 0
    total_nodes = 0
    last: Optional[SearchResult] = None
    for _ in range(max(1, iterations)):
        res = svc.search(board, strength)
        total_time += max(0, res.time_ms)
        total_nodes += max(0, res.nodes)
        last = res

    assert last is not None

    avg_time = int(total_time / max(1, iterations))
    avg_nodes = int(total_nodes / max(1, iterations))
    nps = int(avg_nodes * 1000 / max(1, avg_time)) if avg_time > 0 else 0
    return {
        "id": item.id,
        "name": item.name,
        "level": item.level or level_name,
        "best_move": last.best_move.as_dict() if last.best_move else None,
        "score": last.score,
        "mate": last.mate,
        "lines": last.lines,
        "time_ms": avg_time,
        "nodes": avg_nodes,
        "nps": nps,
    }


def main() -> None:
    parser = argparse.ArgumentParser(description="Run engine benchmarks over a positions suite")
    parser.add_argument("--positions", default=DEFAULT_POSITIONS, help="Path to positions.json")
    parser.add_argument("--level", default="normal", choices=sorted(LEVELS), help="Default level")
    parser.add_argument(
        "--iterations", type=int, default=1, help="Repeat runs per position and average"
    )
    parser.add_argument("--out", type=str, default=None, help="Write JSON results to file path")
    parser.add_argument("--pretty", action="store_true", help="Pretty-print JSON output")
    parser.add_argument(
        "--progress", action="store_true", help="Print per-position progress to stderr"
    )
    args = parser.parse_args()

    items = load_positions(args.positions)
    if not items:
        raise SystemExit("No positions found in positions file")

    svc = SearchService()
    results: List[Dict[str, Any]] = []
    t0 = time.perf_counter()
    for idx, it in enumerate(items, start=1):
        if args.progress:
            sys.stderr.write(f"[{idx}/{len(items)}] {it.id}: running...\n")
            sys.stderr.flush()
        res = bench_position(svc, it, level_name=args.level, iterations=max(1, args.iterations))
        results.append(res)
        if args.progress:
            sys.stderr.write(
                f"    time={res['time_ms']}ms nodes={res['nodes']} nps={res['nps']} best={res['best_move']}\n"
            )
            sys.stderr.flush()

    dt_ms = int((time.perf_counter() - t0) * 1000)
    total_nodes = sum(r["nodes"] for r in results)
    payload = {
        "meta": {
            "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
            "python": sys.version.split()[0],
            "platform": platform.platform(),
            "engine": {"version": "0.1.0"},
            "config": {
                "positions_file": os.path.relpath(args.positions, REPO_ROOT),
                "iterations": max(1, args.iterations),
                "level": args.level,
            },
        },
        "results": results,
        "summary": {
            "positions": len(results),
            "total_time_ms": dt_ms,
            "total_nodes": total_nodes,
            "overall_nps": int(total_nodes * 1000 / max(1, dt_ms)) if dt_ms > 0 else 0,
        },
    }

    if args.out:
        out_dir = os.path.dirname(args.out)
        if out_dir:
            os.makedirs(out_dir, exist_ok=True)
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2 if args.pretty else None)
        print(args.out)
    else:
        print(json.dumps(payload, indent=2 if args.pretty else None))


if __name__ == "__main__":
    main()
