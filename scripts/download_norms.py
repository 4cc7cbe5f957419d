#!/usr/bin/env python3
"""
awhere - Weather Norms Download Script

Fetches long-term weather norms for one field or one lat/lng and writes
them as CSV with a manifest.

- A failed download never replaces the existing output (atomic staging + commit).
- Download status is logged to the console and optionally to a log file.
"""

from __future__ import annotations
import argparse
import datetime as dt
import hashlib
import json
import logging
import os
import shutil
import sys
import tempfile
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

# Make "src/" importable when running as: python3 scripts/download_norms.py
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT / "src") not in sys.path:
    sys.path.insert(0, str(REPO_ROOT / "src"))

# -----------------------------
# Utilities
# -----------------------------


def utc_now_iso() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds")


def sha256_file(path: Path) -> str:
    h = hashlib.sha256()
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def atomic_write_bytes(dest: Path, data: bytes) -> None:
    """
    Atomic file write: write to temp file in same directory then os.replace.
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(dir=str(dest.parent), delete=False) as tf:
        tmp_path = Path(tf.name)
        tf.write(data)
        tf.flush()
        os.fsync(tf.fileno())
    os.replace(str(tmp_path), str(dest))


def atomic_write_json(dest: Path, obj: Any) -> None:
    atomic_write_bytes(
        dest, (json.dumps(obj, indent=2, ensure_ascii=False) + "\n").encode("utf-8")
    )


def safe_rmtree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)


def setup_logging(log_level: str, log_file: Optional[Path]) -> logging.Logger:
    """Route the script's and the awhere package's log records to the console (and file)."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handlers: List[logging.Handler] = []
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(fmt)
    ch.setLevel(level)
    handlers.append(ch)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(log_file, encoding="utf-8")
        fh.setFormatter(fmt)
        fh.setLevel(level)
        handlers.append(fh)

    for name in ("download_norms", "awhere"):
        lg = logging.getLogger(name)
        lg.setLevel(level)
        lg.handlers.clear()
        for h in handlers:
            lg.addHandler(h)

    return logging.getLogger("download_norms")


def parse_years(raw: str) -> List[int]:
    years = [x.strip() for x in raw.split(",") if x.strip()]
    try:
        return [int(y) for y in years]
    except ValueError as e:
        raise ValueError(f"--exclude-years must be comma-separated years, got '{raw}'") from e


# -----------------------------
# Fetch
# -----------------------------


def fetch_norms(args: argparse.Namespace, logger: logging.Logger):
    """Fetch the norms DataFrame described by the CLI arguments."""
    from awhere.api import AWhereClient

    exclude_years = parse_years(args.exclude_years)
    include_feb29 = not args.drop_feb29

    with AWhereClient() as client:
        if args.field_id:
            logger.info("Fetching norms for field %s", args.field_id)
            return client.weather_norms_fields(
                args.field_id,
                monthday_start=args.monthday_start,
                monthday_end=args.monthday_end,
                year_start=args.year_start,
                year_end=args.year_end,
                exclude_years=exclude_years,
                include_feb29=include_feb29,
            )

        logger.info("Fetching norms for %s,%s", args.lat, args.lng)
        return client.weather_norms_latlng(
            args.lat,
            args.lng,
            monthday_start=args.monthday_start,
            monthday_end=args.monthday_end,
            year_start=args.year_start,
            year_end=args.year_end,
            exclude_years=exclude_years,
            include_feb29=include_feb29,
        )


# -----------------------------
# Commit
# -----------------------------


def make_manifest(
    run_id: str,
    started_at: str,
    finished_at: str,
    request: Dict[str, Any],
    rows: int,
    committed_dir: Path,
) -> Dict[str, Any]:
    files: List[Dict[str, Any]] = []
    for p in committed_dir.rglob("*"):
        if p.is_file():
            rel = str(p.relative_to(committed_dir))
            files.append(
                {
                    "path": rel,
                    "bytes": p.stat().st_size,
                    "sha256": sha256_file(p),
                }
            )

    return {
        "run_id": run_id,
        "started_at": started_at,
        "finished_at": finished_at,
        "request": request,
        "rows": rows,
        "artifact_root": str(committed_dir),
        "files": sorted(files, key=lambda x: x["path"]),
    }


def commit_stage(stage_dir: Path, out_dir: Path, logger: logging.Logger) -> Path:
    """
    Replace <out_dir>/current with the staged run.

    The stage is copied next to `current` first, so a crash mid-copy never
    leaves a half-written `current` behind.
    """
    out_dir.mkdir(parents=True, exist_ok=True)
    current = out_dir / "current"
    tmp_target = out_dir / f"current_tmp_{int(time.time())}"

    if tmp_target.exists():
        safe_rmtree(tmp_target)
    shutil.copytree(stage_dir, tmp_target)

    backup = out_dir / f"current_backup_{int(time.time())}"
    if current.exists():
        os.replace(str(current), str(backup))
    os.replace(str(tmp_target), str(current))
    safe_rmtree(backup)

    logger.info("Committed norms to: %s", current)
    return current


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Download aWhere weather norms")
    where = p.add_mutually_exclusive_group(required=True)
    where.add_argument("--field-id", default="", help="Registered aWhere field id.")
    where.add_argument("--lat", type=float, help="Latitude (requires --lng).")
    p.add_argument("--lng", type=float, help="Longitude (requires --lat).")
    p.add_argument("--monthday-start", required=True, help="First day, MM-DD.")
    p.add_argument("--monthday-end", default="", help="Last day, MM-DD (default: single day).")
    p.add_argument("--year-start", default="", help="First year of the averaging range.")
    p.add_argument("--year-end", default="", help="Last year of the averaging range.")
    p.add_argument(
        "--exclude-years",
        default="",
        help="Comma-separated years to leave out of the average (e.g., 2010,2011).",
    )
    p.add_argument(
        "--drop-feb29",
        action="store_true",
        help="Drop the February 29 row from the output.",
    )
    p.add_argument(
        "--out-dir",
        default="data/norms",
        help="Output directory root (will create <out-dir>/current).",
    )
    p.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging verbosity.",
    )
    p.add_argument(
        "--log-file",
        default="",
        help="Optional log file path (e.g., logs/download_norms.log).",
    )
    args = p.parse_args(argv)
    if args.lat is not None and args.lng is None:
        p.error("--lat requires --lng")
    return args


def main() -> int:
    args = parse_args()

    log_file = Path(args.log_file) if args.log_file.strip() else None
    logger = setup_logging(args.log_level, log_file)

    repo_root = Path(__file__).resolve().parents[1]  # scripts/.. = repo root
    out_dir = (repo_root / args.out_dir).resolve()
    run_id = dt.datetime.now().strftime("%Y%m%d_%H%M%S")
    started_at = utc_now_iso()

    logger.info("Run ID: %s", run_id)
    logger.info("Output root: %s", out_dir)

    stage_parent = out_dir.parent / ".staging"
    stage_parent.mkdir(parents=True, exist_ok=True)
    stage_dir = stage_parent / f"run_{run_id}"
    safe_rmtree(stage_dir)
    stage_dir.mkdir(parents=True, exist_ok=True)

    t0 = time.time()
    try:
        df = fetch_norms(args, logger)
        atomic_write_bytes(
            stage_dir / "norms.csv", df.to_csv(index=False).encode("utf-8")
        )
    except Exception as e:
        logger.error("Download failed: %s: %s", type(e).__name__, e)
        logger.debug("Exception details", exc_info=True)
        logger.error("NOT committing outputs. Existing data remains unchanged.")
        safe_rmtree(stage_dir)
        return 1

    logger.info("Fetched %d rows in %.3fs", len(df), time.time() - t0)

    current = commit_stage(stage_dir, out_dir, logger)

    request = {
        "field_id": args.field_id or None,
        "lat": args.lat,
        "lng": args.lng,
        "monthday_start": args.monthday_start,
        "monthday_end": args.monthday_end or args.monthday_start,
        "year_start": args.year_start or None,
        "year_end": args.year_end or None,
        "exclude_years": parse_years(args.exclude_years),
        "include_feb29": not args.drop_feb29,
    }
    manifest = make_manifest(
        run_id, started_at, utc_now_iso(), request, len(df), current
    )
    atomic_write_json(current / "manifest_latest.json", manifest)
    logger.info("Wrote manifest: %s", current / "manifest_latest.json")

    safe_rmtree(stage_dir)
    logger.info("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
