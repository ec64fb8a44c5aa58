from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional

from prefect import flow, get_run_logger
from prefect.runtime import flow_run  # type: ignore

from showfinder.show_ingest.ingest_flow import run_ingest


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "y", "on")


@flow(name="show-ingest", persist_result=False)
def show_ingest(batch_size: Optional[int] = None, dry_run: Optional[bool] = None) -> Dict[str, Any]:
    """
    Prefect flow wrapper for the show ingest job.

    Delegates to `run_ingest()` and emits JSON log lines suitable for runbook checks,
    plus a per-source yield line for quick operator scanning.
    """
    logger = get_run_logger()
    logger.info("Show ingest flow started.")

    if dry_run is None:
        dry_run = _env_bool("SHOW_INGEST_DRY_RUN", False)

    report = run_ingest(batch_size=batch_size, dry_run=dry_run)

    for r in report.results:
        logger.info(
            f"[{r.url}] success={r.success} extracted={r.extracted} invalid={r.invalid} "
            f"stale={r.stale} queued={r.show_count}"
        )

    run_id = getattr(flow_run, "id", None)
    summary = report.to_dict()
    run_complete_payload = {
        "event": "show_ingest_run_complete",
        "run_id": str(run_id) if run_id else None,
        "dry_run": bool(dry_run),
        "processed": summary["processed"],
        "successful": summary["successful"],
        "total_shows": summary["total_shows"],
        "elapsed_s": round(report.elapsed_s, 2),
    }
    if report.error:
        run_complete_payload["error"] = report.error
        logger.error(json.dumps(run_complete_payload, sort_keys=True))
    else:
        logger.info(json.dumps(run_complete_payload, sort_keys=True))

    logger.info(report.message)

    return {"run_id": str(run_id) if run_id else None, **summary}


if __name__ == "__main__":
    show_ingest()
