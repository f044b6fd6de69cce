from __future__ import annotations

import json
import logging
import os
import time
from pathlib import Path
from typing import Any, Dict, Sequence


def init_run_dir(base_dir: Path) -> Path:
    base = Path(base_dir)
    base.mkdir(parents=True, exist_ok=True)
    ts = time.strftime("%Y%m%d_%H%M%S")
    run_dir = base / f"{ts}_{os.getpid()}"
    run_dir.mkdir(parents=True, exist_ok=True)
    return run_dir


# Top-level packages whose module loggers (getLogger(__name__)) write to run.log.
PACKAGE_LOGGERS = ("sales", "infra", "bot")


def configure_logging(
    run_dir: Path,
    *,
    level: int = logging.INFO,
    names: Sequence[str] = PACKAGE_LOGGERS,
) -> logging.Logger:
    log_dir = Path(run_dir) / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "run.log"

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(fmt)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(fmt)

    for name in names:
        pkg_logger = logging.getLogger(name)
        pkg_logger.setLevel(level)
        for old in list(pkg_logger.handlers):
            pkg_logger.removeHandler(old)
            old.close()
        pkg_logger.addHandler(file_handler)
        pkg_logger.addHandler(stream_handler)

    return logging.getLogger(names[0])


def append_jsonl(run_dir: Path, name: str, obj: Dict[str, Any]) -> None:
    path = Path(run_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(json.dumps(obj, ensure_ascii=False) + "\n")


def write_metrics(run_dir: Path, snapshot: Dict[str, Any]) -> None:
    path = Path(run_dir) / "metrics.json"
    path.write_text(json.dumps(snapshot, indent=2), encoding="utf-8")
