"""
======================================================================
 MatchDesk Runtime: configuration validator
======================================================================

Configuration validation script.

Validates an automation config JSON file against the runtime schema and
then runs it through the real loader, so both schema problems and values the
loader would fall back on are reported.

Design rules:
- No side effects on import
- No OBS connection
- Validation only (no mutation)
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from runtime.version import as_string as version_string  # noqa: E402
from shared.config.automation import (  # noqa: E402
    load_automation_config,
    validate_automation_config,
)


# ------------------------------------------------------------
# Paths
# ------------------------------------------------------------

DEFAULT_CONFIG = ROOT / "shared" / "config" / "automation.json"


# ------------------------------------------------------------
# Helpers
# ------------------------------------------------------------

def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        raise ValueError(f"{path}: file not found")

    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except Exception as e:
        raise ValueError(f"{path.name}: invalid JSON ({e})") from e

    if not isinstance(data, dict):
        raise ValueError(f"{path.name}: root JSON value must be an object")
    return data


def _error(msg: str):
    print(f"[CONFIG ERROR] {msg}", file=sys.stderr)


# ------------------------------------------------------------
# Validators
# ------------------------------------------------------------

def validate_automation_file(path: Path) -> List[str]:
    """
    Return a list of problems for the automation config at ``path``.

    An empty list means the file is valid.
    """
    try:
        data = _load_json(path)
    except ValueError as e:
        return [str(e)]

    problems = [f"{path.name}: {p}" for p in validate_automation_config(data)]

    config = load_automation_config(data, use_env=False)
    queued = data.get("queue")
    if isinstance(queued, list) and len(config.queue) != len(queued):
        problems.append(
            f"{path.name}: {len(queued) - len(config.queue)} queued match(es) could not be parsed"
        )

    return problems


# ------------------------------------------------------------
# Entry point
# ------------------------------------------------------------

def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate a MatchDesk automation config")
    parser.add_argument(
        "path",
        nargs="?",
        type=Path,
        default=DEFAULT_CONFIG,
        help="Config file to validate (default: shared/config/automation.json)",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    print(f"{version_string()} | validating {args.path}")

    problems = validate_automation_file(args.path)
    for problem in problems:
        _error(problem)

    if problems:
        print("Configuration validation failed.", file=sys.stderr)
        return 1

    print("Configuration validation passed.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
