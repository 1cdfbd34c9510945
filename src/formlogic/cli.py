"""
FormLogic Command Line Interface

Commands for form pack authors:

    formlogic check packs/family_intake.yaml
    formlogic check packs/
    formlogic evaluate packs/family_intake.yaml --data '{"hasChildren": true}'

`check` exits non-zero when a pack fails to load or has configuration
diagnostics. `evaluate` prints the active state and validation result for
a data snapshot as JSON.
"""
from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Optional, Sequence

from .canon import state_hash
from .config import get_settings
from .engine import collect_diagnostics, recompute_active_state, validate_form
from .exceptions import FormPackError
from .logging_config import configure_logging
from .models import FormDefinition
from .packs import FormPackLoader
from .packs.loader import PACK_SUFFIXES


def _pack_paths(target: Path) -> list[Path]:
    if target.is_dir():
        return sorted(p for p in target.iterdir() if p.suffix.lower() in PACK_SUFFIXES)
    return [target]


def _print_pack_error(path: Path, error: FormPackError) -> None:
    print(f"  [ERROR] {path}: {error.message}")
    errors = error.details.get("errors") if error.details else None
    if isinstance(errors, list):
        for i, err in enumerate(errors[:20], 1):
            loc = " -> ".join(str(x) for x in err.get("loc", []))
            print(f"    {i}. {loc}: {err.get('msg', 'Unknown')}")
        if len(errors) > 20:
            print(f"    ... and {len(errors) - 20} more errors")
    elif errors:
        print(f"    {errors}")


def cmd_check(args: argparse.Namespace) -> int:
    """Load packs and report configuration diagnostics."""
    loader = FormPackLoader(strict_version=not args.lenient)
    target = Path(args.pack)
    if not target.exists():
        print(f"  [ERROR] Not found: {target}")
        return 1

    failures = 0
    for path in _pack_paths(target):
        try:
            form = loader.load(path)
        except FormPackError as e:
            _print_pack_error(path, e)
            failures += 1
            continue

        diagnostics = collect_diagnostics(form.fields, form.sections)
        if diagnostics:
            failures += 1
            print(f"  [FAIL] {form.id} ({path}): {len(diagnostics)} problems")
            for problem in diagnostics:
                print(f"    - [{problem.code}] {problem.message}")
        else:
            print(f"  [OK] {form.id} ({len(form.fields)} fields)")

    return 1 if failures else 0


def _evaluate(form: FormDefinition, data: dict[str, Any]) -> dict[str, Any]:
    active_state = recompute_active_state(form.fields, data, sections=form.sections)
    result = validate_form(data, form.fields, active_state)
    return {
        "form_id": form.id,
        "active_state": {name: s.to_dict() for name, s in active_state.items()},
        "validation": result.to_dict(),
        "state_hash": state_hash(active_state),
    }


def _read_data(raw: Optional[str]) -> dict[str, Any]:
    if not raw:
        return {}
    if raw.startswith("@"):
        raw = Path(raw[1:]).read_text(encoding="utf-8")
    data = json.loads(raw)
    if not isinstance(data, dict):
        raise ValueError("Data snapshot must be a JSON object")
    return data


def cmd_evaluate(args: argparse.Namespace) -> int:
    """Print active state and validation result for a data snapshot."""
    try:
        form = FormPackLoader(strict_version=not args.lenient).load(args.pack)
    except FormPackError as e:
        _print_pack_error(Path(args.pack), e)
        return 1

    try:
        data = _read_data(args.data)
    except (OSError, ValueError) as e:
        print(f"  [ERROR] Invalid --data: {e}")
        return 1

    output = _evaluate(form, data)
    print(json.dumps(output, indent=2, sort_keys=True, default=str))
    return 0 if output["validation"]["is_valid"] else 2


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="FormLogic form pack tools",
        prog="formlogic",
    )
    parser.add_argument(
        "--lenient",
        action="store_true",
        help="Accept packs with a different schema major version",
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Check command
    check_parser = subparsers.add_parser("check", help="Validate packs and report diagnostics")
    check_parser.add_argument("pack", help="Form pack file or directory")
    check_parser.set_defaults(func=cmd_check)

    # Evaluate command
    eval_parser = subparsers.add_parser("evaluate", help="Evaluate a data snapshot")
    eval_parser.add_argument("pack", help="Form pack file")
    eval_parser.add_argument(
        "--data",
        help="JSON object of field values, or @path to a JSON file",
    )
    eval_parser.set_defaults(func=cmd_evaluate)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    configure_logging(get_settings())
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
