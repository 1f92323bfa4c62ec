from __future__ import annotations

import json
import sys
from pathlib import Path

from dsgate.ci.engine import CIReportEngine
from dsgate.ci.render import color_enabled, render_report
from dsgate.registry import load_registry


def run_validate_ci(
    *,
    source_path: Path,
    registry_path: Path,
    fmt: str,
    output_path: Path | None,
    fail_on_violations: bool,
    json_output: bool,
    allowed_hardcoded_values: list[str],
    glob_pattern: str,
    ignore_patterns: list[str],
    check_tokens: bool,
    check_props: bool,
    check_variants: bool,
    group_by: str,
    verbose: bool,
    no_color: bool,
) -> int:
    if verbose:
        print(f"[dsgate validate-ci] registry: {registry_path}", file=sys.stderr)
        print(f"[dsgate validate-ci] source: {source_path}", file=sys.stderr)

    engine = CIReportEngine(load_registry(registry_path), verbose=verbose)
    result = engine.validate_directory(
        source_path,
        glob_pattern=glob_pattern,
        ignore_patterns=ignore_patterns,
        check_tokens=check_tokens,
        check_props=check_props,
        check_variants=check_variants,
        allowed_hardcoded_values=allowed_hardcoded_values,
    )

    if output_path is not None:
        report = render_report(result, fmt, group_by=group_by, color=False)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(report, encoding="utf-8", newline="\n")
        if not json_output:
            print(f"Validation report written to: {output_path}")
    elif not json_output:
        color = fmt == "default" and color_enabled(sys.stdout, no_color=no_color)
        sys.stdout.write(render_report(result, fmt, group_by=group_by, color=color))

    if json_output:
        payload = {
            "isValid": result.is_valid,
            "violations": [v.to_dict() for v in result.violations],
            "stats": result.stats.to_dict(),
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))

    if fail_on_violations and not result.is_valid:
        return 1
    return 0
