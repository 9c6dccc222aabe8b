#!/usr/bin/env python3
"""
ATS feedback report

Reads graded historical predictions from a JSON file (a list of objects with
sport, predicted_spread, confidence, actual_margin, market_spread and
optional predicted_total / features), prints the segmented ATS report and,
optionally, proposes or applies the next tuning config.

Usage:
    python scripts/ats_feedback_report.py examples.json
    python scripts/ats_feedback_report.py examples.json --sport basketball_ncaab
    python scripts/ats_feedback_report.py examples.json --export report.json
    python scripts/ats_feedback_report.py examples.json --generate-config config.json
    python scripts/ats_feedback_report.py examples.json --apply   # writes to DATABASE_URL
"""

import argparse
import json
import logging
import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from dotenv import load_dotenv
load_dotenv()

from adaptive_edge.core.tuning_config import default_config
from adaptive_edge.services.ats_feedback import (
    GradedExample,
    build_segmentation_report,
    feature_correlations,
    format_report,
    overall_record,
    suggest_adjustments,
)
from adaptive_edge.services.feedback_config import (
    describe_config_changes,
    generate_config_from_feedback,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
logger = logging.getLogger(__name__)


def load_examples(path: str, sport: str = None):
    with open(path, "r", encoding="utf-8") as fh:
        raw = json.load(fh)
    if not isinstance(raw, list):
        raise ValueError(f"{path}: expected a JSON list of graded examples")
    examples = [GradedExample.from_dict(r) for r in raw]
    if sport:
        examples = [e for e in examples if e.sport == sport]
    return examples


def _with_manager(fn):
    # DB imports are deferred so report-only runs need no database
    from adaptive_edge.models import SessionLocal
    from adaptive_edge.services.config_manager import PipelineConfigManager
    from adaptive_edge.services.config_store import SqlConfigStore

    db = SessionLocal()
    try:
        return fn(PipelineConfigManager(SqlConfigStore(db)))
    finally:
        db.close()


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Segmented ATS feedback report")
    parser.add_argument("examples", help="JSON file of graded examples")
    parser.add_argument("--sport", help="Only analyse this sport id")
    parser.add_argument("--export", metavar="PATH", help="Write the report as JSON")
    parser.add_argument("--generate-config", metavar="PATH", help="Write the proposed tuning config")
    parser.add_argument(
        "--apply", action="store_true",
        help="Generate from the stored config and save the result as current",
    )
    args = parser.parse_args(argv)

    examples = load_examples(args.examples, args.sport)
    if not examples:
        print("⚠️  No graded examples found.")
        return 0

    report = build_segmentation_report(examples)
    if report.sample_count == 0:
        print("⚠️  No examples with a market spread; ATS grading needs closing lines.")
        return 0

    base = default_config()
    if args.apply:
        base = _with_manager(lambda m: m.get_effective_config())

    suggestions = suggest_adjustments(report)
    features = feature_correlations(examples, base.feature_weights.significance_threshold)
    print(format_report(report, suggestions, features))

    if args.export:
        payload = {
            "overall": overall_record(report),
            "segmentations": report.to_dict(),
            "suggestions": [s.to_dict() for s in suggestions],
            "feature_correlations": [f.to_dict() for f in features],
        }
        with open(args.export, "w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2)
        print(f"✅ Exported report to {args.export}")

    if args.generate_config or args.apply:
        config = generate_config_from_feedback(report, base)
        print("── Config Changes ──")
        for line in describe_config_changes(base, config) or ["(none)"]:
            print(f"  {line}")

        if args.generate_config:
            with open(args.generate_config, "w", encoding="utf-8") as fh:
                json.dump(config.to_dict(), fh, indent=2)
            print(f"✅ Generated config v{config.version} to {args.generate_config}")
        if args.apply:
            _with_manager(lambda m: m.save_config(config))
            print(f"✅ Saved config v{config.version} as current")

    return 0


if __name__ == "__main__":
    sys.exit(main())
