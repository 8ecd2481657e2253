"""CLI entry point for auditsynth."""

import argparse
import json
import logging
import sys

from auditsynth.config import settings
from auditsynth.errors.exceptions import ValidationError
from auditsynth.logging_config import configure_logging
from auditsynth.models.enums import AnalyzerSource, FrameworkType

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_VALIDATION = 2


def _run(args: argparse.Namespace) -> int:
    from auditsynth.synthesis import SynthesisService, load_reports_from_dir, write_report

    expected = [AnalyzerSource(s) for s in args.expect] if args.expect else list(settings.expected_analyzers)
    collected = load_reports_from_dir(args.reports_dir, expected=expected, exclude=[args.output])
    try:
        report = SynthesisService().synthesize(
            collected.reports,
            expected_analyzers=expected,
            coverage_gaps=collected.gaps,
        )
    except ValidationError as exc:
        logger.error("Synthesis aborted: %s", exc.message)
        print(json.dumps({"error": exc.to_dict()}, indent=2), file=sys.stderr)
        return EXIT_VALIDATION

    write_report(report, args.output)
    print(
        json.dumps(
            {
                "run_id": report.run_id,
                "output": str(args.output),
                "overall": report.risk_score.overall.value,
                "confidence": report.risk_score.confidence.value,
                "unique_issues": report.stats.unique_issues,
                "attack_chains": report.stats.attack_chains,
                "coverage_gap": [g.source.value for g in report.coverage_gap],
            },
            indent=2,
        )
    )
    return EXIT_OK


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("auditsynth.main:app", host=args.host, port=args.port)
    return EXIT_OK


def _templates(args: argparse.Namespace) -> int:
    from auditsynth.synthesis.correlation import CHAIN_TEMPLATES

    print(json.dumps([t.to_dict() for t in CHAIN_TEMPLATES], indent=2))
    return EXIT_OK


def _controls(args: argparse.Namespace) -> int:
    from auditsynth.synthesis.compliance import CONTROL_CATALOG

    frameworks = [FrameworkType(args.framework)] if args.framework else list(CONTROL_CATALOG)
    print(
        json.dumps(
            {
                fw.value: [c.to_dict() for c in CONTROL_CATALOG[fw].values()]
                for fw in frameworks
            },
            indent=2,
        )
    )
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="auditsynth",
        description="auditsynth: deterministic synthesis of security analyzer findings",
    )
    parser.add_argument("--log-level", default=settings.log_level, help="Logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Synthesize a directory of analyzer reports")
    run.add_argument("--reports-dir", default=settings.reports_dir, help="Directory of analyzer JSON reports (default: %(default)s)")
    run.add_argument("--output", default=settings.output_path, help="Synthesis report path (default: %(default)s)")
    run.add_argument(
        "--expect",
        nargs="+",
        choices=[s.value for s in AnalyzerSource],
        help="Analyzers expected to report (default: all)",
    )
    run.add_argument("--json-logs", action="store_true", default=settings.json_logs, help="Emit JSON logs")
    run.set_defaults(func=_run)

    serve = sub.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.host, help="Bind host (default: %(default)s)")
    serve.add_argument("--port", type=int, default=settings.port, help="Bind port (default: %(default)s)")
    serve.set_defaults(func=_serve)

    templates = sub.add_parser("templates", help="Print the attack-chain template catalog")
    templates.set_defaults(func=_templates)

    controls = sub.add_parser("controls", help="Print the compliance control catalog")
    controls.add_argument("--framework", choices=[f.value for f in FrameworkType])
    controls.set_defaults(func=_controls)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(log_level=args.log_level, json_output=getattr(args, "json_logs", False))
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
