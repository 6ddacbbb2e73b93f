"""CLI entry point — ``ergorate classify|assess|aggregate|plan|notation``."""

from __future__ import annotations

# Phase 1: Singleton logging, before any transitive litellm imports
from ergorate.logging_config import setup_logging

setup_logging("WARNING")

import argparse  # noqa: E402
import asyncio  # noqa: E402
import json  # noqa: E402
import sys  # noqa: E402
from pathlib import Path  # noqa: E402

from pydantic import ValidationError  # noqa: E402

from ergorate import __version__  # noqa: E402
from ergorate.analysis.classifier import AxisClassifier  # noqa: E402
from ergorate.analysis.schemas import ClassificationContext  # noqa: E402
from ergorate.config import Settings  # noqa: E402
from ergorate.consensus.aggregator import aggregate  # noqa: E402
from ergorate.constants import ContextTag  # noqa: E402
from ergorate.domain.axes import parse_axis  # noqa: E402
from ergorate.domain.notation import parse_notation  # noqa: E402
from ergorate.domain.value_objects import Artifact  # noqa: E402
from ergorate.errors import RatingError  # noqa: E402
from ergorate.export.json_export import (  # noqa: E402
    assessments_from_json,
    consensus_to_dict,
    export_consensus_json,
    export_plan_json,
    plan_to_dicts,
    vector_to_dict,
)
from ergorate.logger import AssessmentLogger  # noqa: E402
from ergorate.logging_config import (  # noqa: E402
    cleanup_third_party_handlers,
)
from ergorate.planning.planner import plan  # noqa: E402
from ergorate.raters.base import Rater  # noqa: E402
from ergorate.raters.classifier_rater import ClassifierRater  # noqa: E402
from ergorate.raters.llm import LLMRater  # noqa: E402
from ergorate.services.session import AssessmentSession  # noqa: E402

# Phase 2: Clear litellm's duplicate handlers after all imports
cleanup_third_party_handlers()


def main(argv: list[str] | None = None) -> None:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(f"ergorate {__version__}")
        return

    handlers = {
        "classify": _run_classify,
        "aggregate": _run_aggregate,
        "plan": _run_plan,
        "notation": _run_notation,
        "assess": _run_assess,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return

    try:
        handler(args)
    except (RatingError, ValidationError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ergorate",
        description=(
            "Rate code ergonomics on three axes, build rater "
            "consensus, and plan improvements."
        ),
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Print version and exit",
    )

    sub = parser.add_subparsers(dest="command")

    classify = sub.add_parser(
        "classify",
        help="Classify a source file on all three axes",
    )
    classify.add_argument("path", type=str, help="Source file to rate")
    classify.add_argument(
        "--context-tag",
        "-c",
        choices=[t.value for t in ContextTag],
        default=ContextTag.APPLICATION.value,
        help="Kind of artifact (default: application)",
    )
    classify.add_argument(
        "--id",
        default=None,
        help="Artifact id (default: the file path)",
    )
    classify.add_argument(
        "--language",
        "-l",
        default=None,
        help="Force a language (default: auto-detect)",
    )

    agg = sub.add_parser(
        "aggregate",
        help="Build a consensus from a JSON file of assessments",
    )
    agg.add_argument("path", type=str, help="JSON array of assessments")
    agg.add_argument(
        "--artifact-id",
        "-a",
        default=None,
        help="Artifact to aggregate (default: the only one present)",
    )
    agg.add_argument(
        "--min-raters",
        "-m",
        type=int,
        default=None,
        help="Minimum raters (default: from settings)",
    )

    plan_parser = sub.add_parser(
        "plan",
        help="Plan single-step moves from CURRENT to TARGET",
    )
    plan_parser.add_argument("current", help="Current notation, e.g. '<O T S>'")
    plan_parser.add_argument("target", help="Target notation, e.g. '<F D G>'")
    plan_parser.add_argument(
        "--priority",
        "-p",
        default=None,
        help=(
            "Comma-separated axis order "
            "(default: from settings)"
        ),
    )

    notation = sub.add_parser(
        "notation",
        help="Validate and explain a notation string",
    )
    notation.add_argument("text", help="Notation string, e.g. '<C L E>'")

    assess = sub.add_parser(
        "assess",
        help=(
            "Rate a source file with the classifier plus one model "
            "rater per model in the chain"
        ),
    )
    assess.add_argument("path", type=str, help="Source file to rate")
    assess.add_argument(
        "--context-tag",
        "-c",
        choices=[t.value for t in ContextTag],
        default=ContextTag.APPLICATION.value,
        help="Kind of artifact (default: application)",
    )
    assess.add_argument(
        "--id",
        default=None,
        help="Artifact id (default: the file path)",
    )
    assess.add_argument(
        "--target",
        "-t",
        default=None,
        help="Target notation to plan toward, e.g. '<F D G>'",
    )

    return parser


def _run_classify(args: argparse.Namespace) -> None:
    path = Path(args.path)
    artifact = Artifact(
        id=args.id or str(path),
        content_snapshot=path.read_text(encoding="utf-8"),
        context_tag=ContextTag(args.context_tag),
    )
    vector = AxisClassifier().classify_all(
        artifact, ClassificationContext(language=args.language)
    )
    payload = {"artifact_id": artifact.id, **vector_to_dict(vector)}
    print(json.dumps(payload, indent=2, ensure_ascii=False))


def _run_aggregate(args: argparse.Namespace) -> None:
    settings = Settings()
    assessments = assessments_from_json(
        Path(args.path).read_text(encoding="utf-8")
    )
    result = aggregate(
        assessments,
        (
            args.min_raters
            if args.min_raters is not None
            else settings.min_raters
        ),
        artifact_id=args.artifact_id,
    )
    print(export_consensus_json(result))


def _run_plan(args: argparse.Namespace) -> None:
    priority = (
        [parse_axis(a) for a in args.priority.split(",") if a.strip()]
        if args.priority
        else Settings().axis_priority
    )
    result = plan(
        parse_notation(args.current),
        parse_notation(args.target),
        priority,
    )
    print(export_plan_json(result))


def _run_notation(args: argparse.Namespace) -> None:
    vector = parse_notation(args.text)
    print(json.dumps(vector_to_dict(vector), indent=2, ensure_ascii=False))


def _run_assess(args: argparse.Namespace) -> None:
    settings = Settings()
    path = Path(args.path)
    artifact = Artifact(
        id=args.id or str(path),
        content_snapshot=path.read_text(encoding="utf-8"),
        context_tag=ContextTag(args.context_tag),
    )
    raters: list[Rater] = [ClassifierRater()]
    raters.extend(
        LLMRater(
            f"llm:{model}",
            [model],
            timeout_seconds=settings.llm_timeout_seconds,
        )
        for model in dict.fromkeys(settings.litellm_model_chain)
    )
    target = parse_notation(args.target) if args.target else None

    session = AssessmentSession(
        artifact,
        raters,
        settings=settings,
        assessment_logger=AssessmentLogger(
            settings.log_dir, settings.log_level
        ),
    )
    result = asyncio.run(session.run(target=target))

    payload = {
        "session_id": result.session_id,
        "consensus": consensus_to_dict(result.consensus),
        "raters": [
            {
                "rater_id": inv.rater_id,
                "outcome": inv.outcome.value,
                "error": inv.error,
            }
            for inv in result.invocations
        ],
        "plan": (
            plan_to_dicts(result.plan) if result.plan is not None else None
        ),
    }
    print(json.dumps(payload, indent=2, ensure_ascii=False))
