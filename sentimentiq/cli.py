"""
SentimentIQ Pro - command-line interface.

Invoked as 'sentimentiq' after installation.

Example usage:
    # Comprehensive analysis
    sentimentiq analyze "Apple Inc. released a new iPhone." --tier pro
    sentimentiq analyze --file review.txt --features sentiment keyPhrases --tier standard

    # Single feature
    sentimentiq feature sentiment "What a wonderful day"

    # Tier table
    sentimentiq tiers

    # HTTP server
    sentimentiq serve --port 3001
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from sentimentiq import __version__
from sentimentiq.core.models import (
    ALL_FEATURES,
    ComprehensiveAnalysisResult,
    EntitiesResult,
    FeatureKind,
    FeaturePayload,
    KeyPhrasesResult,
    LanguageResult,
    SentimentResult,
    SummaryResult,
    UserTier,
)
from sentimentiq.core.orchestrator import create_orchestrator
from sentimentiq.core.tiers import display_name, get_tier_limits, tiers_by_privilege
from sentimentiq.utils.config import load_config
from sentimentiq.utils.errors import SentimentIQError
from sentimentiq.utils.logging import setup_logging


def print_payload(payload: FeaturePayload, indent: str = "  ") -> None:
    """Print one feature result in a readable format."""
    if isinstance(payload, SentimentResult):
        print(f"{indent}Sentiment: {payload.sentiment} (score {payload.score:+.3f})")
        print(f"{indent}Intensity: {payload.intensity}  Confidence: {payload.analysis.confidence}")
        scores = payload.confidence_scores
        print(
            f"{indent}Scores: positive {scores.positive:.2%}, "
            f"negative {scores.negative:.2%}, neutral {scores.neutral:.2%}"
        )
    elif isinstance(payload, KeyPhrasesResult):
        print(f"{indent}Key Phrases ({payload.count}): {', '.join(payload.key_phrases)}")
    elif isinstance(payload, EntitiesResult):
        print(f"{indent}Entities: {payload.total_entities}")
        for category, members in payload.entities_by_category.items():
            print(f"{indent}  {category}: {', '.join(e.text for e in members)}")
    elif isinstance(payload, SummaryResult):
        print(f"{indent}Summary: {payload.summary}")
        print(f"{indent}Compression: {payload.compression_ratio} ({payload.sentence_count} sentences)")
    elif isinstance(payload, LanguageResult):
        print(f"{indent}Language: {payload.name} ({payload.iso6391_name}, {payload.confidence:.2%})")


def print_comprehensive_result(result: ComprehensiveAnalysisResult) -> None:
    """Print a comprehensive analysis to the console."""
    print("\n" + "=" * 60)
    print("SENTIMENTIQ ANALYSIS RESULTS")
    print("=" * 60)
    print(f"Words: {result.word_count}  Characters: {result.character_count}")
    print(f"Succeeded: {len(result.succeeded)}/{len(result.features)}")
    print("-" * 60)

    for kind, outcome in result.features.items():
        print(f"\n{kind.display_name}:")
        if outcome.ok:
            print_payload(outcome.payload)
        else:
            print(f"  Error: {outcome.message}")
    print("-" * 60)


def print_tiers() -> None:
    """Print the tier policy table."""
    print("\n" + "=" * 70)
    print("SUBSCRIPTION TIERS")
    print("=" * 70)
    print(f"{'Tier':<12} {'Max':<5} {'History':<9} {'Sign-in':<9} Features")
    print("-" * 70)
    for tier in tiers_by_privilege():
        limits = get_tier_limits(tier)
        print(
            f"{display_name(tier):<12} {limits.max_features:<5} "
            f"{'yes' if limits.has_history else 'no':<9} "
            f"{'yes' if limits.requires_auth else 'no':<9} "
            f"{', '.join(f.value for f in limits.allowed_features)}"
        )
    print("-" * 70)


def _read_text(text: Optional[str], file_path: Optional[Path]) -> Optional[str]:
    if file_path is not None:
        return file_path.read_text(encoding="utf-8")
    return text


def run_analyze(args: argparse.Namespace, config: dict) -> int:
    """Comprehensive analysis of TEXT or --file."""
    if args.file is not None and not args.file.exists():
        print(f"Error: File not found: {args.file}")
        return 1
    text = _read_text(args.text, args.file)

    orchestrator = create_orchestrator(config)
    try:
        result = orchestrator.analyze_comprehensive(
            text, args.features, tier=args.tier, user_id=args.user_id
        )
        if args.json:
            print(json.dumps(result.to_dict(), indent=2))
        else:
            print_comprehensive_result(result)
        return 0
    except SentimentIQError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        orchestrator.shutdown()


def run_feature(args: argparse.Namespace, config: dict) -> int:
    """Single-feature analysis."""
    orchestrator = create_orchestrator(config)
    try:
        payload = orchestrator.analyze_feature(args.kind, args.text, tier=args.tier)
        if args.json:
            print(json.dumps(payload.to_dict(), indent=2))
        else:
            print(f"\n{FeatureKind(args.kind).display_name}:")
            print_payload(payload)
        return 0
    except SentimentIQError as e:
        print(f"Error: {e.message}")
        return 1
    finally:
        orchestrator.shutdown()


def run_serve(args: argparse.Namespace, config: dict) -> int:
    """Run the HTTP server."""
    from sentimentiq.web import create_app

    server = config.get("server", {})
    host = args.host or server.get("host", "127.0.0.1")
    port = args.port or server.get("port", 3001)

    app = create_app(config)
    print(f"SentimentIQ Pro server running on http://{host}:{port}")
    print(f"Health check: http://{host}:{port}/health")
    print(f"Diagnostics: http://{host}:{port}/api/diagnostics")
    try:
        app.run(host=host, port=port, debug=args.debug)
    finally:
        app.orchestrator.shutdown()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sentimentiq",
        description="Tiered text analytics: sentiment, key phrases, entities, summaries, language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sentimentiq analyze "Great service, slow delivery." --tier pro
  sentimentiq analyze --file review.txt --features sentiment keyPhrases --tier standard --user-id u1
  sentimentiq feature language "Bonjour tout le monde"
  sentimentiq tiers
  sentimentiq serve --port 3001
        """,
    )
    parser.add_argument("--config", type=Path, default=None, help="Path to configuration file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose output")
    parser.add_argument("--version", action="version", version=f"sentimentiq {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)
    tier_choices = [t.value for t in UserTier]

    analyze = subparsers.add_parser("analyze", help="Comprehensive multi-feature analysis")
    analyze.add_argument("text", nargs="?", default=None, help="Text to analyze")
    analyze.add_argument("--file", "-f", type=Path, default=None, help="Read the text from a file")
    analyze.add_argument(
        "--features",
        nargs="+",
        default=None,
        metavar="FEATURE",
        help=f"Features to run (default: all). Choices: {', '.join(f.value for f in ALL_FEATURES)}",
    )
    analyze.add_argument("--tier", choices=tier_choices, default="pro", help="Caller tier")
    analyze.add_argument("--user-id", default=None, help="Save the result to this user's history")
    analyze.add_argument("--json", action="store_true", help="Print the JSON result")

    feature = subparsers.add_parser("feature", help="Run a single feature")
    feature.add_argument("kind", choices=[f.value for f in ALL_FEATURES], help="Feature to run")
    feature.add_argument("text", help="Text to analyze")
    feature.add_argument("--tier", choices=tier_choices, default="pro", help="Caller tier")
    feature.add_argument("--json", action="store_true", help="Print the JSON result")

    subparsers.add_parser("tiers", help="Show the subscription tier table")

    serve = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve.add_argument("--host", default=None, help="Bind address (default from config)")
    serve.add_argument("--port", type=int, default=None, help="Port (default from config)")
    serve.add_argument("--debug", action="store_true", help="Enable Flask debug mode")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the sentimentiq command."""
    args = build_parser().parse_args(argv)

    if args.command == "tiers":
        print_tiers()
        return 0

    config = load_config(str(args.config) if args.config else None)

    log_level = "DEBUG" if args.verbose else config.get("logging", {}).get("level", "INFO")
    setup_logging(
        level=log_level,
        log_format="json" if args.command == "serve" else "text",
        log_file=config.get("logging", {}).get("file"),
        colored=True,
        console_enabled=args.command == "serve" or args.verbose,
    )

    if args.command == "analyze":
        return run_analyze(args, config)
    if args.command == "feature":
        return run_feature(args, config)
    return run_serve(args, config)


if __name__ == "__main__":
    sys.exit(main())
