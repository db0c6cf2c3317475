#!/usr/bin/env python3
"""
fltr - machine translation for Fluent-like (.flt) localization files

Translates a source .flt file into a target locale through a translation
service, keeping placeables intact and reusing translations of entries that
did not change since the previous run.

Commands:
    translate - Translate the source file into one locale
    languages - List locales the provider can translate into
    check     - Parse a .flt file and report its entries

Example:
    1. fltr translate --locale fr --from locales/en.flt --outpath locales
       → Writes locales/fr.flt, prints stats + warnings

    2. [edit locales/en.flt, keep the old copy as en.old.flt]

    3. fltr translate --locale fr --from locales/en.flt --diff en.old.flt --outpath locales
       → Only new and changed entries go back to the service
"""

import argparse
import json
import sys
from pathlib import Path

from .config import load_config
from .errors import ConfigurationError, FltrError
from .fluent import EntryKind, parse
from .logger import get_logger, set_log_mode
from .providers import build_provider
from .session import TranslationSession

logger = get_logger(__name__)


def cmd_translate(args) -> dict:
    """Translate the source file into args.locale."""
    config = load_config(args.config, overrides={
        "locale": args.locale,
        "source": args.source,
        "diff": args.diff,
        "outpath": args.outpath,
        "provider": args.provider,
        "glossary": args.glossary,
        "ignore_case": True if args.ignore_case else None,
        "concurrency": args.concurrency,
    })
    set_log_mode(config.log_mode)
    logger.debug(f"Effective config: {config.to_dict()}")

    source_path = Path(config.source)
    if not source_path.is_file():
        raise ConfigurationError(f"Source file not found: {source_path}")

    with build_provider(config) as provider:
        if not provider.supports(config.locale):
            raise ConfigurationError(
                f"Locale '{config.locale}' is not supported by the {provider.name} provider. "
                f"Run `fltr languages` to list available locales."
            )

        session = TranslationSession.from_config(config, provider)
        result = session.translate_file(
            source_path,
            config.output_file,
            diff_path=Path(config.diff) if config.diff else None,
        )

    return result.to_dict()


def cmd_languages(args) -> dict:
    """List target locales of the configured provider."""
    config = load_config(args.config, overrides={"provider": args.provider})
    set_log_mode(config.log_mode)

    with build_provider(config) as provider:
        languages = provider.available_languages(display_locale=args.display)

    return {
        "status": "ok",
        "provider": provider.name,
        "languages": [lang.to_dict() for lang in languages],
        "summary": f"{len(languages)} target locales available",
    }


def cmd_check(args) -> dict:
    """Parse a .flt file and count its entries."""
    path = Path(args.file)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise FltrError(f"Cannot read {path}: {e}") from e

    entries = parse(content, path=str(path))
    counts = {kind.value: 0 for kind in EntryKind}
    for entry in entries:
        counts[entry.kind.value] += 1
    selectors = sum(1 for e in entries if e.is_translatable and e.has_selector)

    return {
        "status": "ok",
        "file": str(path),
        "stats": {
            "messages": counts["message"],
            "terms": counts["term"],
            "comments": counts["comment"],
            "blank_lines": counts["blank"],
            "with_selectors": selectors,
        },
        "summary": f"{counts['message']} messages and {counts['term']} terms parsed without errors",
    }


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fltr",
        description="fltr - machine translation for Fluent-like (.flt) localization files",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Translate en.flt into French, writing ./fr.flt
  fltr translate --locale fr

  # Translate only what changed since en.old.flt
  fltr translate --locale de --from locales/en.flt --diff en.old.flt --outpath locales

  # Dry run without calling a service
  fltr translate --locale es --provider echo

  # List available locales
  fltr languages

  # Validate a file
  fltr check locales/en.flt

Comment markers (on the line directly above an entry):
  # hand-translated   keep the existing translation, never send it to the service
  # lang-name         value becomes the target language's own name
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # translate command
    translate_parser = subparsers.add_parser("translate", help="Translate the source file into one locale")
    translate_parser.add_argument("--locale", "-l", required=True, help="Target locale (e.g. fr, de, zh-CN)")
    translate_parser.add_argument("--from", "-f", dest="source", help="Source file (default: en.flt)")
    translate_parser.add_argument("--diff", "-d", help="Previous version of the source file")
    translate_parser.add_argument("--outpath", "-o", help="Output directory (default: .)")
    translate_parser.add_argument("--provider", "-p", help="Translation provider: google or echo")
    translate_parser.add_argument("--glossary", "-g", help="Glossary name in the provider project")
    translate_parser.add_argument("--ignore-case", action="store_true", help="Case-insensitive glossary matching")
    translate_parser.add_argument("--concurrency", "-j", type=int, help="Simultaneous translate calls (default: 8)")
    translate_parser.add_argument("--config", "-c", help="Config file (default: ./fltr.yaml if present)")

    # languages command
    languages_parser = subparsers.add_parser("languages", help="List available target locales")
    languages_parser.add_argument("--provider", "-p", help="Translation provider: google or echo")
    languages_parser.add_argument("--display", default="en", help="Locale to name the languages in (default: en)")
    languages_parser.add_argument("--config", "-c", help="Config file (default: ./fltr.yaml if present)")

    # check command
    check_parser = subparsers.add_parser("check", help="Parse a .flt file and report its entries")
    check_parser.add_argument("file", help=".flt file to check")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        if args.command == "translate":
            result = cmd_translate(args)
        elif args.command == "languages":
            result = cmd_languages(args)
        else:
            result = cmd_check(args)
        print(json.dumps(result, indent=2, ensure_ascii=False))
    except FltrError as e:
        print(json.dumps({
            "status": "error",
            "error": str(e),
            "error_type": type(e).__name__,
            "details": e.to_dict(),
        }, ensure_ascii=False), file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
