"""
Command-line entry point for the asset pipeline.

Subcommands:
    audit      Build the migration manifest and report from a hotel catalog
    migrate    Run the manifest through download, upload and cataloguing
    resolve    Print the public URL for (container, path), optionally probing
    translate  Rewrite legacy storage URLs to the current project
    thumbnail  Find a loadable thumbnail for a video URL
    rewrite    Replace migrated URLs inside a text file

Usage:
    python -m asset_pipeline.main audit --catalog hotels.json
    python -m asset_pipeline.main migrate --dry-run
    python -m asset_pipeline.main migrate
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

from .config.settings import Settings, get_settings
from .core.migration.audit import (
    audit_catalog,
    load_catalog,
    render_audit_report,
    write_manifest,
)
from .core.migration.manifest import Manifest, ManifestError, load_manifest
from .core.migration.orchestrator import MigrationRun
from .core.migration.rewrite import UrlRewriter
from .core.thumbnails import resolve_thumbnail
from .dependencies import build_orchestrator, get_resolver, http_client
from .infrastructure.http.client import HttpUrlProbe

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )


# ---------------------------------------------------------------------------
# Migration
# ---------------------------------------------------------------------------

def describe_plan(manifest: Manifest) -> list[str]:
    """Human-readable migration plan for dry runs."""
    lines = [
        "Migration Plan:",
        f"  Images to migrate: {len(manifest.migrate_items)}",
        f"  Images to skip: {len(manifest.skip_items)}",
        f"  Rejected entries: {len(manifest.rejected_items)}",
        f"  Total entries: {len(manifest)}",
        "",
    ]
    for item in manifest.migrate_items:
        target = getattr(item, "target_path", None) or "<invalid>"
        lines.append(f"  {item.url} -> {target}")
    return lines


def describe_summary(run: MigrationRun) -> list[str]:
    """Run counts. The first four lines add up to the total."""
    return [
        "Migration Summary:",
        f"  Successful migrations: {len(run.succeeded)}",
        f"  Failed migrations: {len(run.failed)}",
        f"  Skipped (already in storage): {len(run.skipped)}",
        f"  Rejected skip entries: {len(run.rejected_skips)}",
        f"  Total processed: {len(run.results)}",
    ]


async def run_migration(
    settings: Settings,
    manifest: Manifest,
    results_path: Optional[str] = None,
    mapping_path: Optional[str] = None,
) -> MigrationRun:
    """Run a manifest with dependencies built from settings and save artifacts."""
    missing = settings.validate_required_fields()
    if missing:
        logger.error(
            "Missing required configuration",
            extra={"missing_fields": missing}
        )
        raise ValueError(f"Missing required configuration: {', '.join(missing)}")

    async with http_client(settings) as client:
        orchestrator = build_orchestrator(settings, client)
        run = await orchestrator.run(manifest)

    run.save(
        results_path or settings.results_path,
        mapping_path or settings.mapping_path,
    )
    return run


def _migrate(args: argparse.Namespace, settings: Settings) -> int:
    manifest_path = args.manifest or settings.manifest_path

    try:
        manifest = load_manifest(manifest_path)
    except ManifestError as e:
        logger.error("Cannot start migration", extra={"error": str(e)})
        print(f"ERROR: {e}")
        return 1

    if args.dry_run:
        print("\n".join(describe_plan(manifest)))
        return 0

    try:
        run = asyncio.run(run_migration(settings, manifest, args.results, args.mapping))
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1

    print("\n".join(describe_summary(run)))

    if not run.all_succeeded:
        failures = len(run.failed) + len(run.rejected_skips)
        print(f"Migration completed with {failures} failures. "
              f"Check {args.results or settings.results_path} for details.")
    return 0


# ---------------------------------------------------------------------------
# Audit
# ---------------------------------------------------------------------------

def _audit(args: argparse.Namespace, settings: Settings) -> int:
    try:
        hotels = load_catalog(args.catalog)
    except (OSError, ValueError) as e:
        print(f"ERROR: Cannot read catalog {args.catalog}: {e}")
        return 1

    manifest_path = args.manifest or settings.manifest_path

    try:
        entries = audit_catalog(hotels)
        write_manifest(entries, manifest_path)
        Path(args.report).write_text(render_audit_report(entries), encoding="utf-8")
    except (OSError, ValueError, TypeError, KeyError) as e:
        logger.error("Audit failed", extra={"catalog": args.catalog, "error": str(e)})
        print(f"ERROR: Audit failed: {e}")
        return 1

    print(f"Audited {len(entries)} images")
    print(f"Manifest saved to: {manifest_path}")
    print(f"Report saved to: {args.report}")
    return 0


# ---------------------------------------------------------------------------
# Resolution tools
# ---------------------------------------------------------------------------

def _resolve(args: argparse.Namespace, settings: Settings) -> int:
    if not args.probe:
        print(get_resolver(settings).build_url(args.container, args.path))
        return 0

    async def probe_and_resolve() -> str:
        async with http_client(settings) as client:
            resolver = get_resolver(settings, probe=HttpUrlProbe(client))
            return await resolver.resolve_with_fallback(args.container, args.path)

    print(asyncio.run(probe_and_resolve()))
    return 0


def _translate(args: argparse.Namespace, settings: Settings) -> int:
    for url in get_resolver(settings).translate_legacy_urls(args.urls):
        print(url)
    return 0


def _thumbnail(args: argparse.Namespace, settings: Settings) -> int:
    async def find_thumbnail():
        async with http_client(settings) as client:
            return await resolve_thumbnail(args.url, HttpUrlProbe(client), title=args.title)

    resolution = asyncio.run(find_thumbnail())
    for attempted in resolution.attempted_urls:
        logger.debug("Attempted thumbnail", extra={"url": attempted})
    print(resolution.src)
    return 0


def _rewrite(args: argparse.Namespace, settings: Settings) -> int:
    rewriter = UrlRewriter.from_file(args.mapping or settings.mapping_path)
    path = Path(args.file)
    rewritten = rewriter.rewrite_text(path.read_text(encoding="utf-8"))

    if args.in_place:
        path.write_text(rewritten, encoding="utf-8")
        print(f"Rewrote {path}")
    else:
        sys.stdout.write(rewritten)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hotel image migration and URL resolution")
    subparsers = parser.add_subparsers(dest="command", required=True)

    audit = subparsers.add_parser("audit", help="Build the manifest from a hotel catalog")
    audit.add_argument("--catalog", required=True, help="Hotel catalog JSON file")
    audit.add_argument("--manifest", help="Manifest output path")
    audit.add_argument("--report", default="IMAGE_AUDIT.md", help="Markdown report path")
    audit.set_defaults(handler=_audit)

    migrate = subparsers.add_parser("migrate", help="Migrate images listed in the manifest")
    migrate.add_argument("--manifest", help="Manifest path")
    migrate.add_argument("--results", help="Results artifact path")
    migrate.add_argument("--mapping", help="URL mapping artifact path")
    migrate.add_argument("--dry-run", action="store_true", help="Print the plan, don't migrate")
    migrate.set_defaults(handler=_migrate)

    resolve = subparsers.add_parser("resolve", help="Print the public URL for an object")
    resolve.add_argument("container")
    resolve.add_argument("path")
    resolve.add_argument("--probe", action="store_true", help="Fall back to the legacy project if missing")
    resolve.set_defaults(handler=_resolve)

    translate = subparsers.add_parser("translate", help="Translate legacy storage URLs")
    translate.add_argument("urls", nargs="+")
    translate.set_defaults(handler=_translate)

    thumbnail = subparsers.add_parser("thumbnail", help="Find a loadable video thumbnail")
    thumbnail.add_argument("url")
    thumbnail.add_argument("--title", default="", help="Title shown on the placeholder")
    thumbnail.set_defaults(handler=_thumbnail)

    rewrite = subparsers.add_parser("rewrite", help="Replace migrated URLs in a text file")
    rewrite.add_argument("file")
    rewrite.add_argument("--mapping", help="URL mapping artifact path")
    rewrite.add_argument("--in-place", action="store_true", help="Overwrite the file")
    rewrite.set_defaults(handler=_rewrite)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(settings)
    return args.handler(args, settings)


if __name__ == "__main__":
    sys.exit(main())
