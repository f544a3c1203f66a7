# src/main.py — v3
"""CLI entry point — validate, process, batch, policies commands.

Usage:
    listingmedia validate <file> --type TAG
    listingmedia process <file> --type TAG [-o DIR] [--owner ID] [--context ID]
    listingmedia batch <directory> --type TAG [--concurrency N] [--timeout S]
    listingmedia policies
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from listingmedia.version import __version__

if TYPE_CHECKING:
    from listingmedia.core.models import ProcessingJob

logger = logging.getLogger(__name__)

# Exit code when the command ran but some input was rejected or failed.
EXIT_REJECTED = 2


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    _setup_logging(args.verbose)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        return asyncio.run(args.func(args))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="listingmedia",
        description=f"listingmedia v{__version__} — Property media ingestion pipeline",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- validate ---
    p_validate = subparsers.add_parser(
        "validate", help="Validate a file against its media type policy",
    )
    p_validate.add_argument("file", type=Path, help="Path to file")
    _add_type_argument(p_validate)
    p_validate.set_defaults(func=_cmd_validate)

    # --- process ---
    p_process = subparsers.add_parser(
        "process", help="Validate a file and generate its variants",
    )
    p_process.add_argument("file", type=Path, help="Path to file")
    _add_type_argument(p_process)
    p_process.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Write generated variants to this directory",
    )
    p_process.add_argument(
        "--owner", default=None,
        help="Upload to the configured storage under this owner id",
    )
    p_process.add_argument(
        "--context", default=None,
        help="Listing / property id for the storage namespace (default: general)",
    )
    p_process.set_defaults(func=_cmd_process)

    # --- batch ---
    p_batch = subparsers.add_parser(
        "batch", help="Process every supported file in a directory",
    )
    p_batch.add_argument("directory", type=Path, help="Directory to scan")
    _add_type_argument(p_batch)
    p_batch.add_argument(
        "--concurrency", type=int, default=None,
        help="Max items processed at once (default: BATCH_MAX_CONCURRENCY)",
    )
    p_batch.add_argument(
        "--timeout", type=float, default=None,
        help="Per-item timeout in seconds",
    )
    p_batch.add_argument(
        "-r", "--recursive", action="store_true",
        help="Scan subdirectories too",
    )
    p_batch.add_argument(
        "--owner", default=None,
        help="Upload processed items under this owner id",
    )
    p_batch.add_argument("--context", default=None, help="Listing / property id")
    p_batch.set_defaults(func=_cmd_batch)

    # --- policies ---
    p_policies = subparsers.add_parser(
        "policies", help="List the active validation policies",
    )
    p_policies.set_defaults(func=_cmd_policies)

    return parser


def _add_type_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-t", "--type", dest="media_type", required=True,
        help="Media type tag, e.g. property_photo, floor_plan, deed",
    )


async def _cmd_validate(args: argparse.Namespace) -> int:
    """Validate a single file and print errors and warnings."""
    from listingmedia.api.facade import validate_file
    from listingmedia.config.settings import load_settings

    if not args.file.is_file():
        logger.error("File not found: %s", args.file)
        return 1

    metadata, result = validate_file(args.file, args.media_type, load_settings())

    print(f"\n{args.file.name}: {'valid' if result.valid else 'INVALID'}")
    print(f"  Checksum:     {metadata.checksum}")
    if metadata.has_dimensions:
        print(f"  Dimensions:   {metadata.width}x{metadata.height}")
    if metadata.page_count is not None:
        print(f"  Pages:        {metadata.page_count}")
    for error in result.errors:
        print(f"  ERROR:   {error}")
    for warning in result.warnings:
        print(f"  WARNING: {warning}")
    return 0 if result.valid else EXIT_REJECTED


async def _cmd_process(args: argparse.Namespace) -> int:
    """Process one file; optionally write variants locally and/or upload."""
    from listingmedia.api.facade import process_file
    from listingmedia.config.settings import load_settings

    if not args.file.is_file():
        logger.error("File not found: %s", args.file)
        return 1

    settings = load_settings()
    job = await process_file(args.file, args.media_type, settings)
    _print_job(job)

    if not job.succeeded:
        return EXIT_REJECTED

    if args.output is not None:
        written = _write_variants(job, args.output)
        print(f"  Wrote {written} variant(s) to {args.output}")

    if args.owner:
        from listingmedia.storage.storage_factory import create_storage
        from listingmedia.upload.coordinator import UploadCoordinator

        uploader = UploadCoordinator.from_settings(settings)
        request = uploader.prepare_upload(job, args.owner, context_id=args.context)
        await uploader.upload(job, request, create_storage(settings))
        if job.status != "uploaded":
            print(f"  Upload failed: {job.failure.message if job.failure else 'unknown'}")
            return EXIT_REJECTED
        print(f"  Uploaded:     {job.upload.url if job.upload else ''}")
    return 0


async def _cmd_batch(args: argparse.Namespace) -> int:
    """Process a directory as one batch."""
    from listingmedia.batch.coordinator import BatchCoordinator
    from listingmedia.batch.models import BatchProgress
    from listingmedia.batch.scanner import BatchScanner
    from listingmedia.config.settings import load_settings

    directory: Path = args.directory
    if not directory.is_dir():
        logger.error("Not a directory: %s", directory)
        return 1

    overrides: dict[str, object] = {}
    if args.concurrency is not None:
        overrides["batch_max_concurrency"] = args.concurrency
    if args.timeout is not None:
        overrides["batch_item_timeout_seconds"] = args.timeout
    settings = load_settings(**overrides)

    assets = BatchScanner().scan(directory, args.media_type, recursive=args.recursive)
    if not assets:
        print(f"No supported files in {directory}")
        return 0

    def on_progress(progress: BatchProgress) -> None:
        print(
            f"  [{progress.completed}/{progress.total}] {progress.percentage:5.1f}%  "
            f"{progress.current_item}",
            file=sys.stderr,
        )

    coordinator = BatchCoordinator.from_settings(settings)
    result = await coordinator.process_batch(assets, on_progress)

    if args.owner:
        from listingmedia.storage.storage_factory import create_storage
        from listingmedia.upload.coordinator import UploadCoordinator

        uploader = UploadCoordinator.from_settings(settings, registry=coordinator.processor.registry)
        await uploader.upload_jobs(
            result.jobs, create_storage(settings), args.owner, context_id=args.context,
        )

    summary = result.summary()
    print("\nBatch complete:")
    print(f"  Items:        {summary['total']}")
    print(f"  Succeeded:    {summary['succeeded']}")
    print(f"  Failed:       {summary['failed']}")
    print(f"  Duplicates:   {summary['duplicates']}")
    print(f"  Duration:     {summary['duration_seconds']:.1f}s")
    for failure in result.failures:
        print(f"  - {failure.filename}: [{failure.kind}] {failure.reason}")
    return EXIT_REJECTED if result.failures else 0


async def _cmd_policies(args: argparse.Namespace) -> int:
    """Print the active policy table as JSON."""
    from listingmedia.config.settings import load_settings
    from listingmedia.policy.registry import load_registry

    registry = load_registry(load_settings())
    table = {
        tag: registry.resolve(tag).model_dump(mode="json")
        for tag in registry.tags()
    }
    for policy in table.values():
        policy["allowed_formats"] = sorted(policy["allowed_formats"])
    print(json.dumps(table, indent=2))
    return 0


def _print_job(job: ProcessingJob) -> None:
    """Print a human-readable summary of a ProcessingJob."""
    print(f"\n{job.asset.filename}: {job.status}")
    print(f"  Policy:       {job.policy_tag}")
    print(f"  Checksum:     {job.checksum}")
    for variant in job.variants:
        print(
            f"  Variant:      {variant.name:<12s} {variant.width}x{variant.height} "
            f"{variant.format} ({len(variant.content)} bytes)"
        )
    if job.failure is not None:
        print(f"  Failure:      [{job.failure.kind}] {job.failure.message}")
    for warning in job.warnings:
        print(f"  WARNING: {warning}")


def _write_variants(job: ProcessingJob, output_dir: Path) -> int:
    """Write each variant as <stem>_<variant>.<ext> into output_dir."""
    from listingmedia.core.formats import OUTPUT_FORMATS

    output_dir.mkdir(parents=True, exist_ok=True)
    stem = Path(job.asset.filename).stem
    for variant in job.variants:
        ext = OUTPUT_FORMATS[variant.format][2]
        (output_dir / f"{stem}_{variant.name}.{ext}").write_bytes(variant.content)
    return len(job.variants)


def _setup_logging(verbose: bool) -> None:
    """Configure text logging on stderr for CLI usage."""
    from listingmedia.logging.logger import setup_logging

    setup_logging(level="DEBUG" if verbose else "WARNING", log_format="text")
    # Quiet noisy libraries
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.getLogger("PIL").setLevel(logging.WARNING)


if __name__ == "__main__":
    sys.exit(main())
