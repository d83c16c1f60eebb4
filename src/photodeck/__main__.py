"""Command line entrypoint for photodeck."""

from __future__ import annotations

import argparse
import asyncio
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

from .backend.local import LocalGateway
from .config import AppPaths
from .core.importer import ImportProgress
from .core.mutations import MutationResult
from .core.projection import DateRange, FilterCriteria, SortBy, SortOrder
from .library.manager import LibraryManager
from .utils.logging import get_logger, set_verbose


def parse_cli_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="photodeck", description="Manage a local photo library from the command line."
    )
    parser.add_argument("--data-dir", help="Library data directory (defaults to $PHOTODECK_HOME or ~/.photodeck).")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    commands = parser.add_subparsers(dest="command", required=True)

    import_cmd = commands.add_parser("import", help="Import every image below a folder.")
    import_cmd.add_argument("folder", nargs="?", help="Folder to import.")

    list_cmd = commands.add_parser("list", help="List photos with optional filters.")
    list_cmd.add_argument("--tag", action="append", default=[], help="Required tag (repeatable).")
    list_cmd.add_argument("--min-rating", type=int, help="Minimum rating (0-5).")
    list_cmd.add_argument("--keyword", default="", help="Match filename or description.")
    list_cmd.add_argument("--from", dest="date_from", help="Earliest capture date (ISO-8601).")
    list_cmd.add_argument("--to", dest="date_to", help="Latest capture date (ISO-8601).")
    list_cmd.add_argument("--sort", choices=[key.value for key in SortBy], default=SortBy.ADDED_DATE.value)
    list_cmd.add_argument("--order", choices=[order.value for order in SortOrder], default=SortOrder.DESC.value)

    rate_cmd = commands.add_parser("rate", help="Set a photo's rating.")
    rate_cmd.add_argument("photo_id")
    rate_cmd.add_argument("rating", type=int)

    tag_cmd = commands.add_parser("tag", help="Replace a photo's tags.")
    tag_cmd.add_argument("photo_id")
    tag_cmd.add_argument("tags", nargs="*")

    fav_cmd = commands.add_parser("favorite", help="Toggle a photo's favorite flag.")
    fav_cmd.add_argument("photo_id")

    commands.add_parser("collections", help="List collections.")
    create_cmd = commands.add_parser("collection-create", help="Create a collection.")
    create_cmd.add_argument("name")
    for name, help_text in (
        ("collection-add", "Add a photo to a collection."),
        ("collection-remove", "Remove a photo from a collection."),
    ):
        member_cmd = commands.add_parser(name, help=help_text)
        member_cmd.add_argument("collection_id")
        member_cmd.add_argument("photo_id")
    delete_cmd = commands.add_parser("collection-delete", help="Delete a collection.")
    delete_cmd.add_argument("collection_id")

    backup_cmd = commands.add_parser("backup", help="Write a JSON dump of the library.")
    backup_cmd.add_argument("path")

    cache_cmd = commands.add_parser("cache", help="Show or clear the thumbnail cache.")
    cache_cmd.add_argument("--clear", action="store_true")
    args = parser.parse_args(argv)

    if args.command == "list":
        if bool(args.date_from) != bool(args.date_to):
            parser.error("--from and --to must be given together")
        try:
            args.date_from = _parse_date(args.date_from)
            args.date_to = _parse_date(args.date_to)
        except ValueError as exc:
            parser.error(f"invalid date: {exc}")
    return args


def _parse_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.fromisoformat(value)


def _print_progress(progress: ImportProgress) -> None:
    print(f"[{progress.current}/{progress.total}] {progress.current_file}")


def _report(result: MutationResult) -> int:
    if result.ok:
        print(f"✅ {result.kind} {result.target_id}: {result.state.value}")
        return 0
    print(f"❌ {result.kind} {result.target_id}: {result.error}")
    return 1


def _prompt_for_folder() -> Optional[str]:
    try:
        answer = input("Folder to import: ").strip()
    except EOFError:
        return None
    return answer or None


async def run(args: argparse.Namespace) -> int:
    gateway = LocalGateway(AppPaths.from_env(args.data_dir))
    manager = LibraryManager(gateway)
    try:
        await manager.open()

        if args.command == "import":
            picker = (lambda: args.folder) if args.folder else _prompt_for_folder
            result = await manager.load_folder(picker, _print_progress)
            if not result.success:
                print(f"❌ {result.error}")
                return 1
            print(f"✅ Imported {result.count} of {result.total} image(s)")
            for item in result.failed:
                print(f"   skipped {item.path} ({item.stage.value}: {item.reason})")
            return 0

        if args.command == "list":
            date_from, date_to = args.date_from, args.date_to
            criteria = FilterCriteria(
                tags=tuple(args.tag),
                min_rating=args.min_rating,
                date_range=DateRange(date_from, date_to) if date_from and date_to else None,
                keyword=args.keyword,
            )
            for photo in manager.view(criteria, args.sort, args.order):
                rating = photo.metadata.rating if photo.metadata.rating is not None else "-"
                star = "★" if photo.metadata.is_favorite else " "
                tags = ", ".join(photo.metadata.tags)
                print(f"{photo.id:>6} {star} {rating} {photo.filename}  [{tags}]")
            return 0

        if args.command == "rate":
            return _report(await manager.mutations.update_metadata(args.photo_id, {"rating": args.rating}))
        if args.command == "tag":
            return _report(await manager.mutations.update_metadata(args.photo_id, {"tags": args.tags}))
        if args.command == "favorite":
            return _report(await manager.mutations.toggle_favorite(args.photo_id))

        if args.command == "collections":
            for collection in manager.collections.snapshot():
                print(f"{collection.id:>6} {collection.name} ({len(collection.photo_ids)} photos)")
            return 0
        if args.command == "collection-create":
            return _report(await manager.mutations.create_collection(args.name))
        if args.command == "collection-add":
            return _report(
                await manager.mutations.add_photo_to_collection(args.collection_id, args.photo_id)
            )
        if args.command == "collection-remove":
            return _report(
                await manager.mutations.remove_photo_from_collection(args.collection_id, args.photo_id)
            )
        if args.command == "collection-delete":
            return _report(await manager.mutations.delete_collection(args.collection_id))

        if args.command == "backup":
            path = await manager.backup(Path(args.path))
            print(f"✅ Backup written to {path}")
            return 0

        if args.command == "cache":
            if args.clear:
                print(f"🧹 Removed {await manager.clear_thumbnail_cache()} cached thumbnail(s)")
            else:
                print(f"Thumbnail cache: {await manager.cache_size()} bytes")
            return 0
    finally:
        await gateway.close()
    return 2


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_cli_args(argv)
    get_logger()
    set_verbose(args.verbose)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
