"""CLI entry point."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import math
import sys

from dotenv import load_dotenv

from .camera import FridgeCamera, load_image_file
from .config import PantryConfig, load_config
from .db import InventoryDB
from .errors import StoreError
from .models import CanonicalItem, CategoryTag
from .pipeline import InventoryPipeline
from .vision import VisionBackend, create_backend

_CATEGORY_CHOICES = [tag.value for tag in CategoryTag]


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pantryscan",
        description="Photograph the fridge and keep a tidy food inventory",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="path to a TOML config file",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="show progress logs"
    )

    sub = parser.add_subparsers(dest="command")

    # cameras
    sub.add_parser("cameras", help="list available cameras")

    # scan
    scan_parser = sub.add_parser("scan", help="capture photos and detect food")
    scan_parser.add_argument(
        "--image", type=str, nargs="+", help="use existing image files"
    )
    scan_parser.add_argument("--json", action="store_true", help="print JSON")
    scan_parser.add_argument(
        "--dry-run", action="store_true", help="detect only, do not save"
    )

    # list
    list_parser = sub.add_parser("list", help="show the inventory")
    list_parser.add_argument("--json", action="store_true", help="print JSON")

    # search
    search_parser = sub.add_parser("search", help="find items by name")
    search_parser.add_argument("query", type=str)
    search_parser.add_argument("--json", action="store_true", help="print JSON")

    # add
    add_parser = sub.add_parser("add", help="add an item by hand")
    add_parser.add_argument("name", type=str)
    add_parser.add_argument(
        "--category", choices=_CATEGORY_CHOICES, default="other"
    )
    add_parser.add_argument("--quantity", type=int, default=1)

    # quantity
    qty_parser = sub.add_parser("quantity", help="change an item's quantity")
    qty_parser.add_argument("id", type=str)
    qty_parser.add_argument("delta", type=int)

    # rename
    rename_parser = sub.add_parser("rename", help="rename an item")
    rename_parser.add_argument("id", type=str)
    rename_parser.add_argument("name", type=str)

    # remove
    remove_parser = sub.add_parser("remove", help="delete an item")
    remove_parser.add_argument("id", type=str)

    # clear
    clear_parser = sub.add_parser("clear", help="delete every item")
    clear_parser.add_argument(
        "--yes", action="store_true", help="skip the confirmation prompt"
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    load_dotenv()
    config = load_config(args.config)

    if args.command == "cameras":
        _cmd_cameras()
        return

    store = InventoryDB(db_path=config.database.path)
    try:
        match args.command:
            case "scan":
                asyncio.run(_cmd_scan(config, store, args))
            case "list":
                _print_items(store.get_all(), as_json=args.json)
            case "search":
                _print_items(store.search(args.query), as_json=args.json)
            case "add":
                _cmd_add(config, store, args)
            case "quantity":
                item = _build_pipeline(config, store).update_quantity(
                    args.id, args.delta
                )
                print(f"{item.name}: {item.quantity}")
            case "rename":
                item = _build_pipeline(config, store).rename_item(args.id, args.name)
                print(f"Renamed to {item.name}")
            case "remove":
                store.delete_by_id(args.id)
                print(f"Removed {args.id}")
            case "clear":
                _cmd_clear(store, args)
    except StoreError as e:
        print(f"Inventory error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        store.close()


def _build_pipeline(
    config: PantryConfig, store: InventoryDB, backend: VisionBackend | None = None
) -> InventoryPipeline:
    return InventoryPipeline(
        backend,
        store,
        threshold=config.vision.min_confidence,
        max_dimension=config.imaging.max_dimension,
        quality=config.imaging.quality,
    )


def _cmd_cameras() -> None:
    cameras = FridgeCamera.list_cameras()
    if not cameras:
        print("No cameras found.")
        return
    print(f"Available cameras: {len(cameras)}")
    for idx in cameras:
        print(f"  camera {idx}")


async def _cmd_scan(config: PantryConfig, store: InventoryDB, args) -> None:
    # Get images
    if args.image:
        try:
            sources = [load_image_file(path) for path in args.image]
        except OSError as e:
            print(f"Cannot read image: {e}", file=sys.stderr)
            sys.exit(1)
    else:
        camera = FridgeCamera(
            camera_indices=config.camera.indices,
            rotation_degrees=config.camera.rotation,
            save_dir=config.camera.save_dir or None,
        )
        print("📷 Capturing...")
        try:
            sources = camera.capture_all()
        except RuntimeError as e:
            print(str(e), file=sys.stderr)
            sys.exit(1)
        print(f"   {len(sources)} photo(s) taken")

    pipeline = _build_pipeline(config, store, create_backend(config))
    print("🔍 Detecting food...")
    if args.dry_run:
        result = await pipeline.analyze(sources)
    else:
        result = await pipeline.scan(sources)

    if not result.ok:
        print(f"Scan failed: {result.error}", file=sys.stderr)
        sys.exit(1)

    if result.images_dropped:
        print(f"   {result.images_dropped} photo(s) could not be read and were skipped")

    if args.json:
        _print_items(result.items, as_json=True)
        return
    if not result.items:
        print("No food detected.")
        return
    print(f"\n🥬 Detected {len(result.items)} item(s):")
    for item in result.items:
        bar = _confidence_bar(item.confidence)
        print(
            f"  {item.name:<16} x{item.quantity:<3} {item.confidence:.0%} {bar}"
            f"  [{item.category.value}]"
        )


def _confidence_bar(confidence: float) -> str:
    if not math.isfinite(confidence):
        return ""
    return "█" * min(max(int(confidence * 10), 0), 10)


def _cmd_add(config: PantryConfig, store: InventoryDB, args) -> None:
    if args.quantity < 1:
        print("Quantity must be at least 1.", file=sys.stderr)
        sys.exit(1)
    item = _build_pipeline(config, store).add_item(
        args.name, CategoryTag.from_string(args.category), args.quantity
    )
    print(f"Added {item.name} x{item.quantity} ({item.id})")


def _cmd_clear(store: InventoryDB, args) -> None:
    if not args.yes:
        answer = input("Delete every inventory item? [y/N] ").strip().lower()
        if answer not in ("y", "yes"):
            print("Cancelled.")
            return
    store.delete_all()
    print("Inventory cleared.")


def _print_items(items: list[CanonicalItem], *, as_json: bool) -> None:
    if as_json:
        print(json.dumps([i.to_dict() for i in items], ensure_ascii=False, indent=2))
        return
    if not items:
        print("Inventory is empty.")
        return
    for item in items:
        print(
            f"  {item.id}  {item.name:<16} x{item.quantity:<3} "
            f"[{item.category.value}]"
        )
