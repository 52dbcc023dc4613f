"""CLI entry point for the card wallet."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .colors import DEFAULT_COLOR_HEX, text_color
from .config import load_config
from .db import CardDB
from .errors import OfflineCardsError
from .interchange import export_cards, export_cards_to_file, import_cards_from_file
from .merge import DuplicateChoice, ImportSession, ImportState
from .models import Card
from .renderer import CodeRenderer, Resolution, save_png
from .symbols import Symbology


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="offlinecards",
        description="Offline loyalty card wallet: store cards, render barcodes, import/export",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to a configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Show informational logs"
    )

    sub = parser.add_subparsers(dest="command")

    # list
    list_parser = sub.add_parser("list", help="List stored cards")
    list_parser.add_argument("--search", "-s", type=str, default=None, help="Filter by store name")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # add / edit
    add_parser = sub.add_parser("add", help="Add a card")
    add_parser.add_argument("number", help="Card number")
    add_parser.add_argument("store", help="Store name")
    _add_card_options(add_parser)

    edit_parser = sub.add_parser("edit", help="Edit a stored card")
    edit_parser.add_argument("number", help="Card number of the card to edit")
    edit_parser.add_argument("--new-number", type=str, default=None, help="New card number")
    edit_parser.add_argument("--store", type=str, default=None, help="New store name")
    _add_card_options(edit_parser)
    edit_parser.add_argument(
        "--barcode", action="store_true", help="Switch the card to a Code 128 barcode"
    )
    edit_parser.add_argument(
        "--clear-photos", action="store_true", help="Remove all photos"
    )

    # remove
    remove_parser = sub.add_parser("remove", help="Delete a card")
    remove_parser.add_argument("number", help="Card number")

    # render / show
    render_parser = sub.add_parser("render", help="Render text as a barcode or QR code PNG")
    render_parser.add_argument("text", help="Text to encode")
    render_parser.add_argument("--qr", action="store_true", help="Render a QR code")
    _add_output_options(render_parser)

    show_parser = sub.add_parser("show", help="Render a stored card as a PNG")
    show_parser.add_argument("number", help="Card number")
    _add_output_options(show_parser)

    # export / import
    export_parser = sub.add_parser("export", help="Export all cards to JSON")
    export_parser.add_argument(
        "--output", "-o", type=str, default=None, metavar="FILE",
        help="Output file (default: cards_export_<timestamp>.json in the export directory)",
    )

    import_parser = sub.add_parser("import", help="Import cards from a JSON export")
    import_parser.add_argument("file", help="Export file to import")
    erase_group = import_parser.add_mutually_exclusive_group()
    erase_group.add_argument(
        "--erase", dest="erase", action="store_const", const=True, default=None,
        help="Erase all existing cards before importing",
    )
    erase_group.add_argument(
        "--keep", dest="erase", action="store_const", const=False,
        help="Keep existing cards",
    )
    import_parser.add_argument(
        "--on-duplicate",
        choices=[c.value for c in DuplicateChoice],
        default=None,
        help="How to handle cards that already exist",
    )

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    load_dotenv()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    config = load_config(args.config)
    db = CardDB(config.database.path)

    try:
        match args.command:
            case "list":
                _cmd_list(db, args)
            case "add":
                _cmd_add(db, args)
            case "edit":
                _cmd_edit(db, args)
            case "remove":
                _cmd_remove(db, args)
            case "render":
                _cmd_render(config, args)
            case "show":
                _cmd_show(db, config, args)
            case "export":
                _cmd_export(db, config, args)
            case "import":
                _cmd_import(db, args)
    except OfflineCardsError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


def _add_card_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--holder", type=str, default=None, help="Card holder name")
    p.add_argument("--qr", action="store_true", help="Display as a QR code")
    p.add_argument("--color", type=str, default=None, help="Card colour (#RRGGBB)")
    p.add_argument(
        "--photo", type=str, nargs="+", default=None, metavar="FILE",
        help="Attach photo files",
    )


def _add_output_options(p: argparse.ArgumentParser) -> None:
    p.add_argument(
        "--output", "-o", type=str, required=True, metavar="FILE", help="PNG output path"
    )
    p.add_argument("--high", action="store_true", help="High resolution (fullscreen)")


def _read_photos(paths: list[str] | None) -> list[bytes] | None:
    if not paths:
        return None
    photos = []
    for path in paths:
        try:
            photos.append(Path(path).read_bytes())
        except OSError as e:
            print(f"Could not read photo {path}: {e}", file=sys.stderr)
            sys.exit(1)
    return photos


def _cmd_list(db: CardDB, args) -> None:
    cards = db.all_cards(search=args.search)

    if args.json:
        data = [
            {
                "cardNumber": c.card_number,
                "storeName": c.store_name,
                "holderName": c.holder_name,
                "useQRCode": c.use_qr_code,
                "colorHex": c.color_hex,
                "textColor": text_color(c.color_hex),
                "photos": len(c.photo_data or []),
            }
            for c in cards
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not cards:
        print("No cards yet. Add one with: offlinecards add NUMBER STORE")
        return
    print(f"{len(cards)} card(s):")
    for c in cards:
        kind = "QR" if c.use_qr_code else "barcode"
        holder = f"  ({c.holder_name})" if c.holder_name else ""
        print(f"  {c.store_name:<20} {c.card_number:<24} [{kind}]{holder}")


def _cmd_add(db: CardDB, args) -> None:
    card = Card.create(
        card_number=args.number,
        store_name=args.store,
        holder_name=args.holder,
        use_qr_code=args.qr,
        color_hex=args.color or DEFAULT_COLOR_HEX,
        photo_data=_read_photos(args.photo),
    )
    db.insert(card)
    print(f"Added {card.store_name} ({card.card_number})")


def _cmd_edit(db: CardDB, args) -> None:
    card = db.get(args.number)
    if card is None:
        print(f"No card with number {args.number}", file=sys.stderr)
        sys.exit(1)

    if args.clear_photos:
        photos = None
    else:
        photos = _read_photos(args.photo) or card.photo_data
    use_qr_code = card.use_qr_code
    if args.qr:
        use_qr_code = True
    elif args.barcode:
        use_qr_code = False

    card.update(
        card_number=args.new_number or card.card_number,
        store_name=args.store or card.store_name,
        holder_name=args.holder if args.holder is not None else card.holder_name,
        use_qr_code=use_qr_code,
        color_hex=args.color or card.color_hex,
        photo_data=photos,
    )
    db.update(args.number, card)
    print(f"Updated {card.store_name} ({card.card_number})")


def _cmd_remove(db: CardDB, args) -> None:
    card = db.get(args.number)
    if card is None:
        print(f"No card with number {args.number}", file=sys.stderr)
        sys.exit(1)
    db.delete(card)
    print(f"Removed {card.store_name} ({card.card_number})")


def _cmd_render(config, args) -> None:
    renderer = CodeRenderer(config.render)
    mode = Symbology.QR if args.qr else Symbology.BARCODE
    resolution = Resolution.HIGH if args.high else Resolution.STANDARD
    image = renderer.render(args.text, mode, resolution)
    path = save_png(image, args.output)
    print(f"Saved {image.width}x{image.height} {mode.value} to {path}")


def _cmd_show(db: CardDB, config, args) -> None:
    card = db.get(args.number)
    if card is None:
        print(f"No card with number {args.number}", file=sys.stderr)
        sys.exit(1)
    renderer = CodeRenderer(config.render)
    resolution = Resolution.HIGH if args.high else Resolution.STANDARD
    image = renderer.render_card(card, resolution)
    path = save_png(image, args.output)
    print(f"{card.store_name}: saved {image.width}x{image.height} image to {path}")


def _cmd_export(db: CardDB, config, args) -> None:
    cards = db.all_cards()
    if args.output:
        path = Path(args.output)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(export_cards(cards))
    else:
        path = export_cards_to_file(cards, config.export.directory)
    print(f"Exported {len(cards)} card(s) to {path}")


def _cmd_import(db: CardDB, args) -> None:
    imported = import_cards_from_file(args.file)
    session = ImportSession(imported, db.all_cards())
    session.begin()

    if session.state is ImportState.PENDING_ERASE_DECISION:
        erase = args.erase
        if erase is None:
            answer = _prompt(
                "Erase existing cards before importing?",
                ["keep", "erase", "cancel"],
            )
            if answer == "cancel":
                session.cancel()
            else:
                erase = answer == "erase"
        if session.state is not ImportState.CANCELLED:
            session.decide_erase(erase)

    if session.state is ImportState.PENDING_DUPLICATE_DECISION:
        duplicates = session.duplicates
        if args.on_duplicate is not None:
            choice = DuplicateChoice(args.on_duplicate)
        else:
            answer = _prompt(
                f"{len(duplicates)} card(s) already exist:\n  " + ", ".join(duplicates),
                [c.value for c in DuplicateChoice],
            )
            choice = DuplicateChoice(answer)
        session.resolve_duplicates(choice)

    if session.plan is None:
        print("Import cancelled. No cards were changed.")
        return

    db.apply(session.plan)
    print(
        f"Imported {len(session.plan.insertions)} card(s)"
        f" (removed {len(session.plan.deletions)})"
    )


def _prompt(message: str, choices: list[str]) -> str:
    """Ask until one of ``choices`` is entered. End of input means cancel."""
    print(f"{message} [{' / '.join(choices)}]")
    while True:
        sys.stdout.flush()
        try:
            answer = input("> ").strip().lower()
        except EOFError:
            return "cancel"
        if answer in choices:
            return answer
        print(f"Please answer one of: {', '.join(choices)}")
