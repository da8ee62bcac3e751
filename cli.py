#!/usr/bin/env python3
"""Contact Manager CLI."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from contact_manager.config import ConfigError, load_settings
from contact_manager.contacts import (
    Contact,
    ContactFilters,
    ContactImportError,
    ContactStore,
    validate_contact,
)
from contact_manager.storage import StorageError


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="contact-manager",
        description="Manage the contact store shared with the browser extension and desktop app.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Log debug output to stderr.",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("list", help="List every contact.")

    search_parser = subparsers.add_parser("search", help="Search and sort contacts.")
    search_parser.add_argument("text", nargs="?", help="Free text matched against name, email, phone and company.")
    search_parser.add_argument(
        "--tag",
        action="append",
        dest="tags",
        default=[],
        help="Keep contacts carrying this tag (repeatable, any tag matches).",
    )
    favorite_group = search_parser.add_mutually_exclusive_group()
    favorite_group.add_argument("--favorites", action="store_true", help="Only favorites.")
    favorite_group.add_argument("--no-favorites", action="store_true", help="Exclude favorites.")
    search_parser.add_argument(
        "--sort-by",
        choices=("firstName", "lastName", "email", "createdAt", "updatedAt"),
        help="Field to sort by.",
    )
    search_parser.add_argument("--desc", action="store_true", help="Sort descending.")

    show_parser = subparsers.add_parser("show", help="Show one contact.")
    show_parser.add_argument("contact_id")

    add_parser = subparsers.add_parser("add", help="Create a contact.")
    add_parser.add_argument("first_name")
    add_parser.add_argument("last_name")
    add_parser.add_argument("--email", default="")
    add_parser.add_argument("--phone", default="")
    add_parser.add_argument("--company")
    add_parser.add_argument("--job-title")
    add_parser.add_argument("--notes")
    add_parser.add_argument("--tag", action="append", dest="tags", default=[])
    add_parser.add_argument(
        "--skip-validation",
        action="store_true",
        help="Store the contact even if the form checks fail.",
    )

    favorite_parser = subparsers.add_parser("favorite", help="Toggle the favorite flag.")
    favorite_parser.add_argument("contact_id")

    delete_parser = subparsers.add_parser("delete", help="Delete a contact.")
    delete_parser.add_argument("contact_id")

    subparsers.add_parser("stats", help="Show contact statistics.")

    export_parser = subparsers.add_parser("export", help="Export contacts as JSON.")
    export_parser.add_argument("--output", "-o", help="Write to this file instead of stdout.")

    import_parser = subparsers.add_parser("import", help="Import contacts from an export file.")
    import_parser.add_argument("path")

    subparsers.add_parser("backup", help="Write a backup of the collection.")
    subparsers.add_parser("backups", help="List backups, newest first.")

    restore_parser = subparsers.add_parser("restore", help="Merge a backup back in.")
    restore_parser.add_argument("reference")

    clear_parser = subparsers.add_parser("clear", help="Delete every contact.")
    clear_parser.add_argument("--yes", action="store_true", help="Confirm deletion.")

    subparsers.add_parser("seed", help="Add sample contacts to an empty collection.")
    subparsers.add_parser("vacuum", help="Maintenance no-op kept for database parity.")
    subparsers.add_parser("analyze", help="Show collection size information.")

    return parser


def _format_row(contact: Contact) -> str:
    star = "*" if contact.is_favorite else " "
    tags = f" [{', '.join(contact.tags)}]" if contact.tags else ""
    return f"{star} {contact.id}  {contact.full_name:<28} {contact.email:<30} {contact.phone}{tags}"


def _print_contacts(contacts: List[Contact]) -> None:
    if not contacts:
        print("No contacts.")
        return
    for contact in contacts:
        print(_format_row(contact))
    print(f"\n{len(contacts)} contact(s)")


def _cmd_search(store: ContactStore, args: argparse.Namespace) -> int:
    is_favorite: Optional[bool] = None
    if args.favorites:
        is_favorite = True
    elif args.no_favorites:
        is_favorite = False
    filters = ContactFilters(
        search=args.text,
        tags=args.tags,
        is_favorite=is_favorite,
        sort_by=args.sort_by,
        sort_order="desc" if args.desc else "asc",
    )
    _print_contacts(store.search(filters))
    return 0


def _cmd_add(store: ContactStore, args: argparse.Namespace) -> int:
    data = {
        "firstName": args.first_name,
        "lastName": args.last_name,
        "email": args.email,
        "phone": args.phone,
        "tags": args.tags,
    }
    if args.company:
        data["company"] = args.company
    if args.job_title:
        data["jobTitle"] = args.job_title
    if args.notes:
        data["notes"] = args.notes

    errors = validate_contact(data)
    if errors and not args.skip_validation:
        for error in errors:
            print(f"{error.field}: {error.message}", file=sys.stderr)
        return 1

    contact = store.create(data)
    print(f"Created {contact.id}")
    print(contact.to_markdown())
    return 0


def _cmd_show(store: ContactStore, contact_id: str) -> int:
    contact = store.get(contact_id)
    if contact is None:
        print(f"Contact {contact_id} not found.", file=sys.stderr)
        return 1
    print(contact.to_markdown())
    return 0


def _cmd_favorite(store: ContactStore, contact_id: str) -> int:
    contact = store.toggle_favorite(contact_id)
    if contact is None:
        print(f"Contact {contact_id} not found.", file=sys.stderr)
        return 1
    state = "now a favorite" if contact.is_favorite else "no longer a favorite"
    print(f"{contact.full_name} is {state}.")
    return 0


def _cmd_delete(store: ContactStore, contact_id: str) -> int:
    if not store.delete(contact_id):
        print(f"Contact {contact_id} not found.", file=sys.stderr)
        return 1
    print(f"Deleted {contact_id}")
    return 0


def _cmd_stats(store: ContactStore) -> int:
    stats = store.stats()
    print(f"Total:      {stats.total}")
    print(f"Favorites:  {stats.favorites}")
    print(f"With email: {stats.with_email}")
    print(f"With phone: {stats.with_phone}")
    if stats.by_tag:
        print("By tag:")
        for tag, count in sorted(stats.by_tag.items(), key=lambda item: (-item[1], item[0])):
            print(f"  {tag}: {count}")
    return 0


def _cmd_export(store: ContactStore, output: Optional[str]) -> int:
    payload = store.export_all()
    if output:
        Path(output).write_text(payload, encoding="utf-8")
        print(f"Exported {len(store)} contact(s) to {output}")
    else:
        print(payload)
    return 0


def _cmd_import(store: ContactStore, path: str) -> int:
    try:
        payload = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        print(f"Could not read {path}: {exc}", file=sys.stderr)
        return 1
    try:
        imported = store.import_batch(payload)
    except ContactImportError as exc:
        print(exc, file=sys.stderr)
        return 1
    print(f"Imported {imported} contact(s); {len(store)} total.")
    return 0


def _cmd_clear(store: ContactStore, confirmed: bool) -> int:
    if not confirmed:
        print("Refusing to delete every contact without --yes.", file=sys.stderr)
        return 1
    store.clear_all()
    print("All contacts deleted.")
    return 0


def _dispatch(store: ContactStore, args: argparse.Namespace) -> int:
    command = args.command
    if command == "list":
        _print_contacts(store.list())
        return 0
    if command == "search":
        return _cmd_search(store, args)
    if command == "show":
        return _cmd_show(store, args.contact_id)
    if command == "add":
        return _cmd_add(store, args)
    if command == "favorite":
        return _cmd_favorite(store, args.contact_id)
    if command == "delete":
        return _cmd_delete(store, args.contact_id)
    if command == "stats":
        return _cmd_stats(store)
    if command == "export":
        return _cmd_export(store, args.output)
    if command == "import":
        return _cmd_import(store, args.path)
    if command == "backup":
        print(f"Backup written to {store.backup()}")
        return 0
    if command == "backups":
        for reference in store.list_backups():
            print(reference)
        return 0
    if command == "restore":
        restored = store.restore(args.reference)
        print(f"Restored {restored} contact(s) from {args.reference}")
        return 0
    if command == "clear":
        return _cmd_clear(store, args.yes)
    if command == "seed":
        added = store.seed_samples()
        print(f"Added {added} sample contact(s).")
        return 0
    if command == "vacuum":
        store.vacuum()
        print("Nothing to compact.")
        return 0
    if command == "analyze":
        for key, value in store.analyze().items():
            print(f"{key}: {value}")
        return 0
    raise ValueError(f"Unhandled command {command!r}")


def main(argv: list[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        settings = load_settings()
    except ConfigError as exc:
        print(exc, file=sys.stderr)
        return 1

    # The CLI is short-lived; a scheduled backup would never fire.
    settings.auto_backup = False
    store = ContactStore.from_settings(settings)
    try:
        return _dispatch(store, args)
    except (StorageError, ContactImportError) as exc:
        print(exc, file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
