"""CLI entry point for the tracking engine."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
import time
from dataclasses import asdict
from typing import Callable

from dotenv import load_dotenv

from .app import Concierge
from .config import load_config
from .errors import InvalidOperationError, SessionInvalidError
from .share import ShareOutcome
from .shopping import AddOutcome

logger = logging.getLogger(__name__)

_STATUS_MARK = {"urgent": "🔴", "warning": "🟡", "success": "🟢"}

# Commands that require a valid session.
_PROTECTED = {"catalog", "items", "list", "add", "remove", "checkout", "share", "run"}


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="concierge",
        description="Household consumables tracker: know what runs out before it does",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("login", help="Start a session")
    sub.add_parser("logout", help="End the session")
    sub.add_parser("whoami", help="Show session status")

    # catalog
    catalog_parser = sub.add_parser("catalog", help="Manage catalog products")
    catalog_sub = catalog_parser.add_subparsers(dest="catalog_command")
    catalog_sub.add_parser("list", help="List catalog products")
    add_parser = catalog_sub.add_parser("add", help="Register a product")
    add_parser.add_argument("name")
    add_parser.add_argument("--price", type=float, required=True)
    add_parser.add_argument("--quantity", type=float, required=True)
    add_parser.add_argument("--icon", default="")
    add_parser.add_argument("--category", default="")
    add_parser.add_argument("--unit", default="")
    add_parser.add_argument("--id", dest="product_id", default=None)
    rm_parser = catalog_sub.add_parser("remove", help="Remove a product")
    rm_parser.add_argument("product_id")
    cart_parser = catalog_sub.add_parser(
        "to-list", help="Put a catalog product on the shopping list"
    )
    cart_parser.add_argument("product_id")

    # items
    items_parser = sub.add_parser("items", help="Show tracked items and stats")
    items_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # shopping list
    list_parser = sub.add_parser("list", help="Show the shopping list")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    add_item = sub.add_parser("add", help="Add a tracked item to the shopping list")
    add_item.add_argument("item_id")
    remove_item = sub.add_parser("remove", help="Remove an item from the shopping list")
    remove_item.add_argument("item_id")
    sub.add_parser("checkout", help="Finalize and clear the shopping list")
    sub.add_parser("share", help="Share or copy the shopping list")

    sub.add_parser("run", help="Run the refresh and session timers")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    _setup_logging(args.verbose)
    load_dotenv()
    config = load_config(args.config)

    # Deferred work (the checkout clear) runs after the command has printed.
    deferred: list[tuple[float, Callable[[], None]]] = []
    app = Concierge(config, defer=lambda delay, fn: deferred.append((delay, fn)))
    try:
        if args.command in _PROTECTED:
            try:
                app.guard.require()
            except SessionInvalidError as e:
                print(f"Not logged in ({e}). Run 'concierge login' first.", file=sys.stderr)
                sys.exit(1)
            app.guard.renew_session()
            app.tracker.load_initial()

        match args.command:
            case "login":
                _cmd_login(app)
            case "logout":
                app.guard.clear_auth()
                print("Logged out.")
            case "whoami":
                _cmd_whoami(app)
            case "catalog":
                _cmd_catalog(app, args)
            case "items":
                _cmd_items(app, args)
            case "list":
                _cmd_list(app, args)
            case "add":
                _cmd_add(app, args)
            case "remove":
                _cmd_remove(app, args)
            case "checkout":
                _cmd_checkout(app)
            case "share":
                _cmd_share(app)
            case "run":
                asyncio.run(_cmd_run(app))

        for delay, fn in deferred:
            time.sleep(delay)
            fn()
        if deferred and args.command == "checkout":
            print("List cleared. Add new items whenever you need.")
    finally:
        app.close()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def _cmd_login(app: Concierge) -> None:
    app.guard.set_auth()
    print("Logged in. Session valid for 24 hours.")
    if not app.preferences.has_seen_guide:
        print()
        print("Welcome! Register products with 'concierge catalog add', check")
        print("what is running out with 'concierge items', and queue purchases")
        print("with 'concierge add <id>'.")
        app.preferences.mark_guide_seen()


def _cmd_whoami(app: Concierge) -> None:
    if app.guard.is_authenticated:
        print("Logged in.")
    else:
        reason = app.guard.last_failure or "not logged in"
        print(f"Anonymous ({reason}).")


def _cmd_catalog(app: Concierge, args) -> None:
    match args.catalog_command:
        case "add":
            try:
                product = app.catalog.add(
                    args.name,
                    args.price,
                    args.quantity,
                    icon=args.icon,
                    category=args.category,
                    unit=args.unit,
                    product_id=args.product_id,
                )
            except InvalidOperationError as e:
                print(str(e), file=sys.stderr)
                sys.exit(1)
            app.tracker.refresh()
            print(f"Added {product.icon} {product.name} (id {product.id}).")
        case "remove":
            removed = app.catalog.remove(args.product_id)
            if removed is None:
                print(f"No product with id {args.product_id}.")
            else:
                app.tracker.refresh()
                print(f"Removed {removed.name}.")
        case "to-list":
            product = app.catalog.get(args.product_id)
            if product is None:
                print(f"No product with id {args.product_id}.", file=sys.stderr)
                sys.exit(1)
            outcome = app.shopping.add_product(product)
            _print_add_outcome(outcome, product.name)
        case _:
            products = app.catalog.products()
            if not products:
                print("The catalog is empty.")
                return
            for p in products:
                print(
                    f"  {p.id:<14} {p.icon} {p.name:<16} {p.quantity} {p.unit}"
                    f"  {app.config.shopping.currency} {p.price:.2f}  [{p.category}]"
                )


def _cmd_items(app: Concierge, args) -> None:
    items = app.tracker.items
    stats = app.tracker.stats(pending_items=app.shopping.totals().count)

    if args.json:
        data = {
            "items": [asdict(i) for i in items],
            "stats": asdict(stats),
            "demo": app.tracker.seeded,
        }
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if app.tracker.seeded:
        print("(demo data, register products with 'concierge catalog add')")
    print(
        f"Running out: {stats.items_running_out}  •  "
        f"Avg. days to refill: {stats.avg_days_to_refill}  •  "
        f"On list: {stats.pending_items}  •  "
        f"Monthly savings: {app.config.shopping.currency} {stats.monthly_savings:.2f}"
    )
    print()
    for i in sorted(items, key=lambda x: x.days_left):
        mark = _STATUS_MARK.get(i.status, " ")
        print(
            f"  {mark} {i.id:<14} {i.icon} {i.name:<16} "
            f"{i.days_left:>3}/{i.total_days} days left"
        )


def _cmd_list(app: Concierge, args) -> None:
    entries = app.shopping.entries
    totals = app.shopping.totals()

    if args.json:
        print(json.dumps([e.to_dict() for e in entries], ensure_ascii=False, indent=2))
        return

    if not entries:
        print("Your list is empty. Add items with 'concierge add <id>'.")
        return
    currency = app.config.shopping.currency
    print(
        f"{totals.count} item(s) • {totals.urgent} urgent • "
        f"estimated total {currency} {totals.total_price:.2f}"
    )
    for e in entries:
        mark = {"urgent": "🔴", "warning": "🟡"}.get(e.priority, "⚪")
        print(f"  {mark} {e.id:<14} {e.icon} {e.name:<16} {currency} {e.estimated_price:.2f}")


def _print_add_outcome(outcome: AddOutcome, name: str) -> None:
    match outcome:
        case AddOutcome.ADDED:
            print(f"Added {name} to your shopping list.")
        case AddOutcome.DUPLICATE:
            print(f"{name} is already on your shopping list.")


def _cmd_add(app: Concierge, args) -> None:
    outcome = app.shopping.add_to_list(args.item_id)
    if outcome is AddOutcome.NOT_FOUND:
        print(f"No tracked item with id {args.item_id}.", file=sys.stderr)
        sys.exit(1)
    item = app.tracker.get(args.item_id)
    _print_add_outcome(outcome, item.name if item else args.item_id)


def _cmd_remove(app: Concierge, args) -> None:
    removed = app.shopping.remove_from_list(args.item_id)
    if removed is not None:
        print(f"Removed {removed.name} from your shopping list.")


def _cmd_checkout(app: Concierge) -> None:
    try:
        receipt = app.shopping.checkout()
    except InvalidOperationError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    currency = app.config.shopping.currency
    noun = "item" if receipt.count == 1 else "items"
    print(
        f"Shopping list finalized ✅  Total: {currency} {receipt.total:.2f}"
        f" • {receipt.count} {noun}. Happy shopping!"
    )
    sys.stdout.flush()


def _cmd_share(app: Concierge) -> None:
    try:
        result = app.share()
    except InvalidOperationError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)
    if result.outcome is ShareOutcome.FAILED:
        print(f"Could not share the list: {result.message}", file=sys.stderr)
        print()
        print(result.text)
        sys.exit(1)
    print(result.message)


async def _cmd_run(app: Concierge) -> None:
    from .scheduler import ConciergeScheduler

    scheduler = ConciergeScheduler(app.config, app.tracker, app.guard)

    stopped = asyncio.Event()
    app.guard.on_logout(lambda reason: stopped.set())
    app.tracker.subscribe(
        lambda items: logger.info(
            "%d tracked item(s), %d urgent",
            len(items),
            sum(1 for i in items if i.status == "urgent"),
        )
    )

    scheduler.start()
    print("Timers running. Press Ctrl+C to stop.")
    try:
        await stopped.wait()
        print("Session ended; stopping.")
    except asyncio.CancelledError:
        pass
    finally:
        scheduler.stop()
