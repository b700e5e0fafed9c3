import argparse
import asyncio
import datetime as dt
import sys

from .. import logging_setup, pages
from ..openfront import OpenFrontClient, aiohttp_fetcher, open_session
from ..query_range import RangeError
from ..recently_viewed import RecentlyViewedItem, RecentlyViewedStore, default_store


def _print_rows(title: str, rows: list[tuple[str, str]], errors: dict[str, str]) -> None:
    print(title)
    width = max((len(label) for label, _ in rows), default=0)
    for label, value in rows:
        print(f"  {label.ljust(width)}  {value}")
    for slot, message in sorted(errors.items()):
        print(f"  ! {slot}: {message}")


def _print_recent(items: list[RecentlyViewedItem]) -> None:
    if not items:
        print("no recently viewed clans or players")
        return
    for item in items:
        viewed = dt.datetime.fromtimestamp(item.viewedAt / 1000, tz=dt.timezone.utc).strftime("%Y-%m-%d %H:%M")
        print(f"{item.kind:<6} {item.id:<16} {item.label}  ({viewed})")


async def _run_clan(store: RecentlyViewedStore, clan_tag: str, start: str | None, end: str | None) -> int:
    async with open_session() as session:
        client = OpenFrontClient(aiohttp_fetcher(session))
        page = await pages.load_clan_page(client, clan_tag, start=start, end=end)
    store.add("clan", page.clan_tag)
    window = page.date_range.to_query()
    _print_rows(f"[{page.clan_tag}] {window['start']} .. {window['end']}", pages.clan_summary(page), page.errors)
    return 1 if len(page.errors) == 3 else 0


async def _run_player(store: RecentlyViewedStore, player_id: str) -> int:
    store.add("player", player_id)
    async with open_session() as session:
        client = OpenFrontClient(aiohttp_fetcher(session))
        page = await pages.load_player_page(client, player_id)
    if page.profile is not None:
        store.relabel("player", player_id, page.display_name)
    _print_rows(f"[{page.display_name}]", pages.player_summary(page), page.errors)
    return 1 if "profile" in page.errors else 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Look up OpenFront clans and players.")
    sub = parser.add_subparsers(dest="command", required=True)
    clan = sub.add_parser("clan", help="Show clan stats and recent sessions.")
    clan.add_argument("tag")
    clan.add_argument("--start", default=None, help="ISO-8601 start (default: end - 30 days).")
    clan.add_argument("--end", default=None, help="ISO-8601 end (default: now).")
    player = sub.add_parser("player", help="Show a player profile.")
    player.add_argument("player_id")
    sub.add_parser("recent", help="List recently viewed clans and players.")
    args = parser.parse_args()
    logging_setup.setup_logging()

    store = default_store()
    if args.command == "recent":
        _print_recent(store.read())
        return 0
    try:
        if args.command == "clan":
            return asyncio.run(_run_clan(store, args.tag, args.start, args.end))
        return asyncio.run(_run_player(store, args.player_id))
    except RangeError as exc:
        print(f"lookup failed: {exc.field}: {exc.message}", file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"lookup failed: {type(exc).__name__}: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
