#!/usr/bin/env python
# -*- coding: utf-8 -*-

"""
Species catalog page: lists species cards and drives their buttons.

Env:
  SUPABASE_URL
  SUPABASE_ANON_KEY
  SPECIES_USER_EMAIL / SPECIES_USER_PASSWORD   (edit only)
  SPECIES_LIST_LIMIT   cards per listing (default: 50)

Usage:
  # Summary cards
  python species_page.py list --limit 20

  # "Learn More" on one species
  python species_page.py detail "Ailuropoda melanoleuca"

  # "Edit Species": only flags you pass change; --common-name "" clears it
  python species_page.py edit "Ailuropoda melanoleuca" --total-population 1864
"""

import argparse
import asyncio
import os
import sys
from typing import Any, Dict, List, Optional

from species_card import CardSummary, SpeciesDetailCard
from species_models import KINGDOMS, SpeciesRecord
from species_store import (
    SPECIES_TABLE,
    AuthError,
    SpeciesStore,
    StoreError,
    SupabaseSpeciesStore,
    dbg,
    get_sb,
)

SPECIES_LIST_LIMIT = int(os.getenv("SPECIES_LIST_LIMIT", "50"))

# edit flag -> form field
EDIT_FLAGS = {
    "common_name": "common_name",
    "description": "description",
    "kingdom": "kingdom",
    "new_scientific_name": "scientific_name",
    "total_population": "total_population",
    "image": "image",
}


# ---------------- Rendering ----------------
def print_summary(summary: CardSummary) -> None:
    if summary.image:
        print(f"  [image] {summary.image}")
    print(f"  {summary.heading or ''}")
    print(f"  {summary.subheading}")
    if summary.preview:
        print(f"  {summary.preview}")
    print()


def print_detail(card: SpeciesDetailCard) -> None:
    d = card.detail
    if d is None:
        return
    print("=== Detailed View ===")
    print(f"Scientific Name: {d.scientific_name}")
    print(f"Common Name: {d.common_name or ''}")
    print(f"Total Population: {d.total_population if d.total_population is not None else ''}")
    print(f"Kingdom: {d.kingdom or ''}")
    print(f"Description: {d.description or ''}")
    print(f"Author: {card.author_name}")
    print(f"Email: {card.author_email}")


# ---------------- Page ----------------
class SpeciesPage:
    """Owns the page's fetched data; cards call `invalidate` after a write."""

    def __init__(self, store: SpeciesStore, limit: int = SPECIES_LIST_LIMIT):
        self.store = store
        self.limit = limit
        self.records: List[SpeciesRecord] = []
        self.refreshes = 0

    async def load(self) -> List[SpeciesRecord]:
        rows = await self.store.list_species(self.limit)
        self.records = [SpeciesRecord.model_validate(r) for r in rows]
        return self.records

    async def fetch(self, scientific_name: str) -> SpeciesRecord:
        row = await self.store.lookup(SPECIES_TABLE, {"scientific_name": scientific_name})
        return SpeciesRecord.model_validate(row)

    async def invalidate(self, scope: str) -> None:
        """Coarse refetch: reload the whole listing whatever the scope."""
        dbg("invalidate", scope)
        self.refreshes += 1
        await self.load()

    def card(self, record: SpeciesRecord) -> SpeciesDetailCard:
        return SpeciesDetailCard(record, self.store, invalidate=self.invalidate)


# ---------------- Commands ----------------
async def cmd_list(page: SpeciesPage) -> int:
    try:
        records = await page.load()
    except StoreError as e:
        print("ERROR: could not load species ->", e.message)
        return 1
    if not records:
        print("No species found.")
        return 0
    for rec in records:
        print_summary(page.card(rec).summary())
    print(f"{len(records):,} species.")
    return 0


async def cmd_detail(page: SpeciesPage, scientific_name: str) -> int:
    try:
        record = await page.fetch(scientific_name)
    except StoreError as e:
        print(f"ERROR: species not found: {scientific_name} ({e.message})")
        return 1

    card = page.card(record)
    print_summary(card.summary())
    await card.learn_more()
    if not card.detail_open:
        return 1
    print_detail(card)
    return 0


def edit_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for flag, fld in EDIT_FLAGS.items():
        v = getattr(args, flag, None)
        if v is not None:
            out[fld] = v
    return out


async def cmd_edit(page: SpeciesPage, scientific_name: str, overrides: Dict[str, Any]) -> int:
    try:
        record = await page.fetch(scientific_name)
    except StoreError as e:
        print(f"ERROR: species not found: {scientific_name} ({e.message})")
        return 1

    card = page.card(record)
    if not await card.open_edit():
        return 1

    raw = dict(card.form_values)
    raw.update(overrides)
    result = await card.submit_edit(raw)

    if result.errors:
        print("Invalid input:")
        for fld, msg in result.errors.items():
            print(f"  {fld}: {msg}")
        return 1
    if not result.saved:
        return 1

    print(f"Updated {result.value.scientific_name} (page refreshed {page.refreshes}x).")
    try:
        print_summary(page.card(await page.fetch(result.value.scientific_name)).summary())
    except StoreError as e:
        print("WARN: could not reload updated species ->", e.message)
    return 0


# ---------------- Main ----------------
def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Browse and edit the species catalog.")
    sub = ap.add_subparsers(dest="command", required=True)

    p_list = sub.add_parser("list", help="Print a summary card per species")
    p_list.add_argument("--limit", type=int, default=SPECIES_LIST_LIMIT, help=f"Cards to show (default: {SPECIES_LIST_LIMIT})")

    p_detail = sub.add_parser("detail", help="Show the detailed view of one species")
    p_detail.add_argument("scientific_name")

    p_edit = sub.add_parser("edit", help="Edit a species you authored")
    p_edit.add_argument("scientific_name")
    p_edit.add_argument("--common-name", dest="common_name")
    p_edit.add_argument("--description")
    p_edit.add_argument("--kingdom", help="One of: " + ", ".join(KINGDOMS))
    p_edit.add_argument("--scientific-name", dest="new_scientific_name", help="New scientific name")
    p_edit.add_argument("--total-population", dest="total_population")
    p_edit.add_argument("--image", help="Image URL")
    return ap.parse_args(argv)


async def run(args: argparse.Namespace) -> int:
    sb = await get_sb()
    store = SupabaseSpeciesStore(sb)

    if args.command == "edit":
        email = os.getenv("SPECIES_USER_EMAIL")
        password = os.getenv("SPECIES_USER_PASSWORD")
        if email and password:
            try:
                await store.sign_in(email, password)
            except AuthError as e:
                print("WARN: sign-in failed ->", e.message)

    page = SpeciesPage(store, limit=getattr(args, "limit", SPECIES_LIST_LIMIT))
    if args.command == "list":
        return await cmd_list(page)
    if args.command == "detail":
        return await cmd_detail(page, args.scientific_name)
    return await cmd_edit(page, args.scientific_name, edit_overrides(args))


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    return asyncio.run(run(args))


if __name__ == "__main__":
    sys.exit(main())
