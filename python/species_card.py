# -*- coding: utf-8 -*-

"""
SpeciesDetailCard: summary of one species, detail on demand, owner-only edits.

Every remote call goes through the SpeciesStore passed in; failures end up as
a single Notification handed to `notify`. Nothing here retries or guards
against overlapping clicks: the last response to resolve wins.
"""

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Union

from species_models import (
    AuthorProfile,
    EditValidation,
    SpeciesEdit,
    SpeciesRecord,
    description_preview,
    validate_species_edit,
)
from species_store import (
    PROFILES_TABLE,
    SPECIES_TABLE,
    AuthError,
    CatalogError,
    Identity,
    SpeciesStore,
    StoreError,
    dbg,
)

INVALIDATE_SCOPE = "species"


@dataclass
class Notification:
    title: str
    description: Optional[str] = None
    variant: str = "destructive"


@dataclass
class SubmitResult:
    saved: bool
    validation: EditValidation
    notification: Optional[Notification] = None

    @property
    def value(self) -> Optional[SpeciesEdit]:
        return self.validation.value

    @property
    def errors(self) -> Dict[str, str]:
        return self.validation.errors


@dataclass
class CardSummary:
    image: Optional[str]
    heading: Optional[str]
    subheading: str
    preview: str


def print_notification(n: Notification) -> None:
    line = f"[{n.variant}] {n.title}"
    if n.description:
        line += f": {n.description}"
    print(line)


Notify = Callable[[Notification], None]
Invalidate = Callable[[str], Union[None, Awaitable[None]]]


class SpeciesDetailCard:
    def __init__(
        self,
        species: SpeciesRecord,
        store: SpeciesStore,
        notify: Notify = print_notification,
        invalidate: Optional[Invalidate] = None,
    ):
        self.species = species
        self.store = store
        self.notify = notify
        self.invalidate = invalidate

        # detail overlay
        self.detail_open = False
        self.detail: Optional[SpeciesRecord] = None
        self.author_name: Optional[str] = None
        self.author_email: Optional[str] = None

        # edit overlay
        self.edit_open = False
        self.form_defaults: Optional[SpeciesRecord] = None
        self.form_values: Dict[str, Any] = {}
        self.form_errors: Dict[str, str] = {}

    # ---------------- Summary ----------------
    def summary(self) -> CardSummary:
        s = self.species
        return CardSummary(
            image=s.image or None,
            heading=s.common_name,
            subheading=s.scientific_name,
            preview=description_preview(s.description),
        )

    # ---------------- Learn More ----------------
    async def learn_more(self) -> Optional[SpeciesRecord]:
        try:
            row = await self.store.lookup(SPECIES_TABLE, {"scientific_name": self.species.scientific_name})
        except StoreError as e:
            self.close_detail()
            self.notify(Notification("Species not represented in database", e.message))
            return None
        record = SpeciesRecord.model_validate(row)

        try:
            author_row = await self.store.lookup(PROFILES_TABLE, {"id": record.author})
        except StoreError as e:
            self.close_detail()
            self.notify(Notification("No record of author", e.message))
            return None
        author = AuthorProfile.model_validate(author_row)

        self.detail = record
        self.author_name = author.display_name
        self.author_email = author.email
        self.detail_open = True
        return record

    def close_detail(self) -> None:
        self.detail_open = False
        self.detail = None
        self.author_name = None
        self.author_email = None

    # ---------------- Edit ----------------
    def _fail(self, title: str, description: Optional[str]) -> Notification:
        n = Notification(title, description)
        self.notify(n)
        return n

    async def _identity(self) -> Identity:
        """Raises AuthError; callers turn it into a notification."""
        return await self.store.resolve_current_identity()

    async def _probe_ownership(self, identity: Identity) -> SpeciesRecord:
        """Lookup that only matches when the caller authored this card's species."""
        row = await self.store.lookup(
            SPECIES_TABLE,
            {"author": identity.id, "scientific_name": self.species.scientific_name},
        )
        return SpeciesRecord.model_validate(row)

    async def open_edit(self) -> bool:
        try:
            identity = await self._identity()
        except AuthError as e:
            self._fail("Authentication failed", e.message)
            return False

        try:
            record = await self._probe_ownership(identity)
        except StoreError as e:
            self._fail("You must author the entry to change it", e.message)
            return False

        self.form_defaults = record
        self.form_values = record.form_defaults()
        self.form_errors = {}
        self.edit_open = True
        return True

    async def submit_edit(self, raw: Mapping[str, Any]) -> SubmitResult:
        validation = validate_species_edit(raw)
        if not validation.ok:
            # stays open; errors are shown next to their fields
            self.form_values = dict(raw)
            self.form_errors = validation.errors
            return SubmitResult(saved=False, validation=validation)
        self.form_errors = {}
        edit = validation.value

        try:
            identity = await self._identity()
        except AuthError as e:
            n = self._fail("Authentication failed", e.message)
            return SubmitResult(saved=False, validation=validation, notification=n)

        try:
            await self._probe_ownership(identity)
        except StoreError as e:
            n = self._fail("Can not modify other people's entries", e.message)
            return SubmitResult(saved=False, validation=validation, notification=n)

        try:
            await self.store.update(
                SPECIES_TABLE,
                edit.update_values(identity.id),
                {"scientific_name": edit.scientific_name},
            )
        except StoreError as e:
            self.form_values = dict(raw)
            n = self._fail("Could not update species", e.message)
            return SubmitResult(saved=False, validation=validation, notification=n)

        self.form_values = edit.model_dump()
        self.edit_open = False
        dbg("updated", edit.scientific_name, "as", identity.id)
        await self._refresh()
        return SubmitResult(saved=True, validation=validation)

    def cancel_edit(self) -> None:
        self.edit_open = False
        self.form_defaults = None
        self.form_values = {}
        self.form_errors = {}

    async def _refresh(self) -> None:
        # the write already landed; a failed refetch only leaves the page stale
        if self.invalidate is None:
            return
        try:
            res = self.invalidate(INVALIDATE_SCOPE)
            if inspect.isawaitable(res):
                await res
        except CatalogError as e:
            print("WARN: page refresh after edit failed ->", e.message)
