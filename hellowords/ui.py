# -*- coding: utf-8 -*-
"""Textual UI for HelloWords.

This file contains ONLY the UI: screens, modals, and the App wrapper.
Entry persistence, encryption and the pending-entry flow live in
``logic``, ``crypto`` and ``pending``; the UI only forwards events.
"""
from __future__ import annotations

from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.screen import ModalScreen, Screen
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Static,
    TextArea,
)

from hellowords.auth import SIGNED_IN, AuthSession, LocalAuth
from hellowords.config import load_config
from hellowords.crypto import SessionKeys, session_keys, word_count
from hellowords.drafts import DraftStore, TeardownTimingDetector
from hellowords.embeddings import EmbeddingClient
from hellowords.errors import AuthError, DecryptionError, RemoteWriteError
from hellowords.location import ReverseGeocoder
from hellowords.logic import (
    Entry,
    delete_entry,
    init_db,
    list_entries,
    delete_all_entries,
    get_entry,
    search_entries,
)
from hellowords.pending import PendingEntryCoordinator
from hellowords.storage import LocalStorage

APP_CSS = """
#modal-card {
    width: 80;
    height: auto;
    max-height: 90%;
    border: round $accent;
    padding: 1 2;
    align: center middle;
}
.title { text-style: bold; }
.hint { color: $text-muted; }
#editor { height: 16; }
"""


# ---------------------------------------------------------------------------
# Modals
# ---------------------------------------------------------------------------

class SignInModal(ModalScreen[None]):
    """Email sign-in; completes the LocalAuth flow."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("SIGN IN", classes="title"),
            Static("Your entries are encrypted with a key derived from your account.", classes="hint"),
            Input(placeholder="email", id="email"),
            Horizontal(Button("Sign in", id="sign_in", classes="-primary"), Button("Cancel", id="cancel")),
            id="modal-card",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "sign_in":
            email = self.query_one("#email", Input).value
            try:
                self.app.auth.complete_sign_in(email)
            except AuthError as exc:
                self.app.notify(str(exc))
                return
            self.app.pop_screen()
        elif event.button.id == "cancel":
            self.app.pop_screen()


class SearchModal(ModalScreen[None]):
    """Semantic search over the signed-in account's entries."""

    BINDINGS = [Binding("escape", "app.pop_screen", "Back")]

    def compose(self) -> ComposeResult:
        yield Container(
            Static("SEARCH", classes="title"),
            Input(placeholder="what were you writing about?", id="query"),
            Horizontal(Button("Search", id="do_search", classes="-primary"), Button("Close", id="close")),
            ListView(id="results"),
            id="modal-card",
        )

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "close":
            self.app.pop_screen()
            return
        if bid != "do_search" or self.app.keys is None:
            return
        query = self.query_one("#query", Input).value
        cfg = load_config()
        results = await search_entries(
            self.app.keys,
            query,
            embedder=self.app.embedder,
            threshold=float(cfg.get("match_threshold", 0.7)),
            limit=int(cfg.get("match_count", 5)),
        )
        view = self.query_one("#results", ListView)
        await view.clear()
        if not results:
            await view.append(ListItem(Label("No results.")))
            return
        for entry in results:
            score = f"{entry.similarity:.2f}" if entry.similarity is not None else "-"
            await view.append(ListItem(Label(f"[{score}] {_preview(entry)}", markup=False)))


# ---------------------------------------------------------------------------
# Screens
# ---------------------------------------------------------------------------

def _preview(entry: Entry, width: int = 60) -> str:
    first_line = entry.content.strip().splitlines()[0] if entry.content.strip() else ""
    return f"{entry.created_at[:16]} - {first_line[:width]}"


class EntriesScreen(Screen):
    """Decrypted entry list. Enter opens an entry, d deletes it, D deletes all."""

    BINDINGS = [
        Binding("escape", "app.pop_screen", "Back"),
        Binding("d", "delete_highlighted", "Delete"),
        Binding("D", "delete_all", "Delete all"),
    ]

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="modal-card"):
            yield Static("ENTRIES", classes="title")
            self.list_view = ListView()
            yield self.list_view
        yield Footer()

    async def on_mount(self) -> None:
        await self.refresh_list()

    async def refresh_list(self) -> None:
        await self.list_view.clear()
        self.entries = {}
        if self.app.keys is None:
            return
        self.entries = {e.id: e for e in await list_entries(self.app.keys)}
        for entry in self.entries.values():
            item = ListItem(Label(f"{_preview(entry)} ({entry.location})", markup=False))
            item.data = entry.id
            await self.list_view.append(item)

    async def on_list_view_selected(self, message: ListView.Selected) -> None:
        entry_id = getattr(message.item, "data", None)
        if entry_id is None or self.app.keys is None:
            return
        try:
            entry = await get_entry(self.app.keys, entry_id)
        except DecryptionError:
            self.app.notify("This entry could not be decrypted.", severity="error")
            return
        except ValueError as exc:
            self.app.notify(str(exc), severity="error")
            await self.refresh_list()
            return
        self.app.open_entry(entry)
        self.app.pop_screen()

    async def action_delete_highlighted(self) -> None:
        item = self.list_view.highlighted_child
        if item is None or self.app.keys is None:
            return
        await delete_entry(self.app.keys, item.data)
        self.app.notify("Entry deleted.")
        await self.refresh_list()

    async def action_delete_all(self) -> None:
        if self.app.keys is None:
            return
        count = await delete_all_entries(self.app.keys)
        self.app.notify(f"Deleted {count} entries.")
        await self.refresh_list()


class ComposeScreen(Screen):
    """Main editor."""

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("ctrl+n", "new_entry", "New"),
        Binding("escape", "app.quit", "Quit"),
    ]

    def compose(self) -> ComposeResult:
        yield Header()
        with Container(id="modal-card"):
            self.status = Static("", classes="hint")
            yield self.status
            self.editor = TextArea(id="editor")
            yield self.editor
            yield Horizontal(
                Button("Save", id="save", classes="-primary"),
                Button("New", id="new"),
                Button("Entries", id="entries"),
                Button("Search", id="search"),
            )
            yield Horizontal(
                Button("Location", id="location"),
                Button("Sign in", id="auth"),
            )
        yield Footer()

    def on_mount(self) -> None:
        draft = self.app.drafts.restore(self.app.detector)
        if draft:
            self.editor.text = draft
        self.refresh_status()

    def refresh_status(self) -> None:
        sess = self.app.auth.session
        who = sess.email if sess else "not signed in"
        loc = "on" if self.app.storage.location_enabled else "off"
        mode = f"editing #{self.app.editing.id}" if self.app.editing else "new entry"
        words = word_count(self.editor.text)
        self.status.update(f"{words} words | {mode} | location {loc} | {who}")
        self.query_one("#auth", Button).label = "Sign out" if sess else "Sign in"

    def on_text_area_changed(self, event: TextArea.Changed) -> None:
        if self.app.editing is None:
            self.app.drafts.update(event.text_area.text)
        self.refresh_status()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = event.button.id or ""
        if bid == "save":
            await self.action_save()
        elif bid == "new":
            self.action_new_entry()
        elif bid == "entries":
            if self.app.keys is None:
                self.app.notify("Sign in to see your entries")
                return
            await self.app.push_screen(EntriesScreen())
        elif bid == "search":
            if self.app.keys is None:
                self.app.notify("Sign in to search")
                return
            await self.app.push_screen(SearchModal())
        elif bid == "location":
            self.app.storage.location_enabled = not self.app.storage.location_enabled
            self.refresh_status()
        elif bid == "auth":
            if self.app.auth.session:
                await self.app.auth.sign_out()
            else:
                await self.app.push_screen(SignInModal())

    async def action_save(self) -> None:
        text = self.editor.text
        if not text.strip():
            return
        editing = self.app.editing
        if editing is not None and text.strip() == editing.content.strip():
            await self.app.push_screen(EntriesScreen())
            return

        if self.app.keys is None:
            await self.app.coordinator.save_requested(
                text, editing_entry_id=editing.id if editing else None
            )
            return

        try:
            await self.app.coordinator.submit(
                self.app.keys,
                text,
                location_enabled=self.app.storage.location_enabled,
                locator=self.app.locator,
            )
        except RemoteWriteError as exc:
            self.app.notify(f"Could not save entry: {exc}", severity="error")
            return
        self.app.after_save()
        await self.app.push_screen(EntriesScreen())

    def action_new_entry(self) -> None:
        self.app.editing = None
        self.editor.text = ""
        self.app.drafts.clear()
        self.app.coordinator.discard()
        self.refresh_status()


# ---------------------------------------------------------------------------
# App
# ---------------------------------------------------------------------------

class HelloWordsApp(App):
    """Textual App wrapper. Owns storage, auth and the pending coordinator."""

    TITLE = "hellowords"
    CSS = APP_CSS

    def __init__(self, storage: Optional[LocalStorage] = None) -> None:
        super().__init__()
        cfg = load_config()
        self.storage = storage or LocalStorage()
        self.auth = LocalAuth(self.storage, prompt=self._prompt_sign_in)
        self.embedder = EmbeddingClient.from_config(cfg)
        self.locator = ReverseGeocoder.from_config(cfg)
        self.drafts = DraftStore(self.storage)
        self.coordinator = PendingEntryCoordinator(
            self.storage, self.auth, embedder=self.embedder, drafts=self.drafts
        )
        self.detector = TeardownTimingDetector(self.storage)
        self.keys: Optional[SessionKeys] = None
        self.editing: Optional[Entry] = None

    async def on_mount(self) -> None:
        await init_db()
        self.auth.subscribe(self._on_auth_change)
        await self.push_screen(ComposeScreen())
        if self.auth.session:
            self._on_auth_change(SIGNED_IN, self.auth.session)

    async def _prompt_sign_in(self) -> None:
        await self.push_screen(SignInModal())

    def _on_auth_change(self, event: str, session: Optional[AuthSession]) -> None:
        if event == SIGNED_IN and session is not None:
            self.keys = session_keys(session.user_id, session.email)
            self.run_worker(self._flush_pending(self.keys), exclusive=False)
        else:
            self.keys = None
            self.editing = None
        for screen in self._compose_screens():
            screen.refresh_status()

    async def _flush_pending(self, keys: SessionKeys) -> None:
        entry_id = await self.coordinator.auth_and_key_available(keys)
        if entry_id is None:
            if self.coordinator.staged_text:
                self.notify("Pending entry not saved yet; it stays queued.", severity="warning")
            return
        if self.coordinator.staged_text:
            # Newer text was staged during the flush; keep it in the editor
            self.notify("Pending entry saved; newer text stays queued.")
            return
        self.after_save()
        self.notify("Pending entry saved.")

    def open_entry(self, entry: Entry) -> None:
        self.editing = entry
        for screen in self._compose_screens():
            screen.editor.text = entry.content
            screen.refresh_status()

    def after_save(self) -> None:
        self.editing = None
        for screen in self._compose_screens():
            screen.editor.text = ""
            screen.refresh_status()

    def _compose_screens(self):
        return [s for s in self.screen_stack if isinstance(s, ComposeScreen)]
