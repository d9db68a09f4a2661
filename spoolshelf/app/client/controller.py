"""Client state controller: the single authority for what the inventory UI shows.

The controller owns one ``InventoryState`` and replaces it through the pure
transitions in ``state``. API calls are awaited without blocking other
actions; after every await the latest state is re-read so concurrent
actions compose instead of clobbering each other.
"""

import asyncio
import logging
from dataclasses import replace

from spoolshelf.app.client import state as transitions
from spoolshelf.app.client.api import ApiError, InventoryApiClient
from spoolshelf.app.client.state import InventoryState
from spoolshelf.app.client.storage import HIDE_OUT_OF_STOCK_STORAGE_KEY, PASSCODE_STORAGE_KEY, MemoryStorage
from spoolshelf.app.schemas.inventory import (
    EMPTY_DRAFT,
    FilamentDraft,
    FilamentRecord,
    InventoryFilters,
    OperationSource,
    OperationStatus,
    SortField,
)
from spoolshelf.app.services.normalize import normalize_draft, normalize_filament, validate_draft

logger = logging.getLogger(__name__)

PASSCODE_REJECTED_MESSAGE = "Passcode rejected. Enter the current passcode."


class InventoryController:
    """Orchestrates API calls, status tracking and auth for the inventory."""

    def __init__(self, api: InventoryApiClient, storage: MemoryStorage | None = None):
        self.api = api
        self.storage = storage if storage is not None else MemoryStorage()
        hide_out_of_stock = self.storage.get_item(HIDE_OUT_OF_STOCK_STORAGE_KEY) == "true"
        self.state: InventoryState = transitions.initial_state(hide_out_of_stock=hide_out_of_stock)

    # ------------------------------------------------------------------
    # Derived views
    # ------------------------------------------------------------------

    @property
    def authorized(self) -> bool:
        return transitions.is_authorized(self.state)

    @property
    def visible_filaments(self) -> list[FilamentRecord]:
        return transitions.visible_filaments(self.state)

    def operation(self, source: OperationSource):
        return self.state.operations.get(source)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _begin(self, source: OperationSource) -> int:
        self.state, generation = transitions.begin_operation(self.state, source)
        return generation

    def _finish(
        self,
        source: OperationSource,
        generation: int,
        status: OperationStatus,
        error: ApiError | None = None,
    ) -> None:
        if not transitions.is_current(self.state, source, generation):
            logger.debug("Ignoring stale %s completion (generation %s)", source.value, generation)
            return
        self.state = transitions.finish_operation(self.state, source, generation, status, error)

    def _clear_auth_state(self) -> None:
        self.storage.remove_item(PASSCODE_STORAGE_KEY)
        self.state = transitions.clear_auth(self.state)

    def _handle_auth_failure(self, error: ApiError) -> bool:
        """Forget the passcode when the server rejects it during a mutation."""
        if error.status != 401:
            return False

        logger.warning("Passcode rejected during %s; signing out", error.source.value)
        self._clear_auth_state()
        self.state = transitions.set_operation(
            self.state,
            OperationSource.AUTH_VERIFY,
            OperationStatus.ERROR,
            ApiError(OperationSource.AUTH_VERIFY, 401, PASSCODE_REJECTED_MESSAGE),
        )
        return True

    # ------------------------------------------------------------------
    # Loading and auth
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Load the inventory and restore a saved passcode concurrently."""
        await asyncio.gather(self.load_inventory(), self.restore_saved_passcode())

    async def load_inventory(self) -> None:
        source = OperationSource.LOAD
        generation = self._begin(source)

        try:
            filaments = await self.api.fetch_filaments()
        except ApiError as e:
            self._finish(source, generation, OperationStatus.ERROR, e)
            return

        if not transitions.is_current(self.state, source, generation):
            logger.debug("Dropping stale inventory load (generation %s)", generation)
            return
        self.state = transitions.replace_filaments(self.state, [normalize_filament(f) for f in filaments])
        self._finish(source, generation, OperationStatus.SUCCESS)

    async def restore_saved_passcode(self) -> None:
        saved_token = self.storage.get_item(PASSCODE_STORAGE_KEY)
        if not saved_token:
            self.state = replace(self.state, auth_ready=True)
            return

        source = OperationSource.AUTH_VERIFY
        generation = self._begin(source)
        try:
            await self.api.verify_passcode(saved_token)
        except ApiError as e:
            if transitions.is_current(self.state, source, generation):
                self._clear_auth_state()
            self._finish(source, generation, OperationStatus.ERROR, e)
        else:
            if transitions.is_current(self.state, source, generation):
                self.state = transitions.set_passcode(self.state, saved_token)
            self._finish(source, generation, OperationStatus.SUCCESS)
        finally:
            self.state = replace(self.state, auth_ready=True)

    async def save_passcode(self, passcode_input: str) -> None:
        """Verify a passcode and, only once the server accepts it, remember it."""
        source = OperationSource.AUTH_VERIFY
        token = passcode_input.strip()

        if not token:
            self._clear_auth_state()
            self.state = transitions.set_operation(self.state, source, OperationStatus.IDLE)
            return

        generation = self._begin(source)
        try:
            await self.api.verify_passcode(token)
        except ApiError as e:
            if transitions.is_current(self.state, source, generation):
                self._clear_auth_state()
            self._finish(source, generation, OperationStatus.ERROR, e)
        else:
            if transitions.is_current(self.state, source, generation):
                self.storage.set_item(PASSCODE_STORAGE_KEY, token)
                self.state = transitions.set_passcode(self.state, token)
            self._finish(source, generation, OperationStatus.SUCCESS)
        finally:
            self.state = replace(self.state, auth_ready=True)

    def sign_out(self) -> None:
        self._clear_auth_state()
        self.state = transitions.set_operation(self.state, OperationSource.AUTH_VERIFY, OperationStatus.IDLE)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def set_new_draft(self, draft: FilamentDraft) -> None:
        self.state = transitions.set_new_draft(self.state, draft)

    async def create_entry(self) -> None:
        if not self.authorized:
            return

        source = OperationSource.CREATE
        draft = self.state.new_draft
        errors = validate_draft(draft)
        self.state = replace(self.state, new_draft_errors=errors)
        if errors:
            self.state = transitions.set_operation(
                self.state,
                source,
                OperationStatus.ERROR,
                ApiError(source, 400, "Fix the highlighted fields before creating a filament entry."),
            )
            return

        passcode = self.state.passcode
        generation = self._begin(source)
        try:
            created = await self.api.create_filament(normalize_draft(draft), passcode)
        except ApiError as e:
            self._handle_auth_failure(e)
            self._finish(source, generation, OperationStatus.ERROR, e)
            return

        # The server has the record now, so the cache takes it even if a newer create has started
        self.state = transitions.add_filament(self.state, normalize_filament(created))
        if transitions.is_current(self.state, source, generation):
            self.state = replace(self.state, new_draft=EMPTY_DRAFT, new_draft_errors={})
        self._finish(source, generation, OperationStatus.SUCCESS)

    # ------------------------------------------------------------------
    # Edit
    # ------------------------------------------------------------------

    def start_edit(self, filament: FilamentRecord) -> None:
        self.state = transitions.start_edit(self.state, filament)

    def set_edit_draft(self, draft: FilamentDraft) -> None:
        self.state = transitions.set_edit_draft(self.state, draft)

    def cancel_edit(self) -> None:
        self.state = transitions.cancel_edit(self.state)

    async def save_edit(self) -> None:
        editing_id = self.state.editing_id
        if not self.authorized or editing_id is None:
            return

        source = OperationSource.UPDATE
        draft = self.state.edit_draft
        errors = validate_draft(draft)
        self.state = replace(self.state, edit_draft_errors=errors)
        if errors:
            self.state = transitions.set_operation(
                self.state,
                source,
                OperationStatus.ERROR,
                ApiError(source, 400, "Fix the highlighted fields before saving changes."),
            )
            return

        passcode = self.state.passcode
        self.state = replace(self.state, pending_update_id=editing_id)
        generation = self._begin(source)
        try:
            updated = await self.api.update_filament(editing_id, normalize_draft(draft), passcode)
        except ApiError as e:
            self._handle_auth_failure(e)
            self._finish(source, generation, OperationStatus.ERROR, e)
        else:
            self.state = transitions.merge_filament(self.state, normalize_filament(updated))
            if self.state.editing_id == editing_id:
                self.state = replace(self.state, editing_id=None, edit_draft_errors={})
            self._finish(source, generation, OperationStatus.SUCCESS)
        finally:
            if self.state.pending_update_id == editing_id:
                self.state = replace(self.state, pending_update_id=None)

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def request_delete(self, filament_id: int) -> None:
        self.state = transitions.request_delete(self.state, filament_id)

    def cancel_delete(self) -> None:
        self.state = transitions.cancel_delete(self.state)

    async def confirm_delete(self, filament_id: int) -> None:
        if not self.authorized:
            return

        source = OperationSource.DELETE
        passcode = self.state.passcode
        self.state = replace(self.state, pending_delete_id=filament_id)
        generation = self._begin(source)
        try:
            await self.api.delete_filament(filament_id, passcode)
        except ApiError as e:
            self._handle_auth_failure(e)
            self._finish(source, generation, OperationStatus.ERROR, e)
        else:
            self.state = transitions.remove_filament(self.state, filament_id)
            if self.state.delete_confirm_id == filament_id:
                self.state = transitions.cancel_delete(self.state)
            self._finish(source, generation, OperationStatus.SUCCESS)
        finally:
            if self.state.pending_delete_id == filament_id:
                self.state = replace(self.state, pending_delete_id=None)

    # ------------------------------------------------------------------
    # Filters and sort
    # ------------------------------------------------------------------

    def set_filters(self, filters: InventoryFilters) -> None:
        self.state = transitions.set_filters(self.state, filters)
        self.storage.set_item(HIDE_OUT_OF_STOCK_STORAGE_KEY, "true" if filters.hide_out_of_stock else "false")

    def reset_filters(self) -> None:
        self.set_filters(InventoryFilters())

    def toggle_sort(self, sort_field: SortField) -> None:
        self.state = transitions.toggle_sort(self.state, sort_field)
