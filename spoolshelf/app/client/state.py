"""Client inventory state and its transitions.

``InventoryState`` is immutable. Every transition is a plain function that
takes a state and returns a new one, so the controller owns exactly one
reference and rendering code can hold snapshots safely.

Each operation source carries a generation counter. Starting an operation
bumps it; a completion is only applied if it still carries the current
generation, so an older response resolving late cannot overwrite a newer one.
"""

from dataclasses import dataclass, field, replace

from spoolshelf.app.client.api import ApiError
from spoolshelf.app.schemas.inventory import (
    EMPTY_DRAFT,
    FilamentDraft,
    FilamentRecord,
    FilterOptions,
    InventoryFilters,
    OperationSource,
    OperationStatus,
    SortField,
    SortState,
)
from spoolshelf.app.services import inventory


@dataclass(frozen=True)
class OperationState:
    status: OperationStatus = OperationStatus.IDLE
    error: ApiError | None = None
    generation: int = 0


@dataclass(frozen=True)
class OperationStates:
    """One status slot per operation source."""

    load: OperationState = field(default_factory=OperationState)
    create: OperationState = field(default_factory=OperationState)
    update: OperationState = field(default_factory=OperationState)
    delete: OperationState = field(default_factory=OperationState)
    auth_verify: OperationState = field(default_factory=OperationState)

    def get(self, source: OperationSource) -> OperationState:
        if source == OperationSource.LOAD:
            return self.load
        elif source == OperationSource.CREATE:
            return self.create
        elif source == OperationSource.UPDATE:
            return self.update
        elif source == OperationSource.DELETE:
            return self.delete
        elif source == OperationSource.AUTH_VERIFY:
            return self.auth_verify
        raise ValueError(f"Unknown operation source: {source!r}")

    def with_state(self, source: OperationSource, state: OperationState) -> "OperationStates":
        if source == OperationSource.LOAD:
            return replace(self, load=state)
        elif source == OperationSource.CREATE:
            return replace(self, create=state)
        elif source == OperationSource.UPDATE:
            return replace(self, update=state)
        elif source == OperationSource.DELETE:
            return replace(self, delete=state)
        elif source == OperationSource.AUTH_VERIFY:
            return replace(self, auth_verify=state)
        raise ValueError(f"Unknown operation source: {source!r}")


@dataclass(frozen=True)
class InventoryState:
    filaments: tuple[FilamentRecord, ...] = ()
    sort: SortState = field(default_factory=SortState)
    filters: InventoryFilters = field(default_factory=InventoryFilters)
    operations: OperationStates = field(default_factory=OperationStates)

    passcode: str = ""
    auth_ready: bool = False

    new_draft: FilamentDraft = EMPTY_DRAFT
    new_draft_errors: dict[str, str] = field(default_factory=dict)

    editing_id: int | None = None
    edit_draft: FilamentDraft = EMPTY_DRAFT
    edit_draft_errors: dict[str, str] = field(default_factory=dict)

    delete_confirm_id: int | None = None
    pending_update_id: int | None = None
    pending_delete_id: int | None = None


def initial_state(hide_out_of_stock: bool = False) -> InventoryState:
    return InventoryState(filters=InventoryFilters(hide_out_of_stock=hide_out_of_stock))


# ---------------------------------------------------------------------------
# Operation status
# ---------------------------------------------------------------------------


def begin_operation(state: InventoryState, source: OperationSource) -> tuple[InventoryState, int]:
    """Mark ``source`` as loading and return the generation its completion must carry."""
    current = state.operations.get(source)
    generation = current.generation + 1
    operations = state.operations.with_state(source, OperationState(OperationStatus.LOADING, None, generation))
    return replace(state, operations=operations), generation


def is_current(state: InventoryState, source: OperationSource, generation: int) -> bool:
    return state.operations.get(source).generation == generation


def finish_operation(
    state: InventoryState,
    source: OperationSource,
    generation: int,
    status: OperationStatus,
    error: ApiError | None = None,
) -> InventoryState:
    """Record the outcome of an operation unless a newer one has started since."""
    if not is_current(state, source, generation):
        return state
    operations = state.operations.with_state(source, OperationState(status, error, generation))
    return replace(state, operations=operations)


def set_operation(
    state: InventoryState,
    source: OperationSource,
    status: OperationStatus,
    error: ApiError | None = None,
) -> InventoryState:
    """Set a status outright, superseding anything still in flight for ``source``."""
    generation = state.operations.get(source).generation + 1
    operations = state.operations.with_state(source, OperationState(status, error, generation))
    return replace(state, operations=operations)


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


def replace_filaments(state: InventoryState, filaments: list[FilamentRecord]) -> InventoryState:
    return replace(state, filaments=tuple(filaments))


def add_filament(state: InventoryState, filament: FilamentRecord) -> InventoryState:
    if any(existing.id == filament.id for existing in state.filaments):
        return merge_filament(state, filament)
    return replace(state, filaments=state.filaments + (filament,))


def merge_filament(state: InventoryState, filament: FilamentRecord) -> InventoryState:
    """Swap in a fresher copy of a record; an older copy never replaces a newer one."""
    merged = tuple(
        filament if existing.id == filament.id and filament.updated_at >= existing.updated_at else existing
        for existing in state.filaments
    )
    return replace(state, filaments=merged)


def remove_filament(state: InventoryState, filament_id: int) -> InventoryState:
    return replace(state, filaments=tuple(f for f in state.filaments if f.id != filament_id))


# ---------------------------------------------------------------------------
# Editing and delete confirmation
# ---------------------------------------------------------------------------


def set_new_draft(state: InventoryState, draft: FilamentDraft) -> InventoryState:
    """Update the create form, dropping field errors the user has since fixed."""
    errors = dict(state.new_draft_errors)
    if draft.brand.strip():
        errors.pop("brand", None)
    if draft.color.strip():
        errors.pop("color", None)
    if draft.type.strip():
        errors.pop("type", None)
    if draft.material.strip():
        errors.pop("material", None)
    if draft.amount >= 0:
        errors.pop("amount", None)
    return replace(state, new_draft=draft, new_draft_errors=errors)


def start_edit(state: InventoryState, filament: FilamentRecord) -> InventoryState:
    # Only one row is in flight at a time: editing cancels a pending delete
    return replace(
        state,
        editing_id=filament.id,
        edit_draft=filament.to_draft(),
        edit_draft_errors={},
        delete_confirm_id=None,
    )


def set_edit_draft(state: InventoryState, draft: FilamentDraft) -> InventoryState:
    return replace(state, edit_draft=draft)


def cancel_edit(state: InventoryState) -> InventoryState:
    return replace(state, editing_id=None, edit_draft_errors={})


def request_delete(state: InventoryState, filament_id: int) -> InventoryState:
    return replace(state, delete_confirm_id=filament_id, editing_id=None)


def cancel_delete(state: InventoryState) -> InventoryState:
    return replace(state, delete_confirm_id=None)


# ---------------------------------------------------------------------------
# Filters, sort and auth
# ---------------------------------------------------------------------------


def set_filters(state: InventoryState, filters: InventoryFilters) -> InventoryState:
    return replace(state, filters=filters)


def reset_filters(state: InventoryState) -> InventoryState:
    return replace(state, filters=InventoryFilters())


def toggle_sort(state: InventoryState, sort_field: SortField) -> InventoryState:
    return replace(state, sort=inventory.toggle_sort(state.sort, sort_field))


def set_passcode(state: InventoryState, passcode: str) -> InventoryState:
    return replace(state, passcode=passcode, auth_ready=True)


def clear_auth(state: InventoryState) -> InventoryState:
    return replace(state, passcode="", editing_id=None, delete_confirm_id=None)


# ---------------------------------------------------------------------------
# Derived views
# ---------------------------------------------------------------------------


def visible_filaments(state: InventoryState) -> list[FilamentRecord]:
    """What the list renders: always derived, never stored."""
    return inventory.sort_filaments(inventory.filter_filaments(state.filaments, state.filters), state.sort)


def is_authorized(state: InventoryState) -> bool:
    return state.auth_ready and bool(state.passcode)


def filter_options(state: InventoryState) -> FilterOptions:
    return inventory.get_filter_options(state.filaments)


def total_spools(state: InventoryState) -> float:
    return inventory.get_total_spools(state.filaments)


def has_active_filters(state: InventoryState) -> bool:
    return inventory.has_active_filters(state.filters)
