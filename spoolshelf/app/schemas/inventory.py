"""Client-side inventory types shared by normalization, filtering and the controller."""

from dataclasses import dataclass, field
from enum import StrEnum

ALL = "all"


class SortField(StrEnum):
    BRAND = "brand"
    COLOR = "color"
    TYPE = "type"
    MATERIAL = "material"
    AMOUNT = "amount"


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True)
class FilamentDraft:
    """Editable subset of a record, held while creating or editing."""

    brand: str = ""
    color: str = ""
    type: str = ""
    material: str = ""
    amount: float = 0.0

    def to_payload(self) -> dict:
        return {
            "brand": self.brand,
            "color": self.color,
            "type": self.type,
            "material": self.material,
            "amount": self.amount,
        }


EMPTY_DRAFT = FilamentDraft()


@dataclass(frozen=True)
class FilamentRecord:
    """A persisted record as returned by the API."""

    id: int
    brand: str
    color: str
    type: str
    material: str
    amount: float
    created_at: str
    updated_at: str

    @classmethod
    def from_dict(cls, data: dict) -> "FilamentRecord":
        return cls(
            id=int(data["id"]),
            brand=str(data.get("brand", "")),
            color=str(data.get("color", "")),
            type=str(data.get("type", "")),
            material=str(data.get("material", "")),
            amount=float(data.get("amount", 0)),
            created_at=str(data.get("created_at", "")),
            updated_at=str(data.get("updated_at", "")),
        )

    def to_draft(self) -> FilamentDraft:
        return FilamentDraft(
            brand=self.brand,
            color=self.color,
            type=self.type,
            material=self.material,
            amount=self.amount,
        )


@dataclass(frozen=True)
class InventoryFilters:
    brand: str = ALL
    material: str = ALL
    type: str = ALL
    search_color: str = ""
    hide_out_of_stock: bool = False


@dataclass(frozen=True)
class SortState:
    field: SortField = SortField.BRAND
    direction: SortDirection = SortDirection.ASC


@dataclass(frozen=True)
class FilterOptions:
    brands: list[str] = field(default_factory=list)
    materials: list[str] = field(default_factory=list)
    types: list[str] = field(default_factory=list)


class OperationSource(StrEnum):
    """Unit of independent status and error tracking in the client."""

    LOAD = "load"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    AUTH_VERIFY = "authVerify"


class OperationStatus(StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"
