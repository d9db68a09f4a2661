from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

RequiredText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class FilamentInput(BaseModel):
    """Body of POST /filaments and PUT /filaments/{id}.

    Text fields are stored trimmed; amount must be a finite, non-negative number.
    """

    brand: RequiredText
    color: RequiredText
    type: RequiredText
    material: RequiredText
    amount: float = Field(..., ge=0, allow_inf_nan=False)


class FilamentResponse(BaseModel):
    id: int
    brand: str
    color: str
    type: str
    material: str
    amount: float
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OkResponse(BaseModel):
    ok: bool = True
