from datetime import date
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional

# Growth stages used across the app; status is free-form but these are the usual values
SEEDLING = "Plântula"
VEGETATIVE = "Vegetativo"
FLOWERING = "Floração"
DRYING = "Secagem"
HARVESTED = "Colhida"

PLANT_STATUSES: List[str] = [SEEDLING, VEGETATIVE, FLOWERING, DRYING, HARVESTED]


class PlantCreate(BaseModel):
    qr_code: str = Field(min_length=1)
    strain: str = Field(min_length=1)
    birth_date: date
    grow_room_id: str
    status: str = VEGETATIVE


class PlantUpdate(BaseModel):
    """Partial update; qr_code is the plant's label and cannot change."""
    strain: Optional[str] = Field(default=None, min_length=1)
    birth_date: Optional[date] = None
    grow_room_id: Optional[str] = None
    status: Optional[str] = Field(default=None, min_length=1)

    @field_validator("strain", "birth_date", "grow_room_id", "status")
    @classmethod
    def not_cleared(cls, value):
        if value is None:
            raise ValueError("field cannot be cleared")
        return value


class Plant(BaseModel):
    id: str
    owner_id: str
    qr_code: str
    strain: str
    birth_date: date
    grow_room_id: str
    status: str
    created_at: str

    class Config:
        from_attributes = True
