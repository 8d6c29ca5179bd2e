from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional


class EnvironmentType(str, Enum):
    INDOOR = "Indoor"
    OUTDOOR = "Outdoor"
    GREENHOUSE = "Estufa"


class EnvironmentCreate(BaseModel):
    name: str = Field(min_length=1)
    type: Optional[EnvironmentType] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    equipment: Optional[List[str]] = None


class EnvironmentUpdate(BaseModel):
    """
    Partial update. Only fields that were explicitly set are written:
    leaving capacity out keeps the stored value, passing capacity=None clears it.
    """
    name: Optional[str] = Field(default=None, min_length=1)
    type: Optional[EnvironmentType] = None
    capacity: Optional[int] = Field(default=None, ge=0)
    equipment: Optional[List[str]] = None

    @field_validator("name")
    @classmethod
    def name_not_cleared(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("name cannot be cleared")
        return value


class Environment(BaseModel):
    id: str
    owner_id: str
    name: str
    type: Optional[EnvironmentType] = None
    capacity: Optional[int] = None
    equipment: List[str] = Field(default_factory=list)
    created_at: str

    class Config:
        from_attributes = True
