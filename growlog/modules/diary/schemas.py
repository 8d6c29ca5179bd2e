from pydantic import BaseModel, Field, field_validator
from typing import Optional


class DiaryEntryCreate(BaseModel):
    note: str = Field(min_length=1)
    stage: Optional[str] = None
    height_cm: Optional[float] = Field(default=None, ge=0)
    ec: Optional[float] = Field(default=None, ge=0)
    ph: Optional[float] = Field(default=None, ge=0, le=14)
    temp: Optional[float] = None
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    photo_url: Optional[str] = None
    ai_summary: Optional[str] = None


class DiaryEntryUpdate(BaseModel):
    note: Optional[str] = Field(default=None, min_length=1)
    stage: Optional[str] = None
    height_cm: Optional[float] = Field(default=None, ge=0)
    ec: Optional[float] = Field(default=None, ge=0)
    ph: Optional[float] = Field(default=None, ge=0, le=14)
    temp: Optional[float] = None
    humidity: Optional[float] = Field(default=None, ge=0, le=100)
    photo_url: Optional[str] = None
    ai_summary: Optional[str] = None

    @field_validator("note")
    @classmethod
    def note_not_cleared(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("note cannot be cleared")
        return value


class DiaryEntry(BaseModel):
    id: str
    plant_id: str
    author_id: str
    timestamp: str
    note: str
    stage: Optional[str] = None
    height_cm: Optional[float] = None
    ec: Optional[float] = None
    ph: Optional[float] = None
    temp: Optional[float] = None
    humidity: Optional[float] = None
    photo_url: Optional[str] = None
    ai_summary: Optional[str] = None

    class Config:
        from_attributes = True
