from pydantic import BaseModel, Field
from typing import Optional


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: Optional[str] = None


class Tag(BaseModel):
    id: str
    name: str
    color: str

    class Config:
        from_attributes = True
