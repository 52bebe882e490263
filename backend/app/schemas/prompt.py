from pydantic import BaseModel, Field
from datetime import datetime
from typing import List, Literal, Optional

ModelName = Literal["gemini-2.5-flash", "gpt-4", "claude-3"]


class ModelSettings(BaseModel):
    model: ModelName = "gemini-2.5-flash"
    temperature: float = Field(0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(1024, gt=0)

    class Config:
        from_attributes = True


class PromptVersion(BaseModel):
    id: str
    prompt_id: str
    version_number: int
    content: str
    model_settings: ModelSettings
    created_at: datetime

    class Config:
        from_attributes = True


class PromptCreate(BaseModel):
    project_id: str
    folder_id: Optional[str] = None
    title: str = ""
    tags: List[str] = []
    is_favorite: bool = False
    content: str = ""
    model_settings: Optional[ModelSettings] = None


class PromptUpdate(BaseModel):
    project_id: Optional[str] = None
    folder_id: Optional[str] = None
    title: Optional[str] = None
    tags: Optional[List[str]] = None
    is_favorite: Optional[bool] = None
    content: Optional[str] = None
    model_settings: Optional[ModelSettings] = None


class Prompt(BaseModel):
    id: str
    project_id: str
    folder_id: Optional[str] = None
    owner_id: str
    title: str
    tags: List[str]
    is_favorite: bool
    current_version_id: Optional[str] = None
    versions: List[PromptVersion] = []
    created_at: datetime

    class Config:
        from_attributes = True
