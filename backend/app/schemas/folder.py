from pydantic import BaseModel, Field
from typing import List, Optional


class FolderCreate(BaseModel):
    project_id: str
    name: str = Field(..., min_length=1)
    parent_folder_id: Optional[str] = None


class FolderUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    # An explicit null moves the folder to the top level
    parent_folder_id: Optional[str] = None
    is_favorite: Optional[bool] = None


class Folder(BaseModel):
    id: str
    project_id: str
    owner_id: str
    name: str
    parent_folder_id: Optional[str] = None
    is_favorite: bool = False

    class Config:
        from_attributes = True


class FolderTreeNode(BaseModel):
    id: str
    name: str
    parent_folder_id: Optional[str] = None
    is_favorite: bool = False
    children: List["FolderTreeNode"] = []
