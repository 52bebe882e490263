from .user import User, UserCreate, UserLogin, Token, RefreshRequest, UserProfileUpdate
from .project import Project, ProjectCreate, ProjectUpdate
from .folder import Folder, FolderCreate, FolderUpdate, FolderTreeNode
from .tag import Tag, TagCreate
from .prompt import Prompt, PromptCreate, PromptUpdate, PromptVersion, ModelSettings
from .assistant import (
    AnalyzePromptRequest, AnalyzePromptResponse,
    SuggestTagsRequest, SuggestTagsResponse,
    FeedbackRequest, FeedbackResponse,
)

__all__ = [
    "User", "UserCreate", "UserLogin", "Token", "RefreshRequest", "UserProfileUpdate",
    "Project", "ProjectCreate", "ProjectUpdate",
    "Folder", "FolderCreate", "FolderUpdate", "FolderTreeNode",
    "Tag", "TagCreate",
    "Prompt", "PromptCreate", "PromptUpdate", "PromptVersion", "ModelSettings",
    "AnalyzePromptRequest", "AnalyzePromptResponse",
    "SuggestTagsRequest", "SuggestTagsResponse",
    "FeedbackRequest", "FeedbackResponse",
]
