from .user import User
from .project import Project
from .folder import Folder
from .prompt import Prompt, PromptVersion, PromptTag
from .tag import Tag

__all__ = ["User", "Project", "Folder", "Prompt", "PromptVersion", "PromptTag", "Tag"]
