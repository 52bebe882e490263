"""Shared pytest fixtures for the Prompt Library API tests."""
import os

# Settings are read at import time, so the environment goes first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SECRET_KEY"] = "test-secret-key"
os.environ["ENVIRONMENT"] = "testing"
os.environ["RATE_LIMIT_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "console"
os.environ.pop("OPENAI_API_KEY", None)
os.environ.pop("RESEND_API_KEY", None)

import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.database.connection import Base, SessionLocal, engine, create_tables
from app.main import app
from app.models import Folder, Project, Tag
from app.crud import prompt as prompt_crud
from app.crud import user as user_crud
from app.schemas.prompt import PromptCreate
from app.schemas.user import UserCreate


@pytest.fixture
def db():
    """Fresh in-memory schema per test."""
    create_tables()
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db):
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def user(db):
    return user_crud.create_user(
        db, UserCreate(email="ada@example.com", password="secret-pass", display_name="Ada")
    )


@pytest.fixture
def auth_headers(user):
    token = create_access_token(data={"sub": user.email})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def make_project(db, user):
    def _make(name="Project"):
        project = Project(name=name, owner_id=user.id)
        db.add(project)
        db.commit()
        return project
    return _make


@pytest.fixture
def make_folder(db, user):
    def _make(project, name="Folder", parent=None):
        folder = Folder(
            project_id=project.id,
            name=name,
            parent_folder_id=parent.id if parent else None,
            owner_id=user.id,
        )
        db.add(folder)
        db.commit()
        return folder
    return _make


@pytest.fixture
def make_tag(db):
    def _make(name):
        tag = Tag(name=Tag.normalize_name(name), color="bg-sky-500")
        db.add(tag)
        db.commit()
        return tag
    return _make


@pytest.fixture
def make_prompt(db, user):
    def _make(project, folder=None, tags=(), title="Prompt", content="Write a haiku"):
        return prompt_crud.create_prompt(
            db,
            PromptCreate(
                project_id=project.id,
                folder_id=folder.id if folder else None,
                title=title,
                tags=[tag.id for tag in tags],
                content=content,
            ),
            user.id,
        )
    return _make
