"""
Tag endpoint tests - case-insensitive get-or-create and cascade delete.

Run with: pytest backend/tests/test_tags_api.py -v
"""
from unittest.mock import patch

from sqlalchemy.exc import IntegrityError

from app.crud import tag as tag_crud
from app.models import Tag
from app.schemas.tag import TagCreate


class TestCreateTag:

    def test_name_is_normalized(self, client, auth_headers):
        resp = client.post("/tags/", json={"name": "  Copywriting "}, headers=auth_headers)

        assert resp.status_code == 200
        assert resp.json()["name"] == "copywriting"
        assert resp.json()["color"] in tag_crud.TAG_COLORS

    def test_same_name_any_case_returns_existing(self, client, auth_headers):
        first = client.post("/tags/", json={"name": "SEO"}, headers=auth_headers).json()
        second = client.post("/tags/", json={"name": "seo", "color": "bg-red-500"}, headers=auth_headers).json()

        assert second["id"] == first["id"]
        assert second["color"] == first["color"]
        assert len(client.get("/tags/", headers=auth_headers).json()) == 1

    def test_blank_name_is_400(self, client, auth_headers):
        resp = client.post("/tags/", json={"name": "   "}, headers=auth_headers)

        assert resp.status_code == 400

    def test_concurrent_insert_returns_winner(self, db, make_tag):
        winner = make_tag("race")

        # Simulate the other request committing between lookup and insert
        with patch.object(tag_crud, "get_tag_by_name", side_effect=[None, winner]):
            with patch.object(db, "commit", side_effect=IntegrityError("INSERT", {}, Exception("unique"))):
                tag = tag_crud.get_or_create_tag(db, TagCreate(name="Race"))

        assert tag is winner
        assert db.query(Tag).count() == 1


class TestDeleteTag:

    def test_delete_detaches_from_prompts(self, client, auth_headers, make_project, make_prompt, make_tag):
        project = make_project()
        doomed, kept = make_tag("doomed"), make_tag("kept")
        prompt = make_prompt(project, tags=[doomed, kept])

        resp = client.delete(f"/tags/{doomed.id}", headers=auth_headers)

        assert resp.status_code == 204
        body = client.get(f"/prompts/{prompt.id}", headers=auth_headers).json()
        assert body["tags"] == [kept.id]
        assert [t["name"] for t in client.get("/tags/", headers=auth_headers).json()] == ["kept"]

    def test_unknown_tag_is_404(self, client, auth_headers):
        assert client.delete("/tags/nope", headers=auth_headers).status_code == 404
