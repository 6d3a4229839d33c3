"""
Tests for the experiments and items HTTP API.

Tests cover:
- Authentication: missing, invalid, expired tokens and unvalidated accounts
- Listing with filters, pagination and has_more
- Single reads with permissions and visibility names
- Updates, locking, permissions, categories and duplication
- Records attached to an entity (steps, links, tags, comments, uploads)
- Error responses of domain exceptions
"""

from eln.entities import Items


class TestAuthentication:
    def test_missing_token(self, client):
        response = client.get("/api/v1/experiments")
        assert response.status_code == 401
        assert response.json()["detail"] == "Missing authentication token"

    def test_invalid_token(self, client):
        response = client.get(
            "/api/v1/experiments", headers={"Authorization": "Bearer not-a-jwt"}
        )
        assert response.status_code == 401

    def test_expired_token(self, client, auth_headers):
        response = client.get("/api/v1/experiments", headers=auth_headers(2, expires_in=-60))
        assert response.status_code == 401

    def test_malformed_subject(self, client, auth_headers):
        response = client.get("/api/v1/experiments", headers=auth_headers("bob"))
        assert response.status_code == 401

    def test_unknown_subject(self, client, auth_headers):
        response = client.get("/api/v1/experiments", headers=auth_headers(4242))
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token subject"

    def test_unvalidated_account(self, client, auth_headers):
        response = client.get("/api/v1/experiments", headers=auth_headers(6))
        assert response.status_code == 403
        assert response.json()["error"] == "illegal_action"

    def test_team_claim(self, client, auth_headers):
        response = client.get("/api/v1/experiments", headers=auth_headers(2, team=2))
        assert response.status_code == 403


class TestListing:
    def test_empty(self, client, auth_headers):
        response = client.get("/api/v1/experiments", headers=auth_headers(2))
        assert response.status_code == 200
        assert response.json() == {
            "items": [],
            "count": 0,
            "has_more": False,
            "offset": 0,
            "limit": 15,
        }

    def test_has_more(self, client, auth_headers, bob, new_experiment):
        for _ in range(3):
            new_experiment(bob)

        response = client.get("/api/v1/experiments?limit=2", headers=auth_headers(2))
        data = response.json()
        assert data["count"] == 2
        assert data["has_more"] is True

        response = client.get("/api/v1/experiments?limit=2&offset=2", headers=auth_headers(2))
        data = response.json()
        assert data["count"] == 1
        assert data["has_more"] is False

    def test_filters(self, client, auth_headers, bob, carol, new_experiment):
        new_experiment(bob, title="Western blot")
        expected = new_experiment(carol, title="Western blot", category=2)
        new_experiment(carol, title="Cloning", category=2)

        response = client.get(
            "/api/v1/experiments",
            params={"owner": 3, "category": 2, "title": "western"},
            headers=auth_headers(2),
        )
        items = response.json()["items"]
        assert [item["id"] for item in items] == [expected]
        assert items[0]["fullname"] == "Carol Clark"
        assert items[0]["category"] == "Success"

    def test_extended(self, client, auth_headers, db_session, bob, new_item):
        Items(db_session, bob, new_item(bob)).tags.create("igg")

        response = client.get("/api/v1/items?extended=true", headers=auth_headers(2))
        item = response.json()["items"][0]
        assert item["tags"] == "igg"
        assert item["body"] == "<p>Antibody</p>"

    def test_invalid_order(self, client, auth_headers):
        response = client.get("/api/v1/experiments?order=body", headers=auth_headers(2))
        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "improper_action"
        assert body["details"]["field"] == "order"

    def test_unknown_entity_type(self, client, auth_headers):
        response = client.get("/api/v1/uploads", headers=auth_headers(2))
        assert response.status_code == 422


class TestEntity:
    def test_create_experiment(self, client, auth_headers):
        response = client.post("/api/v1/experiments", json={}, headers=auth_headers(2))
        assert response.status_code == 201
        entity_id = response.json()["id"]

        data = client.get(f"/api/v1/experiments/{entity_id}", headers=auth_headers(2)).json()
        assert data["body"] == "<p>Common</p>"
        assert data["permissions"] == {"read": True, "write": True}
        assert data["canread_name"] == "Team"
        assert data["canwrite_name"] == "User"

    def test_create_item_without_type(self, client, auth_headers):
        response = client.post("/api/v1/items", json={}, headers=auth_headers(2))
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid item type"

    def test_read_not_found(self, client, auth_headers):
        response = client.get("/api/v1/experiments/999", headers=auth_headers(2))
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    def test_read_forbidden(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        response = client.get(f"/api/v1/experiments/{entity_id}", headers=auth_headers(4))
        assert response.status_code == 403
        assert response.json()["error"] == "illegal_action"

    def test_reader_permissions(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        response = client.get(
            f"/api/v1/experiments/{entity_id}/permissions", headers=auth_headers(3)
        )
        assert response.json() == {"read": True, "write": False}

    def test_update(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        response = client.patch(
            f"/api/v1/experiments/{entity_id}",
            json={"title": "Assay", "date": "2024-02-01", "body": "<p>done</p>"},
            headers=auth_headers(2),
        )
        assert response.status_code == 200

        data = client.get(f"/api/v1/experiments/{entity_id}", headers=auth_headers(2)).json()
        assert data["title"] == "Assay"
        assert data["date"] == "2024-02-01"

        revisions = client.get(
            f"/api/v1/experiments/{entity_id}/revisions", headers=auth_headers(2)
        ).json()
        assert [revision["body"] for revision in revisions] == ["<p>done</p>"]

    def test_update_by_reader(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        response = client.patch(
            f"/api/v1/experiments/{entity_id}", json={"title": "x"}, headers=auth_headers(3)
        )
        assert response.status_code == 403

    def test_lock(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)

        response = client.post(f"/api/v1/experiments/{entity_id}/lock", headers=auth_headers(2))
        assert response.json() == {"locked": True}

        response = client.patch(
            f"/api/v1/experiments/{entity_id}", json={"title": "x"}, headers=auth_headers(2)
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Cannot update a locked entity!"

        response = client.delete(f"/api/v1/experiments/{entity_id}", headers=auth_headers(2))
        assert response.status_code == 400

    def test_update_permissions(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        url = f"/api/v1/experiments/{entity_id}/permissions"

        response = client.patch(url, json={"rw": "read", "value": "public"}, headers=auth_headers(2))
        assert response.status_code == 200
        assert client.get(f"/api/v1/experiments/{entity_id}", headers=auth_headers(4)).status_code == 200

        response = client.patch(url, json={"rw": "read", "value": "nobody"}, headers=auth_headers(2))
        assert response.status_code == 400

        response = client.patch(url, json={"rw": "execute", "value": "team"}, headers=auth_headers(2))
        assert response.status_code == 422

    def test_unknown_group_keeps_entity_readable(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        response = client.patch(
            f"/api/v1/experiments/{entity_id}/permissions",
            json={"rw": "read", "value": "999"},
            headers=auth_headers(2),
        )
        assert response.status_code == 400
        assert response.json()["error"] == "improper_action"

        response = client.get(f"/api/v1/experiments/{entity_id}", headers=auth_headers(2))
        assert response.status_code == 200

    def test_update_category(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        url = f"/api/v1/experiments/{entity_id}/category"

        assert client.patch(url, json={"category": 2}, headers=auth_headers(2)).status_code == 200
        assert client.patch(url, json={"category": 3}, headers=auth_headers(2)).status_code == 400

    def test_duplicate_and_destroy(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob, title="Assay")

        response = client.post(
            f"/api/v1/experiments/{entity_id}/duplicate", headers=auth_headers(3)
        )
        assert response.status_code == 201
        copy_id = response.json()["id"]
        copy = client.get(f"/api/v1/experiments/{copy_id}", headers=auth_headers(3)).json()
        assert copy["title"] == "Assay I"
        assert copy["userid"] == 3

        response = client.delete(f"/api/v1/experiments/{copy_id}", headers=auth_headers(3))
        assert response.status_code == 200
        assert client.get(f"/api/v1/experiments/{copy_id}", headers=auth_headers(3)).status_code == 404

    def test_timestamp_info(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        response = client.get(f"/api/v1/experiments/{entity_id}/timestamp", headers=auth_headers(2))
        assert response.json() == {}


class TestAttachedRecords:
    def test_steps(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        url = f"/api/v1/experiments/{entity_id}/steps"

        step_id = client.post(url, json={"body": "Coat plate"}, headers=auth_headers(2)).json()["id"]
        response = client.patch(f"{url}/{step_id}/finish", headers=auth_headers(2))
        assert response.json() == {"finished": True}

        steps = client.get(url, headers=auth_headers(2)).json()
        assert steps[0]["finished"] is True

        assert client.delete(f"{url}/{step_id}", headers=auth_headers(2)).status_code == 200
        assert client.get(url, headers=auth_headers(2)).json() == []

    def test_links(self, client, auth_headers, bob, new_experiment, new_item):
        entity_id = new_experiment(bob)
        item_id = new_item(bob, title="Anti-GFP")
        url = f"/api/v1/experiments/{entity_id}/links"

        response = client.post(url, json={"link_id": item_id}, headers=auth_headers(2))
        assert response.status_code == 201
        response = client.post(url, json={"link_id": item_id}, headers=auth_headers(2))
        assert response.status_code == 400

        links = client.get(url, headers=auth_headers(2)).json()
        assert links[0]["title"] == "Anti-GFP"

    def test_tags(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        url = f"/api/v1/experiments/{entity_id}/tags"

        tag_id = client.post(url, json={"tag": "elisa"}, headers=auth_headers(2)).json()["id"]
        assert client.get(url, headers=auth_headers(2)).json() == [{"tag_id": tag_id, "tag": "elisa"}]

        client.delete(f"{url}/{tag_id}", headers=auth_headers(2))
        assert client.get(url, headers=auth_headers(2)).json() == []

    def test_tags_of_unreadable_entity(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        response = client.get(f"/api/v1/experiments/{entity_id}/tags", headers=auth_headers(4))
        assert response.status_code == 403

    def test_comments(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        url = f"/api/v1/experiments/{entity_id}/comments"

        response = client.post(url, json={"comment": "Nice gel"}, headers=auth_headers(3))
        assert response.status_code == 201
        comment_id = response.json()["id"]

        response = client.patch(f"{url}/{comment_id}", json={"comment": "Hijack"}, headers=auth_headers(2))
        assert response.status_code == 403

        response = client.patch(f"{url}/{comment_id}", json={"comment": "Nicer gel"}, headers=auth_headers(3))
        assert response.status_code == 200
        assert client.get(url, headers=auth_headers(2)).json()[0]["comment"] == "Nicer gel"

    def test_uploads(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob)
        url = f"/api/v1/experiments/{entity_id}/uploads"

        response = client.post(
            url, json={"real_name": "gel.png", "long_name": "ab/gel.png"}, headers=auth_headers(2)
        )
        upload_id = response.json()["id"]
        client.patch(f"{url}/{upload_id}", json={"comment": "Lane 3"}, headers=auth_headers(2))

        uploads = client.get(url, headers=auth_headers(2)).json()
        assert uploads[0]["comment"] == "Lane 3"

        assert client.delete(f"{url}/{upload_id}", headers=auth_headers(2)).status_code == 200


class TestSearchRoutes:
    def test_autocomplete(self, client, auth_headers, bob, new_item):
        item_id = new_item(bob, title="Anti-GFP")
        response = client.get("/api/v1/autocomplete/items?term=gfp", headers=auth_headers(2))
        assert response.json() == [f"{item_id} - Antibody - Anti-GFP"]

    def test_autocomplete_bad_source(self, client, auth_headers):
        response = client.get("/api/v1/autocomplete/teams?term=a", headers=auth_headers(2))
        assert response.status_code == 400

    def test_mentions(self, client, auth_headers, bob, new_experiment):
        entity_id = new_experiment(bob, title="GFP expression")
        response = client.get("/api/v1/mentions?term=GFP", headers=auth_headers(2))
        assert response.json() == [
            {"name": f"<a href='experiments.php?mode=view&id={entity_id}'>[Experiment] GFP expression</a>"}
        ]
