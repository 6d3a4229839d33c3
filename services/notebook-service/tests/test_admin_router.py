"""
Tests for the team administration and template HTTP APIs
"""

import pytest

from eln.entities import Experiments


@pytest.fixture
def admin(auth_headers):
    return auth_headers(1)


class TestAdminAccess:
    @pytest.mark.parametrize(
        "path", ["/api/v1/admin/team_groups", "/api/v1/admin/status", "/api/v1/admin/items_types"]
    )
    def test_requires_admin(self, client, auth_headers, path):
        response = client.get(path, headers=auth_headers(2))
        assert response.status_code == 403
        assert response.json()["message"] == "Only a team admin can do this."

    def test_requires_token(self, client):
        assert client.get("/api/v1/admin/status").status_code == 401


class TestTeamGroupsApi:
    def test_lifecycle(self, client, admin):
        response = client.post("/api/v1/admin/team_groups", json={"name": "Cloning"}, headers=admin)
        assert response.status_code == 201
        groupid = response.json()["id"]

        response = client.patch(
            f"/api/v1/admin/team_groups/{groupid}", json={"name": "Imaging"}, headers=admin
        )
        assert response.json() == {"name": "Imaging"}

        response = client.patch(
            f"/api/v1/admin/team_groups/{groupid}/members",
            json={"userid": 3, "action": "add"},
            headers=admin,
        )
        assert response.status_code == 200

        groups = client.get("/api/v1/admin/team_groups", headers=admin).json()
        assert groups == [
            {"id": groupid, "name": "Imaging", "users": [{"userid": 3, "fullname": "Carol Clark"}]}
        ]

        assert client.delete(f"/api/v1/admin/team_groups/{groupid}", headers=admin).status_code == 200
        assert client.get("/api/v1/admin/team_groups", headers=admin).json() == []

    def test_member_of_other_team(self, client, admin):
        groupid = client.post(
            "/api/v1/admin/team_groups", json={"name": "Cloning"}, headers=admin
        ).json()["id"]
        response = client.patch(
            f"/api/v1/admin/team_groups/{groupid}/members",
            json={"userid": 4, "action": "add"},
            headers=admin,
        )
        assert response.status_code == 400

    def test_unknown_group(self, client, admin):
        response = client.delete("/api/v1/admin/team_groups/999", headers=admin)
        assert response.status_code == 404


class TestCategoriesApi:
    def test_status_lifecycle(self, client, admin):
        response = client.post(
            "/api/v1/admin/status", json={"name": "Fail", "color": "#ff0000"}, headers=admin
        )
        assert response.status_code == 201
        status_id = response.json()["id"]

        response = client.put(
            f"/api/v1/admin/status/{status_id}",
            json={"name": "Failed", "color": "ff0000", "is_default": True},
            headers=admin,
        )
        assert response.status_code == 200

        response = client.put(
            "/api/v1/admin/status/ordering", json={"ids": [status_id, 1, 2]}, headers=admin
        )
        assert response.status_code == 200

        statuses = client.get("/api/v1/admin/status", headers=admin).json()
        assert statuses[0]["name"] == "Failed"
        assert statuses[0]["is_default"] is True

        assert client.delete(f"/api/v1/admin/status/{status_id}", headers=admin).status_code == 200

    def test_status_in_use(self, client, admin, bob, new_experiment):
        new_experiment(bob)
        response = client.delete("/api/v1/admin/status/1", headers=admin)
        assert response.status_code == 400

    def test_invalid_color(self, client, admin):
        response = client.post(
            "/api/v1/admin/status", json={"name": "Fail", "color": "blue"}, headers=admin
        )
        assert response.status_code == 400

    def test_items_types(self, client, admin):
        response = client.post(
            "/api/v1/admin/items_types",
            json={"name": "Plasmid", "color": "aabbcc", "template": "<p>Map</p>"},
            headers=admin,
        )
        items_type_id = response.json()["id"]

        response = client.put(
            f"/api/v1/admin/items_types/{items_type_id}",
            json={"name": "Plasmid", "color": "aabbcc", "bookable": True, "template": ""},
            headers=admin,
        )
        assert response.status_code == 200

        items_types = client.get("/api/v1/admin/items_types", headers=admin).json()
        assert [t["name"] for t in items_types] == ["Antibody", "Microscope", "Plasmid"]
        assert items_types[2]["bookable"] is True

        response = client.delete(f"/api/v1/admin/items_types/{items_type_id}", headers=admin)
        assert response.status_code == 200


class TestTeamSettingsApi:
    def test_common_template(self, client, admin, auth_headers):
        response = client.patch(
            "/api/v1/admin/common_template", json={"body": "<p>Lab book</p>"}, headers=admin
        )
        assert response.status_code == 200

        entity_id = client.post("/api/v1/experiments", json={}, headers=auth_headers(2)).json()["id"]
        data = client.get(f"/api/v1/experiments/{entity_id}", headers=auth_headers(2)).json()
        assert data["body"] == "<p>Lab book</p>"

    def test_tags(self, client, admin, db_session, bob, new_experiment):
        tag_id = Experiments(db_session, bob, new_experiment(bob)).tags.create("elisa")

        response = client.patch(
            "/api/v1/admin/tags", json={"tag": "elisa", "new_tag": "ELISA"}, headers=admin
        )
        assert response.status_code == 200
        assert client.delete(f"/api/v1/admin/tags/{tag_id}", headers=admin).status_code == 200

    def test_users(self, client, admin):
        response = client.get("/api/v1/admin/users/autocomplete?term=fresh", headers=admin)
        assert response.json() == []

        response = client.patch("/api/v1/admin/users/6/validate", headers=admin)
        assert response.status_code == 200

        response = client.get("/api/v1/admin/users/autocomplete?term=fresh", headers=admin)
        assert response.json() == ["6 - Frank Fresh"]


class TestTemplatesApi:
    def test_lifecycle(self, client, auth_headers):
        bob = auth_headers(2)
        response = client.post(
            "/api/v1/templates", json={"name": "PCR", "body": "<p>mix</p>"}, headers=bob
        )
        assert response.status_code == 201
        template_id = response.json()["id"]

        response = client.patch(
            f"/api/v1/templates/{template_id}",
            json={"title": "qPCR", "body": "<p>mix</p>"},
            headers=bob,
        )
        assert response.status_code == 200

        data = client.get(f"/api/v1/templates/{template_id}", headers=bob).json()
        assert data["name"] == "qPCR"

        response = client.post("/api/v1/experiments", json={"tpl": template_id}, headers=bob)
        entity_id = response.json()["id"]
        experiment = client.get(f"/api/v1/experiments/{entity_id}", headers=bob).json()
        assert experiment["body"] == "<p>mix</p>"

        assert client.delete(f"/api/v1/templates/{template_id}", headers=bob).status_code == 200

    def test_empty_name(self, client, auth_headers):
        response = client.post("/api/v1/templates", json={"name": ""}, headers=auth_headers(2))
        assert response.status_code == 400

    def test_list_and_order(self, client, auth_headers):
        bob = auth_headers(2)
        first = client.post("/api/v1/templates", json={"name": "A"}, headers=bob).json()["id"]
        second = client.post("/api/v1/templates", json={"name": "B"}, headers=bob).json()["id"]

        client.put("/api/v1/templates/ordering", json={"ids": [second, first]}, headers=bob)
        templates = client.get("/api/v1/templates", headers=bob).json()
        assert [t["id"] for t in templates] == [second, first]

    def test_private_template(self, client, auth_headers):
        bob = auth_headers(2)
        template_id = client.post("/api/v1/templates", json={"name": "A"}, headers=bob).json()["id"]
        response = client.patch(
            f"/api/v1/templates/{template_id}/permissions",
            json={"rw": "read", "value": "user"},
            headers=bob,
        )
        assert response.status_code == 200

        response = client.get(f"/api/v1/templates/{template_id}", headers=auth_headers(3))
        assert response.status_code == 403
        response = client.post(
            f"/api/v1/templates/{template_id}/duplicate", headers=auth_headers(3)
        )
        assert response.status_code == 403


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_api_health(self, client):
        assert client.get("/api/v1/health").json()["status"] == "healthy"

    def test_ready(self, client):
        response = client.get("/api/v1/ready")
        assert response.status_code == 200
        assert response.json()["checks"] == {"database": "healthy"}

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-test"})
        assert response.headers["X-Request-ID"] == "req-test"

    def test_metrics(self, client, auth_headers):
        client.get("/api/v1/experiments", headers=auth_headers(2))
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "eln_http_requests_total" in response.text
