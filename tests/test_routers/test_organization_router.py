import unittest
from types import SimpleNamespace as Obj
from unittest.mock import patch
from fastapi import HTTPException
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from main import app
from core.database import get_db


def org(id, name="Node", type="admin", parent_id=None, email=None, branch_name=None, **extra):
    return Obj(
        id=id,
        name=name,
        type=type,
        parent_id=parent_id,
        email=email or f"node{id}@company.com",
        branch_name=branch_name,
        **extra,
    )


class OrganizationRouterTests(unittest.TestCase):
    def setUp(self):
        class FakeDB:
            def rollback(self): pass
        def _fake_db():
            yield FakeDB()

        app.dependency_overrides[get_db] = _fake_db
        self.client = TestClient(app)

    def tearDown(self):
        app.dependency_overrides.pop(get_db, None)

    # --- LIST ---

    @patch("organization.router.service.list_organizations")
    def test_list_organizations_happy_path(self, mock_list):
        mock_list.return_value = [org(1, "Admin"), org(2, "HR", type="hr", parent_id=1)]
        resp = self.client.get("/api/organizations")
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual([o["id"] for o in body], [1, 2])
        self.assertEqual(body[1]["parent_id"], 1)
        self.assertEqual(mock_list.call_args.kwargs["type"], None)

    @patch("organization.router.service.list_organizations")
    def test_list_organizations_filtered_by_type(self, mock_list):
        mock_list.return_value = [org(5, "Sup", type="supervisor")]
        resp = self.client.get("/api/organizations", params={"type": "supervisor"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(mock_list.call_args.kwargs["type"].value, "supervisor")

    def test_list_organizations_bad_type_400(self):
        resp = self.client.get("/api/organizations", params={"type": "janitor"})
        self.assertEqual(resp.status_code, 400)

    # --- GET /{id} ---

    @patch("organization.router.service.get_organization")
    def test_get_organization_200(self, mock_get):
        mock_get.return_value = org(9, "Target Org")
        resp = self.client.get("/api/organizations/9")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["name"], "Target Org")

    @patch("organization.router.service.get_organization")
    def test_get_organization_404(self, mock_get):
        mock_get.return_value = None
        resp = self.client.get("/api/organizations/999")
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"], "organization not found")

    @patch("organization.router.service.get_organization")
    def test_store_error_is_500_with_message(self, mock_get):
        mock_get.side_effect = OperationalError("SELECT", {}, Exception("connection lost"))
        resp = self.client.get("/api/organizations/1")
        self.assertEqual(resp.status_code, 500)
        self.assertIn("connection lost", resp.json()["detail"])

    # --- children / tree / path ---

    @patch("organization.router.service.get_children")
    def test_children(self, mock_children):
        mock_children.return_value = [org(2, type="hr", parent_id=1), org(3, type="hr", parent_id=1)]
        resp = self.client.get("/api/organizations/1/children")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([c["id"] for c in resp.json()], [2, 3])

    @patch("organization.router.service.get_forest")
    def test_tree_route_is_not_treated_as_id(self, mock_forest):
        mock_forest.return_value = [
            org(1, children=[org(2, type="hr", parent_id=1, children=[])]),
        ]
        resp = self.client.get("/api/organizations/tree")
        self.assertEqual(resp.status_code, 200, resp.text)
        body = resp.json()
        self.assertEqual(body[0]["id"], 1)
        self.assertEqual(body[0]["children"][0]["id"], 2)
        self.assertEqual(body[0]["children"][0]["children"], [])

    @patch("organization.router.service.get_tree")
    def test_subtree(self, mock_tree):
        mock_tree.return_value = org(5, type="supervisor", children=[org(6, type="branch", branch_name="Main", parent_id=5, children=[])])
        resp = self.client.get("/api/organizations/5/tree")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["children"][0]["branch_name"], "Main")

    @patch("organization.router.service.get_tree")
    def test_subtree_404(self, mock_tree):
        mock_tree.side_effect = HTTPException(status_code=404, detail="organization not found")
        resp = self.client.get("/api/organizations/77/tree")
        self.assertEqual(resp.status_code, 404)

    @patch("organization.router.service.get_ancestry_path")
    def test_path(self, mock_path):
        mock_path.return_value = [org(1), org(2, type="hr", parent_id=1)]
        resp = self.client.get("/api/organizations/2/path")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([n["id"] for n in resp.json()], [1, 2])

    # --- CREATE ---

    @patch("organization.router.service.create_organization")
    def test_create_organization_201(self, mock_create):
        mock_create.return_value = org(10, "HR Department", type="hr", parent_id=1, email="hr@company.com")
        resp = self.client.post(
            "/api/organizations",
            json={"name": "HR Department", "type": "hr", "parent_id": 1, "email": "hr@company.com"},
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["type"], "hr")
        dto = mock_create.call_args.args[1]
        self.assertEqual(dto.parent_id, 1)

    def test_create_organization_400_if_client_sends_extra_fields(self):
        resp = self.client.post(
            "/api/organizations",
            json={"name": "X", "type": "admin", "email": "x@company.com", "id": 77},
        )
        self.assertEqual(resp.status_code, 400)

    def test_create_organization_400_on_unknown_type(self):
        resp = self.client.post("/api/organizations", json={"name": "X", "type": "janitor", "email": "x@company.com"})
        self.assertEqual(resp.status_code, 400)

    def test_create_branch_without_branch_name_400(self):
        resp = self.client.post("/api/organizations", json={"name": "B", "type": "branch", "email": "b@company.com"})
        self.assertEqual(resp.status_code, 400)

    @patch("organization.router.service.create_organization")
    def test_create_organization_duplicate_email(self, mock_create):
        mock_create.side_effect = HTTPException(status_code=400, detail="organization email already exists")
        resp = self.client.post("/api/organizations", json={"name": "X", "type": "admin", "email": "x@company.com"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["detail"], "organization email already exists")

    # --- PUT /{id} ---

    @patch("organization.router.service.update_organization")
    def test_update_organization_200(self, mock_update):
        mock_update.return_value = org(1, "Patched")
        resp = self.client.put("/api/organizations/1", json={"name": "Patched"})
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["name"], "Patched")

    @patch("organization.router.service.update_organization")
    def test_update_organization_404(self, mock_update):
        mock_update.side_effect = HTTPException(status_code=404, detail="organization not found")
        resp = self.client.put("/api/organizations/1", json={"name": "Nope"})
        self.assertEqual(resp.status_code, 404)
        self.assertEqual(resp.json()["detail"], "organization not found")

    # --- DELETE /{id} ---

    @patch("organization.router.service.delete_organization")
    def test_delete_organization_200(self, mock_delete):
        mock_delete.return_value = None
        resp = self.client.delete("/api/organizations/1")
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json(), {"message": "organization deleted"})

    @patch("organization.router.service.delete_organization")
    def test_delete_organization_with_children_409(self, mock_delete):
        mock_delete.side_effect = HTTPException(
            status_code=409, detail="cannot delete organization with children, delete or reassign them first"
        )
        resp = self.client.delete("/api/organizations/1")
        self.assertEqual(resp.status_code, 409)

    def test_health(self):
        resp = self.client.get("/health")
        self.assertEqual(resp.json(), {"health": "true"})


if __name__ == "__main__":
    unittest.main()
