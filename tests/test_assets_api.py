"""
tests/test_assets_api.py

Asset lifecycle through the HTTP API: creation with code generation,
listing filters, audited edits, archival, the trash and the export.

Run:
    pytest tests/test_assets_api.py -v
"""

import io

from openpyxl import load_workbook

from panorama.util.spreadsheet import XLSX_MEDIA_TYPE

from conftest import run


def logs_for(db, code):
    return run(db["logs"].find({"target_code": code}).to_list(length=None))


class TestCreate:
    def test_generates_sequential_codes(self, create_asset):
        first = create_asset()
        second = create_asset(name="Perforatrice")
        other = create_asset(category="IT", name="Ordinateur portable")

        assert first["code"] == "2024-EDC-AA-0001"
        assert second["code"] == "2024-EDC-AA-0002"
        assert other["code"] == "2024-EDC-IT-0001"

    def test_defaults(self, create_asset):
        asset = create_asset()
        assert asset["state"] == "Bon état"
        assert asset["holder_presence"] == "Présent"
        assert asset["is_archived"] is False
        assert asset["registration_date"]

    def test_logs_creation(self, db, create_asset):
        asset = create_asset()
        [log] = logs_for(db, asset["code"])
        assert log["action"] == "CREATE"
        assert log["description"] == "Création par Bruno Test"
        assert log["user_email"] == "bruno@edc.cm"

    def test_required_fields(self, client, editor_headers):
        resp = client.post("/assets", json={"name": "Agrafeuse", "acquisition_year": "2024"}, headers=editor_headers)
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Veuillez remplir les champs obligatoires (Localisation, Catégorie, Nom)"

    def test_year_required_for_code(self, client, editor_headers):
        resp = client.post("/assets", json={"name": "Agrafeuse", "category": "AA", "location": "EDC"}, headers=editor_headers)
        assert resp.status_code == 400

    def test_requires_create_permission(self, client, reader_headers):
        resp = client.post(
            "/assets",
            json={"name": "Agrafeuse", "category": "AA", "location": "EDC", "acquisition_year": "2024"},
            headers=reader_headers,
        )
        assert resp.status_code == 403

    def test_requires_authentication(self, client, db):
        assert client.get("/assets").status_code == 401

    def test_archived_codes_are_not_reused(self, client, editor_headers, create_asset):
        first = create_asset()
        client.delete(f"/assets/{first['id']}", headers=editor_headers)
        assert create_asset()["code"] == "2024-EDC-AA-0002"

    def test_code_collision(self, client, db, editor_headers, create_asset, monkeypatch):
        """A code taken between generation and insert is refused and nothing is written."""
        from panorama.services import assets_service

        create_asset()

        async def stale_codes():
            return []

        monkeypatch.setattr(assets_service, "all_asset_codes", stale_codes)
        resp = client.post(
            "/assets",
            json={"name": "Perforatrice", "category": "AA", "location": "EDC", "acquisition_year": "2024"},
            headers=editor_headers,
        )

        assert resp.status_code == 409
        assert resp.json()["detail"] == "Le code 2024-EDC-AA-0001 existe déjà, veuillez réessayer."
        assert run(db["assets"].count_documents({})) == 1
        assert run(db["logs"].count_documents({"action": "CREATE"})) == 1


class TestNextCode:
    def test_preview(self, client, editor_headers, create_asset):
        create_asset()
        resp = client.get("/assets/next-code", params={"year": "2024", "location": "EDC", "category": "AA"}, headers=editor_headers)
        assert resp.json() == {"code": "2024-EDC-AA-0002", "complete": True}

    def test_partial_preview(self, client, editor_headers):
        resp = client.get("/assets/next-code", params={"year": "2024", "category": "AA"}, headers=editor_headers)
        assert resp.json() == {"code": "2024-AA", "complete": False}


class TestListing:
    def test_search_and_filters(self, client, reader_headers, create_asset):
        create_asset(name="Agrafeuse", holder="Jean Dupont")
        create_asset(name="Ordinateur portable", category="IT", holder="Marie Ngono")
        create_asset(name="Chaise", category="MB", location="DG", holder="")

        def codes(**params):
            resp = client.get("/assets", params=params, headers=reader_headers)
            assert resp.status_code == 200
            return [item["code"] for item in resp.json()["items"]]

        assert codes() == ["2024-DG-MB-0001", "2024-EDC-AA-0001", "2024-EDC-IT-0001"]
        assert codes(search="ngono") == ["2024-EDC-IT-0001"]
        assert codes(search="edc-aa") == ["2024-EDC-AA-0001"]
        assert codes(search="dg") == ["2024-DG-MB-0001"]
        assert codes(location="EDC", category="IT") == ["2024-EDC-IT-0001"]
        assert codes(location="DG", category="IT") == []

    def test_search_is_literal(self, client, reader_headers, create_asset):
        create_asset(name="Agrafeuse")
        resp = client.get("/assets", params={"search": ".*"}, headers=reader_headers)
        assert resp.json()["total"] == 0

    def test_archived_excluded(self, client, editor_headers, reader_headers, create_asset):
        asset = create_asset()
        create_asset(name="Perforatrice")
        client.delete(f"/assets/{asset['id']}", headers=editor_headers)

        body = client.get("/assets", headers=reader_headers).json()
        assert body["total"] == 1
        assert body["items"][0]["name"] == "Perforatrice"

    def test_pagination(self, client, db, reader_headers):
        run(db["assets"].insert_many([
            {"code": f"2024-EDC-AA-{i:04d}", "name": "Agrafeuse", "category": "AA", "location": "EDC",
             "acquisition_year": "2024", "state": "Bon état", "is_archived": False}
            for i in range(1, 56)
        ]))

        first = client.get("/assets", headers=reader_headers).json()
        second = client.get("/assets", params={"page": 2}, headers=reader_headers).json()

        assert (first["total"], first["pages"], len(first["items"])) == (55, 2, 50)
        assert len(second["items"]) == 5
        assert second["items"][0]["code"] == "2024-EDC-AA-0051"

    def test_get_unknown_asset(self, client, reader_headers):
        assert client.get("/assets/000000000000000000000000", headers=reader_headers).status_code == 404
        assert client.get("/assets/not-an-id", headers=reader_headers).status_code == 404


class TestUpdate:
    def payload(self, asset, **changes):
        data = {k: asset[k] for k in ("name", "category", "location", "acquisition_year", "holder", "description")}
        data.update(changes)
        return data

    def test_non_critical_edit_without_reason(self, client, db, editor_headers, create_asset):
        asset = create_asset()
        resp = client.put(f"/assets/{asset['id']}", json=self.payload(asset, description="Petite agrafeuse"), headers=editor_headers)

        assert resp.status_code == 200
        assert resp.json()["description"] == "Petite agrafeuse"
        update = [log for log in logs_for(db, asset["code"]) if log["action"] == "UPDATE"][0]
        assert update["description"] == "Modification par Bruno Test"
        assert update["changes"] == [{"field": "description", "before": "Grande agrafeuse", "after": "Petite agrafeuse"}]

    def test_critical_edit_needs_reason(self, client, db, editor_headers, create_asset):
        asset = create_asset()
        resp = client.put(f"/assets/{asset['id']}", json=self.payload(asset, location="DG"), headers=editor_headers)

        assert resp.status_code == 422
        assert resp.json()["detail"]["fields"] == ["location"]
        stored = run(db["assets"].find_one({"code": asset["code"]}))
        assert stored["location"] == "EDC"
        assert [log["action"] for log in logs_for(db, asset["code"])] == ["CREATE"]

    def test_critical_edit_with_reason(self, client, db, editor_headers, create_asset):
        asset = create_asset()
        resp = client.put(
            f"/assets/{asset['id']}",
            json=self.payload(asset, location="DG", reason="Transfert à la direction"),
            headers=editor_headers,
        )

        assert resp.status_code == 200
        updated = resp.json()
        assert updated["location"] == "DG"
        assert updated["code"] == asset["code"]
        update = [log for log in logs_for(db, asset["code"]) if log["action"] == "UPDATE"][0]
        assert update["description"] == "Transfert à la direction"
        assert update["changes"] == [{"field": "location", "before": "EDC", "after": "DG"}]

    def test_blank_reason_is_rejected(self, client, editor_headers, create_asset):
        asset = create_asset()
        resp = client.put(f"/assets/{asset['id']}", json=self.payload(asset, state="Défectueux", reason="   "), headers=editor_headers)
        assert resp.status_code == 422

    def test_requires_update_permission(self, client, reader_headers, create_asset):
        asset = create_asset()
        resp = client.put(f"/assets/{asset['id']}", json=self.payload(asset, description="x"), headers=reader_headers)
        assert resp.status_code == 403


class TestArchiveAndTrash:
    def test_archive_then_restore(self, client, db, editor_headers, admin_headers, create_asset):
        asset = create_asset()

        archived = client.delete(f"/assets/{asset['id']}", headers=editor_headers).json()
        assert archived["is_archived"] is True
        assert archived["state"] == "Retiré"
        trash = client.get("/assets/archived", headers=admin_headers).json()
        assert [item["code"] for item in trash] == [asset["code"]]

        restored = client.post(f"/assets/{asset['id']}/restore", headers=admin_headers).json()
        assert restored["is_archived"] is False
        assert restored["state"] == "Retiré"
        assert client.get("/assets/archived", headers=admin_headers).json() == []

        actions = sorted(log["description"].split(" par ")[0] for log in logs_for(db, asset["code"]))
        assert actions == ["Archivage", "Création", "Restauration"]

    def test_trash_is_admin_only(self, client, editor_headers):
        assert client.get("/assets/archived", headers=editor_headers).status_code == 403
        assert client.delete("/assets/archived", headers=editor_headers).status_code == 403

    def test_permanent_delete_needs_confirmation(self, client, db, editor_headers, admin_headers, create_asset):
        asset = create_asset()
        client.delete(f"/assets/{asset['id']}", headers=editor_headers)

        resp = client.delete(f"/assets/{asset['id']}/permanent", headers=admin_headers)
        assert resp.status_code == 400
        assert run(db["assets"].count_documents({})) == 1

        resp = client.delete(f"/assets/{asset['id']}/permanent", params={"confirm": True}, headers=admin_headers)
        assert resp.status_code == 200
        assert run(db["assets"].count_documents({})) == 0
        descriptions = [log["description"] for log in logs_for(db, asset["code"])]
        assert "Suppression DÉFINITIVE par Alice Test" in descriptions

    def test_permanent_delete_only_from_trash(self, client, db, admin_headers, create_asset):
        asset = create_asset()

        resp = client.delete(f"/assets/{asset['id']}/permanent", params={"confirm": True}, headers=admin_headers)

        assert resp.status_code == 400
        assert resp.json()["detail"] == f"L'actif {asset['code']} doit être archivé avant sa suppression définitive."
        assert run(db["assets"].count_documents({})) == 1
        assert [log["action"] for log in logs_for(db, asset["code"])] == ["CREATE"]

    def test_empty_trash(self, client, db, editor_headers, admin_headers, create_asset):
        kept = create_asset()
        for name in ("Perforatrice", "Calculatrice"):
            asset = create_asset(name=name)
            client.delete(f"/assets/{asset['id']}", headers=editor_headers)

        resp = client.delete("/assets/archived", headers=admin_headers)

        assert resp.json()["deleted"] == 2
        remaining = run(db["assets"].find().to_list(length=None))
        assert [doc["code"] for doc in remaining] == [kept["code"]]
        [log] = logs_for(db, "MASS_DELETE")
        assert log["description"] == "VIDAGE CORBEILLE (2 éléments) par Alice Test"

    def test_empty_trash_when_empty(self, client, db, admin_headers):
        resp = client.delete("/assets/archived", headers=admin_headers)
        assert resp.json() == {"deleted": 0, "message": "La corbeille est déjà vide."}
        assert logs_for(db, "MASS_DELETE") == []

    def test_empty_trash_in_chunks(self, client, db, admin_headers, monkeypatch):
        from panorama.services import assets_service

        monkeypatch.setattr(assets_service, "DELETE_CHUNK_SIZE", 2)
        run(db["assets"].insert_many([
            {"code": f"2024-EDC-AA-{i:04d}", "name": "Agrafeuse", "is_archived": True} for i in range(1, 6)
        ]))

        resp = client.delete("/assets/archived", headers=admin_headers)

        assert resp.json()["deleted"] == 5
        assert run(db["assets"].count_documents({})) == 0


class TestExport:
    def test_exports_filtered_listing(self, client, editor_headers, create_asset):
        create_asset(name="Agrafeuse")
        create_asset(name="Ordinateur portable", category="IT")

        resp = client.get("/assets/export", params={"category": "IT"}, headers=editor_headers)

        assert resp.status_code == 200
        assert resp.headers["content-type"] == XLSX_MEDIA_TYPE
        assert resp.headers["content-disposition"].startswith('attachment; filename="Inventaire_EDC_')
        sheet = load_workbook(io.BytesIO(resp.content)).active
        assert sheet.title == "Inventaire EDC"
        rows = list(sheet.iter_rows(values_only=True))
        assert rows[0][:4] == ("Code Inventaire", "Nom", "Catégorie", "Localisation")
        assert len(rows) == 2
        assert rows[1][:3] == ("2024-EDC-IT-0001", "Ordinateur portable", "IT - Matériel informatique")

    def test_requires_export_permission(self, client, reader_headers):
        assert client.get("/assets/export", headers=reader_headers).status_code == 403
