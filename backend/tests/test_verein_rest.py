"""
Verein Backend - REST API Tests
================================

What:  Endpoint tests for /verein, /verein/{id}, /verein/name/{prefix} and /health.
How:   HTTPX AsyncClient against the FastAPI app; the session dependency is
       overridden with the per-test SQLite database (see conftest.py).

What we test:
    ✅ HAL representation, ETag and 304 for If-None-Match
    ✅ Status codes for every domain error, problem+json bodies
    ✅ Optimistic concurrency through If-Match
    ✅ Links honour X-Forwarded-* headers
    ✅ Malformed IDs behave like unknown ones (404, DELETE 204)
"""

from uuid import uuid4

import pytest

from conftest import make_verein_json

PROBLEM_JSON = "application/problem+json"


async def _create(client, **overrides) -> str:
    response = await client.post("/verein", json=make_verein_json(**overrides))
    assert response.status_code == 201
    return response.headers["Location"].rsplit("/", 1)[1]


class TestVereinGet:

    @pytest.mark.asyncio
    async def test_get_by_id(self, test_client):
        verein_id = await _create(test_client)

        response = await test_client.get(f"/verein/{verein_id}")

        assert response.status_code == 200
        assert response.headers["ETag"] == '"0"'
        body = response.json()
        assert body["name"] == "FC Test"
        assert body["emails"] == ["a@x.com"]
        assert body["gruendungsdatum"] == "1900-02-27"
        assert body["adresse"] == {"strasse": "Moltkestrasse 30", "plz": "76133", "ort": "Karlsruhe"}
        assert body["umsaetze"] == [{"betrag": 1000.5, "waehrung": "EUR"}]
        self_href = f"http://test/verein/{verein_id}"
        assert body["_links"]["self"]["href"] == self_href
        assert body["_links"]["list"]["href"] == "http://test/verein"
        assert body["_links"]["add"]["href"] == "http://test/verein"
        assert body["_links"]["update"]["href"] == self_href
        assert body["_links"]["remove"]["href"] == self_href
        assert "id" not in body
        assert "version" not in body

    @pytest.mark.asyncio
    async def test_get_by_id_not_modified(self, test_client):
        verein_id = await _create(test_client)

        response = await test_client.get(f"/verein/{verein_id}", headers={"If-None-Match": '"0"'})

        assert response.status_code == 304
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_get_by_id_stale_etag_returns_body(self, test_client):
        verein_id = await _create(test_client)

        response = await test_client.get(f"/verein/{verein_id}", headers={"If-None-Match": '"7"'})

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, test_client):
        response = await test_client.get(f"/verein/{uuid4()}")

        assert response.status_code == 404
        assert response.headers["content-type"].startswith(PROBLEM_JSON)
        problem = response.json()
        assert problem["status"] == 404
        assert problem["type"].endswith("/problem/notFound")
        assert problem["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_get_by_malformed_id_not_found(self, test_client):
        response = await test_client.get("/verein/not-a-uuid")

        assert response.status_code == 404
        assert response.json()["type"].endswith("/problem/notFound")

    @pytest.mark.parametrize("if_none_match", ['W/"0"', '"3", "0"', 'W/"5", W/"0"', "*"])
    @pytest.mark.asyncio
    async def test_get_by_id_not_modified_weak_or_listed_etag(self, test_client, if_none_match):
        verein_id = await _create(test_client)

        response = await test_client.get(
            f"/verein/{verein_id}", headers={"If-None-Match": if_none_match}
        )

        assert response.status_code == 304
        assert response.headers["ETag"] == '"0"'

    @pytest.mark.asyncio
    async def test_links_honour_forwarded_headers(self, test_client):
        verein_id = await _create(test_client)

        response = await test_client.get(
            f"/verein/{verein_id}",
            headers={"X-Forwarded-Host": "gateway.example.com", "X-Forwarded-Proto": "https"},
        )

        expected = f"https://gateway.example.com/vereine/verein/{verein_id}"
        assert response.json()["_links"]["self"]["href"] == expected


class TestVereinSearch:

    @pytest.mark.asyncio
    async def test_find_all(self, test_client):
        await _create(test_client, name="FC Eins", emails=["eins@x.com"])
        await _create(test_client, name="FC Zwei", emails=["zwei@x.com"])

        response = await test_client.get("/verein")

        assert response.status_code == 200
        body = response.json()
        vereine = body["_embedded"]["vereine"]
        assert [v["name"] for v in vereine] == ["FC Eins", "FC Zwei"]
        assert set(vereine[0]["_links"]) == {"self"}
        assert body["_links"]["self"]["href"] == "http://test/verein"

    @pytest.mark.asyncio
    async def test_find_by_criteria(self, test_client):
        await _create(test_client, name="FC Eins", emails=["eins@x.com"])
        await _create(test_client, name="FC Zwei", emails=["zwei@x.com"])

        response = await test_client.get("/verein", params={"email": "zwei"})

        body = response.json()
        assert [v["name"] for v in body["_embedded"]["vereine"]] == ["FC Zwei"]
        assert body["_links"]["self"]["href"] == "http://test/verein?email=zwei"

    @pytest.mark.asyncio
    async def test_find_no_match_is_empty_list(self, test_client):
        response = await test_client.get("/verein", params={"name": "Bayern"})

        assert response.status_code == 200
        assert response.json()["_embedded"]["vereine"] == []

    @pytest.mark.asyncio
    async def test_find_unknown_criterion_is_bad_request(self, test_client):
        response = await test_client.get("/verein", params={"farbe": "blau"})

        assert response.status_code == 400
        assert "farbe" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_names_by_prefix(self, test_client):
        await _create(test_client, name="Alpha FC", emails=["alpha@x.com"])
        await _create(test_client, name="Beta FC", emails=["beta@x.com"])

        response = await test_client.get("/verein/name/al")

        assert response.status_code == 200
        assert response.json() == ["Alpha FC"]


class TestVereinPost:

    @pytest.mark.asyncio
    async def test_post_created(self, test_client):
        response = await test_client.post("/verein", json=make_verein_json())

        assert response.status_code == 201
        assert response.headers["Location"].startswith("http://test/verein/")

    @pytest.mark.asyncio
    async def test_post_violations(self, test_client):
        body = make_verein_json(name="", adresse={"plz": "1", "ort": "Karlsruhe"})

        response = await test_client.post("/verein", json=body)

        assert response.status_code == 400
        assert response.headers["content-type"].startswith(PROBLEM_JSON)
        problem = response.json()
        assert problem["type"].endswith("/problem/constraints")
        assert {v["field"] for v in problem["violations"]} == {"name", "adresse.plz"}

    @pytest.mark.asyncio
    async def test_post_invalid_date(self, test_client):
        response = await test_client.post(
            "/verein", json=make_verein_json(gruendungsdatum="27.02.1900")
        )

        assert response.status_code == 400
        assert "27.02.1900" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_post_email_exists(self, test_client):
        await _create(test_client)

        response = await test_client.post("/verein", json=make_verein_json(name="FC Kopie"))

        assert response.status_code == 409
        assert "a@x.com" in response.json()["detail"]

    @pytest.mark.asyncio
    async def test_post_malformed_json(self, test_client):
        response = await test_client.post(
            "/verein", content=b"{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400


class TestVereinPut:

    @pytest.mark.asyncio
    async def test_put_with_current_version(self, test_client):
        verein_id = await _create(test_client)

        response = await test_client.put(
            f"/verein/{verein_id}",
            json=make_verein_json(name="FC Neu"),
            headers={"If-Match": '"0"'},
        )

        assert response.status_code == 204
        assert response.headers["ETag"] == '"1"'
        get = await test_client.get(f"/verein/{verein_id}")
        assert get.json()["name"] == "FC Neu"
        assert get.headers["ETag"] == '"1"'

    @pytest.mark.asyncio
    async def test_put_outdated_version(self, test_client):
        verein_id = await _create(test_client)
        await test_client.put(
            f"/verein/{verein_id}", json=make_verein_json(), headers={"If-Match": '"0"'}
        )

        response = await test_client.put(
            f"/verein/{verein_id}", json=make_verein_json(), headers={"If-Match": '"0"'}
        )

        assert response.status_code == 412
        assert response.json()["type"].endswith("/problem/precondition")

    @pytest.mark.asyncio
    async def test_put_without_if_match(self, test_client):
        verein_id = await _create(test_client)

        response = await test_client.put(f"/verein/{verein_id}", json=make_verein_json())

        assert response.status_code == 428

    @pytest.mark.parametrize("if_match", ["0", '"abc"', "*"])
    @pytest.mark.asyncio
    async def test_put_malformed_if_match(self, test_client, if_match):
        verein_id = await _create(test_client)

        response = await test_client.put(
            f"/verein/{verein_id}", json=make_verein_json(), headers={"If-Match": if_match}
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_put_not_found(self, test_client):
        response = await test_client.put(
            f"/verein/{uuid4()}", json=make_verein_json(), headers={"If-Match": '"0"'}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_put_malformed_id_not_found(self, test_client):
        response = await test_client.put(
            "/verein/not-a-uuid", json=make_verein_json(), headers={"If-Match": '"0"'}
        )

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_put_violations(self, test_client):
        verein_id = await _create(test_client)

        response = await test_client.put(
            f"/verein/{verein_id}",
            json=make_verein_json(emails=["kaputt"]),
            headers={"If-Match": '"0"'},
        )

        assert response.status_code == 400
        assert response.json()["violations"][0]["field"] == "emails.0"

    @pytest.mark.asyncio
    async def test_put_email_of_other_verein(self, test_client):
        await _create(test_client, emails=["erste@x.com"])
        verein_id = await _create(test_client, name="FC Zwei", emails=["zweite@x.com"])

        response = await test_client.put(
            f"/verein/{verein_id}",
            json=make_verein_json(emails=["erste@x.com"]),
            headers={"If-Match": '"0"'},
        )

        assert response.status_code == 409


class TestVereinDelete:

    @pytest.mark.asyncio
    async def test_delete_existing(self, test_client):
        verein_id = await _create(test_client)

        response = await test_client.delete(f"/verein/{verein_id}")

        assert response.status_code == 204
        assert (await test_client.get(f"/verein/{verein_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_unknown(self, test_client):
        response = await test_client.delete(f"/verein/{uuid4()}")

        assert response.status_code == 204

    @pytest.mark.asyncio
    async def test_delete_malformed_id(self, test_client):
        response = await test_client.delete("/verein/not-a-uuid")

        assert response.status_code == 204


class TestHealthAndMiddleware:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_client_request_id_is_echoed(self, test_client):
        response = await test_client.get("/verein", headers={"X-Request-ID": "abc123"})

        assert response.headers["X-Request-ID"] == "abc123"
