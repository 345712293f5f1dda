from fastapi.testclient import TestClient


def create_page(client: TestClient, headers: dict, **fields) -> dict:
    response = client.post("/api/pages", json=fields, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()["page"]


def test_create_page_defaults(client: TestClient, auth_context: dict) -> None:
    page = create_page(client, auth_context["headers"])
    assert page["title"] == "Untitled Page"
    assert page["content"] == ""
    assert page["tags"] == []
    assert page["linkedPages"] == []


def test_page_crud_and_ownership(client: TestClient, auth_context: dict, other_auth_context: dict) -> None:
    headers = auth_context["headers"]
    page = create_page(client, headers, title="Ideas", content="draft", tags=["work"])

    response = client.patch(f"/api/pages/{page['id']}", json={"content": "final"}, headers=headers)
    assert response.json()["page"]["content"] == "final"
    assert response.json()["page"]["title"] == "Ideas"

    other = other_auth_context["headers"]
    assert client.get(f"/api/pages/{page['id']}", headers=other).status_code == 404
    assert client.delete(f"/api/pages/{page['id']}", headers=other).status_code == 404

    assert client.delete(f"/api/pages/{page['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/pages/{page['id']}", headers=headers).status_code == 404


def test_search_requires_query_and_matches_title_or_content(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    create_page(client, headers, title="Recipes", content="pasta")
    create_page(client, headers, title="Travel", content="Pasta in Rome")
    create_page(client, headers, title="Unrelated", content="nothing")

    assert client.post("/api/pages/search", json={}, headers=headers).status_code == 400

    body = client.post("/api/pages/search", json={"query": "PASTA"}, headers=headers).json()
    assert body["count"] == 2
    assert {p["title"] for p in body["pages"]} == {"Recipes", "Travel"}


def test_search_treats_wildcards_literally(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    create_page(client, headers, title="Plain", content="nothing special")
    create_page(client, headers, title="Discounts", content="50% off")

    body = client.post("/api/pages/search", json={"query": "%"}, headers=headers).json()
    assert [p["title"] for p in body["pages"]] == ["Discounts"]

    body = client.post("/api/pages/search", json={"query": "n_thing"}, headers=headers).json()
    assert body["count"] == 0


def test_tags_and_tag_filter(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    create_page(client, headers, title="A", tags=["work", "urgent"])
    create_page(client, headers, title="B", tags=["home"])
    create_page(client, headers, title="C")

    assert client.get("/api/pages/tags", headers=headers).json()["tags"] == ["home", "urgent", "work"]

    pages = client.get("/api/pages?tags=work&tags=home", headers=headers).json()["pages"]
    assert {p["title"] for p in pages} == {"A", "B"}


def test_links_and_backlinks(client: TestClient, auth_context: dict, other_auth_context: dict) -> None:
    headers = auth_context["headers"]
    source = create_page(client, headers, title="Source")
    target = create_page(client, headers, title="Target")
    foreign = create_page(client, other_auth_context["headers"], title="Foreign")

    response = client.post(f"/api/pages/{source['id']}/links", json={"targetPageId": target["id"]}, headers=headers)
    assert response.status_code == 200
    assert response.json()["page"]["linkedPages"] == [target["id"]]

    # Linking twice keeps one entry
    response = client.post(f"/api/pages/{source['id']}/links", json={"targetPageId": target["id"]}, headers=headers)
    assert response.json()["page"]["linkedPages"] == [target["id"]]

    backlinks = client.get(f"/api/pages/{target['id']}/backlinks", headers=headers).json()["pages"]
    assert [p["title"] for p in backlinks] == ["Source"]

    response = client.post(f"/api/pages/{source['id']}/links", json={"targetPageId": foreign["id"]}, headers=headers)
    assert response.status_code == 404


def test_deleting_page_removes_links_to_it(client: TestClient, auth_context: dict) -> None:
    headers = auth_context["headers"]
    source = create_page(client, headers, title="Source")
    target = create_page(client, headers, title="Target")
    client.post(f"/api/pages/{source['id']}/links", json={"targetPageId": target["id"]}, headers=headers)

    client.delete(f"/api/pages/{target['id']}", headers=headers)
    page = client.get(f"/api/pages/{source['id']}", headers=headers).json()["page"]
    assert page["linkedPages"] == []
