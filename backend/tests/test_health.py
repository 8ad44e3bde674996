def test_healthz(client):
    response = client.get("/healthz")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_readyz_reports_database(client):
    response = client.get("/readyz")
    checks = {check["name"]: check for check in response.json()["checks"]}
    assert checks["db"]["ok"] is True


def test_unknown_route_is_problem_details(client):
    response = client.get("/v1/nowhere")
    assert response.status_code == 404
    assert response.headers["content-type"].startswith("application/problem+json")
