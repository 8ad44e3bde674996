def _create(client, **overrides):
    payload = {"category": "oven_cleaning", "option": "double", "value": 20, "time": 30, **overrides}
    return client.post("/v1/admin/pricing-rules", json=payload)


def test_create_list_update_delete_rule(client):
    created = _create(client)
    assert created.status_code == 201
    rule_id = created.json()["rule_id"]
    assert created.json()["service_type"] == "end_of_tenancy"

    listing = client.get("/v1/admin/pricing-rules", params={"category": "oven_cleaning"})
    assert [rule["rule_id"] for rule in listing.json()] == [rule_id]

    updated = client.patch(f"/v1/admin/pricing-rules/{rule_id}", json={"value": 22.5, "is_visible": False})
    assert updated.status_code == 200
    assert updated.json()["value"] == 22.5
    assert client.get("/v1/admin/pricing-rules", params={"only_visible": True}).json() == []

    deleted = client.delete(f"/v1/admin/pricing-rules/{rule_id}")
    assert deleted.status_code == 204
    missing = client.patch(f"/v1/admin/pricing-rules/{rule_id}", json={"value": 1})
    assert missing.status_code == 404
    assert missing.json()["title"] == "Pricing Rule Not Found"


def test_duplicate_rule_is_conflict(client):
    assert _create(client).status_code == 201
    duplicate = _create(client, value=99)
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"] == "Pricing rule already exists"


def test_store_rules_change_quotes(client):
    _create(client, category="bedrooms", option="1", value=175, time=200)
    response = client.post("/v1/quotes/end_of_tenancy", json={"bedrooms": "1"})
    assert response.json()["base_cost"] == 175


def test_categories_follow_category_order(client):
    _create(client, category="bathrooms", option="2", value=35, category_order=1)
    _create(client, category="bedrooms", option="1", value=150, category_order=0)

    response = client.get("/v1/admin/pricing-rules/categories")
    assert response.json() == ["bedrooms", "bathrooms"]


def test_percentage_category_validation(client):
    response = client.post(
        "/v1/admin/pricing-rules",
        json={"category": "furniture_status", "option": "furnished", "value": 10},
    )
    assert response.status_code == 422


def test_update_rejects_null_for_required_fields(client):
    rule_id = _create(client, category="bedrooms", option="2", value=150).json()["rule_id"]

    response = client.patch(f"/v1/admin/pricing-rules/{rule_id}", json={"value": None})
    assert response.status_code == 422

    cleared = client.patch(f"/v1/admin/pricing-rules/{rule_id}", json={"label": None, "time": None})
    assert cleared.status_code == 200
    assert cleared.json()["value"] == 150


def test_update_keeps_percentage_categories_as_percentages(client):
    created = _create(client, category="furniture_status", option="furnished", value=10, value_type="percentage")
    rule_id = created.json()["rule_id"]

    response = client.patch(f"/v1/admin/pricing-rules/{rule_id}", json={"value_type": "fixed"})
    assert response.status_code == 422
    assert response.json()["title"] == "Invalid Pricing Rule"

    rules = client.get("/v1/admin/pricing-rules", params={"category": "furniture_status"}).json()
    assert rules[0]["value_type"] == "percentage"
