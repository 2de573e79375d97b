def _create_attribute(client, headers, name: str, **extra) -> dict:
    res = client.post("/api/variation-attributes", json={"name": name, **extra}, headers=headers)
    assert res.status_code == 201, res.text
    return res.json()


def _create_value(client, headers, attribute_id: str, value: str, **extra):
    return client.post(
        "/api/variation-attribute-values",
        json={"attributeId": attribute_id, "value": value, **extra},
        headers=headers,
    )


def test_attribute_crud_and_slug(test_context, admin_headers):
    client, _ = test_context

    color = _create_attribute(client, admin_headers, "Color", type="color")
    assert color["slug"] == "color"
    assert color["type"] == "color"
    assert color["isActive"] is True

    duplicate = client.post("/api/variation-attributes", json={"name": "Color"}, headers=admin_headers)
    assert duplicate.status_code == 400
    assert duplicate.json()["error"]["message"] == "Variation attribute name already exists"

    missing = client.post("/api/variation-attributes", json={}, headers=admin_headers)
    assert missing.status_code == 400
    assert missing.json()["error"]["message"] == "Name is required"

    updated = client.put(
        f"/api/variation-attributes/{color['id']}",
        json={"sortOrder": 2, "description": "Swatch colour"},
        headers=admin_headers,
    )
    assert updated.status_code == 200, updated.text
    assert updated.json()["sortOrder"] == 2
    assert updated.json()["slug"] == "color"

    _create_attribute(client, admin_headers, "Size")
    listed = client.get("/api/variation-attributes", headers=admin_headers).json()
    assert [row["name"] for row in listed] == ["Size", "Color"]


def test_values_are_created_with_derived_slug(test_context, admin_headers):
    client, _ = test_context
    color = _create_attribute(client, admin_headers, "Color", type="color")

    res = _create_value(client, admin_headers, color["id"], "Navy Blue", colorCode="#000080")
    assert res.status_code == 201, res.text
    body = res.json()
    assert body["slug"] == "navy-blue"
    assert body["colorCode"] == "#000080"
    assert body["attributeId"] == color["id"]

    duplicate = _create_value(client, admin_headers, color["id"], "navy blue")
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["message"] == "Value slug already exists for this attribute"

    # The same slug under another attribute is fine.
    size = _create_attribute(client, admin_headers, "Size")
    assert _create_value(client, admin_headers, size["id"], "Navy Blue").status_code == 201


def test_value_creation_errors(test_context, admin_headers):
    client, _ = test_context

    missing = client.post("/api/variation-attribute-values", json={"value": "Red"}, headers=admin_headers)
    assert missing.status_code == 400
    assert missing.json()["error"]["message"] == "AttributeId and value are required"

    unknown = _create_value(client, admin_headers, "missing-attribute", "Red")
    assert unknown.status_code == 404
    assert unknown.json()["error"]["message"] == "Variation attribute not found"

    color = _create_attribute(client, admin_headers, "Color")
    bad_color = _create_value(client, admin_headers, color["id"], "Red", colorCode="#FF000000")
    assert bad_color.status_code == 422


def test_list_values_filters_and_joins_attribute(test_context, admin_headers):
    client, _ = test_context
    color = _create_attribute(client, admin_headers, "Color", type="color")
    size = _create_attribute(client, admin_headers, "Size")

    assert _create_value(client, admin_headers, color["id"], "Red", sortOrder=2).status_code == 201
    assert _create_value(client, admin_headers, color["id"], "Blue", sortOrder=1).status_code == 201
    assert _create_value(client, admin_headers, size["id"], "XL", isActive=False).status_code == 201

    by_attribute = client.get(
        f"/api/variation-attribute-values?attributeId={color['id']}", headers=admin_headers
    )
    assert by_attribute.status_code == 200, by_attribute.text
    rows = by_attribute.json()
    assert [row["value"]["value"] for row in rows] == ["Blue", "Red"]
    assert rows[0]["attribute"] == {"id": color["id"], "name": "Color", "type": "color"}

    inactive_included = client.get(
        f"/api/variation-attribute-values?attributeId={size['id']}", headers=admin_headers
    ).json()
    assert [row["value"]["value"] for row in inactive_included] == ["XL"]

    active_only = client.get("/api/variation-attribute-values", headers=admin_headers).json()
    assert sorted(row["value"]["value"] for row in active_only) == ["Blue", "Red"]


def test_deleting_attribute_removes_its_values(test_context, admin_headers):
    client, _ = test_context
    color = _create_attribute(client, admin_headers, "Color")
    assert _create_value(client, admin_headers, color["id"], "Red").status_code == 201

    res = client.delete(f"/api/variation-attributes/{color['id']}", headers=admin_headers)
    assert res.status_code == 200, res.text
    assert res.json()["message"] == "Variation attribute deleted successfully"

    assert client.get(f"/api/variation-attributes/{color['id']}", headers=admin_headers).status_code == 404
    assert client.get("/api/variation-attribute-values", headers=admin_headers).json() == []


def test_variation_routes_require_authentication(test_context):
    client, _ = test_context

    assert client.get("/api/variation-attributes").status_code == 401
    assert client.get("/api/variation-attribute-values").status_code == 401
