import math

import pytest


def create_expense(client, headers, **fields):
    response = client.post("/api/expenses", json=fields, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


def create_tag(client, headers, name):
    response = client.post("/api/tags", json={"name": name}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["id"]


def test_end_to_end_scenario(client):
    response = client.post("/api/users", json={"name": "Ana", "email": "ana@x.com", "password": "secret1"})
    assert response.status_code == 201

    response = client.post("/api/sessions", json={"email": "ana@x.com", "password": "secret1"})
    assert response.status_code == 200
    headers = {"Authorization": f"Bearer {response.json()['token']}"}

    response = client.post("/api/categories", json={"name": "Food"}, headers=headers)
    assert response.status_code == 201
    assert response.json()["id"] == 1

    assert client.post("/api/categories", json={"name": "Food"}, headers=headers).status_code == 409

    response = client.post("/api/expenses", json={"amount": 50.5, "categoryId": 1}, headers=headers)
    assert response.status_code == 201

    summary = client.get("/api/expenses/summary", headers=headers).json()
    assert summary["totalExpenses"] == 50.5
    assert summary["categoryCount"] == 1
    assert summary["lastExpense"]["amount"] == 50.5


def test_create_expense_with_category_and_tags(client, auth):
    category_id = client.post("/api/categories", json={"name": "Food"}, headers=auth).json()["id"]
    lunch = create_tag(client, auth, "lunch")
    work = create_tag(client, auth, "work")

    body = create_expense(
        client, auth,
        amount=12.3,
        description="Sandwich",
        date="2024-03-10T12:30:00Z",
        categoryId=category_id,
        tagIds=[lunch, work]
    )
    assert body["amount"] == 12.3
    assert body["description"] == "Sandwich"
    assert body["date"].startswith("2024-03-10T12:30:00")
    assert body["userId"] == 1
    assert body["category"]["name"] == "Food"
    assert sorted(t["tag"]["name"] for t in body["tags"]) == ["lunch", "work"]
    assert all(t["expenseId"] == body["id"] for t in body["tags"])


def test_date_defaults_to_now(client, auth):
    body = create_expense(client, auth, amount=5)
    assert body["date"]
    assert body["category"] is None
    assert body["tags"] == []


def test_date_with_offset_is_stored_as_utc(client, auth):
    body = create_expense(client, auth, amount=5, date="2024-03-10T12:30:00+02:00")
    assert body["date"].startswith("2024-03-10T10:30:00")


@pytest.mark.parametrize("amount", [0, -1, -0.01, "10", True, None])
def test_non_positive_or_non_numeric_amount_rejected(client, auth, amount):
    response = client.post("/api/expenses", json={"amount": amount}, headers=auth)
    assert response.status_code == 400
    assert response.json()["issues"][0]["field"] == "amount"


@pytest.mark.parametrize("amount", [0.01, 1, 999.99, 99999999.99])
def test_positive_amount_accepted(client, auth, amount):
    assert create_expense(client, auth, amount=amount)["amount"] == amount


@pytest.mark.parametrize("amount", [0.001, 10.555, 1e300, 100000000])
def test_amount_beyond_cent_precision_rejected(client, auth, amount):
    response = client.post("/api/expenses", json={"amount": amount}, headers=auth)
    assert response.status_code == 400
    assert response.json()["issues"][0]["field"] == "amount"
    assert client.get("/api/expenses", headers=auth).json()["meta"]["total"] == 0


def test_listed_amounts_add_up_to_total(client, auth):
    create_expense(client, auth, amount=10.55)
    create_expense(client, auth, amount=0.01)

    listed = [e["amount"] for e in client.get("/api/expenses", headers=auth).json()["data"]]
    assert sorted(listed) == [0.01, 10.55]
    assert client.get("/api/expenses/total", headers=auth).json()["total"] == pytest.approx(10.56)


@pytest.mark.parametrize("date", [5, 1704067200, "2024-01-01", True])
def test_date_must_be_iso_datetime_string(client, auth, date):
    response = client.post("/api/expenses", json={"amount": 5, "date": date}, headers=auth)
    assert response.status_code == 400
    assert response.json()["issues"][0]["field"] == "date"

    expense_id = create_expense(client, auth, amount=5)["id"]
    response = client.put(f"/api/expenses/{expense_id}", json={"date": date}, headers=auth)
    assert response.status_code == 400
    assert response.json()["issues"][0]["field"] == "date"


def test_invalid_date_rejected(client, auth):
    response = client.post("/api/expenses", json={"amount": 5, "date": "yesterday"}, headers=auth)
    assert response.status_code == 400


def test_category_of_another_user_rejected(client, auth, other_auth):
    category_id = client.post("/api/categories", json={"name": "Food"}, headers=other_auth).json()["id"]
    response = client.post("/api/expenses", json={"amount": 5, "categoryId": category_id}, headers=auth)
    assert response.status_code == 400
    assert response.json()["issues"][0]["field"] == "categoryId"


def test_unknown_tag_rejected(client, auth):
    response = client.post("/api/expenses", json={"amount": 5, "tagIds": [42]}, headers=auth)
    assert response.status_code == 400
    assert response.json()["issues"][0]["field"] == "tagIds"


def test_expenses_are_scoped_to_owner(client, auth, other_auth):
    expense_id = create_expense(client, auth, amount=10)["id"]

    assert client.get(f"/api/expenses/{expense_id}", headers=other_auth).status_code == 404
    assert client.put(f"/api/expenses/{expense_id}", json={"amount": 1}, headers=other_auth).status_code == 404
    assert client.delete(f"/api/expenses/{expense_id}", headers=other_auth).status_code == 404
    assert client.get("/api/expenses", headers=other_auth).json()["meta"]["total"] == 0
    assert client.get("/api/expenses/total", headers=other_auth).json() == {"total": 0}


def test_pagination_partitions_the_set(client, auth):
    for day in range(1, 24):
        create_expense(client, auth, amount=day, date=f"2024-01-{day:02d}T10:00:00Z")

    seen = []
    page = 1
    while True:
        body = client.get("/api/expenses", params={"page": page, "perPage": 5}, headers=auth).json()
        assert body["meta"] == {"total": 23, "page": page, "perPage": 5, "pageCount": math.ceil(23 / 5)}
        if not body["data"]:
            break
        seen.extend(body["data"])
        page += 1

    assert page - 1 == 5
    assert len(seen) == 23
    assert len({e["id"] for e in seen}) == 23
    dates = [e["date"] for e in seen]
    assert dates == sorted(dates, reverse=True)


def test_list_defaults(client, auth):
    create_expense(client, auth, amount=1)
    body = client.get("/api/expenses", headers=auth).json()
    assert body["meta"] == {"total": 1, "page": 1, "perPage": 10, "pageCount": 1}


def test_list_empty_has_zero_pages(client, auth):
    body = client.get("/api/expenses", headers=auth).json()
    assert body == {"data": [], "meta": {"total": 0, "page": 1, "perPage": 10, "pageCount": 0}}


@pytest.mark.parametrize("params", [
    {"page": 0},
    {"perPage": 0},
    {"page": "x"},
    {"startDate": "soon"},
    {"startDate": "2024-01-01", "endDate": "2024-12-31"},
    {"startDate": "0", "endDate": "1"},
])
def test_list_rejects_bad_query(client, auth, params):
    assert client.get("/api/expenses", params=params, headers=auth).status_code == 400


def test_date_range_requires_both_bounds(client, auth):
    create_expense(client, auth, amount=1, date="2024-01-05T00:00:00Z")
    create_expense(client, auth, amount=2, date="2024-02-05T00:00:00Z")
    create_expense(client, auth, amount=3, date="2024-03-05T00:00:00Z")

    both = client.get(
        "/api/expenses",
        params={"startDate": "2024-02-01T00:00:00Z", "endDate": "2024-02-28T23:59:59Z"},
        headers=auth
    ).json()
    assert [e["amount"] for e in both["data"]] == [2]

    # A single bound filters nothing
    start_only = client.get("/api/expenses", params={"startDate": "2024-02-01T00:00:00Z"}, headers=auth).json()
    assert start_only["meta"]["total"] == 3


def test_filter_by_category_amount_and_description(client, auth):
    food = client.post("/api/categories", json={"name": "Food"}, headers=auth).json()["id"]
    create_expense(client, auth, amount=5, description="Coffee beans", categoryId=food)
    create_expense(client, auth, amount=50, description="Big grocery run", categoryId=food)
    create_expense(client, auth, amount=120, description="Train pass")

    def amounts(**params):
        body = client.get("/api/expenses", params=params, headers=auth).json()
        return sorted(e["amount"] for e in body["data"])

    assert amounts(categoryId=food) == [5, 50]
    assert amounts(minAmount=50) == [50, 120]
    assert amounts(maxAmount=50) == [5, 50]
    assert amounts(minAmount=10, maxAmount=100) == [50]
    assert amounts(description="COFFEE") == [5]
    assert amounts(description="r") == [50, 120]
    assert amounts(description="%") == []


def test_get_includes_relations(client, auth):
    category_id = client.post("/api/categories", json={"name": "Food"}, headers=auth).json()["id"]
    tag_id = create_tag(client, auth, "weekly")
    expense_id = create_expense(client, auth, amount=7, categoryId=category_id, tagIds=[tag_id])["id"]

    body = client.get(f"/api/expenses/{expense_id}", headers=auth).json()
    assert body["category"]["id"] == category_id
    assert [t["tagId"] for t in body["tags"]] == [tag_id]


def test_get_missing_expense(client, auth):
    response = client.get("/api/expenses/999", headers=auth)
    assert response.status_code == 404
    assert response.json() == {"message": "Expense not found"}


def test_update_replaces_tag_set(client, auth):
    a, b, c = (create_tag(client, auth, name) for name in ("a", "b", "c"))
    expense_id = create_expense(client, auth, amount=7, tagIds=[a, b])["id"]

    response = client.put(f"/api/expenses/{expense_id}", json={"tagIds": [b, c]}, headers=auth)
    assert response.status_code == 200
    assert sorted(t["tagId"] for t in response.json()["tags"]) == [b, c]

    body = client.get(f"/api/expenses/{expense_id}", headers=auth).json()
    assert sorted(t["tagId"] for t in body["tags"]) == [b, c]

    cleared = client.put(f"/api/expenses/{expense_id}", json={"tagIds": []}, headers=auth).json()
    assert cleared["tags"] == []


def test_update_only_supplied_fields(client, auth):
    category_id = client.post("/api/categories", json={"name": "Food"}, headers=auth).json()["id"]
    tag_id = create_tag(client, auth, "keep")
    expense = create_expense(
        client, auth,
        amount=10, description="Lunch", date="2024-05-01T12:00:00Z",
        categoryId=category_id, tagIds=[tag_id]
    )

    body = client.put(f"/api/expenses/{expense['id']}", json={"amount": 12.5}, headers=auth).json()
    assert body["amount"] == 12.5
    assert body["description"] == "Lunch"
    assert body["date"] == expense["date"]
    assert body["categoryId"] == category_id
    assert [t["tagId"] for t in body["tags"]] == [tag_id]

    body = client.put(f"/api/expenses/{expense['id']}", json={"date": "2024-06-01T08:00:00Z"}, headers=auth).json()
    assert body["date"].startswith("2024-06-01T08:00:00")


def test_update_validation(client, auth):
    expense_id = create_expense(client, auth, amount=10)["id"]
    assert client.put(f"/api/expenses/{expense_id}", json={"amount": 10.555}, headers=auth).status_code == 400
    assert client.put(f"/api/expenses/{expense_id}", json={"amount": -5}, headers=auth).status_code == 400
    assert client.put(f"/api/expenses/{expense_id}", json={"description": None}, headers=auth).status_code == 400
    assert client.get(f"/api/expenses/{expense_id}", headers=auth).json()["amount"] == 10


def test_delete_expense(client, auth):
    tag_id = create_tag(client, auth, "gone")
    expense_id = create_expense(client, auth, amount=10, tagIds=[tag_id])["id"]
    assert client.delete(f"/api/expenses/{expense_id}", headers=auth).status_code == 204
    assert client.get(f"/api/expenses/{expense_id}", headers=auth).status_code == 404


def test_summary_without_expenses(client, auth):
    body = client.get("/api/expenses/summary", headers=auth).json()
    assert body == {"totalExpenses": 0, "categoryCount": 0, "lastExpense": None}


def test_summary_and_total_agree(client, auth, other_auth):
    client.post("/api/categories", json={"name": "Food"}, headers=auth)
    client.post("/api/categories", json={"name": "Bills"}, headers=auth)
    create_expense(client, auth, amount=10.1, description="older", date="2024-01-01T00:00:00Z")
    create_expense(client, auth, amount=20.2, description="newest", date="2024-03-01T00:00:00Z")
    create_expense(client, auth, amount=30, description="middle", date="2024-02-01T00:00:00Z")
    create_expense(client, other_auth, amount=1000)

    summary = client.get("/api/expenses/summary", headers=auth).json()
    assert summary["totalExpenses"] == pytest.approx(60.3)
    assert summary["categoryCount"] == 2
    assert summary["lastExpense"]["description"] == "newest"
    assert summary["lastExpense"]["amount"] == 20.2

    total = client.get("/api/expenses/total", headers=auth).json()["total"]
    assert total == summary["totalExpenses"]


def test_expense_routes_require_token(client):
    assert client.get("/api/expenses").status_code == 401
    assert client.get("/api/expenses/summary").status_code == 401
    assert client.post("/api/expenses", json={"amount": 1}).status_code == 401
