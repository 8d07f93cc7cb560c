def create_budget(client, headers, category="food", amount=100):
    return client.post("/api/budget", json={"category": category, "amount": amount}, headers=headers)


def test_create_and_list_budgets(client, auth_headers, user):
    res = create_budget(client, auth_headers, "travel", 250)
    assert res.status_code == 201
    body = res.json()
    assert body["category"] == "travel"
    assert body["amount"] == 250
    assert body["userId"] == user["user"]["id"]

    create_budget(client, auth_headers, "food", 100)
    listed = client.get("/api/budget", headers=auth_headers).json()
    assert [b["category"] for b in listed] == ["food", "travel"]


def test_duplicate_category_conflicts(client, auth_headers):
    assert create_budget(client, auth_headers).status_code == 201
    res = create_budget(client, auth_headers, amount=50)
    assert res.status_code == 400
    assert res.json() == {"message": "Budget for this category already exists. Use update instead."}
    assert len(client.get("/api/budget", headers=auth_headers).json()) == 1


def test_same_category_for_different_users(client, make_user):
    alice = make_user()
    bob = make_user(email="bob@y.org", name="Bob")
    assert create_budget(client, alice["headers"]).status_code == 201
    assert create_budget(client, bob["headers"]).status_code == 201
    assert len(client.get("/api/budget", headers=bob["headers"]).json()) == 1


def test_budget_validation(client, auth_headers):
    assert create_budget(client, auth_headers, "food", 0).status_code == 400
    assert create_budget(client, auth_headers, "food", -10).status_code == 400
    assert create_budget(client, auth_headers, "pets", 10).status_code == 400


def test_update_budget_by_category(client, auth_headers):
    create_budget(client, auth_headers)
    res = client.put("/api/budget/food", json={"amount": 150}, headers=auth_headers)
    assert res.status_code == 200
    assert res.json()["amount"] == 150
    assert client.get("/api/budget", headers=auth_headers).json()[0]["amount"] == 150

    assert client.put("/api/budget/food", json={"amount": 0}, headers=auth_headers).status_code == 400


def test_update_missing_budget(client, auth_headers):
    res = client.put("/api/budget/travel", json={"amount": 10}, headers=auth_headers)
    assert res.status_code == 404
    assert res.json() == {"message": "Budget not found for this category"}
    assert client.put("/api/budget/pets", json={"amount": 10}, headers=auth_headers).status_code == 404


def test_delete_budget(client, auth_headers):
    create_budget(client, auth_headers)
    res = client.delete("/api/budget/food", headers=auth_headers)
    assert res.status_code == 200
    assert res.json() == {"message": "Budget deleted successfully"}
    assert client.get("/api/budget", headers=auth_headers).json() == []
    assert client.delete("/api/budget/food", headers=auth_headers).status_code == 404


def test_cannot_touch_other_users_budget(client, make_user):
    alice = make_user()
    bob = make_user(email="bob@y.org", name="Bob")
    create_budget(client, alice["headers"])
    assert client.put("/api/budget/food", json={"amount": 1}, headers=bob["headers"]).status_code == 404
    assert client.delete("/api/budget/food", headers=bob["headers"]).status_code == 404
    assert client.get("/api/budget", headers=alice["headers"]).json()[0]["amount"] == 100


def test_deleting_budget_keeps_expenses(client, auth_headers, add_expense):
    add_expense()
    create_budget(client, auth_headers)
    client.delete("/api/budget/food", headers=auth_headers)
    assert len(client.get("/api/expense", headers=auth_headers).json()) == 1


def test_budget_summary(client, auth_headers, add_expense):
    create_budget(client, auth_headers, "food", 100)
    create_budget(client, auth_headers, "travel", 200)
    create_budget(client, auth_headers, "shopping", 50)
    add_expense("Groceries", 30, "food", "2024-01-03")
    add_expense("Takeaway", 15, "food", "2024-01-20")
    add_expense("Jacket", 80, "shopping", "2024-01-12")
    add_expense("Bus", 5, "transportation", "2024-01-12")

    summary = {s["category"]: s for s in client.get("/api/budget/summary", headers=auth_headers).json()}
    assert set(summary) == {"food", "travel", "shopping"}
    assert summary["food"] == {"category": "food", "budgeted": 100, "spent": 45, "remaining": 55, "percentUsed": "45.00"}
    assert summary["travel"] == {"category": "travel", "budgeted": 200, "spent": 0, "remaining": 200, "percentUsed": "0.00"}
    # overspent: percentage is capped, remaining goes negative
    assert summary["shopping"]["remaining"] == -30
    assert summary["shopping"]["percentUsed"] == "100.00"


def test_budget_summary_date_range(client, auth_headers, add_expense):
    create_budget(client, auth_headers, "food", 100)
    add_expense("Groceries", 30, "food", "2024-01-03")
    add_expense("Takeaway", 15, "food", "2024-02-20")

    res = client.get("/api/budget/summary", params={"startDate": "2024-02-01", "endDate": "2024-02-29"}, headers=auth_headers)
    assert res.json() == [{"category": "food", "budgeted": 100, "spent": 15, "remaining": 85, "percentUsed": "15.00"}]


def test_end_to_end(client):
    res = client.post("/api/auth/signup", json={
        "name": "Alice", "email": "a@x.com", "password": "secret1", "currency": "USD",
    })
    assert res.status_code == 201

    res = client.post("/api/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 200
    headers = {"Authorization": f"Bearer {res.json()['token']}"}

    res = client.post("/api/expense", json={
        "description": "Coffee", "amount": 4.50, "category": "food", "date": "2024-01-05",
    }, headers=headers)
    assert res.status_code == 201
    expense_id = res.json()["id"]

    listed = client.get("/api/expense", params={"startDate": "2024-01-01", "endDate": "2024-01-31"}, headers=headers).json()
    assert len(listed) == 1
    assert listed[0]["id"] == expense_id
    assert (listed[0]["description"], listed[0]["amount"], listed[0]["category"]) == ("Coffee", 4.5, "food")

    assert create_budget(client, headers, "food", 100).status_code == 201

    summary = client.get("/api/budget/summary", headers=headers).json()
    assert summary == [{"category": "food", "budgeted": 100, "spent": 4.5, "remaining": 95.5, "percentUsed": "4.50"}]


def test_budget_amount_must_be_finite(client, auth_headers):
    headers = {**auth_headers, "Content-Type": "application/json"}
    res = client.post("/api/budget", content='{"category": "food", "amount": Infinity}', headers=headers)
    assert res.status_code == 400
    create_budget(client, auth_headers)
    res = client.put("/api/budget/food", content='{"amount": NaN}', headers=headers)
    assert res.status_code == 400
    assert client.get("/api/budget", headers=auth_headers).json()[0]["amount"] == 100
