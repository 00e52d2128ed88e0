def _create_goal(client, user_id, target=1000.0, current=0.0):
    response = client.post("/api/savings-goals", json={
        "userId": user_id,
        "title": "Emergency fund",
        "targetAmount": target,
        "currentAmount": current,
        "deadline": "2026-12-31",
    })
    assert response.status_code == 201, response.text
    return response.json()


def test_create_and_list_goals(client, make_user):
    user = make_user()
    goal = _create_goal(client, user["id"], current=250.0)
    assert goal["completed"] is False

    goals = client.get("/api/savings-goals", params={"userId": user["id"]}).json()["goals"]
    assert [g["id"] for g in goals] == [goal["id"]]


def test_add_funds_is_capped_at_target(client, make_user):
    user = make_user()
    goal = _create_goal(client, user["id"], target=500.0, current=450.0)

    response = client.post(f"/api/savings-goals/{goal['id']}/add-funds", json={"amount": 200.0})
    assert response.status_code == 200
    body = response.json()
    assert body["currentAmount"] == 500.0
    assert body["completed"] is True


def test_add_funds_requires_positive_amount(client, make_user):
    user = make_user()
    goal = _create_goal(client, user["id"])
    response = client.post(f"/api/savings-goals/{goal['id']}/add-funds", json={"amount": 0})
    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_AMOUNT"


def test_update_and_delete_goal(client, make_user):
    user = make_user()
    goal = _create_goal(client, user["id"])

    response = client.put("/api/savings-goals", params={"id": goal["id"]}, json={"title": "House"})
    assert response.json()["title"] == "House"

    response = client.delete(f"/api/savings-goals/{goal['id']}")
    assert response.status_code == 200
    assert client.get(f"/api/savings-goals/{goal['id']}").json()["code"] == "NOT_FOUND"


def test_saved_amount_never_exceeds_target(client, make_user):
    user = make_user()
    goal = _create_goal(client, user["id"], target=300.0, current=450.0)
    assert goal["currentAmount"] == 300.0
    assert goal["completed"] is True

    goal = _create_goal(client, user["id"], target=1000.0, current=600.0)
    body = client.put(f"/api/savings-goals/{goal['id']}", json={"targetAmount": 400.0}).json()
    assert body["targetAmount"] == 400.0
    assert body["currentAmount"] == 400.0

    body = client.put("/api/savings-goals", params={"id": goal["id"]}, json={"currentAmount": 900.0}).json()
    assert body["currentAmount"] == 400.0

    body = client.put(f"/api/savings-goals/{goal['id']}", json={"targetAmount": 800.0, "currentAmount": 500.0}).json()
    assert body["currentAmount"] == 500.0
    assert body["completed"] is False
