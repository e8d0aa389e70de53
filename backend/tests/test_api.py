from conftest import signup_and_login

DEVICE = {"X-User-ID": "device-1"}


def test_root_and_health(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json()["status"] == "healthy"


def test_turn_requires_user_header(client):
    response = client.post("/conversation/turn", json={"text": "안녕하세요"})

    assert response.status_code == 400
    assert response.json()["field"] == "X-User-ID"


def test_empty_turn_is_bad_request(client):
    response = client.post("/conversation/turn", json={"text": ""}, headers=DEVICE)

    assert response.status_code == 400
    assert response.json()["field"] == "text"


def test_turn_and_history(client):
    response = client.post("/conversation/turn", json={"text": "안녕하세요"}, headers=DEVICE)

    assert response.status_code == 200
    body = response.json()
    assert body["stage"] == "initial"
    assert body["used_fallback"] is True

    history = client.get("/conversation/history", headers=DEVICE).json()
    assert [m["role"] for m in history["messages"]] == ["user", "assistant"]
    assert history["photo_session"] is None


def test_photo_upload_and_close(client, ai):
    ai.fail = False
    response = client.post(
        "/conversation/photo",
        files={"image": ("family.png", b"\x89PNG\r\n", "image/png")},
        headers=DEVICE,
    )

    assert response.status_code == 200
    assert response.json()["image_analysis"] == ai.image_description
    assert client.get("/conversation/history", headers=DEVICE).json()["photo_session"]["image_analysis"] == ai.image_description

    assert client.delete("/conversation/photo", headers=DEVICE).json() == {"deactivated": 1}


def test_photo_upload_rejects_non_image(client):
    response = client.post(
        "/conversation/photo",
        files={"image": ("notes.txt", b"hello", "text/plain")},
        headers=DEVICE,
    )

    assert response.status_code == 400
    assert response.json()["field"] == "image"


def test_end_conversation(client, auth_headers):
    assert client.post("/conversation/end", headers=DEVICE).status_code == 404

    client.post("/conversation/turn", json={"text": "오늘 시장에 다녀왔어요"}, headers=DEVICE)
    response = client.post("/conversation/end", headers=DEVICE)

    assert response.status_code == 200
    report = response.json()["report"]
    assert report["user_id"] == "device-1"
    assert report["cdr_label"].startswith("CDR")

    reports = client.get("/reports/device-1", headers=auth_headers).json()
    assert [r["id"] for r in reports] == [report["id"]]
    detail = client.get(f"/reports/detail/{report['id']}", headers=auth_headers)
    assert detail.json()["summary"] == report["summary"]


def test_missing_report_is_not_found(client, auth_headers):
    assert client.get("/reports/detail/999", headers=auth_headers).status_code == 404


def test_personalized_question_endpoints(client):
    client.post("/conversation/turn", json={"text": "고향 생각이 나요"}, headers=DEVICE)

    question = client.get("/conversation/next-question", headers=DEVICE).json()
    assert question["keywords"] == ["고향"]

    feedback = client.post(
        "/conversation/question-feedback",
        json={"keywords": ["고향", "가족"], "was_effective": True},
        headers=DEVICE,
    )
    assert feedback.json() == {"recorded": True}

    status = client.get("/conversation/learning-status", headers=DEVICE).json()
    assert status["total_topics"] == 0
    assert status["top_keywords"] == ["고향"]


def test_signup_login_me(client):
    headers = signup_and_login(client, username="daughter", name="이딸")

    me = client.get("/auth/me", headers=headers).json()
    assert me["username"] == "daughter"
    assert me["role"] == "caregiver"


def test_duplicate_signup(client):
    payload = {"username": "daughter", "password": "secret123", "name": "이딸"}
    assert client.post("/auth/signup", json=payload).status_code == 201
    assert client.post("/auth/signup", json=payload).status_code == 400


def test_wrong_password(client):
    client.post("/auth/signup", json={"username": "daughter", "password": "secret123", "name": "이딸"})

    response = client.post("/auth/login", data={"username": "daughter", "password": "wrong-pass"})
    assert response.status_code == 401


def test_care_requires_token(client):
    assert client.get("/care/device-1/topics").status_code == 401


def test_trauma_crud(client, auth_headers):
    assert client.get("/care/device-1/trauma", headers=auth_headers).status_code == 404

    saved = client.put(
        "/care/device-1/trauma",
        json={"trauma_keywords": ["전쟁", " "], "detailed_description": "피난 경험"},
        headers=auth_headers,
    ).json()
    assert saved["trauma_keywords"] == ["전쟁"]

    check = client.post("/care/device-1/trauma/check", json={"text": "전쟁 때"}, headers=auth_headers).json()
    assert check == {"has_match": True, "matched_keywords": ["전쟁"]}

    assert client.delete("/care/device-1/trauma", headers=auth_headers).status_code == 204
    assert client.delete("/care/device-1/trauma", headers=auth_headers).status_code == 404


def test_topics_and_effectiveness(client, auth_headers):
    for was_effective in (True, True):
        client.post(
            "/conversation/question-feedback",
            json={"keywords": ["바다"], "was_effective": was_effective},
            headers=DEVICE,
        )

    topics = client.get("/care/device-1/topics", headers=auth_headers).json()
    assert topics[0]["keywords"] == ["바다"]
    assert topics[0]["success_rate"] == 1.0

    effectiveness = client.get(
        "/care/device-1/topics/effectiveness", params={"keywords": ["산"]}, headers=auth_headers
    ).json()
    assert effectiveness == {"keywords": ["산"], "effectiveness": 0.5}


def test_patients_are_scoped_to_owner(client, auth_headers):
    created = client.post(
        "/patients",
        json={"name": "김할머니", "age": 82, "gender": "FEMALE", "relationship_to_owner": "어머니"},
        headers=auth_headers,
    )
    assert created.status_code == 201
    patient_id = created.json()["id"]

    updated = client.put(f"/patients/{patient_id}", json={"memo": "오전에 컨디션이 좋음"}, headers=auth_headers).json()
    assert updated["memo"] == "오전에 컨디션이 좋음"
    assert updated["name"] == "김할머니"

    other = signup_and_login(client, username="neighbor", name="박이웃")
    assert client.get("/patients", headers=other).json() == []
    assert client.delete(f"/patients/{patient_id}", headers=other).status_code == 404

    assert [p["id"] for p in client.get("/patients", headers=auth_headers).json()] == [patient_id]
    assert client.delete(f"/patients/{patient_id}", headers=auth_headers).status_code == 204
