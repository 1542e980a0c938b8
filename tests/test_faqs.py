def _create(client, headers, question, answer="Yes.", **extra):
    return client.post("/api/admin-faqs/", json={"question": question, "answer": answer, **extra}, headers=headers)


def test_faq_crud(client, admin_headers):
    r = _create(client, admin_headers, "Do you deliver?", display_order=2)
    assert r.status_code == 201
    faq_id = r.json()["id"]
    _create(client, admin_headers, "Are you open on Sundays?", display_order=1)

    questions = [f["question"] for f in client.get("/api/admin-faqs/").json()]
    assert questions == ["Are you open on Sundays?", "Do you deliver?"]

    r = client.put(f"/api/admin-faqs/{faq_id}", json={"question": "Do you deliver?", "answer": "Within 5 miles.",
                                                      "display_order": 2}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["answer"] == "Within 5 miles."

    assert client.delete(f"/api/admin-faqs/{faq_id}", headers=admin_headers).status_code == 200
    assert client.delete(f"/api/admin-faqs/{faq_id}", headers=admin_headers).status_code == 404


def test_question_and_answer_are_required(client, admin_headers):
    assert _create(client, admin_headers, "   ").status_code == 400
    assert _create(client, admin_headers, "Gluten free?", answer="").status_code == 400


def test_inactive_faqs_are_admin_only(client, admin_headers, customer_headers):
    _create(client, admin_headers, "Hidden?", is_active=False)
    _create(client, admin_headers, "Visible?")

    assert len(client.get("/api/admin-faqs/").json()) == 1
    assert len(client.get("/api/admin-faqs/?include_inactive=true", headers=customer_headers).json()) == 1
    assert len(client.get("/api/admin-faqs/?include_inactive=true", headers=admin_headers).json()) == 2


def test_faq_writes_need_admin(client, customer_headers):
    assert _create(client, customer_headers, "Can I?").status_code == 403
    assert client.put("/api/admin-faqs/1", json={"question": "q", "answer": "a"}).status_code == 401
