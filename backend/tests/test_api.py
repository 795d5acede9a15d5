import importlib
import pathlib
import sys

BASE_DIR = pathlib.Path(__file__).resolve().parents[1]
if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

IEEE_REPLY = "```latex\n\\documentclass{IEEEtran}\n...\n```"


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"
    assert resp.json()["templates"] >= 1


def test_main_and_lambda_entrypoints(api_env):
    main = importlib.import_module("main")
    handler_mod = importlib.import_module("lambda_handler")
    assert handler_mod.handler.app is main.app


def test_ai_chat_success(client, fake_openai, auth_headers):
    fake_openai.reply = "\\section{Introduction}\nAutonomous surgical robots..."
    resp = client.post(
        "/api/ai/chat",
        json={"message": "Write about surgical robots", "latexContent": "\\documentclass{article}"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json() == {"response": fake_openai.reply, "model": "gpt-test"}
    assert fake_openai.last_instruction.endswith("\n\nWrite about surgical robots")
    assert "Current document:\n\\documentclass{article}" in fake_openai.last_instruction


def test_ai_chat_with_template_and_restructure(client, fake_openai, auth_headers):
    fake_openai.reply = IEEE_REPLY
    resp = client.post(
        "/api/ai/chat",
        json={"message": "Apply IEEE", "selectedTemplate": "ieee", "mode": "restructure"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["response"] == IEEE_REPLY
    instruction = fake_openai.last_instruction
    assert "- Columns: 2" in instruction
    assert "- Maximum pages: 6" in instruction
    assert "```latex" in instruction


def test_ai_chat_unknown_template_is_ignored(client, fake_openai, auth_headers):
    resp = client.post("/api/ai/chat", json={"message": "hi", "selectedTemplate": "nope"}, headers=auth_headers)
    assert resp.status_code == 200
    assert "Target template:" not in fake_openai.last_instruction


def test_ai_chat_unauthenticated(client, fake_openai):
    resp = client.post("/api/ai/chat", json={"message": "hi"})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Unauthorized"}
    resp = client.post("/api/ai/chat", json={"message": "hi"}, headers={"Authorization": "Bearer wrong"})
    assert resp.status_code == 401
    assert fake_openai.calls == []


def test_ai_chat_auth_disabled(client, fake_openai, monkeypatch):
    monkeypatch.setenv("AUTH_DISABLED", "true")
    resp = client.post("/api/ai/chat", json={"message": "hi"})
    assert resp.status_code == 200


def test_ai_chat_whitespace_message(client, fake_openai, auth_headers):
    resp = client.post("/api/ai/chat", json={"message": "   "}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json() == {"error": "Message is required"}
    resp = client.post("/api/ai/chat", json={}, headers=auth_headers)
    assert resp.status_code == 400
    assert fake_openai.calls == []


def test_ai_chat_rate_limited(client, fake_openai, auth_headers):
    fake_openai.error = RuntimeError("quota exceeded")
    resp = client.post("/api/ai/chat", json={"message": "hi"}, headers=auth_headers)
    assert resp.status_code == 429
    assert resp.json() == {"error": "Rate limit exceeded. Please try again in a moment."}


def test_ai_chat_failure(client, fake_openai, auth_headers):
    fake_openai.error = RuntimeError("upstream exploded")
    resp = client.post("/api/ai/chat", json={"message": "hi"}, headers=auth_headers)
    assert resp.status_code == 500
    assert resp.json() == {"error": "Failed to get AI response: upstream exploded"}


def test_templates_endpoints(client):
    resp = client.get("/api/templates")
    assert resp.status_code == 200
    ids = [t["id"] for t in resp.json()["templates"]]
    assert "ieee" in ids
    resp = client.get("/api/templates/ieee")
    assert resp.json()["structure"] == {
        "columns": 2,
        "maxPages": 6,
        "abstractRequired": True,
        "keywordsRequired": True,
    }
    assert client.get("/api/templates/unknown").status_code == 404


def _start(client, headers, **payload):
    resp = client.post("/api/session/start", json=payload, headers=headers)
    assert resp.status_code == 200
    return resp.json()["session_id"]


def test_session_freeform_offer_flow(client, fake_openai, auth_headers):
    sid = _start(client, auth_headers, name="Robots")
    fake_openai.reply = "Sure:\n```latex\n\\section{Robots}\n```"
    resp = client.post(f"/api/session/{sid}/chat", json={"message": "Write a section"}, headers=auth_headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["replacement"] is None
    assert body["offer"] == "\\section{Robots}"
    assert "\\title{Robots}" in body["latexContent"]

    resp = client.post(f"/api/session/{sid}/offer/accept", headers=auth_headers)
    assert resp.json() == {"ok": True, "latexContent": "\\section{Robots}"}
    assert client.post(f"/api/session/{sid}/offer/accept", headers=auth_headers).status_code == 409

    history = client.get(f"/api/session/{sid}/history", headers=auth_headers).json()
    assert [m["role"] for m in history["messages"]] == ["user", "assistant"]
    assert history["generating"] is False


def test_session_prose_reply_withdraws_earlier_offer(client, fake_openai, auth_headers):
    sid = _start(client, auth_headers, latexContent="\\section{Current}")
    fake_openai.reply = "```latex\n\\section{Old}\n```"
    client.post(f"/api/session/{sid}/chat", json={"message": "Draft a section"}, headers=auth_headers)

    fake_openai.reply = "That section reads well as it is."
    resp = client.post(f"/api/session/{sid}/chat", json={"message": "Any thoughts?"}, headers=auth_headers)
    assert resp.json()["offer"] is None

    assert client.post(f"/api/session/{sid}/offer/accept", headers=auth_headers).status_code == 409
    doc = client.get(f"/api/session/{sid}/document", headers=auth_headers).json()
    assert doc["latexContent"] == "\\section{Current}"
    assert doc["pendingOffer"] is None


def test_session_apply_template_replaces_document(client, fake_openai, auth_headers):
    sid = _start(client, auth_headers)
    fake_openai.reply = IEEE_REPLY
    resp = client.post(f"/api/session/{sid}/apply-template", json={"templateId": "ieee"}, headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["replacement"] == "\\documentclass{IEEEtran}\n..."
    doc = client.get(f"/api/session/{sid}/document", headers=auth_headers).json()
    assert doc["latexContent"] == "\\documentclass{IEEEtran}\n..."
    assert doc["stats"]["lines"] == 2
    assert "Apply the IEEE Conference Paper template" in fake_openai.last_instruction


def test_session_apply_unknown_template(client, auth_headers):
    sid = _start(client, auth_headers)
    resp = client.post(f"/api/session/{sid}/apply-template", json={"templateId": "nope"}, headers=auth_headers)
    assert resp.status_code == 404


def test_session_format_and_quick_action(client, fake_openai, auth_headers):
    sid = _start(client, auth_headers)
    fake_openai.reply = "```\n\\documentclass{article}\n```"
    resp = client.post(f"/api/session/{sid}/format", headers=auth_headers)
    assert resp.json()["latexContent"] == "\\documentclass{article}"

    fake_openai.reply = "\\begin{equation}E=mc^2\\end{equation}"
    resp = client.post(f"/api/session/{sid}/quick-action/equation", headers=auth_headers)
    assert resp.status_code == 200
    assert resp.json()["latexContent"] == "\\documentclass{article}"
    assert fake_openai.last_instruction.endswith("Insert equation template")
    assert client.post(f"/api/session/{sid}/quick-action/dance", headers=auth_headers).status_code == 404


def test_session_error_turn_keeps_document(client, fake_openai, auth_headers):
    sid = _start(client, auth_headers, latexContent="\\section{Keep}")
    fake_openai.error = RuntimeError("Quota exceeded")
    resp = client.post(
        f"/api/session/{sid}/chat", json={"message": "Reformat", "mode": "restructure"}, headers=auth_headers
    )
    assert resp.status_code == 429
    assert resp.json()["message"]["content"] == "Rate limit exceeded. Please try again in a moment."
    assert resp.json()["latexContent"] == "\\section{Keep}"


def test_session_unauthenticated_turn(client, fake_openai, auth_headers):
    sid = _start(client, auth_headers)
    resp = client.post(f"/api/session/{sid}/chat", json={"message": "hi"})
    assert resp.status_code == 401
    assert resp.json()["message"] == {"role": "assistant", "content": "Unauthorized"}
    assert fake_openai.calls == []


def test_session_routes_require_auth(client, auth_headers):
    sid = _start(client, auth_headers, latexContent="secret draft")
    requests = [
        ("post", "/api/session/start", {"json": {}}),
        ("get", "/api/session/list", {}),
        ("get", f"/api/session/{sid}/history", {}),
        ("get", f"/api/session/{sid}/document", {}),
        ("post", f"/api/session/{sid}/document", {"json": {"latexContent": "overwritten"}}),
        ("post", f"/api/session/{sid}/offer/accept", {}),
        ("delete", f"/api/session/{sid}", {}),
    ]
    for method, url, kwargs in requests:
        resp = getattr(client, method)(url, **kwargs)
        assert resp.status_code == 401, url
        resp = getattr(client, method)(url, headers={"Authorization": "Bearer wrong"}, **kwargs)
        assert resp.status_code == 401, url

    doc = client.get(f"/api/session/{sid}/document", headers=auth_headers).json()
    assert doc["latexContent"] == "secret draft"


def test_session_set_document_and_not_found(client, auth_headers):
    sid = _start(client, auth_headers)
    resp = client.post(f"/api/session/{sid}/document", json={"latexContent": "edited"}, headers=auth_headers)
    assert resp.json() == {"ok": True}
    assert client.get(f"/api/session/{sid}/document", headers=auth_headers).json()["latexContent"] == "edited"
    assert client.get("/api/session/missing/history", headers=auth_headers).status_code == 404
    assert client.post("/api/session/missing/chat", json={"message": "hi"}).status_code == 404


def test_sessions_are_independent(client, auth_headers):
    s1 = _start(client, auth_headers, name="A")
    s2 = _start(client, auth_headers, name="B")
    listing = client.get("/api/session/list", headers=auth_headers).json()["sessions"]
    sessions = {s["session_id"]: s for s in listing}
    assert sessions[s1]["name"] == "A"
    assert sessions[s2]["name"] == "B"
    assert client.delete(f"/api/session/{s1}", headers=auth_headers).json() == {"ok": True}
    assert client.delete(f"/api/session/{s1}", headers=auth_headers).status_code == 404
