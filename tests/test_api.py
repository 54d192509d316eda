from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from api import create_app
from repository import StoreClient

AS_OF = {"as_of": "2024-07-15"}


@pytest.fixture
def client(local_settings):
    store = StoreClient("sqlite://")
    with TestClient(create_app(store, local_settings)) as test_client:
        yield test_client
    store.dispose()


def _register(client, email: str = "ana@example.com") -> dict:
    response = client.post(
        "/auth/register",
        json={"name": "Ana", "email": email, "password": "segredo1", "type": "single"},
    )
    assert response.status_code == 201
    return {"Authorization": f"Bearer {response.json()['token']}"}


def _add(client, headers, kind: str, category: str, amount: float, day: str) -> dict:
    response = client.post(
        "/transactions",
        json={"type": kind, "category": category, "amount": amount, "date": day},
        headers=headers,
    )
    assert response.status_code == 201
    return response.json()


def test_health(client) -> None:
    assert client.get("/health").json() == {"status": "ok"}


def test_register_login_verify(client) -> None:
    headers = _register(client)

    verify = client.get("/auth/verify", headers=headers)
    assert verify.status_code == 200
    assert verify.json()["valid"] is True
    assert verify.json()["user"]["email"] == "ana@example.com"

    login = client.post("/auth/login", json={"email": "ana@example.com", "password": "segredo1"})
    assert login.status_code == 200
    assert login.json()["message"] == "Login realizado com sucesso"
    assert "password_hash" not in login.json()["user"]


def test_auth_errors(client) -> None:
    _register(client)

    duplicate = client.post(
        "/auth/register",
        json={"name": "Ana", "email": "ana@example.com", "password": "segredo1", "type": "single"},
    )
    assert duplicate.status_code == 400
    assert duplicate.json() == {"error": "Email já está em uso"}

    wrong = client.post("/auth/login", json={"email": "ana@example.com", "password": "errada"})
    assert wrong.status_code == 401
    assert wrong.json() == {"error": "Email ou senha incorretos"}

    assert client.get("/auth/verify").json() == {"valid": False, "error": "Token não fornecido"}
    assert client.get("/transactions").status_code == 401
    assert client.get("/transactions", headers={"Authorization": "Bearer nope"}).json() == {"error": "Token inválido"}


def test_invalid_payload_is_bad_request(client) -> None:
    response = client.post("/auth/register", json={"name": "Ana", "email": "a@b.c", "password": "123", "type": "single"})
    assert response.status_code == 400
    assert "error" in response.json()


def test_transaction_crud_is_scoped(client) -> None:
    ana = _register(client)
    bia = _register(client, "bia@example.com")
    created = _add(client, ana, "expense", "Lazer", 80.0, "2024-07-03")

    assert [t["id"] for t in client.get("/transactions", headers=ana).json()] == [created["id"]]
    assert client.get("/transactions", headers=bia).json() == []

    updated = client.put(
        f"/transactions/{created['id']}",
        json={"type": "expense", "category": "Lazer", "amount": 90.0, "date": "2024-07-03"},
        headers=ana,
    )
    assert updated.json()["amount"] == 90.0

    foreign = client.delete(f"/transactions/{created['id']}", headers=bia)
    assert foreign.status_code == 404
    assert foreign.json() == {"error": "Transação não encontrada"}

    deleted = client.delete(f"/transactions/{created['id']}", headers=ana)
    assert deleted.json() == {"message": "Transação deletada com sucesso"}


def test_budgets_report_spent(client) -> None:
    headers = _register(client)
    _add(client, headers, "expense", "Lazer", 150.0, "2024-07-03")
    client.post("/budgets", json={"category": "Lazer", "limit": 100.0}, headers=headers)

    budgets = client.get("/budgets", params=AS_OF, headers=headers).json()
    assert budgets[0]["spent"] == 150.0

    insights = client.get("/analysis/insights", params=AS_OF, headers=headers).json()
    assert any(i["title"] == "Orçamento ultrapassado: Lazer" for i in insights)


def test_goals_crud(client) -> None:
    headers = _register(client)
    goal = client.post(
        "/goals",
        json={"title": "Viagem", "target_amount": 3000.0, "deadline": "2025-01-01"},
        headers=headers,
    ).json()
    assert goal["current_amount"] == 0.0

    assert client.delete("/goals/missing", headers=headers).json() == {"error": "Meta não encontrada"}
    assert client.delete(f"/goals/{goal['id']}", headers=headers).json() == {"message": "Meta deletada com sucesso"}


def test_analysis_endpoints(client) -> None:
    headers = _register(client)
    _add(client, headers, "income", "Salário", 10000.0, "2024-07-01")
    _add(client, headers, "expense", "Alimentação", 5000.0, "2024-07-02")
    _add(client, headers, "expense", "Moradia", 4500.0, "2024-07-05")

    summary = client.get("/analysis/summary", params=AS_OF, headers=headers).json()
    assert summary["balance"] == 500.0

    patterns = client.get("/analysis/patterns", params=AS_OF, headers=headers).json()
    assert [p["category"] for p in patterns] == ["Alimentação", "Moradia"]

    trends = client.get("/analysis/trends", params=AS_OF, headers=headers).json()
    assert len(trends) == 6
    assert trends[-1]["period"] == "jul. de 2024"

    report = client.get("/analysis/cost-cutting", params=AS_OF, headers=headers).json()
    assert report["analysis"]["severity"] == "critical"
    assert report["plans"][0]["category"] == "Alimentação"
    assert report["reorganization"]["emergency_actions"]


def test_chat(client) -> None:
    headers = _register(client)
    _add(client, headers, "income", "Salário", 5000.0, "2024-07-01")
    _add(client, headers, "expense", "Moradia", 1000.0, "2024-07-05")

    response = client.post("/assistant/chat", params=AS_OF, json={"message": "Como posso economizar mais?"}, headers=headers)
    body = response.json()
    assert body["intent"]["intent"] == "economia"
    assert "ESTRATÉGIA DE ECONOMIA PERSONALIZADA" in body["response"]


def test_projection(client) -> None:
    response = client.get("/investments/projection", params={"initial": 1000, "monthly": 100, "years": 5})
    assert [p["year"] for p in response.json()] == [1, 5]
    assert client.get("/investments/projection", params={"years": 0}).status_code == 400


def test_exports(client, local_settings) -> None:
    headers = _register(client)
    _add(client, headers, "expense", "Lazer", 49.9, "2024-07-03")

    csv = client.get("/export/transactions.csv", headers=headers)
    assert csv.headers["content-type"].startswith("text/csv")
    assert "attachment" in csv.headers["content-disposition"]
    assert "49.90" in csv.content.decode("utf-8-sig")

    saved = client.post("/export/report", params=AS_OF, headers=headers).json()
    assert saved["saved"] is True
    assert (Path(local_settings.export_folder) / "reports" / saved["file"]).exists()


def test_logout_revokes_token(client) -> None:
    headers = _register(client)

    response = client.post("/auth/logout", headers=headers)
    assert response.json() == {"message": "Logout realizado com sucesso"}

    assert client.get("/transactions", headers=headers).json() == {"error": "Token inválido"}
    assert client.post("/auth/logout").status_code == 401


def test_scheduled_expenses_crud(client) -> None:
    headers = _register(client)
    payload = {"description": "Aluguel", "amount": 1500.0, "category": "Moradia", "scheduled_date": "2024-07-20", "frequency": "monthly"}
    rent = client.post("/scheduled-expenses", json=payload, headers=headers)
    assert rent.status_code == 201
    rent = rent.json()
    far = client.post(
        "/scheduled-expenses",
        json={"description": "IPVA", "amount": 800.0, "category": "Transporte", "scheduled_date": "2024-09-01"},
        headers=headers,
    ).json()
    assert far["frequency"] == "once"

    upcoming = client.get("/scheduled-expenses/upcoming", params=AS_OF, headers=headers).json()
    assert [e["id"] for e in upcoming] == [rent["id"]]

    done = client.post(f"/scheduled-expenses/{rent['id']}/complete", headers=headers).json()
    assert done["is_completed"] is True
    assert client.get("/scheduled-expenses/upcoming", params=AS_OF, headers=headers).json() == []

    updated = client.put(f"/scheduled-expenses/{far['id']}", json={**payload, "amount": 1600.0}, headers=headers)
    assert updated.json()["amount"] == 1600.0

    invalid = client.post("/scheduled-expenses", json={**payload, "frequency": "daily"}, headers=headers)
    assert invalid.status_code == 400

    assert client.delete(f"/scheduled-expenses/{far['id']}", headers=headers).json() == {
        "message": "Despesa agendada excluída com sucesso"
    }
    assert client.delete(f"/scheduled-expenses/{far['id']}", headers=headers).json() == {
        "error": "Despesa agendada não encontrada"
    }


def test_custom_categories_crud(client) -> None:
    ana = _register(client)
    bia = _register(client, "bia@example.com")
    pets = client.post("/categories", json={"name": "Pets", "icon": "🐶", "color": "#10b981"}, headers=ana)
    assert pets.status_code == 201
    pets = pets.json()

    vet = client.post("/categories", json={"name": "Veterinário", "parent_category_id": pets["id"]}, headers=ana).json()
    assert vet["parent_category_id"] == pets["id"]
    assert [c["name"] for c in client.get("/categories", headers=ana).json()] == ["Pets", "Veterinário"]
    assert client.get("/categories", headers=bia).json() == []

    foreign_parent = client.post("/categories", json={"name": "Gato", "parent_category_id": pets["id"]}, headers=bia)
    assert foreign_parent.json() == {"error": "Categoria não encontrada"}

    loop = client.put(f"/categories/{pets['id']}", json={"name": "Pets", "parent_category_id": pets["id"]}, headers=ana)
    assert loop.status_code == 400
    assert loop.json() == {"error": "Uma categoria não pode ser pai de si mesma"}

    assert client.post("/categories", json={"name": "X", "color": "verde"}, headers=ana).status_code == 400
    assert client.delete(f"/categories/{pets['id']}", headers=ana).json() == {"message": "Categoria excluída com sucesso"}
