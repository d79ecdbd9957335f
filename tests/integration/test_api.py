"""Integration tests for the HTTP API"""

import uuid
from qurban_savings.config import settings

CAMPAIGN = {"X-Actor-Id": "staff-1", "X-Actor-Roles": "admin_campaign"}
SUPER = {"X-Actor-Id": "staff-2", "X-Actor-Roles": "super_admin"}
FINANCE = {"X-Actor-Id": "staff-3", "X-Actor-Roles": "admin_finance"}


def savings_payload(**overrides):
    payload = {
        "donor_name": "Ahmad Fauzi",
        "donor_phone": "081234567890",
        "target_period_id": "period_1447",
        "target_package_period_id": "pp_cow_shared",
        "installment_frequency": "monthly",
        "installment_count": 3,
        "installment_day": 5,
        "start_date": "2026-01-01",
    }
    payload.update(overrides)
    return payload


def create_savings(client, **overrides) -> dict:
    response = client.post("/v1/savings", json=savings_payload(**overrides), headers=CAMPAIGN)
    assert response.status_code == 201, response.text
    return response.json()


def submit_deposit(client, savings_id: str, amount: int, proof: str = "/uploads/bukti.jpg") -> dict:
    response = client.post(
        f"/v1/savings/{savings_id}/deposits",
        json={"amount": amount, "payment_proof": proof, "payment_channel": "bca"},
        headers=CAMPAIGN,
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client):
    client.get("/health")
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "http_request_duration_seconds" in response.text


def test_request_id_is_echoed(client):
    response = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert response.headers["X-Request-ID"] == "trace-123"


def test_quote_shared_cow(client):
    response = client.post("/v1/savings/quote", json=savings_payload(), headers=CAMPAIGN)

    assert response.status_code == 200
    data = response.json()
    assert data["unit_fee"] == 171_429
    assert data["package_price"] == 3_000_000
    assert data["target_amount"] == 3_171_429
    assert data["installment_amount"] == 1_057_143
    assert data["period_name"] == "Idul Adha 1447 H"
    assert [i["amount"] for i in data["schedule"]] == [1_057_143, 1_057_143, 1_057_143]


def test_quote_other_period_changes_price(client):
    response = client.post(
        "/v1/savings/quote", json=savings_payload(target_period_id="period_1448"), headers=CAMPAIGN
    )

    data = response.json()
    assert data["package_price"] == 3_300_000
    assert data["target_amount"] == 3_471_429
    assert data["period_name"] == "Idul Adha 1448 H"


def test_quote_unknown_period_rejected(client):
    response = client.post(
        "/v1/savings/quote", json=savings_payload(target_period_id="period_1500"), headers=CAMPAIGN
    )
    assert response.status_code == 400


def test_create_savings_goat(client):
    data = create_savings(
        client,
        target_package_period_id="pp_goat",
        installment_count=6,
        installment_frequency="weekly",
        installment_day=1,
    )

    assert data["target_amount"] == 2_500_000
    assert data["installment_amount"] == 416_667
    assert data["current_amount"] == 0
    assert data["status"] == "active"
    assert data["savings_number"].startswith("SAV-QBN-")


def test_create_savings_blank_phone(client):
    response = client.post("/v1/savings", json=savings_payload(donor_phone="   "), headers=CAMPAIGN)
    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"


def test_create_savings_disallowed_count(client, catalog):
    response = client.post("/v1/savings", json=savings_payload(installment_count=5), headers=CAMPAIGN)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_installment_count"
    assert catalog.package_calls == 0


def test_create_savings_zero_count(client, catalog):
    response = client.post("/v1/savings", json=savings_payload(installment_count=0), headers=CAMPAIGN)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_installment_count"
    assert catalog.package_calls == 0


def test_quote_zero_count(client):
    response = client.post("/v1/savings/quote", json=savings_payload(installment_count=0), headers=CAMPAIGN)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "invalid_installment_count"


def test_create_savings_missing_phone(client):
    payload = savings_payload()
    del payload["donor_phone"]

    response = client.post("/v1/savings", json=payload, headers=CAMPAIGN)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"
    assert "phone" in response.json()["detail"]["message"]


def test_create_savings_empty_name(client):
    response = client.post("/v1/savings", json=savings_payload(donor_name=""), headers=CAMPAIGN)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"
    assert "name" in response.json()["detail"]["message"]


def test_create_savings_empty_period(client):
    response = client.post("/v1/savings", json=savings_payload(target_period_id=""), headers=CAMPAIGN)

    assert response.status_code == 400
    assert response.json()["detail"]["error"] == "validation_error"


def test_create_savings_day_out_of_range(client):
    monthly = client.post("/v1/savings", json=savings_payload(installment_day=29), headers=CAMPAIGN)
    weekly = client.post(
        "/v1/savings",
        json=savings_payload(installment_frequency="weekly", installment_day=8),
        headers=CAMPAIGN,
    )

    assert monthly.status_code == 400
    assert weekly.status_code == 400
    assert weekly.json()["detail"]["error"] == "invalid_schedule_day"


def test_create_savings_shared_package_without_slots(client):
    response = client.post(
        "/v1/savings", json=savings_payload(target_package_period_id="pp_shared_broken"), headers=CAMPAIGN
    )
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "invalid_configuration"


def test_create_savings_unknown_package(client):
    response = client.post(
        "/v1/savings", json=savings_payload(target_package_period_id="pp_missing"), headers=CAMPAIGN
    )
    assert response.status_code == 404


def test_list_and_filter_savings(client):
    first = create_savings(client)
    second = create_savings(client, target_period_id="period_1448")

    all_ids = {s["id"] for s in client.get("/v1/savings", headers=CAMPAIGN).json()["data"]}
    filtered = client.get("/v1/savings", params={"period_id": "period_1448"}, headers=CAMPAIGN).json()["data"]

    assert all_ids == {first["id"], second["id"]}
    assert [s["id"] for s in filtered] == [second["id"]]


def test_deposit_pending_list_shows_proof_url(client):
    savings = create_savings(client)
    deposit = submit_deposit(client, savings["id"], 500_000)

    assert deposit["status"] == "pending"
    assert deposit["transaction_number"].startswith("PAY-SAV-QBN-")

    response = client.get("/v1/deposits/pending", headers=FINANCE)
    assert response.status_code == 200
    body = response.json()
    assert body["refresh_interval_seconds"] == settings.pending_refresh_seconds
    assert [d["id"] for d in body["data"]] == [deposit["id"]]
    item = body["data"][0]
    assert item["payment_proof_url"] == f"{settings.media_base_url}/uploads/bukti.jpg"
    assert item["donor_name"] == "Ahmad Fauzi"
    assert item["period_name"] == "Idul Adha 1447 H"

    count = client.get("/v1/deposits/pending/count", headers=FINANCE)
    assert count.json() == {"count": 1}


def test_deposit_amount_must_be_positive(client):
    savings = create_savings(client)

    for amount in (0, -500):
        response = client.post(f"/v1/savings/{savings['id']}/deposits", json={"amount": amount}, headers=CAMPAIGN)
        assert response.status_code == 400
        assert response.json()["detail"]["error"] == "validation_error"


def test_deposit_on_unknown_savings(client):
    response = client.post(f"/v1/savings/{uuid.uuid4()}/deposits", json={"amount": 1_000}, headers=CAMPAIGN)
    assert response.status_code == 404


def test_verify_then_conflict(client, ledger):
    savings = create_savings(client)
    deposit = submit_deposit(client, savings["id"], 1_000_000)

    first = client.post(f"/v1/deposits/{deposit['id']}/verify", headers=CAMPAIGN)
    second = client.post(f"/v1/deposits/{deposit['id']}/verify", headers=SUPER)

    assert first.status_code == 200
    assert first.json()["account"]["current_amount"] == 1_000_000
    assert second.status_code == 409
    assert second.json()["detail"]["status"] == "verified"

    assert len(ledger.events) == 1
    assert ledger.events[0]["deposit_id"] == deposit["id"]
    assert ledger.events[0]["verified_by"] == "staff-1"

    detail = client.get(f"/v1/savings/{savings['id']}", headers=CAMPAIGN).json()
    assert detail["savings"]["current_amount"] == 1_000_000
    assert detail["installments_paid"] == 1
    assert detail["verified_total"] == 1_000_000
    assert detail["transactions"][0]["verified_by"] == "staff-1"


def test_verify_reaching_target_completes(client):
    savings = create_savings(client, target_package_period_id="pp_goat")
    deposit = submit_deposit(client, savings["id"], savings["target_amount"])

    response = client.post(f"/v1/deposits/{deposit['id']}/verify", headers=CAMPAIGN)

    account = response.json()["account"]
    assert account["status"] == "completed"
    assert account["is_completed"] is True

    refused = client.post(f"/v1/savings/{savings['id']}/deposits", json={"amount": 1_000}, headers=CAMPAIGN)
    assert refused.status_code == 400
    assert refused.json()["detail"]["error"] == "savings_not_active"


def test_verify_invalid_id(client):
    response = client.post("/v1/deposits/not-a-uuid/verify", headers=CAMPAIGN)
    assert response.status_code == 400


def test_reject_requires_reason(client):
    savings = create_savings(client)
    deposit = submit_deposit(client, savings["id"], 100_000)

    missing = client.post(f"/v1/deposits/{deposit['id']}/reject", json={}, headers=CAMPAIGN)
    blank = client.post(f"/v1/deposits/{deposit['id']}/reject", json={"reason": "  "}, headers=CAMPAIGN)

    assert missing.status_code == 400
    assert blank.status_code == 400
    assert client.get("/v1/deposits/pending/count", headers=CAMPAIGN).json()["count"] == 1


def test_reject_with_reason(client, ledger):
    savings = create_savings(client)
    deposit = submit_deposit(client, savings["id"], 100_000)

    response = client.post(
        f"/v1/deposits/{deposit['id']}/reject", json={"reason": "Bukti tidak terbaca"}, headers=CAMPAIGN
    )

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "rejected"
    assert body["rejection_reason"] == "Bukti tidak terbaca"
    assert body["rejected_by"] == "staff-1"
    assert ledger.events == []

    again = client.post(f"/v1/deposits/{deposit['id']}/verify", headers=CAMPAIGN)
    assert again.status_code == 409


def test_bulk_verify_mixed(client, ledger):
    savings = create_savings(client)
    deposits = [submit_deposit(client, savings["id"], amount) for amount in (100_000, 200_000, 300_000)]
    client.post(f"/v1/deposits/{deposits[1]['id']}/verify", headers=SUPER)

    response = client.post(
        "/v1/deposits/verify-bulk",
        json={"deposit_ids": [d["id"] for d in deposits] + ["bogus"]},
        headers=CAMPAIGN,
    )

    assert response.status_code == 200
    body = response.json()
    assert [item["ok"] for item in body["items"]] == [True, False, True, False]
    assert [item["error"] for item in body["items"]] == [None, "already_finalized", None, "invalid_id"]
    assert body["success_count"] == 2
    assert body["failure_count"] == 2
    assert body["items"][2]["account"]["current_amount"] == 600_000
    assert len(ledger.events) == 3


def test_bulk_verify_requires_ids(client):
    response = client.post("/v1/deposits/verify-bulk", json={"deposit_ids": []}, headers=CAMPAIGN)
    assert response.status_code == 422


def test_missing_actor_is_unauthorized(client):
    assert client.get("/v1/deposits/pending").status_code == 401


def test_finance_can_view_but_not_verify(client):
    savings = create_savings(client)
    deposit = submit_deposit(client, savings["id"], 100_000)

    assert client.get("/v1/deposits/pending", headers=FINANCE).status_code == 200
    assert client.post(f"/v1/deposits/{deposit['id']}/verify", headers=FINANCE).status_code == 403
    assert client.post("/v1/savings", json=savings_payload(), headers=FINANCE).status_code == 403


def test_unknown_role_cannot_view_queue(client):
    response = client.get("/v1/deposits/pending", headers={"X-Actor-Id": "x", "X-Actor-Roles": "donor"})
    assert response.status_code == 403


def test_savings_detail_schedule(client):
    savings = create_savings(client, target_package_period_id="pp_goat")

    response = client.get(f"/v1/savings/{savings['id']}", headers=CAMPAIGN)

    assert response.status_code == 200
    body = response.json()
    assert len(body["schedule"]) == 3
    assert sum(i["amount"] for i in body["schedule"]) == 2_500_000
    assert body["remaining_amount"] == 2_500_000
    assert body["progress_pct"] == 0


def test_savings_detail_not_found(client):
    response = client.get(f"/v1/savings/{uuid.uuid4()}", headers=CAMPAIGN)
    assert response.status_code == 404
