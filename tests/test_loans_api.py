import logging
from datetime import date
from decimal import Decimal

from finledger.core.exceptions import InvariantViolation
from finledger.services import loan_service
from finledger.utils.loan_calculations import add_months, compute_emi


def create(client, payload):
    res = client.post("/api/loans", json=payload)
    assert res.status_code == 201, res.text
    return res.json()


def test_create_loan_generates_schedule(client, loan_payload):
    body = create(client, loan_payload)

    assert body["emiAmount"] == "10661.85"
    assert body["principalAmount"] == "120000.00"
    assert body["outstandingAmount"] == "120000.00"
    assert body["status"] == "active"
    assert body["emiDay"] == 15
    assert body["endDate"] == "2027-01-15"
    assert body["totalInstallments"] == 12
    assert body["paidInstallments"] == 0

    first = body["installments"][0]
    assert first["installmentNumber"] == 1
    assert first["dueDate"] == "2026-02-15"
    assert first["interestAmount"] == "1200.00"
    assert first["principalAmount"] == "9461.85"


def test_create_loan_rejects_bad_terms(client, loan_payload):
    for field, value in (("tenure", 0), ("principalAmount", "0"), ("interestRate", "-1"), ("emiDay", 32)):
        res = client.post("/api/loans", json={**loan_payload, field: value})
        assert res.status_code == 422, field

    assert client.get("/api/loans").json() == []


def test_create_loan_with_unknown_account(client, loan_payload):
    res = client.post("/api/loans", json={**loan_payload, "accountId": 99})

    assert res.status_code == 422
    assert res.json()["detail"] == "Invalid account_id"


def test_emi_below_interest_is_rejected(client, loan_payload):
    res = client.post("/api/loans", json={**loan_payload, "emiAmount": "500"})

    assert res.status_code == 422
    assert client.get("/api/loans").json() == []


def test_get_missing_loan(client):
    res = client.get("/api/loans/42")

    assert res.status_code == 404
    assert res.json() == {"detail": "Loan not found"}


def test_list_filters(client, loan_payload):
    create(client, loan_payload)
    home = create(client, {**loan_payload, "name": "Flat", "type": "home_loan"})

    assert [l["id"] for l in client.get("/api/loans", params={"type": "home_loan"}).json()] == [home["id"]]
    assert len(client.get("/api/loans", params={"status": "active"}).json()) == 2
    assert client.get("/api/loans", params={"status": "closed"}).json() == []


def test_patch_and_delete(client, loan_payload):
    loan = create(client, loan_payload)

    res = client.patch(f"/api/loans/{loan['id']}", json={"name": "Car loan (HDFC)", "notes": "refinanced"})
    assert res.status_code == 200
    assert res.json()["name"] == "Car loan (HDFC)"
    assert res.json()["outstandingAmount"] == "120000.00"

    res = client.delete(f"/api/loans/{loan['id']}")
    assert res.status_code == 200
    assert client.get(f"/api/loans/{loan['id']}").status_code == 404
    assert client.get(f"/api/loans/{loan['id']}/installments").status_code == 404


def test_generate_twice_conflicts(client, loan_payload):
    loan = create(client, loan_payload)

    res = client.post(f"/api/loans/{loan['id']}/generate-installments")

    assert res.status_code == 409
    assert len(client.get(f"/api/loans/{loan['id']}/installments").json()) == 12


def test_mark_paid(client, loan_payload):
    loan = create(client, loan_payload)
    first = loan["installments"][0]

    res = client.post(
        f"/api/loan-installments/{first['id']}/mark-paid",
        json={"paidAmount": "10661.85", "paidDate": "2026-02-15"},
    )

    assert res.status_code == 200
    body = res.json()
    assert body["installment"]["status"] == "paid"
    assert body["installment"]["paidDate"] == "2026-02-15"
    assert body["outstandingAmount"] == "110538.15"
    assert body["loanStatus"] == "active"
    assert body["transactionId"] is None

    loan = client.get(f"/api/loans/{loan['id']}").json()
    assert loan["outstandingAmount"] == "110538.15"
    assert loan["paidInstallments"] == 1


def test_mark_paid_twice(client, loan_payload):
    loan = create(client, loan_payload)
    inst_id = loan["installments"][0]["id"]
    client.post(f"/api/loan-installments/{inst_id}/mark-paid", json={})

    res = client.post(f"/api/loan-installments/{inst_id}/mark-paid", json={})

    assert res.status_code == 409
    assert client.get(f"/api/loans/{loan['id']}").json()["outstandingAmount"] == "110538.15"


def test_mark_paid_unknown_installment(client):
    res = client.post("/api/loan-installments/777/mark-paid", json={})

    assert res.status_code == 404


def test_mark_paid_with_transaction(client, loan_payload):
    account = client.post("/api/accounts", json={"name": "Savings", "balance": "50000"}).json()
    loan = create(client, {**loan_payload, "accountId": account["id"]})
    inst_id = loan["installments"][0]["id"]

    res = client.post(
        f"/api/loan-installments/{inst_id}/mark-paid",
        json={"paidAmount": "11000", "createTransaction": True, "affectBalance": True},
    )

    assert res.status_code == 200
    assert res.json()["accountBalance"] == "39000.00"
    assert client.get(f"/api/accounts/{account['id']}").json()["balance"] == "39000.00"

    txns = client.get("/api/transactions", params={"account_id": account["id"]}).json()
    assert len(txns) == 1
    assert txns[0]["amount"] == "11000.00"
    assert txns[0]["loanInstallmentId"] == inst_id
    assert txns[0]["description"] == "EMI 1/12 - Car loan"


def test_mark_paid_side_effect_needs_account(client, loan_payload):
    loan = create(client, loan_payload)
    inst_id = loan["installments"][0]["id"]

    res = client.post(f"/api/loan-installments/{inst_id}/mark-paid", json={"affectBalance": True})

    assert res.status_code == 422
    assert client.get(f"/api/loans/{loan['id']}").json()["installments"][0]["status"] != "paid"


def test_regenerate_after_payments(client, loan_payload):
    loan = create(client, loan_payload)
    for inst in loan["installments"][:3]:
        client.post(f"/api/loan-installments/{inst['id']}/mark-paid", json={})

    res = client.post(f"/api/loans/{loan['id']}/regenerate-installments")

    assert res.status_code == 200
    body = res.json()
    assert [i["installmentNumber"] for i in body["installments"]] == list(range(1, 13))
    assert [i["id"] for i in body["installments"][:3]] == [i["id"] for i in loan["installments"][:3]]
    assert [i["dueDate"] for i in body["installments"]] == [i["dueDate"] for i in loan["installments"]]


def test_regenerate_missing_loan(client):
    assert client.post("/api/loans/5/regenerate-installments").status_code == 404


def test_overdue_is_derived_on_read(client, loan_payload):
    today = date.today()
    start = add_months(today, -3)
    loan = create(client, {**loan_payload, "startDate": start.isoformat()})

    statuses = [i["status"] for i in loan["installments"]]
    assert statuses[:2] == ["overdue", "overdue"]
    assert statuses[-1] == "pending"

    inst_id = loan["installments"][0]["id"]
    res = client.post(f"/api/loan-installments/{inst_id}/mark-paid", json={})
    assert res.json()["installment"]["status"] == "paid"


def test_invariant_violation_hides_detail(client, loan_payload, monkeypatch, caplog):
    loan = create(client, loan_payload)
    inst_id = loan["installments"][0]["id"]

    def drifted(loan, principal_part):
        raise InvariantViolation("Outstanding drift on loan 1")

    monkeypatch.setattr(loan_service, "apply_principal_payment", drifted)
    res = client.post(f"/api/loan-installments/{inst_id}/mark-paid", json={})

    assert res.status_code == 500
    assert res.json() == {"detail": "Internal server error"}

    failures = [r for r in caplog.records if r.levelno == logging.ERROR and r.name == "finledger"]
    assert failures and failures[0].exc_info is not None
    assert "Outstanding drift" in failures[0].getMessage()

    monkeypatch.undo()
    loan = client.get(f"/api/loans/{loan['id']}").json()
    assert loan["outstandingAmount"] == "120000.00"
    assert loan["installments"][0]["status"] != "paid"


def test_lowering_principal_then_paying_every_row(client, loan_payload):
    loan = create(client, {**loan_payload, "principalAmount": "12000", "interestRate": "0"})

    res = client.patch(f"/api/loans/{loan['id']}", json={"principalAmount": "5000"})
    assert res.status_code == 200
    assert res.json()["outstandingAmount"] == "5000.00"
    assert res.json()["emiAmount"] == "416.66"

    installments = client.get(f"/api/loans/{loan['id']}/installments").json()
    assert sum(Decimal(i["principalAmount"]) for i in installments) == Decimal("5000.00")

    codes = [
        client.post(f"/api/loan-installments/{i['id']}/mark-paid", json={}).status_code
        for i in installments
    ]
    assert codes == [200] * 12

    loan = client.get(f"/api/loans/{loan['id']}").json()
    assert loan["outstandingAmount"] == "0.00"
    assert loan["status"] == "closed"


def test_fractional_interest_rate(client, loan_payload):
    body = create(client, {**loan_payload, "interestRate": "10.125"})

    assert Decimal(body["interestRate"]) == Decimal("10.125")
    assert body["emiAmount"] == str(compute_emi(Decimal("120000"), Decimal("10.125"), 12))
    assert body["emiAmount"] != str(compute_emi(Decimal("120000"), Decimal("10.13"), 12))


def test_interest_rate_precision_limit(client, loan_payload):
    res = client.post("/api/loans", json={**loan_payload, "interestRate": "10.12345"})

    assert res.status_code == 422
