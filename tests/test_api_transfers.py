from decimal import Decimal

import pytest
from fastapi import Depends
from sqlalchemy.orm import Session

from finboard.api.deps import get_db, get_transfer_processor, transfer_idempotency
from finboard.core.errors import StoreError
from finboard.core.transfer import TransferProcessor
from finboard.db.stores import SqlAccountStore, SqlAuditStore
from finboard.main import app


class FlakyAccountStore(SqlAccountStore):
    """Fails the n-th write to the given accounts."""

    def __init__(self, db: Session, fail: set[tuple[int, int]]) -> None:
        super().__init__(db)
        self._fail = fail
        self._counts: dict[int, int] = {}

    def update_account_balance(self, account_id, new_balance):
        self._counts[account_id] = self._counts.get(account_id, 0) + 1
        if (account_id, self._counts[account_id]) in self._fail:
            raise StoreError("injected failure")
        super().update_account_balance(account_id, new_balance)


class BrokenAuditStore(SqlAuditStore):
    def append_transfer_record(self, record):
        raise StoreError("audit down")


def _use_processor(accounts_factory, audit_factory=SqlAuditStore, idempotency=None):
    def _processor(db: Session = Depends(get_db)) -> TransferProcessor:
        return TransferProcessor(accounts_factory(db), audit_factory(db), idempotency=idempotency)

    app.dependency_overrides[get_transfer_processor] = _processor


@pytest.fixture
def setup(client, auth_headers):
    headers = auth_headers()

    def account(name, balance):
        resp = client.post("/api/accounts", json={"name": name, "balance": balance}, headers=headers)
        assert resp.status_code == 200, resp.text
        return resp.json()["id"]

    src = account("Checking", "100.00")
    dst = account("Savings", "50.00")
    return headers, src, dst


def _balance(client, headers, account_id):
    return Decimal(client.get(f"/api/accounts/{account_id}", headers=headers).json()["balance"])


def _transfer(client, headers, src, dst, amount, **extra):
    payload = {"sourceAccountId": src, "destinationAccountId": dst, "amount": amount}
    payload.update(extra)
    return client.post("/api/transfers", json=payload, headers=headers)


def test_successful_transfer(client, setup):
    headers, src, dst = setup

    resp = _transfer(client, headers, src, dst, "30.00", notes="monthly savings")

    assert resp.status_code == 200, resp.text
    body = resp.json()
    assert Decimal(body["sourceBalance"]) == Decimal("70.00")
    assert Decimal(body["destinationBalance"]) == Decimal("80.00")
    assert body["auditRecorded"] is True
    assert _balance(client, headers, src) == Decimal("70.00")
    assert _balance(client, headers, dst) == Decimal("80.00")

    history = client.get("/api/transfers", headers=headers).json()
    assert history["total"] == 1
    item = history["items"][0]
    assert item["id"] == body["transferId"]
    assert (item["sourceAccountId"], item["destinationAccountId"]) == (src, dst)
    assert Decimal(item["amount"]) == Decimal("30.00")
    assert item["notes"] == "monthly savings"

    single = client.get(f"/api/transfers/{body['transferId']}", headers=headers)
    assert single.status_code == 200


def test_numeric_amount_is_accepted(client, setup):
    headers, src, dst = setup
    resp = _transfer(client, headers, src, dst, 12.5)
    assert resp.status_code == 200
    assert Decimal(resp.json()["sourceBalance"]) == Decimal("87.50")


@pytest.mark.parametrize(
    "amount, status, code, category",
    [
        ("30.00", 200, None, None),
        ("abc", 400, "invalid_amount", "invalid_input"),
        ("-5", 400, "invalid_amount", "invalid_input"),
        ("500.00", 400, "insufficient_funds", "insufficient_funds"),
        (None, 400, "invalid_amount", "invalid_input"),
        (True, 400, "invalid_amount", "invalid_input"),
        ([1], 400, "invalid_amount", "invalid_input"),
        ({"value": 1}, 400, "invalid_amount", "invalid_input"),
    ],
)
def test_amount_validation(client, setup, amount, status, code, category):
    headers, src, dst = setup

    resp = _transfer(client, headers, src, dst, amount)

    assert resp.status_code == status
    if code is not None:
        assert resp.json()["code"] == code
        assert resp.json()["category"] == category
        assert _balance(client, headers, src) == Decimal("100.00")
        assert _balance(client, headers, dst) == Decimal("50.00")


def test_same_account(client, setup):
    headers, src, _ = setup
    resp = _transfer(client, headers, src, src, "10.00")
    assert resp.status_code == 400
    assert resp.json()["code"] == "same_account"
    assert _balance(client, headers, src) == Decimal("100.00")


def test_unknown_or_foreign_account(client, setup, auth_headers):
    headers, src, dst = setup
    other = auth_headers("mallory")
    theirs = client.post("/api/accounts", json={"name": "Theirs", "balance": "5.00"}, headers=other).json()["id"]

    resp = _transfer(client, headers, src, 9999, "10.00")
    assert resp.status_code == 404
    assert resp.json()["code"] == "account_not_found"

    resp = _transfer(client, other, theirs, dst, "1.00")
    assert resp.status_code == 404
    assert _balance(client, headers, dst) == Decimal("50.00")


def test_archived_account_cannot_receive(client, setup):
    headers, src, dst = setup
    client.delete(f"/api/accounts/{dst}", headers=headers)

    resp = _transfer(client, headers, src, dst, "10.00")
    assert resp.status_code == 404
    assert _balance(client, headers, src) == Decimal("100.00")


def test_unauthenticated(client, setup):
    _, src, dst = setup
    resp = client.post(
        "/api/transfers", json={"sourceAccountId": src, "destinationAccountId": dst, "amount": "1.00"}
    )
    assert resp.status_code == 401
    assert resp.json()["code"] == "not_authenticated"


def test_failed_debit_is_transient(client, setup):
    headers, src, dst = setup
    _use_processor(lambda db: FlakyAccountStore(db, {(src, 1)}))

    resp = _transfer(client, headers, src, dst, "30.00")

    assert resp.status_code == 503
    assert resp.json()["code"] == "write_failed"
    assert resp.json()["category"] == "transient_failure"
    assert _balance(client, headers, src) == Decimal("100.00")
    assert _balance(client, headers, dst) == Decimal("50.00")


def test_failed_credit_is_compensated(client, setup):
    headers, src, dst = setup
    _use_processor(lambda db: FlakyAccountStore(db, {(dst, 1)}))

    resp = _transfer(client, headers, src, dst, "30.00")

    assert resp.status_code == 503
    assert resp.json()["code"] == "write_failed"
    assert _balance(client, headers, src) == Decimal("100.00")
    assert _balance(client, headers, dst) == Decimal("50.00")
    assert client.get("/api/transfers", headers=headers).json()["total"] == 0


def test_failed_compensation_is_unreconciled(client, setup):
    headers, src, dst = setup
    _use_processor(lambda db: FlakyAccountStore(db, {(dst, 1), (src, 2)}))

    resp = _transfer(client, headers, src, dst, "30.00")

    assert resp.status_code == 500
    assert resp.json()["code"] == "unreconciled"
    assert resp.json()["category"] == "system_inconsistency"
    assert _balance(client, headers, src) == Decimal("70.00")
    assert _balance(client, headers, dst) == Decimal("50.00")


def test_audit_failure_still_succeeds(client, setup):
    headers, src, dst = setup
    _use_processor(SqlAccountStore, BrokenAuditStore)

    resp = _transfer(client, headers, src, dst, "30.00")

    assert resp.status_code == 200
    body = resp.json()
    assert body["auditRecorded"] is False
    assert body["transferId"] is None
    assert _balance(client, headers, src) == Decimal("70.00")
    assert _balance(client, headers, dst) == Decimal("80.00")


def test_idempotency_key_prevents_double_submission(client, setup):
    headers, src, dst = setup
    keyed = {**headers, "Idempotency-Key": "click-1"}

    first = _transfer(client, keyed, src, dst, "30.00")
    second = _transfer(client, keyed, src, dst, "30.00")

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert _balance(client, headers, src) == Decimal("70.00")
    assert client.get("/api/transfers", headers=headers).json()["total"] == 1

    third = _transfer(client, {**headers, "Idempotency-Key": "click-2"}, src, dst, "30.00")
    assert third.status_code == 200
    assert _balance(client, headers, src) == Decimal("40.00")


def test_list_transfers_filters_by_account(client, setup):
    headers, src, dst = setup
    third = client.post("/api/accounts", json={"name": "Cash", "balance": "0"}, headers=headers).json()["id"]
    _transfer(client, headers, src, dst, "10.00")
    _transfer(client, headers, src, third, "5.00")

    assert client.get("/api/transfers", headers=headers).json()["total"] == 2
    only_cash = client.get("/api/transfers", params={"accountId": third}, headers=headers).json()
    assert only_cash["total"] == 1
    assert only_cash["items"][0]["destinationAccountId"] == third

    assert client.get("/api/transfers", params={"pageSize": 0}, headers=headers).status_code == 400


def test_transfer_history_is_private(client, setup, auth_headers):
    headers, src, dst = setup
    transfer_id = _transfer(client, headers, src, dst, "10.00").json()["transferId"]
    other = auth_headers("eve")

    assert client.get("/api/transfers", headers=other).json()["total"] == 0
    assert client.get(f"/api/transfers/{transfer_id}", headers=other).status_code == 404


def test_admin_sees_all_transfers(client, setup):
    headers, src, dst = setup
    _transfer(client, headers, src, dst, "10.00")

    assert client.get("/api/admin/transfers", headers=headers).status_code == 403

    token = client.post("/api/auth/login", json={"username": "admin", "password": "admin"}).json()["access_token"]
    client.cookies.clear()
    admin = {"Authorization": f"Bearer {token}"}

    resp = client.get("/api/admin/transfers", params={"order": "desc"}, headers=admin)
    assert resp.status_code == 200
    assert resp.json()["total"] == 1
    assert client.get("/api/admin/transfers", params={"order": "sideways"}, headers=admin).status_code == 400


def test_retry_after_unreconciled_failure_does_not_debit_again(client, setup):
    headers, src, dst = setup
    keyed = {**headers, "Idempotency-Key": "click-9"}
    _use_processor(lambda db: FlakyAccountStore(db, {(dst, 1), (src, 2)}), idempotency=transfer_idempotency)

    first = _transfer(client, keyed, src, dst, "30.00")
    assert first.status_code == 500

    # a healthy store would let the retry through; the claimed key must stop it first
    _use_processor(SqlAccountStore, idempotency=transfer_idempotency)
    retry = _transfer(client, keyed, src, dst, "30.00")

    assert retry.status_code == 500
    assert retry.json()["code"] == "unreconciled"
    assert _balance(client, headers, src) == Decimal("70.00")
    assert _balance(client, headers, dst) == Decimal("50.00")
    assert client.get("/api/transfers", headers=headers).json()["total"] == 0
