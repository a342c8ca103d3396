"""
Pre-Deploy and Smoke Test Script.

Runs the application in-process on the memory backend and executes a full smoke test:
1. Health Check
2. Payment Creation with VAT derivation
3. Settlement -> Treasury Stats Verification
"""

import sys

from fastapi.testclient import TestClient

from treasury_backend.app.core.config import settings

# Keep the smoke test off any real database or spreadsheet
settings.storage_backend = "memory"

from treasury_backend.app.main import app  # noqa: E402

API = settings.api_prefix


def print_step(step, msg):
    print(f"[{step}] {msg}")


def fail(msg):
    print(f"❌ FAILURE: {msg}")
    sys.exit(1)


def success(msg):
    print(f"✅ {msg}")


def main():
    print("🚀 Starting Deployment Validation...")

    # The context manager runs the lifespan, which creates the row store
    with TestClient(app) as client:
        # 1. Health Check
        print_step("PRE-DEPLOY", "Checking /health...")
        resp = client.get("/health")
        if resp.status_code != 200:
            fail(f"Health check failed: {resp.status_code}")
        success(f"Health OK ({resp.json()['storage_backend']} storage)")

        # 2. Create Payment
        print_step("SMOKE", "Creating expense payment...")
        resp = client.post(f"{API}/payments", json={
            "partyName": "Smoke Test Supplier",
            "amount": "500",
            "paymentDate": "2025-01-15",
            "includesVAT": False,
            "paymentType": "expense",
            "expenseCategory": "supplier",
        })
        if resp.status_code != 201:
            fail(f"Payment creation failed: {resp.status_code} {resp.text}")
        payment = resp.json()
        if (payment["vatAmount"], payment["totalAmount"]) != ("70.00", "570.00"):
            fail(f"Unexpected VAT derivation: {payment}")
        success(f"Payment {payment['id']} created (total {payment['totalAmount']})")

        # 3. Record income
        resp = client.post(f"{API}/payments", json={
            "partyName": "Smoke Test Client",
            "amount": "1000",
            "paymentDate": "2025-01-16",
            "paymentType": "income",
        })
        if resp.status_code != 201:
            fail(f"Income creation failed: {resp.status_code} {resp.text}")

        # 4. Settle
        print_step("SMOKE", "Settling payment...")
        resp = client.post(
            f"{API}/payments/{payment['id']}/settle",
            json={"settlementAmount": "600.00", "settlementDate": "2025-02-01"}
        )
        if resp.status_code != 200 or not resp.json()["isSettled"]:
            fail(f"Settlement failed: {resp.status_code} {resp.text}")
        success("Payment settled")

        # 5. Stats
        print_step("SMOKE", "Verifying treasury stats...")
        stats = client.get(f"{API}/treasury/stats").json()
        if stats["totalBalance"] != 570.0 or stats["settledCount"] != 1:
            fail(f"Unexpected stats: {stats}")
        success(f"Balance {stats['totalBalance']} over {stats['paymentsCount']} payments")

    print("🎉 Deployment validation passed")


if __name__ == "__main__":
    main()
