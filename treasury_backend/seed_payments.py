"""
Database seeding script for sample payments.

Records a handful of expenses and incomes through the ledger service so that
VAT figures are derived exactly as they are for API requests.
Run this script after the database is set up.
"""

import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from treasury_backend.app.db.repository import SqlPaymentRepository
from treasury_backend.app.db.session import AsyncSessionLocal, Base, engine
from treasury_backend.app.domain.ledger.ledger_service import LedgerService

# Import models to ensure they are registered with Base
from treasury_backend.app.models.payment import Payment  # noqa: F401

SAMPLE_PAYMENTS = [
    {
        "partyName": "Nile Supplies Co.",
        "amount": "500",
        "paymentDate": "2025-01-15",
        "includesVAT": False,
        "paymentType": "expense",
        "expenseCategory": "supplier",
        "paymentMethod": "bank_transfer",
        "quotationNumber": "Q-1001",
        "lineItems": [
            {"lineNumber": 1, "partNumber": "CB-20", "description": "Cable drum", "unit": "pcs", "quantity": 2},
        ],
    },
    {
        "partyName": "Office Landlord",
        "amount": "11400",
        "paymentDate": "2025-01-01",
        "includesVAT": True,
        "paymentType": "expense",
        "expenseCategory": "rent",
        "paymentMethod": "bank_transfer",
    },
    {
        "partyName": "Express Couriers",
        "amount": "250",
        "paymentDate": "2025-01-20",
        "paymentType": "expense",
        "expenseCategory": "shipping",
        "paymentMethod": "cash",
    },
    {
        "partyName": "Delta Trading Client",
        "amount": "20000",
        "paymentDate": "2025-01-25",
        "paymentType": "income",
        "paymentMethod": "instapay",
    },
]


async def seed_payments():
    """
    Seed sample payments unless the ledger already holds some.

    Settles the first supplier payment to show an advance closed by its final invoice.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with AsyncSessionLocal() as db:
        print("🌱 Starting payment seeding...")
        ledger = LedgerService(SqlPaymentRepository(db))

        if await ledger.list_all():
            print("ℹ️  Payments already exist, skipping seeding")
            return

        created = []
        for payload in SAMPLE_PAYMENTS:
            record = await ledger.create(payload)
            created.append(record)
            print(f"✅ {record.payment_type.value:<7} {record.party_name:<24} total {record.total_amount}")

        settled = await ledger.settle(
            created[0].id,
            {"settlementAmount": "610.00", "settlementDate": "2025-02-01", "settlementNotes": "Final invoice"}
        )
        print(f"✅ Settled {settled.party_name} at {settled.settlement_amount}")

        print(f"\n🎉 Payment seeding completed successfully! ({len(created)} payments)")

    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(seed_payments())
