"""
Billing core usage example

Builds a bill, takes a partial payment and settles it. With an api url the
bill is also saved to the billing api.
"""
import json
import sys

from billing.config import get_settings
from billing.core.exceptions import BillingError, ExternalCollaboratorError, OverpaymentError
from billing.core.logging import setup_logging
from billing.dependencies import get_bill_store
from billing.services.bill import Bill
from billing.services.payments import PaymentService


def print_bill(bill: Bill, currency: str) -> None:
    """Print items, totals and payment state"""
    print("\n🛒 Items:")
    for item in bill.items:
        print(f"   - {item.name}: {item.quantity} x {item.price} = {item.total} {currency}")

    snapshot = bill.snapshot()
    print("\n💰 Totals:")
    print(f"   Subtotal: {snapshot.subtotal}")
    print(f"   Discount ({bill.discount_percent}%): -{snapshot.discount_amount}")
    print(f"   Tax ({bill.tax_percent}%): +{snapshot.tax_amount}")
    print(f"   Total: {snapshot.total_amount} {currency}")
    print(f"   Paid: {snapshot.paid_amount}  Due: {snapshot.due_amount}  Status: {snapshot.payment_status.value}")


def run_demo(api_url: str = None) -> dict:
    """
    Create a bill, pay part of it, try to overpay, settle the rest

    Args:
        api_url: Billing api base url, the bill is only kept locally if None

    Returns:
        Bill payload as sent to the api
    """
    settings = get_settings()
    bill_store = None
    if api_url:
        settings.api_base_url = api_url
        bill_store = get_bill_store()

    service = PaymentService(bill_store=bill_store, default_method=settings.default_payment_method)

    print("🧾 Creating bill")
    bill = Bill.create(
        [{"productId": "demo-rice", "name": "Rice 5kg", "quantity": 2, "price": "100.00"}],
        discount_percent=10,
        tax_percent=18,
    )
    print_bill(bill, settings.currency)

    print("\n💳 Paying 100.00")
    service.record_payment(bill, "100.00", method="upi")
    print_bill(bill, settings.currency)

    print("\n🚫 Trying to pay 9999")
    try:
        service.record_payment(bill, 9999)
    except OverpaymentError as e:
        print(f"   Rejected: {e.message}")

    print("\n✅ Paying the rest")
    service.pay_full_due(bill, method="cash")
    print_bill(bill, settings.currency)

    return bill.to_payload()


def main():
    """Entry point"""
    api_url = sys.argv[1] if len(sys.argv) > 1 else None
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)

    try:
        payload = run_demo(api_url)

        output_file = "bill_example.json"
        with open(output_file, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        print(f"\n💾 Bill payload saved to: {output_file}")

    except ExternalCollaboratorError as e:
        print(f"❌ Error: Billing api at {api_url} failed: {e.message}")
        sys.exit(1)

    except BillingError as e:
        print(f"❌ Error: {e.message}")
        sys.exit(1)


if __name__ == "__main__":
    main()
