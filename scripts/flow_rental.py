#!/usr/bin/env python3
"""
Complete rental flow script against a running API.

DO NOT ADD BUSINESS LOGIC HERE.
This script only orchestrates API calls.
All rules live in the backend.

Usage:
    python scripts/flow_rental.py --vehicle-id <UUID> --start 2026-04-01T10:00:00Z --end 2026-04-03T10:00:00Z
    python scripts/flow_rental.py --vehicle-id <UUID> --start ... --end ... --skip-trip

Flow:
    1. Quote the rental
    2. Create booking (DRAFT)
    3. Confirm reservation (PENDING)
    4. Record document approval and verify (VERIFIED)
    5. Record payment and confirm (CONFIRMED)
    6. Start trip (ONGOING)
    7. Complete trip (COMPLETED)
"""

import argparse
import json
import sys
import uuid

import httpx

BASE_URL = "http://localhost:8000"


def api_request(method: str, endpoint: str, data: dict | None = None) -> dict:
    """Make an API request and return status and body."""
    url = f"{BASE_URL}{endpoint}"

    if method == "GET":
        response = httpx.get(url, timeout=10.0, follow_redirects=True)
    elif method == "POST":
        response = httpx.post(url, json=data or {}, timeout=10.0, follow_redirects=True)
    else:
        raise ValueError(f"Unknown method: {method}")

    return {"status": response.status_code, "data": response.json() if response.text else {}}


def print_step(step: int, title: str):
    """Print step header."""
    print(f"\n{'='*60}")
    print(f"STEP {step}: {title}")
    print("="*60)


def print_result(result: dict, fields: list[str] | None = None):
    """Print result, optionally filtering fields."""
    if result["status"] >= 400:
        print(f"ERROR ({result['status']}): {json.dumps(result['data'], indent=2)}")
        return False

    print(f"Status: {result['status']}")
    if fields:
        filtered = {k: result["data"].get(k) for k in fields if k in result["data"]}
        print(json.dumps(filtered, indent=2))
    else:
        print(json.dumps(result["data"], indent=2))
    return True


def main():
    parser = argparse.ArgumentParser(description="Complete rental flow")
    parser.add_argument("--vehicle-id", required=True, help="Vehicle UUID")
    parser.add_argument("--start", required=True, help="Rental start (ISO 8601)")
    parser.add_argument("--end", required=True, help="Rental end (ISO 8601)")
    parser.add_argument("--driver-age", type=int, default=None, help="Main driver age")
    parser.add_argument("--start-odometer", default="0", help="Odometer at pickup")
    parser.add_argument("--end-odometer", default="150", help="Odometer at return")
    parser.add_argument("--skip-trip", action="store_true", help="Stop once the booking is confirmed")
    args = parser.parse_args()

    renter_id = str(uuid.uuid4())
    booking_fields = ["id", "status", "base_price", "tax_amount", "total_price", "currency", "version"]

    # Step 1: Quote
    print_step(1, "Quote rental")
    quote_result = api_request("POST", f"/api/v1/vehicles/{args.vehicle_id}/quote", {
        "start_date": args.start,
        "end_date": args.end,
        "driver_age": args.driver_age,
    })
    if not print_result(quote_result):
        sys.exit(1)

    if not quote_result["data"].get("available"):
        print("ERROR: Vehicle not available for these dates")
        sys.exit(1)

    # Step 2: Create booking
    print_step(2, "Create booking")
    booking_result = api_request("POST", "/api/v1/bookings", {
        "vehicle_id": args.vehicle_id,
        "renter_id": renter_id,
        "start_date": args.start,
        "end_date": args.end,
        "driver_age": args.driver_age,
    })
    if not print_result(booking_result, booking_fields):
        sys.exit(1)
    booking_id = booking_result["data"]["id"]

    # Step 3: Confirm reservation
    print_step(3, "Confirm reservation")
    if not print_result(api_request("POST", f"/api/v1/bookings/{booking_id}/confirm-reservation"), booking_fields):
        sys.exit(1)

    # Step 4: Verify documents
    print_step(4, "Approve documents and verify booking")
    api_request("POST", "/api/v1/platform/verifications", {"subject_id": renter_id, "status": "APPROVED"})
    if not print_result(api_request("POST", f"/api/v1/bookings/{booking_id}/verify"), booking_fields):
        sys.exit(1)

    # Step 5: Payment
    print_step(5, "Record payment and confirm booking")
    api_request("POST", "/api/v1/platform/settlements", {"booking_id": booking_id, "reference": "flow-script"})
    if not print_result(api_request("POST", f"/api/v1/bookings/{booking_id}/confirm-payment"), booking_fields):
        sys.exit(1)
    print("\nBooking CONFIRMED")

    if args.skip_trip:
        print("\n" + "="*60)
        print("FLOW COMPLETE (skipped trip)")
        print("="*60)
        return

    # Step 6: Start trip
    print_step(6, "Start trip")
    start_result = api_request("POST", f"/api/v1/bookings/{booking_id}/start-trip", {
        "start_odometer": args.start_odometer,
    })
    if not print_result(start_result, booking_fields + ["start_odometer"]):
        sys.exit(1)

    # Step 7: Complete trip
    print_step(7, "Complete trip")
    complete_result = api_request("POST", f"/api/v1/bookings/{booking_id}/complete-trip", {
        "end_odometer": args.end_odometer,
    })
    if not print_result(complete_result, booking_fields + ["extra_km_fee", "end_odometer"]):
        sys.exit(1)

    print("\n" + "="*60)
    print("FULL FLOW COMPLETE")
    print("="*60)
    print(f"Booking:     {booking_id}")
    print(f"Total:       {complete_result['data']['total_price']} {complete_result['data']['currency']}")


if __name__ == "__main__":
    main()
