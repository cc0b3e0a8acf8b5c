#!/usr/bin/env python3
"""Walk a booking through its lifecycle against a running server."""
from __future__ import annotations

import argparse
import sys
from datetime import date, timedelta
from typing import Any

import httpx
from httpx import ConnectError


def show(title: str, response: httpx.Response) -> dict[str, Any] | None:
    print("=" * 60)
    print(f"{title} -> {response.status_code}")
    print("=" * 60)
    if response.status_code >= 400:
        print(f"Response: {response.text}")
        return None
    if response.status_code == 204 or not response.content:
        return None
    data = response.json()
    if isinstance(data, dict) and "status" in data:
        print(f"  {data['id']}: {data['bookingDate']} {data['startTime']}-{data['endTime']} [{data['status']}]")
    return data


def main() -> None:
    parser = argparse.ArgumentParser(description="Smoke test the booking API")
    parser.add_argument("--base-url", default="http://127.0.0.1:8001")
    parser.add_argument("--service", default="portrait_session")
    parser.add_argument("--photographer", default="ph_anna")
    parser.add_argument("--days-ahead", type=int, default=3)
    args = parser.parse_args()

    client_headers = {"X-Actor-Id": "smoke_client"}
    admin_headers = {"X-Actor-Id": "smoke_admin", "X-Actor-Role": "admin"}
    day = date.today() + timedelta(days=args.days_ahead)

    with httpx.Client(base_url=args.base_url, timeout=10.0) as http:
        try:
            http.get("/health")
        except ConnectError:
            print("Connection refused. Is the FastAPI server running?")
            print("Try: uvicorn lensbook.main:app --reload --port 8001")
            sys.exit(1)

        slots = show(
            "GET /api/v1/bookings/available-slots",
            http.get(
                "/api/v1/bookings/available-slots",
                params={"serviceId": args.service, "date": day.isoformat(), "photographer": args.photographer},
            ),
        )
        if not slots or not slots["slots"]:
            print(f"No free slots on {day.isoformat()}")
            return
        print(f"  {len(slots['slots'])} slots, first at {slots['slots'][0]['startTime']}")

        booking = show(
            "POST /api/v1/bookings",
            http.post(
                "/api/v1/bookings",
                json={
                    "serviceId": args.service,
                    "bookingDate": day.isoformat(),
                    "startTime": slots["slots"][0]["startTime"],
                    "photographer": args.photographer,
                    "clientNotes": "Smoke test booking",
                },
                headers=client_headers,
            ),
        )
        if not booking:
            return
        path = f"/api/v1/bookings/{booking['id']}"

        show("PATCH accept", http.patch(f"{path}/accept", headers=admin_headers))
        show(
            "PATCH reschedule",
            http.patch(
                f"{path}/reschedule",
                json={"bookingDate": (day + timedelta(days=1)).isoformat(), "startTime": "14:00"},
                headers=client_headers,
            ),
        )
        show("PATCH cancel", http.patch(f"{path}/cancel", json={"reason": "Smoke test"}, headers=client_headers))
        show("DELETE", http.delete(path, headers=admin_headers))

    print("\n✅ Smoke run complete\n")


if __name__ == "__main__":
    main()
