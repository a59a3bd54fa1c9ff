"""
Locust Load Test Suite

Needs a booking API key (read + book + cancel), e.g. from
scripts/seed_api_keys.py:

  export LOCUST_API_KEY=vk_...

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test double booking
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random

from locust import HttpUser, task, between, tag, events

API_KEY = os.environ.get("LOCUST_API_KEY", "")
HEADERS = {"Authorization": f"ApiKey {API_KEY}"}

# Shared state
SHOW_IDS = []
SHOW_DATES = []
CONTESTED_SEATS = [f"seat-{n}" for n in range(1, 11)]


def random_customer():
    n = random.randint(10000, 99999)
    return {"name": f"Load Tester {n}", "email": f"load_{n}@example.com"}


def load_shows(client):
    resp = client.get("/api/v1/shows?days=3", headers=HEADERS, name="/api/v1/shows")
    if resp.status_code == 200:
        for show in resp.json().get("shows", []):
            if show["id"] not in SHOW_IDS:
                SHOW_IDS.append(show["id"])
                SHOW_DATES.append(show["date"])


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    print("\n" + "=" * 60)
    print("SETUP: shows are created by the API on startup (today + 2 days)")
    if not API_KEY:
        print("WARNING: LOCUST_API_KEY is not set, every request will get 401")
    print("=" * 60)


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users -> the 10 seats of row 1

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify no seat was sold twice:
      SELECT seat_id, COUNT(*) FROM bookings, json_array_elements_text(seat_ids::json) seat_id
      WHERE status = 'confirmed' GROUP BY seat_id HAVING COUNT(*) > 1;
    Should return no rows.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        if not SHOW_IDS:
            load_shows(self.client)

    @tag("concurrency")
    @task(3)
    def book_contested_seats(self):
        """All users fight for the same row, two seats at a time."""
        if not SHOW_IDS:
            return
        start = random.randint(0, len(CONTESTED_SEATS) - 2)
        with self.client.post(
            "/api/v1/bookings",
            json={
                "showId": SHOW_IDS[0],
                "seatIds": CONTESTED_SEATS[start:start + 2],
                "customerInfo": random_customer(),
            },
            headers=HEADERS,
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()  # 409: lost the race, expected
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task(1)
    def book_block_around_anchor(self):
        """Anchor bookings compete with explicit ones for the same row."""
        if not SHOW_IDS:
            return
        with self.client.post(
            "/api/v1/bookings",
            json={
                "showId": SHOW_IDS[0],
                "anchorSeatId": random.choice(CONTESTED_SEATS),
                "partySize": random.randint(1, 3),
                "customerInfo": random_customer(),
            },
            headers=HEADERS,
            catch_response=True,
            name="/api/v1/bookings [anchor]",
        ) as resp:
            if resp.status_code in (201, 409):
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false for the API, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_shows_cached(self):
        """Hammer the cached endpoint."""
        self.client.get("/api/v1/shows?days=3&include_stats=true", headers=HEADERS,
            name="/api/v1/shows [cached]")

    @tag("throughput", "read")
    @task(3)
    def get_seat_map(self):
        """Seat maps are served from the in-memory inventory, never cached."""
        if not SHOW_DATES:
            load_shows(self.client)
            return
        self.client.get(f"/api/v1/shows/{random.choice(SHOW_DATES)}/seats", headers=HEADERS,
            name="/api/v1/shows/{date}/seats")

    @tag("throughput", "read")
    @task(3)
    def preview_block(self):
        if not SHOW_IDS:
            return
        seat = f"seat-{random.randint(1, 100)}"
        self.client.get(
            f"/api/v1/shows/{random.choice(SHOW_IDS)}/seats/{seat}/block?count={random.randint(1, 4)}",
            headers=HEADERS,
            name="/api/v1/shows/{id}/seats/{seat}/block",
        )

    @tag("throughput")
    @task(1)
    def health_check(self):
        """Monitor system health."""
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def unknown_show(self):
        with self.client.post("/api/v1/bookings",
            json={"showId": "missing", "seatIds": ["seat-1"], "customerInfo": random_customer()},
            headers=HEADERS,
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def unknown_seat(self):
        if not SHOW_IDS:
            load_shows(self.client)
            return
        with self.client.post("/api/v1/bookings",
            json={"showId": SHOW_IDS[0], "seatIds": ["seat-999"], "customerInfo": random_customer()},
            headers=HEADERS,
            catch_response=True,
        ) as resp:
            self._expect(resp, [404])

    @tag("edge")
    @task
    def party_too_large(self):
        if not SHOW_IDS:
            return
        with self.client.post("/api/v1/bookings",
            json={
                "showId": SHOW_IDS[0],
                "anchorSeatId": "seat-5",
                "partySize": 999,
                "customerInfo": random_customer(),
            },
            headers=HEADERS,
            catch_response=True,
        ) as resp:
            self._expect(resp, [409, 422])

    @tag("edge")
    @task
    def no_seats(self):
        with self.client.post("/api/v1/bookings",
            json={"showId": "x", "seatIds": [], "customerInfo": random_customer()},
            headers=HEADERS,
            catch_response=True,
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/api/v1/bookings",
            data="not json at all",
            headers=HEADERS,
            catch_response=True,
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def missing_auth(self):
        """Try booking without auth."""
        with self.client.post("/api/v1/bookings",
            json={"showId": "x", "seatIds": ["seat-1"], "customerInfo": random_customer()},
            catch_response=True,
        ) as resp:
            self._expect(resp, [401])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly browsing (70%)
      - Holds that are partly finalized, partly released (20%)
      - Direct bookings and cancellations (10%)
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.bookings = []
        load_shows(self.client)

    @task(50)
    def browse_shows(self):
        load_shows(self.client)

    @task(20)
    def view_seat_map(self):
        if SHOW_DATES:
            self.client.get(f"/api/v1/shows/{random.choice(SHOW_DATES)}/seats", headers=HEADERS,
                name="/api/v1/shows/{date}/seats")

    @task(15)
    def hold_then_decide(self):
        if not SHOW_IDS:
            return
        seats = [f"seat-{random.randint(11, 100)}"]
        resp = self.client.post("/api/v1/reservations",
            json={"show_id": random.choice(SHOW_IDS), "seat_ids": seats, "duration_minutes": 5},
            headers=HEADERS)
        if resp.status_code != 201:
            return
        reservation = resp.json()
        if random.random() < 0.5:
            self.client.post("/api/v1/bookings",
                json={
                    "showId": reservation["show_id"],
                    "reservationId": reservation["reservation_id"],
                    "customerInfo": random_customer(),
                },
                headers=HEADERS,
                name="/api/v1/bookings [reservation]")
        else:
            self.client.delete(f"/api/v1/reservations/{reservation['reservation_id']}",
                headers=HEADERS, name="/api/v1/reservations/{id}")

    @task(10)
    def book_and_maybe_cancel(self):
        if not SHOW_IDS:
            return
        resp = self.client.post("/api/v1/bookings",
            json={
                "showId": random.choice(SHOW_IDS),
                "anchorSeatId": f"seat-{random.randint(11, 100)}",
                "partySize": random.randint(1, 4),
                "customerInfo": random_customer(),
            },
            headers=HEADERS,
            name="/api/v1/bookings [anchor]")
        if resp.status_code == 201:
            self.bookings.append(resp.json()["id"])
        if self.bookings and random.random() < 0.3:
            booking_id = self.bookings.pop()
            self.client.delete(f"/api/v1/bookings/{booking_id}", headers=HEADERS,
                name="/api/v1/bookings/{id}")
