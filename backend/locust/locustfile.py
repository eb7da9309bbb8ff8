"""
Locust Load Test Suite

Event creation needs an administrator token; export one before running:
  export LOCUST_ADMIN_TOKEN=<jwt of a bootstrapped admin>

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py --tags throughput   # Test cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
from datetime import datetime, timedelta, timezone

from locust import HttpUser, between, tag, task

ADMIN_HEADERS = {"Authorization": f"Bearer {os.environ.get('LOCUST_ADMIN_TOKEN', '')}"}
CONCURRENCY_CAPACITY = int(os.environ.get("LOCUST_CAPACITY", "10"))

EVENT_IDS = []
CONCURRENCY_EVENT_ID = None


def random_email():
    return f"load_{random.randint(100000, 999999)}@test.com"


def register_and_login(client):
    """Register a throwaway user and return auth headers ({} on failure)."""
    email = random_email()
    client.post("/api/v1/auth/register", json={
        "email": email,
        "name": "Load Tester",
        "password": "loadtest123",
    })
    resp = client.post("/api/v1/auth/login", json={"email": email, "password": "loadtest123"})
    if resp.status_code != 200:
        return {}
    return {"Authorization": f"Bearer {resp.json()['access_token']}"}


def future_date(days):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - many users -> CONCURRENCY_CAPACITY seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT SUM(ticket_count) FROM bookings WHERE event_id = X AND status = 'confirmed';
    Must be <= capacity. 503 responses are contention and safe to resubmit.
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        global CONCURRENCY_EVENT_ID
        self.headers = register_and_login(self.client)

        if CONCURRENCY_EVENT_ID is None:
            resp = self.client.post("/api/v1/events/", json={
                "title": "Concurrency Test Event",
                "date": future_date(30),
                "location": "Test",
                "capacity": CONCURRENCY_CAPACITY,
            }, headers=ADMIN_HEADERS)
            if resp.status_code == 201:
                CONCURRENCY_EVENT_ID = resp.json()["id"]

    @tag("concurrency")
    @task
    def book_limited_seats(self):
        """All users fight for the same seats."""
        if CONCURRENCY_EVENT_ID is None or not self.headers:
            return

        with self.client.post(
            "/api/v1/bookings/",
            json={"event_id": CONCURRENCY_EVENT_ID, "ticket_count": 1},
            headers=self.headers,
            catch_response=True,
        ) as resp:
            if resp.status_code in (201, 409, 503):
                resp.success()  # admitted, sold out, or contention
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run once with Redis and once without, compare latency percentiles.
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def list_events_cached(self):
        page = random.randint(1, 5)
        resp = self.client.get(f"/api/v1/events/?page={page}&page_size=20",
                               name="/api/v1/events/ [cached]")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @tag("throughput", "read")
    @task(3)
    def get_event_detail(self):
        """Live remaining seats, uncached."""
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        self.client.get("/health")


class EdgeCaseUser(HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.headers = register_and_login(self.client)

    def _expect(self, resp, codes):
        if resp.status_code in codes:
            resp.success()
        else:
            resp.failure(f"Expected {codes}, got {resp.status_code}")

    @tag("edge")
    @task
    def invalid_event_id(self):
        with self.client.post("/api/v1/bookings/", json={"event_id": 999999, "ticket_count": 1},
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, (404,))

    @tag("edge")
    @task
    def zero_tickets(self):
        with self.client.post("/api/v1/bookings/", json={"event_id": 1, "ticket_count": 0},
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, (404, 410, 422))

    @tag("edge")
    @task
    def huge_ticket_count(self):
        with self.client.post("/api/v1/bookings/", json={"event_id": 1, "ticket_count": 999999},
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, (404, 409, 410))

    @tag("edge")
    @task
    def review_without_booking(self):
        with self.client.post("/api/v1/events/1/reviews/", json={"rating": 5, "comment": "great"},
                              headers=self.headers, catch_response=True) as resp:
            self._expect(resp, (400, 404))

    @tag("edge")
    @task
    def missing_auth(self):
        with self.client.post("/api/v1/bookings/", json={"event_id": 1, "ticket_count": 1},
                              catch_response=True) as resp:
            self._expect(resp, (401,))


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload - mostly browsing, some bookings and
    cancellations.
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.headers = register_and_login(self.client)
        self.booking_ids = []

    @task(50)
    def browse_events(self):
        resp = self.client.get("/api/v1/events/?page=1&page_size=20")
        if resp.status_code == 200:
            for event in resp.json().get("events", []):
                if event["id"] not in EVENT_IDS:
                    EVENT_IDS.append(event["id"])

    @task(20)
    def view_event(self):
        if EVENT_IDS:
            self.client.get(f"/api/v1/events/{random.choice(EVENT_IDS)}", name="/api/v1/events/{id}")

    @task(10)
    def book_tickets(self):
        if EVENT_IDS and self.headers:
            resp = self.client.post("/api/v1/bookings/", json={
                "event_id": random.choice(EVENT_IDS),
                "ticket_count": random.randint(1, 3),
            }, headers=self.headers)
            if resp.status_code == 201:
                self.booking_ids.append(resp.json()["id"])

    @task(3)
    def cancel_booking(self):
        if self.booking_ids:
            booking_id = self.booking_ids.pop()
            self.client.delete(f"/api/v1/bookings/{booking_id}", headers=self.headers,
                               name="/api/v1/bookings/{id}")

    @task(1)
    def create_event(self):
        resp = self.client.post("/api/v1/events/", json={
            "title": f"Event {random.randint(1, 10000)}",
            "date": future_date(random.randint(1, 90)),
            "location": "Venue",
            "capacity": random.randint(10, 500),
        }, headers=ADMIN_HEADERS)
        if resp.status_code == 201:
            EVENT_IDS.append(resp.json()["id"])
