"""
Locust Load Test Suite

The setup step logs in with the bootstrap admin (ADMIN_EMAIL / ADMIN_PASSWORD,
same variables the API uses) and schedules a small trip for the race.

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Test overbooking
  locust -f locustfile.py --tags throughput   # Test search cache
  locust -f locustfile.py --tags edge         # Test bad input
  locust -f locustfile.py                     # All tests
"""

import os
import random
import string
from datetime import date, timedelta

import requests
from locust import HttpUser, task, between, tag, events

CONCURRENCY_SEATS = 10
FARE = "450.00"
TRAVEL_DATE = (date.today() + timedelta(days=30)).isoformat()
CITIES = ["Mumbai", "Pune", "Goa", "Nashik", "Surat", "Indore"]

# Shared state
TRIP_IDS = []
CONCURRENCY_TRIP_ID = None


def random_email():
    return f"load_{random.randint(10000, 99999)}@test.com"


def random_username():
    return "u_" + "".join(random.choices(string.ascii_lowercase, k=8))


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Setup: Create a route and a trip with limited seats for the concurrency test."""
    global CONCURRENCY_TRIP_ID
    print("\n" + "="*60)
    print("SETUP: Creating concurrency test trip...")
    print("="*60)

    host = environment.host or "http://localhost:8000"
    resp = requests.post(f"{host}/api/v1/auth/login", json={
        "email": os.environ.get("ADMIN_EMAIL", "admin@example.com"),
        "password": os.environ.get("ADMIN_PASSWORD", "adminpassword"),
        "role": "admin",
    })
    if resp.status_code != 200:
        print(f"✗ Admin login failed ({resp.status_code}); concurrency scenario disabled\n")
        return
    headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}

    resp = requests.post(f"{host}/api/v1/routes/", json={
        "category": "AC",
        "source": "Mumbai",
        "destination": "Pune",
        "total_seats": CONCURRENCY_SEATS,
        "fare": FARE,
    }, headers=headers)
    if resp.status_code != 201:
        print(f"✗ Route creation failed ({resp.status_code})\n")
        return

    resp = requests.post(f"{host}/api/v1/trips/", json={
        "route_id": resp.json()["id"],
        "date": TRAVEL_DATE,
        "departure_time": "07:30",
    }, headers=headers)
    if resp.status_code == 201:
        CONCURRENCY_TRIP_ID = resp.json()["id"]
        TRIP_IDS.append(CONCURRENCY_TRIP_ID)
        print(f"\n✓ Created trip {CONCURRENCY_TRIP_ID} with {CONCURRENCY_SEATS} seats\n")


class RiderMixin:
    """Registers a fresh rider and one passenger they own."""

    def setup_rider(self):
        email = random_email()
        self.client.post("/api/v1/auth/register", json={
            "email": email,
            "username": random_username(),
            "password": "test1234",
        })
        resp = self.client.post("/api/v1/auth/login", json={
            "email": email,
            "password": "test1234",
        })
        self.headers = {}
        self.passenger_id = None
        if resp.status_code != 200:
            return

        self.headers = {"Authorization": f"Bearer {resp.json()['access_token']}"}
        resp = self.client.post("/api/v1/passengers/", json={
            "name": "Load Rider",
            "age": random.randint(18, 70),
            "gender": random.choice(["Male", "Female", "Other"]),
            "contact": email,
        }, headers=self.headers)
        if resp.status_code == 201:
            self.passenger_id = resp.json()["id"]


class ConcurrencyUser(RiderMixin, HttpUser):
    """
    TEST 1: Concurrency - 100 riders → 10 seats

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM tickets WHERE trip_id = X;
      SELECT available_seats FROM trips WHERE id = X;
    Tickets should be ≤ 10 and the two numbers should add up to 10
    """
    wait_time = between(0, 0.1)

    def on_start(self):
        self.setup_rider()

    @tag("concurrency")
    @task
    def book_limited_seats(self):
        """All riders fight for the same 10 seats."""
        if not CONCURRENCY_TRIP_ID or not self.passenger_id:
            return

        with self.client.post("/api/v1/tickets/",
            json={
                "trip_id": CONCURRENCY_TRIP_ID,
                "passenger_id": self.passenger_id,
                "seat_number": random.randint(1, CONCURRENCY_SEATS),
                "fare": FARE,
            },
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                resp.success()
            elif resp.status_code == 409:
                resp.success()  # Expected: seat taken or sold out
            else:
                resp.failure(f"Unexpected: {resp.status_code}")


class ThroughputUser(RiderMixin, HttpUser):
    """
    TEST 2: Throughput - Search cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: REDIS_ENABLED=false on the API, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    def on_start(self):
        self.setup_rider()

    @tag("throughput", "read")
    @task(10)
    def search_trips_cached(self):
        """Hammer the cached endpoint."""
        self.client.get("/api/v1/trips/search",
            params={"date": TRAVEL_DATE, "source": "Mumbai", "destination": "Pune"},
            headers=self.headers,
            name="/api/v1/trips/search [cached]")

    @tag("throughput", "read")
    @task(3)
    def get_trip_detail(self):
        """Read individual trips."""
        if TRIP_IDS:
            self.client.get(f"/api/v1/trips/{random.choice(TRIP_IDS)}",
                headers=self.headers,
                name="/api/v1/trips/{id}")

    @tag("throughput")
    @task(1)
    def health_check(self):
        """Monitor system health."""
        self.client.get("/health")


class EdgeCaseUser(RiderMixin, HttpUser):
    """
    TEST 3: Edge cases - Bad input handling

    Run: locust -f locustfile.py --tags edge -u 20 -r 5 --run-time 30s

    System should NOT crash, return proper error codes.
    """
    wait_time = between(0.5, 1.5)

    def on_start(self):
        self.setup_rider()

    def _expect(self, payload, expected, headers=None):
        with self.client.post("/api/v1/tickets/",
            json=payload,
            headers=self.headers if headers is None else headers,
            catch_response=True
        ) as resp:
            if resp.status_code in expected:
                resp.success()
            else:
                resp.failure(f"Expected {expected}, got {resp.status_code}")

    def _ticket(self, **overrides):
        payload = {
            "trip_id": CONCURRENCY_TRIP_ID or 1,
            "passenger_id": self.passenger_id or 1,
            "seat_number": 1,
            "fare": FARE,
        }
        payload.update(overrides)
        return payload

    @tag("edge")
    @task
    def invalid_trip_id(self):
        """Book on a non-existent trip."""
        self._expect(self._ticket(trip_id=999999), [404])

    @tag("edge")
    @task
    def zero_seat_number(self):
        self._expect(self._ticket(seat_number=0), [400])

    @tag("edge")
    @task
    def huge_seat_number(self):
        """Seat beyond the bus capacity."""
        self._expect(self._ticket(seat_number=999999), [400, 409])

    @tag("edge")
    @task
    def wrong_fare(self):
        """Fare is checked, never corrected."""
        self._expect(self._ticket(fare="1.00"), [400, 409])

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/api/v1/tickets/",
            data="not json at all",
            headers=self.headers,
            catch_response=True
        ) as resp:
            if resp.status_code == 400:
                resp.success()
            else:
                resp.failure(f"Expected 400, got {resp.status_code}")

    @tag("edge")
    @task
    def missing_auth(self):
        """Try booking without auth."""
        self._expect(self._ticket(), [401], headers={})


class RealisticUser(RiderMixin, HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates real traffic:
      - Mostly searching (80%)
      - Some bookings and cancellations (20%)
    """
    wait_time = between(1, 3)

    def on_start(self):
        self.setup_rider()
        self.ticket_ids = []

    @task(50)
    def search_trips(self):
        """Most common: searching."""
        source, destination = random.sample(CITIES, 2)
        resp = self.client.get("/api/v1/trips/search",
            params={"date": TRAVEL_DATE, "source": source, "destination": destination},
            headers=self.headers,
            name="/api/v1/trips/search")
        if resp.status_code == 200:
            for trip in resp.json():
                if trip["id"] not in TRIP_IDS:
                    TRIP_IDS.append(trip["id"])

    @task(20)
    def view_trip(self):
        """View details."""
        if TRIP_IDS:
            self.client.get(f"/api/v1/trips/{random.choice(TRIP_IDS)}",
                headers=self.headers,
                name="/api/v1/trips/{id}")

    @task(10)
    def book_seat(self):
        """Occasional booking."""
        if TRIP_IDS and self.passenger_id:
            resp = self.client.post("/api/v1/tickets/",
                json={
                    "trip_id": random.choice(TRIP_IDS),
                    "passenger_id": self.passenger_id,
                    "seat_number": random.randint(1, CONCURRENCY_SEATS),
                    "fare": FARE,
                },
                headers=self.headers)
            if resp.status_code == 201:
                self.ticket_ids.append(resp.json()["id"])

    @task(3)
    def cancel_ticket(self):
        """Rare: cancel one of our tickets."""
        if self.ticket_ids:
            ticket_id = self.ticket_ids.pop()
            self.client.delete(f"/api/v1/tickets/{ticket_id}",
                headers=self.headers,
                name="/api/v1/tickets/{id}")
