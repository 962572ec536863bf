"""
Locust Load Test Suite

Run scenarios:
  locust -f locustfile.py --tags concurrency  # Registration rush on one region
  locust -f locustfile.py --tags throughput   # Cached capacity counts
  locust -f locustfile.py --tags edge         # Bad input
  locust -f locustfile.py                     # All tests

Set ADMIN_SECRET in the environment when the API requires it.
"""

import os
import random
import uuid
import httpx
from locust import HttpUser, task, between, tag, events

ADMIN_HEADERS = {"X-Admin-Secret": os.environ.get("ADMIN_SECRET", "")}
RUSH_REGION = os.environ.get("RUSH_REGION", "Staten Island")
RUSH_CAPACITY = int(os.environ.get("RUSH_CAPACITY", "10"))
REGIONS = ["Bronx", "Brooklyn", "Manhattan", "Queens", "Staten Island"]
PROGRAMS = ["Early Childhood", "3-K", "Pre-K", "Special Education"]

# Shared state
REGISTRATION_IDS = []


def random_email():
    return f"load_{uuid.uuid4().hex[:12]}@borough.org"


def registration_form(region):
    return {
        "first_name": random.choice(["Ana", "Luis", "Mei", "Sam", "Priya"]),
        "last_name": random.choice(["Lopez", "Chen", "Okafor", "Rossi"]),
        "title": random.choice(["Educator", "Principal", "Coordinator"]),
        "program": random.choice(PROGRAMS),
        "email": random_email(),
        "region": region,
    }


@events.test_start.add_listener
def on_test_start(environment, **kwargs):
    """Setup: shrink the rush region so the concurrency test hits its limit."""
    print("\n" + "="*60)
    print(f"SETUP: {RUSH_REGION} capacity -> {RUSH_CAPACITY}")
    print("="*60)
    if environment.host:
        resp = httpx.patch(
            f"{environment.host}/api/v1/admin/capacity/",
            json={"region": RUSH_REGION, "max_capacity": RUSH_CAPACITY},
            headers=ADMIN_HEADERS,
        )
        print(f"Capacity update: {resp.status_code} {resp.text[:200]}")


@events.test_stop.add_listener
def on_test_stop(environment, **kwargs):
    """Verify the ledger never went past the max."""
    if not environment.host:
        return
    resp = httpx.get(f"{environment.host}/api/v1/admin/capacity/", headers=ADMIN_HEADERS)
    if resp.status_code != 200:
        print(f"Could not read counts: {resp.status_code}")
        return
    for count in resp.json()["counts"]:
        status = "OK" if count["confirmed_count"] <= count["max_capacity"] else "OVERBOOKED"
        print(
            f"{count['region']:<15} confirmed={count['confirmed_count']:<4} "
            f"waiting={count['waiting_list_count']:<4} max={count['max_capacity']:<4} {status}"
        )


class ConcurrencyUser(HttpUser):
    """
    TEST 1: Concurrency - 100 users -> 10 seats in one region

    Run: locust -f locustfile.py --tags concurrency -u 100 -r 50 --run-time 30s

    After test, verify:
      SELECT COUNT(*) FROM registrations WHERE region = 'Staten Island' AND status = 'confirmed';
    Should equal region_capacity.confirmed_count and be <= 10
    """
    wait_time = between(0, 0.1)

    @tag("concurrency")
    @task
    def register_in_rush_region(self):
        """Everyone registers for the same region."""
        with self.client.post("/api/v1/registrations/",
            json=registration_form(RUSH_REGION),
            catch_response=True
        ) as resp:
            if resp.status_code == 201:
                REGISTRATION_IDS.append(resp.json()["registration"]["id"])
                resp.success()
            elif resp.status_code == 503:
                resp.failure("Storage unavailable under load")
            else:
                resp.failure(f"Unexpected: {resp.status_code}")

    @tag("concurrency")
    @task
    def duplicate_submission(self):
        """Same person submits twice in a row; the second must be 409."""
        form = registration_form(RUSH_REGION)
        self.client.post("/api/v1/registrations/", json=form, name="/api/v1/registrations/ [first]")
        with self.client.post("/api/v1/registrations/",
            json=form,
            name="/api/v1/registrations/ [duplicate]",
            catch_response=True
        ) as resp:
            if resp.status_code == 409:
                resp.success()
            else:
                resp.failure(f"Expected 409, got {resp.status_code}")


class ThroughputUser(HttpUser):
    """
    TEST 2: Throughput - Cache effectiveness

    Run twice:
      1. With Redis: locust -f locustfile.py --tags throughput -u 100 -r 20 --run-time 60s
      2. Without Redis: Stop Redis, run again

    Compare:
      - Avg response time
      - Requests/sec
      - P95/P99 latency
    """
    wait_time = between(0.1, 0.5)

    @tag("throughput", "read")
    @task(10)
    def capacity_counts_cached(self):
        """Hammer the cached endpoint."""
        self.client.get("/api/v1/admin/capacity/",
            headers=ADMIN_HEADERS,
            name="/api/v1/admin/capacity/ [cached]")

    @tag("throughput", "read")
    @task(3)
    def registration_status(self):
        self.client.get("/api/v1/registrations/status")

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
    def unknown_region(self):
        with self.client.post("/api/v1/registrations/",
            json=registration_form("Atlantis"),
            catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def invalid_email(self):
        form = registration_form("Bronx")
        form["email"] = "not-an-email"
        with self.client.post("/api/v1/registrations/", json=form, catch_response=True) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def missing_fields(self):
        with self.client.post("/api/v1/registrations/",
            json={"email": random_email()},
            catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def malformed_json(self):
        """Send garbage data."""
        with self.client.post("/api/v1/registrations/",
            data="not json at all",
            catch_response=True
        ) as resp:
            self._expect(resp, [400, 422])

    @tag("edge")
    @task
    def negative_capacity(self):
        """Capacity must be zero or more."""
        with self.client.patch("/api/v1/admin/capacity/",
            json={"region": RUSH_REGION, "max_capacity": -1},
            headers=ADMIN_HEADERS,
            catch_response=True
        ) as resp:
            self._expect(resp, [422])

    @tag("edge")
    @task
    def missing_admin_secret(self):
        """Admin roster without the secret."""
        with self.client.get("/api/v1/admin/registrations/",
            headers={"X-Admin-Secret": "wrong"},
            catch_response=True
        ) as resp:
            # 200 when the API runs without an admin secret
            self._expect(resp, [200, 401])


class RealisticUser(HttpUser):
    """
    TEST 4: Realistic mixed workload

    Run: locust -f locustfile.py -u 200 -r 20 --run-time 120s

    Simulates registration day:
      - Mostly status checks and submissions
      - Some admin roster reads
      - Rare promotions/demotions
    """
    wait_time = between(1, 3)

    @task(30)
    def check_status(self):
        self.client.get("/api/v1/registrations/status")

    @task(20)
    def submit(self):
        resp = self.client.post("/api/v1/registrations/",
            json=registration_form(random.choice(REGIONS)))
        if resp.status_code == 201:
            REGISTRATION_IDS.append(resp.json()["registration"]["id"])

    @task(5)
    def admin_roster(self):
        self.client.get("/api/v1/admin/registrations/",
            params={"region": random.choice(REGIONS)},
            headers=ADMIN_HEADERS,
            name="/api/v1/admin/registrations/?region")

    @task(2)
    def toggle_status(self):
        """Admin flips a registration; 409 when the region is full."""
        if not REGISTRATION_IDS:
            return
        registration_id = random.choice(REGISTRATION_IDS)
        with self.client.patch(f"/api/v1/admin/registrations/{registration_id}",
            json={"status": random.choice(["confirmed", "waiting_list"])},
            headers=ADMIN_HEADERS,
            name="/api/v1/admin/registrations/{id}",
            catch_response=True
        ) as resp:
            if resp.status_code in [200, 404, 409]:
                resp.success()
            else:
                resp.failure(f"Unexpected: {resp.status_code}")
