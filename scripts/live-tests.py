#!/usr/bin/env python3
# This project was developed with assistance from AI tools.
"""Live test suite for the StayVerify API.

Validates health, error shapes, RBAC, the partner -> operator review loop,
and real-time notifications against a running server instance.

Prerequisites:
  - API server running on localhost:8000
  - For the review loop: Keycloak access tokens for a freshly created
    partner user and an operator user (passed as flags or env vars)

Usage:
  ./scripts/live-tests.py                                  # health, errors, console
  ./scripts/live-tests.py --partner-token $P --operator-token $O
  ./scripts/live-tests.py --section rest                   # skip notification tests
"""

import argparse
import asyncio
import json
import os
import sys

import httpx
import websockets
from db.enums import SubjectType

from stayverify.client import ChannelEvent, NotificationChannel, SubjectStore, VerificationClient
from stayverify.client.config import ClientSettings
from stayverify.services.verification import InvalidTransition

BASE = "http://localhost:8000"
WS_BASE = "ws://localhost:8000"

JPEG = b"\xff\xd8\xff\xe0live-test"
IDENTITY_FILES = {
    "front": ("front.jpg", JPEG, "image/jpeg"),
    "back": ("back.jpg", JPEG, "image/jpeg"),
    "profile": ("profile.jpg", JPEG, "image/jpeg"),
}

# ---------------------------------------------------------------------------
# Test runner
# ---------------------------------------------------------------------------

PASS = 0
FAIL = 0
ERRORS: list[str] = []
SECTION = ""


def section(name: str):
    global SECTION
    SECTION = name
    print(f"\n{'=' * 60}")
    print(f"  {name}")
    print(f"{'=' * 60}\n")


def ok(name: str, passed: bool, detail: str = ""):
    global PASS, FAIL
    if passed:
        PASS += 1
        print(f"  PASS  {name}")
    else:
        FAIL += 1
        msg = f"[{SECTION}] {name}: {detail}" if detail else f"[{SECTION}] {name}"
        ERRORS.append(msg)
        print(f"  FAIL  {name} -- {detail}")


def has_keys(d: dict, *keys: str) -> bool:
    return all(k in d for k in keys)


def bearer(token: str | None) -> dict:
    return {"Authorization": f"Bearer {token}"} if token else {}


# ---------------------------------------------------------------------------
# 1. Health
# ---------------------------------------------------------------------------

async def test_health(c: httpx.AsyncClient):
    section("Health")

    r = await c.get("/health/")
    ok("GET /health/ returns 200", r.status_code == 200)
    data = r.json()
    ok("response is a list", isinstance(data, list))
    ok("contains API service", any(s.get("name") == "API" for s in data))
    ok("database healthy",
       any(s.get("name") == "Database" and s.get("status") == "healthy" for s in data))

    r = await c.get("/")
    ok("GET / root returns 200", r.status_code == 200)


# ---------------------------------------------------------------------------
# 2. Error shapes
# ---------------------------------------------------------------------------

async def test_error_handling(c: httpx.AsyncClient, operator_token: str | None):
    section("Error handling (RFC 7807)")

    r = await c.get("/api/admin/partner/999999/history", headers=bearer(operator_token))
    ok("history of unknown subject is 200 with no entries",
       r.status_code == 200 and r.json().get("count") == 0, f"got {r.status_code}")

    r = await c.patch("/api/admin/partners/999999/verify", json={"status": "approved"},
                      headers=bearer(operator_token))
    ok("decision on unknown partner is 404", r.status_code == 404, f"got {r.status_code}")
    body = r.json()
    ok("problem details shape", has_keys(body, "type", "title", "status", "detail", "request_id"))
    ok("problem type is not_found", body.get("type") == "not_found", body.get("type", ""))

    r = await c.patch("/api/admin/partners/999999/verify", json={"status": "in_review"},
                      headers=bearer(operator_token))
    ok("unknown status is 422 unrecognized_status",
       r.status_code == 422 and r.json().get("type") == "unrecognized_status", f"got {r.status_code}")

    r = await c.patch("/api/admin/partners/999999/verify", json={"status": "rejected"},
                      headers=bearer(operator_token))
    ok("reject without reason is 422 missing_reason",
       r.status_code == 422 and r.json().get("type") == "missing_reason", f"got {r.status_code}")


# ---------------------------------------------------------------------------
# 3. Operator console
# ---------------------------------------------------------------------------

async def test_console(c: httpx.AsyncClient, operator_token: str | None):
    section("Operator console")

    r = await c.get("/api/admin/verification-queue?limit=5", headers=bearer(operator_token))
    ok("GET verification-queue returns 200", r.status_code == 200, f"got {r.status_code}")
    body = r.json()
    ok("queue has data + pagination", has_keys(body, "data", "pagination"))
    ok("limit respected", len(body.get("data", [])) <= 5)
    statuses = {item.get("status") for item in body.get("data", [])}
    ok("only pending/manual_review queued", statuses <= {"pending", "manual_review"}, str(statuses))

    r = await c.get("/api/admin/verification-queue?kind=passport", headers=bearer(operator_token))
    ok("unknown kind filter is 422", r.status_code == 422, f"got {r.status_code}")


# ---------------------------------------------------------------------------
# 4. Review loop (partner + operator tokens)
# ---------------------------------------------------------------------------

async def test_review_loop(c: httpx.AsyncClient, partner_token: str, operator_token: str):
    section("Partner identity review loop")

    settings = ClientSettings(API_BASE_URL=BASE, WS_BASE_URL=WS_BASE)
    async with VerificationClient(partner_token, settings) as partner:
        r = await c.post("/api/partners", json={"full_name": "Live Test", "email": "live@example.com"},
                         headers=bearer(partner_token))
        ok("register partner", r.status_code == 201, f"got {r.status_code}")
        partner_id = r.json().get("id")

        status = await partner.verification_status()
        if status["status"].value != "not_submitted":
            ok("partner is fresh (use a new Keycloak user)", False, status["status"].value)
            return

        subject = await partner.upload_identity(IDENTITY_FILES, {"id_number": "LIVE-0001"})
        ok("identity upload -> pending", subject.overall_status.value == "pending")

        try:
            await partner.upload_identity(IDENTITY_FILES)
            ok("second upload while pending is refused", False, "no error raised")
        except InvalidTransition as exc:
            ok("second upload while pending is refused", exc.current.value == "pending")

        r = await c.patch(f"/api/admin/partners/{partner_id}/verify",
                          json={"status": "rejected", "reason": "Live test: photo blurry"},
                          headers=bearer(operator_token))
        ok("operator rejects identity", r.status_code == 200, f"got {r.status_code}")

        status = await partner.verification_status()
        ok("partner sees rejection reason", status.get("rejection_reason") == "Live test: photo blurry")
        ok("partner can edit again", status.get("can_edit") is True)

        subject = await partner.upload_identity({"front": IDENTITY_FILES["front"]})
        ok("partial resubmission -> pending", subject.overall_status.value == "pending")

        r = await c.patch(f"/api/admin/partners/{partner_id}/verify", json={"status": "approved"},
                          headers=bearer(operator_token))
        ok("operator approves identity", r.status_code == 200)
        r2 = await c.patch(f"/api/admin/partners/{partner_id}/verify", json={"status": "approved"},
                           headers=bearer(operator_token))
        ok("repeated approval is a no-op",
           r2.status_code == 200 and r2.json()["sequence"] == r.json()["sequence"])

        status = await partner.verification_status()
        ok("partner can add properties", status.get("can_add_property") is True)


# ---------------------------------------------------------------------------
# 5. Notifications
# ---------------------------------------------------------------------------

async def test_websocket_protocol():
    section("Notification channel protocol")

    try:
        async with websockets.connect(f"{WS_BASE}/api/notifications/ws?token=not-a-jwt") as ws:
            await asyncio.wait_for(ws.recv(), timeout=5)
        ok("invalid token is closed", False, "connection stayed open")
    except websockets.ConnectionClosed as exc:
        code = exc.rcvd.code if exc.rcvd else None
        ok("invalid token closed with 4001", code == 4001, f"code={code}")
    except Exception as exc:
        ok("invalid token closed with 4001", False, str(exc)[:80])


async def test_notifications(c: httpx.AsyncClient, partner_token: str, operator_token: str):
    section("Real-time notifications")

    settings = ClientSettings(API_BASE_URL=BASE, WS_BASE_URL=WS_BASE)
    r = await c.get("/api/partners/me/verification", headers=bearer(partner_token))
    if r.status_code != 200 or r.json()["identity"]["status"] not in ("not_submitted", "rejected"):
        ok("partner identity is editable (run against a fresh user)", False, f"got {r.status_code}")
        return
    partner_id = r.json()["id"]

    async with websockets.connect(f"{WS_BASE}/api/notifications/ws?token={operator_token}") as ops_ws:
        await ops_ws.send("ping")
        pong = json.loads(await asyncio.wait_for(ops_ws.recv(), timeout=5))
        ok("ping -> PONG", pong.get("type") == "PONG")

        notices: list[str] = []
        queue: asyncio.Queue[ChannelEvent] = asyncio.Queue()
        async with VerificationClient(partner_token, settings) as partner:
            store = SubjectStore(partner, queue, on_notice=notices.append)
            channel = NotificationChannel(partner_token, queue, on_resync=store.queue_resync, settings=settings)
            await store.track(SubjectType.PARTNER)
            tasks = [asyncio.create_task(channel.run()), asyncio.create_task(store.run())]
            try:
                await asyncio.sleep(0.5)
                await store.perform(lambda: partner.upload_identity(IDENTITY_FILES, {"id_number": "LIVE-0002"}))

                frame = json.loads(await asyncio.wait_for(ops_ws.recv(), timeout=5))
                ok("operator sees VERIFICATION_SUBMITTED", frame.get("type") == "VERIFICATION_SUBMITTED",
                   frame.get("type", ""))

                await c.patch(f"/api/admin/partners/{partner_id}/verify", json={"status": "approved"},
                              headers=bearer(operator_token))
                for _ in range(50):
                    if notices:
                        break
                    await asyncio.sleep(0.1)
                ok("partner notified of approval", bool(notices), "no notice within 5s")
                subject = store.get(SubjectType.PARTNER, partner_id)
                ok("partner store shows verified",
                   subject is not None and subject.overall_status.value == "verified")
            finally:
                channel.stop()
                for task in tasks:
                    task.cancel()
                await asyncio.gather(*tasks, return_exceptions=True)




# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

async def main():
    parser = argparse.ArgumentParser(description="Live test suite for the StayVerify API")
    parser.add_argument("--partner-token", default=os.getenv("STAYVERIFY_PARTNER_TOKEN"),
                        help="Access token for a fresh partner user")
    parser.add_argument("--operator-token", default=os.getenv("STAYVERIFY_OPERATOR_TOKEN"),
                        help="Access token for an operator (omit when AUTH_DISABLED=true)")
    parser.add_argument("--section", choices=["rest", "notify", "all"], default="all",
                        help="Which sections to run")
    args = parser.parse_args()

    print("=" * 60)
    print("  LIVE TEST SUITE -- StayVerify API")
    print("=" * 60)

    run_rest = args.section in ("rest", "all")
    run_notify = args.section in ("notify", "all")

    async with httpx.AsyncClient(base_url=BASE, timeout=15) as c:

        # Pre-flight: make sure server is up
        try:
            r = await c.get("/health/")
            if r.status_code != 200:
                print(f"\n  Server returned {r.status_code} on /health/ -- is it running?")
                sys.exit(2)
        except httpx.ConnectError:
            print("\n  Cannot connect to server at localhost:8000 -- is it running?")
            sys.exit(2)

        if run_rest:
            await test_health(c)
            await test_error_handling(c, args.operator_token)
            await test_console(c, args.operator_token)
            if args.partner_token and args.operator_token:
                await test_review_loop(c, args.partner_token, args.operator_token)
            else:
                print("\n  (review loop skipped: needs --partner-token and --operator-token)")

        if run_notify:
            await test_websocket_protocol()
            if args.partner_token and args.operator_token and not run_rest:
                await test_notifications(c, args.partner_token, args.operator_token)
            elif args.partner_token and args.operator_token:
                print("\n  (notification flow skipped: run --section notify with a fresh partner)")

    # Summary
    print(f"\n{'=' * 60}")
    print(f"  RESULTS: {PASS} passed, {FAIL} failed")
    print(f"{'=' * 60}")

    if ERRORS:
        print("\nFailures:")
        for e in ERRORS:
            print(f"  - {e}")

    sys.exit(0 if FAIL == 0 else 1)


if __name__ == "__main__":
    asyncio.run(main())
