#!/usr/bin/env python3
"""
Seed script: creates demo families (one parent, one child each) via the REST API.

Usage:
    python seed_families.py --count 5
    python seed_families.py --count 20 --base-url http://localhost:8000
"""
import argparse
import sys

import httpx

CHILD_NAMES = ["Alex", "Sam", "Maya", "Leo", "Nora", "Finn", "Ava", "Theo"]
EMOJIS = ["🦁", "🐯", "🐼", "🦊", "🐨", "🐸", "🐙", "🦄"]


def create_families(base_url: str, count: int, domain: str) -> list[dict]:
    created = []
    with httpx.Client(base_url=base_url, timeout=30.0) as client:
        for i in range(1, count + 1):
            email = f"parent{i:03d}@{domain}"
            resp = client.post(
                "/api/parents/",
                json={"email": email, "parent_name": f"Parent {i}"},
            )
            if resp.status_code == 409:
                print(f"  [{i}/{count}] Already exists: {email} (skipped)")
                continue
            if resp.status_code != 201:
                print(f"  [{i}/{count}] ERROR for {email}: {resp.status_code} - {resp.text}")
                continue
            parent = resp.json()

            child_resp = client.post(
                "/api/children/",
                json={
                    "parent_id": parent["id"],
                    "child_name": CHILD_NAMES[(i - 1) % len(CHILD_NAMES)],
                    "age": 6 + i % 6,
                    "avatar_emoji": EMOJIS[(i - 1) % len(EMOJIS)],
                },
            )
            if child_resp.status_code != 201:
                print(f"  [{i}/{count}] ERROR creating child: {child_resp.text}")
                continue
            created.append({"parent": parent, "child": child_resp.json()})
            print(f"  [{i}/{count}] Family created: {email}")

    return created


def main():
    parser = argparse.ArgumentParser(description="Creates demo families")
    parser.add_argument("--count", "-n", type=int, default=5, help="Number of families (default: 5)")
    parser.add_argument(
        "--base-url", "-u",
        type=str,
        default="http://localhost:8000",
        help="Backend URL (default: http://localhost:8000)",
    )
    parser.add_argument(
        "--domain", "-d",
        type=str,
        default="example.com",
        help="E-mail domain for parents (default: example.com)",
    )
    args = parser.parse_args()

    print(f"Creating {args.count} families on {args.base_url} ...")
    try:
        created = create_families(args.base_url, args.count, args.domain)
    except httpx.ConnectError:
        print(f"Cannot reach {args.base_url}")
        sys.exit(1)
    print(f"Done: {len(created)} families created.")


if __name__ == "__main__":
    main()
