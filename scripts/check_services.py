#!/usr/bin/env python3
"""Live service check: run against real Australia Post / Elasticsearch.

Usage:
  1. Fill in AUSTRALIA_POST_API_KEY and ELASTICSEARCH_NODE (+ API key) in .env
  2. Run: python scripts/check_services.py [--reset-index]

Steps:
  Step 1: Verify .env configuration
  Step 2: Australia Post health probe and a sample verification
  Step 3: Elasticsearch reachability, index and statistics
  Step 4: (optional) Reset the interaction log index
"""

import argparse
import asyncio
import sys


def step_header(n: int, title: str) -> None:
    print(f"\n{'='*60}")
    print(f"  Step {n}: {title}")
    print(f"{'='*60}\n")


def ok(msg: str) -> None:
    print(f"  ✅ {msg}")


def fail(msg: str) -> None:
    print(f"  ❌ {msg}")


def info(msg: str) -> None:
    print(f"  ℹ️  {msg}")


async def step1_verify_env():
    step_header(1, "Verify .env Configuration")
    from auslocator.config import settings

    ok(f"Australia Post base URL: {settings.australia_post_base_url}")
    if settings.has_australia_post_key:
        ok(f"AUSTRALIA_POST_API_KEY: set ({settings.australia_post_api_key[:6]}...)")
    else:
        fail("AUSTRALIA_POST_API_KEY: NOT SET, lookups will fail!")
        return False

    if settings.logging_configured:
        ok(f"Elasticsearch node: {settings.elasticsearch_node} | index={settings.logs_index}")
    else:
        info("ELASTICSEARCH_NODE: not set (interaction logging disabled)")

    return True


async def step2_test_australia_post():
    step_header(2, "Test Australia Post API")
    from auslocator.integrations.australia_post import AustraliaPostClient, AustraliaPostUnavailable

    client = AustraliaPostClient()
    try:
        ok(await client.health_check())
    except AustraliaPostUnavailable as e:
        fail(str(e))
        return False

    info("Verifying: 3000 MELBOURNE VIC")
    result = await client.verify("3000", "Melbourne", "VIC")
    if result.isValid:
        ok(f"{result.message} → {result.location.display_name()}")
    else:
        fail(result.message)
        return False

    info("Searching: 'melbourne'")
    found = await client.search("melbourne")
    ok(f"Got {len(found.locations)} of {found.total} localities")
    for loc in found.locations[:3]:
        print(f"    - [{loc.id}] {loc.display_name()} ({loc.category or 'n/a'})")
    return True


async def step3_test_elasticsearch():
    step_header(3, "Test Elasticsearch")
    from auslocator.services.log_store import InteractionLogStore

    store = InteractionLogStore()
    try:
        if not await store.health_check():
            fail("Elasticsearch is not reachable")
            return False
        ok("Ping OK")

        if not await store.ensure_index():
            fail(f"Could not create or find index {store.index}")
            return False
        ok(f"Index ready: {store.index}")

        stats = await store.statistics()
        for name, value in stats.model_dump().items():
            print(f"    - {name}: {value}")
        return True
    finally:
        await store.close()


async def step4_reset_index():
    step_header(4, "Reset Interaction Log Index")
    from auslocator.services.log_store import InteractionLogStore

    store = InteractionLogStore()
    try:
        if await store.reset_index():
            ok(f"Index {store.index} recreated")
            return True
        fail("Reset failed")
        return False
    finally:
        await store.close()


async def main(reset_index: bool = False):
    print("\n🇦🇺 Address Locator: Live Service Check")

    results = {}
    results[1] = await step1_verify_env()
    if not results[1]:
        print("   Step 2 needs an Australia Post key; Elasticsearch is checked anyway.\n")
        results[2] = False
    else:
        results[2] = await step2_test_australia_post()

    results[3] = await step3_test_elasticsearch()

    if reset_index:
        results[4] = await step4_reset_index()

    # Summary
    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    print(f"\n  {total_passed}/{len(results)} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--reset-index", action="store_true", help="delete and recreate the log index")
    args = parser.parse_args()
    asyncio.run(main(reset_index=args.reset_index))
