#!/usr/bin/env python3
"""Real API verification script — run with an actual TMDB key.

Usage:
  1. Set TMDB_API_KEY in .env
  2. Run: python scripts/verify_tmdb.py

Steps:
  Step 1: Verify .env configuration
  Step 2: Fetch page 1 of every list from TMDB
  Step 3: Search movies and TV shows
  Step 4: Refresh + append one list into a scratch SQLite cache
"""

import asyncio
import os
import sys
import tempfile

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


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
    from cinemax.config import settings

    if settings.tmdb_api_key:
        ok(f"TMDB_API_KEY: set ({settings.tmdb_api_key[:6]}...)")
    else:
        fail("TMDB_API_KEY: NOT SET — the app would run in demo mode")
        return False

    ok(f"Base URL: {settings.tmdb_base_url}")
    ok(f"Language: {settings.tmdb_language}")
    ok(f"Database: {settings.database_url}")
    return True


async def step2_fetch_lists():
    step_header(2, "Fetch page 1 of every list")
    from cinemax.errors import CinemaxError
    from cinemax.integrations.tmdb import TmdbClient
    from cinemax.lists import ContentType

    client = TmdbClient()
    passed = True
    for content_type in ContentType:
        try:
            page = await client.fetch_page(content_type, 1)
        except CinemaxError as e:
            fail(f"{content_type.value}: {e}")
            passed = False
            continue
        ok(f"{content_type.value}: {len(page.items)} items | next={page.next_page} | total_pages={page.total_pages}")
    return passed


async def step3_search():
    step_header(3, "Search movies and TV shows")
    from cinemax.errors import CinemaxError
    from cinemax.integrations.tmdb import TmdbClient
    from cinemax.lists import MediaType

    client = TmdbClient()
    try:
        movies = await client.search(MediaType.MOVIE, "matrix", 1)
        shows = await client.search(MediaType.TV, "office", 1)
    except CinemaxError as e:
        fail(f"Search failed: {e}")
        return False

    info(f"movies 'matrix': {len(movies.items)} | tv 'office': {len(shows.items)}")
    for item in movies.items[:3]:
        print(f"    - {item.title[:60]} ({item.release_date})")
    return bool(movies.items and shows.items)


async def step4_cache_roundtrip():
    step_header(4, "Refresh + append into a scratch cache")
    from cinemax.database import create_tables, make_engine, make_session_factory
    from cinemax.integrations.tmdb import TmdbClient
    from cinemax.lists import ContentType
    from cinemax.repository import MediaRepository

    with tempfile.TemporaryDirectory() as tmp:
        engine = make_engine(f"sqlite+aiosqlite:///{tmp}/verify.db")
        await create_tables(engine)
        repo = MediaRepository(make_session_factory(engine), TmdbClient())
        pager = repo.cached_pager(ContentType.POPULAR_MOVIES)

        try:
            items = await pager.load_window(0, pager.page_size * 2)
        finally:
            await engine.dispose()

    if pager.load_states.error is not None:
        fail(f"Load error: {pager.load_states.error}")
        return False
    ok(f"Cached {len(items)} items across two pages")
    return len(items) > pager.page_size


async def main():
    print("\n🎬 Cinemax Backend — Real API Verification")
    print("=" * 60)

    results = {}

    results[1] = await step1_verify_env()
    if not results[1]:
        print("\n⚠️  TMDB_API_KEY is required. Fill in .env and re-run this script.\n")
        sys.exit(1)

    results[2] = await step2_fetch_lists()
    results[3] = await step3_search()
    results[4] = await step4_cache_roundtrip()

    # Summary
    print(f"\n{'='*60}")
    print("  SUMMARY")
    print(f"{'='*60}")
    for step_n, passed in sorted(results.items()):
        status = "✅ PASS" if passed else "❌ FAIL"
        print(f"  Step {step_n}: {status}")

    total_passed = sum(1 for v in results.values() if v)
    total = len(results)
    print(f"\n  {total_passed}/{total} steps passed")
    print(f"{'='*60}\n")

    sys.exit(0 if all(results.values()) else 1)


if __name__ == "__main__":
    asyncio.run(main())
