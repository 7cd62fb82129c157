#!/usr/bin/env python
"""Seed the platform catalogue and default system config.

Usage:
    python scripts/seed_platforms.py

This script adds the known hot-list platforms and the ``news_fetch_limit``
config key if they don't already exist.
"""

import asyncio
import sys
from datetime import datetime

from dotenv import load_dotenv
from sqlalchemy import select

load_dotenv()


# Initial platforms to seed (ids must have an entry in PLATFORM_MAPPING)
INITIAL_PLATFORMS = [
    {"id": "weibo", "name": "微博热搜", "category": "social"},
    {"id": "zhihu", "name": "知乎热榜", "category": "social"},
    {"id": "douyin", "name": "抖音热点", "category": "social"},
    {"id": "douban", "name": "豆瓣", "category": "social"},
    {"id": "bilibili", "name": "哔哩哔哩", "category": "social"},
    {"id": "36kr", "name": "36氪", "category": "tech"},
    {"id": "sspai", "name": "少数派", "category": "tech"},
    {"id": "juejin", "name": "掘金", "category": "tech"},
    {"id": "v2ex", "name": "V2EX", "category": "tech"},
    {"id": "github", "name": "GitHub Trending", "category": "tech"},
    {"id": "stackoverflow", "name": "Stack Overflow", "category": "tech"},
    {"id": "hackernews", "name": "Hacker News", "category": "tech"},
    {"id": "52pojie", "name": "吾爱破解", "category": "tech"},
    {"id": "sina_finance", "name": "新浪财经", "category": "finance"},
    {"id": "eastmoney", "name": "东方财富", "category": "finance"},
    {"id": "xueqiu", "name": "雪球", "category": "finance"},
    {"id": "cls", "name": "财联社", "category": "finance"},
    {"id": "baidu", "name": "百度热搜", "category": "general"},
    {"id": "toutiao", "name": "今日头条", "category": "general"},
    {"id": "qq", "name": "腾讯网", "category": "general"},
    {"id": "hupu", "name": "虎扑", "category": "other"},
    {"id": "tieba", "name": "百度贴吧", "category": "other"},
]

DEFAULT_CONFIG = [
    {
        "key": "news_fetch_limit",
        "value": "20",
        "description": "Items fetched per platform on each refresh",
    },
]


async def seed_platforms() -> None:
    """Seed platforms and config into the database."""
    from app.schemas.platforms import Platform, PlatformCategory
    from app.schemas.system_config import SystemConfig
    from app.services.platform_mapping import resolve_api_param
    from app.utils.db_async import session_scope

    unmapped = [p["id"] for p in INITIAL_PLATFORMS if resolve_api_param(p["id"]) is None]
    if unmapped:
        print(f"ERROR: no provider mapping for {', '.join(unmapped)}")
        sys.exit(1)

    async with session_scope() as session:
        added = 0
        skipped = 0

        for platform_data in INITIAL_PLATFORMS:
            result = await session.execute(
                select(Platform).where(Platform.id == platform_data["id"])
            )
            if result.scalar_one_or_none():
                print(f"  SKIP: {platform_data['id']} (already exists)")
                skipped += 1
                continue

            now = datetime.utcnow()
            session.add(
                Platform(
                    id=platform_data["id"],
                    name=platform_data["name"],
                    category=PlatformCategory(platform_data["category"]),
                    weight=1.0,
                    enabled=True,
                    created_at=now,
                    updated_at=now,
                )
            )
            print(f"  ADD: {platform_data['id']}")
            added += 1

        for config_data in DEFAULT_CONFIG:
            if await session.get(SystemConfig, config_data["key"]) is not None:
                print(f"  SKIP: config {config_data['key']} (already set)")
                continue
            session.add(SystemConfig(**config_data, updated_at=datetime.utcnow()))
            print(f"  ADD: config {config_data['key']}")

        await session.commit()
        print(f"\nSeeding complete: {added} added, {skipped} skipped")


if __name__ == "__main__":
    print("Seeding platforms...")
    asyncio.run(seed_platforms())
