#!/usr/bin/env python3
"""
JSON 레벨 파일(levels.json) → SQLite(ubv-bot.db) 데이터 마이그레이션 스크립트

사용법:
  python migrate_json_to_sqlite.py

또는 경로 지정:
  python migrate_json_to_sqlite.py --json-path /path/to/levels.json --sqlite-path /path/to/ubv-bot.db

이미 SQLite에 있는 (user_id, guild_id)는 JSON 값으로 덮어쓴다.
"""

import argparse
import asyncio
import os

from config import DB_PATH, LEVELS_JSON_PATH
from database import LevelsDB
from json_store import JsonLevelsStore
from level_system import calculate_level


async def migrate(json_path: str, sqlite_path: str) -> int:
    """JSON → SQLite 마이그레이션 실행, 이전한 행 수 반환"""
    source = JsonLevelsStore(json_path)
    target = LevelsDB(sqlite_path)

    await source.open()
    await target.open()
    try:
        records = await source.all_records()

        fixed = 0
        for record in records:
            # level은 항상 xp에서 다시 계산
            level = calculate_level(record.xp)
            if record.level != level:
                record.level = level
                fixed += 1

        count = await target.bulk_insert(records)
        print(f"  → {count} 행 이전")
        if fixed:
            print(f"  → {fixed} 행의 레벨을 XP 기준으로 보정")
        return count
    finally:
        await target.close()
        await source.close()


def main():
    parser = argparse.ArgumentParser(description="JSON → SQLite 레벨 데이터 마이그레이션")
    parser.add_argument(
        "--json-path",
        default=LEVELS_JSON_PATH,
        help=f"JSON 파일 경로 (기본: {LEVELS_JSON_PATH})",
    )
    parser.add_argument(
        "--sqlite-path",
        default=DB_PATH,
        help=f"SQLite DB 파일 경로 (기본: {DB_PATH})",
    )
    args = parser.parse_args()

    if not os.path.exists(args.json_path):
        print(f"❌ JSON 파일을 찾을 수 없습니다: {args.json_path}")
        return 1

    print(f"JSON: {args.json_path}")
    print(f"SQLite: {args.sqlite_path}")
    print()

    asyncio.run(migrate(args.json_path, args.sqlite_path))
    print("\n✅ 마이그레이션 완료!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
