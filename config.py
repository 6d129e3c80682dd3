# config.py - 설정 파일

import math
import os
from dotenv import load_dotenv

load_dotenv()


def parse_number(value, fallback):
    """환경변수 문자열을 숫자로 변환 (비어있거나 잘못된 값이면 fallback)"""
    if value is None or str(value).strip() == "":
        return fallback
    try:
        number = float(value)
    except (TypeError, ValueError):
        return fallback
    if not math.isfinite(number):
        return fallback
    return int(number) if number.is_integer() else number


def parse_bool(value, fallback: bool) -> bool:
    """환경변수 문자열을 bool로 변환"""
    if value is None or str(value).strip() == "":
        return fallback
    normalized = str(value).strip().lower()
    if normalized in ("true", "1", "yes", "y", "on"):
        return True
    if normalized in ("false", "0", "no", "n", "off"):
        return False
    return fallback


def parse_channel_id(value):
    """채널 ID 환경변수 (없으면 None). 스노우플레이크는 float 정밀도를 넘으므로 int로 직접 변환"""
    if value is None or not str(value).strip().isdigit():
        return None
    return int(str(value).strip())


# .env
DISCORD_TOKEN = os.getenv("DISCORD_TOKEN")
COMMAND_PREFIX = os.getenv("COMMAND_PREFIX", "!")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# 브랜딩
BOT_BRAND = os.getenv("BOT_BRAND", "UBV Bot")
BRAND_TAGLINE = os.getenv("BRAND_TAGLINE", "/help")

# 저장소 설정
DATA_DIR = os.path.abspath(os.getenv("DATA_DIR", "./data"))
LEVELS_STORAGE = os.getenv("LEVELS_STORAGE", "sqlite").strip().lower()  # sqlite 또는 json
DB_PATH = os.path.join(DATA_DIR, "ubv-bot.db")
LEVELS_JSON_PATH = os.path.join(DATA_DIR, "levels.json")
XP_IGNORE_PATH = os.path.join(DATA_DIR, "xp_ignore.json")

# XP 획득 설정
XP_MIN = parse_number(os.getenv("XP_MIN"), 15)  # 메시지당 최소 XP
XP_MAX = parse_number(os.getenv("XP_MAX"), 25)  # 메시지당 최대 XP
XP_COOLDOWN_SECONDS = parse_number(os.getenv("XP_COOLDOWN_SECONDS"), 60)  # 지급 간 최소 간격 (초)
LEVEL_UP_ANNOUNCE = parse_bool(os.getenv("LEVEL_UP_ANNOUNCE"), True)  # 메시지를 보낸 채널에 레벨업 알림

# 순위표 설정
LEADERBOARD_PAGE_SIZE = 10
LEADERBOARD_MAX_ENTRIES = 100
PROGRESS_BAR_LENGTH = 15

# 관리자 역할 (서버 관리 권한이 없어도 이 역할이 있으면 관리자 명령어 사용 가능)
ADMIN_ROLE_NAME = os.getenv("ADMIN_ROLE_NAME", "Admin")

# 로그 채널 (None이면 로그 전송 안 함)
LOG_CHANNEL_ID_LEVEL = parse_channel_id(os.getenv("LOG_CHANNEL_ID_LEVEL"))
LOG_CHANNEL_ID_ADMIN = parse_channel_id(os.getenv("LOG_CHANNEL_ID_ADMIN"))

# 명령어 제한 채널
RANK_COMMAND_CHANNEL_ID = parse_channel_id(os.getenv("RANK_COMMAND_CHANNEL_ID"))  # None이면 모든 채널에서 사용 가능
