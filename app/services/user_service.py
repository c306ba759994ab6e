"""用户服务 - 保存登录用户的基本信息."""
import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.database import Database
from app.models.wallpaper import UserProfile

logger = logging.getLogger(__name__)


class UserStore:
    """用户信息存储."""

    def __init__(self, db: Database):
        self.db = db

    def upsert_profile(self, profile: UserProfile) -> None:
        """
        新增或更新用户信息，以邮箱为唯一键.

        Args:
            profile: 用户信息
        """
        now = datetime.now(timezone.utc).isoformat()
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT INTO users (email, nickname, avatar_url, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(email) DO UPDATE SET
                    nickname = excluded.nickname,
                    avatar_url = excluded.avatar_url,
                    updated_at = excluded.updated_at
                """,
                (profile.email, profile.nickname, profile.avatar_url, now, now),
            )
        logger.debug(f"用户信息已保存: {profile.email}")

    def get_profile(self, email: str) -> Optional[UserProfile]:
        with self.db.connect() as conn:
            row = conn.execute(
                "SELECT email, nickname, avatar_url FROM users WHERE email = ?",
                (email,),
            ).fetchone()
        if row is None:
            return None
        return UserProfile(email=row["email"], nickname=row["nickname"], avatar_url=row["avatar_url"])
