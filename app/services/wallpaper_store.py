"""壁纸记录存储（只追加）."""
import logging
from typing import List

from app.core.database import Database
from app.models.wallpaper import WallpaperRecord

logger = logging.getLogger(__name__)


class WallpaperStore:
    """壁纸记录存储."""

    def __init__(self, db: Database):
        self.db = db

    def insert(self, record: WallpaperRecord) -> None:
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT INTO wallpapers (
                    user_email, description, image_size, image_url,
                    generator_name, generator_params, created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    record.user_email,
                    record.description,
                    record.image_size,
                    record.image_url,
                    record.generator_name,
                    record.generator_params,
                    record.created_at,
                ),
            )
        logger.info(f"壁纸记录已保存: {record.user_email} {record.image_url}")

    def list_by_user(self, email: str, limit: int = 50) -> List[WallpaperRecord]:
        """按创建时间倒序返回用户的壁纸记录."""
        with self.db.connect() as conn:
            rows = conn.execute(
                """
                SELECT user_email, description, image_size, image_url,
                       generator_name, generator_params, created_at
                FROM wallpapers
                WHERE user_email = ?
                ORDER BY created_at DESC, id DESC
                LIMIT ?
                """,
                (email, limit),
            ).fetchall()
        return [WallpaperRecord(**dict(row)) for row in rows]
