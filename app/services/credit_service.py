"""积分服务 - 查询用户剩余积分.

剩余积分 = 累计获得积分 - 已生成壁纸数量。本服务只负责查询，
扣减通过写入壁纸记录隐式完成。
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from app.core.database import Database
from app.models.wallpaper import CreditBalance

logger = logging.getLogger(__name__)


class CreditLedger:
    """积分账本."""

    def __init__(self, db: Database):
        self.db = db

    def get_balance(self, email: str) -> Optional[CreditBalance]:
        """
        查询用户剩余积分.

        Args:
            email: 用户邮箱

        Returns:
            Optional[CreditBalance]: 剩余积分，从未获得过积分的用户返回 None
        """
        with self.db.connect() as conn:
            row = conn.execute(
                """
                SELECT c.total_credits AS total_credits,
                       (SELECT COUNT(*) FROM wallpapers w WHERE w.user_email = c.user_email) AS used_credits
                FROM credits c
                WHERE c.user_email = ?
                """,
                (email,),
            ).fetchone()

        if row is None:
            return None

        remaining = max(row["total_credits"] - row["used_credits"], 0)
        return CreditBalance(user_email=email, remaining_credits=remaining)

    def grant_credits(self, email: str, amount: int) -> None:
        """
        为用户增加积分.

        Args:
            email: 用户邮箱
            amount: 增加的积分数量

        Raises:
            ValueError: 积分数量不是正数
        """
        if amount <= 0:
            raise ValueError("积分数量必须大于 0")

        now = datetime.now(timezone.utc).isoformat()
        with self.db.connect() as conn:
            conn.execute(
                """
                INSERT INTO credits (user_email, total_credits, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(user_email) DO UPDATE SET
                    total_credits = total_credits + excluded.total_credits,
                    updated_at = excluded.updated_at
                """,
                (email, amount, now),
            )
        logger.info(f"积分已发放: {email} +{amount}")
