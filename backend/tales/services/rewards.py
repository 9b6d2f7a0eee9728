"""Gift grants into per-user inventories.

One inventory row per (user, gift). A repeat grant bumps the quantity with a
single UPDATE; only when no row exists is one inserted. If a concurrent grant
inserts first, the unique constraint rejects ours and we fall back to the
increment, so no grant is lost and no duplicate row appears.
"""

from typing import List, NamedTuple, Optional

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from tales import db
from tales.models import Gift, InventoryItem, utcnow


class Grant(NamedTuple):
    gift: Gift
    quantity: int

    def to_dict(self):
        return {'gift': self.gift.to_dict(), 'quantity': self.quantity}


class RewardDispatcher:
    def grant(self, user_id: Optional[int], reward_name: Optional[str]) -> Optional[Grant]:
        if user_id is None or not reward_name:
            return None
        gift = Gift.query.filter_by(name=reward_name).first()
        if gift is None:
            current_app.logger.warning(f"[grant-skip] unknown gift={reward_name!r} user={user_id}")
            return None

        if not self._increment(user_id, gift.id):
            db.session.add(InventoryItem(user_id=user_id, gift_id=gift.id, quantity=1, acquired_at=utcnow()))
            try:
                db.session.commit()
            except IntegrityError:
                db.session.rollback()
                self._increment(user_id, gift.id)

        item = InventoryItem.query.filter_by(user_id=user_id, gift_id=gift.id).one()
        db.session.refresh(item)
        current_app.logger.info(f"[grant] user={user_id} gift={gift.name} quantity={item.quantity}")
        return Grant(gift, item.quantity)

    def _increment(self, user_id: int, gift_id: int) -> bool:
        stmt = (
            update(InventoryItem)
            .where(InventoryItem.user_id == user_id, InventoryItem.gift_id == gift_id)
            .values(quantity=InventoryItem.quantity + 1)
            .execution_options(synchronize_session=False)
        )
        result = db.session.execute(stmt)
        db.session.commit()
        return result.rowcount > 0

    def inventory(self, user_id: int) -> List[InventoryItem]:
        return (
            InventoryItem.query
            .filter_by(user_id=user_id)
            .order_by(InventoryItem.acquired_at, InventoryItem.id)
            .all()
        )
