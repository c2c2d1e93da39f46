"""
Customer Repository - resolves identity-provider user ids to customers.
"""

from sqlalchemy import select
from sqlalchemy.orm import Session

from nutribite_api.models import Customer


class CustomerRepository:

    def __init__(self, db: Session):
        self._db = db

    def find_by_user_id(self, user_id: int, lock: bool = False) -> Customer | None:
        """
        Customer owned by user_id.

        With lock=True the row is locked FOR UPDATE, which serializes
        concurrent checkouts of the same customer.
        """
        query = select(Customer).where(Customer.user_id == user_id)
        if lock:
            query = query.with_for_update().execution_options(populate_existing=True)
        return self._db.scalar(query)
