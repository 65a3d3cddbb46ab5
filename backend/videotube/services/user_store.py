"""
Credential Store

Thin async repository over the User table. Every call is bounded by the
store timeout (see videotube.core.db.store_call) and fails with
Timeout / StoreUnavailable instead of hanging.
"""
import uuid
import logging
from functools import reduce
from typing import Any, Optional
from tortoise.exceptions import IntegrityError
from tortoise.expressions import Q

from ..core.db import store_call
from ..core.errors import Conflict
from ..models.user import User

logger = logging.getLogger("uvicorn.error")


def parse_uuid(value: Any) -> Optional[uuid.UUID]:
    """Return `value` as a UUID, or None if it is not a well-formed id."""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class UserStore:
    """User lookups and single-document writes"""

    def __init__(self, timeout: float):
        self.timeout = timeout

    async def find_by_id(self, user_id: Any) -> Optional[User]:
        uid = parse_uuid(user_id)
        if uid is None:
            return None
        return await store_call(User.get_or_none(id=uid), self.timeout)

    async def find_by_fields(self, predicates: dict, any_of: bool = False) -> Optional[User]:
        """
        Find the first user matching `predicates`.

        Parameters:
        - predicates: field -> value pairs, e.g. {"username": "alice"}
        - any_of: OR the predicates together instead of AND
        """
        if not predicates:
            return None
        if any_of:
            query = reduce(lambda a, b: a | b, (Q(**{k: v}) for k, v in predicates.items()))
            return await store_call(User.filter(query).first(), self.timeout)
        return await store_call(User.filter(**predicates).first(), self.timeout)

    async def create(self, **fields) -> User:
        try:
            return await store_call(User.create(**fields), self.timeout)
        except IntegrityError:
            # Lost a race with a concurrent registration for the same username/email
            raise Conflict("User with this email or username already exists")

    async def update_fields(
        self,
        user_id: Any,
        changes: dict,
        where: Optional[dict] = None,
    ) -> Optional[User]:
        """
        Apply `changes` to one user in a single UPDATE.

        Parameters:
        - where: extra column conditions the row must still satisfy;
          lets callers do a compare-and-set on a field

        Returns:
        - The refreshed User, or None if no row matched
        """
        uid = parse_uuid(user_id)
        if uid is None:
            return None
        try:
            updated = await store_call(
                User.filter(id=uid, **(where or {})).update(**changes), self.timeout
            )
        except IntegrityError:
            raise Conflict("User with this email or username already exists")
        if not updated:
            return None
        return await self.find_by_id(uid)
