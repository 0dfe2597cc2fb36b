from __future__ import annotations

from typing import Optional, Protocol, Tuple

from duck_login.core.masking import mask_email
from duck_login.store.models import AccountRecord, AuthenticatedUser


class AccountStore(Protocol):
    def add_account(self, record: AccountRecord) -> int: ...


def materialize(user: AuthenticatedUser, alias_address: Optional[str], accounts: AccountStore) -> Tuple[AccountRecord, int]:
    """
    Build the persisted account for a successful login and store it.
    A missing alias (generation failed) becomes an empty nextAlias.
    """
    record = AccountRecord.from_user(
        user,
        remark=mask_email(user.email),
        nextAlias=alias_address or "",
    )
    index = accounts.add_account(record)
    return record, int(index)
