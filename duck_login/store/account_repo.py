import json
import inspect
from typing import List, Optional

from duck_login.observability.logging import log
from duck_login.settings import settings
from duck_login.store.models import AccountRecord
from duck_login.store.redis_conn import get_redis


def _key() -> str:
    return settings.ACCOUNTS_KEY


def _filter_record_kwargs(data: dict) -> dict:
    """
    Drop unknown fields so AccountRecord(**kwargs) never explodes
    """
    sig = inspect.signature(AccountRecord)
    allowed = set(sig.parameters.keys())
    return {k: v for k, v in data.items() if k in allowed}


def _decode(raw) -> Optional[AccountRecord]:
    if not raw:
        return None
    data = json.loads(raw)
    if not isinstance(data, dict):
        return None
    return AccountRecord(**_filter_record_kwargs(data))


def add_account(record: AccountRecord) -> int:
    """
    Append the record and return its index.
    Indexes are list positions and stay stable as long as nothing is removed.
    """
    r = get_redis()
    length = r.rpush(_key(), json.dumps(record.to_dict()))
    index = int(length) - 1
    log(event="account_added", index=index, username=record.username, hasAlias=bool(record.nextAlias))
    return index


def get_account(index: int) -> Optional[AccountRecord]:
    if index < 0:
        return None
    r = get_redis()
    return _decode(r.lindex(_key(), index))


def list_accounts() -> List[AccountRecord]:
    r = get_redis()
    out = []
    for raw in r.lrange(_key(), 0, -1) or []:
        rec = _decode(raw)
        if rec is not None:
            out.append(rec)
    return out


class RedisAccountStore:
    """Account store handle passed into the login flow."""

    def add_account(self, record: AccountRecord) -> int:
        return add_account(record)

    def get_account(self, index: int) -> Optional[AccountRecord]:
        return get_account(index)

    def list_accounts(self) -> List[AccountRecord]:
        return list_accounts()
