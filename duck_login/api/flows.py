"""
In-process registry of login flows.
Each flow owns exactly one LoginOrchestrator; flows are not shared between clients.
All flows of a registry share one DuckAuthApi (one httpx connection pool),
closed by `aclose()` on application shutdown.
"""
from __future__ import annotations

import uuid
from collections import OrderedDict
from typing import Callable, Optional

from duck_login.client.auth_api import DuckAuthApi
from duck_login.core.orchestrator import LoginOrchestrator
from duck_login.settings import settings
from duck_login.store.account_repo import RedisAccountStore


class FlowRegistry:
    def __init__(self, factory: Optional[Callable[[str], LoginOrchestrator]] = None, max_flows: Optional[int] = None):
        self._factory = factory or self._default_factory
        self._max = int(max_flows if max_flows is not None else settings.FLOW_REGISTRY_MAX)
        self._flows: "OrderedDict[str, LoginOrchestrator]" = OrderedDict()
        self._api: Optional[DuckAuthApi] = None

    @property
    def api(self) -> DuckAuthApi:
        if self._api is None:
            self._api = DuckAuthApi()
        return self._api

    def _default_factory(self, flow_id: str) -> LoginOrchestrator:
        return LoginOrchestrator(self.api, RedisAccountStore(), flow_id=flow_id)

    def create(self) -> LoginOrchestrator:
        flow_id = uuid.uuid4().hex
        flow = self._factory(flow_id)
        self._flows[flow_id] = flow
        while len(self._flows) > max(1, self._max):
            self._flows.popitem(last=False)
        return flow

    def get(self, flow_id: str) -> Optional[LoginOrchestrator]:
        return self._flows.get(flow_id)

    async def aclose(self) -> None:
        self._flows.clear()
        if self._api is not None:
            api, self._api = self._api, None
            await api.aclose()

    def __len__(self) -> int:
        return len(self._flows)


registry = FlowRegistry()
