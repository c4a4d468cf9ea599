"""
Dataflows.
"""

from typing import Any, Dict, Optional

from .base import PaginationOptions, escape_path, with_query


class DataflowsMixin:
    """Dataflow operations within a workspace."""

    @staticmethod
    def _dataflow_url(group_id: str, dataflow_id: Optional[str] = None) -> str:
        url = f"groups/{escape_path(group_id)}/dataflows"
        if dataflow_id:
            url = f"{url}/{escape_path(dataflow_id)}"
        return url

    async def create_dataflow(self, group_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self.do_json("POST", self._dataflow_url(group_id), request)

    async def get_dataflows(self, group_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", self._dataflow_url(group_id))

    async def get_dataflows_with_pagination(
        self, group_id: str, options: Optional[PaginationOptions] = None
    ) -> Dict[str, Any]:
        return await self.get_all_pages(with_query(self._dataflow_url(group_id), options))

    async def get_dataflow(self, group_id: str, dataflow_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", self._dataflow_url(group_id, dataflow_id))

    async def update_dataflow(self, group_id: str, dataflow_id: str, request: Dict[str, Any]) -> None:
        await self.do_json("PATCH", self._dataflow_url(group_id, dataflow_id), request)

    async def delete_dataflow(self, group_id: str, dataflow_id: str) -> None:
        await self.do_json("DELETE", self._dataflow_url(group_id, dataflow_id))

    async def get_dataflow_datasources(self, group_id: str, dataflow_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._dataflow_url(group_id, dataflow_id)}/datasources")

    async def refresh_dataflow(self, group_id: str, dataflow_id: str, request: Dict[str, Any]) -> None:
        await self.do_json("POST", f"{self._dataflow_url(group_id, dataflow_id)}/refreshes", request)

    async def get_dataflow_refresh_schedule(self, group_id: str, dataflow_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._dataflow_url(group_id, dataflow_id)}/refreshSchedule")

    async def update_dataflow_refresh_schedule(
        self, group_id: str, dataflow_id: str, request: Dict[str, Any]
    ) -> None:
        await self.do_json("PATCH", f"{self._dataflow_url(group_id, dataflow_id)}/refreshSchedule", request)

    async def get_dataflow_transactions(self, group_id: str, dataflow_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._dataflow_url(group_id, dataflow_id)}/transactions")

    async def cancel_dataflow_transaction(self, group_id: str, dataflow_id: str, transaction_id: str) -> None:
        url = f"{self._dataflow_url(group_id, dataflow_id)}/transactions/{escape_path(transaction_id)}/cancel"
        await self.do_json("POST", url)

    async def get_upstream_dataflows(self, group_id: str, dataflow_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._dataflow_url(group_id, dataflow_id)}/upstreamDataflows")
