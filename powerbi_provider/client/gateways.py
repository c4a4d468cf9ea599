"""
Gateways, gateway datasources and datasource users.
"""

from typing import Any, Dict, Optional

from .base import PaginationOptions, escape_path, with_query


class GatewaysMixin:
    """On-premises gateway operations."""

    @staticmethod
    def _datasource_url(gateway_id: str, datasource_id: Optional[str] = None) -> str:
        url = f"gateways/{escape_path(gateway_id)}/datasources"
        if datasource_id:
            url = f"{url}/{escape_path(datasource_id)}"
        return url

    async def get_gateways(self) -> Dict[str, Any]:
        return await self.do_json("GET", "gateways")

    async def get_gateways_with_pagination(self, options: Optional[PaginationOptions] = None) -> Dict[str, Any]:
        return await self.get_all_pages(with_query("gateways", options))

    async def get_gateway(self, gateway_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"gateways/{escape_path(gateway_id)}")

    async def create_gateway_datasource(self, gateway_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self.do_json("POST", self._datasource_url(gateway_id), request)

    async def get_gateway_datasources(self, gateway_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", self._datasource_url(gateway_id))

    async def get_gateway_datasource(self, gateway_id: str, datasource_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", self._datasource_url(gateway_id, datasource_id))

    async def update_gateway_datasource(
        self, gateway_id: str, datasource_id: str, request: Dict[str, Any]
    ) -> None:
        await self.do_json("PATCH", self._datasource_url(gateway_id, datasource_id), request)

    async def delete_gateway_datasource(self, gateway_id: str, datasource_id: str) -> None:
        await self.do_json("DELETE", self._datasource_url(gateway_id, datasource_id))

    async def get_gateway_datasource_status(self, gateway_id: str, datasource_id: str) -> Optional[Dict[str, Any]]:
        return await self.do_json("GET", f"{self._datasource_url(gateway_id, datasource_id)}/status")

    async def get_datasource_users(self, gateway_id: str, datasource_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._datasource_url(gateway_id, datasource_id)}/users")

    async def add_datasource_user(self, gateway_id: str, datasource_id: str, request: Dict[str, Any]) -> None:
        await self.do_json("POST", f"{self._datasource_url(gateway_id, datasource_id)}/users", request)

    async def delete_datasource_user(self, gateway_id: str, datasource_id: str, email_address: str) -> None:
        url = f"{self._datasource_url(gateway_id, datasource_id)}/users/{escape_path(email_address)}"
        await self.do_json("DELETE", url)
