"""
Deployment pipelines.
"""

from typing import Any, Dict, List, Optional

from .base import PaginationOptions, escape_path, with_query


class PipelinesMixin:
    """Deployment pipeline operations."""

    @staticmethod
    def _pipeline_url(pipeline_id: str) -> str:
        return f"pipelines/{escape_path(pipeline_id)}"

    async def create_pipeline(self, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self.do_json("POST", "pipelines", request)

    async def get_pipelines(self) -> Dict[str, Any]:
        return await self.do_json("GET", "pipelines")

    async def get_pipelines_with_pagination(self, options: Optional[PaginationOptions] = None) -> Dict[str, Any]:
        return await self.get_all_pages(with_query("pipelines", options))

    async def get_pipeline(self, pipeline_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", self._pipeline_url(pipeline_id))

    async def update_pipeline(self, pipeline_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self.do_json("PATCH", self._pipeline_url(pipeline_id), request)

    async def delete_pipeline(self, pipeline_id: str) -> None:
        await self.do_json("DELETE", self._pipeline_url(pipeline_id))

    async def get_pipeline_stages(self, pipeline_id: str) -> List[Dict[str, Any]]:
        """Stages are part of the pipeline resource."""
        pipeline = await self.get_pipeline(pipeline_id) or {}
        return pipeline.get("stages") or []

    async def assign_workspace(self, pipeline_id: str, stage_order: int, request: Dict[str, Any]) -> None:
        url = f"{self._pipeline_url(pipeline_id)}/stages/{int(stage_order)}/assignWorkspace"
        await self.do_json("POST", url, request)

    async def unassign_workspace(
        self, pipeline_id: str, stage_order: int, request: Optional[Dict[str, Any]] = None
    ) -> None:
        url = f"{self._pipeline_url(pipeline_id)}/stages/{int(stage_order)}/unassignWorkspace"
        await self.do_json("POST", url, request if request is not None else {})

    async def deploy_all(self, pipeline_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self.do_json("POST", f"{self._pipeline_url(pipeline_id)}/deployAll", request)

    async def selective_deploy(self, pipeline_id: str, request: Dict[str, Any]) -> Dict[str, Any]:
        return await self.do_json("POST", f"{self._pipeline_url(pipeline_id)}/deploy", request)

    async def get_pipeline_operations(self, pipeline_id: str) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._pipeline_url(pipeline_id)}/operations")

    async def get_pipeline_operation(self, pipeline_id: str, operation_id: str) -> Dict[str, Any]:
        url = f"{self._pipeline_url(pipeline_id)}/operations/{escape_path(operation_id)}"
        return await self.do_json("GET", url)

    async def get_pipeline_stage_artifacts(self, pipeline_id: str, stage_order: int) -> Dict[str, Any]:
        return await self.do_json("GET", f"{self._pipeline_url(pipeline_id)}/stages/{int(stage_order)}/artifacts")

    async def get_pipeline_users(self, pipeline_id: str) -> List[Dict[str, Any]]:
        response = await self.do_json("GET", f"{self._pipeline_url(pipeline_id)}/users") or {}
        return response.get("value") or []

    async def add_pipeline_user(self, pipeline_id: str, request: Dict[str, Any]) -> None:
        await self.do_json("POST", f"{self._pipeline_url(pipeline_id)}/users", request)

    async def update_pipeline_user(self, pipeline_id: str, user_id: str, request: Dict[str, Any]) -> None:
        await self.do_json("PATCH", f"{self._pipeline_url(pipeline_id)}/users/{escape_path(user_id)}", request)

    async def delete_pipeline_user(self, pipeline_id: str, user_id: str) -> None:
        await self.do_json("DELETE", f"{self._pipeline_url(pipeline_id)}/users/{escape_path(user_id)}")
