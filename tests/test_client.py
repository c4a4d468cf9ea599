"""
Tests for the Power BI REST API client.
"""

import json

import httpx
import pytest

from powerbi_provider.auth.config import AuthConfig
from powerbi_provider.auth.exceptions import MultipleAuthMethodsConfiguredError
from powerbi_provider.client import (
    PaginationOptions,
    PowerBIClient,
    build_pagination_query,
    is_not_found,
)
from powerbi_provider.transport.chain import build_transport
from powerbi_provider.transport.enhanced_retry import RetryConfig
from powerbi_provider.utils.exceptions import (
    CommunicationError,
    ConfigurationError,
    HTTPUnsuccessfulError,
)

BASE = "https://api.powerbi.test/v1.0/myorg"


class Api(httpx.MockTransport):
    """Routes requests by (method, path) to canned responses."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.requests = []
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self.routes:
            return self.routes[key]
        return httpx.Response(200, json={"method": request.method, "path": request.url.path})


@pytest.fixture
def api():
    return Api()


@pytest.fixture
def client(test_config, token_provider, api):
    return PowerBIClient(
        build_transport(token_provider, test_config, base=api),
        config=test_config,
        token_provider=token_provider,
    )


class TestPagination:

    def test_empty_options(self):
        assert build_pagination_query(None) == ""
        assert build_pagination_query(PaginationOptions()) == ""

    def test_all_options(self):
        query = build_pagination_query(PaginationOptions(
            top=10, skip=20, filter="name eq 'x'", order_by="name", select="id,name", expand="tiles",
        ))

        assert query == (
            "%24top=10&%24skip=20&%24filter=name+eq+%27x%27&%24orderby=name"
            "&%24select=id%2Cname&%24expand=tiles"
        )

    def test_zero_top_and_skip_are_omitted(self):
        assert build_pagination_query(PaginationOptions(top=0, skip=0, filter="a")) == "%24filter=a"

    @pytest.mark.asyncio
    async def test_get_all_pages_follows_next_link(self, client, api):
        api.routes[("GET", "/v1.0/myorg/gateways")] = httpx.Response(200, json={
            "value": [{"id": "1"}, {"id": "2"}],
            "@odata.nextLink": f"{BASE}/gateways/page2",
        })
        api.routes[("GET", "/v1.0/myorg/gateways/page2")] = httpx.Response(200, json={
            "value": [{"id": "3"}],
        })

        async with client:
            result = await client.get_gateways_with_pagination()

        assert result == {"value": [{"id": "1"}, {"id": "2"}, {"id": "3"}]}
        assert len(api.requests) == 2

    @pytest.mark.asyncio
    async def test_pagination_query_applied(self, client, api):
        api.routes[("GET", "/v1.0/myorg/groups/g1/dashboards")] = httpx.Response(200, json={"value": []})

        async with client:
            await client.get_dashboards_with_pagination("g1", PaginationOptions(top=5))

        assert api.requests[0].url.params["$top"] == "5"


class TestDoJson:

    @pytest.mark.asyncio
    async def test_sends_json_and_token(self, client, api):
        async with client:
            result = await client.do_json("POST", "pipelines", {"displayName": "release"})

        request = api.requests[0]
        assert str(request.url) == f"{BASE}/pipelines"
        assert json.loads(request.content) == {"displayName": "release"}
        assert request.headers["Authorization"] == "Bearer token-1"
        assert request.headers["Content-Type"] == "application/json"
        assert result == {"method": "POST", "path": "/v1.0/myorg/pipelines"}

    @pytest.mark.asyncio
    async def test_empty_body_returns_none(self, client, api):
        api.routes[("DELETE", "/v1.0/myorg/pipelines/p1")] = httpx.Response(200)

        async with client:
            assert await client.delete_pipeline("p1") is None

    @pytest.mark.asyncio
    async def test_invalid_json(self, client, api):
        api.routes[("GET", "/v1.0/myorg/apps")] = httpx.Response(200, text="<html>")

        async with client:
            with pytest.raises(CommunicationError):
                await client.get_apps()

    @pytest.mark.asyncio
    async def test_not_found(self, client, api):
        api.routes[("GET", "/v1.0/myorg/gateways/missing")] = httpx.Response(404, text="not found")

        async with client:
            with pytest.raises(HTTPUnsuccessfulError) as exc_info:
                await client.get_gateway("missing")

        assert is_not_found(exc_info.value)
        assert not is_not_found(HTTPUnsuccessfulError(500))
        assert not is_not_found(ValueError("x"))

    @pytest.mark.asyncio
    async def test_close_closes_token_provider(self, client, token_provider):
        await client.close()

        assert token_provider.closed


class TestResourceRoutes:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("call,method,path", [
        (lambda c: c.get_dashboards("g1"), "GET", "/groups/g1/dashboards"),
        (lambda c: c.get_dashboards(), "GET", "/dashboards"),
        (lambda c: c.create_dashboard({"name": "d"}, group_id="g1"), "POST", "/groups/g1/dashboards"),
        (lambda c: c.clone_tile("d1", "t1", {}, group_id="g1"), "POST", "/groups/g1/dashboards/d1/tiles/t1/Clone"),
        (lambda c: c.get_tile("d1", "t1"), "GET", "/dashboards/d1/tiles/t1"),
        (lambda c: c.update_dataflow("g1", "df1", {}), "PATCH", "/groups/g1/dataflows/df1"),
        (lambda c: c.refresh_dataflow("g1", "df1", {}), "POST", "/groups/g1/dataflows/df1/refreshes"),
        (
            lambda c: c.cancel_dataflow_transaction("g1", "df1", "tx1"),
            "POST", "/groups/g1/dataflows/df1/transactions/tx1/cancel",
        ),
        (lambda c: c.get_upstream_dataflows("g1", "df1"), "GET", "/groups/g1/dataflows/df1/upstreamDataflows"),
        (lambda c: c.get_gateway_datasource_status("gw", "ds"), "GET", "/gateways/gw/datasources/ds/status"),
        (lambda c: c.add_datasource_user("gw", "ds", {}), "POST", "/gateways/gw/datasources/ds/users"),
        (
            lambda c: c.delete_datasource_user("gw", "ds", "user@contoso.com"),
            "DELETE", "/gateways/gw/datasources/ds/users/user@contoso.com",
        ),
        (lambda c: c.assign_workspace("p1", 2, {}), "POST", "/pipelines/p1/stages/2/assignWorkspace"),
        (lambda c: c.deploy_all("p1", {}), "POST", "/pipelines/p1/deployAll"),
        (lambda c: c.selective_deploy("p1", {}), "POST", "/pipelines/p1/deploy"),
        (lambda c: c.get_pipeline_stage_artifacts("p1", 0), "GET", "/pipelines/p1/stages/0/artifacts"),
        (lambda c: c.update_pipeline_user("p1", "u1", {}), "PATCH", "/pipelines/p1/users/u1"),
        (lambda c: c.get_app_tile("a1", "d1", "t1"), "GET", "/apps/a1/dashboards/d1/tiles/t1"),
        (lambda c: c.install_template_app({}), "POST", "/templateApps/install"),
        (lambda c: c.uninstall_template_app("i1"), "DELETE", "/templateApps/installations/i1"),
        (lambda c: c.generate_embed_token("w1", {}), "POST", "/groups/w1/reports/GenerateToken"),
        (
            lambda c: c.generate_embed_token_for_tile("w1", "d1", "t1", {}),
            "POST", "/groups/w1/dashboards/d1/tiles/t1/GenerateToken",
        ),
    ])
    async def test_routes(self, client, api, call, method, path):
        async with client:
            await call(client)

        assert api.requests[0].method == method
        assert api.requests[0].url.path == f"/v1.0/myorg{path}"

    @pytest.mark.asyncio
    async def test_ids_are_escaped(self, client, api):
        async with client:
            await client.get_gateway("a/b c")

        assert api.requests[0].url.raw_path == b"/v1.0/myorg/gateways/a%2Fb%20c"

    @pytest.mark.asyncio
    async def test_pipeline_stages(self, client, api):
        api.routes[("GET", "/v1.0/myorg/pipelines/p1")] = httpx.Response(200, json={
            "id": "p1", "stages": [{"order": 0}, {"order": 1}],
        })

        async with client:
            assert await client.get_pipeline_stages("p1") == [{"order": 0}, {"order": 1}]


class TestConstruction:

    @pytest.mark.asyncio
    async def test_from_auth_config(self, test_config, api):
        client = PowerBIClient.from_auth_config(
            AuthConfig(access_token="direct-token"), config=test_config, base_transport=api
        )

        async with client:
            await client.get_apps()

        assert client.credential_type == "access_token"
        assert api.requests[0].headers["Authorization"] == "Bearer direct-token"

    def test_from_auth_config_validates(self, test_config):
        with pytest.raises(MultipleAuthMethodsConfiguredError):
            PowerBIClient.from_auth_config(
                AuthConfig(access_token="t", use_managed_identity=True), config=test_config
            )

    @pytest.mark.asyncio
    async def test_with_retry(self, client, test_config, token_provider):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503 if len(calls) == 1 else 200, json={})

        retrying = client.with_retry(
            RetryConfig(initial_delay=0, jitter_factor=0),
            base_transport=httpx.MockTransport(handler),
        )

        async with retrying:
            await retrying.get_apps()

        assert len(calls) == 2
        assert retrying.token_provider is token_provider
        await client.close()

    @pytest.mark.asyncio
    async def test_retrying_client_outlives_original(self, client, token_provider):
        retrying = client.with_retry(
            RetryConfig(initial_delay=0, jitter_factor=0),
            base_transport=Api(),
        )

        await client.close()
        assert not token_provider.closed

        assert await retrying.do_json("GET", "groups") == {"method": "GET", "path": "/v1.0/myorg/groups"}

        await retrying.close()
        assert token_provider.closed

    @pytest.mark.asyncio
    async def test_close_twice_keeps_shared_provider_open(self, client, token_provider):
        retrying = client.with_retry(base_transport=Api())

        await client.close()
        await client.close()

        assert not token_provider.closed
        await retrying.close()
        assert token_provider.closed

    def test_with_retry_requires_provider(self, test_config, api):
        client = PowerBIClient(api, config=test_config)

        with pytest.raises(ConfigurationError):
            client.with_retry()
