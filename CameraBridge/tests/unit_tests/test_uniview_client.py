"""
Unit tests for the Uniview VIID client: challenge-response login,
keep-alive and resource queries
"""

import json

import pytest
from unittest.mock import AsyncMock, patch

from CameraBridge.config.vendors.uniview import API_PATHS
from CameraBridge.exceptions import AuthError, ParameterError
from CameraBridge.vendors import UniviewClient
from CameraBridge.vendors.signing import uniview_login_signature
from CameraBridge.vendors.uniview import camera_condition, organization_condition


def login_responses(make_response, token="tok-1"):
    return [
        make_response(200, {"AccessCode": "CODE42"}),
        make_response(200, {"ErrCode": 0, "AccessToken": token}),
    ]


class TestUniviewLogin:

    def setup_method(self):
        self.now = [100.0]

    def _client(self, uniview_config):
        client = UniviewClient(uniview_config)
        client.authenticator.clock = lambda: self.now[0]
        client.authenticator._sleep = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_two_step_login_posts_compact_text_body(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(side_effect=login_responses(make_response))

        with patch.object(client.http_client, "send", send):
            session = await client.login()

        challenge, _ = send.call_args_list[0].args
        assert (challenge.method, challenge.path) == ("POST", API_PATHS["LOGIN"])
        assert challenge.serialized_body == "{}"
        assert challenge.content_type == "application/json"

        submit, _ = send.call_args_list[1].args
        assert submit.content_type == "text/plain"
        assert isinstance(submit.body, str)
        assert " " not in submit.body
        assert json.loads(submit.body) == {
            "UserName": "loadmin",
            "AccessCode": "CODE42",
            "LoginSignature": uniview_login_signature("loadmin", "CODE42", "admin123"),
        }

        assert session.token == "tok-1"
        assert session.expires_at == 100.0 + 48 * 3600 - 60
        await client.close()

    @pytest.mark.asyncio
    async def test_existing_session_is_resumed(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(return_value=make_response(200, {"AccessToken": "resumed"}))

        with patch.object(client.http_client, "send", send):
            session = await client.login()

        assert session.token == "resumed"
        assert send.call_count == 1
        await client.close()

    @pytest.mark.asyncio
    async def test_login_retries_with_backoff_then_fails(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(return_value=make_response(200, {"ErrCode": 7, "ErrMsg": "unknown format"}))

        with patch.object(client.http_client, "send", send):
            with pytest.raises(AuthError) as exc_info:
                await client.login()

        assert exc_info.value.message.startswith("Login failed after 4 attempts")
        assert send.call_count == 4
        assert [call.args[0] for call in client.authenticator._sleep.await_args_list] == [1.0, 2.0, 4.0]
        assert not client.is_authenticated()
        assert not client.keep_alive.is_running

    @pytest.mark.asyncio
    async def test_rejected_credentials_recover_on_retry(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(side_effect=[
            make_response(200, {"AccessCode": "CODE1"}),
            make_response(200, {"ErrCode": 60102, "ErrMsg": "signature mismatch"}),
            *login_responses(make_response, token="tok-2"),
        ])

        with patch.object(client.http_client, "send", send):
            session = await client.login()

        assert session.token == "tok-2"
        client.authenticator._sleep.assert_awaited_once_with(1.0)
        await client.close()


class TestUniviewKeepAlive:

    def _client(self, uniview_config):
        client = UniviewClient(uniview_config)
        client.authenticator._sleep = AsyncMock()
        return client

    @pytest.mark.asyncio
    async def test_login_starts_keep_alive_once_and_close_stops_it(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(side_effect=[*login_responses(make_response), *login_responses(make_response, "tok-2")])

        with patch.object(client.http_client, "send", send):
            await client.login()
            task = client.keep_alive._task
            assert client.keep_alive.is_running

            await client.login()
            assert client.keep_alive._task is task

        await client.close()
        assert not client.keep_alive.is_running
        assert not client.is_authenticated()

        # Closing twice is harmless
        await client.close()
        assert client.closed

    @pytest.mark.asyncio
    async def test_close_before_login_is_safe(self, uniview_config):
        client = self._client(uniview_config)
        await client.close()
        assert not client.keep_alive.is_running

    @pytest.mark.asyncio
    async def test_context_manager_closes(self, uniview_config, make_response):
        send = AsyncMock(side_effect=login_responses(make_response))

        async with self._client(uniview_config) as client:
            with patch.object(client.http_client, "send", send):
                await client.login()
            assert client.keep_alive.is_running

        assert not client.keep_alive.is_running

    @pytest.mark.asyncio
    async def test_keep_alive_touch_with_valid_session(self, uniview_config, make_response):
        client = self._client(uniview_config)
        client.authenticator.session.store("tok", 3600, now=client.authenticator.clock())
        send = AsyncMock(return_value=make_response(200, {"ErrCode": 0}))

        with patch.object(client.http_client, "send", send):
            assert await client.keep_token_alive() is True

        descriptor, headers = send.call_args.args
        assert (descriptor.method, descriptor.path) == ("GET", API_PATHS["TOKEN_KEEP_ALIVE"])
        assert headers["Authorization"] == "tok"
        assert client.authenticator.login_count == 0

    @pytest.mark.asyncio
    async def test_refused_touch_falls_back_to_login(self, uniview_config, make_response):
        client = self._client(uniview_config)
        client.authenticator.session.store("tok", 3600, now=client.authenticator.clock())
        send = AsyncMock(side_effect=[
            make_response(200, {"ErrCode": 1, "ErrMsg": "token invalid"}),
            *login_responses(make_response, "tok-2"),
        ])

        with patch.object(client.http_client, "send", send):
            assert await client.keep_token_alive() is True

        assert client.authenticator.login_count == 1
        assert client.authenticator.session.token == "tok-2"
        await client.close()

    @pytest.mark.asyncio
    async def test_touch_without_error_code_falls_back_to_login(self, uniview_config, make_response):
        client = self._client(uniview_config)
        client.authenticator.session.store("tok", 3600, now=client.authenticator.clock())
        send = AsyncMock(side_effect=[
            make_response(200, {}),
            *login_responses(make_response, "tok-2"),
        ])

        with patch.object(client.http_client, "send", send):
            assert await client.keep_token_alive() is True

        assert send.call_count == 3
        assert client.authenticator.login_count == 1
        assert client.authenticator.session.token == "tok-2"
        await client.close()

    @pytest.mark.asyncio
    async def test_invalid_session_logs_in_directly(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(side_effect=login_responses(make_response))

        with patch.object(client.http_client, "send", send):
            assert await client.keep_token_alive() is True

        assert send.call_count == 2
        await client.close()

    @pytest.mark.asyncio
    async def test_keep_alive_never_raises(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(return_value=make_response(500, {"ErrMsg": "down"}))

        with patch.object(client.http_client, "send", send):
            assert await client.keep_token_alive() is False


class TestUniviewResources:

    def _client(self, uniview_config):
        client = UniviewClient(uniview_config)
        client.authenticator.session.store("tok", 3600, now=client.authenticator.clock())
        return client

    @pytest.mark.asyncio
    async def test_query_resources_sends_condition_as_json_query(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(return_value=make_response(200, {"ErrCode": 0, "Result": {}}))
        condition = camera_condition()

        with patch.object(client.http_client, "send", send):
            await client.query_resources("iccsid", condition)

        descriptor = send.call_args.args[0]
        assert (descriptor.method, descriptor.path) == ("GET", API_PATHS["QUERY_RESOURCES"])
        assert descriptor.params == {"org": "iccsid", "condition": condition}
        assert "condition=%7B%22ItemNum%22%3A2" in descriptor.query_string

    @pytest.mark.asyncio
    async def test_query_resources_requires_org_and_condition(self, uniview_config):
        client = self._client(uniview_config)
        send = AsyncMock()

        with patch.object(client.http_client, "send", send):
            with pytest.raises(ParameterError) as exc_info:
                await client.query_resources("", camera_condition())
            assert exc_info.value.parameter_name == "org"

            with pytest.raises(ParameterError) as exc_info:
                await client.query_resources("iccsid", None)
            assert exc_info.value.parameter_name == "condition"

        send.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_all_resources_pages_by_offset(self, uniview_config, make_response):
        client = self._client(uniview_config)

        def page(items, total):
            return make_response(200, {"ErrCode": 0, "Result": {"InfoList": items, "RspPageInfo": {"TotalRowNum": total}}})

        send = AsyncMock(side_effect=[page([1, 2], 5), page([3, 4], 5), page([5], 5)])

        with patch.object(client.http_client, "send", send):
            items = await client.query_all_cameras(page_size=2)

        assert items == [1, 2, 3, 4, 5]
        conditions = [call.args[0].params["condition"] for call in send.call_args_list]
        assert [c["PageFirstRowNumber"] for c in conditions] == [0, 2, 4]
        assert all(c["QueryCount"] == 1 and c["PageRowNum"] == 2 for c in conditions)
        assert conditions[0]["Condition"] == camera_condition()["Condition"]
        assert send.call_args_list[0].args[0].params["org"] == "iccsid"

    @pytest.mark.asyncio
    async def test_query_all_orgs_uses_org_condition(self, uniview_config, make_response):
        client = self._client(uniview_config)
        body = {"ErrCode": 0, "Result": {"InfoList": [{"OrgCode": "iccsid"}], "RspPageInfo": {"TotalRowNum": 1}}}
        send = AsyncMock(return_value=make_response(200, body))

        with patch.object(client.http_client, "send", send):
            orgs = await client.query_all_orgs(org="branch-1")

        condition = send.call_args.args[0].params["condition"]
        assert orgs == [{"OrgCode": "iccsid"}]
        assert condition["ItemNum"] == 3
        assert condition["Condition"] == organization_condition()["Condition"]
        assert send.call_args.args[0].params["org"] == "branch-1"

    @pytest.mark.asyncio
    async def test_query_third_party_ipc(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(return_value=make_response(200, {"ErrCode": 0}))

        with patch.object(client.http_client, "send", send):
            await client.query_third_party_ipc()

        descriptor = send.call_args.args[0]
        assert descriptor.path_with_query == f"{API_PATHS['QUERY_THIRD_PARTY_IPC']}?pszThirdPartyIPCCode=192168002041"

    @pytest.mark.asyncio
    async def test_get_access_code_is_unauthenticated(self, uniview_config, make_response):
        client = self._client(uniview_config)
        send = AsyncMock(return_value=make_response(200, {"AccessCode": "CODE42"}))

        with patch.object(client.http_client, "send", send):
            assert await client.get_access_code() == {"AccessCode": "CODE42"}

        assert "Authorization" not in send.call_args.args[1]
