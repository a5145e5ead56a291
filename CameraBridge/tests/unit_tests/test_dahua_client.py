"""
Unit tests for the Dahua ICC client: RSA login and endpoint wrappers
"""

import base64

import pytest
from cryptography.hazmat.primitives.asymmetric import padding
from unittest.mock import AsyncMock, patch

from CameraBridge.config.vendors.dahua import API_PATHS
from CameraBridge.exceptions import ApiError, AuthError
from CameraBridge.vendors import DahuaClient


class TestDahuaLogin:

    def setup_method(self):
        self.now = [5000.0]

    def _client(self, dahua_config):
        client = DahuaClient(dahua_config)
        client.authenticator.clock = lambda: self.now[0]
        return client

    @pytest.mark.asyncio
    async def test_login_encrypts_password_with_platform_key(self, dahua_config, make_response, rsa_key_pair):
        private_key, public_key = rsa_key_pair
        client = self._client(dahua_config)
        send = AsyncMock(side_effect=[
            make_response(200, {"success": True, "data": {"publicKey": public_key}}),
            make_response(200, {"success": True, "data": {"access_token": "tok", "expires_in": 7200}}),
        ])

        with patch.object(client.http_client, "send", send):
            session = await client.login()

        payload = send.call_args_list[1].args[0].body
        assert private_key.decrypt(base64.b64decode(payload["password"]), padding.PKCS1v15()) == b"Pass@123"
        assert payload["client_id"] == "camera-bridge"
        assert payload["public_key"] == public_key

        assert session.token == "tok"
        assert session.token_type == "bearer"
        assert session.expires_at == 5000.0 + 7200 - 60
        assert client.is_authenticated()

    @pytest.mark.asyncio
    async def test_refused_token_request_raises_auth_error(self, dahua_config, make_response, rsa_key_pair):
        _, public_key = rsa_key_pair
        client = self._client(dahua_config)
        send = AsyncMock(side_effect=[
            make_response(200, {"success": True, "data": {"publicKey": public_key}}),
            make_response(200, {"success": False, "code": "1009", "errMsg": "wrong password"}),
        ])

        with patch.object(client.http_client, "send", send):
            with pytest.raises(AuthError) as exc_info:
                await client.login()

        assert exc_info.value.message == "Login failed: wrong password"
        assert exc_info.value.error_code == "1009"
        assert not client.is_authenticated()

    @pytest.mark.asyncio
    async def test_missing_access_token_raises_auth_error(self, dahua_config, make_response, rsa_key_pair):
        _, public_key = rsa_key_pair
        client = self._client(dahua_config)
        send = AsyncMock(side_effect=[
            make_response(200, {"success": True, "data": {"publicKey": public_key}}),
            make_response(200, {"success": True, "data": {}}),
        ])

        with patch.object(client.http_client, "send", send):
            with pytest.raises(AuthError):
                await client.login()

    @pytest.mark.asyncio
    async def test_unusable_public_key_raises_auth_error(self, dahua_config, make_response):
        client = self._client(dahua_config)
        send = AsyncMock(return_value=make_response(200, {"success": True, "data": {"publicKey": "garbage"}}))

        with patch.object(client.http_client, "send", send):
            with pytest.raises(AuthError):
                await client.login()

        assert send.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_expiry_falls_back_to_default_lifetime(self, dahua_config, make_response, rsa_key_pair):
        _, public_key = rsa_key_pair
        client = self._client(dahua_config)
        send = AsyncMock(side_effect=[
            make_response(200, {"success": True, "data": {"publicKey": public_key}}),
            make_response(200, {"success": True, "data": {"access_token": "tok", "token_type": "Bearer"}}),
        ])

        with patch.object(client.http_client, "send", send):
            session = await client.login()

        assert session.expires_at == 5000.0 + 3600 - 60
        assert session.to_header_value() == "Bearer tok"

    @pytest.mark.asyncio
    async def test_public_key_and_token_helpers(self, dahua_config, make_response, rsa_key_pair):
        _, public_key = rsa_key_pair
        client = self._client(dahua_config)
        token_body = {"success": True, "data": {"access_token": "tok", "expires_in": 60}}
        send = AsyncMock(side_effect=[
            make_response(200, {"success": True, "data": {"publicKey": public_key}}),
            make_response(200, token_body),
        ])

        with patch.object(client.http_client, "send", send):
            assert await client.get_public_key() == public_key
            assert await client.get_access_token(public_key) == token_body

        # Helpers never store the token
        assert not client.is_authenticated()


class TestDahuaEndpoints:

    def _client(self, dahua_config):
        client = DahuaClient(dahua_config)
        client.authenticator.session.store("tok", 3600, now=client.authenticator.clock(), token_type="bearer")
        return client

    @pytest.mark.asyncio
    async def test_get_devices_page_defaults(self, dahua_config, make_response):
        client = self._client(dahua_config)
        send = AsyncMock(return_value=make_response(200, {"success": True, "data": {"pageData": []}}))

        with patch.object(client.http_client, "send", send):
            await client.get_devices_page(categoryCode="01")

        descriptor = send.call_args.args[0]
        assert (descriptor.method, descriptor.path) == ("POST", API_PATHS["DEVICES_PAGE"])
        assert descriptor.body == {"pageNum": 1, "pageSize": 50, "showChildNodeData": 1, "categoryCode": "01"}

    @pytest.mark.asyncio
    async def test_get_organizations_page_is_a_get_with_query(self, dahua_config, make_response):
        client = self._client(dahua_config)
        send = AsyncMock(return_value=make_response(200, {"success": True, "data": {"pageData": []}}))

        with patch.object(client.http_client, "send", send):
            await client.get_organizations_page(page_num=2)

        descriptor = send.call_args.args[0]
        assert descriptor.method == "GET"
        assert descriptor.path_with_query == f"{API_PATHS['ORGANIZATIONS_PAGE']}?pageNum=2&pageSize=1000"

    @pytest.mark.asyncio
    async def test_get_all_organizations_stops_at_total_rows(self, dahua_config, make_response):
        client = self._client(dahua_config)
        send = AsyncMock(side_effect=[
            make_response(200, {"success": True, "data": {"pageData": [{"orgCode": "001"}, {"orgCode": "002"}], "totalRows": 3}}),
            make_response(200, {"success": True, "data": {"pageData": [{"orgCode": "003"}], "totalRows": 3}}),
        ])

        with patch.object(client.http_client, "send", send):
            organizations = await client.get_all_organizations(page_size=2)

        assert [org["orgCode"] for org in organizations] == ["001", "002", "003"]
        assert [call.args[0].params["pageNum"] for call in send.call_args_list] == [1, 2]

    @pytest.mark.asyncio
    async def test_get_all_organizations_rejects_malformed_page(self, dahua_config, make_response):
        client = self._client(dahua_config)
        send = AsyncMock(return_value=make_response(200, {"success": True, "data": {"pageData": "oops"}}))

        with patch.object(client.http_client, "send", send):
            with pytest.raises(ApiError):
                await client.get_all_organizations()

    @pytest.mark.asyncio
    async def test_start_playback_by_time(self, dahua_config, make_response):
        client = self._client(dahua_config)
        request = {"data": {"channelId": "1000001$1$0$0", "startTime": "1700000000", "endTime": "1700003600"}}
        send = AsyncMock(return_value=make_response(200, {"success": True, "data": {"url": "rtsp://x"}}))

        with patch.object(client.http_client, "send", send):
            result = await client.start_playback_by_time(request)

        assert result["data"]["url"] == "rtsp://x"
        assert send.call_args.args[0].path == API_PATHS["PLAYBACK_BY_TIME"]
        assert send.call_args.args[1]["Authorization"] == "bearer tok"
