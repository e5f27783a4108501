"""
JSON-RPC transport and result parsing.
"""

import base64

import pytest
import requests

from creek_bot.errors import SuiRPCError
from creek_bot.helpers.sui_rpc import SuiClient, effects_status

from fakes import failure, success


class FakeResponse:
    def __init__(self, body=None, status=200, bad_json=False):
        self.body = body
        self.status = status
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status >= 400:
            raise requests.exceptions.HTTPError(f"{self.status} Server Error")

    def json(self):
        if self.bad_json:
            raise requests.exceptions.JSONDecodeError("Expecting value", "<html>", 0)
        return self.body


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.payloads = []

    def post(self, url, json=None, headers=None, timeout=None):
        self.payloads.append(json)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def client_with(*responses):
    session = FakeSession(*responses)
    return SuiClient("http://fullnode.invalid", session=session), session


class TestCall:

    def test_result_and_payload(self):
        client, session = client_with(FakeResponse({"jsonrpc": "2.0", "id": 1, "result": "1000"}))
        assert client.get_reference_gas_price() == 1000
        assert session.payloads[0]["method"] == "suix_getReferenceGasPrice"
        assert session.payloads[0]["id"] == 1

    def test_rpc_error_keeps_message_and_code(self):
        client, _ = client_with(FakeResponse({"error": {"code": -32602, "message": "Invalid params"}}))
        with pytest.raises(SuiRPCError, match="sui_getObject: Invalid params") as exc:
            client.get_object("0x1")
        assert exc.value.code == -32602

    def test_http_error(self):
        client, _ = client_with(FakeResponse(status=503))
        with pytest.raises(SuiRPCError, match="503"):
            client.get_normalized_modules("0x2")

    def test_connection_error(self):
        client, _ = client_with(requests.exceptions.ConnectionError("refused"))
        with pytest.raises(SuiRPCError, match="refused"):
            client.get_balance("0x1", "0x2::sui::SUI")

    def test_bad_json(self):
        client, _ = client_with(FakeResponse(bad_json=True))
        with pytest.raises(SuiRPCError, match="invalid JSON"):
            client.get_reference_gas_price()


class TestPaging:

    def test_owned_objects_across_pages(self):
        client, session = client_with(
            FakeResponse({"result": {"data": [{"data": {"objectId": "0xa"}}], "hasNextPage": True, "nextCursor": "c1"}}),
            FakeResponse({"result": {"data": [{"data": {"objectId": "0xb"}}], "hasNextPage": False}}),
        )
        items = list(client.iter_owned_objects("0xowner", "0x2::coin::Coin"))
        assert [i["data"]["objectId"] for i in items] == ["0xa", "0xb"]
        assert session.payloads[1]["params"][2] == "c1"
        assert session.payloads[0]["params"][1]["filter"] == {"StructType": "0x2::coin::Coin"}


class TestTransactions:

    def test_dry_run_sends_base64(self):
        client, session = client_with(FakeResponse({"result": success()}))
        client.dry_run(b"\x00\x01")
        assert session.payloads[0]["params"] == [base64.b64encode(b"\x00\x01").decode()]

    def test_execute_waits_for_local_execution(self):
        client, session = client_with(FakeResponse({"result": success(digest="D1")}))
        assert client.execute(b"\x00", ["sig"])["digest"] == "D1"
        assert session.payloads[0]["params"][1] == ["sig"]
        assert session.payloads[0]["params"][3] == "WaitForLocalExecution"

    def test_effects_status(self):
        assert effects_status(success()) == (True, None)
        assert effects_status(failure("MoveAbort 7")) == (False, "MoveAbort 7")
        assert effects_status({}) == (False, "transaction failed")
