"""
tests.test_query

Wire-format tests for the Decision Query and the verdict envelope.
"""

from __future__ import annotations

import json

import pytest
from pydantic import ValidationError

from opa_authz.errors import DeserializeFailed
from opa_authz.models import Action, Principal, Resource
from opa_authz.query import AllowQuery, decode_result, encode_query


def test_query_shape_for_table() -> None:
    principal = Principal.for_user(
        "alice/host.example.com@EXAMPLE.COM",
        groups=["admins", "users"],
        authentication_method="KERBEROS",
    )
    query = AllowQuery.build(principal, Resource.parse("sales:orders"), Action.write)

    payload = json.loads(encode_query(query))
    assert payload == {
        "input": {
            "callerUgi": {
                "userName": "alice/host.example.com@EXAMPLE.COM",
                "shortUserName": "alice",
                "primaryGroup": "admins",
                "groupNames": ["admins", "users"],
                "realUser": None,
                "authenticationMethod": "KERBEROS",
            },
            "table": "sales:orders",
            "namespace": "sales",
            "action": "WRITE",
        }
    }


def test_default_namespace_table_and_namespace_scope() -> None:
    bob = Principal.for_user("bob")

    table = json.loads(encode_query(AllowQuery.build(bob, Resource.parse("t"), Action.read)))
    assert table["input"]["table"] == "t"
    assert table["input"]["namespace"] == "default"

    scoped = json.loads(
        encode_query(AllowQuery.build(bob, Resource.for_namespace("ops"), Action.create))
    )
    assert scoped["input"]["table"] is None
    assert scoped["input"]["namespace"] == "ops"


def test_encoding_is_deterministic() -> None:
    bob = Principal.for_user("bob", groups=["g"])
    first = encode_query(AllowQuery.build(bob, Resource.parse("t"), Action.read))
    second = encode_query(AllowQuery.build(bob, Resource.parse("t"), Action.read))
    assert first == second
    assert encode_query(AllowQuery.build(bob, Resource.parse("t"), Action.read), pretty=True) != first


def test_query_is_immutable() -> None:
    query = AllowQuery.build(Principal.for_user("bob"), Resource.parse("t"), Action.read)
    with pytest.raises(ValidationError):
        query.input.namespace = "other"  # type: ignore[misc]


@pytest.mark.parametrize(
    ("body", "result", "present"),
    [
        ('{"result": true}', True, True),
        ('{"result": false}', False, True),
        ("{}", None, False),
        ('{"result": null}', None, False),
        ('{"result": "true"}', True, True),
        ('{"result": "FALSE"}', False, True),
        ('{"decision_id": "x", "result": true}', True, True),
    ],
)
def test_decode_result(body: str, result: bool | None, present: bool) -> None:
    parsed = decode_result(body)
    assert parsed.result is result
    assert parsed.result_present is present
    assert parsed.allowed is (result is True)


@pytest.mark.parametrize(
    "body",
    [
        '{"result": "maybe"}',
        '{"result": "yes"}',
        '{"result": "on"}',
        '{"result": "t"}',
        '{"result": "y"}',
        '{"result": "1"}',
        '{"result": 1}',
        '{"result": 0}',
        '{"result": [1]}',
        "[]",
        "not json",
        "",
    ],
)
def test_decode_result_rejects_malformed(body: str) -> None:
    with pytest.raises(DeserializeFailed):
        decode_result(body)


def test_resource_parse_rejects_empty_parts() -> None:
    with pytest.raises(ValueError):
        Resource.parse("ns:")
