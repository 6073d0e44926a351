"""
opa_authz.query

Wire models for the policy engine.

Responsibilities:
- Build the immutable Decision Query (`{"input": {...}}`) per authorization attempt.
- Serialize it deterministically for transport and logging.
- Parse the verdict envelope while preserving "result absent" vs "result false".
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, StrictBool, ValidationError
from pydantic_core import PydanticSerializationError

from opa_authz.errors import DeserializeFailed, SerializeFailed
from opa_authz.models import Action, Principal, Resource


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class CallerUgi(_WireModel):
    user_name: str = Field(alias="userName")
    short_user_name: str = Field(alias="shortUserName")
    primary_group: str | None = Field(default=None, alias="primaryGroup")
    group_names: tuple[str, ...] = Field(default=(), alias="groupNames")
    real_user: str | None = Field(default=None, alias="realUser")
    authentication_method: str = Field(default="SIMPLE", alias="authenticationMethod")

    @classmethod
    def from_principal(cls, principal: Principal) -> CallerUgi:
        return cls(
            user_name=principal.name,
            short_user_name=principal.short_name,
            primary_group=principal.primary_group,
            group_names=principal.groups,
            real_user=principal.real_user,
            authentication_method=principal.authentication_method,
        )


class AllowQueryInput(_WireModel):
    caller_ugi: CallerUgi = Field(alias="callerUgi")
    # Null for namespace-scoped actions.
    table: str | None
    namespace: str
    action: Action


class AllowQuery(_WireModel):
    input: AllowQueryInput

    @classmethod
    def build(cls, principal: Principal, resource: Resource, action: Action) -> AllowQuery:
        return cls(
            input=AllowQueryInput(
                caller_ugi=CallerUgi.from_principal(principal),
                table=resource.qualified_name,
                namespace=resource.namespace,
                action=action,
            )
        )


def encode_query(query: AllowQuery, *, pretty: bool = False) -> str:
    # Field order is fixed by the model definitions, so output is deterministic.
    try:
        return query.model_dump_json(by_alias=True, indent=2 if pretty else None)
    except PydanticSerializationError as e:
        raise SerializeFailed(e) from e


def _verdict_from_string(value: Any) -> Any:
    # Some engines answer {"result": "true"}; no other string or number is a boolean.
    if isinstance(value, str) and value.lower() in ("true", "false"):
        return value.lower() == "true"
    return value


Verdict = Annotated[StrictBool | None, BeforeValidator(_verdict_from_string)]


class QueryResult(BaseModel):
    """
    Verdict envelope. `result` is None when the engine omitted the field
    (undefined decision); both None and False mean deny.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    result: Verdict = None

    @property
    def allowed(self) -> bool:
        return self.result is True

    @property
    def result_present(self) -> bool:
        return self.result is not None


def decode_result(body: bytes | str) -> QueryResult:
    try:
        return QueryResult.model_validate_json(body)
    except ValidationError as e:
        text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
        raise DeserializeFailed(e, text) from e


# --- Module Notes -----------------------------------------------------------
# Only `input` is sent; policy documents address fields as `input.callerUgi.userName`, etc.
