"""
KMS key policy documents and the administrator statement merge.

Everything in this module is free of side effects: parsing turns the policy
string returned by KMS into a `PolicyDocument`, and merging returns a new
document, leaving the original untouched.
"""
from dataclasses import dataclass, field
from enum import Enum
from json import JSONDecodeError, dumps, loads
from typing import Any, Optional, Tuple

from .types import JsonObject

DEFAULT_POLICY_VERSION = "2012-10-17"
KEY_POLICY_NAME = "default"

ADMINISTRATOR_STATEMENT_SID = "AllowAccountAdministration"
ADMINISTRATOR_ACTIONS = ["kms:*"]
VIA_SERVICE_CONDITION_KEY = "kms:ViaService"

VERSION_KEY = "Version"
ID_KEY = "Id"
STATEMENT_KEY = "Statement"
SID_KEY = "Sid"
EFFECT_KEY = "Effect"
PRINCIPAL_KEY = "Principal"
ACTION_KEY = "Action"
RESOURCE_KEY = "Resource"
CONDITION_KEY = "Condition"

DOCUMENT_KEYS = (VERSION_KEY, ID_KEY, STATEMENT_KEY)
STATEMENT_KEYS = (SID_KEY, EFFECT_KEY, PRINCIPAL_KEY, ACTION_KEY, RESOURCE_KEY, CONDITION_KEY)


class PolicyParseError(ValueError):
    pass


class Effect(Enum):
    ALLOW = "Allow"
    DENY = "Deny"


@dataclass(frozen=True)
class PolicyStatement:
    """
    One statement of a key policy.

    Keys outside the common set (for example `NotAction` or `NotPrincipal`) are kept in
    `additional` so that they survive a parse and serialize cycle unchanged.
    """

    effect: Effect
    sid: Optional[str] = None
    principal: Any = None
    action: Any = None
    resource: Any = None
    condition: Optional[JsonObject] = None
    additional: JsonObject = field(default_factory=dict)

    @classmethod
    def from_json(cls, statement: Any) -> "PolicyStatement":
        if not isinstance(statement, dict):
            raise PolicyParseError(f"Statement must be an object, got {type(statement).__name__}")

        sid = statement.get(SID_KEY)
        if sid is not None and not isinstance(sid, str):
            raise PolicyParseError(f"Statement ID must be a string, got {sid!r}")

        try:
            effect = Effect(statement.get(EFFECT_KEY))
        except ValueError as error:
            raise PolicyParseError(f"Invalid statement effect: {error}") from error

        condition = statement.get(CONDITION_KEY)
        if condition is not None and not isinstance(condition, dict):
            raise PolicyParseError(f"Statement condition must be an object, got {condition!r}")

        return cls(
            effect=effect,
            sid=sid,
            principal=statement.get(PRINCIPAL_KEY),
            action=statement.get(ACTION_KEY),
            resource=statement.get(RESOURCE_KEY),
            condition=condition,
            additional={
                key: value for key, value in statement.items() if key not in STATEMENT_KEYS
            },
        )

    def to_json(self) -> JsonObject:
        statement: JsonObject = {}
        if self.sid is not None:
            statement[SID_KEY] = self.sid
        statement[EFFECT_KEY] = self.effect.value
        for key, value in (
            (PRINCIPAL_KEY, self.principal),
            (ACTION_KEY, self.action),
            (RESOURCE_KEY, self.resource),
            (CONDITION_KEY, self.condition),
        ):
            if value is not None:
                statement[key] = value
        statement.update(self.additional)
        return statement


@dataclass(frozen=True)
class PolicyDocument:
    statements: Tuple[PolicyStatement, ...]
    version: Optional[str] = None
    policy_id: Optional[str] = None
    additional: JsonObject = field(default_factory=dict)

    def to_json(self) -> JsonObject:
        document: JsonObject = {}
        if self.version is not None:
            document[VERSION_KEY] = self.version
        if self.policy_id is not None:
            document[ID_KEY] = self.policy_id
        document[STATEMENT_KEY] = [statement.to_json() for statement in self.statements]
        document.update(self.additional)
        return document


def parse_policy_document(policy: Any) -> PolicyDocument:
    try:
        document = loads(policy)
    except (JSONDecodeError, TypeError) as error:
        raise PolicyParseError(f"Policy is not valid JSON: {error}") from error

    if not isinstance(document, dict):
        raise PolicyParseError(f"Policy must be an object, got {type(document).__name__}")

    version = document.get(VERSION_KEY)
    if version is not None and not isinstance(version, str):
        raise PolicyParseError(f"Policy version must be a string, got {version!r}")

    policy_id = document.get(ID_KEY)
    if policy_id is not None and not isinstance(policy_id, str):
        raise PolicyParseError(f"Policy ID must be a string, got {policy_id!r}")

    statements = document.get(STATEMENT_KEY, [])
    # A lone statement does not have to be wrapped in a list
    if isinstance(statements, dict):
        statements = [statements]
    if not isinstance(statements, list):
        raise PolicyParseError(f"Policy statements must be a list, got {statements!r}")

    return PolicyDocument(
        statements=tuple(PolicyStatement.from_json(statement) for statement in statements),
        version=version,
        policy_id=policy_id,
        additional={key: value for key, value in document.items() if key not in DOCUMENT_KEYS},
    )


def serialize_policy_document(document: PolicyDocument) -> str:
    return dumps(document.to_json(), separators=(",", ":"))


def administrator_statement(account_id: str, region: str) -> PolicyStatement:
    return PolicyStatement(
        sid=ADMINISTRATOR_STATEMENT_SID,
        effect=Effect.ALLOW,
        principal={"AWS": f"arn:aws:iam::{account_id}:root"},
        action=list(ADMINISTRATOR_ACTIONS),
        resource="*",
        condition={"StringEquals": {VIA_SERVICE_CONDITION_KEY: [f"*.{region}.amazonaws.com"]}},
    )


def merge_administrator_statement(
    document: PolicyDocument, account_id: str, region: str
) -> PolicyDocument:
    """
    Append the account administration statement to a copy of `document`.

    Existing statements are kept as they are and in the same order. An existing statement
    with the administrator Sid is not detected here, so merging the output again adds a
    second copy; callers wanting to avoid that check `has_administrator_statement` first.
    """
    return PolicyDocument(
        statements=document.statements + (administrator_statement(account_id, region),),
        version=document.version or DEFAULT_POLICY_VERSION,
        policy_id=document.policy_id,
        additional=dict(document.additional),
    )


def has_administrator_statement(document: PolicyDocument) -> bool:
    return any(
        statement.sid == ADMINISTRATOR_STATEMENT_SID for statement in document.statements
    )
