"""Static description of the single emulated user pool.

Only ``EstimatedNumberOfUsers`` is live; everything else is fixed for the
local deployment.
"""
from __future__ import annotations
from typing import Any, Dict, List, Optional

SUB_ATTRIBUTE = "sub"
CUSTOM_PREFIX = "custom:"


def _string_attr(
    name: str,
    required: bool = False,
    mutable: bool = True,
    min_length: str = "0",
    max_length: str = "2048",
) -> Dict[str, Any]:
    return {
        "Name": name,
        "AttributeDataType": "String",
        "DeveloperOnlyAttribute": False,
        "Mutable": mutable,
        "Required": required,
        "StringAttributeConstraints": {"MinLength": min_length, "MaxLength": max_length},
    }


def _bool_attr(name: str) -> Dict[str, Any]:
    return {
        "Name": name,
        "AttributeDataType": "Boolean",
        "DeveloperOnlyAttribute": False,
        "Mutable": True,
        "Required": False,
    }


SCHEMA_ATTRIBUTES: List[Dict[str, Any]] = [
    _string_attr(SUB_ATTRIBUTE, required=True, mutable=False, min_length="1"),
    _string_attr("email", required=True),
    _bool_attr("email_verified"),
    _string_attr("given_name"),
    _string_attr("family_name"),
    _string_attr("name"),
    _string_attr("middle_name"),
    _string_attr("nickname"),
    _string_attr("preferred_username"),
    _string_attr("profile"),
    _string_attr("picture"),
    _string_attr("website"),
    _string_attr("gender"),
    _string_attr("birthdate", min_length="10", max_length="10"),
    _string_attr("zoneinfo"),
    _string_attr("locale"),
    _string_attr("phone_number"),
    _bool_attr("phone_number_verified"),
    _string_attr("address"),
    {
        "Name": "updated_at",
        "AttributeDataType": "Number",
        "DeveloperOnlyAttribute": False,
        "Mutable": True,
        "Required": False,
        "NumberAttributeConstraints": {"MinValue": "0"},
    },
    {
        "Name": "identities",
        "AttributeDataType": "String",
        "DeveloperOnlyAttribute": False,
        "Mutable": True,
        "Required": False,
        "StringAttributeConstraints": {},
    },
]

PASSWORD_POLICY: Dict[str, Any] = {
    "MinimumLength": 8,
    "RequireUppercase": True,
    "RequireLowercase": True,
    "RequireNumbers": True,
    "RequireSymbols": True,
    "TemporaryPasswordValidityDays": 7,
}

ACCOUNT_RECOVERY_SETTING: Dict[str, Any] = {
    "RecoveryMechanisms": [
        {"Priority": 1, "Name": "verified_email"},
        {"Priority": 2, "Name": "verified_phone_number"},
    ],
}

MFA_CONFIGURATION = "OFF"


def schema_attribute(name: str) -> Optional[Dict[str, Any]]:
    """Look up a pool schema attribute by its standard Cognito name; custom names never match."""
    for attr in SCHEMA_ATTRIBUTES:
        if attr["Name"] == name:
            return attr
    return None


def is_required_attribute(name: str) -> bool:
    attr = schema_attribute(name)
    return bool(attr and attr["Required"])


def is_immutable_attribute(name: str) -> bool:
    attr = schema_attribute(name)
    return bool(attr and not attr["Mutable"])


def user_pool_template(pool_id: str, pool_name: str) -> Dict[str, Any]:
    """Everything ``DescribeUserPool`` returns except the live user count.

    Dates are left to the caller so each response carries its own "now".
    """
    return {
        "Id": pool_id,
        "Name": pool_name,
        "Policies": {
            "PasswordPolicy": dict(PASSWORD_POLICY),
            "SignInPolicy": {"AllowedFirstAuthFactors": ["PASSWORD"]},
        },
        "DeletionProtection": "ACTIVE",
        "LambdaConfig": {},
        "SchemaAttributes": [dict(attr) for attr in SCHEMA_ATTRIBUTES],
        "AutoVerifiedAttributes": ["email"],
        "VerificationMessageTemplate": {"DefaultEmailOption": "CONFIRM_WITH_CODE"},
        "UserAttributeUpdateSettings": {"AttributesRequireVerificationBeforeUpdate": []},
        "MfaConfiguration": MFA_CONFIGURATION,
        "EmailConfiguration": {"EmailSendingAccount": "COGNITO_DEFAULT"},
        "UserPoolTags": {},
        "Domain": "local_domain",
        "AdminCreateUserConfig": {
            "AllowAdminCreateUserOnly": True,
            "UnusedAccountValidityDays": 7,
        },
        "UsernameConfiguration": {"CaseSensitive": False},
        "Arn": f"arn:aws:cognito-idp:local_region:userpool/{pool_id}",
        "AccountRecoverySetting": {
            "RecoveryMechanisms": [dict(m) for m in ACCOUNT_RECOVERY_SETTING["RecoveryMechanisms"]],
        },
        "UserPoolTier": "ESSENTIALS",
    }
