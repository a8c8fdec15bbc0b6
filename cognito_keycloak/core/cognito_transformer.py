"""Cognito ↔ Keycloak data transformations.

Cognito carries user attributes as an ordered list of ``{"Name", "Value"}``
pairs; Keycloak keeps a handful of top-level fields (email, firstName, ...)
plus a map of attribute name to a list of values. Group metadata Cognito
exposes as fields (description, precedence, role ARN, dates) lives in the
Keycloak group attribute bag.

Usage:
    # Keycloak → Cognito
    user = CognitoTransformer.to_external_user(kc_user)

    # Cognito → Keycloak
    attributes = CognitoTransformer.to_backend_attributes(request["UserAttributes"])

Mapping never raises: missing or malformed optional input degrades to an
absent field.
"""
from __future__ import annotations
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .keycloak.users import UPDATE_PASSWORD
from .user_pool_template import CUSTOM_PREFIX, SUB_ATTRIBUTE, schema_attribute, user_pool_template

LAST_MODIFIED_KEY = "lastModifiedDate"
CREATION_DATE_KEY = "creationDate"

# Cognito standard attribute -> Keycloak top-level user field
STANDARD_FIELDS = {
    "email": "email",
    "given_name": "firstName",
    "family_name": "lastName",
}
EMAIL_VERIFIED = "email_verified"

# Keycloak attribute keys that are represented elsewhere in the Cognito view
_MAPPED_BACKEND_KEYS = frozenset({"email", "firstName", "lastName", "emailVerified", LAST_MODIFIED_KEY, SUB_ATTRIBUTE})

# Custom attributes whose bare name is already taken are stored under this prefix
ESCAPED_CUSTOM_PREFIX = "custom."
_RESERVED_BACKEND_KEYS = _MAPPED_BACKEND_KEYS | {"username"}


class UserStatus(str, Enum):
    """Cognito ``UserStatusType``."""

    CONFIRMED = "CONFIRMED"
    FORCE_CHANGE_PASSWORD = "FORCE_CHANGE_PASSWORD"
    ARCHIVED = "ARCHIVED"
    RESET_REQUIRED = "RESET_REQUIRED"
    UNCONFIRMED = "UNCONFIRMED"
    COMPROMISED = "COMPROMISED"
    EXTERNAL_PROVIDER = "EXTERNAL_PROVIDER"
    UNKNOWN = "UNKNOWN"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def isoformat(value: datetime) -> str:
    """ISO-8601 with millisecond precision and ``Z`` suffix."""
    return value.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string or epoch milliseconds; None when unparseable."""
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed
    return None


def _first(values: Any) -> Optional[str]:
    if isinstance(values, list) and values:
        return values[0]
    return None


def backend_attribute_key(name: str) -> str:
    """Keycloak attribute key for a Cognito attribute name.

    ``custom:team`` is stored as ``team``. A custom name whose bare form is
    taken (``custom:email``, ``custom:locale``, ...) is stored as
    ``custom.email`` so it cannot shadow the standard attribute. Plain names
    are stored unchanged.
    """
    if not name.startswith(CUSTOM_PREFIX):
        return name
    key = name[len(CUSTOM_PREFIX):]
    if key in _RESERVED_BACKEND_KEYS or schema_attribute(key) is not None or key.startswith(ESCAPED_CUSTOM_PREFIX):
        return f"{ESCAPED_CUSTOM_PREFIX}{key}"
    return key


def external_attribute_name(key: str) -> str:
    """Cognito name for a Keycloak attribute key; inverse of ``backend_attribute_key``.

    Pool schema attributes without a top-level Keycloak field (phone_number,
    locale, ...) keep their standard name; everything else is ``custom:``.
    """
    if key.startswith(ESCAPED_CUSTOM_PREFIX):
        return f"{CUSTOM_PREFIX}{key[len(ESCAPED_CUSTOM_PREFIX):]}"
    if key not in STANDARD_FIELDS and key != EMAIL_VERIFIED and schema_attribute(key) is not None:
        return key
    return f"{CUSTOM_PREFIX}{key}"


class CognitoTransformer:
    """Bidirectional transformer for Cognito/Keycloak representations."""

    @staticmethod
    def to_backend_attributes(attributes: Optional[Iterable[Dict[str, Any]]]) -> Dict[str, List[str]]:
        """Convert Cognito ``AttributeType`` list to a Keycloak attribute map.

        Example:
            >>> CognitoTransformer.to_backend_attributes([{"Name": "custom:team", "Value": "blue"}])
            {'team': ['blue']}
        """
        result: Dict[str, List[str]] = {}
        for attr in attributes or []:
            if not isinstance(attr, dict):
                continue
            name = attr.get("Name")
            value = attr.get("Value")
            if not name or value is None:
                continue
            result[backend_attribute_key(name)] = [value]
        return result

    @staticmethod
    def to_external_attributes(user: Dict[str, Any]) -> List[Dict[str, str]]:
        """Convert a Keycloak user to a Cognito ``AttributeType`` list.

        Order: email, email_verified, given_name, family_name, sub, then
        custom attributes. ``sub`` is the Keycloak user id; it is never
        writable through this API.
        """
        attributes: List[Dict[str, str]] = []

        if user.get("email"):
            attributes.append({"Name": "email", "Value": user["email"]})
        if user.get("emailVerified") is not None:
            attributes.append({"Name": EMAIL_VERIFIED, "Value": "true" if user["emailVerified"] else "false"})
        if user.get("firstName"):
            attributes.append({"Name": "given_name", "Value": user["firstName"]})
        if user.get("lastName"):
            attributes.append({"Name": "family_name", "Value": user["lastName"]})
        if user.get("id"):
            attributes.append({"Name": SUB_ATTRIBUTE, "Value": user["id"]})

        for key, values in (user.get("attributes") or {}).items():
            if key in _MAPPED_BACKEND_KEYS:
                continue
            value = _first(values)
            if value is not None:
                attributes.append({"Name": external_attribute_name(key), "Value": value})

        return attributes

    @staticmethod
    def to_external_status(enabled: Optional[bool], required_actions: Optional[Iterable[str]]) -> UserStatus:
        """Derive Cognito status from Keycloak state.

        disabled -> ARCHIVED; pending UPDATE_PASSWORD -> FORCE_CHANGE_PASSWORD;
        otherwise CONFIRMED.
        """
        if not enabled:
            return UserStatus.ARCHIVED
        if UPDATE_PASSWORD in (required_actions or ()):
            return UserStatus.FORCE_CHANGE_PASSWORD
        return UserStatus.CONFIRMED

    @staticmethod
    def user_dates(user: Dict[str, Any]) -> tuple[Optional[datetime], Optional[datetime]]:
        """Return (created, last_modified); last_modified falls back to created."""
        created = parse_timestamp(user.get("createdTimestamp"))
        modified = parse_timestamp(_first((user.get("attributes") or {}).get(LAST_MODIFIED_KEY)))
        return created, modified or created

    @staticmethod
    def to_external_user(user: Dict[str, Any]) -> Dict[str, Any]:
        """Convert Keycloak user to Cognito ``UserType``."""
        created, modified = CognitoTransformer.user_dates(user)
        status = CognitoTransformer.to_external_status(user.get("enabled"), user.get("requiredActions"))
        return {
            "Username": user.get("username") or user.get("id"),
            "Attributes": CognitoTransformer.to_external_attributes(user),
            "UserCreateDate": created,
            "UserLastModifiedDate": modified,
            "Enabled": bool(user.get("enabled")),
            "UserStatus": status.value,
        }

    @staticmethod
    def to_external_group(group: Dict[str, Any], user_pool_id: Optional[str] = None) -> Dict[str, Any]:
        """Convert Keycloak group to Cognito ``GroupType``."""
        attributes = group.get("attributes") or {}

        precedence: Optional[int] = None
        raw_precedence = _first(attributes.get("precedence"))
        if raw_precedence is not None:
            try:
                precedence = int(raw_precedence)
            except (TypeError, ValueError):
                precedence = None

        created = parse_timestamp(_first(attributes.get(CREATION_DATE_KEY))) or utcnow()
        modified = parse_timestamp(_first(attributes.get(LAST_MODIFIED_KEY))) or created

        return {
            "GroupName": group.get("name"),
            "UserPoolId": user_pool_id,
            "Description": _first(attributes.get("description")),
            "Precedence": precedence,
            "RoleArn": _first(attributes.get("roleArn")),
            "CreationDate": created,
            "LastModifiedDate": modified,
        }

    @staticmethod
    def to_external_user_pool(pool_id: str, live_user_count: int, pool_name: str = "Local Development Pool") -> Dict[str, Any]:
        """Merge the static pool template with the live user count."""
        now = utcnow()
        pool = user_pool_template(pool_id, pool_name)
        pool["EstimatedNumberOfUsers"] = live_user_count
        pool["CreationDate"] = now
        pool["LastModifiedDate"] = now
        return pool


def with_last_modified(attributes: Optional[Dict[str, List[str]]], now: Optional[datetime] = None) -> Dict[str, List[str]]:
    """Copy of a Keycloak attribute map with ``lastModifiedDate`` set to now."""
    stamped = dict(attributes or {})
    stamped[LAST_MODIFIED_KEY] = [isoformat(now or utcnow())]
    return stamped


def get_attribute_value(attributes: Optional[Iterable[Dict[str, Any]]], name: str) -> Optional[str]:
    """Value of the first attribute named ``name``, if any."""
    for attr in attributes or []:
        if isinstance(attr, dict) and attr.get("Name") == name:
            return attr.get("Value")
    return None


to_backend_attributes = CognitoTransformer.to_backend_attributes
to_external_attributes = CognitoTransformer.to_external_attributes
to_external_status = CognitoTransformer.to_external_status
to_external_user = CognitoTransformer.to_external_user
to_external_group = CognitoTransformer.to_external_group
to_external_user_pool = CognitoTransformer.to_external_user_pool
