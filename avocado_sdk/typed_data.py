"""
EIP-712 type dictionaries for Avocado casts and helpers to encode values for them.

The dictionaries must match the deployed contracts byte for byte: they are the
input to the signing digest, so a renamed or reordered field changes every
signature.
"""
import re
from typing import Any, Dict, List

from eth_utils import to_checksum_address
from hexbytes import HexBytes

TypeDict = Dict[str, List[Dict[str, str]]]

PRIMARY_TYPE = "Cast"

TYPES_V1: TypeDict = {
    "Cast": [
        {"name": "actions", "type": "Action[]"},
        {"name": "validUntil", "type": "uint256"},
        {"name": "gas", "type": "uint256"},
        {"name": "source", "type": "address"},
        {"name": "metadata", "type": "bytes"},
        {"name": "avoSafeNonce", "type": "uint256"},
    ],
    "Action": [
        {"name": "target", "type": "address"},
        {"name": "data", "type": "bytes"},
        {"name": "value", "type": "uint256"},
    ],
}

TYPES_V2: TypeDict = {
    "Cast": [
        {"name": "actions", "type": "Action[]"},
        {"name": "params", "type": "CastParams"},
        {"name": "avoSafeNonce", "type": "uint256"},
    ],
    "Action": [
        {"name": "target", "type": "address"},
        {"name": "data", "type": "bytes"},
        {"name": "value", "type": "uint256"},
        {"name": "operation", "type": "uint256"},
    ],
    "CastParams": [
        {"name": "validUntil", "type": "uint256"},
        {"name": "gas", "type": "uint256"},
        {"name": "source", "type": "address"},
        {"name": "id", "type": "uint256"},
        {"name": "metadata", "type": "bytes"},
    ],
}

TYPES_MULTISIG: TypeDict = {
    "Action": [
        {"name": "target", "type": "address"},
        {"name": "data", "type": "bytes"},
        {"name": "value", "type": "uint256"},
        {"name": "operation", "type": "uint256"},
    ],
    "Cast": [
        {"name": "params", "type": "CastParams"},
        {"name": "forwardParams", "type": "CastForwardParams"},
    ],
    "CastForwardParams": [
        {"name": "gas", "type": "uint256"},
        {"name": "gasPrice", "type": "uint256"},
        {"name": "validAfter", "type": "uint256"},
        {"name": "validUntil", "type": "uint256"},
        {"name": "value", "type": "uint256"},
    ],
    "CastParams": [
        {"name": "actions", "type": "Action[]"},
        {"name": "id", "type": "uint256"},
        {"name": "avoNonce", "type": "int256"},
        {"name": "salt", "type": "bytes32"},
        {"name": "source", "type": "address"},
        {"name": "metadata", "type": "bytes"},
    ],
}

# Signature struct accepted by the V3 verification entrypoint
TYPES_SIGNATURE_PARAMS: TypeDict = {
    "SignatureParams": [
        {"name": "signature", "type": "bytes"},
        {"name": "signer", "type": "address"},
    ],
}

EIP712_DOMAIN_TYPE: List[Dict[str, str]] = [
    {"name": "name", "type": "string"},
    {"name": "version", "type": "string"},
    {"name": "chainId", "type": "uint256"},
    {"name": "verifyingContract", "type": "address"},
    {"name": "salt", "type": "bytes32"},
]

_MAJOR_RE = re.compile(r"^\s*v?(\d+)(?:\.\d+)?(?:\.\d+)?(?:[-+].*)?\s*$")


def version_major(version: str) -> int:
    """
    Major component of a semantic version string.

    Unparseable versions and a major of 0 count as 1, the oldest wallet schema.
    """
    match = _MAJOR_RE.match(version or "")
    if not match:
        return 1
    return int(match.group(1)) or 1


def types_for_major(major: int) -> TypeDict:
    return TYPES_V1 if major == 1 else TYPES_V2


def field_names(types: TypeDict, type_name: str) -> List[str]:
    return [field["name"] for field in types[type_name]]


def encode_struct(types: TypeDict, type_name: str, value: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a wire-format struct (decimal strings, hex strings) into the
    python values eth_account encodes (ints, bytes).

    Raises:
        ValueError: If ``value`` has missing or extra fields for ``type_name``
    """
    if not isinstance(value, dict):
        raise ValueError(f"{type_name} must be a dictionary, got {type(value).__name__}")

    expected = field_names(types, type_name)
    missing = [name for name in expected if name not in value]
    extra = sorted(set(value) - set(expected))
    if missing or extra:
        raise ValueError(
            f"{type_name} does not match its type definition "
            f"(missing: {missing or 'none'}, extra: {extra or 'none'})"
        )

    return {
        field["name"]: _encode_field(types, field["type"], value[field["name"]])
        for field in types[type_name]
    }


def _encode_field(types: TypeDict, type_: str, value: Any) -> Any:
    if type_.endswith("[]"):
        return [_encode_field(types, type_[:-2], item) for item in value]
    if type_ in types:
        return encode_struct(types, type_, value)
    if type_.startswith(("uint", "int")):
        return _to_int(value)
    if type_.startswith("bytes"):
        return bytes(HexBytes(value)) if isinstance(value, str) else bytes(value)
    if type_ == "address":
        return to_checksum_address(value)
    return value


def _to_int(value: Any) -> int:
    if isinstance(value, str):
        value = value.strip()
        if value.lower().startswith(("0x", "-0x")):
            return int(value, 16)
        return int(value)
    return int(value)


def abi_components(types: TypeDict, type_name: str) -> List[Dict[str, Any]]:
    """ABI ``components`` for a struct, derived from its EIP-712 definition."""
    components = []
    for field in types[type_name]:
        base = field["type"][:-2] if field["type"].endswith("[]") else field["type"]
        if base in types:
            suffix = "[]" if field["type"].endswith("[]") else ""
            components.append({
                "name": field["name"],
                "type": f"tuple{suffix}",
                "components": abi_components(types, base),
            })
        else:
            components.append({"name": field["name"], "type": field["type"]})
    return components


def as_abi_tuple(types: TypeDict, type_name: str, value: Dict[str, Any]) -> tuple:
    """Positional tuple for a struct argument of a contract call."""
    encoded = encode_struct(types, type_name, value)
    return _tuple_from_encoded(types, type_name, encoded)


def _tuple_from_encoded(types: TypeDict, type_name: str, encoded: Dict[str, Any]) -> tuple:
    items = []
    for field in types[type_name]:
        base = field["type"][:-2] if field["type"].endswith("[]") else field["type"]
        item = encoded[field["name"]]
        if base in types:
            if field["type"].endswith("[]"):
                item = [_tuple_from_encoded(types, base, entry) for entry in item]
            else:
                item = _tuple_from_encoded(types, base, item)
        items.append(item)
    return tuple(items)
