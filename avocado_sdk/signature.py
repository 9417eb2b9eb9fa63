"""
Signing, hashing and verification of cast messages.
"""
import logging
from typing import Any, Dict, Optional, Tuple, Union, cast

from eth_account import Account
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import keccak
from web3 import Web3

from .config import ZERO_SALT
from .exceptions import SigningError
from .models import (
    CastMessage,
    CastMessageMultisig,
    CastMessageV1,
    CastMessageV2,
    Domain,
    ResolvedVersion,
    Signature,
)
from .registry.base import WalletRegistry
from .resolvers import VersionResolver
from .signer.base import DelegatedSigner, DirectKeySigner, Signer, SignerCapability
from .typed_data import (
    EIP712_DOMAIN_TYPE,
    PRIMARY_TYPE,
    TYPES_MULTISIG,
    TYPES_V1,
    TYPES_V2,
    TypeDict,
    encode_struct,
    types_for_major,
)

logger = logging.getLogger(__name__)


def types_for(message: CastMessage, domain: Domain) -> TypeDict:
    """
    Type dictionary a message is signed with.

    Multisig casts always use the multisig dictionary. Single-signer casts use
    the V1 dictionary when the domain's major version is 1 and V2 otherwise.

    Raises:
        ValueError: If the message shape does not fit the domain version
        TypeError: If ``message`` is not a cast message
    """
    if isinstance(message, CastMessageMultisig):
        return TYPES_MULTISIG
    if isinstance(message, (CastMessageV1, CastMessageV2)):
        types = types_for_major(domain.major)
        expected = TYPES_V1 if isinstance(message, CastMessageV1) else TYPES_V2
        if types is not expected:
            raise ValueError(
                f"{type(message).__name__} cannot be signed for domain version {domain.version}"
            )
        return types
    raise TypeError(f"Unsupported cast message type: {type(message).__name__}")


def _signable(message: CastMessage, domain: Domain) -> SignableMessage:
    types = types_for(message, domain)
    return encode_typed_data(
        domain_data=domain.to_eip712(),
        message_types=types,
        message_data=encode_struct(types, PRIMARY_TYPE, message.to_typed_data()),
    )


def _signature_hex(signature: Union[Signature, str]) -> str:
    return signature.signature if isinstance(signature, Signature) else signature


class SignatureEngine:
    """
    Produces and checks cast signatures.

    Args:
        signer: Key-holder producing the signatures
        registry: Remote registry used for verification
        version_resolver: Resolves which verification entrypoint applies
        logger: Optional logger instance
    """

    def __init__(
        self,
        signer: Signer,
        registry: WalletRegistry,
        version_resolver: Optional[VersionResolver] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.signer = signer
        self.registry = registry
        self.version_resolver = version_resolver or VersionResolver(registry)
        self.logger = logger or logging.getLogger(__name__)

    @staticmethod
    def typed_data(message: CastMessage, domain: Domain) -> Dict[str, Any]:
        """JSON-serialisable ``eth_signTypedData_v4`` payload for ``message``."""
        return {
            "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, **types_for(message, domain)},
            "domain": domain.to_json(),
            "primaryType": PRIMARY_TYPE,
            "message": message.to_typed_data(),
        }

    @staticmethod
    def digest(message: CastMessage, domain: Domain) -> str:
        """EIP-712 digest of ``message`` under ``domain``, as 0x-prefixed hex."""
        signable = _signable(message, domain)
        return Web3.to_hex(keccak(b"\x19" + signable.version + signable.header + signable.body))

    @staticmethod
    def recover(message: CastMessage, domain: Domain, signature: Union[Signature, str]) -> str:
        """Address that produced ``signature`` over ``message`` (offline check)."""
        return Account.recover_message(_signable(message, domain), signature=_signature_hex(signature))

    async def sign(self, message: CastMessage, domain: Domain) -> Signature:
        """
        Sign ``message`` under ``domain`` with the configured key-holder.

        Raises:
            SigningError: If the key-holder returns no signature
        """
        types = types_for(message, domain)
        owner = await self.signer.get_address()

        capability = self.signer.capability
        if capability == SignerCapability.DIRECT_KEY:
            direct = cast(DirectKeySigner, self.signer)
            signature = await direct.sign_typed_data(
                domain.to_eip712(),
                types,
                encode_struct(types, PRIMARY_TYPE, message.to_typed_data()),
            )
        elif capability == SignerCapability.DELEGATED:
            delegated = cast(DelegatedSigner, self.signer)
            self.logger.info(f"Requesting typed-data signature from {owner}")
            signature = await delegated.request_typed_data_signature(
                owner, self.typed_data(message, domain)
            )
        else:
            raise TypeError(f"Unsupported signer capability: {capability!r}")

        if not signature:
            raise SigningError("Failed to get signature")

        self.logger.debug(f"Signed {type(message).__name__} for chain {domain.target_chain_id}")
        signer = owner if isinstance(message, CastMessageMultisig) else None
        return Signature(signature=signature, signer=signer)

    async def verify(
        self,
        message: CastMessage,
        domain: Domain,
        signature: Union[Signature, str],
    ) -> bool:
        """
        Verify ``signature`` through the forwarder's static verification entrypoint.

        The entrypoint is selected by the wallet version on the target chain;
        multisig casts always go through the V3 entrypoint.
        """
        chain_id = domain.target_chain_id
        wallet = domain.verifying_contract
        sig = _signature_hex(signature)
        wire = message.to_typed_data()

        owner = await self.registry.wallet_owner(chain_id, wallet)

        if isinstance(message, CastMessageMultisig):
            return await self.registry.verify_v3(
                chain_id, owner, wire["params"], wire["forwardParams"], sig
            )

        if not isinstance(message, (CastMessageV1, CastMessageV2)):
            raise TypeError(f"Unsupported cast message type: {type(message).__name__}")

        version = await self.version_resolver.resolve(chain_id, wallet)

        if version == ResolvedVersion.V3:
            if not isinstance(message, CastMessageV2):
                raise ValueError("V3 wallets verify V2-shaped casts only")
            params, forward_params = _v3_structs(wire)
            return await self.registry.verify_v3(chain_id, owner, params, forward_params, sig)

        if version == ResolvedVersion.V2:
            if not isinstance(message, CastMessageV2):
                raise ValueError("V2 wallets verify V2-shaped casts only")
            return await self.registry.verify_v2(chain_id, owner, wire, sig)

        if version == ResolvedVersion.V1:
            if not isinstance(message, CastMessageV1):
                raise ValueError("V1 wallets verify V1-shaped casts only")
            return await self.registry.verify_v1(chain_id, owner, wire, sig)

        raise TypeError(f"No verification entrypoint for version {version!r}")


def _v3_structs(wire: Dict[str, Any]) -> Tuple[Dict[str, Any], Dict[str, Any]]:
    """Split a V2-shaped cast into the params / forward params structs of ``verifyV3``."""
    # Best-effort mapping: V3 wallets hash with the V3 typehash, so a V2-typed
    # signature checked this way can still be rejected on-chain. Fields the V2
    # shape lacks are zero-filled.
    params = wire["params"]
    return (
        {
            "actions": wire["actions"],
            "id": params["id"],
            "avoNonce": wire["avoSafeNonce"],
            "salt": ZERO_SALT,
            "source": params["source"],
            "metadata": params["metadata"],
        },
        {
            "gas": params["gas"],
            "gasPrice": "0",
            "validAfter": "0",
            "validUntil": params["validUntil"],
            "value": "0",
        },
    )
