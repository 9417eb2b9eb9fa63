"""
Builds canonical cast messages from transaction intents.
"""
import logging
from typing import List, Optional, Sequence, Union

from .config import AvocadoConfig
from .exceptions import InvalidNonceError
from .models import (
    Action,
    ActionV1,
    CastForwardParams,
    CastMessage,
    CastMessageMultisig,
    CastMessageV1,
    CastMessageV2,
    CastParamsMultisig,
    CastParamsV2,
    ResolvedVersion,
    SignatureOptions,
    TransactionIntent,
)
from .resolvers import NonceResolver, VersionResolver

logger = logging.getLogger(__name__)

DEFAULT_OPERATION = "0"
EMPTY_BYTES = "0x"
ZERO = "0"


def _actions(intents: Sequence[TransactionIntent]) -> List[Action]:
    return [
        Action(
            operation=intent.operation or DEFAULT_OPERATION,
            target=intent.to,
            data=intent.data or EMPTY_BYTES,
            value=str(intent.value or 0),
        )
        for intent in intents
    ]


def _actions_v1(intents: Sequence[TransactionIntent]) -> List[ActionV1]:
    return [
        ActionV1(
            target=intent.to,
            data=intent.data or EMPTY_BYTES,
            value=str(intent.value or 0),
        )
        for intent in intents
    ]


def _is_negative(nonce: Optional[Union[int, str]]) -> bool:
    if nonce is None:
        return False
    try:
        return int(str(nonce).strip()) < 0
    except ValueError:
        return False


class MessageBuilder:
    """
    Maps intents plus options to the cast message of the resolved wallet version.

    Building only reads the nonce and the wallet version; both reads are
    skipped when the options override them.
    """

    def __init__(
        self,
        nonce_resolver: NonceResolver,
        version_resolver: VersionResolver,
        config: Optional[AvocadoConfig] = None,
    ):
        self.nonce_resolver = nonce_resolver
        self.version_resolver = version_resolver
        self.config = config or AvocadoConfig()

    async def build(
        self,
        intents: Sequence[TransactionIntent],
        chain_id: int,
        owner: str,
        wallet: str,
        options: Optional[SignatureOptions] = None,
    ) -> CastMessage:
        """
        Build a single-signer cast.

        Args:
            intents: Calls to execute, in order
            chain_id: Target chain
            owner: Owner EOA (for the nonce lookup)
            wallet: Wallet address (for the version lookup)
            options: Optional overrides

        Returns:
            ``CastMessageV1`` for V1 wallets, ``CastMessageV2`` otherwise

        Raises:
            InvalidNonceError: If the nonce override is negative
            ResolutionError: If a nonce or version lookup fails
        """
        options = options or SignatureOptions()

        if _is_negative(options.avo_safe_nonce):
            # avoSafeNonce is a uint256; the -1 sentinel exists for multisig casts only
            raise InvalidNonceError(
                f"Nonce override {options.avo_safe_nonce!r} is not valid for a single-signer cast"
            )

        avo_safe_nonce = await self.nonce_resolver.resolve_sequential(
            chain_id, owner, override=options.avo_safe_nonce
        )
        version = await self.version_resolver.resolve(
            chain_id, wallet, version_override=options.version
        )

        if version in (ResolvedVersion.V2, ResolvedVersion.V3):
            return CastMessageV2(
                actions=_actions(intents),
                params=CastParamsV2(
                    metadata=options.metadata or EMPTY_BYTES,
                    source=options.source or self.config.default_source,
                    id=options.id or ZERO,
                    valid_until=options.valid_until or ZERO,
                    gas=options.gas or ZERO,
                ),
                avo_safe_nonce=avo_safe_nonce,
            )

        if version == ResolvedVersion.V1:
            return CastMessageV1(
                actions=_actions_v1(intents),
                metadata=options.metadata or EMPTY_BYTES,
                source=options.source or self.config.default_source,
                avo_safe_nonce=avo_safe_nonce,
                valid_until=options.valid_until or ZERO,
                gas=options.gas or ZERO,
            )

        raise TypeError(f"Cannot build a single-signer cast for version {version!r}")

    async def build_multisig(
        self,
        intents: Sequence[TransactionIntent],
        chain_id: int,
        owner: str,
        index: int,
        options: Optional[SignatureOptions] = None,
    ) -> CastMessageMultisig:
        """
        Build a multisig cast; the multisig schema is fixed, so no version lookup happens.

        Raises:
            ResolutionError: If the nonce lookup fails
        """
        options = options or SignatureOptions()

        avo_nonce = await self.nonce_resolver.resolve_multisig_sequential(
            chain_id, owner, index, override=options.avo_safe_nonce
        )

        return CastMessageMultisig(
            params=CastParamsMultisig(
                actions=_actions(intents),
                id=options.id or ZERO,
                avo_nonce=avo_nonce,
                salt=options.salt or self.config.default_salt,
                source=options.source or self.config.multisig_source,
                metadata=options.metadata or EMPTY_BYTES,
            ),
            forward_params=CastForwardParams(
                gas=options.gas or ZERO,
                gas_price=options.gas_price or ZERO,
                valid_until=options.valid_until or ZERO,
                valid_after=options.valid_after or ZERO,
                value=ZERO,
            ),
        )
