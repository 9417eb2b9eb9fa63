"""
Main client for signing and relaying Avocado wallet casts.
"""
import logging
from typing import Any, Dict, Optional, Sequence, Union

from web3 import AsyncWeb3

from .binding import WalletBindingCache
from .broadcast import Broadcaster, CastState, ReceiptPoller, log_transition
from .config import AvocadoConfig
from .exceptions import ChainMismatchError, MissingChainIdError
from .message import MessageBuilder
from .models import (
    CastMessage,
    CastMessageMultisig,
    Domain,
    FeeEstimate,
    SignatureOptions,
    TransactionIntent,
    TransactionRecord,
    parse_cast_message,
)
from .providers import ChainProviders
from .registry.base import WalletRegistry
from .registry.web3_registry import Web3WalletRegistry
from .relay import AvocadoRelay
from .resolvers import DomainResolver, NonceResolver, VersionResolver
from .signature import SignatureEngine
from .signer.base import Signer

IntentLike = Union[TransactionIntent, Dict[str, Any]]
MessageLike = Union[CastMessage, Dict[str, Any]]
OptionsLike = Union[SignatureOptions, Dict[str, Any], None]


def _intent(value: IntentLike) -> TransactionIntent:
    if isinstance(value, TransactionIntent):
        return value
    return TransactionIntent.model_validate(value)


def _options(value: OptionsLike) -> SignatureOptions:
    if value is None:
        return SignatureOptions()
    if isinstance(value, SignatureOptions):
        return value
    return SignatureOptions.model_validate(value)


class AvocadoClient:
    """
    Client for executing transactions through an Avocado smart wallet.

    The owner key signs an EIP-712 cast on the Avocado home chain; the relay
    executes it on the target chain.
    """

    def __init__(
        self,
        signer: Signer,
        config: Optional[AvocadoConfig] = None,
        registry: Optional[WalletRegistry] = None,
        relay: Optional[AvocadoRelay] = None,
        providers: Optional[ChainProviders] = None,
        logger: Optional[logging.Logger] = None,
        chain_id_override: Optional[int] = None,
        bindings: Optional[WalletBindingCache] = None,
    ):
        """
        Initialize the AvocadoClient

        Args:
            signer: Key-holder owning the wallet
            config: Deployment configuration (defaults to the public Avocado deployment)
            registry: Remote wallet reads (defaults to on-chain reads through ``providers``)
            relay: Relay client (defaults to the configured relay endpoint)
            providers: Per-chain AsyncWeb3 instances
            logger: Optional logger instance to use for debug/info logging
            chain_id_override: Target chain used for every send, overriding call arguments
            bindings: Wallet address memo (shared between per-chain views)
        """
        self.signer = signer
        self.config = config or AvocadoConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.chain_id_override = chain_id_override

        self.providers = providers or ChainProviders(config=self.config)
        self.registry = registry or Web3WalletRegistry(
            config=self.config, providers=self.providers, logger=self.logger
        )
        self.relay = relay or AvocadoRelay(
            w3=self.providers.get(self.config.home_chain_id), config=self.config, logger=self.logger
        )
        self.bindings = bindings or WalletBindingCache()

        self.version_resolver = VersionResolver(self.registry)
        self.nonce_resolver = NonceResolver(self.registry)
        self.domain_resolver = DomainResolver(self.registry, self.config)
        self.message_builder = MessageBuilder(self.nonce_resolver, self.version_resolver, self.config)
        self.engine = SignatureEngine(self.signer, self.registry, self.version_resolver, logger=self.logger)
        self.broadcaster = Broadcaster(
            self.relay, ReceiptPoller(self.providers, logger=self.logger), logger=self.logger
        )

    def for_chain(self, chain_id: int) -> "AvocadoClient":
        """
        Get a view of this client that always targets ``chain_id``.

        The view shares the signer, collaborators and wallet cache; this client
        is left untouched.
        """
        return AvocadoClient(
            self.signer,
            config=self.config,
            registry=self.registry,
            relay=self.relay,
            providers=self.providers,
            logger=self.logger,
            chain_id_override=int(chain_id),
            bindings=self.bindings,
        )

    # Addresses and nonces

    async def get_owner_address(self) -> str:
        return await self.signer.get_address()

    async def get_safe_address(self, safe_address: Optional[str] = None) -> str:
        """
        Get the owner's single-signer wallet address

        Args:
            safe_address: Explicit wallet address; returned as-is and drops a differing cached value

        Returns:
            Wallet address (counterfactual if not deployed yet)
        """
        owner = await self.get_owner_address()
        chain_id = self.config.address_chain_id
        return await self.bindings.wallet(
            owner,
            chain_id,
            lambda: self.registry.compute_address(chain_id, owner),
            override=safe_address,
        )

    async def get_address_multisig(self, index: int = 0) -> str:
        owner = await self.get_owner_address()
        return await self.registry.compute_multisig_address(self.config.address_chain_id, owner, index)

    async def get_safe_nonce(self, chain_id: int) -> str:
        owner = await self.get_owner_address()
        return await self.nonce_resolver.resolve_sequential(chain_id, owner)

    async def get_safe_nonce_multisig(self, chain_id: int, index: int = 0) -> str:
        owner = await self.get_owner_address()
        return await self.nonce_resolver.resolve_multisig_sequential(chain_id, owner, index)

    # Preconditions

    def _active_provider(self) -> AsyncWeb3:
        return self.signer.provider or self.relay.w3

    async def get_active_chain_id(self) -> int:
        """Chain id of the signer's provider (the relay's when the signer has none)."""
        w3 = self._active_provider()

        async def fetch() -> int:
            return await w3.eth.chain_id

        return await self.bindings.active_chain_id(fetch)

    async def assert_home_chain(self) -> None:
        """
        Raises:
            ChainMismatchError: If the signer's provider is not on the home chain
        """
        active = await self.get_active_chain_id()
        if active != self.config.home_chain_id:
            raise ChainMismatchError(self.config.home_chain_id, active)

    def _resolve_target_chain(self, chain_id: Optional[int]) -> int:
        target = self.chain_id_override or chain_id
        if not target:
            raise MissingChainIdError("Chain ID is required")
        return int(target)

    # Message building

    async def generate_signature_message(
        self,
        intents: Sequence[IntentLike],
        chain_id: int,
        options: OptionsLike = None,
    ) -> CastMessage:
        """
        Build the cast for ``intents`` without signing it

        Args:
            intents: Calls to execute, in order
            chain_id: Chain the cast will be executed on
            options: Optional overrides (nonce, validity, source, metadata, ...)

        Returns:
            Cast message matching the wallet's version on ``chain_id``

        Raises:
            ResolutionError: If the nonce or the wallet version cannot be read
        """
        options = _options(options)
        owner = await self.get_owner_address()
        wallet = await self.get_safe_address(options.safe_address)

        message = await self.message_builder.build(
            [_intent(i) for i in intents], chain_id, owner, wallet, options
        )
        log_transition(self.logger, CastState.BUILT, f"{type(message).__name__} for chain {chain_id}")
        return message

    async def generate_signature_message_multisig(
        self,
        intents: Sequence[IntentLike],
        chain_id: int,
        index: int = 0,
        options: OptionsLike = None,
    ) -> CastMessageMultisig:
        options = _options(options)
        owner = await self.get_owner_address()

        message = await self.message_builder.build_multisig(
            [_intent(i) for i in intents], chain_id, owner, index, options
        )
        log_transition(self.logger, CastState.BUILT, f"multisig #{index} for chain {chain_id}")
        return message

    # Domains

    async def _domain(
        self,
        chain_id: int,
        safe_address: Optional[str] = None,
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> Domain:
        wallet = await self.get_safe_address(safe_address)
        return await self.domain_resolver.resolve(chain_id, wallet, name=name, version=version)

    async def _domain_multisig(
        self,
        chain_id: int,
        index: int,
        safe_address: Optional[str] = None,
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> Domain:
        owner = await self.get_owner_address()
        wallet = safe_address or await self.get_address_multisig(index)
        return await self.domain_resolver.resolve_multisig(
            chain_id, owner, index, wallet, name=name, version=version
        )

    # Signing

    async def build_signature(
        self,
        message: MessageLike,
        chain_id: int,
        options: OptionsLike = None,
    ) -> str:
        """
        Sign a cast built with :meth:`generate_signature_message`

        Args:
            message: Cast message (model or wire dictionary)
            chain_id: Chain the cast will be executed on
            options: ``safe_address``, ``name`` and ``version`` override the signing domain

        Returns:
            Owner signature as 0x-prefixed hex

        Raises:
            ResolutionError: If the signing domain cannot be resolved
            SigningError: If the signer returns no signature
        """
        options = _options(options)
        message = parse_cast_message(message)
        domain = await self._domain(chain_id, options.safe_address, options.name, options.version)
        signature = await self.engine.sign(message, domain)
        log_transition(self.logger, CastState.SIGNED, f"chain {chain_id}")
        return signature.signature

    async def build_signature_multisig(
        self,
        message: MessageLike,
        chain_id: int,
        index: int = 0,
        options: OptionsLike = None,
    ) -> str:
        options = _options(options)
        message = parse_cast_message(message)
        domain = await self._domain_multisig(
            chain_id, index, options.safe_address, options.name, options.version
        )
        signature = await self.engine.sign(message, domain)
        log_transition(self.logger, CastState.SIGNED, f"multisig #{index} on chain {chain_id}")
        return signature.signature

    async def sign_message(self, message: Union[str, bytes]) -> str:
        """Sign ``message`` with the owner key (EIP-191 personal message)."""
        return await self.signer.sign_message(message)

    # Sending

    async def send_transaction(
        self,
        intent: IntentLike,
        chain_id: Optional[int] = None,
        options: OptionsLike = None,
    ) -> TransactionRecord:
        """
        Execute a single call through the wallet.

        The target chain is taken from ``chain_id``, falling back to the
        intent's own ``chain_id``.
        """
        intent = _intent(intent)
        return await self.send_transactions([intent], chain_id or intent.chain_id, options)

    async def send_transactions(
        self,
        intents: Sequence[IntentLike],
        chain_id: Optional[int] = None,
        options: OptionsLike = None,
    ) -> TransactionRecord:
        """
        Build, sign and relay a cast executing ``intents``

        Args:
            intents: Calls to execute, in order
            chain_id: Chain to execute on
            options: Optional overrides for the cast and its signing domain

        Returns:
            The relayed transaction; ``pending`` is set when the target chain
            did not show it within the lookup window. Call ``wait()`` to block
            for a receipt.

        Raises:
            ChainMismatchError: If the signer's provider is not on the home chain
            MissingChainIdError: If no target chain is given
            ResolutionError: If a nonce, version or domain lookup fails
            SigningError: If the signer returns no signature
            BroadcastError: If the relay refuses the cast
        """
        options = _options(options)
        await self.assert_home_chain()
        target = self._resolve_target_chain(chain_id)

        owner = await self.get_owner_address()
        message = await self.generate_signature_message(intents, target, options)
        domain = await self._domain(target, options.safe_address, options.name, options.version)

        signature = await self.engine.sign(message, domain)
        log_transition(self.logger, CastState.SIGNED, f"chain {target}")

        return await self.broadcaster.broadcast(
            message,
            signature,
            owner,
            target,
            domain.verifying_contract,
            self.engine.digest(message, domain),
        )

    async def send_transactions_multisig(
        self,
        intents: Sequence[IntentLike],
        index: int = 0,
        chain_id: Optional[int] = None,
        options: OptionsLike = None,
    ) -> TransactionRecord:
        """
        Build, sign and relay a multisig cast carrying this owner's signature.

        Raises:
            ChainMismatchError: If the signer's provider is not on the home chain
            MissingChainIdError: If no target chain is given
            BroadcastError: If the relay refuses the cast
        """
        options = _options(options)
        await self.assert_home_chain()
        target = self._resolve_target_chain(chain_id)

        owner = await self.get_owner_address()
        message = await self.generate_signature_message_multisig(intents, target, index, options)
        domain = await self._domain_multisig(
            target, index, options.safe_address, options.name, options.version
        )

        signature = await self.engine.sign(message, domain)
        log_transition(self.logger, CastState.SIGNED, f"multisig #{index} on chain {target}")

        return await self.broadcaster.broadcast_multisig(
            message, signature, owner, target, domain.verifying_contract, index
        )

    async def broadcast_signed_message(
        self,
        message: MessageLike,
        signature: str,
        chain_id: int,
        safe_address: Optional[str] = None,
        name: Optional[str] = None,
        version: Optional[str] = None,
    ) -> TransactionRecord:
        """
        Relay a cast signed earlier with :meth:`build_signature`

        Raises:
            BroadcastError: If the relay refuses the cast
        """
        message = parse_cast_message(message)
        owner = await self.get_owner_address()
        domain = await self._domain(chain_id, safe_address, name, version)

        return await self.broadcaster.broadcast(
            message,
            signature,
            owner,
            chain_id,
            domain.verifying_contract,
            self.engine.digest(message, domain),
        )

    async def broadcast_signed_message_multisig(
        self,
        message: MessageLike,
        signature: str,
        chain_id: int,
        index: int = 0,
    ) -> TransactionRecord:
        message = parse_cast_message(message)
        owner = await self.get_owner_address()
        wallet = await self.get_address_multisig(index)
        return await self.broadcaster.broadcast_multisig(message, signature, owner, chain_id, wallet, index)

    # Verification and fees

    async def verify(
        self,
        message: MessageLike,
        signature: str,
        chain_id: int,
        safe_address: Optional[str] = None,
        index: int = 0,
    ) -> bool:
        """
        Check ``signature`` against the forwarder on ``chain_id``.

        Multisig casts are checked against the multisig wallet at ``index``.
        """
        message = parse_cast_message(message)
        if isinstance(message, CastMessageMultisig):
            domain = await self._domain_multisig(chain_id, index, safe_address)
        else:
            domain = await self._domain(chain_id, safe_address)
        return await self.engine.verify(message, domain, signature)

    async def estimate_fee(
        self,
        intents: Sequence[IntentLike],
        chain_id: int,
        options: OptionsLike = None,
    ) -> FeeEstimate:
        """
        Quote the relay fee for executing ``intents`` on ``chain_id``.

        Returns:
            Fee and multiplier as decimal strings, plus any applicable discount
        """
        message = await self.generate_signature_message(intents, chain_id, options)
        owner = await self.get_owner_address()
        return await self.relay.estimate_fee(message.to_typed_data(), owner, chain_id)
