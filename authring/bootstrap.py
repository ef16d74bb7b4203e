"""
Start-up of the authentication system.

``BootstrapController.initialize()`` runs, concurrently and without ordering
between them:

- the key setup branch, which loads the local Ed25519 signing key from the
  ``keyring`` attribute and reconciles the published public key with it, or,
  if no key ring exists yet, creates a fresh key pair, publishes it, attests
  the long-term public key and persists empty authentication rings;
- the load of the Ed25519 authentication ring;
- the load of the RSA authentication ring.

Every branch settles on its own; a failure in one is reported in the
``InitializationResult`` and never cancels the others.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Dict, List, Optional, Tuple

from .attestation import Clock, KeyPair, new_key_pair, sign_key
from .attributes import (
    ED25519_PUBKEY_SLOT,
    KEYRING_SLOT,
    LONG_TERM_SIGNATURE_SLOT,
    AttributeStore,
)
from .errors import AttributeNotFoundError, BootstrapError
from .identity import LocalIdentity
from .keytypes import KeyType

logger = logging.getLogger(__name__)

KEY_SETUP_TASK = "keys"


class BootstrapState(Enum):
    """Key setup state of the local identity."""
    START = "start"
    KEY_VERIFIED = "key_verified"    # existing key ring loaded, public key reconciled
    BOOTSTRAPPED = "bootstrapped"    # fresh key pair created and published
    FAILED = "failed"


def ring_task_name(key_type: KeyType) -> str:
    return f"ring:{key_type.value}"


@dataclass
class InitializationResult:
    """Outcome of every start-up task.

    ``outcomes`` maps each task name to ``None`` on success or to the
    exception it raised.
    """
    state: BootstrapState
    outcomes: Dict[str, Optional[BaseException]] = field(default_factory=dict)
    republished: bool = False

    @property
    def ok(self) -> bool:
        return all(outcome is None for outcome in self.outcomes.values())

    def failures(self) -> Dict[str, BaseException]:
        return {name: exc for name, exc in self.outcomes.items() if exc is not None}


class BootstrapController:
    """Drives key setup and ring loading for one local identity."""

    def __init__(
        self,
        identity: LocalIdentity,
        attribute_store: AttributeStore,
        clock: Clock = time.time,
    ):
        self.identity = identity
        self.attribute_store = attribute_store
        self.clock = clock
        self.state = BootstrapState.START
        self.republished = False

    def _transition(self, state: BootstrapState) -> None:
        logger.info("Authentication system for %s: %s -> %s", self.identity.handle, self.state.value, state.value)
        self.state = state

    async def initialize(self) -> InitializationResult:
        """Run key setup and both ring loads; wait for all of them to settle.

        On first run the freshly initialised empty rings win over whatever the
        concurrent loads fetch, independent of scheduling.
        """
        store = self.identity.trust_store
        tasks: List[Tuple[str, Awaitable]] = [(KEY_SETUP_TASK, self.setup_keys())]
        tasks += [(ring_task_name(key_type), store.load(key_type)) for key_type in KeyType]

        results = await asyncio.gather(*(task for _, task in tasks), return_exceptions=True)

        outcomes: Dict[str, Optional[BaseException]] = {}
        for (name, _), result in zip(tasks, results):
            if isinstance(result, BaseException):
                outcomes[name] = result
                logger.warning("Start-up task %s failed: %s", name, result)
            else:
                outcomes[name] = None
        return InitializationResult(state=self.state, outcomes=outcomes, republished=self.republished)

    async def setup_keys(self) -> BootstrapState:
        """Load the local signing key, or create one on first use.

        Raises:
            BootstrapError: If the key ring cannot be fetched for any reason
                other than not existing yet, or if a required write fails.
        """
        owner = self.identity.handle
        try:
            try:
                seed = await self.attribute_store.get_attribute(owner, KEYRING_SLOT)
            except AttributeNotFoundError:
                # We don't have it set up, yet. Let's do so now.
                logger.warning("Authentication system seems unavailable.")
                await self.set_up_authentication_system()
                self._transition(BootstrapState.BOOTSTRAPPED)
            else:
                key_pair = KeyPair.from_seed(seed)
                await self.check_published_key(key_pair)
                self.identity.signing_key = key_pair
                self._transition(BootstrapState.KEY_VERIFIED)
        except Exception as e:
            logger.error(f"Error setting up authentication keys for {owner}: {e}")
            self._transition(BootstrapState.FAILED)
            raise BootstrapError(f"key setup failed: {e}") from e
        return self.state

    async def check_published_key(self, key_pair: Optional[KeyPair] = None) -> bool:
        """Make sure the published Ed25519 public key matches our signing key.

        ``key_pair`` defaults to the identity's current signing key.
        Returns ``True`` if the key had to be (re)published.
        """
        owner = self.identity.handle
        key_pair = key_pair or self.identity.require_signing_key()
        public_bytes = key_pair.public_bytes
        try:
            published = await self.attribute_store.get_attribute(owner, ED25519_PUBKEY_SLOT)
        except Exception as e:
            logger.warning(f"Could not get my Ed25519 pub key, setting it now: {e}")
        else:
            if published == public_bytes:
                return False
            logger.info("Need to update Ed25519 pub key.")

        await self.attribute_store.set_attribute(owner, ED25519_PUBKEY_SLOT, public_bytes)
        logger.debug("Ed25519 pub key updated.")
        self.republished = True
        return True

    async def set_up_authentication_system(self) -> None:
        """Create a key pair, publish it, attest the long-term key and persist empty rings.

        Replaces any existing signing key and long-term key signature.
        """
        logger.debug("Setting up authentication system (Ed25519 keys, long-term key signature).")
        identity = self.identity
        owner = identity.handle
        key_pair = new_key_pair()

        store = identity.trust_store
        for key_type in KeyType:
            store.initialize_empty(key_type)

        writes: List[Awaitable] = [
            self.attribute_store.set_attribute(owner, ED25519_PUBKEY_SLOT, key_pair.public_bytes),
            self.attribute_store.set_attribute(owner, KEYRING_SLOT, key_pair.seed),
        ]
        writes += [store.save(key_type) for key_type in KeyType]

        if identity.config.sign_long_term_key:
            if identity.long_term_key is None:
                logger.warning("No long-term public key available; skipping its signature.")
            else:
                signature = sign_key(
                    identity.long_term_key, identity.long_term_key_type, key_pair,
                    clock=self.clock, prefix=identity.config.signature_prefix,
                )
                writes.append(self.attribute_store.set_attribute(owner, LONG_TERM_SIGNATURE_SLOT, signature))

        results = await asyncio.gather(*writes, return_exceptions=True)
        errors = [result for result in results if isinstance(result, BaseException)]
        if errors:
            raise errors[0]
        # Only a fully persisted key pair becomes the identity's signing key.
        identity.signing_key = key_pair


__all__ = [
    "BootstrapState",
    "BootstrapController",
    "InitializationResult",
    "KEY_SETUP_TASK",
    "ring_task_name",
]
