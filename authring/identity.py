"""
Local identity context.

``LocalIdentity`` bundles everything the rings and attestations need to know
about the logged-in user: its handle, its Ed25519 signing key pair, its
long-term public key and its trust store. It is built once at startup (see
``BootstrapController``) and torn down with ``close()`` on logout.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Optional, Union

from .attestation import Clock, KeyPair, sign_key, verify_key
from .attributes import AttributeStore
from .codec import Handle
from .config import AuthringConfig
from .keytypes import KeyMaterial, KeyType
from .truststore import TrustStore, canonical_handle

logger = logging.getLogger(__name__)


@dataclass
class LocalIdentity:
    handle: str
    trust_store: TrustStore
    long_term_key: Optional[KeyMaterial] = None
    long_term_key_type: KeyType = KeyType.RSA
    signing_key: Optional[KeyPair] = None
    config: AuthringConfig = field(default_factory=AuthringConfig)

    @classmethod
    def create(
        cls,
        handle: Handle,
        attribute_store: AttributeStore,
        long_term_key: Optional[KeyMaterial] = None,
        long_term_key_type: Union[KeyType, str] = KeyType.RSA,
        config: Optional[AuthringConfig] = None,
    ) -> "LocalIdentity":
        config = config or AuthringConfig()
        handle = canonical_handle(handle)
        return cls(
            handle=handle,
            trust_store=TrustStore(attribute_store, handle, config),
            long_term_key=long_term_key,
            long_term_key_type=KeyType.coerce(long_term_key_type),
            config=config,
        )

    def require_signing_key(self) -> KeyPair:
        if self.signing_key is None:
            raise RuntimeError("signing key not available; run the bootstrap first")
        return self.signing_key

    def sign_key(self, key_material: KeyMaterial, key_type: Union[KeyType, str], clock: Clock = time.time) -> bytes:
        """Attest ``key_material`` with our own signing key."""
        return sign_key(
            key_material, key_type, self.require_signing_key(), clock=clock,
            prefix=self.config.signature_prefix,
        )

    def verify_key(
        self,
        signature: bytes,
        key_material: KeyMaterial,
        key_type: Union[KeyType, str],
        signer_public_key,
        clock: Clock = time.time,
    ) -> bool:
        return verify_key(
            signature, key_material, key_type, signer_public_key, clock=clock,
            prefix=self.config.signature_prefix,
        )

    def close(self) -> None:
        """Forget the signing key and every in-memory ring."""
        self.signing_key = None
        self.trust_store.clear()
        logger.debug("Local identity %s closed", self.handle)


__all__ = ["LocalIdentity"]
