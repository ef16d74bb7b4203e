"""
Configuration for authring components.
"""

from dataclasses import dataclass

from .attestation import SIGNATURE_PREFIX
from .attributes import AttributeStore, MemoryAttributeStore, RedisAttributeStore


@dataclass
class AuthringConfig:
    """Configuration shared by the trust store and the bootstrap controller."""
    # Serialise ring saves per key type with an asyncio.Lock. Without it,
    # back-to-back updates race and the attribute store's last write wins.
    serialize_saves: bool = True
    # Attest the long-term public key with the new signing key on first run.
    sign_long_term_key: bool = True
    signature_prefix: bytes = SIGNATURE_PREFIX

    # Redis attribute store backend
    redis_url: str = "redis://localhost:6379/0"
    redis_prefix: str = "authring:attr"


def create_attribute_store(backend: str = "memory", config: AuthringConfig = None) -> AttributeStore:
    """Build an attribute store for the named backend ("memory" or "redis")."""
    config = config or AuthringConfig()
    if backend == "memory":
        return MemoryAttributeStore()
    if backend == "redis":
        return RedisAttributeStore(url=config.redis_url, prefix=config.redis_prefix)
    raise ValueError(f"Unknown attribute store backend: {backend}")


__all__ = ["AuthringConfig", "create_attribute_store"]
