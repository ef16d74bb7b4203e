"""
Example: Contact Authentication Rings

This example walks through the authring package:
- Bootstrapping a local identity (signing key, published public key, rings)
- Recording and upgrading trust in contact keys
- Signing and verifying a contact key attestation
- Reloading the rings from the attribute store
"""

import asyncio
import os
import sys

# Add parent directory to path so we can import authring
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from cryptography.hazmat.primitives.asymmetric import rsa

from authring import (
    AuthenticationMethod,
    BootstrapController,
    KeyType,
    LocalIdentity,
    TrustStore,
    compute_fingerprint,
    encode_handle,
    new_key_pair,
    rsa_key_material,
    sign_key,
    snapshot_metrics,
)
from authring.attributes import MemoryAttributeStore


async def main():
    print("🔐 authring Demo")
    print("=" * 50)

    store = MemoryAttributeStore()
    me = encode_handle((1).to_bytes(8, "big"))
    bob = encode_handle((2).to_bytes(8, "big"))
    long_term = rsa.generate_private_key(public_exponent=65537, key_size=2048).public_key()

    print("\n1. Bootstrapping local identity...")
    identity = LocalIdentity.create(me, store, long_term_key=long_term)
    result = await BootstrapController(identity, store).initialize()
    print(f"   State: {result.state.value}")
    print(f"   Signing key: {identity.signing_key.key_id}")

    print("\n2. Seeing Bob's keys for the first time...")
    bob_signing = new_key_pair()
    bob_rsa = rsa_key_material(rsa.generate_private_key(public_exponent=65537, key_size=2048).public_key())
    ed_fp = compute_fingerprint(bob_signing.public_bytes, KeyType.ED25519)
    rsa_fp = compute_fingerprint(bob_rsa, KeyType.RSA)
    await identity.trust_store.set_record(bob, ed_fp, KeyType.ED25519)
    print(f"   Ed25519 fingerprint: {ed_fp}")

    print("\n3. Verifying Bob's RSA key attestation...")
    envelope = sign_key(bob_rsa, KeyType.RSA, bob_signing)
    if identity.verify_key(envelope, bob_rsa, KeyType.RSA, bob_signing.public):
        await identity.trust_store.set_record(
            bob, rsa_fp, KeyType.RSA, method=AuthenticationMethod.SIGNATURE_VERIFIED
        )
        print("   ✅ Signature verified, RSA key trusted")
    else:
        print("   ❌ Bad signature")

    print("\n4. Reloading rings from the attribute store...")
    reloaded = TrustStore(store, me)
    for key_type in KeyType:
        ring = await reloaded.load(key_type)
        for handle, record in ring.items():
            print(f"   {key_type.value}: {handle} {record.fingerprint_hex} method={record.method.name}")

    print("\n5. Metrics")
    for name, value in snapshot_metrics().items():
        print(f"   {name}: {value}")

    identity.close()


if __name__ == "__main__":
    asyncio.run(main())
