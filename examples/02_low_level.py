#!/usr/bin/env python3
"""Example: Low-level components

Uses KeyPairManager, SharedSecretDeriver and MessageCipher directly, with
a filesystem key store, and prints the pair's safety number.

Usage:
    python examples/02_low_level.py

Requirements:
    pip install crazzle-e2ee
"""
from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

from crazzle_e2ee import (
    FilesystemKeyStore,
    KeyPairManager,
    MessageCipher,
    SharedSecretDeriver,
    fingerprint,
    safety_number,
)


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmp:
        manager = KeyPairManager(FilesystemKeyStore(Path(tmp) / "keys"))
        deriver = SharedSecretDeriver(key_manager=manager)
        cipher = MessageCipher()

        alice = await manager.generate("alice")
        bob = await manager.generate("bob")
        print(f"Alice fingerprint: {fingerprint(alice.public_key)}")
        print(f"Bob fingerprint:   {fingerprint(bob.public_key)}")
        print(f"Safety number:     {safety_number(alice.public_key, bob.public_key)}")

        # Both sides derive the same key independently
        alice_key = await deriver.derive_for("alice", bob.public_key)
        bob_key = await deriver.derive_for("bob", alice.public_key)

        token = await cipher.encrypt(alice_key, "Treffen um 8?")
        print(f"Token:   {token}")
        print(f"Decrypt: {await cipher.decrypt(bob_key, token)}")


if __name__ == "__main__":
    asyncio.run(main())
