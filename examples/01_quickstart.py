#!/usr/bin/env python3
"""Example: Quickstart

Registers two identities, sends an encrypted message from Alice to Bob
and decrypts it on Bob's side.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install crazzle-e2ee
"""
from __future__ import annotations

import asyncio

import crazzle_e2ee
from crazzle_e2ee import SecureMessenger


async def main() -> None:
    print(f"crazzle-e2ee version: {crazzle_e2ee.__version__}")

    # Step 1: Create identities (key pair generated, public key published)
    messenger = SecureMessenger()
    alice = await messenger.register_identity("alice", name="Alice")
    await messenger.register_identity("bob", name="Bob")
    print(f"Alice's public key: {alice.public_key[:40]}...")

    # Step 2: Alice encrypts for Bob
    token = await messenger.encrypt_for("alice", "bob", "hello")
    print(f"Ciphertext token: {token}")

    # Step 3: Bob decrypts
    plaintext = await messenger.decrypt_from("bob", "alice", token)
    print(f"Bob reads: {plaintext}")

    # Step 4: A tampered token renders as a placeholder
    tampered = token[:-2] + ("A" if token[-2] != "A" else "B") + token[-1]
    print(f"Tampered token renders as: {await messenger.render('bob', 'alice', tampered)}")


if __name__ == "__main__":
    asyncio.run(main())
