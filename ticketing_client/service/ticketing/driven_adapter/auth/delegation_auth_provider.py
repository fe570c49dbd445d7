"""
Delegation Auth Provider

Each login generates a fresh Ed25519 session key. The external identity provider signs a
delegation chain authorizing that key to act for the user's principal, and the chain plus
the session key are persisted so a later start can resume the session silently.

The chain uses the identity provider's JSON form::

    {"delegations": [{"delegation": {"pubkey": "<hex DER>", "expiration": "<hex ns>",
                                     "targets": ["<hex>", ...]},
                      "signature": "<hex>"}],
     "publicKey": "<hex DER>"}

The principal is derived from ``publicKey``. Delegation signatures are checked by the
network on every call; locally only the expirations and the session key binding are.
"""

import time
from pathlib import Path
from typing import Any, Awaitable, Callable, Mapping, Optional

import anyio
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, NoEncryption, PrivateFormat
import orjson

from ticketing_client.platform.exception.exceptions import AuthProviderError
from ticketing_client.platform.logging.loguru_io import Logger
from ticketing_client.service.ticketing.app.interface.i_auth_provider import IAuthProvider
from ticketing_client.service.ticketing.domain.value_object.identity import (
    Identity,
    SignedDelegation,
)
from ticketing_client.service.ticketing.driven_adapter.channel.principal import (
    self_authenticating_principal,
)
from ticketing_client.service.ticketing.driven_adapter.channel.request_envelope import (
    public_key_der,
)


# Receives the provider URL and the session public key (hex DER), returns the delegation
# chain JSON or None when the user cancelled
Authorizer = Callable[[str, str], Awaitable[Optional[str]]]


async def prompt_for_delegation(
    identity_provider_url: str, session_public_key: str
) -> Optional[str]:
    """Interactive authorizer: the user approves in a browser and pastes the chain back."""
    print(f'Open {identity_provider_url} and approve session key {session_public_key}.')
    chain = await anyio.to_thread.run_sync(input, 'Delegation chain JSON (empty to cancel): ')
    return chain.strip() or None


class DelegationAuthProvider(IAuthProvider):
    def __init__(
        self,
        *,
        session_file: Path,
        authorize: Authorizer = prompt_for_delegation,
        clock: Callable[[], int] = time.time_ns,
    ):
        self.session_file = session_file
        self.authorize = authorize
        self.clock = clock
        self._identity: Optional[Identity] = None

    @Logger.io
    async def create(self) -> None:
        self._identity = None
        path = anyio.Path(self.session_file)
        if not await path.exists():
            return

        try:
            stored = orjson.loads(await path.read_bytes())
            chain = stored['delegation_chain']
            session_key = bytes.fromhex(stored['session_key'])
        except (OSError, orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise AuthProviderError(f'Stored session is unreadable: {type(e).__name__}') from e

        identity = self._identity_from_chain(chain, session_key)
        if identity is None:
            Logger.base.info('[AUTH] Stored delegation expired, discarding it')
            await path.unlink(missing_ok=True)
            return
        self._identity = identity

    async def is_authenticated(self) -> bool:
        return self._identity is not None

    @Logger.io
    async def login(self, *, identity_provider_url: str) -> bool:
        session_key = Ed25519PrivateKey.generate()
        try:
            raw_chain = await self.authorize(
                identity_provider_url, public_key_der(session_key).hex()
            )
        except Exception as e:
            raise AuthProviderError(f'Identity provider failed: {type(e).__name__}: {e}') from e

        if raw_chain is None:
            return False

        try:
            chain = orjson.loads(raw_chain)
        except orjson.JSONDecodeError as e:
            raise AuthProviderError(f'Malformed delegation: {e}') from e

        seed = session_key.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption())
        identity = self._identity_from_chain(chain, seed)
        if identity is None:
            raise AuthProviderError('Identity provider issued an expired delegation')

        await self._store(chain, seed)
        self._identity = identity
        return True

    @Logger.io
    async def logout(self) -> None:
        self._identity = None
        try:
            await anyio.Path(self.session_file).unlink(missing_ok=True)
        except OSError as e:
            raise AuthProviderError(f'Could not remove stored session: {e}') from e

    def get_identity(self) -> Optional[Identity]:
        return self._identity

    def _identity_from_chain(self, chain: Any, session_key: bytes) -> Optional[Identity]:
        """None when expired. Raises AuthProviderError when the chain does not fit the key."""
        try:
            delegations = tuple(_signed_delegation(link) for link in chain['delegations'])
            public_key = bytes.fromhex(chain['publicKey'])
            session_public_key = public_key_der(Ed25519PrivateKey.from_private_bytes(session_key))
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise AuthProviderError(f'Malformed delegation: {type(e).__name__}: {e}') from e

        if not delegations or not public_key:
            raise AuthProviderError('Delegation chain carries no principal')
        if delegations[-1].pubkey != session_public_key:
            raise AuthProviderError('Delegation chain does not authorize this session key')

        now = self.clock()
        if any(delegation.expiration <= now for delegation in delegations):
            return None
        return Identity(
            principal=self_authenticating_principal(public_key),
            public_key=public_key,
            delegations=delegations,
            session_key=session_key,
        )

    async def _store(self, chain: Any, session_key: bytes) -> None:
        path = anyio.Path(self.session_file)
        try:
            await path.parent.mkdir(parents=True, exist_ok=True)
            await path.write_bytes(
                orjson.dumps({'session_key': session_key.hex(), 'delegation_chain': chain})
            )
        except OSError as e:
            raise AuthProviderError(f'Could not persist session: {e}') from e


def _signed_delegation(link: Mapping[str, Any]) -> SignedDelegation:
    delegation = link['delegation']
    targets = delegation.get('targets')
    return SignedDelegation(
        pubkey=bytes.fromhex(delegation['pubkey']),
        expiration=int(delegation['expiration'], 16),
        signature=bytes.fromhex(link['signature']),
        targets=tuple(bytes.fromhex(t) for t in targets) if targets is not None else None,
    )
