from typing import Optional, Tuple

import attrs


@attrs.define(frozen=True)
class SignedDelegation:
    """One link of a delegation chain: ``pubkey`` may sign requests until ``expiration`` (ns)"""

    pubkey: bytes
    expiration: int
    signature: bytes = attrs.field(repr=False)
    targets: Optional[Tuple[bytes, ...]] = None


@attrs.define(frozen=True)
class Identity:
    """
    Authenticated principal plus the credential presented on every ledger call.

    ``public_key`` is the DER key the principal derives from. Requests are signed with
    ``session_key`` (raw Ed25519 seed), which ``delegations`` authorize on its behalf.
    """

    principal: str
    public_key: bytes = attrs.field(default=b'', repr=False)
    delegations: Tuple[SignedDelegation, ...] = attrs.field(default=(), repr=False)
    session_key: bytes = attrs.field(default=b'', repr=False)

    @property
    def expires_at(self) -> Optional[int]:
        if not self.delegations:
            return None
        return min(delegation.expiration for delegation in self.delegations)
