"""Wallet sign-in Pydantic schemas."""

from pydantic import BaseModel, ConfigDict, Field

# Wallets hand over keys/signatures as strings or as raw byte arrays.
KeyMaterial = str | list[int]


class NonceRequest(BaseModel):
    """Request for a sign-in challenge."""

    address: str | None = Field(None, description="Wallet address the nonce should be bound to")


class NonceResponse(BaseModel):
    nonce: str = Field(..., description="Single-use challenge to embed in the signed message")


class VerifyRequest(BaseModel):
    """Signed challenge submitted by the wallet.

    Every field is optional at the schema level so the handshake can report
    exactly which ones are missing.
    """

    address: str | None = None
    public_key: KeyMaterial | None = Field(None, alias="publicKey")
    signature: KeyMaterial | None = None
    message: str | None = None
    full_message: str | None = Field(None, alias="fullMessage")
    nonce: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def signed_message(self) -> str | None:
        """Return the exact text the wallet signed."""
        return self.full_message if self.full_message is not None else self.message


class VerifyResponse(BaseModel):
    ok: bool = True
    user_id: int = Field(..., alias="userId")
    access_token: str = Field(..., alias="accessToken")

    model_config = ConfigDict(populate_by_name=True)
