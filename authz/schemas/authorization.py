"""Authorization check API schemas."""

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator


class AuthorizeRequest(BaseModel):
    """Request body for POST /authorize.

    Send either permission_code or permission_codes. With a list, mode
    'any' allows when one code is allowed and 'all' when every code is.
    Tenant and user default to the request headers.
    """

    permission_code: str | None = Field(default=None, max_length=255)
    permission_codes: list[str] | None = Field(default=None, min_length=1, max_length=100)
    mode: Literal["any", "all"] = "any"
    tenant_id: str | None = Field(default=None, max_length=64)
    user_id: str | None = Field(default=None, max_length=64)
    context: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def one_code_source(self) -> "AuthorizeRequest":
        if (self.permission_code is None) == (self.permission_codes is None):
            raise ValueError("Provide exactly one of permission_code or permission_codes")
        return self


class DecisionResponse(BaseModel):
    """Outcome of an authorization check."""

    allowed: bool
    matched_via: Literal["direct", "group", "default"]
    reason: str
    matched_code: str | None = None
    group_id: str | None = None


class EffectivePermissionsResponse(BaseModel):
    """Codes the user holds without request context."""

    tenant_id: str
    user_id: str
    permission_codes: list[str]
