from pydantic import BaseModel, EmailStr, Field

class RequestLinkIn(BaseModel):
    email: EmailStr
    # only used the first time an email signs in
    name: str | None = Field(default=None, max_length=200)

# token is echoed outside prod so tests and local clients can skip the mailbox
class RequestLinkOut(BaseModel):
    sent: bool = True
    token: str | None = None
    link: str | None = None

class RedeemIn(BaseModel):
    token: str = Field(min_length=1, max_length=512)

class AccessTokenOut(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
