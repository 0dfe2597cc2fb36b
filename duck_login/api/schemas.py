from typing import Literal, Optional
from pydantic import BaseModel

State = Literal["ENTER_IDENTIFIER", "ENTER_OTP"]

class IdentifierRequest(BaseModel):
    identifier: str = ""

class OtpRequest(BaseModel):
    otp: str = ""

class FlowSnapshot(BaseModel):
    flowId: str
    state: State
    identifier: str = ""
    address: str = ""
    busy: bool = False
    hasOtp: bool = False
    signupUrl: str = ""

class OutcomeResponse(BaseModel):
    kind: str
    state: State
    message: str = ""
    reason: Optional[str] = None
    status: Optional[int] = None
    destination: Optional[str] = None
    accountIndex: Optional[int] = None

class AccountView(BaseModel):
    index: int
    cohort: str
    email: str
    username: str
    remark: str = ""
    nextAlias: str = ""
