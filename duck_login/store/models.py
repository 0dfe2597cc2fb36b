from dataclasses import dataclass, asdict
from typing import Any, Dict

@dataclass(frozen=True)
class AuthenticatedUser:
    access_token: str
    cohort: str
    email: str
    username: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthenticatedUser":
        return cls(
            access_token=str(data["access_token"]),
            cohort=str(data["cohort"]),
            email=str(data["email"]),
            username=str(data["username"]),
        )

@dataclass(frozen=True)
class AccountRecord:
    # Server-issued user fields
    access_token: str
    cohort: str
    email: str
    username: str

    # Masked email shown in account lists
    remark: str = ""
    # Generated alias; "" when generation failed
    nextAlias: str = ""

    @classmethod
    def from_user(cls, user: AuthenticatedUser, *, remark: str, nextAlias: str) -> "AccountRecord":
        return cls(**asdict(user), remark=remark, nextAlias=nextAlias)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def public_dict(self) -> Dict[str, Any]:
        """Same as to_dict, without the credential."""
        d = asdict(self)
        d.pop("access_token", None)
        return d
