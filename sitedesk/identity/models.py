"""Identity models for the parties talking to the assistant."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Role(str, Enum):
    """Role an address resolves to."""

    ADMIN = "admin"
    EMPLOYEE = "employee"
    CUSTOMER = "customer"

    @property
    def is_privileged(self) -> bool:
        """Privileged roles may delegate into other roles."""
        return self is Role.ADMIN


class Identity(BaseModel):
    """Who is behind an address, as reported by the identity resolver."""

    model_config = ConfigDict(frozen=True)

    address: str = Field(..., description="External identity key, e.g. phone number")
    role: Role = Field(..., description="Resolved role")
    verified: bool = Field(default=False, description="Whether the identity passed verification")
    display_name: str | None = Field(default=None, description="Name to greet with")
    user_id: str | None = Field(default=None, description="Back-office user id, if any")
    delegated_by: Role | None = Field(
        default=None,
        description="Role of the privileged identity running this synthetic identity",
    )

    @property
    def is_synthetic(self) -> bool:
        """True when this identity was built for a delegated run."""
        return self.delegated_by is not None

    def acting_as(self, role: "Role") -> "Identity":
        """Build the synthetic identity a privileged identity delegates into."""
        return Identity(
            address=self.address,
            role=role,
            verified=True,
            display_name=self.display_name,
            user_id=self.user_id,
            delegated_by=self.role,
        )
