"""Value objects module for neo-authz."""

from .identifiers import UserId, TenantId, RoleId, as_str

__all__ = [
    "UserId",
    "TenantId",
    "RoleId",
    "as_str",
]
