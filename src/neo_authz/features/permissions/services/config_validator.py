"""RBAC configuration validation against functional dependencies.

A role that grants ``Update`` on a resource without ``View`` is a
configuration warning, or an error in strict mode.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List

from ....core.exceptions import RBACConfigurationError
from ..entities import Permission, Role
from .dependency_resolver import DependencyResolver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigurationWarning:
    """A permission granted without one of its functional dependencies."""
    
    role_id: str
    resource_type: str
    action: str
    missing_actions: FrozenSet[str]
    
    def __str__(self) -> str:
        missing = ", ".join(sorted(self.missing_actions))
        return f"Role {self.role_id} grants {self.resource_type}:{self.action} without {missing}"


@dataclass
class ValidationReport:
    """Outcome of validating one or more roles."""
    
    warnings: List[ConfigurationWarning] = field(default_factory=list)
    
    @property
    def valid(self) -> bool:
        return not self.warnings
    
    def extend(self, other: "ValidationReport") -> None:
        self.warnings.extend(other.warnings)


class RBACConfigValidator:
    """Checks role permission sets for dependency integrity."""
    
    def __init__(self, resolver: DependencyResolver, strict: bool = False):
        self.resolver = resolver
        self.strict = strict
    
    def validate_permissions(self, role_id: str, permissions: Iterable[Permission]) -> ValidationReport:
        """Validate a permission set as if held by ``role_id``.
        
        Raises:
            RBACConfigurationError: In strict mode, when any dependency is missing
        """
        by_resource: Dict[str, set] = {}
        for permission in permissions:
            by_resource.setdefault(permission.resource_type, set()).add(permission.action)
        
        report = ValidationReport()
        for resource_type in sorted(by_resource):
            missing = self.resolver.missing_dependencies(by_resource[resource_type])
            for action, absent in missing.items():
                report.warnings.append(ConfigurationWarning(
                    role_id=role_id,
                    resource_type=resource_type,
                    action=action,
                    missing_actions=absent,
                ))
        
        for warning in report.warnings:
            logger.warning(f"RBAC configuration: {warning}")
        
        if self.strict and report.warnings:
            raise RBACConfigurationError(
                f"Role {role_id} violates functional dependencies: "
                + "; ".join(str(w) for w in report.warnings),
                role_id=role_id,
                details={"warnings": [str(w) for w in report.warnings]},
            )
        return report
    
    def validate_role(self, role: Role) -> ValidationReport:
        return self.validate_permissions(role.id, role.permissions)
    
    def validate_roles(self, roles: Iterable[Role]) -> ValidationReport:
        """Validate many roles; strict mode raises on the first offending role."""
        report = ValidationReport()
        for role in roles:
            report.extend(self.validate_role(role))
        return report
