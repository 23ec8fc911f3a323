"""Permission resolution engine.

The single authoritative decision function. A decision is the exact-match
membership of ``(resource_type, action)`` in the union of role-derived
and direct permissions held in one tenant, after the tenant boundary has
been validated. Every failure resolves to a denial.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple, TypeVar

from ....config.constants import Action, WILDCARD_RESOURCE_ID
from ....config.settings import AuthzSettings, get_settings
from ....core.exceptions import CacheError, StoreUnavailable, TenantContextMissing
from ....core.value_objects import TenantId, UserId, as_str
from ...audit import AuditDispatcher, PermissionCheckEvent
from ...cache.entities.keys import CacheGeneration, DecisionCacheKey, InvalidationPattern
from ...cache.services.multi_level_cache import MultiLevelDecisionCache, create_decision_cache
from ...tenants.services.boundary_resolver import BoundaryResolver
from ..entities.decision import Decision, DecisionCode, GrantSource
from ..entities.permission import Permission, PermissionGrant
from ..entities.protocols import PermissionCheck, PermissionStore
from ..entities.taxonomy import PermissionTaxonomy
from .dependency_resolver import DependencyResolver

logger = logging.getLogger(__name__)
T = TypeVar("T")


@dataclass(frozen=True)
class GrantSnapshot:
    """Grant data of one user in one tenant, as read from the store."""
    
    role_ids: FrozenSet[str]
    role_permissions: FrozenSet[Permission]
    direct_grants: FrozenSet[PermissionGrant]
    
    def match(self, permission: Permission, now: datetime) -> Tuple[Optional[GrantSource], Optional[datetime]]:
        """Return the grant path holding ``permission`` and when that path expires."""
        if permission in self.role_permissions:
            return GrantSource.ROLE, None
        
        expiries = [
            grant.expires_at for grant in self.direct_grants
            if grant.permission == permission and grant.is_active(now)
        ]
        if not expiries:
            return None, None
        if any(expiry is None for expiry in expiries):
            return GrantSource.DIRECT, None
        return GrantSource.DIRECT, max(expiries)
    
    def effective_permissions(self, now: datetime) -> Set[Permission]:
        active = {grant.permission for grant in self.direct_grants if grant.is_active(now)}
        return set(self.role_permissions) | active


class PermissionEngine:
    """Resolves permission checks for a user within a tenant.
    
    Steps per check: boundary validation, cache lookup, store union,
    ownership special cases, cache write-through. Store calls are bounded
    by ``store_timeout_seconds`` and any store failure yields a
    ``STORE_UNAVAILABLE`` denial.
    """
    
    def __init__(
        self,
        store: PermissionStore,
        taxonomy: PermissionTaxonomy,
        cache: Optional[MultiLevelDecisionCache] = None,
        audit: Optional[AuditDispatcher] = None,
        dependency_resolver: Optional[DependencyResolver] = None,
        settings: Optional[AuthzSettings] = None,
        clock: Optional[Callable[[], datetime]] = None
    ):
        """Initialize the engine.
        
        Args:
            store: Tenant-filtered permission store
            taxonomy: Global catalogue of known permissions
            cache: Decision cache; built from settings when omitted
            audit: Audit event dispatcher
            dependency_resolver: Functional dependency resolver; validated at construction
            settings: Engine settings; process settings when omitted
            clock: Returns the current UTC time (expiring grants)
        """
        self.settings = settings or get_settings()
        self.store = store
        self.taxonomy = taxonomy
        self.cache = cache if cache is not None else create_decision_cache(self.settings)
        self.audit = audit or AuditDispatcher()
        self.dependencies = dependency_resolver or DependencyResolver()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.boundary = BoundaryResolver(
            store,
            audit=self.audit,
            check_tenant_status=self.settings.check_tenant_status,
            store_call=self._call_store,
        )
    
    async def check_permission(
        self,
        user_id: str,
        tenant_id: Optional[str],
        resource_type: str,
        action: str,
        resource_id: Optional[str] = None,
        *,
        target_tenant_id: Optional[str] = None,
        operation: Optional[str] = None
    ) -> Decision:
        """Decide whether ``user_id`` may perform ``action`` on ``resource_type``.
        
        Args:
            user_id: Acting user
            tenant_id: Active tenant context of the request
            resource_type: Resource type, e.g. ``User``
            action: Action, e.g. ``Update``
            resource_id: Concrete resource, ``"*"`` or None for collection access
            target_tenant_id: Tenant owning the resource when it differs from the context
            operation: Operation type consulted for cross-tenant allowances
        
        Returns:
            Granted or Denied decision
        
        Raises:
            TenantContextMissing: If no active tenant context is provided
            ValueError: If user_id is empty
        """
        decisions = await self._check_many(
            user_id,
            tenant_id,
            [PermissionCheck(resource_type, action, resource_id)],
            target_tenant_id=target_tenant_id,
            operation=operation,
        )
        return decisions[0]
    
    async def check_permissions(
        self,
        user_id: str,
        tenant_id: Optional[str],
        checks: Sequence[PermissionCheck],
        *,
        target_tenant_id: Optional[str] = None,
        operation: Optional[str] = None
    ) -> List[Decision]:
        """Decide a batch of checks; decisions are returned in request order.
        
        The boundary is validated once and grant data is read from the
        store at most once for all checks missing from the cache.
        """
        return await self._check_many(
            user_id, tenant_id, checks, target_tenant_id=target_tenant_id, operation=operation
        )
    
    async def _check_many(
        self,
        user_id: str,
        tenant_id: Optional[str],
        checks: Sequence[PermissionCheck],
        target_tenant_id: Optional[str] = None,
        operation: Optional[str] = None,
        report: bool = True
    ) -> List[Decision]:
        tenant_id = as_str(tenant_id)
        if not tenant_id:
            raise TenantContextMissing()
        user_id = UserId(as_str(user_id)).value
        if target_tenant_id:
            target_tenant_id = TenantId(as_str(target_tenant_id)).value
        if not checks:
            return []
        
        effective_tenant = target_tenant_id or tenant_id
        
        def finish(decisions: List[Decision]) -> List[Decision]:
            if not report:
                return decisions
            return [self._report(decision) for decision in decisions]
        
        def deny_all(code: DecisionCode, reason: str) -> List[Decision]:
            return finish([self._deny(user_id, effective_tenant, check, code, reason) for check in checks])
        
        try:
            boundary = await self.boundary.validate_boundary(user_id, tenant_id, target_tenant_id, operation)
        except StoreUnavailable as e:
            logger.error(f"Boundary validation failed closed for user {user_id}: {e}")
            return deny_all(DecisionCode.STORE_UNAVAILABLE, e.message)
        
        if not boundary:
            return deny_all(DecisionCode.BOUNDARY_DENIED, f"Tenant boundary denied: {boundary.reason.value}")
        
        results: List[Optional[Decision]] = [None] * len(checks)
        pending: List[int] = []
        for index, check in enumerate(checks):
            if not self.taxonomy.contains(check.resource_type, check.action):
                logger.error(f"Unknown permission requested: {check.resource_type}:{check.action}")
                results[index] = self._deny(
                    user_id, effective_tenant, check, DecisionCode.UNKNOWN_PERMISSION,
                    f"Unknown permission: {check.resource_type}:{check.action}",
                )
                continue
            
            cached = await self._cache_get(self._cache_key(user_id, effective_tenant, check))
            if cached is not None:
                results[index] = cached.as_cached()
            else:
                pending.append(index)
        
        if pending:
            # Must precede the snapshot read: decisions from data read before
            # a later invalidation are never written back
            generation = await self._cache_generation(user_id, effective_tenant)
            try:
                snapshot = await self._load_snapshot(user_id, effective_tenant)
                for index in pending:
                    decision, cacheable = await self._decide(user_id, effective_tenant, checks[index], snapshot)
                    if cacheable and generation is not None:
                        await self._cache_put(
                            self._cache_key(user_id, effective_tenant, checks[index]), decision, generation
                        )
                    results[index] = decision
            except StoreUnavailable as e:
                logger.error(f"Permission check failed closed for user {user_id} in {effective_tenant}: {e}")
                for index in pending:
                    if results[index] is None:
                        results[index] = self._deny(
                            user_id, effective_tenant, checks[index], DecisionCode.STORE_UNAVAILABLE, e.message
                        )
        
        return finish(results)
    
    async def _decide(
        self,
        user_id: str,
        tenant_id: str,
        check: PermissionCheck,
        snapshot: GrantSnapshot
    ) -> Tuple[Decision, bool]:
        """Resolve one check against a grant snapshot; returns the decision and whether it may be cached."""
        now = self._clock()
        permission = Permission(check.resource_type, check.action)
        source, expires_at = snapshot.match(permission, now)
        
        if source is None:
            return self._deny(
                user_id, tenant_id, check, DecisionCode.DENIED, f"No grant for {permission.code}"
            ), True
        
        if not self._requires_ownership(permission, check.resource_id):
            return self._grant(user_id, tenant_id, check, source, expires_at), True
        
        owner_id = await self._call_store(
            self.store.get_resource_owner(tenant_id, check.resource_type, check.resource_id)
        )
        if owner_id == user_id:
            return self._grant(user_id, tenant_id, check, source, expires_at), True
        
        any_action = Action.any_variant(check.action)
        if any_action is not None:
            any_source, any_expires_at = snapshot.match(Permission(check.resource_type, any_action), now)
            if any_source is not None:
                return self._grant(user_id, tenant_id, check, GrantSource.ANY_VARIANT, any_expires_at), True
        
        decision = self._deny(
            user_id, tenant_id, check, DecisionCode.NOT_OWNER,
            f"{permission.code} on {check.resource_id} requires ownership",
        )
        # An unknown owner may still be recorded later
        return decision, owner_id is not None
    
    def _requires_ownership(self, permission: Permission, resource_id: Optional[str]) -> bool:
        if resource_id is None or resource_id == WILDCARD_RESOURCE_ID:
            return False
        if Action.is_any_action(permission.action):
            return False
        return self.store.is_ownership_gated(permission)
    
    async def get_granted_permissions(self, user_id: str, tenant_id: Optional[str]) -> Set[Permission]:
        """Get the effective permission union of a user in a tenant.
        
        Empty when the tenant boundary denies access, e.g. for a suspended tenant.
        
        Raises:
            TenantContextMissing: If no tenant is provided
            StoreUnavailable: If tenant or grant data cannot be read
        """
        tenant_id = as_str(tenant_id)
        if not tenant_id:
            raise TenantContextMissing()
        user_id = UserId(as_str(user_id)).value
        boundary = await self.boundary.validate_boundary(user_id, tenant_id)
        if not boundary:
            logger.warning(f"No permissions reported for user {user_id} in {tenant_id}: {boundary.reason.value}")
            return set()
        snapshot = await self._load_snapshot(user_id, tenant_id)
        return snapshot.effective_permissions(self._clock())
    
    async def get_consistent_actions(self, user_id: str, tenant_id: Optional[str], resource_type: str) -> FrozenSet[str]:
        """Get the granted actions on a resource type whose dependencies are also granted.
        
        Intended for UI gating: an edit control is only offered alongside
        the matching view control. This never widens access.
        """
        granted = await self.get_granted_permissions(user_id, tenant_id)
        actions = {p.action for p in granted if p.resource_type == resource_type}
        return self.dependencies.consistent_actions(actions)
    
    async def warm_permissions(
        self,
        user_ids: Iterable[str],
        tenant_id: str,
        checks: Sequence[PermissionCheck]
    ) -> int:
        """Resolve and cache common checks ahead of demand.
        
        Each user is resolved with one batched store read. Users whose grant
        data cannot be read are skipped. Warming emits no audit events.
        
        Returns:
            Number of decisions newly resolved and cached
        """
        warmed = 0
        skipped = 0
        for user_id in user_ids:
            decisions = await self._check_many(user_id, tenant_id, checks, report=False)
            if any(decision.code == DecisionCode.STORE_UNAVAILABLE for decision in decisions):
                skipped += 1
                continue
            warmed += sum(1 for decision in decisions if decision.is_cacheable and not decision.cached)
        
        if skipped:
            logger.warning(f"Skipped warming for {skipped} users in {tenant_id}: permission store unavailable")
        logger.info(f"Warmed {warmed} decisions in {tenant_id}")
        return warmed
    
    # Invalidation
    
    async def invalidate_user_tenant(self, user_id: str, tenant_id: str) -> int:
        """Drop every cached decision for a user in a tenant."""
        return await self.cache.invalidate(InvalidationPattern(tenant_id, user_id))
    
    async def invalidate_role(self, role_id: str, tenant_id: str) -> int:
        """Drop cached decisions of every user holding the role in the tenant.
        
        Raises:
            StoreUnavailable: If role holders cannot be read
        """
        user_ids = await self._call_store(self.store.get_users_with_role(role_id, tenant_id))
        removed = 0
        for user_id in sorted(user_ids):
            removed += await self.cache.invalidate(InvalidationPattern(tenant_id, user_id))
        logger.info(f"Invalidated decisions of {len(user_ids)} users holding role {role_id} in {tenant_id}")
        return removed
    
    async def invalidate_direct_permission(self, user_id: str, tenant_id: str, resource_type: str, action: str) -> int:
        """Drop cached decisions affected by a direct permission change."""
        if Action.is_any_action(action):
            # ``...Any`` grants also satisfy ownership-gated checks of the base action
            pattern = InvalidationPattern(tenant_id, user_id, resource_type)
        else:
            pattern = InvalidationPattern(tenant_id, user_id, resource_type, action)
        return await self.cache.invalidate(pattern)
    
    async def invalidate_tenant(self, tenant_id: str) -> int:
        """Drop every cached decision in a tenant."""
        return await self.cache.invalidate(InvalidationPattern(tenant_id))
    
    # Lifecycle
    
    def start(self) -> None:
        """Start listening for peer cache invalidations."""
        self.cache.start()
    
    async def close(self) -> None:
        """Stop background work and flush pending audit events."""
        await self.cache.close()
        await self.audit.drain()
    
    # Internals
    
    async def _call_store(self, awaitable: Awaitable[T]) -> T:
        """Await a store call under the configured timeout, mapping every failure to StoreUnavailable."""
        timeout = self.settings.store_timeout_seconds
        try:
            return await asyncio.wait_for(awaitable, timeout=timeout)
        except StoreUnavailable:
            raise
        except asyncio.TimeoutError:
            raise StoreUnavailable(
                f"Permission store timed out after {timeout}s",
                details={"timeout_seconds": timeout},
            )
        except Exception as e:
            raise StoreUnavailable(f"Permission store error: {e}", details={"cause": type(e).__name__})
    
    async def _load_snapshot(self, user_id: str, tenant_id: str) -> GrantSnapshot:
        # Both reads run to completion; the first failure is re-raised
        results = await asyncio.gather(
            self._call_store(self.store.get_roles_for_user(user_id, tenant_id)),
            self._call_store(self.store.get_direct_permissions(user_id, tenant_id)),
            return_exceptions=True,
        )
        for result in results:
            if isinstance(result, BaseException):
                raise result
        role_ids, direct_grants = results
        role_permissions: Set[Permission] = set()
        if role_ids:
            role_permissions = await self._call_store(self.store.get_permissions_for_roles(set(role_ids)))
        return GrantSnapshot(
            role_ids=frozenset(role_ids),
            role_permissions=frozenset(role_permissions),
            direct_grants=frozenset(direct_grants),
        )
    
    def _cache_key(self, user_id: str, tenant_id: str, check: PermissionCheck) -> DecisionCacheKey:
        return DecisionCacheKey(tenant_id, user_id, check.resource_type, check.action, check.resource_id)
    
    async def _cache_get(self, key: DecisionCacheKey) -> Optional[Decision]:
        try:
            decision = await self.cache.get(key)
        except CacheError as e:
            logger.warning(f"Decision cache read failed, bypassing cache: {e}")
            return None
        if decision is not None and decision.expires_at is not None and decision.expires_at <= self._clock():
            return None
        return decision
    
    async def _cache_generation(self, user_id: str, tenant_id: str) -> Optional[CacheGeneration]:
        try:
            return await self.cache.generation(tenant_id, user_id)
        except CacheError as e:
            logger.warning(f"Decision cache generation read failed, skipping write-through: {e}")
            return None
    
    async def _cache_put(self, key: DecisionCacheKey, decision: Decision, generation: CacheGeneration) -> None:
        if not decision.is_cacheable:
            return
        ttl: float = self.settings.decision_ttl_seconds
        if decision.expires_at is not None:
            ttl = min(ttl, (decision.expires_at - self._clock()).total_seconds())
        if ttl <= 0:
            return
        try:
            await self.cache.set(key, decision, ttl, generation=generation)
        except CacheError as e:
            logger.warning(f"Decision cache write failed: {e}")
    
    def _grant(
        self,
        user_id: str,
        tenant_id: str,
        check: PermissionCheck,
        source: GrantSource,
        expires_at: Optional[datetime]
    ) -> Decision:
        return Decision(
            granted=True,
            code=DecisionCode.GRANTED,
            user_id=user_id,
            tenant_id=tenant_id,
            resource_type=check.resource_type,
            action=check.action,
            resource_id=check.resource_id,
            source=source,
            expires_at=expires_at,
        )
    
    def _deny(
        self,
        user_id: str,
        tenant_id: str,
        check: PermissionCheck,
        code: DecisionCode,
        reason: str
    ) -> Decision:
        return Decision(
            granted=False,
            code=code,
            user_id=user_id,
            tenant_id=tenant_id,
            resource_type=check.resource_type,
            action=check.action,
            resource_id=check.resource_id,
            reason=reason,
        )
    
    def _report(self, decision: Decision) -> Decision:
        logger.debug(f"{decision}{' (cached)' if decision.cached else ''}")
        if self.settings.audit_permission_checks:
            self.audit.permission_check(PermissionCheckEvent(
                user_id=decision.user_id,
                tenant_id=decision.tenant_id,
                resource_type=decision.resource_type,
                action=decision.action,
                granted=decision.granted,
                code=decision.code.value,
                resource_id=decision.resource_id,
                cached=decision.cached,
            ))
        return decision
