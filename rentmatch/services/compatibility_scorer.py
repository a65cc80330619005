"""
Tenant/property compatibility scoring.

Scoring methodology (base 50):
- Dealbreakers: a tenant with pets against a property that refuses pets, or a
  smoker against a non-smoking property, scores -100 and nothing else counts.
- Preferred tenant type: +20 when the tenant's type is in the property's
  preferred set, -20 when it is not. Skipped when either side is silent.
- Rooms: +15 when the property has at least the tenant's desired rooms
  (default 1), +5 more for an exact fit, -15 when it has fewer.
- Extra bathroom: only when the tenant wants one, +10 if present, -5 if not.
"""

from pydantic import BaseModel

from rentmatch.models.property import PropertySnapshot, TenantProfile


class CompatibilityWeights(BaseModel):
    """Weights of the compatibility model"""

    base: float = 50.0
    dealbreaker: float = -100.0
    tenant_type_match: float = 20.0
    tenant_type_mismatch: float = -20.0
    rooms_sufficient: float = 15.0
    rooms_exact_bonus: float = 5.0
    rooms_insufficient: float = -15.0
    extra_bathroom_present: float = 10.0
    extra_bathroom_missing: float = -5.0
    default_desired_rooms: int = 1


DEFAULT_WEIGHTS = CompatibilityWeights()


def is_dealbreaker(tenant: TenantProfile, prop: PropertySnapshot) -> bool:
    if tenant.has_pets is True and prop.pet_friendly is False:
        return True
    if tenant.is_smoker is True and prop.smoker_friendly is False:
        return True
    return False


def calculate_compatibility(
    tenant: TenantProfile,
    prop: PropertySnapshot,
    weights: CompatibilityWeights = DEFAULT_WEIGHTS,
) -> float:
    """Score how well a property fits a tenant, higher is better"""
    if is_dealbreaker(tenant, prop):
        return weights.dealbreaker

    score = weights.base

    if prop.preferred_tenants and tenant.tenant_type is not None:
        if tenant.tenant_type in prop.preferred_tenants:
            score += weights.tenant_type_match
        else:
            score += weights.tenant_type_mismatch

    desired_rooms = tenant.min_rooms if tenant.min_rooms is not None else weights.default_desired_rooms
    if prop.number_of_rooms >= desired_rooms:
        score += weights.rooms_sufficient
        if prop.number_of_rooms == desired_rooms:
            score += weights.rooms_exact_bonus
    else:
        score += weights.rooms_insufficient

    if tenant.wants_extra_bathroom is True:
        if prop.has_extra_bathroom is True:
            score += weights.extra_bathroom_present
        else:
            score += weights.extra_bathroom_missing

    return score
