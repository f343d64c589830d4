"""Domain services: access control and type coercion."""

from recordgate.domain.services.access_policy import AccessPolicy
from recordgate.domain.services.type_caster import TypeCaster

__all__ = ["AccessPolicy", "TypeCaster"]
