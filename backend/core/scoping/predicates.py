from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from django.db.models import Q

from scoping.scope import AccessScope


@dataclass(frozen=True)
class BoundingBoxClause:
    """Inclusive lat/lng rectangle."""

    south: float
    west: float
    north: float
    east: float
    lat_field: str = "latitude"
    lng_field: str = "longitude"

    def to_q(self) -> Q:
        return Q(
            **{
                f"{self.lat_field}__gte": self.south,
                f"{self.lat_field}__lte": self.north,
                f"{self.lng_field}__gte": self.west,
                f"{self.lng_field}__lte": self.east,
            }
        )


@dataclass(frozen=True)
class ScopeClause:
    scope: AccessScope

    def to_q(self) -> Q:
        return self.scope.to_q()


@dataclass(frozen=True)
class FieldEqualsClause:
    field_name: str
    value: object

    def to_q(self) -> Q:
        return Q(**{self.field_name: self.value})


@dataclass(frozen=True)
class FieldInClause:
    field_name: str
    values: tuple

    def to_q(self) -> Q:
        return Q(**{f"{self.field_name}__in": list(self.values)})


@dataclass(frozen=True)
class TextSearchClause:
    """Case-insensitive substring match on any of ``fields``."""

    term: str
    fields: tuple = ("name",)

    def to_q(self) -> Q:
        query = Q()
        for field_name in self.fields:
            query |= Q(**{f"{field_name}__icontains": self.term})
        return query


@dataclass
class AssetPredicate:
    """Conjunction of typed clauses compiled to a single ``Q`` object."""

    clauses: list = field(default_factory=list)

    def add(self, clause) -> "AssetPredicate":
        self.clauses.append(clause)
        return self

    def extend(self, clauses: Iterable) -> "AssetPredicate":
        self.clauses.extend(clauses)
        return self

    def to_q(self) -> Q:
        query = Q()
        for clause in self.clauses:
            query &= clause.to_q()
        return query

    def apply(self, queryset):
        return queryset.filter(self.to_q())
