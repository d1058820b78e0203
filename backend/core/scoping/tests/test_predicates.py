from types import SimpleNamespace

from django.db.models import Q
from django.test import SimpleTestCase

from scoping.predicates import (
    AssetPredicate,
    BoundingBoxClause,
    FieldEqualsClause,
    FieldInClause,
    ScopeClause,
    TextSearchClause,
)
from scoping.scope import AccessScope


def asset(owner_id=None, region_id=None):
    return SimpleNamespace(created_by_id=owner_id, region_id=region_id)


class AccessScopeAllowsTests(SimpleTestCase):
    def test_unrestricted_scope_allows_everything(self):
        scope = AccessScope(unrestricted=True)
        self.assertTrue(scope.allows(asset(owner_id=5, region_id=9)))
        self.assertTrue(scope.allows(asset()))

    def test_view_as_narrows_to_target_owner(self):
        scope = AccessScope(unrestricted=True, target_user_id=7)
        self.assertTrue(scope.allows(asset(owner_id=7)))
        self.assertFalse(scope.allows(asset(owner_id=8, region_id=1)))

    def test_restricted_scope_allows_owner_or_region(self):
        scope = AccessScope(unrestricted=False, region_ids=frozenset({3}), owner_id=1)
        self.assertTrue(scope.allows(asset(owner_id=1, region_id=None)))
        self.assertTrue(scope.allows(asset(owner_id=2, region_id=3)))
        self.assertFalse(scope.allows(asset(owner_id=2, region_id=4)))
        self.assertFalse(scope.allows(asset(owner_id=2, region_id=None)))

    def test_anonymous_restricted_scope_allows_nothing(self):
        scope = AccessScope(unrestricted=False)
        self.assertFalse(scope.allows(asset(owner_id=None, region_id=None)))


class PredicateCompositionTests(SimpleTestCase):
    def test_unrestricted_scope_compiles_to_empty_q(self):
        self.assertEqual(AccessScope(unrestricted=True).to_q(), Q())

    def test_view_as_compiles_to_owner_filter(self):
        self.assertEqual(
            AccessScope(unrestricted=True, target_user_id=4).to_q(),
            Q(created_by_id=4),
        )

    def test_restricted_scope_is_owner_or_regions(self):
        scope = AccessScope(unrestricted=False, region_ids=frozenset({2, 1}), owner_id=9)
        self.assertEqual(scope.to_q(), Q(created_by_id=9) | Q(region_id__in=[1, 2]))

    def test_bounding_box_is_inclusive(self):
        clause = BoundingBoxClause(south=10.0, west=70.0, north=20.0, east=80.0)
        self.assertEqual(
            clause.to_q(),
            Q(latitude__gte=10.0, latitude__lte=20.0, longitude__gte=70.0, longitude__lte=80.0),
        )

    def test_text_search_matches_any_field(self):
        clause = TextSearchClause("tower", fields=("name", "unique_id"))
        self.assertEqual(
            clause.to_q(),
            Q(name__icontains="tower") | Q(unique_id__icontains="tower"),
        )

    def test_clauses_are_anded(self):
        predicate = AssetPredicate()
        predicate.add(FieldEqualsClause("item_type", "POP"))
        predicate.add(FieldInClause("status", ("Active", "RFS")))
        self.assertEqual(
            predicate.to_q(),
            Q(item_type="POP") & Q(status__in=["Active", "RFS"]),
        )

    def test_empty_predicate_matches_everything(self):
        self.assertEqual(AssetPredicate().to_q(), Q())

    def test_scope_clause_delegates_to_scope(self):
        scope = AccessScope(unrestricted=False, owner_id=3)
        self.assertEqual(ScopeClause(scope).to_q(), scope.to_q())
