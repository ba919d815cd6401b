"""
Verdict Fingerprint Tests
"""

from recipe_engine.shared.hashing import HASH_PREFIX, canonical_json, fingerprint


class TestCanonicalJson:

    def test_key_order_irrelevant(self):
        assert canonical_json({"b": 1, "a": 2}) == canonical_json({"a": 2, "b": 1})

    def test_volatile_fields_dropped(self):
        assert canonical_json({"score": 90.0, "validated_at": "2026-01-01T00:00:00Z"}) == '{"score":90.0}'

    def test_volatile_fields_kept_on_request(self):
        assert "validated_at" in canonical_json({"validated_at": "x"}, drop_volatile=False)

    def test_models_are_dumped(self, recipe_factory):
        recipe = recipe_factory([("caffeine", 80)])
        assert '"ingredient_id":"caffeine"' in canonical_json(recipe)


class TestFingerprint:

    def test_format(self):
        digest = fingerprint({"a": 1})
        assert digest.startswith(HASH_PREFIX)
        assert len(digest) == len(HASH_PREFIX) + 64

    def test_timing_does_not_change_fingerprint(self):
        first = {"metadata": {"validation_time_ms": 1.5, "ingredient_count": 3}}
        second = {"metadata": {"validation_time_ms": 9.0, "ingredient_count": 3}}
        assert fingerprint(first) == fingerprint(second)

    def test_recipe_changes_fingerprint(self, recipe_factory):
        assert fingerprint(recipe_factory([("caffeine", 80)])) != fingerprint(recipe_factory([("caffeine", 81)]))
