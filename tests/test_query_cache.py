"""Tests for QueryCache."""

from foodhub_server.query_cache import QueryCache, make_key


class TestQueryCache:
    """Tests for the per-operation response cache."""

    def test_key_ignores_variable_order(self):
        assert make_key("GetCart", {"a": 1, "b": 2}) == make_key("GetCart", {"b": 2, "a": 1})
        assert make_key("GetCart") == make_key("GetCart", {})

    def test_cached_none_is_a_hit(self):
        cache = QueryCache()
        cache.write("GetCart", {"restaurantId": "r1"}, None)

        assert cache.contains("GetCart", {"restaurantId": "r1"})
        assert not cache.contains("GetCart", {"restaurantId": "r2"})
        assert cache.read("GetCart", {"restaurantId": "r1"}) is None

    def test_evict_exact_variables(self):
        cache = QueryCache()
        cache.write("GetCart", {"restaurantId": "r1"}, "one")
        cache.write("GetCart", {"restaurantId": "r2"}, "two")

        assert cache.evict("GetCart", {"restaurantId": "r1"}) == 1
        assert cache.evict("GetCart", {"restaurantId": "r1"}) == 0
        assert cache.read("GetCart", {"restaurantId": "r2"}) == "two"

    def test_evict_whole_operation(self):
        cache = QueryCache()
        cache.write("GetReviewsByRestaurant", {"restaurantId": "r1", "limit": 10}, [])
        cache.write("GetReviewsByRestaurant", {"restaurantId": "r1", "limit": 20}, [])
        cache.write("GetCart", {"restaurantId": "r1"}, None)

        assert cache.evict("GetReviewsByRestaurant") == 2
        assert len(cache) == 1

    def test_clear(self):
        cache = QueryCache()
        cache.write("GetCart", {"restaurantId": "r1"}, None)

        cache.clear()

        assert len(cache) == 0
