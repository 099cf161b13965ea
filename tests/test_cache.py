from gachaforge.domain.cache import GlobalStatisticsKey, StatisticsCache, UserStatisticsKey
from gachaforge.domain.cards import GameplayType
from gachaforge.domain.statistics import UserStatistics


class FakeClock:
    def __init__(self) -> None:
        self.value = 0.0

    def __call__(self) -> float:
        return self.value


def test_entries_expire_after_their_ttl():
    clock = FakeClock()
    cache = StatisticsCache(user_ttl=10, global_ttl=60, clock=clock)
    cache.put(UserStatisticsKey("u1"), UserStatistics(total_gachas=3))
    cache.put(GlobalStatisticsKey(), {"total": 1})

    clock.value = 9.9
    assert cache.get(UserStatisticsKey("u1")).total_gachas == 3

    clock.value = 10
    assert cache.get(UserStatisticsKey("u1")) is None
    assert cache.get(GlobalStatisticsKey()) == {"total": 1}

    clock.value = 60
    assert cache.get(GlobalStatisticsKey()) is None


def test_cached_values_are_copies():
    cache = StatisticsCache()
    stats = UserStatistics(total_gachas=1)
    cache.put(UserStatisticsKey("u1"), stats)
    stats.total_gachas = 50

    fetched = cache.get(UserStatisticsKey("u1"))
    fetched.total_gachas = 99
    assert cache.get(UserStatisticsKey("u1")).total_gachas == 1


def test_invalidate_account_drops_every_variant_for_that_account():
    cache = StatisticsCache()
    cache.put(UserStatisticsKey("u1"), UserStatistics())
    cache.put(UserStatisticsKey("u1", GameplayType.BATTLE), UserStatistics())
    cache.put(UserStatisticsKey("u2"), UserStatistics())
    cache.put(GlobalStatisticsKey(), {})

    cache.invalidate_account("u1")

    assert UserStatisticsKey("u1") not in cache
    assert UserStatisticsKey("u1", GameplayType.BATTLE) not in cache
    assert UserStatisticsKey("u2") in cache
    assert GlobalStatisticsKey() in cache


def test_invalidate_global_and_clear():
    cache = StatisticsCache()
    cache.put(GlobalStatisticsKey(), {})
    cache.put(GlobalStatisticsKey(GameplayType.PUZZLE), {})
    cache.put(UserStatisticsKey("u1"), UserStatistics())

    cache.invalidate_global()
    assert len(cache) == 1

    cache.clear()
    assert len(cache) == 0


def test_non_positive_ttl_disables_caching():
    cache = StatisticsCache(user_ttl=0)
    cache.put(UserStatisticsKey("u1"), UserStatistics())
    assert cache.get(UserStatisticsKey("u1")) is None
