import threading
from hotelix.cache.intervention_cache import InterventionCache, generate_key, EVICTION_SLACK


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _cache(**kw):
    clock = FakeClock()
    return InterventionCache(clock=clock, **kw), clock


def test_generate_key_sorts_params():
    assert generate_key('global', {'period_days': None, 'hotel_id': 1}) == 'global:hotel_id:1|period_days:None'
    assert generate_key('technician', {'technicien_id': 7, 'period_days': 30}) == 'technician:period_days:30|technicien_id:7'


def test_get_set_and_ttl_expiry():
    cache, clock = _cache(ttl_seconds=60)
    assert cache.get_global_stats(1) is None
    cache.set_global_stats(1, None, {'total': 3})
    assert cache.get_global_stats(1) == {'total': 3}
    clock.advance(60)
    assert cache.get_global_stats(1) == {'total': 3}
    clock.advance(1)
    assert cache.get_global_stats(1) is None
    # expired entries are dropped on lookup
    assert cache.stats()['global_entries'] == 0
    assert cache.stats()['hits'] == 2
    assert cache.stats()['misses'] == 2
    assert cache.stats()['hit_rate'] == 0.5


def test_periods_are_distinct_keys():
    cache, _ = _cache()
    cache.set_global_stats(1, None, 'all')
    cache.set_global_stats(1, 7, 'week')
    assert cache.get_global_stats(1) == 'all'
    assert cache.get_global_stats(1, 7) == 'week'
    assert cache.get_global_stats(1, 30) is None


def test_invalidation_matches_exact_id():
    cache, _ = _cache()
    cache.set_global_stats(1, None, 'h1')
    cache.set_global_stats(1, 7, 'h1-7')
    cache.set_global_stats(10, None, 'h10')
    cache.set_technician_stats(2, 30, 't2')
    cache.set_technician_stats(21, 30, 't21')
    assert cache.invalidate_hotel_stats(1) == 2
    assert cache.get_global_stats(10) == 'h10'
    assert cache.invalidate_technician_stats(2) == 1
    assert cache.get_technician_stats(21, 30) == 't21'
    assert cache.get_technician_stats(2, 30) is None


def test_eviction_drops_oldest_with_slack():
    cache, clock = _cache(max_size=20)
    for hotel_id in range(21):
        cache.set_global_stats(hotel_id, None, hotel_id)
        clock.advance(1)
    # 21 entries > 20: drop 21 - 20 + slack oldest
    assert cache.stats()['global_entries'] == 21 - (1 + EVICTION_SLACK)
    assert cache.get_global_stats(0) is None
    assert cache.get_global_stats(EVICTION_SLACK) is None
    assert cache.get_global_stats(EVICTION_SLACK + 1) == EVICTION_SLACK + 1
    assert cache.get_global_stats(20) == 20


def test_invalidate_all_and_configure():
    cache, _ = _cache()
    cache.set_global_stats(1, None, 'x')
    cache.set_technician_stats(1, 30, 'y')
    cache.invalidate_all()
    assert cache.stats()['global_entries'] == 0
    assert cache.stats()['technician_entries'] == 0
    cache.configure(ttl_seconds=5, max_size=50)
    assert cache.stats()['ttl_seconds'] == 5
    assert cache.stats()['max_size'] == 50


def test_init_app_reads_config(app_instance):
    from hotelix.cache.intervention_cache import intervention_cache
    cache = InterventionCache()
    app_instance.config['STATS_CACHE_TTL_SECONDS'] = 15
    try:
        cache.init_app(app_instance)
        assert cache.ttl_seconds == 15
        assert app_instance.extensions['intervention_cache'] is cache
    finally:
        app_instance.config['STATS_CACHE_TTL_SECONDS'] = 60
        app_instance.extensions['intervention_cache'] = intervention_cache


def test_concurrent_access_keeps_counters_consistent():
    cache = InterventionCache(ttl_seconds=600, max_size=100)
    workers, rounds = 8, 200
    barrier = threading.Barrier(workers)
    errors = []

    def work(tid):
        try:
            barrier.wait()
            for i in range(rounds):
                cache.set_global_stats(tid, i % 5, i)
                assert cache.get_global_stats(tid, i % 5) == i
                cache.set_technician_stats(tid, i % 3, i)
                assert cache.get_technician_stats(tid, i % 3) == i
                if i % 10 == 9:
                    cache.invalidate_hotel_stats(tid)
        except Exception as exc:  # reported below
            errors.append(exc)

    threads = [threading.Thread(target=work, args=(tid,)) for tid in range(workers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    snapshot = cache.stats()
    assert snapshot['hits'] == workers * rounds * 2
    assert snapshot['misses'] == 0
    # every 10th round clears the thread's hotel; round 199 is one of them
    assert snapshot['global_entries'] == 0
    assert snapshot['technician_entries'] == workers * 3
