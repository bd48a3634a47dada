from netstack.random_engine import get_random_engine


def test_values_in_range():
    engine = get_random_engine()
    values = [engine.getrandbits(32) for _ in range(100)]
    assert all(0 <= value < 2**32 for value in values)
    assert len(set(values)) > 1


def test_independent_engines_differ():
    first = get_random_engine()
    second = get_random_engine()
    assert [first.getrandbits(64) for _ in range(4)] != [second.getrandbits(64) for _ in range(4)]


def test_engine_state_reproducible():
    engine = get_random_engine()
    state = engine.getstate()
    expected = [engine.random() for _ in range(5)]
    engine.setstate(state)
    assert [engine.random() for _ in range(5)] == expected