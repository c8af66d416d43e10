from climatesim.ocean_abm.pruning import FlowPruningCache


def test_first_visitor_records_and_survives():
    cache = FlowPruningCache(10, 20)
    assert cache.check(1, 4.2, 3.1, 1.0, 0.0) is False
    assert cache.occupied == 1
    assert cache.owner[3, 4] == 1


def test_owner_is_never_pruned_on_its_own_cell():
    cache = FlowPruningCache(10, 20)
    cache.check(1, 4.2, 3.1, 1.0, 0.0)
    assert cache.check(1, 3.8, 2.9, 1.0, 0.0) is False


def test_parallel_flow_is_pruned():
    cache = FlowPruningCache(10, 20)
    cache.check(1, 4.0, 3.0, 1.0, 0.1)
    assert cache.check(2, 4.1, 3.2, 2.0, 0.2) is True


def test_opposing_or_crossing_flow_survives():
    cache = FlowPruningCache(10, 20)
    cache.check(1, 4.0, 3.0, 1.0, 0.0)
    assert cache.check(2, 4.0, 3.0, -1.0, 0.0) is False
    assert cache.check(3, 4.0, 3.0, 0.0, 1.0) is False
    # the cell keeps its first writer
    assert cache.owner[3, 4] == 1


def test_cells_wrap_and_clamp():
    cache = FlowPruningCache(10, 20)
    assert cache.cell_of(19.6, -3.0) == (0, 0)
    assert cache.cell_of(0.2, 42.0) == (9, 0)
