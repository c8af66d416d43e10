def pytest_addoption(parser):
    parser.addoption('--skip-slow', action='store_true', default=False,
                     help='deselect tests marked slow (full-resolution planet runs)')


def pytest_collection_modifyitems(config, items):
    """Deselect tests marked ``slow`` when ``--skip-slow`` is given.

    The end-to-end runs integrate a full 360x180 planet in pure Python and
    take several seconds each; quick edit/test loops can leave them out.
    """
    if not config.getoption('--skip-slow'):
        return

    removed = []
    kept = []
    for item in items:
        if item.get_closest_marker('slow') is not None:
            removed.append(item)
        else:
            kept.append(item)

    if removed:
        config.hook.pytest_deselected(items=removed)
        items[:] = kept
        tr = config.pluginmanager.get_plugin('terminalreporter')
        if tr:
            tr.write_sep('-', f'Deselected {len(removed)} slow tests')
