import pytest


@pytest.fixture
def fake_home(tmp_path, monkeypatch):
    """A throwaway $HOME with no XDG overrides."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
    monkeypatch.delenv("XDG_DATA_HOME", raising=False)
    return home


def shape(node):
    """Nested (key, value, children) tuples of a tree, built without recursion."""
    built = {}
    pending = [(node, False)]
    while pending:
        current, expanded = pending.pop()
        children = list(current.children())
        if not expanded:
            pending.append((current, True))
            pending.extend((child, False) for child in children)
            continue
        built[id(current)] = (
            current.key,
            current.value,
            tuple(built.pop(id(child)) for child in children),
        )
    return built[id(node)]


@pytest.fixture
def tree_shape():
    """Compares trees structurally: ``tree_shape(a.root) == tree_shape(b.root)``."""
    return shape
