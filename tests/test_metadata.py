import pytest

from locator_loader.metadata import LoaderMetaBuilder, module_map, parse_loader_source
from locator_loader.models import BuildVariant, ModuleDescriptor


def _view():
    return {
        "cart": ModuleDescriptor("cart", "/s/cart.js", {"cart": BuildVariant("cart", {"requires": ["node"]})}),
        "loader-shop": ModuleDescriptor(
            "loader-shop", "loader-shop.js", {"loader-shop": BuildVariant("loader-shop", {"affinity": "client"})}
        ),
    }


@pytest.mark.unit
def test_module_map_tags_group():
    modules = module_map("shop", _view())
    assert modules == {
        "cart": {"requires": ["node"], "group": "shop"},
        "loader-shop": {"affinity": "client", "group": "shop"},
    }


@pytest.mark.unit
def test_compile_is_deterministic_regardless_of_view_order():
    view = _view()
    reversed_view = dict(reversed(list(view.items())))
    one = LoaderMetaBuilder().compile("loader-shop", "shop", view)
    two = LoaderMetaBuilder().compile("loader-shop", "shop", reversed_view)
    assert one.source == two.source
    assert one.source.startswith('YUI.add("loader-shop", function (Y, NAME) {')
    assert '"requires": ["loader-base"]' in one.source


@pytest.mark.unit
def test_compiled_source_parses_back():
    loader = LoaderMetaBuilder().compile("loader-shop", "shop", _view())
    parsed = parse_loader_source(loader.source)
    assert parsed == {"name": "loader-shop", "group": "shop", "modules": loader.json}


@pytest.mark.unit
def test_parse_loader_source_rejects_other_text():
    assert parse_loader_source("YUI.add('cart', function (Y) {}, '0.0.1');") is None
    assert parse_loader_source("") is None
