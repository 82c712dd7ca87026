"""Build-set computation: ordering, directory scoping and loader self-exclusion."""

import pytest

from locator_loader.classifier import builds_in_bundle
from locator_loader.extractors import SourceExtractor
from locator_loader.models import BuildVariant, ModuleDescriptor
from locator_loader.registry import ModuleRegistry

from conftest import write, yui_module


class MapExtractor:
    """Extractor backed by dicts so paths need not exist."""

    def __init__(self, modules=None, builds=None):
        self.modules = modules or {}
        self.builds = builds or {}
        self.seen = []

    def extract_module(self, path):
        self.seen.append(path)
        name = self.modules.get(path)
        if name is None:
            return None
        return ModuleDescriptor(name=name, buildfile=path, builds={name: BuildVariant(name)})

    def extract_build(self, path):
        self.seen.append(path)
        name = self.builds.get(path)
        if name is None:
            return None
        return ModuleDescriptor(name=name, buildfile=path, builds={name: BuildVariant(name)})


@pytest.mark.unit
def test_empty_inputs_produce_empty_build_set():
    reg = ModuleRegistry()
    assert builds_in_bundle("shop", None, None, registry=reg, extractor=MapExtractor()) == []
    assert builds_in_bundle("shop", [], [], registry=reg, extractor=MapExtractor()) == []
    assert reg.lookup("shop") is None


@pytest.mark.unit
def test_modules_first_then_builds_in_sorted_order():
    ex = MapExtractor(
        modules={"/s/b.js": "b", "/s/a.js": "a", "/s/w/x.js": "x"},
        builds={"/s/w/build.json": "w", "/s/v/build.json": "v"},
    )
    reg = ModuleRegistry()
    builds = builds_in_bundle(
        "shop",
        ["/s/b.js", "/s/w/x.js", "/s/a.js"],
        ["/s/w/build.json", "/s/v/build.json"],
        registry=reg,
        extractor=ex,
    )
    assert builds == ["/s/a.js", "/s/b.js", "/s/w/x.js", "/s/w/build.json"]
    # untouched build.json is still registered
    assert "/s/v/build.json" in reg.lookup("shop")


@pytest.mark.unit
def test_same_inputs_in_any_order_give_same_build_set():
    ex = MapExtractor(modules={"/s/a.js": "a", "/s/b.js": "b"}, builds={"/s/build.json": "root"})
    one = builds_in_bundle("shop", ["/s/a.js", "/s/b.js"], ["/s/build.json"], registry=ModuleRegistry(), extractor=ex)
    two = builds_in_bundle("shop", ["/s/b.js", "/s/a.js"], ["/s/build.json"], registry=ModuleRegistry(), extractor=ex)
    assert one == two


@pytest.mark.unit
def test_own_loader_file_is_not_a_build_but_scopes_build_files():
    ex = MapExtractor(modules={"/s/loader-shop.js": "loader-shop"}, builds={"/s/build.json": "root"})
    reg = ModuleRegistry()
    builds = builds_in_bundle("shop", ["/s/loader-shop.js"], ["/s/build.json"], registry=reg, extractor=ex)

    assert builds == ["/s/build.json"]
    assert "/s/loader-shop.js" not in ex.seen
    assert "/s/loader-shop.js" not in reg.lookup("shop")


@pytest.mark.unit
def test_other_bundles_loader_is_an_ordinary_module():
    ex = MapExtractor(modules={"/s/loader-blog.js": "loader-blog"})
    builds = builds_in_bundle("shop", ["/s/loader-blog.js"], [], registry=ModuleRegistry(), extractor=ex)
    assert builds == ["/s/loader-blog.js"]


@pytest.mark.unit
def test_unparseable_files_are_skipped():
    ex = MapExtractor(modules={}, builds={})
    reg = ModuleRegistry()
    builds = builds_in_bundle("shop", ["/s/plain.js", "/s/x/build.json"], ["/s/x/build.json"], registry=reg, extractor=ex)
    assert builds == []
    assert reg.lookup("shop") is None


@pytest.mark.unit
def test_non_js_changes_do_not_trigger_build_files():
    ex = MapExtractor(builds={"/s/w/build.json": "w"})
    builds = builds_in_bundle("shop", ["/s/w/readme.md"], ["/s/w/build.json"], registry=ModuleRegistry(), extractor=ex)
    assert builds == []


@pytest.mark.unit
def test_modified_build_json_is_built_even_without_js_changes():
    ex = MapExtractor(builds={"/s/w/build.json": "w"})
    builds = builds_in_bundle(
        "shop", ["/s/w/build.json"], ["/s/w/build.json"], registry=ModuleRegistry(), extractor=ex
    )
    assert builds == ["/s/w/build.json"]


@pytest.mark.unit
@pytest.mark.parametrize("sibling", ["/s/utility/a.js", "/s/util-extra/a.js"])
def test_sibling_directory_sharing_a_prefix_does_not_trigger_build(sibling):
    ex = MapExtractor(modules={sibling: "a"}, builds={"/s/util/build.json": "util"})
    reg = ModuleRegistry()
    builds = builds_in_bundle("shop", [sibling], ["/s/util/build.json"], registry=reg, extractor=ex)
    assert builds == [sibling]
    # still registered for the loader metadata
    assert "/s/util/build.json" in reg.lookup("shop")


@pytest.mark.unit
def test_module_nested_under_build_directory_triggers_build():
    ex = MapExtractor(modules={"/s/util/js/deep/a.js": "a"}, builds={"/s/util/build.json": "util"})
    builds = builds_in_bundle(
        "shop", ["/s/util/js/deep/a.js"], ["/s/util/build.json"], registry=ModuleRegistry(), extractor=ex
    )
    assert builds == ["/s/util/js/deep/a.js", "/s/util/build.json"]


@pytest.mark.unit
def test_plain_js_under_build_dir_triggers_build(tmp_path):
    root = tmp_path / "shop"
    build = write(root / "util" / "build.json", '{"name": "util", "builds": {"util": {}}}')
    src = write(root / "util" / "js" / "util.js", "var util = {};\n")
    mod = write(root / "cart.js", yui_module("cart"))

    reg = ModuleRegistry()
    builds = builds_in_bundle("shop", [src, mod], [build], registry=reg, extractor=SourceExtractor())
    assert builds == [mod, build]
    assert set(reg.lookup("shop")) == {mod, build}
