import asyncio
import sys
from pathlib import Path

import pytest

# Ensure repository root is on sys.path so `import locator_loader...` works locally
ROOT = Path(__file__).resolve().parent.parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from locator_loader.bundles import LocalBundleApi  # noqa: E402
from locator_loader.logger import ArtifactWriteError, CompilerError  # noqa: E402
from locator_loader.models import Bundle, WrittenArtifact  # noqa: E402


def yui_module(name, requires=(), affinity=None):
    meta = []
    if requires:
        meta.append("requires: [" + ", ".join(f"'{r}'" for r in requires) + "]")
    if affinity:
        meta.append(f"affinity: '{affinity}'")
    tail = f", {{{', '.join(meta)}}}" if meta else ""
    return f"YUI.add('{name}', function (Y, NAME) {{\n    Y.namespace('{name}');\n}}, '0.0.1'{tail});\n"


def write(path: Path, text: str) -> str:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return str(path)


class FakeCompiler:
    """Records build sets instead of spawning a compiler."""

    def __init__(self, fail=None, delay=0.0):
        self.calls = []
        self.fail = fail
        self.delay = delay
        self.active = 0
        self.max_active = 0

    async def compile(self, files, *, output_dir, cache, args):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            self.calls.append({"files": list(files), "output_dir": output_dir, "cache": cache, "args": list(args)})
            if self.fail:
                raise CompilerError(self.fail, returncode=1, stderr=self.fail)
        finally:
            self.active -= 1


class FailingWriter:
    def __init__(self):
        self.calls = 0

    async def write(self, bundle, relative_path, source):
        self.calls += 1
        raise ArtifactWriteError("disk full")


class RecordingRuntime:
    def __init__(self):
        self.calls = []

    def register_group(self, bundle_name, output_dir, artifact: WrittenArtifact):
        self.calls.append(("register_group", bundle_name, output_dir, artifact.full_path))

    def register_modules(self, bundle_name, modules):
        self.calls.append(("register_modules", bundle_name, modules))

    def attach_modules(self, bundle_name, module_names):
        self.calls.append(("attach_modules", bundle_name, list(module_names)))


@pytest.fixture
def shop(tmp_path):
    """A bundle with a client-only module, a server-only module and a shared build.json module."""
    root = tmp_path / "shop"
    write(root / "cart.js", yui_module("cart", requires=["node"], affinity="client"))
    write(root / "price.js", yui_module("price", affinity="server"))
    write(root / "util" / "build.json", '{"name": "util", "builds": {"util": {"jsfiles": ["util.js"]}}}')
    write(root / "util" / "js" / "util.js", "var util = {};\n")
    write(root / "README.md", "shop bundle\n")
    return Bundle(name="shop", root=str(root))


@pytest.fixture
def api(shop):
    return LocalBundleApi([shop])


@pytest.fixture
def fake_compiler():
    return FakeCompiler()


@pytest.fixture
def runtime():
    return RecordingRuntime()
