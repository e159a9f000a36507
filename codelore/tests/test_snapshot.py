"""Tests for loading a project directory into a snapshot."""

import pytest

from codelore.snapshot import load_snapshot


def _write(root, relative, content):
    path = root / relative
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding="utf-8")


@pytest.fixture
def swift_package(tmp_path):
    _write(tmp_path, "Sources/App/Main.swift", "import Core\nimport UIKit\n\nlet store = Store()\n")
    _write(tmp_path, "Sources/Core/Store.swift", "import Foundation\nimport Alamofire\n\nstruct Store {}\n")
    _write(tmp_path, "Tests/CoreTests/StoreTests.swift", "@testable import Core\nimport XCTest\n")
    _write(tmp_path, "Pods/Alamofire/Session.swift", "open class Session {}\n")
    _write(tmp_path, ".build/checkouts/Thing.swift", "struct Thing {}\n")
    _write(tmp_path, ".git/hooks/hook.swift", "print(1)\n")
    _write(tmp_path, "README.md", "# demo\n")
    return tmp_path


class TestLoadSnapshot:
    def test_files_and_skipped_dirs(self, swift_package):
        snapshot = load_snapshot(swift_package)
        assert [f.relative_path for f in snapshot.files] == [
            "Sources/App/Main.swift",
            "Sources/Core/Store.swift",
            "Tests/CoreTests/StoreTests.swift",
        ]
        assert snapshot.primary_lang == "swift"
        assert snapshot.name == swift_package.resolve().name

    def test_modules(self, swift_package):
        snapshot = load_snapshot(swift_package, name="demo")
        assert snapshot.name == "demo"
        assert snapshot.target_file_map == {
            "App": ["Sources/App/Main.swift"],
            "Core": ["Sources/Core/Store.swift"],
            "CoreTests": ["Tests/CoreTests/StoreTests.swift"],
        }

    def test_dependency_edges_skip_system_modules(self, swift_package):
        snapshot = load_snapshot(swift_package)
        edges = {(e.source, e.target) for e in snapshot.dep_edges}
        assert edges == {("App", "Core"), ("Core", "Alamofire"), ("CoreTests", "Core")}

    def test_objc_imports(self, tmp_path):
        _write(tmp_path, "App/XYHome.m", "#import <Masonry/Masonry.h>\n@import Firebase;\n#import \"XYHome.h\"\n")
        snapshot = load_snapshot(tmp_path)
        assert {(e.source, e.target) for e in snapshot.dep_edges} == {("App", "Masonry"), ("App", "Firebase")}

    def test_invalid_utf8_replaced(self, tmp_path):
        _write(tmp_path, "App/Bad.m", b"NSString *s = @\"\xff\";\n")
        [f] = load_snapshot(tmp_path).files
        assert "�" in f.content

    def test_large_files_skipped(self, tmp_path, monkeypatch):
        monkeypatch.setattr("codelore.snapshot.MAX_FILE_BYTES", 10)
        _write(tmp_path, "App/Small.m", "int x;\n")
        _write(tmp_path, "App/Big.m", "int y = 1234567890;\n")
        assert [f.relative_path for f in load_snapshot(tmp_path).files] == ["App/Small.m"]

    def test_root_files_have_no_module(self, tmp_path):
        _write(tmp_path, "main.swift", "print(1)\n")
        snapshot = load_snapshot(tmp_path)
        assert len(snapshot.files) == 1
        assert snapshot.target_file_map == {}

    def test_not_a_directory(self, tmp_path):
        with pytest.raises(NotADirectoryError):
            load_snapshot(tmp_path / "missing")
