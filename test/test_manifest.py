from pathlib import Path
from unittest import TestCase

import pytest

from gomod_advisor.manifest import (
    ExcludeDirective,
    ManifestDocument,
    ReplaceDirective,
    RequireDirective,
    RetractDirective,
    find_manifest,
    parse,
    parse_file,
    parse_replace_line,
    parse_require_line,
)

EXAMPLE_MOD = """
module github.com/btcsuite/btcd

require (
\tgithub.com/aead/siphash v1.0.1 // indirect
\tgithub.com/btcsuite/btclog v0.0.0-20170628155309-84c8d2346e9f
\tgithub.com/btcsuite/btcutil v0.0.0-20190425235716-9e5f4b9a998d
\tgithub.com/btcsuite/go-socks v0.0.0-20170105172521-4720035b7bfd
\tgithub.com/btcsuite/goleveldb v0.0.0-20160330041536-7834afc9e8cd
\tgithub.com/btcsuite/snappy-go v0.0.0-20151229074030-0bdef8d06723 // indirect
\tgithub.com/btcsuite/websocket v0.0.0-20150119174127-31079b680792
\tgithub.com/btcsuite/winsvc v1.0.0
\tgithub.com/davecgh/go-spew v0.0.0-20171005155431-ecdeabc65495
\tgithub.com/jessevdk/go-flags v0.0.0-20141203071132-1679536dcc89
\tgithub.com/jrick/logrotate v1.0.0
\tgithub.com/kkdai/bstream v0.0.0-20161212061736-f391b8402d23 // indirect
\tgithub.com/onsi/ginkgo v1.7.0 // indirect
\tgithub.com/onsi/gomega v1.4.3 // indirect
\tgolang.org/x/crypto v0.0.0-20170930174604-9419663f5a44
)

go 1.12
"""

FULL_MOD = """// Code generated by hand.
module example.com/service

go 1.21

toolchain go1.21.5

require github.com/single/line v1.0.0

require (
\t// a comment inside a block
\tgithub.com/x/y v1.2.3 // pinned for reasons

\tgithub.com/broken
)

replace github.com/x/y => ../y

replace (
\tgithub.com/old/pkg v1.0.0 => github.com/new/pkg v1.1.0
\tgithub.com/missing/arrow v1.0.0 github.com/new/pkg
)

exclude github.com/bad/pkg v0.9.0

exclude (
\tgithub.com/bad/pkg v0.9.1
\tgithub.com/lonely
)

retract v1.0.1 // published by accident

retract (
\t[v1.1.0, v1.2.0]
)
"""


class TestParse(TestCase):
    def test_parsing(self):
        document = parse(EXAMPLE_MOD)
        self.assertEqual(document.module, "github.com/btcsuite/btcd")
        self.assertEqual(document.go_version, "1.12")
        self.assertEqual(len(document.require), 15)
        self.assertIn(
            RequireDirective("github.com/btcsuite/websocket", "v0.0.0-20150119174127-31079b680792"),
            document.require,
        )
        self.assertEqual(sum(1 for r in document.require if r.indirect), 5)

    def test_require_block(self):
        document = parse(
            "module example.com/foo\n"
            "go 1.21\n"
            "require (\n"
            "\tgithub.com/x/y v1.2.3\n"
            "\tgithub.com/a/b v0.1.0 // indirect\n"
            ")\n"
        )
        self.assertEqual(document.module, "example.com/foo")
        self.assertEqual(document.go_version, "1.21")
        self.assertEqual(
            document.require,
            (
                RequireDirective("github.com/x/y", "v1.2.3", indirect=False),
                RequireDirective("github.com/a/b", "v0.1.0", indirect=True),
            ),
        )

    def test_single_token_require_is_dropped(self):
        document = parse("module example.com/foo\nrequire github.com/x/y\n")
        self.assertEqual(document.require, ())

    def test_all_directives(self):
        document = parse(FULL_MOD)
        self.assertEqual(document.module, "example.com/service")
        self.assertEqual(document.go_version, "1.21")
        self.assertEqual(
            document.require,
            (
                RequireDirective("github.com/single/line", "v1.0.0"),
                RequireDirective("github.com/x/y", "v1.2.3"),
            ),
        )
        self.assertEqual(
            document.replace,
            (
                ReplaceDirective("github.com/x/y", None, "../y", None),
                ReplaceDirective("github.com/old/pkg", "v1.0.0", "github.com/new/pkg", "v1.1.0"),
            ),
        )
        self.assertEqual(
            document.exclude,
            (
                ExcludeDirective("github.com/bad/pkg", "v0.9.0"),
                ExcludeDirective("github.com/bad/pkg", "v0.9.1"),
            ),
        )
        self.assertEqual(
            document.retract,
            (
                RetractDirective("v1.0.1", "published by accident"),
                RetractDirective("[v1.1.0, v1.2.0]"),
            ),
        )

    def test_stray_close_paren(self):
        document = parse(")\nmodule example.com/foo\n)\nrequire github.com/x/y v1.0.0\n")
        self.assertEqual(document.module, "example.com/foo")
        self.assertEqual(len(document.require), 1)

    def test_module_line_ignored_inside_block(self):
        document = parse("require (\nmodule example.com/foo\n)\n")
        self.assertEqual(document.module, "")
        # "module example.com/foo" is a syntactically valid require line
        self.assertEqual(document.require, (RequireDirective("module", "example.com/foo"),))

    def test_bytes_input(self):
        document = parse(b"module example.com/foo\nrequire github.com/x/y v1.0.0\n")
        self.assertEqual(document.module, "example.com/foo")
        self.assertEqual(document.require[0].path, "github.com/x/y")

    def test_repeated_module_and_go_lines(self):
        document = parse("module a.com/x\ngo 1.20\nmodule b.com/y\ngo 1.21\n")
        self.assertEqual((document.module, document.go_version), ("b.com/y", "1.21"))

    def test_byte_order_mark(self):
        content = "module example.com/foo\nrequire github.com/x/y v1.0.0\n"
        for document in (parse(b"\xef\xbb\xbf" + content.encode()), parse("\ufeff" + content)):
            self.assertEqual(document.module, "example.com/foo")
            self.assertEqual(len(document.require), 1)

    def test_empty(self):
        self.assertEqual(parse(""), ManifestDocument())

    def test_version_strings_are_preserved(self):
        for directive in parse(EXAMPLE_MOD).require:
            self.assertIn(f"{directive.path} {directive.version}", EXAMPLE_MOD)


class TestLineParsers:
    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            ("github.com/x/y v1.2.3", RequireDirective("github.com/x/y", "v1.2.3")),
            ("github.com/x/y v1.2.3 // indirect", RequireDirective("github.com/x/y", "v1.2.3", indirect=True)),
            ("github.com/x/y v1.2.3 // some note", RequireDirective("github.com/x/y", "v1.2.3")),
            ("github.com/x/y", None),
            ("// indirect", None),
            ("   ", None),
        ],
    )
    def test_require_line(self, line: str, expected: RequireDirective | None) -> None:
        assert parse_require_line(line) == expected

    @pytest.mark.parametrize(
        ("line", "expected"),
        [
            ("a/b => ../b", ReplaceDirective("a/b", None, "../b", None)),
            ("a/b v1.0.0 => c/d v2.0.0", ReplaceDirective("a/b", "v1.0.0", "c/d", "v2.0.0")),
            ("a/b => c/d v2.0.0", ReplaceDirective("a/b", None, "c/d", "v2.0.0")),
            ("a/b c/d", None),
            ("=> c/d", None),
            ("a/b =>", None),
        ],
    )
    def test_replace_line(self, line: str, expected: ReplaceDirective | None) -> None:
        assert parse_replace_line(line) == expected


class TestManifestDocument:
    def test_replacement_for_prefers_pinned_version(self) -> None:
        document = parse(
            "replace (\n"
            "\tgithub.com/old/pkg => ../any\n"
            "\tgithub.com/old/pkg v1.0.0 => ../pinned\n"
            ")\n"
        )
        pinned = document.replacement_for("github.com/old/pkg", "v1.0.0")
        assert pinned is not None
        assert pinned.new_path == "../pinned"
        wildcard = document.replacement_for("github.com/old/pkg", "v2.0.0")
        assert wildcard is not None
        assert wildcard.new_path == "../any"
        assert document.replacement_for("github.com/other/pkg") is None

    def test_is_excluded(self) -> None:
        document = parse("exclude github.com/bad/pkg v0.9.0\n")
        assert document.is_excluded("github.com/bad/pkg", "v0.9.0")
        assert not document.is_excluded("github.com/bad/pkg", "v1.0.0")


class TestManifestFile:
    def test_find_manifest(self, go_module: Path) -> None:
        assert find_manifest(go_module) == go_module / "go.mod"

    def test_missing_manifest(self, tmp_path: Path) -> None:
        assert find_manifest(tmp_path) is None

    def test_parse_file(self, go_module: Path) -> None:
        document = parse_file(go_module / "go.mod")
        assert document.module == "example.com/foo"
        assert [r.path for r in document.require] == ["github.com/x/y", "github.com/a/b"]
