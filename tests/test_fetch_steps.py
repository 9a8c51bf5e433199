"""Tests for fetch step synthesis."""

import hashlib

import pytest

from apkbuild import Descriptor
from common.errors import FetchError, ValidationError
from melange.fetch import (
    artifact_filename,
    build_fetch_steps,
    split_source,
    substitute_placeholders,
    validate_uri,
)
from melange.models import CHECKSUM_MISMATCH, SOURCE_URL_NOT_VALID

from conftest import FakeClient

BODY = b"not really a tarball"
TARBALL = "https://example.com/releases/foo-1.2.3.tar.gz"


def _descriptor(**kwargs):
    fields = {"key": "foo", "name": "foo", "version": "1.2.3",
              "source": ["https://example.com/releases/$pkgname-$pkgver.tar.gz"]}
    fields.update(kwargs)
    return Descriptor(**fields)


class TestPlaceholders:
    """Test source template expansion."""

    @pytest.mark.parametrize(
        "template,expected",
        [
            ("https://x/${pkgname}-${pkgver}.tar.gz", "https://x/foo-1.2.3.tar.gz"),
            ("https://x/$pkgname-$pkgver.tar.gz", "https://x/foo-1.2.3.tar.gz"),
            ("https://x/$_pkgname/v$_pkgver.tgz", "https://x/foo/v1.2.3.tgz"),
            ("https://x/${_pkgver}/${_pkgname}.zip", "https://x/1.2.3/foo.zip"),
            ("https://x/${pkgver%.*}/foo.tar.xz", "https://x/1.2/foo.tar.xz"),
            ("https://x/release-${pkgver//./-}.tgz", "https://x/release-1-2-3.tgz"),
            ("https://x/foo-${pkgver//./_}.tgz", "https://x/foo-1_2_3.tgz"),
            ("https://x/$pkgverx", "https://x/$pkgverx"),
        ],
    )
    def test_substitute(self, template, expected):
        assert substitute_placeholders(template, _descriptor()) == expected

    def test_substitute_with_version_text(self):
        template = "https://x/${pkgver%.*}/foo-${pkgver}-$_pkgver.tar.xz"
        assert substitute_placeholders(template, _descriptor(), "${{package.version}}") == (
            "https://x/1.2/foo-${{package.version}}-${{package.version}}.tar.xz"
        )

    def test_split_source_rename(self):
        assert split_source("foo-1.0.tar.gz::https://x/v1.0.tar.gz") == ("foo-1.0.tar.gz", "https://x/v1.0.tar.gz")
        assert split_source("https://x/v1.0.tar.gz") == (None, "https://x/v1.0.tar.gz")

    def test_artifact_filename(self):
        assert artifact_filename("https://x/a/b/foo%2Bbar-1.0.tar.gz") == "foo+bar-1.0.tar.gz"
        assert artifact_filename("https://x/v1.0.tar.gz", "foo-1.0.tar.gz") == "foo-1.0.tar.gz"

    @pytest.mark.parametrize("uri", ["skip-flawed-tests.patch", "/abs/path.tar.gz", "https://", "x:"])
    def test_validate_rejects_relative(self, uri):
        with pytest.raises(ValidationError):
            validate_uri(uri)

    def test_validate_accepts_absolute(self):
        validate_uri(TARBALL)


class TestBuildFetchSteps:
    """Test digest computation and sentinels."""

    def test_step_with_verified_checksum(self):
        d = _descriptor(sha512sums={"foo-1.2.3.tar.gz": hashlib.sha512(BODY).hexdigest()})
        client = FakeClient({TARBALL: BODY})

        steps = build_fetch_steps(d, client)

        assert client.calls == [TARBALL]
        assert [s.to_dict() for s in steps] == [{
            "uses": "fetch",
            "with": {
                "uri": "https://example.com/releases/foo-${{package.version}}.tar.gz",
                "expected-sha256": hashlib.sha256(BODY).hexdigest(),
            },
        }]

    def test_checksum_compare_is_case_insensitive(self):
        d = _descriptor(sha512sums={"foo-1.2.3.tar.gz": hashlib.sha512(BODY).hexdigest().upper()})
        steps = build_fetch_steps(d, FakeClient({TARBALL: BODY}))
        assert steps[0].with_["expected-sha256"] == hashlib.sha256(BODY).hexdigest()

    def test_undeclared_checksum_still_hashed(self):
        steps = build_fetch_steps(_descriptor(), FakeClient({TARBALL: BODY}))
        assert steps[0].with_["expected-sha256"] == hashlib.sha256(BODY).hexdigest()

    def test_checksum_mismatch_sentinel(self):
        d = _descriptor(sha512sums={"foo-1.2.3.tar.gz": "0" * 128})
        steps = build_fetch_steps(d, FakeClient({TARBALL: BODY}))
        assert steps[0].with_["expected-sha256"] == CHECKSUM_MISMATCH

    def test_non_ok_response_sentinel(self):
        steps = build_fetch_steps(_descriptor(), FakeClient({TARBALL: (404, b"")}))
        assert steps[0].with_["expected-sha256"] == SOURCE_URL_NOT_VALID
        assert steps[0].with_["uri"] == "https://example.com/releases/foo-${{package.version}}.tar.gz"

    def test_transport_error_sentinel(self):
        client = FakeClient(errors={TARBALL: FetchError("timed out")})
        steps = build_fetch_steps(_descriptor(), client)
        assert steps[0].with_["expected-sha256"] == SOURCE_URL_NOT_VALID

    def test_rename_form_uses_declared_filename(self):
        d = _descriptor(
            source=["foo-$pkgver.tar.gz::https://example.com/archive/v$pkgver.tar.gz"],
            sha512sums={"foo-1.2.3.tar.gz": "0" * 128},
        )
        steps = build_fetch_steps(d, FakeClient({"https://example.com/archive/v1.2.3.tar.gz": BODY}))
        assert steps[0].with_["uri"] == "https://example.com/archive/v${{package.version}}.tar.gz"
        assert steps[0].with_["expected-sha256"] == CHECKSUM_MISMATCH

    def test_one_step_per_source(self):
        d = _descriptor(source=[TARBALL, "https://example.com/patches/fix.patch"])
        steps = build_fetch_steps(d, FakeClient({TARBALL: BODY}))
        assert len(steps) == 2
        assert steps[1].with_["expected-sha256"] == SOURCE_URL_NOT_VALID

    def test_relative_source_is_flagged_and_others_kept(self):
        d = _descriptor(source=[
            "https://example.com/releases/$pkgname-$pkgver.tar.gz",
            "fix-$pkgver.patch",
            "https://example.com/patches/musl.patch",
        ])
        client = FakeClient({TARBALL: BODY})

        steps = build_fetch_steps(d, client)

        assert client.calls == [TARBALL, "https://example.com/patches/musl.patch"]
        assert [s.to_dict()["with"] for s in steps] == [
            {
                "uri": "https://example.com/releases/foo-${{package.version}}.tar.gz",
                "expected-sha256": hashlib.sha256(BODY).hexdigest(),
            },
            {"uri": "fix-${{package.version}}.patch", "expected-sha256": SOURCE_URL_NOT_VALID},
            {"uri": "https://example.com/patches/musl.patch", "expected-sha256": SOURCE_URL_NOT_VALID},
        ]

    def test_version_only_restored_where_substituted(self):
        d = _descriptor(version="1", source=["https://example1.com/v1/foo-$pkgver.tar.gz"])
        steps = build_fetch_steps(d, FakeClient({"https://example1.com/v1/foo-1.tar.gz": BODY}))
        assert steps[0].with_ == {
            "uri": "https://example1.com/v1/foo-${{package.version}}.tar.gz",
            "expected-sha256": hashlib.sha256(BODY).hexdigest(),
        }

    def test_no_sources(self):
        client = FakeClient()
        assert build_fetch_steps(_descriptor(source=[]), client) == []
        assert client.calls == []

    def test_missing_version(self):
        with pytest.raises(ValidationError):
            build_fetch_steps(_descriptor(version=""), FakeClient())
