"""
Tests for URI Classification

Covers every accepted input form, rule precedence, fallthrough behaviour and
malformed input handling of the classifier.
"""

import pytest

from ipfs_race.classifier import (
    DirectUrl,
    GatewayRequest,
    RULES,
    classify,
    explain
)
from ipfs_race.exceptions import MalformedInputError
from ipfs_race.gateways import Protocol

from conftest import CID_V0, CID_V0_DIR, CID_V1


class TestBareIdentifiers:
    """Test bare CIDs and CID paths."""

    def test_cid_uses_default_protocol(self):
        assert classify(CID_V0) == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0}")

    def test_cid_with_ipns_default(self):
        target = classify(CID_V0, default_protocol="ipns")

        assert target == GatewayRequest(Protocol.IPNS, f"/ipns/{CID_V0}")

    def test_cid_with_path(self):
        target = classify(f"{CID_V0_DIR}/0")

        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0_DIR}/0")

    def test_cid_v1(self):
        assert classify(CID_V1).path == f"/ipfs/{CID_V1}"

    def test_cid_and_cid_path_share_rule(self):
        assert explain(CID_V0)[0] == explain(f"{CID_V0}/a/b.json")[0] == "identifier"


class TestContentPaths:
    """Test ipfs/ and ipns/ prefixed paths."""

    def test_ipfs_prefix_overrides_default(self):
        target = classify(f"ipfs/{CID_V0_DIR}/0", default_protocol=Protocol.IPNS)

        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0_DIR}/0")

    def test_ipns_prefix_overrides_default(self):
        target = classify(f"ipns/{CID_V0}/index.html", default_protocol=Protocol.IPFS)

        assert target == GatewayRequest(Protocol.IPNS, f"/ipns/{CID_V0}/index.html")

    def test_ipns_dnslink_name(self):
        target = classify("ipns/docs.ipfs.tech/install")

        assert target == GatewayRequest(Protocol.IPNS, "/ipns/docs.ipfs.tech/install")

    def test_leading_slash(self):
        rule, target = explain(f"/ipfs/{CID_V0}")

        assert rule == "content-path"
        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0}")

    def test_invalid_cid_after_prefix_is_malformed(self):
        with pytest.raises(MalformedInputError):
            classify("ipfs/not-a-cid")


class TestSubdomainGateways:
    """Test <id>.<protocol>.<gateway> URLs."""

    def test_subdomain_with_subpath(self):
        rule, target = explain(f"https://{CID_V1}.ipfs.dweb.link/10.json")

        assert rule == "subdomain-gateway"
        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V1}/10.json")

    def test_multi_level_gateway_host(self):
        target = classify(f"https://{CID_V1}.ipfs.gateway.example.com/a/b.json?download=true")

        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V1}/a/b.json?download=true")

    def test_gateway_host_with_port(self):
        target = classify(f"http://{CID_V1}.ipfs.localhost:8080/")

        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V1}/")

    def test_no_subpath(self):
        assert classify(f"https://{CID_V1}.ipfs.w3s.link").path == f"/ipfs/{CID_V1}"

    def test_ipns_inlined_dnslink(self):
        target = classify("https://en-wikipedia--on--ipfs-org.ipns.dweb.link/wiki/")

        assert target == GatewayRequest(Protocol.IPNS, "/ipns/en.wikipedia-on-ipfs.org/wiki/")

    def test_invalid_label_falls_through_to_web_url(self):
        rule, target = explain("https://www.ipfs.tech/install/")

        assert rule == "web-url"
        assert target == DirectUrl("https://www.ipfs.tech/install/")

    def test_subdomain_takes_precedence_over_path(self):
        target = classify(f"https://{CID_V1}.ipfs.dweb.link/ipfs/{CID_V0}")

        assert target.path == f"/ipfs/{CID_V1}/ipfs/{CID_V0}"


class TestPathGateways:
    """Test http(s)://<gateway>/<protocol>/<id> URLs."""

    def test_gateway_url(self):
        rule, target = explain(f"https://ipfs.io/ipfs/{CID_V0}")

        assert rule == "path-gateway"
        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0}")

    def test_gateway_url_with_path(self):
        target = classify(f"https://ipfs.io/ipfs/{CID_V0_DIR}/0")

        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0_DIR}/0")

    def test_ipns_gateway_url(self):
        target = classify("https://ipfs.io/ipns/docs.ipfs.tech/concepts/")

        assert target == GatewayRequest(Protocol.IPNS, "/ipns/docs.ipfs.tech/concepts/")

    def test_unrelated_leading_segments(self):
        target = classify(f"https://example.com/mirror/v2/ipfs/{CID_V0}/img.png?filename=a.png")

        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0}/img.png?filename=a.png")

    def test_no_valid_suffix_falls_through_to_web_url(self):
        target = classify("https://example.com/ipfs/not-a-cid/page")

        assert target == DirectUrl("https://example.com/ipfs/not-a-cid/page")

    def test_bare_path_without_content_suffix_is_malformed(self):
        with pytest.raises(MalformedInputError):
            classify("/just/some/path")


class TestSchemeUris:
    """Test ipfs:// and ipns:// URIs."""

    def test_ipfs_scheme(self):
        rule, target = explain(f"ipfs://{CID_V0}")

        assert rule == "scheme"
        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0}")

    def test_ipfs_scheme_with_path(self):
        target = classify(f"ipfs://{CID_V0_DIR}/0", default_protocol="ipns")

        assert target == GatewayRequest(Protocol.IPFS, f"/ipfs/{CID_V0_DIR}/0")

    def test_ipns_scheme(self):
        target = classify("ipns://docs.ipfs.tech/index.html")

        assert target == GatewayRequest(Protocol.IPNS, "/ipns/docs.ipfs.tech/index.html")

    @pytest.mark.parametrize("uri", [
        "ipfs://not-a-valid-id",
        "ipfs://",
        f"ipfs:///{CID_V0}",
        "ipns://not-a-valid-id",
    ])
    def test_invalid_body_is_malformed_not_direct_url(self, uri):
        with pytest.raises(MalformedInputError) as excinfo:
            classify(uri)

        assert excinfo.value.uri == uri


class TestWebUrlsAndFailures:
    """Test plain URLs and unclassifiable input."""

    def test_regular_url(self):
        assert classify("https://example.com/metadata/1.json") == DirectUrl("https://example.com/metadata/1.json")

    def test_http_url(self):
        assert classify("http://example.com") == DirectUrl("http://example.com")

    @pytest.mark.parametrize("uri", [
        "",
        "not a uri",
        "no-slashes-here",
        "ftp://example.com/file",
        "https://",
    ])
    def test_malformed(self, uri):
        with pytest.raises(MalformedInputError):
            classify(uri)

    def test_non_string_is_malformed(self):
        with pytest.raises(MalformedInputError):
            classify(None)

    def test_unknown_default_protocol(self):
        with pytest.raises(ValueError, match="Unknown protocol"):
            classify(CID_V0, default_protocol="http")


class TestCanonicalForm:
    """Test that canonical paths classify back to themselves."""

    @pytest.mark.parametrize("uri", [
        CID_V0,
        f"{CID_V0_DIR}/0",
        f"ipfs://{CID_V0_DIR}/0",
        f"https://ipfs.io/ipfs/{CID_V0_DIR}/0",
        f"https://{CID_V1}.ipfs.dweb.link/10.json",
        "ipns://docs.ipfs.tech/install",
    ])
    def test_reclassifying_path_is_idempotent(self, uri):
        target = classify(uri)

        assert classify(target.path) == target

    def test_ipns_default_is_idempotent(self):
        target = classify(CID_V0, default_protocol="ipns")

        assert classify(target.path, default_protocol="ipfs") == target

    def test_gateway_request_requires_absolute_path(self):
        with pytest.raises(ValueError):
            GatewayRequest(Protocol.IPFS, f"ipfs/{CID_V0}")

    def test_gateway_request_url_for(self):
        request = GatewayRequest("ipfs", f"/ipfs/{CID_V0}")

        assert request.protocol is Protocol.IPFS
        assert request.url_for("https://ipfs.io/") == f"https://ipfs.io/ipfs/{CID_V0}"

    def test_rule_order(self):
        assert [rule.name for rule in RULES] == [
            "identifier",
            "content-path",
            "subdomain-gateway",
            "path-gateway",
            "scheme",
            "web-url",
        ]
