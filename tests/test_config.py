"""Tests for settings construction, validation and record targets."""

import pytest

from routeros_blocker.common import validate_domain, validate_url
from routeros_blocker.config import Settings, build_settings
from routeros_blocker.exceptions import ConfigurationError
from routeros_blocker.targets import get_target


class TestBuildSettings:
    """Tests for build_settings function."""

    def test_defaults(self):
        settings = build_settings(login="admin")
        assert settings.address == "192.168.0.1"
        assert settings.api_port == 443
        assert settings.ssh_port == 22
        assert settings.target == "dns-static"
        assert settings.verify_tls is True

    def test_settings_are_immutable(self):
        settings = build_settings(login="admin")
        with pytest.raises(AttributeError):
            settings.address = "10.0.0.1"

    def test_address_is_stripped(self):
        assert build_settings(address=" 10.0.0.1 ", login="admin").address == "10.0.0.1"

    @pytest.mark.parametrize("overrides", [
        {"login": ""},
        {"login": "admin", "address": ""},
        {"login": "admin", "api_port": 0},
        {"login": "admin", "ssh_port": 70000},
        {"login": "admin", "sink_address": "not-an-ip"},
        {"login": "admin", "source_url": "ftp://example.com/hosts"},
        {"login": "admin", "tag": ""},
        {"login": "admin", "timeout": 0},
        {"login": "admin", "target": "firewall-filter"},
    ])
    def test_invalid_values_rejected(self, overrides):
        with pytest.raises(ConfigurationError):
            build_settings(**overrides)

    def test_bracketed_ipv6_address_kept(self):
        settings = build_settings(address="[fe80::1]", login="admin", api_port=8443)
        assert settings.api_url == "https://[fe80::1]:8443/rest"

    def test_ipv6_sink_address_allowed(self):
        assert build_settings(login="admin", sink_address="::1").sink_address == "::1"


class TestTargets:
    """Tests for record target descriptors."""

    def test_dns_static(self):
        target = get_target(Settings(login="admin", tag="mine", sink_address="0.0.0.0"))
        assert target.path == "/ip/dns/static"
        assert target.script_header == "/ip dns static"
        assert target.managed_filter == (("comment", "mine"),)
        assert target.script_line("a.example.com") == (
            'add address="0.0.0.0" comment="mine" name="a.example.com"'
        )
        assert target.default_strategy == "scripted"

    def test_address_list(self):
        target = get_target(Settings(login="admin", target="address-list", list_name="blk"))
        assert target.script_header == "/ip firewall address-list"
        assert dict(target.managed_filter) == {
            "list": "blk", "comment": "adishe", "dynamic": "false",
        }
        assert target.add_params("a.example.com") == {
            "list": "blk", "comment": "adishe", "address": "a.example.com",
        }
        assert target.default_strategy == "direct"

    def test_script_line_quotes_tag_with_spaces(self):
        target = get_target(build_settings(login="admin", tag="managed by blocker"))
        assert target.script_line("a.example.com") == (
            'add address="127.0.0.1" comment="managed by blocker" name="a.example.com"'
        )

    def test_script_line_escapes_special_characters(self):
        target = get_target(Settings(login="admin", tag='say "hi" $x \\ end'))
        assert 'comment="say \\"hi\\" \\$x \\\\ end"' in target.script_line("a.example.com")

    def test_unknown_target(self):
        with pytest.raises(ConfigurationError):
            get_target(Settings(login="admin", target="nope"))


class TestValidation:
    """Tests for shared validators."""

    @pytest.mark.parametrize("domain", ["example.com", "sub.example.co.uk", "_dmarc.example.com"])
    def test_valid_domains(self, domain):
        assert validate_domain(domain)

    @pytest.mark.parametrize("domain", ["", "example.com.", "bad host", "a;b.com", "-x.com"])
    def test_invalid_domains(self, domain):
        assert not validate_domain(domain)

    def test_validate_url(self):
        assert validate_url("https://raw.githubusercontent.com/StevenBlack/hosts/master/hosts")
        assert not validate_url("not a url")
