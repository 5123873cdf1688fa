import pytest
from fastapi import FastAPI

from findingaid_server import main
from findingaid_shared.errors import ConfigurationError, TemplateExpansionError, UnknownScheme


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for key in main.DEFAULTS:
        monkeypatch.delenv(f"{main.ENV_PREFIX}_{key.upper()}", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


def test_set_config_defaults(tmp_path):
    cfg = main.set_config(tmp_path / "config.yaml")
    assert cfg == main.DEFAULTS


def test_set_config_yaml_then_env(tmp_path, monkeypatch):
    path = tmp_path / "config.yaml"
    path.write_text(
        "resolver_uri: mem://findingaid/id\n"
        "server_uri: http://0.0.0.0:9000\n"
        "unrelated: ignored\n",
        encoding="utf-8",
    )
    monkeypatch.setenv("WHOSONFIRST_SERVER_URI", "http://127.0.0.1:7000")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")

    cfg = main.set_config(path)

    assert cfg["resolver_uri"] == "mem://findingaid/id"
    assert cfg["server_uri"] == "http://127.0.0.1:7000"
    assert cfg["log_level"] == "DEBUG"
    assert "unrelated" not in cfg


def test_set_config_ignores_non_mapping_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    assert main.set_config(path) == main.DEFAULTS


def test_flags_override_config():
    cfg = dict(main.DEFAULTS)
    args = main._parse_args(["--resolver-uri", "mem://x/id", "--lookup-timeout", "1.5"], cfg)
    assert args.resolver_uri == "mem://x/id"
    assert args.lookup_timeout == 1.5
    assert args.server_uri == cfg["server_uri"]


def test_mask_sensitive_hides_static_credentials():
    cfg = {
        "resolver_uri": "awsdynamodb://findingaid?region=us-west-2&credentials=static:AKIA:supersecret:tok",
        "api_token": "abcdefghijk",
    }
    masked = main._mask_sensitive(cfg)
    assert "supersecret" not in masked["resolver_uri"]
    assert "region=us-west-2" in masked["resolver_uri"]
    assert masked["api_token"] == "abc***ijk"


@pytest.mark.parametrize(
    "uri, expected",
    [
        ("http://localhost:8080", ("localhost", 8080)),
        ("http://0.0.0.0:9000", ("0.0.0.0", 9000)),
        ("127.0.0.1:7000", ("127.0.0.1", 7000)),
    ],
)
def test_parse_server_uri(uri, expected):
    assert main._parse_server_uri(uri) == expected


def test_parse_server_uri_bad_port_is_configuration_error():
    with pytest.raises(ConfigurationError):
        main._parse_server_uri("http://localhost:abc")


def test_build_app_from_config():
    cfg = dict(main.DEFAULTS, resolver_uri="mem://findingaid/id", lookup_timeout="2")
    assert isinstance(main.build_app(cfg), FastAPI)


def test_build_app_unknown_scheme_is_fatal():
    cfg = dict(main.DEFAULTS, resolver_uri="nope://findingaid")
    with pytest.raises(UnknownScheme):
        main.build_app(cfg)


def test_build_app_bad_template_is_fatal():
    cfg = dict(main.DEFAULTS, resolver_uri="mem://findingaid/id", data_uri_template="https://example.com/data")
    with pytest.raises(TemplateExpansionError):
        main.build_app(cfg)
