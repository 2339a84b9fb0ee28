from __future__ import annotations

import os
import subprocess
import sys

import pytest

from conftest import API_KEY, ROOT_DIR
from spoonacular_mcp import cli
from spoonacular_mcp.core.config import ConfigLoaderError, Settings, load_settings


def test_missing_api_key_is_a_config_error():
    with pytest.raises(ConfigLoaderError) as excinfo:
        load_settings({})
    assert "SPOONACULAR_API_KEY" in str(excinfo.value)

    with pytest.raises(ConfigLoaderError):
        load_settings({"SPOONACULAR_API_KEY": "   "})


def test_defaults():
    settings = load_settings({"SPOONACULAR_API_KEY": API_KEY})
    assert settings.api_key.get_secret_value() == API_KEY
    assert settings.api_base == "https://api.spoonacular.com"
    assert settings.request_timeout_seconds == 30
    assert settings.bridge_timeout_seconds == 30
    assert settings.port is None
    assert settings.proxy_port() == 8080
    assert settings.server_command == [sys.executable, "-m", "spoonacular_mcp", "stdio"]
    assert settings.log_level == "INFO"


def test_environment_overrides():
    settings = load_settings(
        {
            "SPOONACULAR_API_KEY": API_KEY,
            "SPOONACULAR_API_BASE": "http://localhost:9999/",
            "SPOONACULAR_TIMEOUT_SECONDS": "5",
            "PORT": "9090",
            "MCP_SERVER_COMMAND": "node build/index.js --flag 'two words'",
            "MCP_BRIDGE_TIMEOUT_SECONDS": "2.5",
            "MCP_LOG_LEVEL": "debug",
        }
    )
    assert settings.api_base == "http://localhost:9999"
    assert settings.request_timeout_seconds == 5
    assert settings.port == 9090
    assert settings.proxy_port() == 9090
    assert settings.server_command == ["node", "build/index.js", "--flag", "two words"]
    assert settings.bridge_timeout_seconds == 2.5
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize(
    "name,value",
    [("PORT", "not-a-port"), ("PORT", "70000"), ("MCP_LOG_LEVEL", "chatty"), ("SPOONACULAR_TIMEOUT_SECONDS", "0")],
)
def test_invalid_values_are_config_errors(name, value):
    with pytest.raises(ConfigLoaderError):
        load_settings({"SPOONACULAR_API_KEY": API_KEY, name: value})


def test_api_key_is_not_exposed():
    settings = Settings(api_key=API_KEY)
    assert "api_key" not in settings.safe_payload
    assert API_KEY not in repr(settings)
    assert API_KEY not in str(settings.safe_payload)


def test_port_resolution(settings):
    assert cli.resolve_port("http", None, settings) == 3000
    assert cli.resolve_port("sse", None, settings) == 3000
    assert cli.resolve_port("proxy", None, settings) == 8080
    with_port = Settings(api_key=API_KEY, port=9090)
    assert cli.resolve_port("proxy", None, with_port) == 9090
    assert cli.resolve_port("proxy", 4000, with_port) == 4000
    assert cli.resolve_port("http", 4000, settings) == 4000


def test_arg_parser_defaults_to_stdio():
    args = cli.build_arg_parser().parse_args([])
    assert (args.mode, args.port, args.host) == ("stdio", None, "0.0.0.0")
    args = cli.build_arg_parser().parse_args(["proxy", "8123"])
    assert (args.mode, args.port) == ("proxy", 8123)
    with pytest.raises(SystemExit):
        cli.build_arg_parser().parse_args(["websocket"])


def test_main_without_key_exits_before_serving(monkeypatch, capsys):
    monkeypatch.delenv("SPOONACULAR_API_KEY", raising=False)
    served = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda *args, **kwargs: served.append(args))

    assert cli.main(["http", "3100"]) == 1
    assert served == []
    assert "SPOONACULAR_API_KEY" in capsys.readouterr().err


def test_main_serves_http_modes(monkeypatch):
    monkeypatch.setenv("SPOONACULAR_API_KEY", API_KEY)
    monkeypatch.setenv("PORT", "9191")
    monkeypatch.setattr(cli, "configure_logging", lambda level: None)
    served = []
    monkeypatch.setattr(cli.uvicorn, "run", lambda app, **kwargs: served.append((app, kwargs)))

    assert cli.main(["proxy"]) == 0
    assert cli.main(["sse", "3200"]) == 0

    (proxy_app, proxy_kwargs), (sse_app, sse_kwargs) = served
    assert proxy_kwargs["port"] == 9191
    assert proxy_kwargs["host"] == "0.0.0.0"
    assert sse_kwargs["port"] == 3200
    assert "/sse" in {route.path for route in sse_app.routes}
    assert "/mcp" in {route.path for route in proxy_app.routes}


def test_module_entry_point_requires_api_key():
    env = {key: value for key, value in os.environ.items() if key != "SPOONACULAR_API_KEY"}
    completed = subprocess.run(
        [sys.executable, "-m", "spoonacular_mcp", "stdio"],
        cwd=str(ROOT_DIR),
        env=env,
        input=b"",
        capture_output=True,
        timeout=30,
    )
    assert completed.returncode == 1
    assert b"SPOONACULAR_API_KEY" in completed.stderr
    assert completed.stdout == b""
