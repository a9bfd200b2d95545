import pytest

from rec53.config import (
    Config,
    ConfigError,
    DNSConfig,
    WarmupConfig,
    load_config,
    parse_duration,
    validate_config,
)


@pytest.mark.parametrize(
    "cfg",
    [
        Config(
            dns=DNSConfig(listen="127.0.0.1:5353", metric=":9999", log_level="info"),
            warmup=WarmupConfig(enabled=True, timeout=5.0),
        ),
        Config(dns=DNSConfig(listen="127.0.0.1:5353", metric="127.0.0.1:9999")),
    ],
    ids=["valid config", "valid full address metric"],
)
def test_validate_config_accepts(cfg):
    assert validate_config(cfg) is cfg


@pytest.mark.parametrize(
    "cfg, message",
    [
        (None, "configuration is nil"),
        (Config(dns=DNSConfig(listen="", metric=":9999")), "dns.listen address is required"),
        (
            Config(dns=DNSConfig(listen="127.0.0.1:5353", metric="")),
            "dns.metric address is required",
        ),
        (
            Config(dns=DNSConfig(listen="invalid:address:format", metric=":9999")),
            "invalid dns.listen address",
        ),
        (
            Config(dns=DNSConfig(listen="127.0.0.1:5353", metric=":99999")),
            "port must be between 1 and 65535",
        ),
        (
            Config(
                dns=DNSConfig(listen="127.0.0.1:5353", metric=":9999"),
                warmup=WarmupConfig(timeout=0.05),
            ),
            "warmup.timeout must be at least 100ms",
        ),
    ],
    ids=[
        "nil config",
        "empty listen address",
        "empty metric address",
        "invalid listen address",
        "invalid metric port",
        "invalid warmup timeout",
    ],
)
def test_validate_config_rejects(cfg, message):
    with pytest.raises(ConfigError) as info:
        validate_config(cfg)
    assert message in str(info.value)


def test_whitespace_listen_is_empty():
    cfg = Config(dns=DNSConfig(listen="   ", metric=":9999"))
    with pytest.raises(ConfigError, match="dns.listen address is required"):
        validate_config(cfg)


def test_listen_reports_too_many_colons():
    cfg = Config(dns=DNSConfig(listen="invalid:address:format", metric=":9999"))
    with pytest.raises(ConfigError, match="too many colons"):
        validate_config(cfg)


def test_listen_without_port():
    cfg = Config(dns=DNSConfig(listen="127.0.0.1", metric=":9999"))
    with pytest.raises(ConfigError, match="missing port"):
        validate_config(cfg)


def test_metric_port_zero_rejected():
    cfg = Config(dns=DNSConfig(listen="127.0.0.1:5353", metric=":0"))
    with pytest.raises(ConfigError, match="got 0"):
        validate_config(cfg)


def test_metric_port_not_numeric():
    cfg = Config(dns=DNSConfig(listen="127.0.0.1:5353", metric=":abc"))
    with pytest.raises(ConfigError, match="invalid dns.metric port"):
        validate_config(cfg)


def test_warmup_timeout_message_shows_duration():
    cfg = Config(
        dns=DNSConfig(listen="127.0.0.1:5353", metric=":9999"),
        warmup=WarmupConfig(timeout=0.05),
    )
    with pytest.raises(ConfigError, match="got 50ms"):
        validate_config(cfg)


def test_upstream_timeout_too_small():
    cfg = Config(dns=DNSConfig(listen="127.0.0.1:5353", metric=":9999", upstream_timeout=0.02))
    with pytest.raises(ConfigError, match="dns.upstream_timeout must be at least 100ms"):
        validate_config(cfg)


def test_upstream_timeout_at_minimum_accepted():
    cfg = Config(dns=DNSConfig(listen="127.0.0.1:5353", metric=":9999", upstream_timeout=0.1))
    assert validate_config(cfg).dns.upstream_timeout == 0.1


@pytest.mark.parametrize(
    "text, seconds",
    [
        ("5s", 5.0),
        ("100ms", 0.1),
        ("1.5s", 1.5),
        ("1h30m", 5400.0),
        ("0", 0.0),
        ("250us", 0.00025),
        ("-2s", -2.0),
    ],
)
def test_parse_duration(text, seconds):
    assert parse_duration(text) == pytest.approx(seconds)


@pytest.mark.parametrize("text", ["", "abc", "5", "5x", ".s", "-"])
def test_parse_duration_rejects(text):
    with pytest.raises(ConfigError):
        parse_duration(text)


def test_load_config_requires_path():
    with pytest.raises(ConfigError, match="Config file required"):
        load_config("")


def test_load_config_missing_file(tmp_path):
    missing = tmp_path / "absent.yaml"
    with pytest.raises(ConfigError, match="Config file not found"):
        load_config(str(missing))


def test_load_config_parses_file(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        'dns:\n'
        '  listen: "127.0.0.1:5353"\n'
        '  metric: ":9999"\n'
        '  log_level: "error"\n'
        '  upstream_timeout: 2s\n'
        '\n'
        'warmup:\n'
        '  enabled: false\n'
        '  timeout: 5s\n'
        '  duration: 5s\n'
        '  concurrency: 32\n'
        '  tlds:\n'
        '    - com\n'
        '    - org\n'
        '    - net\n',
        encoding="utf-8",
    )
    cfg = load_config(path)
    assert cfg.dns == DNSConfig(
        listen="127.0.0.1:5353", metric=":9999", log_level="error", upstream_timeout=2.0
    )
    assert cfg.warmup == WarmupConfig(
        enabled=False, timeout=5.0, duration=5.0, concurrency=32, tlds=["com", "org", "net"]
    )


def test_load_config_integer_duration_is_nanoseconds(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("warmup:\n  timeout: 2000000000\n", encoding="utf-8")
    assert load_config(path).warmup.timeout == 2.0


def test_load_config_empty_file_gives_defaults(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("", encoding="utf-8")
    assert load_config(path) == Config()


def test_load_config_invalid_yaml(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("dns: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="failed to parse config"):
        load_config(path)


def test_load_config_bad_duration(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text("warmup:\n  timeout: soon\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="failed to parse config"):
        load_config(path)