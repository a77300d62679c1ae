"""Tests for academia_profiles.config: defaults, overrides and security validation."""

from academia_profiles import config as config_module
from academia_profiles.config import DEFAULT_CONFIG, Config, get_config


def test_defaults():
    cfg = Config(environ={})

    assert cfg.profiles_base_url == "https://profiles.ucl.ac.uk/api"
    assert cfg.orcid_api_base_url == "https://pub.orcid.org/v3.0"
    assert cfg.internal_api_base_url is None
    assert cfg.orcid_access_configured is False
    assert cfg.cache_ttl == 7 * 24 * 60 * 60
    assert cfg.json_indent == 2


def test_config_rejects_non_https_profiles_url(tmp_path):
    """Non-HTTPS profiles.base_url should be rejected and reset to default."""
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("profiles:\n  base_url: 'http://attacker.com/api'\n")

    cfg = Config(config_file, environ={})
    assert cfg.profiles_base_url == DEFAULT_CONFIG["profiles"]["base_url"]


def test_config_accepts_https_urls(tmp_path):
    config_file = tmp_path / "good.yaml"
    config_file.write_text(
        "profiles:\n  base_url: 'https://profiles.example.ac.uk/api/'\n"
        "orcid:\n  api_base_url: 'https://api.sandbox.orcid.org/v3.0'\n"
    )

    cfg = Config(config_file, environ={})
    assert cfg.profiles_base_url == "https://profiles.example.ac.uk/api"
    assert cfg.orcid_api_base_url == "https://api.sandbox.orcid.org/v3.0"
    # Keys not named in the file keep their defaults
    assert cfg.profiles_timeout == 60


def test_config_rejects_traversal_cache_dir(tmp_path):
    """orcid.cache_dir_name with path traversal should be rejected."""
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("orcid:\n  cache_dir_name: '../../../tmp/pwned'\n")

    cfg = Config(config_file, environ={})
    assert cfg.cache_dir_name == DEFAULT_CONFIG["orcid"]["cache_dir_name"]


def test_config_rejects_absolute_cache_dir(tmp_path):
    config_file = tmp_path / "bad.yaml"
    config_file.write_text("orcid:\n  cache_dir_name: '/tmp/evil'\n")

    cfg = Config(config_file, environ={})
    assert cfg.cache_dir_name == DEFAULT_CONFIG["orcid"]["cache_dir_name"]


def test_config_invalid_yaml_keeps_defaults(tmp_path):
    config_file = tmp_path / "broken.yaml"
    config_file.write_text("profiles: [unclosed\n")

    cfg = Config(config_file, environ={})
    assert cfg.profiles_base_url == DEFAULT_CONFIG["profiles"]["base_url"]


def test_env_overrides():
    cfg = Config(environ={
        "ORCID_ACCESS_TOKEN": "tok",
        "INTERNAL_API_BASE_URL": "http://localhost:3000/",
        "OPENWEBUI_MODEL": "mistral",
        "ORCID_CACHE_TTL": "60",
    })

    assert cfg.orcid_access_configured is True
    assert cfg.orcid_access_token == "tok"
    assert cfg.internal_api_base_url == "http://localhost:3000"
    assert cfg.openwebui_model == "mistral"
    assert cfg.cache_ttl == 60


def test_env_overrides_win_over_file(tmp_path):
    config_file = tmp_path / "cfg.yaml"
    config_file.write_text("openwebui:\n  model: 'from-file'\n")

    cfg = Config(config_file, environ={"OPENWEBUI_MODEL": "from-env"})
    assert cfg.openwebui_model == "from-env"


def test_invalid_int_env_override_ignored():
    cfg = Config(environ={"ORCID_CACHE_TTL": "a week"})
    assert cfg.cache_ttl == DEFAULT_CONFIG["orcid"]["cache_ttl_seconds"]


def test_empty_env_value_ignored():
    cfg = Config(environ={"ORCID_ACCESS_TOKEN": ""})
    assert cfg.orcid_access_configured is False


def test_comfyui_workflow_path():
    cfg = Config(environ={"COMFYUI_WORKFLOW_FILE": "comfyui-fluxdev.json"})
    assert str(cfg.comfyui_workflow_path).endswith("data/comfyui-fluxdev.json")


def test_get_config_caches_instance(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))

    first = get_config()
    assert get_config() is first

    config_module.reset_config()
    assert get_config() is not first


def test_get_config_reads_file_in_cwd(tmp_path, monkeypatch):
    (tmp_path / ".academia-profiles.yaml").write_text("output:\n  json_indent: 4\n")
    monkeypatch.chdir(tmp_path)

    assert get_config().json_indent == 4


def test_env_override_rejects_non_https_profiles_url():
    """Environment overrides pass the same security validation as the file."""
    cfg = Config(environ={"PROFILES_API_BASE_URL": "http://attacker.com/api"})
    assert cfg.profiles_base_url == DEFAULT_CONFIG["profiles"]["base_url"]


def test_env_override_accepts_https_profiles_url():
    cfg = Config(environ={"PROFILES_API_BASE_URL": "https://profiles.example.ac.uk/api"})
    assert cfg.profiles_base_url == "https://profiles.example.ac.uk/api"
