# tests/test_config.py
from unittest.mock import patch

import pytest

from rcon_core import ConfigError
from rcon_core.config import (
    create_config_from_dict,
    load_config_from_env,
    load_config_from_toml,
    resolve_password,
)


# --- 辅助函数：生成有效字典 ---
def _get_valid_raw_dict():
    return {
        "host": "10.0.0.5",
        "port": 25575,
        "password": "secret",
        "timeout": 0.5,
        "oversize_policy": "truncate",
        "auth_followup": False,
    }


# --- Factory 测试 (核心逻辑) ---


def test_create_valid_dict():
    """测试使用完全合法的字典创建配置"""
    config = create_config_from_dict(_get_valid_raw_dict())

    assert config.host == "10.0.0.5"
    assert config.port == 25575
    assert config.address == ("10.0.0.5", 25575)
    assert config.timeout == 0.5
    assert config.oversize_policy == "truncate"
    assert config.auth_followup is False


def test_create_defaults():
    config = create_config_from_dict({"host": "example.com"})

    assert config.port == 27015
    assert config.password == ""
    assert config.timeout == 1.0
    assert config.oversize_policy == "reject"
    assert config.auth_followup is True
    assert config.color_code_introducer == "§"


def test_create_missing_host():
    """测试缺少必填字段"""
    with pytest.raises(ConfigError, match="配置缺失"):
        create_config_from_dict({"port": 27015})


@pytest.mark.parametrize("port", [0, 70000, "abc"])
def test_create_invalid_port(port):
    with pytest.raises(ConfigError, match="端口"):
        create_config_from_dict({"host": "h", "port": port})


@pytest.mark.parametrize("timeout", [0, -1, "soon"])
def test_create_invalid_timeout(timeout):
    with pytest.raises(ConfigError, match="超时"):
        create_config_from_dict({"host": "h", "timeout": timeout})


def test_create_invalid_policy():
    with pytest.raises(ConfigError, match="超长策略"):
        create_config_from_dict({"host": "h", "oversize_policy": "split"})


def test_create_string_booleans():
    """环境变量中的布尔值是字符串"""
    assert create_config_from_dict({"host": "h", "auth_followup": "false"}).auth_followup is False
    assert create_config_from_dict({"host": "h", "auth_followup": "1"}).auth_followup is True


def test_repr_hides_password():
    config = create_config_from_dict(_get_valid_raw_dict())

    assert "secret" not in repr(config)
    assert "******" in repr(config)


# --- 加载器测试 ---


def test_load_toml_profile(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text(
        """
[profile.default]
host = "1.1.1.1"

[profile.survival]
host = "2.2.2.2"
port = 25575
password = "pw"
""",
        encoding="utf-8",
    )

    assert load_config_from_toml(f).host == "1.1.1.1"

    config = load_config_from_toml(f, profile="survival")
    assert config.host == "2.2.2.2"
    assert config.port == 25575


def test_load_toml_rcon_section(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text('[rcon]\nhost = "3.3.3.3"\ntimeout = 2\n', encoding="utf-8")

    config = load_config_from_toml(f)

    assert config.host == "3.3.3.3"
    assert config.timeout == 2.0


def test_load_toml_missing_profile(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text('[profile.default]\nhost = "1.1.1.1"\n', encoding="utf-8")

    with pytest.raises(ConfigError, match="未找到预设"):
        load_config_from_toml(f, profile="creative")


def test_load_toml_file_not_found(tmp_path):
    with pytest.raises(ConfigError, match="配置文件未找到"):
        load_config_from_toml(tmp_path / "nope.toml")


def test_load_toml_invalid_syntax(tmp_path):
    f = tmp_path / "config.toml"
    f.write_text("host = ", encoding="utf-8")

    with pytest.raises(ConfigError, match="读取 TOML 失败"):
        load_config_from_toml(f)


def test_load_env(monkeypatch):
    monkeypatch.setenv("RCON_HOST", "4.4.4.4")
    monkeypatch.setenv("RCON_PORT", "27016")
    monkeypatch.setenv("RCON_AUTH_FOLLOWUP", "no")

    with patch("rcon_core.config.load_dotenv"):
        config = load_config_from_env()

    assert config.host == "4.4.4.4"
    assert config.port == 27016
    assert config.auth_followup is False


def test_load_env_empty():
    with patch("rcon_core.config.load_dotenv"), patch.dict("os.environ", {}, clear=True):
        with pytest.raises(ConfigError, match="RCON_"):
            load_config_from_env()



def test_load_env_reads_dotenv_file(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text(
        "RCON_HOST=10.0.0.5\nRCON_PORT=25575\nRCON_OVERSIZE_POLICY=truncate\n",
        encoding="utf-8",
    )

    with patch.dict("os.environ", {}, clear=True):
        config = load_config_from_env(dotenv_path=env_file)

    assert config.host == "10.0.0.5"
    assert config.port == 25575
    assert config.oversize_policy == "truncate"


def test_load_env_real_variables_win_over_dotenv(tmp_path):
    env_file = tmp_path / ".env"
    env_file.write_text("RCON_HOST=10.0.0.5\n", encoding="utf-8")

    with patch.dict("os.environ", {"RCON_HOST": "8.8.8.8"}, clear=True):
        config = load_config_from_env(dotenv_path=env_file)

    assert config.host == "8.8.8.8"

# --- 密码来源测试 ---


def test_resolve_password_explicit():
    assert resolve_password("hunter2") == "hunter2"


def test_resolve_password_from_env(monkeypatch):
    monkeypatch.setenv("RCON_PASSWORD", "from-env")

    with patch("rcon_core.config.load_dotenv"):
        assert resolve_password(None, prompt=lambda _: "typed") == "from-env"



def test_resolve_password_from_cwd_dotenv(tmp_path, monkeypatch):
    """未指定路径时，从当前工作目录查找 .env"""
    (tmp_path / ".env").write_text("RCON_PASSWORD=from-dotenv\n", encoding="utf-8")
    monkeypatch.chdir(tmp_path)

    with patch.dict("os.environ", {}, clear=True):
        assert resolve_password(None) == "from-dotenv"

def test_resolve_password_prompt(monkeypatch):
    monkeypatch.delenv("RCON_PASSWORD", raising=False)

    with patch("rcon_core.config.load_dotenv"):
        assert resolve_password(None, prompt=lambda _: "typed") == "typed"


def test_resolve_password_unavailable(monkeypatch):
    """密码来源不可用时退化为空密码"""
    monkeypatch.delenv("RCON_PASSWORD", raising=False)

    def broken_prompt(_):
        raise EOFError

    with patch("rcon_core.config.load_dotenv"):
        assert resolve_password(None) == ""
        assert resolve_password(None, prompt=broken_prompt) == ""


def test_resolve_password_non_ascii():
    assert resolve_password("pässwort") == ""
