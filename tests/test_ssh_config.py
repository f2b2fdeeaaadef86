"""Tests for the managed block inside the SSH config."""

import configparser
import os
from pathlib import Path
import sys

import pytest

# Ensure the application package is importable during tests
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from gakun_app.errors import MalformedSectionError, UnreadableConfigError
from gakun_app.ssh_config import (
    BEGIN_MARKER,
    END_MARKER,
    locate_section,
    read_config,
    remove_section,
    render_block,
    upsert_section,
    write_config,
)


def _load_cfg() -> configparser.ConfigParser:
    cfg = configparser.ConfigParser()
    cfg.read(Path(__file__).with_name("ssh_config_test_config.ini"))
    return cfg


def _block_text(host: str, identity_file: str) -> str:
    return (
        f"###### gakun begin\nHost {host}\n  Hostname {host}\n"
        f"  IdentityFile {identity_file}\n###### gakun end\n"
    )


def _existing_text(cfg: configparser.ConfigParser) -> str:
    return f"Host {cfg['existing']['host']}\n  Port {cfg['existing']['port']}\n"


def test_render_block_lines():
    cfg = _load_cfg()
    host = cfg["block"]["host"]
    identity_file = cfg["block"]["identity_file"]
    assert render_block(host, identity_file) == [
        BEGIN_MARKER,
        f"Host {host}",
        f"  Hostname {host}",
        f"  IdentityFile {identity_file}",
        END_MARKER,
    ]


def test_upsert_into_empty_text_writes_only_the_block():
    cfg = _load_cfg()
    result = upsert_section("", cfg["block"]["host"], cfg["block"]["identity_file"])
    assert result == (
        "###### gakun begin\nHost gitlab.com\n  Hostname gitlab.com\n"
        "  IdentityFile /k\n###### gakun end\n"
    )


def test_upsert_puts_block_before_existing_content():
    cfg = _load_cfg()
    existing = _existing_text(cfg)
    host = cfg["other_block"]["host"]
    identity_file = cfg["other_block"]["identity_file"]

    result = upsert_section(existing, host, identity_file)

    assert result == _block_text(host, identity_file) + "\n" + existing
    assert result.endswith("Host example.com\n  Port 22\n")


def test_upsert_replaces_block_where_it_stands():
    cfg = _load_cfg()
    head = "Host a\n  User git\n\n"
    tail = "\nHost b\n  Port 2222\n"
    text = head + _block_text(cfg["block"]["host"], cfg["block"]["identity_file"]) + tail

    result = upsert_section(
        text, cfg["other_block"]["host"], cfg["other_block"]["identity_file"]
    )

    expected_block = _block_text(cfg["other_block"]["host"], cfg["other_block"]["identity_file"])
    assert result == head + expected_block + tail
    assert result.count(BEGIN_MARKER) == 1


@pytest.mark.parametrize(
    "text",
    ["", "Host a\n", "\n\nHost a\n  Port 22", "Host a\r\n  Port 22\r\n"],
)
def test_upsert_is_idempotent(text):
    cfg = _load_cfg()
    host = cfg["block"]["host"]
    identity_file = cfg["block"]["identity_file"]
    once = upsert_section(text, host, identity_file)
    assert upsert_section(once, host, identity_file) == once


@pytest.mark.parametrize(
    "text",
    [
        "",
        "\n",
        "Host example.com\n  Port 22\n",
        "\nHost a\n",
        "Host a\n  Port 22",
        "Host a\r\n  Port 22\r\n",
        "Host a\n\n\n",
    ],
)
def test_remove_restores_original_text(text):
    cfg = _load_cfg()
    added = upsert_section(text, cfg["block"]["host"], cfg["block"]["identity_file"])
    assert remove_section(added) == text


def test_remove_block_in_middle_keeps_surrounding_lines():
    cfg = _load_cfg()
    head = "Host a\n\n"
    tail = "\nHost b\n"
    text = head + _block_text(cfg["block"]["host"], cfg["block"]["identity_file"]) + tail
    assert remove_section(text) == head + tail


def test_remove_without_section_returns_text_unchanged():
    cfg = _load_cfg()
    text = _existing_text(cfg)
    assert remove_section(text) == text
    assert remove_section("") == ""


def test_locate_section_returns_inclusive_span():
    lines = ["Host a", BEGIN_MARKER, "Host b", END_MARKER, "Host c"]
    assert locate_section(lines) == (1, 3)


def test_locate_section_missing_end_marker_raises():
    lines = ["Host a\n", BEGIN_MARKER + "\n", "Host b\n"]
    with pytest.raises(MalformedSectionError) as excinfo:
        locate_section(lines)
    assert excinfo.value.line_number == 2


def test_malformed_section_is_reported_by_upsert_and_remove():
    cfg = _load_cfg()
    text = f"{BEGIN_MARKER}\nHost a\n"
    with pytest.raises(MalformedSectionError):
        upsert_section(text, cfg["block"]["host"], cfg["block"]["identity_file"])
    with pytest.raises(MalformedSectionError):
        remove_section(text)


def test_stray_end_marker_is_not_a_section():
    cfg = _load_cfg()
    text = f"{END_MARKER}\nHost a\n"
    assert locate_section(text.splitlines()) is None
    assert remove_section(text) == text
    result = upsert_section(text, cfg["block"]["host"], cfg["block"]["identity_file"])
    assert result.endswith("\n" + text)


def test_markers_must_match_whole_line():
    lines = [
        BEGIN_MARKER + " ",
        "  " + BEGIN_MARKER,
        "# " + BEGIN_MARKER,
        END_MARKER,
    ]
    assert locate_section(lines) is None


def test_read_config_missing_file_is_empty(tmp_path):
    assert read_config(tmp_path / "config") == ""


def test_write_config_keeps_line_endings_and_mode(tmp_path):
    config_file = tmp_path / "config"
    config_file.write_bytes(b"Host a\r\n")
    os.chmod(config_file, 0o644)

    text = read_config(config_file)
    assert text == "Host a\r\n"
    write_config(text + "  Port 22\r\n", config_file)

    assert config_file.read_bytes() == b"Host a\r\n  Port 22\r\n"
    assert config_file.stat().st_mode & 0o777 == 0o644
    assert sorted(p.name for p in tmp_path.iterdir()) == ["config"]


def test_write_config_creates_missing_directory(tmp_path):
    config_file = tmp_path / ".ssh" / "config"
    write_config("Host a\n", config_file)
    assert config_file.read_text(encoding="utf-8") == "Host a\n"
    assert config_file.stat().st_mode & 0o777 == 0o600


@pytest.mark.parametrize("separator", ["\x85", "\f", "\v", " "])
def test_marker_after_embedded_separator_is_not_a_section(separator):
    cfg = _load_cfg()
    text = f"Host a{separator}{BEGIN_MARKER}\nX\n{END_MARKER}\n"
    host = cfg["block"]["host"]
    identity_file = cfg["block"]["identity_file"]

    result = upsert_section(text, host, identity_file)

    assert result == _block_text(host, identity_file) + "\n" + text
    assert remove_section(result) == text


def test_read_config_rejects_invalid_utf8(tmp_path):
    config_file = tmp_path / "config"
    config_file.write_bytes(b"Host caf\xe9\n")
    with pytest.raises(UnreadableConfigError) as excinfo:
        read_config(config_file)
    assert excinfo.value.file_path == config_file
    assert config_file.read_bytes() == b"Host caf\xe9\n"
