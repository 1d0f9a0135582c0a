import configparser

import pytest

from gategate.config import Config, Section

INI_TEXT = """\
[Redis]
Host = 127.0.0.1
Port = 6380
Passwd = password

[GateServer]
Port = 8080
"""


@pytest.fixture
def ini_file(tmp_path):
    path = tmp_path / "config.ini"
    path.write_text(INI_TEXT, encoding="utf-8")
    return path


def test_section_missing_key_reads_empty():
    section = Section({"Host": "localhost"})
    assert section["Host"] == "localhost"
    assert section["Missing"] == ""


def test_section_iteration_is_sorted():
    section = Section({"b": "2", "a": "1"})
    assert list(section) == ["a", "b"]
    assert len(section) == 2


def test_from_file_reads_values(ini_file):
    config = Config.from_file(ini_file)
    assert config["Redis"]["Host"] == "127.0.0.1"
    assert config["Redis"]["Port"] == "6380"
    assert config["GateServer"]["Port"] == "8080"


def test_missing_section_is_empty(ini_file):
    config = Config.from_file(ini_file)
    assert config["Nope"]["Host"] == ""
    assert len(config["Nope"]) == 0


def test_sections_sorted(ini_file):
    config = Config.from_file(ini_file)
    assert config.sections() == ["GateServer", "Redis"]


def test_key_case_preserved(ini_file):
    config = Config.from_file(ini_file)
    assert "Passwd" in config["Redis"]
    assert config["Redis"]["passwd"] == ""


def test_dump_format():
    config = Config({"B": {"y": "2", "x": "1"}, "A": {"k": "v"}})
    assert config.dump() == "[A]\nk=v\n[B]\nx=1\ny=2\n"


def test_dump_round_trips_through_file(tmp_path):
    config = Config({"Redis": {"Host": "h", "Port": "1"}, "Mysql": {"User": "u"}})
    path = tmp_path / "again.ini"
    path.write_text(config.dump(), encoding="utf-8")
    assert Config.from_file(path).dump() == config.dump()


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config.from_file(tmp_path / "absent.ini")


def test_duplicate_key_raises(tmp_path):
    path = tmp_path / "dup.ini"
    path.write_text("[S]\na=1\na=2\n", encoding="utf-8")
    with pytest.raises(configparser.Error):
        Config.from_file(path)


def test_instance_reads_cwd_and_is_shared(tmp_path, monkeypatch, ini_file):
    monkeypatch.chdir(tmp_path)
    first = Config.instance()
    second = Config.instance()
    assert first is second
    assert first["Redis"]["Port"] == "6380"