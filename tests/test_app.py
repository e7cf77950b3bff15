from __future__ import annotations

import pytest

from klipper_timeout.app import main


def test_show_config_prints_merged_values(tmp_path, capsys) -> None:
    path = tmp_path / "klipper-timeout.toml"
    path.write_text('update_interval_seconds = 45\nnever_expire_regex = ["^pin"]\n', encoding="utf-8")

    main(["show-config", "--config", str(path), "--expiry-seconds", "90", "--exclude-regex", "^otp"])

    out = capsys.readouterr().out
    assert "expiry:           90s" in out
    assert "resync interval:  45s" in out
    assert "  ^otp" in out
    assert "  ^pin" in out


def test_invalid_configuration_exits_non_zero(tmp_path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["show-config", "--config", str(tmp_path / "absent.toml"), "--expiry-seconds", "0"])

    assert excinfo.value.code == 1


def test_bad_regex_flag_exits_non_zero(tmp_path) -> None:
    with pytest.raises(SystemExit) as excinfo:
        main(["show-config", "--config", str(tmp_path / "absent.toml"), "--never-expire-regex", "("])

    assert excinfo.value.code == 1


@pytest.mark.parametrize(
    "logging_table",
    ['[logging]\nfile = "daemon.log"\n', '[logging]\nlevel = "LOUD"\n'],
)
def test_malformed_logging_table_exits_non_zero(tmp_path, logging_table: str) -> None:
    path = tmp_path / "klipper-timeout.toml"
    path.write_text(logging_table, encoding="utf-8")

    with pytest.raises(SystemExit) as excinfo:
        main(["show-config", "--config", str(path)])

    assert excinfo.value.code == 1


def test_missing_config_path_from_flag_is_reported(tmp_path, capsys, caplog) -> None:
    missing = str(tmp_path / "typo.toml")

    main(["show-config", "--config", missing])

    assert f"config file:      {missing}" in capsys.readouterr().out
    assert any(missing in r.getMessage() for r in caplog.records if r.levelname == "WARNING")
