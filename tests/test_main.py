"""Tests for the command-line entry point."""

import json
from unittest.mock import patch

import main


@patch("main.RemoteReviewClient")
def test_main_reviews_local_directory(mock_client_cls, fake_client, tmp_path, capsys):
    mock_client_cls.return_value = fake_client
    fake_client.test_connection.return_value = True
    (tmp_path / "app.py").write_text("x = 1  \n", encoding="utf-8")
    standards = tmp_path / "rules.txt"
    standards.write_text("No trailing whitespace", encoding="utf-8")

    code = main.main([str(tmp_path), "--standards", str(standards), "--json"])

    assert code == 0
    result = json.loads(capsys.readouterr().out)
    assert result["summary"]["total_files"] == 1
    assert result["summary"]["total_findings"] == 2
    assert result["compliance_text"] == "No trailing whitespace"
    fake_client.configure.assert_called_once()


@patch("main.RemoteReviewClient")
def test_main_text_report(mock_client_cls, fake_client, tmp_path, capsys):
    mock_client_cls.return_value = fake_client
    (tmp_path / "app.py").write_text("x = 1\n", encoding="utf-8")

    assert main.main([str(tmp_path)]) == 0

    out = capsys.readouterr().out
    assert "app.py" in out
    assert "remote issue" in out


@patch("main.RemoteReviewClient")
def test_main_fails_without_files(mock_client_cls, fake_client, tmp_path):
    mock_client_cls.return_value = fake_client
    assert main.main([str(tmp_path)]) == 1


def test_main_rejects_bad_target():
    assert main.main(["definitely not a repo"]) == 1
