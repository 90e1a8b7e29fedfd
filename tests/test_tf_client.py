from __future__ import annotations

import subprocess

import pytest

from tfs2git.errors import HistoryFailure, MetadataFailure, RetrievalFailure
from tfs2git.tfvc.client import TfClient


class FakeRun:
    def __init__(self, returncode=0, stdout="", stderr=""):
        self.result = subprocess.CompletedProcess([], returncode, stdout, stderr)
        self.calls = []

    def __call__(self, argv, **kwargs):
        self.calls.append((argv, kwargs))
        return self.result


def test_forced_get_arguments(monkeypatch, tmp_path) -> None:
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)
    client = TfClient(collection="https://tfs/DefaultCollection")

    client.get("$/Project/Main", 1207, cwd=tmp_path, force=True)

    argv, kwargs = fake.calls[0]
    assert argv == [
        "tf",
        "get",
        "$/Project/Main",
        "/version:C1207",
        "/recursive",
        "/force",
        "/noprompt",
        "/collection:https://tfs/DefaultCollection",
    ]
    assert kwargs["cwd"] == str(tmp_path)


def test_incremental_get_has_no_force(monkeypatch, tmp_path) -> None:
    fake = FakeRun()
    monkeypatch.setattr(subprocess, "run", fake)

    TfClient().get("$/Project/Main", 1208, cwd=tmp_path)

    assert "/force" not in fake.calls[0][0]


def test_get_failure_carries_tool_output(monkeypatch, tmp_path) -> None:
    monkeypatch.setattr(subprocess, "run", FakeRun(100, "", "TF10122: The path does not exist."))

    with pytest.raises(RetrievalFailure) as excinfo:
        TfClient().get("$/Project/Main", 1207, cwd=tmp_path)

    assert excinfo.value.changeset_id == 1207
    assert "TF10122" in excinfo.value.output


def test_missing_executable_is_a_retrieval_failure(monkeypatch, tmp_path) -> None:
    def raise_missing(argv, **kwargs):
        raise FileNotFoundError(2, "No such file or directory", argv[0])

    monkeypatch.setattr(subprocess, "run", raise_missing)

    with pytest.raises(RetrievalFailure) as excinfo:
        TfClient(command="tf-missing").get("$/Project/Main", 5, cwd=tmp_path)

    assert "tf-missing" in excinfo.value.output


def test_get_changeset_parses_report(monkeypatch) -> None:
    fake = FakeRun(stdout="Changeset: 5\nUser: CORP\\jdoe\nDate: 3/2/2017 3:04:05 PM\n\nComment:\n  hello\n")
    monkeypatch.setattr(subprocess, "run", fake)

    metadata = TfClient(login="jdoe,secret").get_changeset(5)

    assert fake.calls[0][0] == ["tf", "changeset", "5", "/noprompt", "/login:jdoe,secret"]
    assert metadata.comment == "hello"
    assert metadata.user == "CORP\\jdoe"


def test_get_changeset_failure(monkeypatch) -> None:
    monkeypatch.setattr(subprocess, "run", FakeRun(100, "", "TF14045"))

    with pytest.raises(MetadataFailure):
        TfClient().get_changeset(5)


def test_history_failure(monkeypatch) -> None:
    monkeypatch.setattr(subprocess, "run", FakeRun(100, "", "TF30063: You are not authorized"))

    with pytest.raises(HistoryFailure, match="TF30063"):
        TfClient().get_history("$/Project/Main")
