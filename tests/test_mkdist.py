import os
import subprocess
from pathlib import Path
from unittest import mock

import pytest

from cubaturekit.mkdist import depth, main, make_dist


def test_depth_of_plain_name():
    assert depth("x") == 0


def test_depth_counts_directories():
    assert depth("a/b") == depth("b") + 1
    assert depth("a//b") == depth("a/b")


def test_depth_ignores_current_dir():
    assert depth("./x") == depth("x")


def test_depth_parent_cancels_directory():
    assert depth("a/../b") == depth("b")
    assert depth("../x") < 0


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    (tmp_path / "outside.txt").write_text("outside")
    work = tmp_path / "work"
    work.mkdir()
    (work / "a.txt").write_text("a")
    sub = work / "sub"
    sub.mkdir()
    (sub / "b.txt").write_text("b")
    (sub / ".hidden").write_text("h")
    os.symlink("b.txt", sub / "link")
    os.symlink("../outside.txt", work / "ext")
    monkeypatch.chdir(work)
    return work


def test_make_dist_builds_tree_and_calls_tar(workdir):
    Path("pkg.tar").write_text("old")
    seen = {}

    def fake_run(cmd, **kwargs):
        seen["cmd"] = cmd
        seen["old_tar"] = os.path.exists("pkg.tar")
        seen["a_same"] = os.path.samefile("pkg/a.txt", "a.txt")
        seen["link"] = os.readlink("pkg/sub/link")
        seen["hidden"] = os.path.exists("pkg/sub/.hidden")
        seen["ext_same"] = os.path.samefile("pkg/ext", "../outside.txt")
        seen["ext_is_link"] = os.path.islink("pkg/ext")
        return subprocess.CompletedProcess(cmd, 0)

    with mock.patch("subprocess.run", side_effect=fake_run):
        status = make_dist("cf", "pkg.tar", "pkg", ["a.txt", "sub", "ext"])

    assert status == 0
    assert seen["cmd"] == ["tar", "cf", "pkg.tar", "--owner=root", "--group=root", "pkg"]
    assert seen["old_tar"] is False
    assert seen["a_same"] is True
    assert seen["link"] == "b.txt"
    assert seen["hidden"] is False
    assert seen["ext_same"] is True
    assert seen["ext_is_link"] is False
    assert not Path("pkg").exists()


def test_dangling_link_is_reported(workdir, capsys):
    os.symlink("/nonexistent-dir-for-mkdist/none", "dead")
    with mock.patch(
        "subprocess.run", side_effect=lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0)
    ):
        make_dist("cf", "pkg.tar", "pkg", ["dead"])
    assert "Dangling link dead" in capsys.readouterr().err


def test_rejects_non_tar_name(workdir):
    with pytest.raises(ValueError):
        make_dist("cf", "pkg.zip", "pkg", ["a.txt"])


def test_rejects_existing_package_dir(workdir):
    Path("pkg").mkdir()
    with pytest.raises(FileExistsError):
        make_dist("cf", "pkg.tar", "pkg", ["a.txt"])


def test_main_needs_four_arguments(capsys):
    assert main(["cf", "pkg.tar", "pkg"]) == 1
    assert "Usage" in capsys.readouterr().err


def test_main_reports_existing_dir(workdir, capsys):
    Path("pkg").mkdir()
    assert main(["cf", "pkg.tar", "pkg", "a.txt"]) == 1
    assert "exists already" in capsys.readouterr().err


def test_main_succeeds(workdir):
    with mock.patch(
        "subprocess.run", side_effect=lambda cmd, **kw: subprocess.CompletedProcess(cmd, 0)
    ) as run:
        assert main(["cf", "pkg.tar", "pkg", "a.txt"]) == 0
    assert run.call_count == 1