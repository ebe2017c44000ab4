"""Build a distribution tarball that unpacks into a given directory.

A temporary tree named after the package directory is set up first.
Symbolic links are kept if they point to files within the tree.  All other
files are hard-linked.  The tree is then archived with ``tar`` and removed.
"""

from __future__ import annotations

import os
import shutil
import stat
import subprocess
import sys
from collections.abc import Sequence

_USAGE = (
    "Usage:\tmkdist tarflags packagename.tar[.gz] packagedir files\n\n"
    "Creates packagename.tar[.gz] for distribution which contains\n"
    '"files" and unpacks into the directory "packagedir".\n'
    "Symlinks are preserved if they point to files in the package.\n\n"
)


def _warn(message: str) -> None:
    sys.stderr.write(message + "\n")


def _copydir(path: str) -> str:
    """Directory part of ``path`` including its trailing slash, or ''."""
    return path[: path.rfind("/") + 1]


def depth(path: str) -> int:
    """Directory depth of a relative path; negative if it leaves the tree."""
    n = 0
    while True:
        if path.startswith("./"):
            path = path[2:]
        elif path.startswith("../"):
            path = path[3:]
            n -= 1
            if n < 0:
                return n
        else:
            index = path.find("/")
            if index < 0:
                return n
            path = path[index:]
            n += 1
        path = path.lstrip("/")


def _mkdirhier(target: str) -> None:
    end = target.rfind("/")
    pos = 0
    while pos < end:
        pos = target.index("/", pos)
        prefix = target[:pos]
        if prefix:
            try:
                st = os.stat(prefix)
            except OSError:
                try:
                    os.mkdir(prefix)
                except OSError:
                    pass
            else:
                if not stat.S_ISDIR(st.st_mode):
                    raise NotADirectoryError(f"Cannot create {prefix}")
        pos += 1


def _inspect(file: str, phase: int, prefix: str) -> None:
    try:
        st = os.lstat(file)
    except OSError:
        _warn(f"Cannot stat {file}")
        return

    target = prefix + file
    if phase == 0:
        _mkdirhier(target)
    mode = st.st_mode

    if stat.S_ISREG(mode):
        if phase == 0:
            try:
                os.link(file, target)
            except OSError:
                _warn(f"Cannot link {file}")
        return

    if stat.S_ISDIR(mode):
        try:
            names = sorted(os.listdir(file))
        except OSError as exc:
            raise OSError(f"Cannot read directory {file}") from exc
        for name in names:
            if not name.startswith("."):
                _inspect(f"{file}/{name}", phase, prefix)
        return

    if stat.S_ISLNK(mode):
        try:
            lnrel = os.readlink(file)
        except OSError as exc:
            raise OSError(f"Cannot read link {file}") from exc
        src = _copydir(file) + lnrel

        if not lnrel.startswith("/") and depth(src) >= 0:  # points into the tree
            if phase == 0:
                return
            if os.path.exists(_copydir(target) + lnrel):
                try:
                    os.symlink(lnrel, target)
                except OSError:
                    _warn(f"Cannot link {file}")
                return
            lnabs = src
        else:
            if phase == 1:
                return
            lnabs = lnrel if lnrel.startswith("/") else src

        try:
            os.link(os.path.realpath(lnabs, strict=True), target)
        except OSError:
            _warn(f"Dangling link {file}")


def _remove(path: str) -> None:
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path, ignore_errors=True)
    else:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass


def make_dist(tarflags: str, tarname: str, packagedir: str, files: Sequence[str]) -> int:
    """Archive ``files`` into ``tarname`` below ``packagedir``.

    Returns the exit status of ``tar``.
    """
    if ".tar" not in tarname:
        raise ValueError(f"{tarname} is not a tar file")
    if os.path.exists(packagedir):
        raise FileExistsError(f"{packagedir} exists already")
    prefix = packagedir + "/"
    _remove(tarname)

    try:
        for phase in (0, 1):
            for file in files:
                _inspect(file, phase, prefix)
        completed = subprocess.run(
            ["tar", tarflags, tarname, "--owner=root", "--group=root", packagedir],
            check=False,
        )
    finally:
        shutil.rmtree(packagedir, ignore_errors=True)
    return completed.returncode


def main(argv: list[str] | None = None) -> int:
    """Command line: ``mkdist tarflags packagename.tar[.gz] packagedir files``."""
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) < 4:
        sys.stderr.write(_USAGE)
        return 1
    try:
        make_dist(args[0], args[1], args[2], args[3:])
    except (ValueError, OSError) as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())