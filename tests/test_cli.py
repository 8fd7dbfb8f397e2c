import hashlib
import io
import os
import re
import subprocess
import sys
from pathlib import Path

import pytest

from hash_search import cli

SRC = Path(__file__).resolve().parent.parent / "src"


def run_cli(argv, data=b""):
    stdin = io.BytesIO(data)
    stdout = io.BytesIO()
    stderr = io.StringIO()
    config = cli.parse_cli(argv, err=stderr)
    code = cli.run(config, stdin, stdout, stderr)
    return code, stdout.getvalue(), stderr.getvalue()


def test_matching_mode_writes_input_then_suffix():
    data = b"#!/bin/sh\necho hello\n"
    code, out, err = run_cli(["-b", "16", "-j", "2", "abc"], data)

    assert code == 0
    assert out.startswith(data)
    assert len(out) == len(data) + 4
    assert hashlib.md5(out).hexdigest().startswith("abc")
    assert "beginning search (original hash = %s)" % hashlib.md5(data).hexdigest() in err
    assert "found match!" in err
    assert "new hash is %s" % hashlib.md5(out).hexdigest() in err


def test_matching_mode_decimal_sha1():
    data = b"payload"
    code, out, err = run_cli(["-b", "12", "-d", "sha1", "-e", "decimal", "7"], data)

    assert code == 0
    suffix = out[len(data):]
    assert suffix.isdigit()
    assert hashlib.sha1(out).hexdigest().startswith("7")


def test_matching_mode_exhausted():
    data = b"nothing to see"
    code, out, err = run_cli(["-b", "8", "deadbeef"], data)

    assert code == 1
    assert out == data
    assert "no match found." in err
    assert "searching 0 to 0xff" in err


def test_listing_mode():
    code, out, err = run_cli(["-l", "-b", "10", "-j", "3", "0"], b"ignored by output")

    assert code == 0
    assert b"ignored" not in out
    lines = out.decode("ascii").splitlines()
    assert lines
    counters = []
    for line in lines:
        assert re.fullmatch(r"0[0-9a-f]{31} bytes 0x[0-9a-f]+", line)
        digest, _, counter = line.split()
        counter = int(counter, 16)
        counters.append(counter)
        expected = hashlib.md5(b"ignored by output" + counter.to_bytes(4, "little")).hexdigest()
        assert digest == expected
    assert counters == sorted(counters)
    assert "done, %d matches." % len(lines) in err


def test_listing_mode_no_matches_still_succeeds():
    code, out, err = run_cli(["-l", "-b", "6", "ffffffffffffffff"])
    assert code == 0
    assert out == b""


@pytest.mark.parametrize(
    "argv",
    [
        ["-b", "0", "ab"],
        ["-b", "65", "ab"],
        ["-b", "many", "ab"],
        ["-j", "0", "ab"],
        ["-j", "x", "ab"],
        ["-e", "base64", "ab"],
        ["--no-such-option", "ab"],
        [],
    ],
)
def test_argument_errors_exit_1(argv):
    err = io.StringIO()
    with pytest.raises(SystemExit) as exc:
        cli.parse_cli(argv, err=err)
    assert exc.value.code == 1
    assert "usage:" in err.getvalue()


@pytest.mark.parametrize(
    "argv",
    [
        ["-d", "md6", "ab"],
        ["xyz"],
        ["0" * 33],
        ["-d", "sha1", "0" * 41],
    ],
)
def test_configuration_errors_before_reading_input(argv):
    stdin = io.BytesIO(b"untouched")
    stdout = io.BytesIO()
    stderr = io.StringIO()
    config = cli.parse_cli(argv, err=stderr)

    with pytest.raises(SystemExit) as exc:
        cli.run(config, stdin, stdout, stderr)

    assert exc.value.code == 1
    assert stdin.tell() == 0
    assert stdout.getvalue() == b""
    assert "error:" in stderr.getvalue()


def test_list_digests(capsys):
    with pytest.raises(SystemExit) as exc:
        cli.parse_cli(["--list-digests"])
    assert exc.value.code == 0
    names = capsys.readouterr().out.split()
    assert "md5" in names
    assert "sha256" in names


def _module(args, data):
    env = dict(os.environ)
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(SRC), env.get("PYTHONPATH")]))
    return subprocess.run(
        [sys.executable, "-m", "hash_search", *args],
        input=data,
        capture_output=True,
        env=env,
        timeout=120,
    )


def test_module_entry_point_match():
    proc = _module(["-b", "16", "-j", "2", "dea"], b"")
    assert proc.returncode == 0
    assert hashlib.md5(proc.stdout).hexdigest().startswith("dea")


def test_module_entry_point_exhausted():
    proc = _module(["-b", "8", "deadbeef"], b"")
    assert proc.returncode == 1
    assert proc.stdout == b""
    assert b"no match found." in proc.stderr


def test_module_entry_point_bad_digest():
    proc = _module(["-d", "nope", "ab"], b"data")
    assert proc.returncode == 1
    assert proc.stdout == b""


class InterruptedStdin(io.BytesIO):
    def read(self, size=-1):
        raise KeyboardInterrupt


def test_interrupt_while_reading_input():
    stdout = io.BytesIO()
    stderr = io.StringIO()
    config = cli.parse_cli(["-b", "8", "ab"], err=stderr)

    assert cli.run(config, InterruptedStdin(), stdout, stderr) == cli.EXIT_INTERRUPTED
    assert "Interrupted" in stderr.getvalue()
    assert stdout.getvalue() == b""
