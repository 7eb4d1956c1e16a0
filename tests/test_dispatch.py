"""Tests for zstd_lines/dispatch.py -- mode selection and concurrent fan-out."""

import threading
from pathlib import Path

import pytest

from zstd_lines.dispatch import LineDispatcher, process_file, process_files, select_mode
from zstd_lines.types import ReadMode


# ── select_mode ───────────────────────────────────────────────

class TestSelectMode:
    @pytest.mark.parametrize("name", [
        "file.jsonl.tar.zst",
        "file.tar.zst",
        "logs.tar.gz",
        "/data/dumps/2024-01.jsonl.tar.zstd",
        ".tar.zst",
    ])
    def test_archive(self, name):
        assert select_mode(name) is ReadMode.ARCHIVE

    @pytest.mark.parametrize("name", [
        "file.jsonl.zst",
        "file.tar",
        "file.tarball.zst",
        "dir.tar/file.zst",
        "file.zst",
    ])
    def test_plain(self, name):
        assert select_mode(name) is ReadMode.PLAIN

    def test_accepts_path_objects(self):
        assert select_mode(Path("x.tar.zst")) is ReadMode.ARCHIVE


# ── process_file ──────────────────────────────────────────────

class TestProcessFile:
    def test_plain(self, write_zst, collector):
        path = write_zst("a.jsonl.zst", b"x\ny\n")
        result = process_file(path, collector)
        assert result.ok
        assert result.mode is ReadMode.PLAIN
        assert collector.calls == [("x", path), ("y", path)]

    def test_archive(self, write_zst, collector, make_header):
        path = write_zst("a.jsonl.tar.zst", make_header() + b"alpha\nbeta")
        result = process_file(path, collector)
        assert result.mode is ReadMode.ARCHIVE
        assert collector.lines == ["alpha", "beta"]

    def test_failure_recorded_not_raised(self, tmp_path, collector, capture_logs):
        caplog = capture_logs("dispatch")
        missing = tmp_path / "missing.zst"
        result = process_file(missing, collector)
        assert not result.ok
        assert "missing.zst" in result.error
        errors = [r for r in caplog.records if r.levelname == "ERROR"]
        assert errors and str(missing) in errors[0].getMessage()

    def test_partial_lines_stay_delivered(self, write_zst):
        path = write_zst("p.zst", b"a\nb\nc\n")
        seen = []

        def handler(line, source):
            if line == "c":
                raise RuntimeError("handler broke")
            seen.append(line)

        result = process_file(path, handler)
        assert seen == ["a", "b"]
        assert result.lines_emitted == 2
        assert "handler broke" in result.error


# ── process_files ─────────────────────────────────────────────

class TestProcessFiles:
    def test_mixed_inputs_and_failures(self, tmp_path, write_zst, write_gz, collector, make_tar):
        plain = write_zst("plain.jsonl.zst", b"p1\np2\np3\n")
        archive = write_zst(
            "arch.jsonl.tar.zst",
            make_tar([("m1", b"a1\na2\n"), ("m2", b"a3\n")]),
        )
        gz = write_gz("g.log.gz", b"g1\ng2")
        corrupt = tmp_path / "corrupt.zst"
        corrupt.write_bytes(b"garbage")
        missing = tmp_path / "missing.tar.zst"

        summary = process_files(
            [plain, str(archive), gz, corrupt, missing], collector, max_workers=3
        )

        grouped = collector.by_path()
        assert grouped[plain] == ["p1", "p2", "p3"]
        assert [line for line in grouped[archive] if line.strip("\x00")] == ["a1", "a2", "a3"]
        assert grouped[gz] == ["g1", "g2"]
        assert corrupt not in grouped

        assert summary.files == 5
        assert {r.path for r in summary.failed} == {corrupt, missing}
        assert summary.end_time is not None
        assert summary.lines_emitted == len(collector.calls)

    def test_per_file_order_under_concurrency(self, write_zst, collector):
        paths = []
        for i in range(8):
            lines = "".join(f"{i}:{n}\n" for n in range(2000))
            paths.append(write_zst(f"f{i}.zst", lines.encode("utf-8")))

        summary = process_files(paths, collector, max_workers=4)

        assert not summary.failed
        grouped = collector.by_path()
        for i, path in enumerate(paths):
            assert grouped[path] == [f"{i}:{n}" for n in range(2000)]

    def test_handler_called_from_worker_threads(self, write_zst):
        paths = [write_zst(f"t{i}.zst", b"line\n") for i in range(4)]
        threads = set()
        lock = threading.Lock()

        def handler(line, source):
            with lock:
                threads.add(threading.current_thread().name)

        process_files(paths, handler, max_workers=2)
        assert threads
        assert all(name.startswith("zstd_lines") for name in threads)

    def test_empty_input(self, collector):
        summary = process_files([], collector)
        assert summary.files == 0
        assert collector.calls == []

    def test_handler_must_be_callable(self, write_zst):
        path = write_zst("a.zst", b"a\n")
        with pytest.raises(TypeError):
            process_files([path], "not a handler")

    def test_dropped_lines_in_summary(self, write_zst, collector, make_header):
        plain = write_zst("bad.zst", b"\xff\nok\n")
        archive = write_zst("bad.tar.zst", make_header() + b"\xfe\nok\n")
        summary = process_files([plain, archive], collector)
        assert summary.lines_dropped == 2
        assert collector.lines.count("ok") == 2


# ── LineDispatcher ────────────────────────────────────────────

class TestLineDispatcher:
    def test_default_workers_positive(self):
        assert LineDispatcher().max_workers >= 1

    def test_custom_reader(self, write_zst, collector):
        class UpperReader:
            mode = ReadMode.PLAIN

            def read(self, path, handler, result):
                handler("UPPER", Path(path))
                result.lines_emitted += 1
                return result

        dispatcher = LineDispatcher(readers={ReadMode.PLAIN: UpperReader()}, max_workers=1)
        path = write_zst("u.zst", b"ignored\n")
        summary = dispatcher.process_files([path], collector)
        assert collector.calls == [("UPPER", path)]
        assert summary.lines_emitted == 1

    def test_partial_readers_keep_defaults(self, write_zst, collector, make_header):
        class UpperReader:
            mode = ReadMode.PLAIN

            def read(self, path, handler, result):
                handler("UPPER", Path(path))
                result.lines_emitted += 1
                return result

        dispatcher = LineDispatcher(readers={ReadMode.PLAIN: UpperReader()}, max_workers=2)
        plain = write_zst("a.zst", b"ignored\n")
        archive = write_zst("b.tar.zst", make_header() + b"alpha\nbeta\n")

        summary = dispatcher.process_files([plain, archive], collector)
        assert summary.failed == []
        by_path = collector.by_path()
        assert by_path[plain] == ["UPPER"]
        assert by_path[archive] == ["alpha", "beta"]

    def test_foreign_reader_exception_recorded(self, write_zst, collector, capture_logs):
        caplog = capture_logs("dispatch")

        class BrokenReader:
            mode = ReadMode.PLAIN

            def read(self, path, handler, result):
                raise RuntimeError("reader exploded")

        dispatcher = LineDispatcher(readers={ReadMode.PLAIN: BrokenReader()}, max_workers=2)
        bad = write_zst("bad.zst", b"x\n")
        good = write_zst("good.tar.zst", b"ok\n")

        summary = dispatcher.process_files([bad, good], collector)
        assert [r.path for r in summary.failed] == [bad]
        assert "reader exploded" in summary.failed[0].error
        assert collector.lines == ["ok"]
        assert any(r.levelname == "ERROR" for r in caplog.records)
