"""
LTSV Stress Tests
=================
Large documents, long values, wide records, and throughput benchmarks.

Run:
    python -m pytest tests/test_stress.py -v --tb=short
    python tests/test_stress.py          # standalone mode with benchmarks
"""

from __future__ import annotations

import io
import sys
import time
from pathlib import Path

# Allow running from repo root
sys.path.insert(0, str(Path(__file__).parent.parent))

from ltsv.document import LTSVDocument
from ltsv.reader import LTSVReader
from ltsv.stream import LTSVStreamWriter
from ltsv.writer import LTSVWriter
from ltsv.spec import VALUE_BYTES
from ltsv import converters


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _timer():
    """Simple context-manager stopwatch."""
    class Timer:
        def __init__(self):
            self.elapsed = 0.0
        def __enter__(self):
            self._start = time.perf_counter()
            return self
        def __exit__(self, *_):
            self.elapsed = time.perf_counter() - self._start
    return Timer()


def _report(label: str, elapsed: float, size: int = 0):
    mb = size / (1024 * 1024) if size else 0
    rate = f" ({mb / elapsed:.1f} MB/s)" if size and elapsed > 0 else ""
    print(f"  {label}: {elapsed*1000:.1f} ms{rate}")


def _access_log(n: int) -> bytes:
    lines = []
    for i in range(n):
        lines.append(
            f"host:10.0.{i // 256 % 256}.{i % 256}\tident:-\tuser:user{i}\t"
            f"req:GET /item/{i} HTTP/1.1\tstatus:{200 if i % 7 else 500}\tsize:{i * 13}\n"
        )
    return "".join(lines).encode("utf-8")


# ===================================================================
# 1. LARGE DOCUMENTS
# ===================================================================

class TestLargeDocuments:

    def test_10k_records(self):
        data = _access_log(10_000)
        records = LTSVReader.parse(data)
        assert len(records) == 10_000
        assert records[9999][b"user"] == b"user9999"
        assert LTSVWriter.write_document(records) == data

    def test_10k_records_lazy_matches_eager(self):
        data = _access_log(10_000)
        count = 0
        errors = 0

        def visit(record):
            nonlocal count, errors
            count += 1
            if record[b"status"] == b"500":
                errors += 1

        LTSVReader(data).for_each_record(visit)
        assert count == 10_000
        assert errors == len([i for i in range(10_000) if i % 7 == 0])

    def test_streamed_file_100k_records(self, tmp_path):
        path = tmp_path / "big.ltsv"
        # sink= mode: no per-record fsync
        with open(path, "wb") as f, LTSVStreamWriter(sink=f) as w:
            for i in range(100_000):
                w.write_record({b"i": str(i).encode()})
        with LTSVReader.open(path) as reader:
            n = sum(1 for _ in reader)
        assert n == 100_000


# ===================================================================
# 2. LONG VALUES / WIDE RECORDS
# ===================================================================

class TestExtremeShapes:

    def test_1mb_value(self):
        value = b"x" * (1024 * 1024)
        records = LTSVReader.parse(b"blob:" + value + b"\n")
        assert records[0][b"blob"] == value

    def test_1mb_value_all_value_bytes(self):
        alphabet = bytes(sorted(VALUE_BYTES))
        value = alphabet * (1024 * 1024 // len(alphabet))
        records = LTSVReader.parse(b"blob:" + value)
        assert records[0][b"blob"] == value

    def test_long_label(self):
        label = b"L" * 10_000
        assert LTSVReader.parse(label + b":v") == [{label: b"v"}]

    def test_1000_fields(self):
        record = {f"f{i}".encode(): str(i).encode() for i in range(1000)}
        data = LTSVWriter.write_document([record])
        assert data.count(b"\t") == 999
        assert LTSVReader.parse(data) == [record]

    def test_1000_fields_lazy_order(self):
        record = {f"f{i}".encode(): str(i).encode() for i in range(1000)}
        seen = []
        LTSVReader(LTSVWriter.write_document([record])).for_each_field(seen.append)
        assert [label for label, _ in seen] == list(record)

    def test_many_blank_lines(self):
        data = b"a:1\n" + b"\r\n" * 50_000 + b"b:2\n" + b"\n" * 50_000
        assert LTSVReader.parse(data) == [{b"a": b"1"}, {b"b": b"2"}]

    def test_error_deep_in_file(self):
        data = _access_log(5000) + b"broken line\n"
        try:
            LTSVReader.parse(data)
        except ValueError as e:
            assert e.line == 5001
        else:
            raise AssertionError("expected a parse error")


# ===================================================================
# 3. FORMAT GAUNTLET
# ===================================================================

class TestFormatGauntlet:

    def test_through_all_formats(self):
        doc = LTSVReader.parse_document(_access_log(1000))
        for fmt in ("jsonl", "json", "csv"):
            back = converters.convert_from(converters.convert_to(doc, fmt), fmt)
            assert back == doc, fmt

    def test_unicode_values(self):
        doc = LTSVDocument()
        for i, s in enumerate(["豆", "海藻", "🚀", "Ünïcödé", "مرحبا", "\u200b"]):
            doc.add_record(i=str(i), s=s * 100)
        assert LTSVReader.parse_document(doc.to_bytes()) == doc
        assert converters.from_jsonl(converters.to_jsonl(doc)) == doc


# ===================================================================
# BENCHMARKS
# ===================================================================

def run_benchmarks():
    print(f"\n{'='*60}")
    print("  BENCHMARKS")
    print(f"{'='*60}")

    data = _access_log(100_000)
    size = len(data)
    print(f"  input: {size / (1024 * 1024):.1f} MB, 100000 records")

    with _timer() as t:
        records = LTSVReader.parse(data)
    _report("parse (eager)", t.elapsed, size)

    with _timer() as t:
        for _ in LTSVReader(io.BytesIO(data)).iter_records():
            pass
    _report("parse (lazy records)", t.elapsed, size)

    with _timer() as t:
        LTSVReader(io.BytesIO(data)).for_each_field(lambda f: None)
    _report("parse (lazy fields)", t.elapsed, size)

    with _timer() as t:
        out = LTSVWriter.write_document(records)
    _report("serialize", t.elapsed, len(out))


if __name__ == "__main__":
    import traceback

    test_classes = [
        TestLargeDocuments,
        TestExtremeShapes,
        TestFormatGauntlet,
    ]

    passed = 0
    failed = 0

    for cls in test_classes:
        print(f"\n{'='*60}")
        print(f"  {cls.__name__}")
        print(f"{'='*60}")

        instance = cls()
        for name in sorted(dir(instance)):
            if not name.startswith("test_"):
                continue
            method = getattr(instance, name)
            if "tmp_path" in method.__code__.co_varnames[:method.__code__.co_argcount]:
                print(f"  SKIP {name} (needs pytest tmp_path)")
                continue
            try:
                method()
                passed += 1
                print(f"  ok   {name}")
            except AssertionError as e:
                print(f"  FAIL {name}: {e}")
                traceback.print_exc()
                failed += 1
            except Exception as e:
                print(f"  ERROR {name}: {e}")
                traceback.print_exc()
                failed += 1

    run_benchmarks()

    print(f"\n{'='*60}")
    total = passed + failed
    print(f"  RESULTS: {passed}/{total} passed, {failed} failed")
    if failed == 0:
        print("  ALL TESTS PASSED")
    print(f"{'='*60}")

    sys.exit(1 if failed else 0)
