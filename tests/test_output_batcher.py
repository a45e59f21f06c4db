"""
Tests for quota-bounded output commits.
"""
import json
import threading

import pytest

from directory_scraper.scrapers.output import JsonLinesSink, MemorySink, OutputBatcher


# =============================================================================
# Direct mode
# =============================================================================

class TestSaveDirect:

    def test_commits_in_order(self, sink, make_state, make_record):
        state = make_state()
        committed = OutputBatcher(sink, state).save_direct([make_record(1), make_record(2)])

        assert committed == 2
        assert state.saved_count == 2
        assert [item["name"] for item in sink.items] == ["Firm 1", "Firm 2"]
        assert "bio" not in sink.items[0]

    def test_truncated_to_remaining_quota(self, sink, make_state, make_record):
        state = make_state(target=3)
        batcher = OutputBatcher(sink, state)
        batcher.save_direct([make_record(i) for i in range(2)])
        batcher.save_direct([make_record(i) for i in range(2, 6)])

        assert state.saved_count == 3
        assert sink.batches == [2, 1]

    def test_nothing_pushed_after_target(self, sink, make_state, make_record):
        state = make_state(target=1)
        batcher = OutputBatcher(sink, state)
        batcher.save_direct([make_record(1)])
        assert batcher.save_direct([make_record(2)]) == 0
        assert sink.batches == [1]


# =============================================================================
# Detail mode
# =============================================================================

class TestDetailBatching:

    def test_buffers_until_batch_size(self, sink, make_state, make_record):
        state = make_state(target=100, collect_details=True)
        batcher = OutputBatcher(sink, state, batch_size=3)

        assert batcher.add(make_record(1)) == 0
        assert batcher.add(make_record(2)) == 0
        assert sink.items == []
        assert batcher.add(make_record(3)) == 3

        assert sink.batches == [3]
        assert state.pending_detail_batch == []
        assert "bio" in sink.items[0]

    def test_flushes_early_when_target_would_be_reached(self, sink, make_state, make_record):
        state = make_state(target=2, collect_details=True)
        batcher = OutputBatcher(sink, state, batch_size=10)
        batcher.add(make_record(1))
        assert batcher.add(make_record(2)) == 2
        assert state.saved_count == 2

    def test_final_flush_commits_remainder(self, sink, make_state, make_record):
        state = make_state(collect_details=True)
        batcher = OutputBatcher(sink, state, batch_size=10)
        for i in range(4):
            batcher.add(make_record(i))
        assert batcher.flush() == 4
        assert batcher.flush() == 0
        assert state.saved_count == 4

    def test_pending_kept_when_sink_fails(self, make_state, make_record):
        class FailingSink(MemorySink):
            def push_batch(self, items):
                raise IOError("disk full")

        state = make_state(collect_details=True)
        batcher = OutputBatcher(FailingSink(), state, batch_size=10)
        batcher.add(make_record(1))

        with pytest.raises(IOError):
            batcher.flush()
        assert len(state.pending_detail_batch) == 1
        assert state.saved_count == 0

    def test_concurrent_adds_respect_target(self, sink, make_state, make_record):
        state = make_state(target=17, collect_details=True)
        batcher = OutputBatcher(sink, state, batch_size=4)

        def worker(offset):
            for i in range(10):
                batcher.add(make_record(offset + i))

        threads = [threading.Thread(target=worker, args=(n * 100,)) for n in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        batcher.flush()

        assert state.saved_count == 17
        assert len(sink.items) == 17


# =============================================================================
# JSON lines sink
# =============================================================================

class TestJsonLinesSink:

    def test_appends_lines(self, tmp_path, make_record):
        path = tmp_path / "out" / "records.jsonl"
        sink = JsonLinesSink(str(path))
        sink.push_batch([make_record(1).to_dict(False)])
        sink.push_batch([make_record(2).to_dict(False), make_record(3).to_dict(False)])

        lines = path.read_text(encoding="utf-8").splitlines()
        assert [json.loads(line)["name"] for line in lines] == ["Firm 1", "Firm 2", "Firm 3"]

    def test_empty_batch_writes_nothing(self, tmp_path):
        path = tmp_path / "records.jsonl"
        JsonLinesSink(str(path)).push_batch([])
        assert not path.exists()
