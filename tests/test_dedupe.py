"""
Tests for run-wide deduplication and quota-capped admission.
"""
import threading

from directory_scraper.scrapers.dedupe import Deduplicator
from directory_scraper.scrapers.models import Record


class TestAdmit:

    def test_first_admission_wins(self, make_state, make_record):
        state = make_state()
        dedupe = Deduplicator()
        assert dedupe.admit(make_record(1), state) is True
        assert dedupe.admit(make_record(1, name="Renamed"), state) is False
        assert state.seen == {"https://lawyers.findlaw.com/profile/firm-1"}

    def test_name_used_without_profile_url(self, make_state):
        state = make_state()
        dedupe = Deduplicator()
        assert dedupe.admit(Record(name="Oak"), state) is True
        assert dedupe.admit(Record(name="Oak"), state) is False

    def test_record_without_identity_discarded(self, make_state):
        state = make_state()
        assert Deduplicator().admit(Record(phone="555"), state) is False
        assert state.records_discarded == 1
        assert not state.seen


class TestAdmitPage:

    def test_duplicates_within_page_admitted_once(self, make_state, make_record):
        state = make_state()
        records = [make_record(1), make_record(2), make_record(1)]
        admitted = Deduplicator().admit_page(records, state)
        assert [r.name for r in admitted] == ["Firm 1", "Firm 2"]

    def test_idempotent_across_pages(self, make_state, make_record):
        """Re-seeing a page admits nothing new."""
        state = make_state()
        dedupe = Deduplicator()
        page = [make_record(i) for i in range(5)]
        assert len(dedupe.admit_page(page, state)) == 5
        assert dedupe.admit_page(page, state) == []
        assert state.admitted_count == 5

    def test_limit_caps_admission_and_leaves_rest_unseen(self, make_state, make_record):
        state = make_state(target=3)
        page = [make_record(i) for i in range(5)]
        admitted = Deduplicator().admit_page(page, state)

        assert [r.name for r in admitted] == ["Firm 0", "Firm 1", "Firm 2"]
        assert make_record(3).profile_url not in state.seen

    def test_explicit_limit(self, make_state, make_record):
        state = make_state()
        admitted = Deduplicator().admit_page([make_record(i) for i in range(5)], state, limit=2)
        assert len(admitted) == 2

    def test_default_limit_tracks_saved_count_in_direct_mode(self, make_state, make_record):
        state = make_state(target=10)
        state.saved_count = 9
        admitted = Deduplicator().admit_page([make_record(i) for i in range(5)], state)
        assert len(admitted) == 1

    def test_concurrent_pages_never_exceed_target(self, make_state, make_record):
        state = make_state(target=25, collect_details=True)
        dedupe = Deduplicator()
        results = []

        def worker(offset):
            page = [make_record(offset + i) for i in range(20)]
            results.append(len(dedupe.admit_page(page, state)))

        threads = [threading.Thread(target=worker, args=(n * 10,)) for n in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(results) == 25
        assert state.admitted_count == 25
