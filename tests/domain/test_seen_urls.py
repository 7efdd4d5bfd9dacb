import threading

from reviewcrawl.domain import SeenUrls


def test_add_reports_first_insertion_only():
    seen = SeenUrls()
    assert seen.add("u1") is True
    assert seen.add("u1") is False
    assert "u1" in seen
    assert seen.contains("u2") is False
    assert len(seen) == 1


def test_clear_empties_the_set():
    seen = SeenUrls()
    seen.add("u1")
    seen.add("u2")
    seen.clear()
    assert len(seen) == 0
    assert "u1" not in seen


def test_concurrent_adds_admit_each_url_once():
    seen = SeenUrls()
    wins = []

    def worker():
        for i in range(200):
            if seen.add(f"u{i}"):
                wins.append(i)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(seen) == 200
    assert sorted(wins) == list(range(200))
