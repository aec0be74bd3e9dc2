"""
Tests for the result cache
"""
from models.api import ProcessingResult
from models.flashcard import QAPair
from services.result_cache import ResultCache


class FakeTimer:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def make_result(summary="A summary."):
    return ProcessingResult(
        summary=summary,
        questions=[QAPair(question="What is the capital of France?", answer="Paris is the capital.")],
        questionType="1marker"
    )


class TestResultCache:

    def setup_method(self):
        self.timer = FakeTimer()
        self.cache = ResultCache(ttl_seconds=3600, max_entries=2, timer=self.timer)

    def test_make_key(self):
        key = ResultCache.make_key(b"file bytes", "truefalse", 3)
        digest, question_type, count = key.split(":")

        assert len(digest) == 16
        assert question_type == "truefalse"
        assert count == "3"
        assert key == ResultCache.make_key(b"file bytes", "truefalse", 3)
        assert key != ResultCache.make_key(b"other bytes", "truefalse", 3)
        assert key != ResultCache.make_key(b"file bytes", "truefalse", 4)

    def test_get_missing(self):
        assert self.cache.get("missing") is None
        assert self.cache.get_stats()["misses"] == 1

    def test_set_and_get(self):
        result = make_result()
        self.cache.set("key", result)

        assert self.cache.get("key") is result
        assert self.cache.get_stats()["hits"] == 1

    def test_entries_expire(self):
        self.cache.set("key", make_result())

        self.timer.now = 3599
        assert self.cache.get("key") is not None

        self.timer.now = 3601
        assert self.cache.get("key") is None
        assert len(self.cache) == 0

    def test_bounded_size(self):
        self.cache.set("a", make_result("a"))
        self.cache.set("b", make_result("b"))
        self.cache.set("c", make_result("c"))

        assert len(self.cache) == 2
        assert self.cache.get("c") is not None

    def test_clear(self):
        self.cache.set("a", make_result())
        self.cache.clear()

        assert len(self.cache) == 0
        assert self.cache.get("a") is None

    def test_stats(self):
        self.cache.set("a", make_result())
        self.cache.get("a")
        self.cache.get("b")

        stats = self.cache.get_stats()
        assert stats["size"] == 1
        assert stats["sets"] == 1
        assert stats["hit_rate"] == 0.5
        assert stats["max_entries"] == 2
