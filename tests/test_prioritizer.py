"""Tests for the prioritizer."""

import unittest
from datetime import datetime, timedelta, timezone

from blog_indexer.models.candidate import CandidateItem, SourceKind
from blog_indexer.prioritizer import keyword_score, prioritize, recency_score, score_item

NOW = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
BLOG_URL = "https://example.blogspot.com/"


def item(path, days_old=None, title=None):
    published = NOW - timedelta(days=days_old) if days_old is not None else None
    return CandidateItem(
        url=f"https://example.blogspot.com{path}",
        source_kind=SourceKind.FEED,
        title=title,
        published_at=published,
    )


class TestScoring(unittest.TestCase):
    """Test cases for the individual score components."""

    def test_recency_tiers(self):
        self.assertEqual(recency_score(NOW - timedelta(days=1), NOW), 30)
        self.assertEqual(recency_score(NOW - timedelta(days=2), NOW), 30)
        self.assertEqual(recency_score(NOW - timedelta(days=3), NOW), 20)
        self.assertEqual(recency_score(NOW - timedelta(days=7), NOW), 20)
        self.assertEqual(recency_score(NOW - timedelta(days=8), NOW), 10)

    def test_unknown_publication_is_lowest_tier(self):
        self.assertEqual(recency_score(None, NOW), 10)

    def test_naive_datetimes_treated_as_utc(self):
        naive = datetime(2024, 5, 9, 12, 0)
        self.assertEqual(recency_score(naive, NOW), 30)

    def test_keyword_bonus_is_additive_and_uncapped(self):
        keywords = ["guide", "review", "python", "beginner"]
        self.assertEqual(keyword_score("A Python Guide and Review for the Beginner", keywords), 20)
        self.assertEqual(keyword_score("Nothing relevant", keywords), 0)
        self.assertEqual(keyword_score(None, keywords), 0)

    def test_structural_bonus(self):
        root = CandidateItem(url="https://example.blogspot.com", source_kind=SourceKind.SCRAPED)
        static = item("/p/about.html")
        dated = item("/2024/05/post.html")

        self.assertEqual(score_item(root, NOW, BLOG_URL), 13)
        self.assertEqual(score_item(static, NOW, BLOG_URL), 13)
        self.assertEqual(score_item(dated, NOW, BLOG_URL), 10)


class TestPrioritize(unittest.TestCase):
    """Test cases for prioritize."""

    def test_orders_by_score_descending(self):
        items = [
            item("/2024/04/old.html", days_old=30),
            item("/2024/05/fresh.html", days_old=1),
            item("/2024/05/week.html", days_old=5, title="Complete guide"),
        ]

        result = prioritize(items, 10, NOW, BLOG_URL, keywords=["guide"])

        self.assertEqual(
            [(p.url.rsplit("/", 1)[-1], p.priority_score) for p in result],
            [("fresh.html", 30), ("week.html", 25), ("old.html", 10)],
        )

    def test_ties_keep_input_order(self):
        items = [item(f"/2024/05/post-{i}.html", days_old=1) for i in range(5)]

        result = prioritize(items, 10, NOW, BLOG_URL)

        self.assertEqual([p.item for p in result], items)

    def test_truncates_to_max_count(self):
        items = [item(f"/2024/05/post-{i}.html") for i in range(10)]

        result = prioritize(items, 3, NOW, BLOG_URL)

        self.assertEqual(len(result), 3)
        self.assertEqual([p.item for p in result], items[:3])

    def test_zero_budget(self):
        self.assertEqual(prioritize([item("/2024/05/a.html")], 0, NOW), [])

    def test_deterministic(self):
        items = [
            item("/2024/05/a.html", days_old=1, title="Review"),
            item("/2024/05/b.html", days_old=6),
            item("/p/about.html"),
            item("/2024/05/c.html", days_old=1, title="review"),
            item("/2024/01/d.html", days_old=100),
        ]

        first = prioritize(items, 4, NOW, BLOG_URL, keywords=["review"])
        second = prioritize(list(items), 4, NOW, BLOG_URL, keywords=["review"])

        self.assertEqual(first, second)


if __name__ == "__main__":
    unittest.main()
