import unittest

from ai_sequence_dj.metrics import (
    describe_evaluation,
    evaluate_recommendations,
    genre_coherence,
    genre_consistency,
    popularity_smoothness,
)
from ai_sequence_dj.models import EvaluationMetrics, Recommendation, TrackMetadata


def _recs(genres: list[str], popularities: list[int | None] | None = None) -> list[Recommendation]:
    popularities = popularities or [50] * len(genres)
    return [
        Recommendation(TrackMetadata(id=str(i), title=f"S{i}", artist="A", genre=g, popularity=p), 1.0)
        for i, (g, p) in enumerate(zip(genres, popularities))
    ]


class MetricTests(unittest.TestCase):
    def test_genre_consistency_is_diversity_ratio(self) -> None:
        self.assertAlmostEqual(genre_consistency(["pop", "pop", "rock", "pop", "jazz"]), 0.6)

    def test_genre_coherence_is_dominant_share(self) -> None:
        self.assertAlmostEqual(genre_coherence(["pop", "pop", "rock", "pop", "jazz"]), 0.6)
        self.assertAlmostEqual(genre_coherence(["pop", "pop", "pop", "rock"]), 0.75)
        self.assertAlmostEqual(genre_consistency(["pop", "pop", "pop", "rock"]), 0.5)

    def test_popularity_smoothness(self) -> None:
        self.assertAlmostEqual(popularity_smoothness([50, 60, 40]), 1 - 15 / 50)
        self.assertEqual(popularity_smoothness([0, 100, 0]), 0.0)
        self.assertEqual(popularity_smoothness([None, None]), 1.0)

    def test_short_lists_default_to_one(self) -> None:
        self.assertEqual(evaluate_recommendations([]), EvaluationMetrics(1.0, 1.0, 1.0))
        self.assertEqual(evaluate_recommendations(_recs(["pop"])), EvaluationMetrics(1.0, 1.0, 1.0))

    def test_evaluate_recommendations(self) -> None:
        metrics = evaluate_recommendations(_recs(["pop", "pop", "rock", "pop", "jazz"], [50, 60, 70, 80, 90]))
        self.assertAlmostEqual(metrics.genre_consistency, 0.6)
        self.assertAlmostEqual(metrics.genre_coherence, 0.6)
        self.assertAlmostEqual(metrics.popularity_smoothness, 0.8)

    def test_metrics_stay_in_unit_interval(self) -> None:
        metrics = evaluate_recommendations(_recs(["a", "b", "c"], [0, 100, 0]))
        for value in (metrics.genre_coherence, metrics.popularity_smoothness, metrics.genre_consistency):
            self.assertGreaterEqual(value, 0.0)
            self.assertLessEqual(value, 1.0)


class DescribeEvaluationTests(unittest.TestCase):
    def test_describes_every_metric(self) -> None:
        summary = describe_evaluation()
        self.assertEqual(set(summary["metric_descriptions"]), set(summary["evaluation_metrics"]))
        self.assertEqual(len(summary["sample_recommendations"]), 5)
        self.assertAlmostEqual(summary["evaluation_metrics"]["genre_coherence"], 0.6)


if __name__ == "__main__":
    unittest.main()
