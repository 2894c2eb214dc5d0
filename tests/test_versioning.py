from __future__ import annotations

import random
import unittest

from futurykon.core.versioning import (
    chronological,
    group_predictions_by_user,
    latest_for_user,
    latest_per_user,
)
from tests.helpers import make_prediction


class ReducerTests(unittest.TestCase):
    def test_three_updates_from_one_user(self) -> None:
        p1 = make_prediction("u1", 10, minutes=1)
        p2 = make_prediction("u1", 20, minutes=2)
        p3 = make_prediction("u1", 30, minutes=3)
        groups = group_predictions_by_user([p2, p3, p1])
        self.assertEqual(len(groups), 1)
        self.assertIs(groups[0].latest, p3)
        self.assertEqual(groups[0].history, [p2, p1])

    def test_group_count_and_sizes_preserve_input(self) -> None:
        rng = random.Random(3)
        predictions = [
            make_prediction(f"u{rng.randint(1, 6)}", rng.uniform(0, 100), minutes=i)
            for i in range(40)
        ]
        rng.shuffle(predictions)
        groups = group_predictions_by_user(predictions)
        self.assertEqual(len(groups), len({p.user_id for p in predictions}))
        self.assertEqual(sum(len(g.history) + 1 for g in groups), len(predictions))
        for group in groups:
            stamps = [group.latest.created_at] + [h.created_at for h in group.history]
            self.assertEqual(stamps, sorted(stamps, reverse=True))

    def test_groups_ordered_by_latest_activity(self) -> None:
        groups = group_predictions_by_user(
            [
                make_prediction("u1", 50, minutes=5),
                make_prediction("u2", 50, minutes=1),
                make_prediction("u3", 50, minutes=3),
            ]
        )
        self.assertEqual([g.user_id for g in groups], ["u1", "u3", "u2"])

    def test_equal_timestamps_break_ties_by_sequence(self) -> None:
        first = make_prediction("u1", 40, minutes=0, seq=7)
        second = make_prediction("u1", 60, minutes=0, seq=8)
        group = group_predictions_by_user([second, first])[0]
        self.assertIs(group.latest, second)
        self.assertEqual(group.history, [first])

    def test_equal_timestamps_without_sequence_use_input_order(self) -> None:
        first = make_prediction("u1", 40, minutes=0)
        second = make_prediction("u1", 60, minutes=0)
        self.assertIs(group_predictions_by_user([first, second])[0].latest, second)
        self.assertIs(group_predictions_by_user([second, first])[0].latest, first)

    def test_empty_input(self) -> None:
        self.assertEqual(group_predictions_by_user([]), [])
        self.assertEqual(latest_per_user([]), {})

    def test_latest_for_user(self) -> None:
        predictions = [
            make_prediction("u1", 10, minutes=1),
            make_prediction("u2", 20, minutes=2),
            make_prediction("u1", 30, minutes=3),
        ]
        self.assertEqual(latest_for_user(predictions, "u1").probability, 30)
        self.assertIsNone(latest_for_user(predictions, "u9"))

    def test_chronological_is_stable_for_ties(self) -> None:
        a = make_prediction("u1", 1, minutes=0)
        b = make_prediction("u2", 2, minutes=0)
        c = make_prediction("u3", 3, minutes=-1)
        self.assertEqual(chronological([a, b, c]), [c, a, b])

    def test_group_carries_author_identity(self) -> None:
        older = make_prediction("u1", 10, minutes=0)
        latest = make_prediction("u1", 20, minutes=1)
        latest.user_display_name = "Ada"
        group = group_predictions_by_user([older, latest])[0]
        self.assertEqual(group.display_name, "Ada")
        self.assertEqual(group.size, 2)


if __name__ == "__main__":
    unittest.main()
