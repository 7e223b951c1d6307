import unittest

from vncore.narrative.reveal import RevealParams, TextRevealTimer, compute_schedule


class TestSchedule(unittest.TestCase):
    def test_plain_interval(self):
        times = compute_schedule("abc", 0.5)
        self.assertEqual(len(times), 3)
        for got, want in zip(times, (0.5, 1.0, 1.5)):
            self.assertAlmostEqual(got, want)

    def test_punctuation_pauses_apply_before_next_char(self):
        rp = RevealParams(pause_short_s=1.0, pause_long_s=2.0)
        times = compute_schedule("a,b.c", 1.0, rp)
        # a=1, ','=2, b=3+1, '.'=5, c=6+2
        for got, want in zip(times, (1.0, 2.0, 4.0, 5.0, 8.0)):
            self.assertAlmostEqual(got, want)

    def test_ellipsis_pause(self):
        rp = RevealParams(pause_ellipsis_s=3.0)
        times = compute_schedule("...", 1.0, rp)
        for got, want in zip(times, (1.0, 5.0, 6.0)):
            self.assertAlmostEqual(got, want)


class TestTextRevealTimer(unittest.TestCase):
    def test_ticks_reveal_one_char_per_interval(self):
        t = TextRevealTimer("Hello", 0.1)
        self.assertIsNone(t.tick(0.05))
        self.assertEqual(t.tick(0.05), 1)
        self.assertEqual(t.visible_text, "H")
        self.assertEqual(t.tick(0.25), 3)
        self.assertFalse(t.done)
        self.assertEqual(t.tick(1.0), 5)
        self.assertTrue(t.done)
        self.assertEqual(t.visible_text, "Hello")

    def test_completion_fires_exactly_once(self):
        calls = []
        t = TextRevealTimer("Hi", 0.1, on_complete=lambda: calls.append(1))
        t.tick(1.0)
        t.tick(1.0)
        self.assertFalse(t.skip())
        self.assertEqual(calls, [1])

    def test_skip_completes_and_suppresses_ticks(self):
        calls = []
        t = TextRevealTimer("Hello", 0.1, on_complete=lambda: calls.append(1))
        t.tick(0.1)
        self.assertTrue(t.skip())
        self.assertEqual(t.revealed, 5)
        self.assertIsNone(t.tick(0.1))
        self.assertEqual(calls, [1])

    def test_restart(self):
        calls = []
        t = TextRevealTimer("ab", 0.1, on_complete=lambda: calls.append(1))
        t.skip()
        t.restart()
        self.assertEqual(t.revealed, 0)
        self.assertFalse(t.done)
        self.assertEqual(t.tick(0.1), 1)
        t.tick(0.1)
        self.assertEqual(calls, [1, 1])

    def test_zero_interval_reveals_on_first_tick(self):
        t = TextRevealTimer("abc", 0.0)
        self.assertEqual(t.tick(0.0), 3)
        self.assertTrue(t.done)

    def test_empty_text_completes_without_progress(self):
        calls = []
        t = TextRevealTimer("", 0.1, on_complete=lambda: calls.append(1))
        self.assertIsNone(t.tick(0.0))
        self.assertTrue(t.done)
        self.assertEqual(calls, [1])

    def test_progress_is_lazy_finite_and_restartable(self):
        calls = []
        t = TextRevealTimer("abcd", 0.1, on_complete=lambda: calls.append(1))
        first = t.progress()
        self.assertEqual(t.revealed, 0)
        self.assertEqual(next(first), 1)
        self.assertEqual(t.visible_text, "a")
        self.assertEqual(calls, [])
        self.assertEqual(list(first), [2, 3, 4])
        self.assertTrue(t.done)
        self.assertEqual(calls, [1])
        self.assertEqual(list(t.progress()), [])
        t.restart()
        self.assertEqual(list(t.progress()), [1, 2, 3, 4])
        self.assertEqual(calls, [1, 1])

    def test_progress_continues_after_ticks(self):
        t = TextRevealTimer("abcd", 0.1)
        t.tick(0.2)
        self.assertEqual(list(t.progress()), [3, 4])
        self.assertIsNone(t.tick(1.0))

    def test_progress_after_skip_yields_nothing(self):
        calls = []
        t = TextRevealTimer("abcd", 0.1, on_complete=lambda: calls.append(1))
        t.skip()
        self.assertEqual(list(t.progress()), [])
        self.assertEqual(calls, [1])

    def test_skip_during_progress_stops_it(self):
        t = TextRevealTimer("abcd", 0.1)
        seq = t.progress()
        self.assertEqual(next(seq), 1)
        t.skip()
        self.assertEqual(list(seq), [])
        self.assertEqual(t.revealed, 4)

    def test_params_supply_default_interval(self):
        rp = RevealParams(default_interval=0.2)
        self.assertAlmostEqual(rp.interval_for(0.0), 0.2)
        self.assertAlmostEqual(rp.interval_for(0.05), 0.05)


if __name__ == "__main__":
    unittest.main()
