import tempfile
import unittest

from vncore.context import StoryContext
from vncore.events import DialogueEvent
from vncore.narrative.cursor import CursorState
from vncore.narrative.interactions import InteractionRegistry, InteractiveElement
from vncore.narrative.loader import story_from_dict
from vncore.settings import AppCfg, CursorCfg
from vncore.state.saves import SaveSlots


def one_liner(text="Hi", **extra):
    return story_from_dict({"name": text.lower(), "nodes": {"only": dict(say=text, **extra)}})


class TestInteractionRegistry(unittest.TestCase):
    def setUp(self):
        self.ctx = StoryContext()
        self.cursor = self.ctx.cursor()
        self.reg = InteractionRegistry(self.ctx.flags, self.cursor)

    def test_interact_starts_dialogue(self):
        self.reg.register(InteractiveElement("poster", dialogue=one_liner("Wanted")))
        self.assertTrue(self.reg.interact("poster"))
        self.assertIs(self.cursor.state, CursorState.AWAITING_REVEAL)
        self.assertEqual(self.cursor.node.line.text, "Wanted")

    def test_duplicate_names_rejected(self):
        self.reg.register(InteractiveElement("door"))
        with self.assertRaises(ValueError):
            self.reg.register(InteractiveElement("door"))

    def test_unknown_element(self):
        self.assertFalse(self.reg.can_interact("ghost"))
        self.assertFalse(self.reg.interact("ghost"))

    def test_one_time_element(self):
        self.reg.register(InteractiveElement("note", dialogue=one_liner(), one_time=True))
        self.assertTrue(self.reg.interact("note"))
        self.cursor.skip_reveal()
        self.assertIs(self.cursor.state, CursorState.ENDED)
        self.assertFalse(self.reg.interact("note"))
        self.assertEqual(self.reg.available(), [])
        self.reg.reset("note")
        self.assertTrue(self.reg.interact("note"))

    def test_requires_flags(self):
        self.reg.register(InteractiveElement("safe", dialogue=one_liner(), requires=("hasKey",)))
        self.assertFalse(self.reg.interact("safe"))
        self.ctx.flags.set_flag("hasKey")
        self.assertEqual([el.name for el in self.reg.available()], ["safe"])
        self.assertTrue(self.reg.interact("safe"))

    def test_refused_while_dialogue_running(self):
        self.reg.register(InteractiveElement("a", dialogue=one_liner("A")))
        self.reg.register(InteractiveElement("b", dialogue=one_liner("B")))
        self.assertTrue(self.reg.interact("a"))
        self.assertFalse(self.reg.interact("b"))
        self.assertEqual(self.cursor.node.line.text, "A")

    def test_element_without_dialogue(self):
        self.reg.register(InteractiveElement("window", description="Rain outside."))
        self.assertTrue(self.reg.interact("window"))
        self.assertIs(self.cursor.state, CursorState.IDLE)


class TestStoryContext(unittest.TestCase):
    def test_cursor_is_created_once_per_name(self):
        ctx = StoryContext()
        main = ctx.cursor()
        self.assertIs(ctx.cursor("main"), main)
        side = ctx.cursor("side")
        self.assertIsNot(side, main)
        self.assertEqual(sorted(ctx.cursors), ["main", "side"])

    def test_cursors_share_flags_and_events(self):
        ctx = StoryContext()
        seen = []
        ctx.events.subscribe(DialogueEvent.NODE_ENTERED, lambda ev: seen.append(ev.source.name))
        ctx.cursor("a").start(one_liner())
        ctx.cursor("b").start(one_liner())
        self.assertEqual(seen, ["a", "b"])
        self.assertIs(ctx.cursor("a").flags, ctx.cursor("b").flags)

    def test_cursor_uses_configured_options(self):
        cfg = AppCfg(cursor=CursorCfg(auto_advance=False))
        ctx = StoryContext(cfg)
        self.assertFalse(ctx.cursor().options.auto_advance)
        self.assertAlmostEqual(ctx.cursor().reveal.default_interval, cfg.reveal.default_interval)

    def test_new_game_resets_cursors_and_flags(self):
        ctx = StoryContext()
        ctx.flags.set_flag("metHero")
        ctx.cursor().start(one_liner())
        ctx.new_game()
        self.assertIs(ctx.cursor().state, CursorState.IDLE)
        self.assertFalse(ctx.flags.get_flag("metHero"))

    def test_save_and_load(self):
        with tempfile.TemporaryDirectory() as tmp:
            slots = SaveSlots(tmp)
            ctx = StoryContext()
            ctx.flags.set_flag("metHero")
            ctx.flags.set_int("coins", 3)
            ctx.save(slots, "slot1")

            other = StoryContext()
            self.assertTrue(other.load(slots, "slot1"))
            self.assertTrue(other.flags.get_flag("metHero"))
            self.assertEqual(other.flags.get_int("coins"), 3)


if __name__ == "__main__":
    unittest.main()
