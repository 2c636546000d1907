import unittest

from range_core.actions import SimpleAction, WeightedAction
from range_core.matrix import HandMatrix
from range_core.selection import ReleaseHub
from range_core.store import RangeStore


class TestHandMatrix(unittest.TestCase):
    def setUp(self):
        self.store = RangeStore()
        self.store.save_action(SimpleAction(id='call', name='Call', color='#22c55e'))
        self.store.save_action(WeightedAction(id='mix', name='Mix', action1_id='raise', action2_id='fold', weight=70))
        self.hub = ReleaseHub()

    def test_given_click_events_when_dispatched_then_store_range_toggled(self):
        m = HandMatrix(self.store, '1', active_action_id='raise')
        m.dispatch('click', hand='AKs')
        self.assertEqual(self.store.range('1').hands, {'AKs': 'raise'})
        m.dispatch('click', hand='AKs')
        self.assertEqual(self.store.range('1').hands, {})

    def test_given_mouse_drag_when_released_on_window_then_cells_painted_and_click_absorbed(self):
        m = HandMatrix(self.store, '1', active_action_id='call')
        with m.mounted(self.hub):
            m.dispatch('mousedown', hand='AA')
            m.dispatch('mouseenter', hand='KK')
            m.dispatch('mouseenter', hand='QQ')
            m.dispatch('mouseup')
            m.dispatch('click', hand='AA')
        self.assertEqual(self.store.range('1').hands, {'AA': 'call', 'KK': 'call', 'QQ': 'call'})
        self.assertEqual(self.hub.listener_count(), 0)

    def test_given_touch_drag_when_moving_then_cells_under_finger_painted(self):
        m = HandMatrix(self.store, '1', active_action_id='raise')
        m.dispatch('touchstart', hand='AA')
        m.dispatch('touchmove', x=45, y=5)
        m.dispatch('touchend')
        self.assertEqual(self.store.range('1').hands, {'AA': 'raise', 'AKs': 'raise'})

    def test_given_background_mode_when_clicking_then_nothing_changes(self):
        m = HandMatrix(self.store, '1', background=True)
        m.dispatch('click', hand='AA')
        m.dispatch('mousedown', hand='KK')
        self.assertEqual(self.store.range('1').hands, {})
        m.set_mode(background=False)
        m.dispatch('click', hand='AA')
        self.assertEqual(self.store.range('1').hands, {'AA': 'raise'})

    def test_given_unknown_event_when_dispatched_then_reported(self):
        m = HandMatrix(self.store, '1')
        self.assertFalse(m.dispatch('wheel', hand='AA'))
        self.assertFalse(m.dispatch('touchmove'))
        self.assertTrue(m.dispatch('mouseup'))

    def test_given_hand_event_without_hand_when_dispatched_then_reported(self):
        m = HandMatrix(self.store, '1')
        self.assertFalse(m.dispatch('mousedown'))
        self.assertFalse(m.dispatch('click'))
        self.assertEqual(m.engine.state, 'idle')
        self.assertEqual(self.store.range('1').hands, {})

    def test_given_painted_range_when_rendering_rows_then_styles_follow_actions(self):
        m = HandMatrix(self.store, '1', active_action_id='mix')
        m.dispatch('click', hand='QQ')
        rows = m.rows()
        self.assertEqual(len(rows), 13)
        qq = rows[2][2]
        self.assertEqual(qq['hand'], 'QQ')
        self.assertEqual(qq['combos'], 6)
        self.assertEqual(qq['action'], 'mix')
        self.assertEqual(qq['style']['kind'], 'split')
        self.assertEqual(qq['style']['split'], 70)
        self.assertEqual(rows[0][0]['style']['kind'], 'empty')
        self.assertEqual(m.style_of('QQ'), m.style_of('QQ'))

    def test_given_no_actions_when_created_then_fold_is_active(self):
        store = RangeStore(actions=[])
        m = HandMatrix(store, '1')
        self.assertEqual(m.active_action_id, 'fold')


if __name__ == '__main__':
    unittest.main(verbosity=2)
