import os
import tempfile
import unittest

from range_core.actions import ActionError, SimpleAction, WeightedAction
from range_core.db import ACTIONS, FOLDERS, db_load_all, db_load_document, db_store_documents
from range_core.selection import DESELECT, SELECT
from range_core.store import RangeStore, StoreError


class TestRangeStore(unittest.TestCase):
    def test_given_new_store_when_created_then_default_folder_range_and_raise_button(self):
        store = RangeStore()
        self.assertEqual([f.name for f in store.folders], ['Folder'])
        self.assertEqual(store.range('1').name, 'Range')
        self.assertEqual(store.range('1').hands, {})
        self.assertEqual([a.id for a in store.actions], ['raise'])
        self.assertEqual(store.actions[0].color, '#8b5cf6')

    def test_given_folders_when_adding_ranges_then_ids_unique_across_folders(self):
        store = RangeStore()
        f2 = store.add_folder('BTN')
        r2 = store.add_range(f2.id, 'Open')
        r3 = store.add_range('1', 'Defend')
        self.assertEqual(f2.id, '2')
        self.assertEqual((r2.id, r3.id), ('2', '3'))
        store.rename_range('3', 'Defend BB')
        self.assertEqual(store.range('3').name, 'Defend BB')
        store.delete_range('2')
        self.assertIsNone(store.find_range('2'))
        with self.assertRaises(StoreError):
            store.range('2')
        with self.assertRaises(StoreError):
            store.add_range('99', 'x')

    def test_given_mutations_when_applied_then_range_hands_updated(self):
        store = RangeStore()
        store.apply_mutation('1', 'AA', SELECT, 'raise')
        store.apply_mutation('1', 'KK', SELECT, 'call')
        store.apply_mutation('1', 'KK', DESELECT, 'raise')
        self.assertEqual(store.range('1').hands, {'AA': 'raise', 'KK': 'call'})

    def test_given_action_buttons_when_saving_then_added_replaced_and_validated(self):
        store = RangeStore()
        store.save_action(SimpleAction(id='call', name='Call', color='#22c55e'))
        store.save_action(SimpleAction(id='raise', name='Raise 3x', color='#ff0000'))
        self.assertEqual([a.id for a in store.actions], ['raise', 'call'])
        self.assertEqual(store.actions[0].name, 'Raise 3x')
        with self.assertRaises(ActionError):
            store.save_action(WeightedAction(id='mix', name='Mix', action1_id='raise', action2_id='limp', weight=50))
        self.assertEqual(len(store.actions), 2)

    def test_given_referenced_action_when_deleting_then_refused(self):
        store = RangeStore()
        store.save_action(WeightedAction(id='mix', name='Mix', action1_id='raise', action2_id='fold', weight=50))
        with self.assertRaises(StoreError):
            store.delete_action('raise')
        store.delete_action('mix')
        store.delete_action('raise')
        self.assertEqual(store.actions, [])
        with self.assertRaises(StoreError):
            store.delete_action('raise')

    def test_given_store_when_export_and_import_then_same_document(self):
        store = RangeStore()
        store.save_action(WeightedAction(id='mix', name='Mix', action1_id='raise', action2_id='fold', weight=70))
        store.apply_mutation('1', 'QQ', SELECT, 'mix')
        store.record_session('t1', timestamp=1000, duration=65000, total=10, correct=7)
        doc = store.to_json()
        again = RangeStore.from_json(doc)
        self.assertEqual(again.to_json(), doc)

    def test_given_partial_import_when_importing_then_only_present_sections_replaced(self):
        store = RangeStore()
        store.import_json({'actionButtons': [{'id': 'call', 'name': 'Call', 'color': '#00ff00'}]})
        self.assertEqual([a.id for a in store.actions], ['call'])
        self.assertEqual(store.range('1').name, 'Range')
        with self.assertRaises(StoreError):
            store.import_json({'folders': [{'name': 'no id'}]})
        with self.assertRaises(StoreError):
            store.import_json(['not', 'an', 'object'])

    def test_given_bad_section_when_importing_then_store_unchanged(self):
        store = RangeStore()
        store.apply_mutation('1', 'AA', SELECT, 'raise')
        before = store.to_json()
        call = {'type': 'simple', 'id': 'call', 'name': 'Call', 'color': '#00ff00'}
        with self.assertRaises(StoreError):
            store.import_json({'actionButtons': [call], 'folders': [], 'trainings': 5})
        self.assertEqual(store.to_json(), before)

    def test_given_hands_list_when_importing_then_store_error(self):
        store = RangeStore()
        doc = {'folders': [{'id': '1', 'name': 'F', 'ranges': [{'id': '1', 'name': 'R', 'hands': ['AA']}]}]}
        with self.assertRaises(StoreError):
            store.import_json(doc)
        self.assertEqual(store.range('1').name, 'Range')

    def test_given_duplicate_ids_when_importing_then_store_error(self):
        store = RangeStore()
        call = {'type': 'simple', 'id': 'call', 'name': 'Call', 'color': '#00ff00'}
        with self.assertRaises(StoreError):
            store.import_json({'actionButtons': [call, call]})
        self.assertEqual([a.id for a in store.actions], ['raise'])

    def test_given_training_when_deleted_then_its_statistics_removed(self):
        store = RangeStore(trainings=[{'id': 't1'}, {'id': 't2'}])
        store.record_session('t1', 1, 1000, 5, 5)
        store.record_session('t2', 2, 1000, 5, 4)
        store.delete_training('t1')
        self.assertEqual(store.trainings, [{'id': 't2'}])
        self.assertEqual([s['trainingId'] for s in store.training_statistics], ['t2'])


class TestDb(unittest.TestCase):
    def test_given_documents_when_stored_then_loaded_back(self):
        with tempfile.TemporaryDirectory() as td:
            db = os.path.join(td, 'nested', 'ranges.db')
            self.assertIsNone(db_load_document(db, FOLDERS))
            db_store_documents(db, {FOLDERS: [{'id': '1'}], ACTIONS: []})
            self.assertEqual(db_load_document(db, FOLDERS), [{'id': '1'}])
            self.assertEqual(db_load_all(db), {FOLDERS: [{'id': '1'}], ACTIONS: []})

    def test_given_store_when_saved_and_loaded_then_equal(self):
        with tempfile.TemporaryDirectory() as td:
            db = os.path.join(td, 'ranges.db')
            store = RangeStore()
            store.apply_mutation('1', 'AKs', SELECT, 'raise')
            store.save(db)
            loaded = RangeStore.load(db)
            self.assertEqual(loaded.to_json(), store.to_json())

    def test_given_empty_db_when_loading_then_defaults(self):
        with tempfile.TemporaryDirectory() as td:
            loaded = RangeStore.load(os.path.join(td, 'ranges.db'))
            self.assertEqual(loaded.to_json(), RangeStore().to_json())

    def test_given_stored_duplicate_and_fold_ids_when_loading_then_dropped(self):
        with tempfile.TemporaryDirectory() as td:
            db = os.path.join(td, 'ranges.db')
            a = {'type': 'simple', 'id': 'a', 'name': 'A', 'color': '#111111'}
            fold = {'type': 'simple', 'id': 'fold', 'name': 'Fold', 'color': '#6b7280'}
            db_store_documents(db, {ACTIONS: [a, dict(a, name='A2'), fold]})
            with self.assertLogs('range_core.store', level='WARNING'):
                loaded = RangeStore.load(db)
            self.assertEqual([(x.id, x.name) for x in loaded.actions], [('a', 'A')])


if __name__ == '__main__':
    unittest.main(verbosity=2)
