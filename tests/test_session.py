"""
Unit tests for calculator sessions
Covers roster updates and both persistence policies
"""

import unittest
from unittest.mock import patch

from commission_bot.services.commission import Tier, DistributionError
from commission_bot.session import SessionStore, States, RosterFullError


class TestSessionCalculator(unittest.TestCase):
    """Test cases for in-memory session updates"""

    def setUp(self):
        self.store = SessionStore(persistence_enabled=False)
        self.chat_id = 555

    def test_defaults(self):
        state = self.store.get(self.chat_id)

        self.assertEqual(state.outlet_target, 1_000_000)
        self.assertEqual(state.outlet_achievement_percent, 0)
        self.assertEqual(state.suggest_count, 0)
        self.assertEqual(state.rows, [])
        self.assertEqual(state.outlet_tier, Tier.TIER_0)
        self.assertEqual(state.suggested_target(), 0)

    def test_achievement_percent_drives_tier(self):
        state = self.store.set_achievement(self.chat_id, 88)
        self.assertEqual(state.outlet_tier, Tier.TIER_0_5)

        state = self.store.set_achievement(self.chat_id, 100)
        self.assertEqual(state.outlet_tier, Tier.TIER_2)

    def test_employee_count_resizes_rows(self):
        state = self.store.set_employee_count(self.chat_id, 3)
        first_ids = [r.id for r in state.rows]

        self.assertEqual(len(state.rows), 3)

        state = self.store.set_employee_count(self.chat_id, 5)
        self.assertEqual([r.id for r in state.rows[:3]], first_ids)

        state = self.store.set_employee_count(self.chat_id, 0)
        self.assertEqual(state.rows, [])

    def test_distribute_sets_equal_floor_target(self):
        self.store.set_employee_count(self.chat_id, 3)

        per_employee = self.store.distribute(self.chat_id)

        state = self.store.get(self.chat_id)
        self.assertEqual(per_employee, 333_333)
        self.assertEqual({r.target for r in state.rows}, {333_333})

    def test_distribute_without_count_raises(self):
        with self.assertRaises(DistributionError):
            self.store.distribute(self.chat_id)

    def test_add_employee_uses_suggested_target(self):
        self.store.set_employee_count(self.chat_id, 4)

        row = self.store.add_employee(self.chat_id)

        self.assertEqual(row.name, "Employee 5")
        self.assertEqual(row.target, 250_000)
        self.assertEqual(len(self.store.get(self.chat_id).rows), 5)

    def test_add_employee_without_count_has_zero_target(self):
        row = self.store.add_employee(self.chat_id)
        self.assertEqual(row.target, 0)

    def test_edit_and_remove_employee(self):
        state = self.store.set_employee_count(self.chat_id, 2)
        row_id = state.rows[0].id

        self.store.edit_employee(self.chat_id, row_id, "sales", 500000)
        self.store.edit_employee(self.chat_id, row_id, "target", 400000)
        self.store.set_achievement(self.chat_id, 105)

        totals = self.store.get(self.chat_id).totals()
        self.assertAlmostEqual(totals.rows[0].commission, 12500)

        state = self.store.remove_employee(self.chat_id, row_id)
        self.assertEqual(len(state.rows), 1)
        self.assertNotEqual(state.rows[0].id, row_id)

    def test_input_state(self):
        self.store.set_input(self.chat_id, States.ROW_SALES, row_id="abc", field="sales")

        self.assertEqual(self.store.get_input(self.chat_id), States.ROW_SALES)
        self.assertEqual(self.store.get_input_data(self.chat_id, "row_id"), "abc")
        self.assertEqual(self.store.get_input_data(self.chat_id), {"row_id": "abc", "field": "sales"})

        self.store.clear_input(self.chat_id)
        self.assertIsNone(self.store.get_input(self.chat_id))
        self.assertEqual(self.store.get_input_data(self.chat_id), {})

    def test_chats_are_independent(self):
        self.store.set_employee_count(1, 3)
        self.assertEqual(self.store.get(2).rows, [])

    @patch('commission_bot.config.MAX_EMPLOYEES', 10)
    def test_employee_count_above_limit_rejected(self):
        self.store.set_employee_count(self.chat_id, 4)

        with self.assertRaises(RosterFullError):
            self.store.set_employee_count(self.chat_id, 11)

        state = self.store.get(self.chat_id)
        self.assertEqual(state.suggest_count, 4)
        self.assertEqual(len(state.rows), 4)
        self.assertEqual(len(self.store.set_employee_count(self.chat_id, 10).rows), 10)

    @patch('commission_bot.config.MAX_EMPLOYEES', 10)
    def test_add_employee_stops_at_limit(self):
        self.store.set_employee_count(self.chat_id, 9)
        self.store.add_employee(self.chat_id)

        with self.assertRaises(RosterFullError):
            self.store.add_employee(self.chat_id)

        self.assertEqual(len(self.store.get(self.chat_id).rows), 10)


class TestPersistenceDisabled(unittest.TestCase):
    """Test cases for the clear-on-start policy"""

    @patch('commission_bot.session.sheets')
    def test_start_resets_state_and_clears_storage(self, mock_sheets):
        mock_sheets.is_configured.return_value = True
        store = SessionStore(persistence_enabled=False)
        store.set_employee_count(7, 2)

        state = store.start(7)

        self.assertEqual(state.rows, [])
        mock_sheets.clear_chat.assert_called_once_with(7)
        mock_sheets.load_meta.assert_not_called()
        mock_sheets.save_rows.assert_not_called()
        mock_sheets.save_meta.assert_not_called()

    @patch('commission_bot.session.sheets')
    def test_start_without_spreadsheet_skips_storage(self, mock_sheets):
        mock_sheets.is_configured.return_value = False
        store = SessionStore(persistence_enabled=False)

        store.start(7)

        mock_sheets.clear_chat.assert_not_called()

    @patch('commission_bot.session.sheets')
    def test_clear_failure_is_logged_not_raised(self, mock_sheets):
        mock_sheets.is_configured.return_value = True
        mock_sheets.clear_chat.side_effect = Exception("quota")
        store = SessionStore(persistence_enabled=False)

        with self.assertLogs('commission_bot.session', level='ERROR'):
            state = store.start(7)

        self.assertEqual(state.rows, [])


class TestPersistenceEnabled(unittest.TestCase):
    """Test cases for the restore-and-save policy"""

    @patch('commission_bot.session.sheets')
    def test_state_restored_on_first_access(self, mock_sheets):
        mock_sheets.load_meta.return_value = {
            "chat_id": 9,
            "outlet_target": 900000,
            "outlet_achievement_percent": 95,
            "suggest_count": 2,
        }
        mock_sheets.load_rows.return_value = [
            {"chat_id": 9, "position": 1, "id": "a1", "name": "Ali", "sales": 100, "target": 450000},
            {"chat_id": 9, "position": 2, "id": 42, "name": 7, "sales": "", "target": 450000},
        ]
        store = SessionStore(persistence_enabled=True)

        state = store.start(9)

        self.assertEqual(state.outlet_target, 900000)
        self.assertEqual(state.outlet_tier, Tier.TIER_1)
        self.assertEqual(state.suggest_count, 2)
        self.assertEqual([r.id for r in state.rows], ["a1", "42"])
        self.assertEqual(state.rows[1].name, "7")
        self.assertEqual(state.rows[1].sales, 0)
        mock_sheets.clear_chat.assert_not_called()

        store.get(9)
        mock_sheets.load_meta.assert_called_once_with(9)

    @patch('commission_bot.session.sheets')
    def test_changes_are_saved(self, mock_sheets):
        mock_sheets.load_meta.return_value = None
        mock_sheets.load_rows.return_value = []
        store = SessionStore(persistence_enabled=True)

        store.set_employee_count(9, 1)

        mock_sheets.save_meta.assert_called_once_with(9, {
            "outlet_target": 1_000_000,
            "outlet_achievement_percent": 0.0,
            "suggest_count": 1,
        })
        saved_rows = mock_sheets.save_rows.call_args[0][1]
        self.assertEqual(len(saved_rows), 1)
        self.assertEqual(saved_rows[0]["name"], "Employee 1")

    @patch('commission_bot.session.sheets')
    def test_restore_failure_falls_back_to_defaults(self, mock_sheets):
        mock_sheets.load_meta.side_effect = Exception("unavailable")
        store = SessionStore(persistence_enabled=True)

        with self.assertLogs('commission_bot.session', level='ERROR'):
            state = store.get(9)

        self.assertEqual(state.rows, [])
        self.assertEqual(state.outlet_target, 1_000_000)


if __name__ == '__main__':
    unittest.main()
