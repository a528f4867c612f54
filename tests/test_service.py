import unittest
import os
import sys

import pandas as pd

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from engine.errors import MissingInput
from engine.models import PolicyKind, SimulationInput
from engine.policies import solve
from schemas.annuity import AnnuityParams
from services.annuity_service import (
    annual_to_dataframe,
    export_annual_csv,
    periods_to_dataframe,
    run_calculation_service,
)
from services.presentation import currency_format, currency_symbol, error_message, headline
from engine.errors import ErrorKind


class TestPresentation(unittest.TestCase):
    def test_currency_symbols(self):
        self.assertEqual(currency_symbol('USD'), '$')
        self.assertEqual(currency_symbol('gbp'), '£')
        self.assertEqual(currency_symbol('ZAR'), 'R')
        self.assertEqual(currency_symbol('XYZ'), 'R')
        self.assertEqual(currency_symbol(None), 'R')

    def test_currency_format(self):
        self.assertEqual(currency_format(1234567.891, 'USD'), '$ 1,234,567.89')
        self.assertEqual(currency_format(1234567.891, 'JPY'), '¥ 1,234,568')
        self.assertEqual(currency_format(5601.44, 'ZAR', space=''), 'R5,601.44')

    def test_error_messages(self):
        self.assertEqual(error_message(ErrorKind.SEARCH_FAILED), "Please check the input values are reasonable")
        self.assertIn("1000 years", error_message(ErrorKind.CALCULATION_TOO_LONG))

    def test_headline(self):
        result = solve(SimulationInput(principal=1000000, term_years=20, annual_rate_percent=8,
                                       annual_increase_percent=5), PolicyKind.WITHDRAWAL)
        lines = headline(result, 'USD')
        self.assertEqual(lines['main'], 'Monthly Income: $ 5,601.44, Increasing at 5% per annum')
        self.assertEqual(lines['income'], 'Initial Annual Income: $ 67,217.28, Draw Down Percentage: 6.7%')
        self.assertEqual(lines['total_withdrawn'], 'Total Withdrawn: $ 2,222,600.63')
        self.assertEqual(lines['total_interest'], 'Total Interest: $ 1,222,600.63')


class TestCalculationService(unittest.TestCase):
    def setUp(self):
        self.params = AnnuityParams(
            calculation_type='withdrawal',
            principal=1000000,
            term_years=20,
            interest_rate=8,
            annual_increase=5,
        )

    def test_success_payload(self):
        response = run_calculation_service(self.params)
        self.assertTrue(response['success'])
        self.assertEqual(response['calculation_type'], 'withdrawal')
        self.assertEqual(response['solved_value'], 5601.44)
        self.assertEqual(response['inputs']['monthly_withdrawal'], 5601.44)
        self.assertNotIn('monthly', response)

        annual = response['annual']
        self.assertEqual(annual['columns'], ['Year', 'Start_Balance', 'Interest', 'Withdrawal',
                                             'End_Balance', 'Total_Interest', 'Total_Withdrawn'])
        self.assertEqual(len(annual['results']), 20)
        self.assertEqual(annual['results'][0]['Year'], 1)
        self.assertAlmostEqual(annual['results'][0]['End_Balance'], 1010352.33, delta=0.01)
        self.assertAlmostEqual(annual['results'][-1]['Total_Withdrawn'],
                               response['summary']['total_withdrawn'], places=6)

    def test_monthly_table_on_request(self):
        params = self.params.model_copy(update={'include_monthly': True})
        response = run_calculation_service(params)
        monthly = response['monthly']
        self.assertEqual(len(monthly['results']), 240)
        self.assertEqual(monthly['results'][12]['Month'], 13)
        self.assertEqual(monthly['results'][12]['Year'], 2)

    def test_calculation_too_long_payload(self):
        params = AnnuityParams(calculation_type='term', principal=100000, interest_rate=8,
                               monthly_withdrawal=100, annual_increase=0)
        response = run_calculation_service(params)
        self.assertFalse(response['success'])
        self.assertEqual(response['error']['kind'], 'calculation_too_long')
        self.assertIn('longer than 1000 years', response['error']['message'])

    def test_search_failed_payload(self):
        params = AnnuityParams(calculation_type='principal', term_years=1, interest_rate=5,
                               monthly_withdrawal=0, annual_increase=0)
        response = run_calculation_service(params)
        self.assertFalse(response['success'])
        self.assertEqual(response['error']['kind'], 'search_failed')
        self.assertEqual(response['error']['message'], "Please check the input values are reasonable")

    def test_missing_input_propagates(self):
        params = AnnuityParams(calculation_type='rate', principal=1000, term_years=10, annual_increase=0)
        with self.assertRaises(MissingInput):
            run_calculation_service(params)


class TestTables(unittest.TestCase):
    def setUp(self):
        self.result = solve(SimulationInput(principal=100000, annual_rate_percent=6,
                                            initial_monthly_withdrawal=1000, annual_increase_percent=0),
                            PolicyKind.TERM)

    def test_annual_dataframe_matches_engine(self):
        df = annual_to_dataframe(self.result.annual)
        self.assertEqual(len(df), len(self.result.annual))
        self.assertAlmostEqual(df['Interest'].sum(), self.result.summary.total_interest, places=6)
        self.assertAlmostEqual(df['Withdrawal'].sum(), self.result.summary.total_withdrawn, places=6)
        pd.testing.assert_series_equal(
            df['Total_Withdrawn'], df['Withdrawal'].cumsum(), check_names=False, rtol=1e-9
        )

    def test_periods_dataframe(self):
        df = periods_to_dataframe(self.result.trace.periods)
        self.assertEqual(len(df), 138)
        self.assertEqual(list(df.columns), ['Month', 'Year', 'Start_Balance', 'Interest', 'Withdrawal', 'End_Balance'])
        self.assertEqual(df['Year'].iloc[-1], 12)
        self.assertEqual(df['Month'].iloc[0], 1)

    def test_empty_tables(self):
        self.assertTrue(annual_to_dataframe(()).empty)
        self.assertTrue(periods_to_dataframe(()).empty)

    def test_export_csv(self):
        params = AnnuityParams(calculation_type='term', principal=100000, interest_rate=6,
                               monthly_withdrawal=1000, annual_increase=0)
        csv_text = export_annual_csv(params)
        lines = csv_text.strip().splitlines()
        self.assertEqual(lines[0], 'Year,Start_Balance,Interest,Withdrawal,End_Balance,Total_Interest,Total_Withdrawn')
        self.assertEqual(len(lines), 1 + 12)
        self.assertTrue(lines[1].startswith('1,100000.00,'))


if __name__ == '__main__':
    unittest.main()
