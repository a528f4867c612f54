import logging
from dataclasses import asdict

import pandas as pd

from engine.errors import CalculationTooLong, SearchFailed
from engine.policies import solve
from schemas.annuity import AnnuityParams
from services.presentation import error_message, headline

logger = logging.getLogger(__name__)

ANNUAL_COLUMNS = {
    'year': 'Year',
    'start_balance': 'Start_Balance',
    'interest_payment': 'Interest',
    'withdrawal': 'Withdrawal',
    'end_balance': 'End_Balance',
    'total_interest': 'Total_Interest',
    'total_withdrawn': 'Total_Withdrawn',
}

MONTHLY_COLUMNS = {
    'start_balance': 'Start_Balance',
    'interest_payment': 'Interest',
    'withdrawal': 'Withdrawal',
    'end_balance': 'End_Balance',
}


def annual_to_dataframe(records) -> pd.DataFrame:
    """Annual records as a display table, one row per year"""
    df = pd.DataFrame([asdict(r) for r in records], columns=list(ANNUAL_COLUMNS))
    return df.rename(columns=ANNUAL_COLUMNS)


def periods_to_dataframe(records) -> pd.DataFrame:
    """Monthly records as a display table with Month and Year columns"""
    df = pd.DataFrame([asdict(r) for r in records], columns=list(MONTHLY_COLUMNS))
    df = df.rename(columns=MONTHLY_COLUMNS)
    months = pd.RangeIndex(1, len(df) + 1)
    df.insert(0, 'Month', months)
    df.insert(1, 'Year', (months - 1) // 12 + 1)
    return df


def format_results(df: pd.DataFrame) -> dict:
    """Format engine results for API response"""
    if df.empty:
        return {'results': [], 'columns': list(df.columns)}

    header = list(df.columns)

    results_json = []
    for _, row in df.iterrows():
        row_dict = {}
        for col in header:
            val = row[col]
            if pd.isna(val):
                row_dict[col] = None
            elif hasattr(val, 'item'):
                row_dict[col] = val.item()
            else:
                row_dict[col] = val
        results_json.append(row_dict)

    return {
        'results': results_json,
        'columns': header
    }


def failure_payload(error) -> dict:
    """Typed failure for recoverable engine errors"""
    details = error.to_dict()
    details['message'] = error_message(error.kind)
    return {'success': False, 'error': details}


def _inputs_dict(params: AnnuityParams, result) -> dict:
    inputs = result.inputs
    return {
        'calculation_type': params.calculation_type.name.lower(),
        'principal': inputs.principal,
        'term_years': inputs.term_years,
        'interest_rate': inputs.annual_rate_percent,
        'compounding_periods_per_year': inputs.compounding_periods_per_year,
        'monthly_withdrawal': inputs.initial_monthly_withdrawal,
        'annual_increase': inputs.annual_increase_percent,
        'currency': params.currency,
    }


def run_calculation_service(params: AnnuityParams) -> dict:
    """
    Solve the requested annuity and shape it for the API.

    SearchFailed and CalculationTooLong come back as success=False payloads.
    MissingInput is a caller error and propagates.
    """
    inputs = params.to_simulation_input()
    try:
        result = solve(inputs, params.calculation_type)
    except (SearchFailed, CalculationTooLong) as e:
        logger.info("Calculation %s failed: %s", params.calculation_type.name, e)
        return failure_payload(e)

    response = {
        'success': True,
        'calculation_type': params.calculation_type.name.lower(),
        'solved_value': result.summary.solved_value,
        'summary': asdict(result.summary),
        'headline': headline(result, params.currency),
        'inputs': _inputs_dict(params, result),
        'annual': format_results(annual_to_dataframe(result.annual)),
    }
    if params.include_monthly:
        response['monthly'] = format_results(periods_to_dataframe(result.trace.periods))
    return response


def export_annual_csv(params: AnnuityParams) -> str:
    """
    Annual table as CSV text.
    Recoverable engine errors propagate so the caller can pick a status code.
    """
    result = solve(params.to_simulation_input(), params.calculation_type)
    df = annual_to_dataframe(result.annual)
    return df.to_csv(index=False, float_format='%.2f')
