"""
Display helpers for solved annuities: currency symbols and formatting,
headline lines for the result panel, and user-facing error messages.
The engine never formats anything itself.
"""
from engine.amortization import CALCULATION_LIMIT_YEARS
from engine.errors import ErrorKind
from engine.models import PolicyKind

CURRENCY_SYMBOLS = {
    'USD': '$',
    'EUR': '€',
    'GBP': '£',
    'JPY': '¥',
    'CHF': 'CHF',
    'CAD': 'C$',
    'AUD': 'A$',
    'CNY': '¥',
    'INR': '₹',
    'AED': 'AED',
    'ZAR': 'R',
}
DEFAULT_SYMBOL = 'R'

# Currencies shown without cents
NO_DECIMAL_CURRENCIES = {'JPY'}

ERROR_MESSAGES = {
    ErrorKind.MISSING_INPUT: "Please refresh the page and try again.",
    ErrorKind.SEARCH_FAILED: "Please check the input values are reasonable",
    ErrorKind.CALCULATION_TOO_LONG: (
        f"This annuity will last longer than {CALCULATION_LIMIT_YEARS} years. "
        "Please increase the monthly withdrawal"
    ),
}


def currency_symbol(code):
    return CURRENCY_SYMBOLS.get((code or '').upper(), DEFAULT_SYMBOL)


def currency_format(amount, code='ZAR', space=' '):
    """Format an amount as e.g. 'R 1,234.56' (no decimals for JPY)."""
    decimals = 0 if (code or '').upper() in NO_DECIMAL_CURRENCIES else 2
    return f"{currency_symbol(code)}{space}{amount:,.{decimals}f}"


def error_message(kind: ErrorKind) -> str:
    return ERROR_MESSAGES[kind]


def _main_line(result, code):
    inputs = result.inputs
    if result.kind is PolicyKind.WITHDRAWAL:
        return (f"Monthly Income: {currency_format(inputs.initial_monthly_withdrawal, code)}, "
                f"Increasing at {inputs.annual_increase_percent:g}% per annum")
    if result.kind is PolicyKind.TERM:
        return f"Annuity Term: {inputs.term_years:.1f} years"
    if result.kind is PolicyKind.PRINCIPAL:
        return f"Principal: {currency_format(inputs.principal, code)}"
    return f"Interest Rate: {inputs.annual_rate_percent:g}%"


def headline(result, code='ZAR'):
    """Text lines for the result panel of a solved annuity."""
    summary = result.summary
    return {
        'main': _main_line(result, code),
        'income': (f"Initial Annual Income: {currency_format(summary.initial_annual_income, code)}, "
                   f"Draw Down Percentage: {summary.draw_down_percent:.1f}%"),
        'total_withdrawn': f"Total Withdrawn: {currency_format(summary.total_withdrawn, code)}",
        'total_interest': f"Total Interest: {currency_format(summary.total_interest, code)}",
    }
