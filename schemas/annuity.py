import io
from dataclasses import dataclass, field
from typing import List, Optional, Union

import pandas as pd
from pydantic import BaseModel, Field, ValidationError, field_serializer, field_validator

from engine.models import PolicyKind, SimulationInput
from engine.policies import SOLVED_FIELDS, required_fields

# Engine field name -> request field name
FIELD_NAMES = {
    'principal': 'principal',
    'term_years': 'term_years',
    'annual_rate_percent': 'interest_rate',
    'initial_monthly_withdrawal': 'monthly_withdrawal',
    'annual_increase_percent': 'annual_increase',
}

# Parameter template offered for CSV upload (parameter, description)
TEMPLATE_PARAMETERS = [
    ('calculation_type', 'What to solve for: withdrawal, term, principal or rate'),
    ('principal', 'Starting principal'),
    ('term_years', 'Annuity term in years'),
    ('interest_rate', 'Nominal annual interest rate (%)'),
    ('compounding_periods_per_year', 'Interest compounding periods per year'),
    ('monthly_withdrawal', 'Initial monthly withdrawal'),
    ('annual_increase', 'Annual increase of the withdrawal (%)'),
    ('currency', 'Display currency code (USD, EUR, GBP, ZAR, ...)'),
]


class AnnuityParams(BaseModel):
    """Annuity calculation request with validation"""
    calculation_type: PolicyKind = PolicyKind.WITHDRAWAL

    # The four interchangeable inputs; the one being solved for may be omitted
    principal: Optional[float] = Field(default=None, ge=0)
    term_years: Optional[float] = Field(default=None, gt=0, le=1000)
    interest_rate: Optional[float] = Field(default=None, ge=0, le=100)
    monthly_withdrawal: Optional[float] = Field(default=None, ge=0)

    annual_increase: Optional[float] = Field(default=0, ge=0, le=100)
    compounding_periods_per_year: int = Field(default=12, ge=1, le=365)

    # Display only
    currency: str = Field(default='ZAR', max_length=3)
    include_monthly: bool = False

    @field_validator('calculation_type', mode='before')
    @classmethod
    def parse_calculation_type(cls, value):
        return PolicyKind.parse(value)

    @field_validator('currency', mode='before')
    @classmethod
    def normalise_currency(cls, value):
        if isinstance(value, str):
            return value.strip().upper()
        return value

    @field_serializer('calculation_type')
    def serialize_calculation_type(self, kind: PolicyKind):
        return kind.name.lower()

    def to_simulation_input(self) -> SimulationInput:
        """Build the engine input, leaving out the field being solved for."""
        values = {engine_name: getattr(self, request_name)
                  for engine_name, request_name in FIELD_NAMES.items()}
        values[SOLVED_FIELDS[self.calculation_type]] = None
        return SimulationInput(
            compounding_periods_per_year=self.compounding_periods_per_year,
            **values
        )


@dataclass
class FieldError:
    field: str
    message: str

    def to_dict(self):
        return {'field': self.field, 'message': self.message}


@dataclass
class Ok:
    params: AnnuityParams
    ok: bool = field(default=True, init=False)


@dataclass
class Err:
    errors: List[FieldError]
    ok: bool = field(default=False, init=False)


ValidationOutcome = Union[Ok, Err]


def _field_errors(exc: ValidationError) -> List[FieldError]:
    errors = []
    for err in exc.errors():
        name = '.'.join(str(part) for part in err.get('loc', ())) or '__root__'
        errors.append(FieldError(field=name, message=err.get('msg', 'Invalid value')))
    return errors


def missing_fields(params: AnnuityParams) -> List[str]:
    """Request field names the selected calculation needs but did not get."""
    return [FIELD_NAMES[name] for name in required_fields(params.calculation_type)
            if getattr(params, FIELD_NAMES[name]) is None]


def validate_params(payload) -> ValidationOutcome:
    """
    Validate a raw payload into AnnuityParams.
    Never raises for bad input; problems come back as Err(list of FieldError).
    """
    if not isinstance(payload, dict):
        return Err([FieldError('__root__', 'Expected an object of parameters')])

    try:
        params = AnnuityParams(**payload)
    except ValidationError as e:
        return Err(_field_errors(e))

    missing = missing_fields(params)
    if missing:
        return Err([FieldError(name, f'The "{name}" is required for this calculation.')
                    for name in missing])

    return Ok(params)


def csv_to_payload(content: bytes) -> dict:
    """Parse a parameter,value CSV into a raw payload dict"""
    try:
        df = pd.read_csv(io.BytesIO(content))
        inputs = dict(zip(df['parameter'], df['value']))
    except (KeyError, ValueError, pd.errors.ParserError) as e:
        raise ValueError(f"Failed to parse CSV: {str(e)}") from e

    # Clean inputs - convert numeric strings
    clean_inputs = {}
    for k, v in inputs.items():
        if pd.isna(v):
            continue
        try:
            clean_inputs[k] = float(v)
            if clean_inputs[k].is_integer():
                clean_inputs[k] = int(clean_inputs[k])
        except ValueError:
            clean_inputs[k] = str(v).strip()

    return clean_inputs


def template_csv() -> str:
    df = pd.DataFrame(TEMPLATE_PARAMETERS, columns=['parameter', 'description'])
    df.insert(1, 'value', '')
    return df.to_csv(index=False)
