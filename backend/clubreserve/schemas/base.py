"""
Shared pydantic bases for records leaving the reservation services.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic_core import core_schema

_CENT = Decimal("0.01")


class StandardizedModel(BaseModel):
    """Result records: enums dumped as their values."""

    model_config = ConfigDict(use_enum_values=True, populate_by_name=True)


class StrictModel(BaseModel):
    """Caller-supplied input (identity, guest data); unknown fields are an error."""

    model_config = ConfigDict(
        extra="forbid",
        validate_default=True,
        validate_assignment=True,
    )


class Money(Decimal):
    """
    Club currency amount, kept to cents.

    Floats go through ``str`` so 0.1 stays 0.10. Amounts dump as a
    two-decimal string, which keeps ledger totals exact in JSON.
    """

    @classmethod
    def __get_pydantic_core_schema__(cls, source_type: Any, handler: Any) -> core_schema.CoreSchema:
        def to_cents(value: Any) -> Decimal:
            try:
                amount = value if isinstance(value, Decimal) else Decimal(str(value))
            except InvalidOperation:
                raise ValueError(f"{value!r} is not an amount")
            if not amount.is_finite():
                raise ValueError(f"{value!r} is not an amount")
            return amount.quantize(_CENT, rounding=ROUND_HALF_UP)

        return core_schema.no_info_after_validator_function(
            to_cents,
            core_schema.union_schema(
                [
                    core_schema.int_schema(),
                    core_schema.float_schema(),
                    core_schema.str_schema(),
                    core_schema.is_instance_schema(Decimal),
                ]
            ),
            serialization=core_schema.plain_serializer_function_ser_schema(
                lambda amount: f"{amount:.2f}",
                info_arg=False,
                return_schema=core_schema.str_schema(),
            ),
        )
