from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, PlainSerializer
from pydantic.alias_generators import to_camel

from finledger.utils.loan_calculations import money

# money goes over the wire as "1234.50", never as a binary float
Money = Annotated[Decimal, PlainSerializer(lambda v: str(money(v)), return_type=str, when_used="json")]


class ApiModel(BaseModel):
    """camelCase on the wire, snake_case in Python."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
