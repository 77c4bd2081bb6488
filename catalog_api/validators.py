import math
from typing import Annotated, Union

from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, ValidationError, field_validator

from .errors import ErrorKind, Outcome

RequiredStr = Annotated[StrictStr, Field(min_length=1)]


class UserIn(BaseModel):
    model_config = ConfigDict(extra='ignore')

    name: RequiredStr
    email: RequiredStr
    password: RequiredStr


class LoginIn(BaseModel):
    model_config = ConfigDict(extra='ignore')

    email: RequiredStr
    password: RequiredStr


class ProductIn(BaseModel):
    model_config = ConfigDict(extra='ignore')

    name: RequiredStr
    description: RequiredStr
    price: Union[StrictInt, StrictFloat]

    @field_validator('price')
    @classmethod
    def price_is_finite(cls, value):
        try:
            price = float(value)
        except OverflowError:
            raise ValueError("price out of range")
        if not math.isfinite(price):
            raise ValueError("price must be finite")
        return price


def _describe(exc: ValidationError) -> str:
    parts = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err["loc"]) or "body"
        parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)


def _validate(model, payload) -> Outcome:
    if not isinstance(payload, dict):
        return Outcome.fail(ErrorKind.VALIDATION, "Request body must be a JSON object")
    try:
        return Outcome.ok(model.model_validate(payload))
    except ValidationError as e:
        return Outcome.fail(ErrorKind.VALIDATION, _describe(e))


def validate_user(payload) -> Outcome:
    return _validate(UserIn, payload)


def validate_login(payload) -> Outcome:
    return _validate(LoginIn, payload)


def validate_product(payload) -> Outcome:
    return _validate(ProductIn, payload)
