import abc
import decimal
import math
from dataclasses import dataclass
from typing import Callable


class Value(abc.ABC):
    @classmethod
    @abc.abstractmethod
    def type_name(cls) -> str:
        ...

    @abc.abstractmethod
    def to_text(self) -> str:
        """Text written by the print statement"""
        ...


BinaryOperationImpl = Callable[[Value, Value], Value]


@dataclass
class Number(Value):
    v: float

    @classmethod
    def type_name(cls) -> str:
        return "Number"

    def to_text(self) -> str:
        v = float(self.v)
        if math.isnan(v):
            return "NaN"
        if math.isinf(v):
            return "inf" if v > 0 else "-inf"
        # shortest round-trip digits, never in exponent form; 5.0 prints as 5, -0.0 as -0
        text = format(decimal.Decimal(repr(v)), "f")
        if "." in text:
            text = text.rstrip("0").rstrip(".")
        return text
