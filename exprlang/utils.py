import enum


class PrintableEnum(enum.Enum):
    def __str__(self) -> str:
        return self.name

    __repr__ = __str__


class ErrorKind(PrintableEnum):
    SCAN = enum.auto()
    PARSE = enum.auto()
    EVALUATION = enum.auto()


class LangError(Exception):
    """Base for every error the pipeline reports; tagged with the stage that raised it"""

    kind: ErrorKind
