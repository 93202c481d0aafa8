from enum import Enum, auto
from typing import Any


class NodeType(Enum):
    # Values are the block type tags used by the editor and the graph JSON
    ROOT = "main_config"
    SOURCE = "source"
    TRANSFORMATION = "transformation"
    AGGREGATION = "aggregation"
    FORMULA = "simple_formula"
    VALUE = "value"
    VARIABLE = "variable"
    CONSTANT = "constant"

    @staticmethod
    def parse(tag: Any) -> 'NodeType':
        if isinstance(tag, NodeType):
            return tag
        try:
            return NodeType(tag)
        except ValueError:
            raise ValueError(f"Unknown node type '{tag}'") from None


class PortKind(Enum):
    STATEMENT = auto()
    VALUE = auto()


class ConnectionCheck(Enum):
    # Chain categories. A statement port only accepts nodes whose chain category matches.
    SOURCE = "Source"
    TRANSFORMATION = "Transformation"
    VALUE = "value"


class DataSourceKind(Enum):
    DUMMY = "dummy"
    UNISWAP_V2 = "uniswapv2"
    RAYDIUM_CLMM = "raydiumclmm"
    RANDOM = "random"

    def is_pool(self) -> bool:
        return self in (DataSourceKind.UNISWAP_V2, DataSourceKind.RAYDIUM_CLMM)


class AggregationFunction(Enum):
    MEDIAN = "median"
    MEAN = "mean"
    MODE = "mode"
    SUM = "sum"
    PROD = "prod"


class Operator(Enum):
    # Dropdown values as shown to the author
    ADD = "+"
    SUBTRACT = "-"
    MULTIPLY = "×"
    DIVIDE = "÷"
    POWER = "^"

    @property
    def symbol(self) -> str:
        """The operator as it appears in a formula string."""
        if self == Operator.MULTIPLY:
            return "*"
        elif self == Operator.DIVIDE:
            return "/"
        return self.value


# Link names used on the far side of an edge
PREVIOUS_LINK = "previous"
OUTPUT_LINK = "output"
NEXT_LINK = "next"

# Placeholder emitted for an unconnected value port
NONE_SENTINEL = "none"
