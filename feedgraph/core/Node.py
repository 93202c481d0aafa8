from dataclasses import dataclass, replace
from enum import Enum
from types import MappingProxyType
from typing import Optional, List, Dict, Any, Type, Callable, Mapping, Tuple, ClassVar

import logging
import uuid

from .NodePort import NodePort, StatementPort, ValuePort
from .Types import (
    NodeType,
    ConnectionCheck,
    DataSourceKind,
    AggregationFunction,
    Operator,
)


# Get a logger for this module
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldSpec:
    """A named scalar on a node. ``options`` closes the value set to an Enum's values."""
    name: str
    default: Any
    options: Optional[Type[Enum]] = None

    def coerce(self, value: Any) -> Any:
        if self.options is not None:
            if isinstance(value, self.options):
                return value.value
            allowed = [option.value for option in self.options]
            if value not in allowed:
                raise ValueError(f"Field '{self.name}' must be one of {allowed}, got {value!r}")
            return value

        # Free text or numeric entry
        if isinstance(value, bool) or not isinstance(value, (str, int, float)):
            raise ValueError(f"Field '{self.name}' expects text or a number, got {type(value).__name__}")
        return value


@dataclass(frozen=True)
class Node:
    """
    One typed element of the visual program.

    Nodes are immutable records: the editor replaces a node when a field
    changes, so a snapshot handed to the compiler can never change under it.
    Connections are not stored on the node; they live on the graph as edges.
    """
    id: str
    fields: Mapping[str, Any]

    # Per-type schema, set on the registered subclasses
    TYPE: ClassVar[Optional[NodeType]] = None
    PORTS: ClassVar[Tuple[NodePort, ...]] = ()
    FIELDS: ClassVar[Tuple[FieldSpec, ...]] = ()
    CHAIN: ClassVar[Optional[ConnectionCheck]] = None   # chain category when the node has previous/next links
    OUTPUT: ClassVar[bool] = False                      # produces a value

    _node_registry = {}  # type: Dict[NodeType, Type[Node]]

    @classmethod
    def register(cls, node_type: NodeType) -> Callable[[Type['Node']], Type['Node']]:
        """Decorator to register a node class for a node type."""
        def decorator(subclass: Type['Node']) -> Type['Node']:
            if node_type in cls._node_registry:
                raise ValueError(f"Node type '{node_type.value}' is already registered.")
            subclass.TYPE = node_type
            cls._node_registry[node_type] = subclass
            logger.debug(f"Registered node type '{node_type.value}' -> {subclass.__name__}")
            return subclass
        return decorator

    @classmethod
    def node_class(cls, node_type: Any) -> Type['Node']:
        node_type = NodeType.parse(node_type)
        if node_type not in cls._node_registry:
            raise ValueError(f"Unknown node type '{node_type.value}'")
        return cls._node_registry[node_type]

    @classmethod
    def registered_types(cls) -> List[NodeType]:
        return list(cls._node_registry)

    @classmethod
    def create_node(cls, node_id: Optional[str], node_type: Any, fields: Optional[Mapping[str, Any]] = None) -> 'Node':
        """Factory method to create a node by type, filling unset fields with their defaults."""
        node_class = cls.node_class(node_type)
        specs = node_class.field_specs()
        values = {name: spec.default for name, spec in specs.items()}

        for name, value in (fields or {}).items():
            if name not in specs:
                raise ValueError(f"Node type '{node_class.TYPE.value}' has no field '{name}'")
            values[name] = specs[name].coerce(value)

        return node_class(node_id or uuid.uuid4().hex, MappingProxyType(values))

    @classmethod
    def field_specs(cls) -> Dict[str, FieldSpec]:
        return {spec.name: spec for spec in cls.FIELDS}

    @classmethod
    def port_specs(cls) -> Dict[str, NodePort]:
        return {port.port_name: port for port in cls.PORTS}

    @property
    def type(self) -> NodeType:
        return self.TYPE

    def field(self, name: str) -> Any:
        if name not in self.fields:
            raise KeyError(f"Field '{name}' not found in node '{self.id}'")
        return self.fields[name]

    def with_field(self, name: str, value: Any) -> 'Node':
        specs = self.field_specs()
        if name not in specs:
            raise ValueError(f"Node type '{self.type.value}' has no field '{name}'")
        values = dict(self.fields)
        values[name] = specs[name].coerce(value)
        return replace(self, fields=MappingProxyType(values))

    def get_port(self, port_name: str) -> NodePort:
        port = self.port_specs().get(port_name)
        if not port:
            raise KeyError(f"Port '{port_name}' not found in node '{self.id}'")
        return port

    def isStatementNode(self) -> bool:
        return self.CHAIN is not None

    def isValueNode(self) -> bool:
        return self.OUTPUT

    def __repr__(self):
        return f"{type(self).__name__}({self.id})"


# ── Block definitions ─────────────────────────────────────────────────────────

@Node.register(NodeType.ROOT)
class ConfigNode(Node):
    PORTS = (
        StatementPort("SOURCES", ConnectionCheck.SOURCE),
        StatementPort("TRANSFORMATIONS", ConnectionCheck.TRANSFORMATION),
    )


@Node.register(NodeType.SOURCE)
class SourceNode(Node):
    FIELDS = (
        FieldSpec("ID", "id"),
        FieldSpec("DATA_SOURCE", DataSourceKind.DUMMY.value, DataSourceKind),
        FieldSpec("UPDATE_FREQUENCY", "5s"),
        # Pool settings
        FieldSpec("CONTRACT", "0x..."),
        FieldSpec("PROVIDER_URL", "https://"),
        FieldSpec("BASE_INDEX", 0),
        FieldSpec("BASE_DECIMALS", 18),
        FieldSpec("QUOTE_INDEX", 1),
        FieldSpec("QUOTE_DECIMALS", 18),
        # Random generator bounds
        FieldSpec("MIN_VALUE", 0),
        FieldSpec("MAX_VALUE", 100),
    )
    CHAIN = ConnectionCheck.SOURCE


@Node.register(NodeType.TRANSFORMATION)
class TransformationNode(Node):
    PORTS = (ValuePort("VALUES"),)
    FIELDS = (FieldSpec("ID", "id"),)
    CHAIN = ConnectionCheck.TRANSFORMATION


@Node.register(NodeType.AGGREGATION)
class AggregationNode(Node):
    PORTS = (StatementPort("VALUES", ConnectionCheck.VALUE),)
    FIELDS = (FieldSpec("FORMULA", AggregationFunction.MEDIAN.value, AggregationFunction),)
    OUTPUT = True


@Node.register(NodeType.FORMULA)
class FormulaNode(Node):
    PORTS = (ValuePort("VALUE_A"), ValuePort("VALUE_B"))
    FIELDS = (FieldSpec("OPERATION", Operator.ADD.value, Operator),)
    OUTPUT = True


@Node.register(NodeType.VALUE)
class ValueNode(Node):
    """Wraps one formula so it can be listed as an aggregation argument."""
    PORTS = (ValuePort("INPUT"),)
    CHAIN = ConnectionCheck.VALUE
    OUTPUT = True


@Node.register(NodeType.VARIABLE)
class VariableNode(Node):
    FIELDS = (FieldSpec("NAME", ""),)
    OUTPUT = True


@Node.register(NodeType.CONSTANT)
class ConstantNode(Node):
    FIELDS = (FieldSpec("INPUT", "123.0"),)
    OUTPUT = True
